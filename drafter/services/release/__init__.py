"""Release computation engine and its hosting adapter."""

from drafter.services.release.builder import ReleaseInputs, build_release_info
from drafter.services.release.errors import ReleaseError
from drafter.services.release.matcher import MatchedReleases, find_releases
from drafter.services.release.model import (
    ChangeSet,
    MergedChange,
    Release,
    ReleaseDescriptor,
)
from drafter.services.release.service import DraftOutcome, DraftService

__all__ = [
    "ChangeSet",
    "DraftOutcome",
    "DraftService",
    "MatchedReleases",
    "MergedChange",
    "Release",
    "ReleaseDescriptor",
    "ReleaseError",
    "ReleaseInputs",
    "build_release_info",
    "find_releases",
]
