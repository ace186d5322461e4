"""Core utilities: results, error codes, configuration and untyped-data helpers."""

from .config import ConfigError, DrafterConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    "ConfigError",
    "DrafterConfig",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "load_config",
]
