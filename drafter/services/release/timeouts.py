from __future__ import annotations

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Release listing: the API answers 500 past 1000 releases
RELEASE_PAGE_SIZE = 100
RELEASE_COUNT_LIMIT = 1000
