"""Constants used by the change cache and content hashing."""

from __future__ import annotations

CACHE_VERSION: int = 1
CACHE_FILENAME: str = ".weightdex-cache.json"
CACHE_TEMP_PREFIX: str = ".cache-"
CACHE_TEMP_SUFFIX: str = ".tmp"

# 1 MiB reads keep multi-gigabyte weight files out of memory.
FILE_HASH_CHUNK_SIZE: int = 1024 * 1024
CONTENT_IDENTITY_LENGTH: int = 64

STORE_FILENAME: str = "weightdex-index.json"
STORE_TEMP_PREFIX: str = ".index-"
