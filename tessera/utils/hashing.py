# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
SHA256 helpers for artifact integrity.

Bundles record a checksum for every file they contain and load_bundle()
refuses to build a Vocabulary from anything that doesn't match.
"""

import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB


def compute_sha256(file_path: Path) -> str:
    """
    Lowercase hex SHA256 of a file, read in chunks.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def compute_sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def verify_checksum(file_path: Path, expected_hash: str) -> bool:
    """True if the file's SHA256 matches expected_hash (case-insensitive)."""
    return compute_sha256(file_path) == expected_hash.lower()
