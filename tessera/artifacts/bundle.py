# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Vocabulary bundle — a self-contained directory an Encoder can be built from.

The bundle contains:
  - vocab.tsv      — every piece in ID order (see tessera.vocab.loader)
  - encoder.yaml   — frozen copy of the EncoderConfig to use with it
  - metadata.json  — version hash, size, model type, kind counts, timestamp
  - checksum.txt   — SHA256 of every other file, "hash  filename" per line

load_bundle() verifies every checksum before parsing anything. A token ID
is only meaningful against the exact vocabulary that produced it, so a
bundle that doesn't verify is refused outright.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple

import yaml

from tessera.config.loader import load_encoder_config
from tessera.config.schema import EncoderConfig
from tessera.exceptions import ArtifactIntegrityError
from tessera.logging.logger import get_logger
from tessera.utils.filesystem import atomic_write
from tessera.utils.hashing import compute_sha256, compute_sha256_bytes, verify_checksum
from tessera.vocab.core import Vocabulary
from tessera.vocab.loader import read_vocab_file, write_vocab_file

VOCAB_FILE = "vocab.tsv"
CONFIG_FILE = "encoder.yaml"
METADATA_FILE = "metadata.json"
CHECKSUM_FILE = "checksum.txt"

_CONTENT_FILES = (VOCAB_FILE, CONFIG_FILE)
_HASHED_FILES = (*_CONTENT_FILES, METADATA_FILE)


class BundleResult(NamedTuple):
    """What you get back after writing a bundle."""

    output_directory: str
    version_hash: str
    vocab_size: int
    file_count: int


def _write_config_snapshot(config: EncoderConfig, output_path: Path) -> None:
    content = yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=True)
    atomic_write(output_path, content)


def _compute_version_hash(output_dir: Path) -> str:
    """
    Hash of the content files' hashes, in sorted filename order. Any change
    to the pieces or the encoder settings changes it; metadata timestamps
    don't.
    """
    file_hashes = [compute_sha256(output_dir / name) for name in sorted(_CONTENT_FILES)]
    return compute_sha256_bytes("\n".join(file_hashes).encode("utf-8"))


def _write_metadata(vocab: Vocabulary, version_hash: str, output_path: Path) -> None:
    metadata = {
        "version_hash": version_hash,
        "vocab_size": len(vocab),
        "model_type": vocab.model_type,
        "byte_fallback": vocab.has_byte_fallback,
        "kinds": vocab.kind_counts(),
        "created_at": datetime.now(tz=timezone.utc).isoformat(),
    }
    atomic_write(output_path, json.dumps(metadata, indent=2, sort_keys=True) + "\n")


def _write_checksums(output_dir: Path, files: list[str]) -> None:
    lines = [f"{compute_sha256(output_dir / name)}  {name}" for name in sorted(files)]
    atomic_write(output_dir / CHECKSUM_FILE, "\n".join(lines) + "\n")


def create_bundle(
    vocab: Vocabulary,
    output_dir: Path,
    config: EncoderConfig | None = None,
) -> BundleResult:
    """
    Write a complete bundle for vocab (and the encoder settings to use with it).

    Step by step: vocab.tsv, encoder.yaml, the version hash over those two,
    metadata.json, then checksum.txt covering everything before it.
    """
    logger = get_logger("tessera.artifacts")
    config = config or EncoderConfig()

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Creating vocabulary bundle", extra={"output_dir": str(output_dir)})

    write_vocab_file(vocab, output_dir / VOCAB_FILE)
    _write_config_snapshot(config, output_dir / CONFIG_FILE)

    version_hash = _compute_version_hash(output_dir)
    _write_metadata(vocab, version_hash, output_dir / METADATA_FILE)

    _write_checksums(output_dir, list(_HASHED_FILES))
    file_count = len(_HASHED_FILES) + 1

    logger.info(
        "Vocabulary bundle created",
        extra={
            "version_hash": version_hash,
            "vocab_size": len(vocab),
            "file_count": file_count,
            "output_dir": str(output_dir),
        },
    )

    return BundleResult(
        output_directory=str(output_dir),
        version_hash=version_hash,
        vocab_size=len(vocab),
        file_count=file_count,
    )


def verify_bundle(bundle_dir: Path) -> None:
    """
    Check every file listed in checksum.txt, and that the required files are listed.

    Raises:
        ArtifactIntegrityError: Missing files, malformed checksum lines, or a mismatch.
    """
    checksum_path = bundle_dir / CHECKSUM_FILE
    if not checksum_path.is_file():
        raise ArtifactIntegrityError(f"No {CHECKSUM_FILE} in bundle {bundle_dir}")

    listed: set[str] = set()
    for line in checksum_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        expected_hash, sep, filename = line.partition("  ")
        if not sep or not filename:
            raise ArtifactIntegrityError(f"Malformed checksum line in {checksum_path}: {line!r}")
        # Names outside the fixed file set, such as "../x", are never opened.
        if filename not in _HASHED_FILES:
            raise ArtifactIntegrityError(f"Unexpected file in bundle checksum list: {filename!r}")
        file_path = bundle_dir / filename
        if not file_path.is_file():
            raise ArtifactIntegrityError(f"Bundle file listed but missing: {filename}")
        if not verify_checksum(file_path, expected_hash):
            raise ArtifactIntegrityError(f"Checksum mismatch for {filename}")
        listed.add(filename)

    missing = [name for name in _HASHED_FILES if name not in listed]
    if missing:
        raise ArtifactIntegrityError(f"Bundle checksum list lacks: {', '.join(missing)}")


def load_bundle(bundle_dir: Path) -> tuple[Vocabulary, EncoderConfig]:
    """
    Verify and load a bundle.

    Raises:
        ArtifactIntegrityError: The bundle doesn't verify.
        InvalidModelError: vocab.tsv verifies but isn't a valid vocabulary.
        ConfigError: encoder.yaml isn't a valid EncoderConfig.
    """
    if not bundle_dir.is_dir():
        raise ArtifactIntegrityError(f"Bundle directory not found: {bundle_dir}")

    verify_bundle(bundle_dir)

    vocab = read_vocab_file(bundle_dir / VOCAB_FILE)
    config = load_encoder_config(bundle_dir / CONFIG_FILE)
    return vocab, config
