# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the vocabulary bundle.

We write a bundle, then verify that all the expected files are present,
the checksums are valid, the metadata has the right fields, and that a
tampered bundle is refused instead of loading.
"""

import json
from pathlib import Path

import pytest

from tessera.artifacts.bundle import create_bundle, load_bundle, verify_bundle
from tessera.config.schema import EncoderConfig
from tessera.encoder.core import Encoder
from tessera.exceptions import ArtifactIntegrityError
from tessera.utils.hashing import compute_sha256
from tessera.vocab.core import Vocabulary


def test_bundle_creates_all_files(vocab: Vocabulary, tmp_path: Path) -> None:
    result = create_bundle(vocab, tmp_path / "bundle")

    for filename in ["vocab.tsv", "encoder.yaml", "metadata.json", "checksum.txt"]:
        assert (tmp_path / "bundle" / filename).is_file(), f"Missing: {filename}"
    assert result.file_count == 4
    assert result.vocab_size == len(vocab)
    assert len(result.version_hash) == 64


def test_metadata_has_required_fields(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    result = create_bundle(vocab, bundle_dir)

    metadata = json.loads((bundle_dir / "metadata.json").read_text(encoding="utf-8"))
    for field in ["version_hash", "vocab_size", "model_type", "byte_fallback", "kinds", "created_at"]:
        assert field in metadata, f"Missing metadata field: {field}"
    assert metadata["version_hash"] == result.version_hash
    assert metadata["model_type"] == "bpe"
    assert metadata["byte_fallback"] is True
    assert metadata["kinds"]["BYTE"] == 256


def test_checksums_verify(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    create_bundle(vocab, bundle_dir)

    checksum_content = (bundle_dir / "checksum.txt").read_text(encoding="utf-8")
    for line in checksum_content.strip().splitlines():
        expected_hash, filename = line.split("  ", 1)
        assert compute_sha256(bundle_dir / filename) == expected_hash


def test_load_bundle_roundtrip(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    config = EncoderConfig(algorithm="greedy", match_control_symbols=False)
    create_bundle(vocab, bundle_dir, config)

    loaded_vocab, loaded_config = load_bundle(bundle_dir)
    assert list(loaded_vocab) == list(vocab)
    assert loaded_config == config

    text = "hello world <td>ƻ"
    assert Encoder(loaded_vocab, loaded_config).encode(text) == Encoder(vocab, config).encode(text)


def test_version_hash_determinism(vocab: Vocabulary, tmp_path: Path) -> None:
    result_a = create_bundle(vocab, tmp_path / "a")
    result_b = create_bundle(vocab, tmp_path / "b")
    assert result_a.version_hash == result_b.version_hash


def test_version_hash_tracks_config(vocab: Vocabulary, tmp_path: Path) -> None:
    result_a = create_bundle(vocab, tmp_path / "a")
    result_b = create_bundle(vocab, tmp_path / "b", EncoderConfig(algorithm="greedy"))
    assert result_a.version_hash != result_b.version_hash


def test_tampered_vocab_is_refused(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    create_bundle(vocab, bundle_dir)

    vocab_path = bundle_dir / "vocab.tsv"
    vocab_path.write_text(vocab_path.read_text(encoding="utf-8") + "extra\t0.0\tNORMAL\n", encoding="utf-8")

    with pytest.raises(ArtifactIntegrityError, match="mismatch"):
        load_bundle(bundle_dir)


def test_missing_checksum_file(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    create_bundle(vocab, bundle_dir)
    (bundle_dir / "checksum.txt").unlink()

    with pytest.raises(ArtifactIntegrityError, match="checksum.txt"):
        verify_bundle(bundle_dir)


def test_unlisted_content_file(vocab: Vocabulary, tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundle"
    create_bundle(vocab, bundle_dir)
    checksum_path = bundle_dir / "checksum.txt"
    kept = [line for line in checksum_path.read_text(encoding="utf-8").splitlines() if "vocab.tsv" not in line]
    checksum_path.write_text("\n".join(kept) + "\n", encoding="utf-8")

    with pytest.raises(ArtifactIntegrityError, match="vocab.tsv"):
        verify_bundle(bundle_dir)


def test_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ArtifactIntegrityError):
        load_bundle(tmp_path / "nowhere")


@pytest.mark.parametrize("filename", ["../outside.txt", "extra.txt", "sub/vocab.tsv"])
def test_foreign_checksum_entry_is_refused(vocab: Vocabulary, tmp_path: Path, filename: str) -> None:
    bundle_dir = tmp_path / "bundle"
    create_bundle(vocab, bundle_dir)
    outside = tmp_path / "outside.txt"
    outside.write_text("not part of the bundle\n", encoding="utf-8")

    checksum_path = bundle_dir / "checksum.txt"
    with open(checksum_path, "a", encoding="utf-8") as f:
        f.write(f"{compute_sha256(outside)}  {filename}\n")

    with pytest.raises(ArtifactIntegrityError, match="Unexpected file"):
        verify_bundle(bundle_dir)
