# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for Tessera tests.

The main fixture is a small vocabulary laid out like a Gemma-style
SentencePiece BPE model: control tokens first, then user-defined markup
tags and whitespace runs, then all 256 byte pieces, then scored normal
pieces. The merge scores are chosen so BPE results can be traced by hand
(see the comments on each group).
"""

import textwrap
from pathlib import Path

import pytest

from tessera.bytefallback.core import byte_token_text
from tessera.encoder.core import Encoder
from tessera.vocab.core import PieceKind, Vocabulary

MARKER = "▁"

CONTROL_PIECES = ["<pad>", "<eos>", "<bos>"]
USER_DEFINED_PIECES = [
    "<mask>",
    "<start_of_turn>",
    "<end_of_turn>",
    "<s>",
    "</s>",
    "<td>",
    "</td>",
    "<table>",
    "</table>",
    "<th>",
    "</th>",
    # Whitespace runs of 2, 3, 4 and 8 markers; 5-7 deliberately missing.
    MARKER * 2,
    MARKER * 3,
    MARKER * 4,
    MARKER * 8,
]
SINGLE_CHARS = [MARKER, "h", "i", "b", "y", "e", "o", "l", "w", "r", "d", "t",
                "<", ">", "p", "a", "\n", "1", "2", "3", "🤨"]
# Higher score merges first.
MERGED_PIECES = [
    ("hi", -1.0),
    (MARKER + "b", -2.0),
    ("ye", -3.0),
    ("bye", -4.0),
    (MARKER + "bye", -5.0),
    ("he", -6.0),
    ("ll", -7.0),
    ("llo", -8.0),
    ("hello", -9.0),
    (MARKER + "w", -10.0),
    ("or", -11.0),
    (MARKER + "wor", -12.0),
    ("ld", -13.0),
    (MARKER + "world", -14.0),
]

def build_pieces() -> list[tuple[str, float, PieceKind]]:
    pieces: list[tuple[str, float, PieceKind]] = []
    pieces.extend((text, 0.0, PieceKind.CONTROL) for text in CONTROL_PIECES)
    pieces.append(("<unk>", 0.0, PieceKind.UNKNOWN))
    pieces.extend((text, 0.0, PieceKind.USER_DEFINED) for text in USER_DEFINED_PIECES)
    pieces.extend((byte_token_text(value), 0.0, PieceKind.BYTE) for value in range(256))
    pieces.extend((text, -50.0, PieceKind.NORMAL) for text in SINGLE_CHARS)
    pieces.extend((text, score, PieceKind.NORMAL) for text, score in MERGED_PIECES)
    return pieces


@pytest.fixture(scope="session")
def vocab() -> Vocabulary:
    return Vocabulary.from_pieces(build_pieces(), model_type="bpe")


@pytest.fixture(scope="session")
def encoder(vocab: Vocabulary) -> Encoder:
    return Encoder(vocab)


@pytest.fixture(scope="session")
def unigram_vocab() -> Vocabulary:
    """
    A byte-fallback-free Unigram model where the three algorithms disagree
    on "abc": unigram picks a+bc (-6.5), greedy and BPE end at abc.
    """
    return Vocabulary.from_pieces(
        [
            ("<unk>", 0.0, "UNKNOWN"),
            (MARKER, -2.0, "NORMAL"),
            ("a", -3.0, "NORMAL"),
            ("b", -3.0, "NORMAL"),
            ("c", -3.0, "NORMAL"),
            ("ab", -4.0, "NORMAL"),
            ("bc", -3.5, "NORMAL"),
            ("abc", -10.0, "NORMAL"),
            ("x", -1.0, "NORMAL"),
            ("y", -1.0, "NORMAL"),
            ("xy", -2.0, "NORMAL"),
        ],
        model_type="unigram",
    )


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "tessera-test"
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "tessera-test"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
