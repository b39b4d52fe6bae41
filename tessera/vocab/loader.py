# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Vocabulary loaders — the on-disk formats a Vocabulary can come from.

Two sources are supported:

  vocab.tsv        Tessera's own plain-text format, one piece per line in
                   ID order: "piece<TAB>score<TAB>KIND". Tabs, newlines,
                   carriage returns and backslashes inside a piece are
                   backslash-escaped, because real vocabularies do contain
                   a "\\n" piece. An optional first line
                   "#!tessera-vocab model_type=<type>" records the model type.

  tokenizer.json   A HuggingFace `tokenizers` Unigram or BPE model. Scores
                   come from the model for Unigram; for BPE a merged piece
                   scores -rank of its merge, so earlier merges win, and
                   pieces no merge produces score below every merge. The
                   dummy-prefix setting is read off the tokenizer's own
                   normalizer and pre-tokenizer.

Either way the result is a plain, fully validated Vocabulary; nothing here
is consulted again after loading.
"""

import json
import re
from pathlib import Path
from typing import Optional

from tokenizers import Tokenizer

from tessera.bytefallback.core import decode_hex_token
from tessera.config.schema import EncoderConfig, NormalizerConfig
from tessera.exceptions import InvalidModelError
from tessera.logging.logger import get_logger
from tessera.normalizer.core import WHITESPACE_MARKER
from tessera.utils.filesystem import atomic_write
from tessera.vocab.core import PieceKind, VocabEntry, Vocabulary

_HEADER_PREFIX = "#!tessera-vocab"
_HEADER = re.compile(r"#!tessera-vocab model_type=(\w+)")

_ESCAPES = {"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r"}


def _escape(piece: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in piece)


def _unescape(field: str, line_number: int) -> str:
    chars = iter(field)
    out: list[str] = []
    for char in chars:
        if char != "\\":
            out.append(char)
            continue
        escaped = next(chars, None)
        if escaped not in _UNESCAPES:
            raise InvalidModelError(f"Line {line_number}: invalid escape sequence in {field!r}")
        out.append(_UNESCAPES[escaped])
    return "".join(out)


def format_vocab(vocab: Vocabulary) -> str:
    """Serialize a vocabulary to the TSV format, header included."""
    lines = [f"{_HEADER_PREFIX} model_type={vocab.model_type}"]
    for entry in vocab:
        lines.append(f"{_escape(entry.text)}\t{entry.score!r}\t{entry.kind.name}")
    return "\n".join(lines) + "\n"


def parse_vocab(content: str, model_type: Optional[str] = None) -> Vocabulary:
    """
    Parse TSV vocabulary content.

    Args:
        content: File content.
        model_type: Used when the content has no header line; a header wins
            over this argument. Defaults to 'bpe' when neither is given.

    Raises:
        InvalidModelError: Malformed lines, bad escapes, unknown kinds, or
            any Vocabulary construction invariant.
    """
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    start = 0
    if lines and lines[0].startswith(_HEADER_PREFIX):
        header = _HEADER.fullmatch(lines[0])
        if header is None:
            raise InvalidModelError(f"Malformed vocabulary header: {lines[0]!r}")
        model_type = header.group(1)
        start = 1

    entries: list[VocabEntry] = []
    for line_number, line in enumerate(lines[start:], start=start + 1):
        fields = line.split("\t")
        if len(fields) != 3:
            raise InvalidModelError(
                f"Line {line_number}: expected 3 tab-separated fields, got {len(fields)}"
            )
        raw_piece, raw_score, raw_kind = fields
        try:
            score = float(raw_score)
        except ValueError:
            raise InvalidModelError(f"Line {line_number}: invalid score {raw_score!r}") from None
        entries.append(
            VocabEntry(
                id=len(entries),
                text=_unescape(raw_piece, line_number),
                score=score,
                kind=PieceKind.parse(raw_kind),
            )
        )

    return Vocabulary(entries, model_type=model_type or "bpe")


def read_vocab_file(path: Path, model_type: Optional[str] = None) -> Vocabulary:
    """
    Load a TSV vocabulary file.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        InvalidModelError: If the content is malformed.
    """
    # Bytes, not read_text(): universal newlines would rewrite pieces.
    content = path.read_bytes().decode("utf-8")
    vocab = parse_vocab(content, model_type=model_type)

    logger = get_logger("tessera.vocab.loader")
    logger.info(
        "Vocabulary loaded",
        extra={"path": str(path), "size": len(vocab), "model_type": vocab.model_type},
    )
    return vocab


def write_vocab_file(vocab: Vocabulary, output_path: Path) -> None:
    """Write the TSV format atomically."""
    atomic_write(output_path, format_vocab(vocab))


def _merge_ranks(merges: list) -> dict[str, int]:  # type: ignore[type-arg]
    """
    Rank of the first merge producing each piece. Older tokenizer.json files
    store a merge as "left right", newer ones as ["left", "right"].
    """
    ranks: dict[str, int] = {}
    for rank, merge in enumerate(merges):
        if isinstance(merge, str):
            left, sep, right = merge.partition(" ")
            if not sep:
                raise InvalidModelError(f"Malformed BPE merge at rank {rank}: {merge!r}")
        else:
            left, right = merge
        ranks.setdefault(left + right, rank)
    return ranks


def _components(section: Optional[dict], list_key: str) -> list[dict]:  # type: ignore[type-arg]
    if not section:
        return []
    if section.get("type") == "Sequence":
        found: list[dict] = []  # type: ignore[type-arg]
        for item in section.get(list_key) or []:
            found.extend(_components(item, list_key))
        return found
    return [section]


def _adds_dummy_prefix(tok_json: dict) -> bool:  # type: ignore[type-arg]
    for step in _components(tok_json.get("normalizer"), "normalizers"):
        if step.get("type") == "Prepend" and step.get("prepend") == WHITESPACE_MARKER:
            return True
    for step in _components(tok_json.get("pre_tokenizer"), "pretokenizers"):
        if step.get("type") != "Metaspace":
            continue
        if "prepend_scheme" in step:
            return step["prepend_scheme"] in ("always", "first")
        return bool(step.get("add_prefix_space", False))
    return False


def encoder_config_from_tokenizer(tokenizer: Tokenizer) -> EncoderConfig:
    """
    Encoder settings matching a tokenizer's own pipeline.

    Only the dummy prefix is carried over: a `Prepend("▁")` normalizer (the
    Llama layout) or a prepending `Metaspace` pre-tokenizer turns it on.
    """
    tok_json = json.loads(tokenizer.to_str())
    normalizer = NormalizerConfig(add_dummy_prefix=_adds_dummy_prefix(tok_json))
    return EncoderConfig(normalizer=normalizer)


def vocabulary_from_tokenizer(tokenizer: Tokenizer) -> Vocabulary:
    """
    Adapt a HuggingFace tokenizer with a Unigram or BPE model.

    Added tokens keep their IDs; special ones become CONTROL pieces and the
    rest USER_DEFINED. The model's unk piece becomes UNKNOWN, and <0xHH>
    pieces become BYTE when the model has byte fallback enabled.

    Raises:
        InvalidModelError: Unsupported model type or IDs with gaps.
    """
    tok_json = json.loads(tokenizer.to_str())
    model = tok_json.get("model") or {}
    model_kind = model.get("type")
    byte_fallback = bool(model.get("byte_fallback", False))

    pieces: dict[int, tuple[str, float]] = {}
    unk_id: Optional[int] = None

    if model_kind == "Unigram":
        model_type = "unigram"
        for piece_id, (piece, score) in enumerate(model.get("vocab") or []):
            pieces[piece_id] = (piece, float(score))
        unk_id = model.get("unk_id")
    elif model_kind == "BPE":
        model_type = "bpe"
        raw_vocab: dict[str, int] = model.get("vocab") or {}
        merges = model.get("merges") or []
        ranks = _merge_ranks(merges)
        for piece, piece_id in raw_vocab.items():
            rank = ranks.get(piece)
            if rank is None:
                # Base symbols sort below every merge, in ID order among themselves.
                score = -float(len(merges) + 1 + piece_id)
            else:
                score = -float(rank)
            pieces[piece_id] = (piece, score)
        unk_token = model.get("unk_token")
        if unk_token is not None:
            unk_id = raw_vocab.get(unk_token)
    else:
        raise InvalidModelError(
            f"Unsupported tokenizer model type {model_kind!r}; expected Unigram or BPE"
        )

    added = {item["id"]: item for item in tok_json.get("added_tokens") or []}
    size = max([len(pieces), *(piece_id + 1 for piece_id in added)])

    entries: list[VocabEntry] = []
    for piece_id in range(size):
        token = added.get(piece_id)
        if piece_id in pieces:
            text, score = pieces[piece_id]
        elif token is not None:
            text, score = token["content"], 0.0
        else:
            raise InvalidModelError(f"Tokenizer vocabulary has no piece with id {piece_id}")

        if token is not None:
            kind = PieceKind.CONTROL if token.get("special") else PieceKind.USER_DEFINED
        elif piece_id == unk_id:
            kind = PieceKind.UNKNOWN
        elif byte_fallback and decode_hex_token(text) is not None:
            kind = PieceKind.BYTE
        else:
            kind = PieceKind.NORMAL

        entries.append(VocabEntry(id=piece_id, text=text, score=score, kind=kind))

    return Vocabulary(entries, model_type=model_type)


def load_tokenizer_json(path: Path) -> tuple[Vocabulary, EncoderConfig]:
    """Load a tokenizer.json through `tokenizers` and adapt it, settings included."""
    if not path.is_file():
        raise FileNotFoundError(f"Tokenizer file not found: {path}")

    tokenizer = Tokenizer.from_file(str(path))
    vocab = vocabulary_from_tokenizer(tokenizer)
    config = encoder_config_from_tokenizer(tokenizer)

    logger = get_logger("tessera.vocab.loader")
    logger.info(
        "Tokenizer vocabulary adapted",
        extra={
            "path": str(path),
            "size": len(vocab),
            "model_type": vocab.model_type,
            "add_dummy_prefix": config.normalizer.add_dummy_prefix,
        },
    )
    return vocab, config
