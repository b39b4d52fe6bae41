# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The vocabulary table — single source of truth for piece IDs, scores and kinds.

A Vocabulary is built once from the ordered list of pieces a model loader
produces and is read-only from then on. Every encoder, matcher and segmenter
holds a reference to the same instance; none of them mutate it, so concurrent
encode() calls need no locking.

Construction is where all the model invariants get checked. Anything that
slips past here would surface later as a wrong token ID, which is much
harder to debug than a load failure.
"""

import enum
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Union

from tessera.bytefallback.core import decode_hex_token
from tessera.exceptions import InvalidModelError, OutOfRangeError
from tessera.logging.logger import get_logger

MODEL_TYPES = ("bpe", "unigram")


class PieceKind(enum.IntEnum):
    """Piece types, numbered as in the SentencePiece model proto."""

    NORMAL = 1
    UNKNOWN = 2
    CONTROL = 3
    USER_DEFINED = 4
    UNUSED = 5
    BYTE = 6

    @classmethod
    def parse(cls, value: Union["PieceKind", int, str]) -> "PieceKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidModelError(f"Unknown piece kind: {value!r}") from None
        try:
            return cls(value)
        except ValueError:
            raise InvalidModelError(f"Unknown piece kind: {value!r}") from None


# Kinds that share one text namespace: each text may appear at most once among them.
_EXCLUSIVE_KINDS = frozenset({PieceKind.NORMAL, PieceKind.USER_DEFINED, PieceKind.CONTROL})
# Kinds segmentation is allowed to emit.
_SEGMENTABLE_KINDS = frozenset({PieceKind.NORMAL, PieceKind.USER_DEFINED})


@dataclass(frozen=True)
class VocabEntry:
    """One learned piece. Immutable once loaded."""

    id: int
    text: str
    score: float
    kind: PieceKind


class Vocabulary:
    """
    Immutable table of VocabEntry, indexed by ID and by text.

    Args:
        entries: Pieces in ID order; entry i must carry id i.
        model_type: Training algorithm of the model, 'bpe' or 'unigram'.
            It picks the default segmentation algorithm.

    Raises:
        InvalidModelError: IDs aren't dense from 0, two exclusive-kind pieces
            share text, a BYTE piece isn't a <0xHH> token, or the model type
            is unknown.
    """

    def __init__(self, entries: Sequence[VocabEntry], model_type: str = "bpe") -> None:
        if model_type not in MODEL_TYPES:
            raise InvalidModelError(
                f"Unknown model type {model_type!r}, expected one of {', '.join(MODEL_TYPES)}"
            )

        self._entries: tuple[VocabEntry, ...] = tuple(entries)
        self._model_type = model_type
        self._by_text: dict[str, VocabEntry] = {}
        self._bytes: dict[int, VocabEntry] = {}
        self._unknown: Optional[VocabEntry] = None

        for position, entry in enumerate(self._entries):
            if entry.id != position:
                raise InvalidModelError(
                    f"Piece IDs must be contiguous from 0: position {position} has id {entry.id}"
                )

            if entry.kind in _EXCLUSIVE_KINDS:
                existing = self._by_text.get(entry.text)
                if existing is not None:
                    raise InvalidModelError(
                        f"Duplicate piece {entry.text!r}: ids {existing.id} and {entry.id}"
                    )
                self._by_text[entry.text] = entry
            elif entry.kind is PieceKind.BYTE:
                value = decode_hex_token(entry.text)
                if value is None:
                    raise InvalidModelError(
                        f"Byte piece {entry.id} has malformed text {entry.text!r}"
                    )
                if value in self._bytes:
                    raise InvalidModelError(
                        f"Byte {entry.text} defined twice: ids {self._bytes[value].id} and {entry.id}"
                    )
                self._bytes[value] = entry
            elif entry.kind is PieceKind.UNKNOWN and self._unknown is None:
                self._unknown = entry

        scores = [e.score for e in self._entries if e.kind is PieceKind.NORMAL]
        self._min_score = min(scores) if scores else 0.0

        logger = get_logger("tessera.vocab")
        logger.debug(
            "Vocabulary constructed",
            extra={
                "size": len(self._entries),
                "model_type": model_type,
                "byte_fallback": self.has_byte_fallback,
                "kinds": self.kind_counts(),
            },
        )

    @classmethod
    def from_pieces(
        cls,
        pieces: Iterable[tuple[str, float, Union[PieceKind, int, str]]],
        model_type: str = "bpe",
    ) -> "Vocabulary":
        """Build a vocabulary from (text, score, kind) triples, assigning IDs by position."""
        entries = [
            VocabEntry(id=index, text=text, score=float(score), kind=PieceKind.parse(kind))
            for index, (text, score, kind) in enumerate(pieces)
        ]
        return cls(entries, model_type=model_type)

    @property
    def model_type(self) -> str:
        return self._model_type

    @property
    def unknown(self) -> Optional[VocabEntry]:
        return self._unknown

    @property
    def has_byte_fallback(self) -> bool:
        return bool(self._bytes)

    @property
    def min_score(self) -> float:
        """Lowest NORMAL piece score; 0.0 when there are none."""
        return self._min_score

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VocabEntry]:
        return iter(self._entries)

    def lookup(self, text: str) -> Optional[VocabEntry]:
        """Exact lookup among NORMAL, USER_DEFINED and CONTROL pieces."""
        return self._by_text.get(text)

    def segmentable(self, text: str) -> Optional[VocabEntry]:
        """Like lookup(), restricted to the kinds segmentation may emit."""
        entry = self._by_text.get(text)
        if entry is None or entry.kind not in _SEGMENTABLE_KINDS:
            return None
        return entry

    def by_id(self, piece_id: int) -> VocabEntry:
        if not 0 <= piece_id < len(self._entries):
            raise OutOfRangeError(
                f"Piece id {piece_id} outside vocabulary of size {len(self._entries)}"
            )
        return self._entries[piece_id]

    def byte_entry(self, value: int) -> Optional[VocabEntry]:
        return self._bytes.get(value)

    def segmentable_pieces(self) -> Iterator[str]:
        for entry in self._entries:
            if entry.kind in _SEGMENTABLE_KINDS:
                yield entry.text

    def symbols(self, include_control: bool = True) -> Iterator[VocabEntry]:
        """
        Pieces that are matched ahead of segmentation: every USER_DEFINED
        piece, plus CONTROL pieces when include_control is set.
        """
        for entry in self._entries:
            if entry.kind is PieceKind.USER_DEFINED:
                yield entry
            elif include_control and entry.kind is PieceKind.CONTROL:
                yield entry

    def kind_counts(self) -> dict[str, int]:
        counts = Counter(entry.kind.name for entry in self._entries)
        return dict(sorted(counts.items()))
