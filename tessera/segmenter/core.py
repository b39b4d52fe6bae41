# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Segmentation engine — splits a stretch of normalized text into pieces.

The encoder only hands us stretches with no special symbol in them, so
every algorithm here works on plain text and makes a single forward pass:

  bpe      SentencePiece BPE. Start from one symbol per codepoint and keep
           merging the adjacent pair whose concatenation is a piece with the
           highest score (leftmost pair on ties) until no pair merges.
  unigram  Viterbi over the stretch: the segmentation with the highest
           total score. Ties prefer the longer last piece, then the lower ID.
  greedy   Longest piece at each position, left to right.

Whatever unit an algorithm settles on that isn't itself a piece (only ever
a lone codepoint) is routed to byte fallback.
"""

import heapq
from typing import Optional

from tessera.bytefallback.core import ByteFallback
from tessera.config.schema import SEGMENTATION_ALGORITHMS as ALGORITHMS
from tessera.exceptions import UnencodableError
from tessera.vocab.core import VocabEntry, Vocabulary
from tessera.vocab.trie import PrefixTrie

# Penalty below the worst piece score for a codepoint no piece covers.
UNKNOWN_PENALTY = 10.0


class Segmenter:
    """
    Args:
        vocab: The shared vocabulary.
        algorithm: One of ALGORITHMS; None means the vocabulary's model type.
        unknown_fallback: Emit the UNKNOWN piece for uncovered codepoints when
            the model has no byte pieces, instead of raising UnencodableError.

    Raises:
        ValueError: Unknown algorithm name.
    """

    def __init__(
        self,
        vocab: Vocabulary,
        algorithm: Optional[str] = None,
        unknown_fallback: bool = False,
    ) -> None:
        algorithm = algorithm or vocab.model_type
        if algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unknown segmentation algorithm {algorithm!r}, expected one of {', '.join(ALGORITHMS)}"
            )
        self._vocab = vocab
        self._algorithm = algorithm
        self._unknown_fallback = unknown_fallback
        self._byte_fallback = ByteFallback(vocab)
        self._trie = PrefixTrie(vocab.segmentable_pieces())
        self._split = {
            "bpe": self._split_bpe,
            "unigram": self._split_unigram,
            "greedy": self._split_greedy,
        }[algorithm]

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def segment(self, text: str) -> list[VocabEntry]:
        """Segment one stretch into vocabulary entries, byte fallback included."""
        entries: list[VocabEntry] = []
        for unit in self._split(text):
            entry = self._vocab.segmentable(unit)
            if entry is not None:
                entries.append(entry)
                continue
            for char in unit:
                entries.extend(self._fallback(char))
        return entries

    def _fallback(self, char: str) -> list[VocabEntry]:
        if self._byte_fallback.available:
            return self._byte_fallback.encode_char(char)
        unknown = self._vocab.unknown
        if self._unknown_fallback and unknown is not None:
            return [unknown]
        raise UnencodableError(
            f"No vocabulary coverage for {char!r} and the model has no byte fallback"
        )

    def _split_greedy(self, text: str) -> list[str]:
        units: list[str] = []
        position = 0
        while position < len(text):
            length = self._trie.longest_prefix(text, position) or 1
            units.append(text[position:position + length])
            position += length
        return units

    def _split_bpe(self, text: str) -> list[str]:
        symbols: list[Optional[str]] = list(text)
        count = len(symbols)
        if count < 2:
            return list(text)

        prev = list(range(-1, count - 1))
        nxt = list(range(1, count + 1))
        nxt[-1] = -1

        # Heap entries: (-score, left, right, merged text). Stale entries are
        # detected on pop instead of being removed eagerly.
        heap: list[tuple[float, int, int, str]] = []

        def push(left: int) -> None:
            right = nxt[left]
            if left < 0 or right < 0:
                return
            merged = symbols[left] + symbols[right]
            entry = self._vocab.segmentable(merged)
            if entry is not None:
                heapq.heappush(heap, (-entry.score, left, right, merged))

        for index in range(count - 1):
            push(index)

        while heap:
            _, left, right, merged = heapq.heappop(heap)
            left_text, right_text = symbols[left], symbols[right]
            if left_text is None or right_text is None or nxt[left] != right:
                continue
            if left_text + right_text != merged:
                continue

            symbols[left] = merged
            symbols[right] = None
            nxt[left] = nxt[right]
            if nxt[right] >= 0:
                prev[nxt[right]] = left

            if prev[left] >= 0:
                push(prev[left])
            push(left)

        return [symbol for symbol in symbols if symbol is not None]

    def _split_unigram(self, text: str) -> list[str]:
        count = len(text)
        unknown_score = self._vocab.min_score - UNKNOWN_PENALTY
        # IDs for unknown edges sort after every real piece on ties.
        unknown_id = len(self._vocab)

        # best[i] = (score, last piece length, last piece id) of the best path to i.
        best: list[Optional[tuple[float, int, int]]] = [None] * (count + 1)
        best[0] = (0.0, 0, -1)

        for start in range(count):
            reached = best[start]
            if reached is None:
                continue
            base = reached[0]

            edges = []
            for length in self._trie.prefix_lengths(text, start):
                entry = self._vocab.segmentable(text[start:start + length])
                edges.append((length, entry.score, entry.id))
            if not edges or edges[0][0] != 1:
                edges.append((1, unknown_score, unknown_id))

            for length, score, piece_id in edges:
                end = start + length
                candidate = (base + score, length, piece_id)
                current = best[end]
                if current is None or _better(candidate, current):
                    best[end] = candidate

        units: list[str] = []
        end = count
        while end > 0:
            _, length, _ = best[end]
            units.append(text[end - length:end])
            end -= length
        units.reverse()
        return units


def _better(candidate: tuple[float, int, int], current: tuple[float, int, int]) -> bool:
    """Higher total score, then longer last piece, then lower piece id."""
    if candidate[0] != current[0]:
        return candidate[0] > current[0]
    if candidate[1] != current[1]:
        return candidate[1] > current[1]
    return candidate[2] < current[2]
