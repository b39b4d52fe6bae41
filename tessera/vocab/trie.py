# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Character trie for prefix queries against a fixed set of pieces.

Both the special-symbol matcher (longest registered symbol at a position)
and the segmenter (every piece starting at a position) need the same query,
so it lives here once. Nodes are plain dicts keyed by character; the None
key marks the end of a stored piece.
"""

from typing import Iterable, Iterator

_TERMINAL = None


class PrefixTrie:
    """Immutable-after-build set of strings supporting prefix walks."""

    def __init__(self, pieces: Iterable[str] = ()) -> None:
        self._root: dict = {}
        self._size = 0
        for piece in pieces:
            self._add(piece)

    def _add(self, piece: str) -> None:
        if not piece:
            return
        node = self._root
        for char in piece:
            node = node.setdefault(char, {})
        if _TERMINAL not in node:
            node[_TERMINAL] = True
            self._size += 1

    def __len__(self) -> int:
        return self._size

    def __contains__(self, piece: str) -> bool:
        node = self._root
        for char in piece:
            node = node.get(char)
            if node is None:
                return False
        return _TERMINAL in node

    def prefix_lengths(self, text: str, start: int = 0) -> Iterator[int]:
        """
        Yield the length (in characters) of every stored piece that is a
        prefix of text[start:], shortest first.
        """
        node = self._root
        for position in range(start, len(text)):
            node = node.get(text[position])
            if node is None:
                return
            if _TERMINAL in node:
                yield position - start + 1

    def longest_prefix(self, text: str, start: int = 0) -> int:
        """Length of the longest stored piece starting at text[start], or 0."""
        longest = 0
        for length in self.prefix_lengths(text, start):
            longest = length
        return longest
