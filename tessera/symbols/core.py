# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Special-symbol matcher.

Some pieces must never be split by segmentation or merged with the text
around them: markup and control tags like <start_of_turn> or <td>, and
runs of the whitespace marker that the vocabulary stores as single pieces
(two markers, three markers, ... up to some cap). The encoder probes every
position with this matcher first and only hands text to the segmenter
where nothing matches.

Matching is longest-prefix over the registered symbols. For a whitespace
run that picks the longest registered run that fits inside the actual run;
for a tag it picks the exact tag, and an unterminated or unregistered tag
like "<start_of_turn!" simply finds nothing.
"""

from tessera.bytefallback.core import utf8_bytes
from tessera.vocab.core import VocabEntry, Vocabulary
from tessera.vocab.trie import PrefixTrie


class SymbolMatcher:
    """
    Longest-match recognizer for USER_DEFINED (and optionally CONTROL) pieces.

    Args:
        vocab: The shared vocabulary.
        include_control: Also recognize CONTROL pieces such as <pad> in input
            text. Reference SentencePiece leaves them to segmentation.
    """

    def __init__(self, vocab: Vocabulary, include_control: bool = True) -> None:
        self._vocab = vocab
        self._symbols: dict[str, VocabEntry] = {
            entry.text: entry for entry in vocab.symbols(include_control=include_control)
        }
        self._trie = PrefixTrie(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def match_span(self, text: str, offset: int = 0) -> int:
        """Length in characters of the symbol starting at offset, or 0."""
        return self._trie.longest_prefix(text, offset)

    def entry_for(self, symbol: str) -> VocabEntry:
        return self._symbols[symbol]

    def match(self, text: str, offset: int = 0) -> tuple[int, bool]:
        """
        Probe text at a character offset.

        Returns (byte_length, found). On a match, byte_length is the UTF-8
        length of the matched symbol. On a non-match it is the length of the
        single codepoint at offset, so a caller can always advance; at the
        end of input it is 0.
        """
        span = self.match_span(text, offset)
        if span:
            return len(utf8_bytes(text[offset:offset + span])), True
        if offset >= len(text):
            return 0, False
        return len(utf8_bytes(text[offset])), False


def probe_special_symbol(vocab: Vocabulary, text: str, include_control: bool = True) -> tuple[int, bool]:
    """One-shot diagnostic probe at the start of already-normalized text."""
    return SymbolMatcher(vocab, include_control=include_control).match(text)
