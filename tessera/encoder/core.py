# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Encoding engine — turns text into (id, text) tokens.

The Encoder wires the pieces together:

  1. normalize the input (spaces become the whitespace marker)
  2. scan left to right; wherever a special symbol starts, the pending
     stretch of ordinary text goes to the segmenter and the symbol itself
     becomes exactly one token
  3. whatever ordinary text is left at the end goes to the segmenter too

Every call with the same vocabulary, config and text produces the same
tokens. No randomness, no shared mutable state, safe to call from
multiple threads against one Encoder.
"""

from typing import Iterable, NamedTuple, Optional, Union

from tessera.bytefallback.core import decode_hex_token
from tessera.config.schema import EncoderConfig
from tessera.normalizer.core import Normalizer
from tessera.segmenter.core import Segmenter
from tessera.symbols.core import SymbolMatcher
from tessera.vocab.core import VocabEntry, Vocabulary


class Token(NamedTuple):
    """One output token: the piece ID and its display text."""

    id: int
    text: str


def _as_text(text: Union[str, bytes]) -> str:
    # surrogateescape keeps invalid UTF-8 bytes around so byte fallback can emit them.
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="surrogateescape")
    return text


class Encoder:
    """
    Text-to-token encoder over a shared, read-only Vocabulary.

    Args:
        vocab: The loaded vocabulary.
        config: Encoder settings; defaults follow the vocabulary's model type
            with whitespace escaping only.
    """

    def __init__(self, vocab: Vocabulary, config: Optional[EncoderConfig] = None) -> None:
        self._vocab = vocab
        self._config = config or EncoderConfig()
        self._normalizer = Normalizer(self._config.normalizer)
        self._matcher = SymbolMatcher(vocab, include_control=self._config.match_control_symbols)
        self._segmenter = Segmenter(
            vocab,
            algorithm=self._config.algorithm,
            unknown_fallback=self._config.unknown_fallback,
        )

    @property
    def vocab(self) -> Vocabulary:
        return self._vocab

    @property
    def config(self) -> EncoderConfig:
        return self._config

    def encode(self, text: Union[str, bytes]) -> list[Token]:
        """
        Encode text into tokens, in input order.

        Raises:
            UnencodableError: Some codepoint has no coverage and the model has
                no byte fallback (and unknown_fallback is off).
        """
        return [Token(entry.id, entry.text) for entry in self._encode_entries(text)]

    def encode_ids(self, text: Union[str, bytes]) -> list[int]:
        return [entry.id for entry in self._encode_entries(text)]

    def encode_batch(self, texts: Iterable[Union[str, bytes]]) -> list[list[Token]]:
        return [self.encode(text) for text in texts]

    def symbol_match(self, text: str) -> tuple[int, bool]:
        """Special-symbol probe at the start of already-normalized text."""
        return self._matcher.match(text)

    @staticmethod
    def hex_value(text: str) -> Optional[int]:
        """Byte value of a <0xHH> token, or None if text isn't one."""
        return decode_hex_token(text)

    def _encode_entries(self, text: Union[str, bytes]) -> list[VocabEntry]:
        normalized = self._normalizer.normalize(_as_text(text))

        entries: list[VocabEntry] = []
        stretch_start = 0
        position = 0
        while position < len(normalized):
            span = self._matcher.match_span(normalized, position)
            if not span:
                position += 1
                continue

            if stretch_start < position:
                entries.extend(self._segmenter.segment(normalized[stretch_start:position]))
            entries.append(self._matcher.entry_for(normalized[position:position + span]))
            position += span
            stretch_start = position

        if stretch_start < len(normalized):
            entries.extend(self._segmenter.segment(normalized[stretch_start:]))

        return entries


def encode(vocab: Vocabulary, text: Union[str, bytes]) -> list[Token]:
    """One-off encode with default settings. Build an Encoder to reuse across calls."""
    return Encoder(vocab).encode(text)
