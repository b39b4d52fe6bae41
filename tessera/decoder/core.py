# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Decoding engine — turns token IDs back into text.

Mirror of the encoder. Runs of byte pieces are reassembled into raw bytes
before UTF-8 decoding, so a codepoint split across several <0xHH> tokens
comes back whole. Control pieces render as nothing and the unknown piece
renders as " ⁇ ", the same as SentencePiece.
"""

from typing import Iterable, Optional

from tessera.bytefallback.core import decode_hex_token
from tessera.config.schema import NormalizerConfig
from tessera.normalizer.core import Normalizer
from tessera.vocab.core import PieceKind, VocabEntry, Vocabulary

UNKNOWN_SURFACE = " ⁇ "


class Decoder:
    def __init__(self, vocab: Vocabulary, normalizer_config: Optional[NormalizerConfig] = None) -> None:
        self._vocab = vocab
        self._normalizer = Normalizer(normalizer_config)

    def decode_ids(self, ids: Iterable[int]) -> str:
        """
        Raises:
            OutOfRangeError: An ID isn't in the vocabulary.
        """
        return self._render(self._vocab.by_id(piece_id) for piece_id in ids)

    def decode_tokens(self, tokens: Iterable[tuple[int, str]]) -> str:
        return self.decode_ids(token[0] for token in tokens)

    def _render(self, entries: Iterable[VocabEntry]) -> str:
        parts: list[str] = []
        pending = bytearray()

        for entry in entries:
            if entry.kind is PieceKind.BYTE:
                pending.append(decode_hex_token(entry.text))
                continue
            if pending:
                parts.append(pending.decode("utf-8", errors="replace"))
                pending.clear()
            if entry.kind is PieceKind.CONTROL:
                continue
            if entry.kind is PieceKind.UNKNOWN:
                parts.append(UNKNOWN_SURFACE)
                continue
            parts.append(entry.text)

        if pending:
            parts.append(pending.decode("utf-8", errors="replace"))

        return self._normalizer.denormalize("".join(parts))


def decode(vocab: Vocabulary, ids: Iterable[int]) -> str:
    return Decoder(vocab).decode_ids(ids)
