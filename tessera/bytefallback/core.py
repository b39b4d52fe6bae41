# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Byte fallback — the escape hatch that makes every input encodable.

SentencePiece models trained with byte fallback reserve 256 BYTE pieces
whose text is the hex escape of one byte: <0x00> through <0xFF>. When a
codepoint has no path through the vocabulary, the segmenter hands it here
and we emit one of those pieces per UTF-8 byte.

The hex codec is deliberately split from the lookup. decode_hex_token() is
a pure format check that never raises; it returns None for anything that
isn't exactly "<0x" + two hex digits + ">", which keeps "not a hex token"
distinct from a legitimate byte value of zero.
"""

import re
from typing import TYPE_CHECKING, Optional

from tessera.exceptions import MissingByteFallbackError, UnencodableError

if TYPE_CHECKING:
    from tessera.vocab.core import VocabEntry, Vocabulary

_HEX_TOKEN = re.compile(r"<0x([0-9A-Fa-f]{2})>")


def byte_token_text(value: int) -> str:
    """Canonical piece text for a byte value: uppercase hex, zero-padded."""
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Byte value out of range: {value}")
    return f"<0x{value:02X}>"


def decode_hex_token(text: str) -> Optional[int]:
    """
    Parse a byte token of the exact shape <0xHH> into its value.

    Returns None on any deviation: missing brackets, wrong prefix,
    wrong digit count, non-hex digits. Never raises.
    """
    match = _HEX_TOKEN.fullmatch(text)
    if match is None:
        return None
    return int(match.group(1), 16)


def utf8_bytes(text: str) -> bytes:
    """
    Raw bytes of a string as it would appear in the input stream.

    Input decoded with errors="surrogateescape" carries invalid bytes as
    lone surrogates U+DC80..U+DCFF; those map back to the original byte.
    Any other lone surrogate is written with surrogatepass so it still
    produces bytes instead of crashing.
    """
    try:
        return text.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return text.encode("utf-8", errors="surrogatepass")


def encode_byte_token(vocab: "Vocabulary", value: int) -> "VocabEntry":
    """
    Look up the BYTE piece for a single byte value.

    Raises:
        MissingByteFallbackError: The vocabulary has no byte piece for value
            (most often because it was trained without byte fallback).
    """
    entry = vocab.byte_entry(value)
    if entry is None:
        raise MissingByteFallbackError(
            f"Vocabulary has no byte-fallback piece for {byte_token_text(value)}"
        )
    return entry


class ByteFallback:
    """Turns an uncovered codepoint into one BYTE entry per encoded byte."""

    def __init__(self, vocab: "Vocabulary") -> None:
        self._vocab = vocab

    @property
    def available(self) -> bool:
        return self._vocab.has_byte_fallback

    def encode_char(self, char: str) -> list["VocabEntry"]:
        try:
            return [encode_byte_token(self._vocab, value) for value in utf8_bytes(char)]
        except MissingByteFallbackError as err:
            raise UnencodableError(
                f"No vocabulary coverage for {char!r} (U+{ord(char):04X}) "
                f"and the model has no byte fallback"
            ) from err
