# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the tokenizer core.

Two families live here. Model/data inconsistencies (InvalidModelError,
UnencodableError, ...) propagate to whoever called into the core. Format
non-matches — a probe that finds no special symbol, a string that isn't a
hex byte token — are normal outcomes and are returned as values, so they
have no exception class at all.

Config failures have their own hierarchy in tessera.config.exceptions.
"""


class TesseraError(Exception):
    """Base for all tokenizer errors."""


class InvalidModelError(TesseraError):
    """
    Raised when a vocabulary violates a construction invariant: duplicate
    text among NORMAL/USER_DEFINED/CONTROL pieces, non-contiguous IDs,
    malformed byte pieces. Fatal at load time, never raised per encode call.
    """


class OutOfRangeError(TesseraError, IndexError):
    """Raised on a reverse lookup with an ID outside [0, vocab size)."""


class UnencodableError(TesseraError):
    """
    Raised by encode() when a codepoint has no vocabulary coverage and the
    model carries no byte-fallback pieces. Silently skipping the text would
    desynchronize downstream alignment, so we fail the call instead.
    """


class MissingByteFallbackError(TesseraError):
    """Raised when a byte token is requested from a model that lacks one."""


class ArtifactIntegrityError(TesseraError):
    """Raised when a vocabulary bundle is incomplete or fails checksum verification."""
