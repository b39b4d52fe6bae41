# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Normalizer — rewrites input into the model's internal text representation.

This is byte-exact rewriting, not linguistic cleanup. By default the only
change is that every literal space becomes the whitespace marker U+2581,
which is how SentencePiece vocabularies spell word boundaries. The other
steps are opt-in and exist for models trained with them.
"""

import re
import unicodedata
from typing import Optional

from tessera.config.schema import NormalizerConfig

WHITESPACE_MARKER = "▁"

_SPACE_RUN = re.compile(" {2,}")


class Normalizer:
    """Applies the configured rewrite steps, in a fixed order."""

    def __init__(self, config: Optional[NormalizerConfig] = None) -> None:
        self._config = config or NormalizerConfig()

    @property
    def config(self) -> NormalizerConfig:
        return self._config

    def normalize(self, text: str) -> str:
        config = self._config

        if config.unicode_form is not None:
            text = unicodedata.normalize(config.unicode_form, text)

        if config.remove_extra_whitespaces:
            text = _SPACE_RUN.sub(" ", text.strip(" "))

        if config.add_dummy_prefix and text:
            text = " " + text

        if config.escape_whitespaces:
            text = text.replace(" ", WHITESPACE_MARKER)

        return text

    def denormalize(self, text: str) -> str:
        """Undo whitespace escaping and the dummy prefix. Unicode normalization is lossy and stays."""
        if self._config.escape_whitespaces:
            text = text.replace(WHITESPACE_MARKER, " ")
        if self._config.add_dummy_prefix and text.startswith(" "):
            text = text[1:]
        return text
