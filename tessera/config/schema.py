# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for Tessera.

Every config section is a frozen pydantic model. Frozen means once you
create it, you cannot mutate it; an Encoder built from a config keeps
behaving the same way for its whole lifetime.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SEGMENTATION_ALGORITHMS = ("bpe", "unigram", "greedy")
UNICODE_FORMS = ("NFC", "NFKC", "NFD", "NFKD")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: project identity and observability."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="tessera", description="Human-readable project identifier"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class NormalizerConfig(BaseModel):
    """
    How raw text is rewritten before segmentation.

    Only whitespace escaping is on by default. The other switches mirror
    SentencePiece's normalizer settings and must match what the vocabulary was
    trained with; turning them on for a model that didn't use them changes
    token boundaries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    escape_whitespaces: bool = Field(
        default=True,
        description="Replace ' ' with the whitespace marker U+2581",
    )
    add_dummy_prefix: bool = Field(
        default=False,
        description="Prepend a space to non-empty input so the first word looks like every other",
    )
    remove_extra_whitespaces: bool = Field(
        default=False,
        description="Strip leading/trailing spaces and collapse inner runs to one",
    )
    unicode_form: Optional[str] = Field(
        default=None,
        description="Unicode normalization form applied first: NFC, NFKC, NFD, NFKD or None",
    )

    @field_validator("unicode_form")
    @classmethod
    def _check_unicode_form(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        upper = value.upper()
        if upper not in UNICODE_FORMS:
            raise ValueError(f"unicode_form must be one of {', '.join(UNICODE_FORMS)}")
        return upper


class EncoderConfig(BaseModel):
    """Everything an Encoder needs besides the vocabulary itself."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(default="1.0.0", description="Schema version")
    algorithm: Optional[str] = Field(
        default=None,
        description="Segmentation algorithm: 'bpe', 'unigram' or 'greedy'. "
        "None uses the vocabulary's own model type",
    )
    match_control_symbols: bool = Field(
        default=True,
        description="Recognize CONTROL pieces (<pad>, <bos>, ...) in input text, "
        "not just USER_DEFINED ones",
    )
    unknown_fallback: bool = Field(
        default=False,
        description="For models without byte pieces, emit <unk> for uncovered "
        "codepoints instead of failing the call",
    )
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)

    @field_validator("algorithm")
    @classmethod
    def _check_algorithm(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        lower = value.lower()
        if lower not in SEGMENTATION_ALGORITHMS:
            raise ValueError(
                f"algorithm must be one of {', '.join(SEGMENTATION_ALGORITHMS)}"
            )
        return lower


class TesseraConfig(BaseModel):
    """
    Top-level config container.

    A YAML file always carries `global:`; `encoder:` is optional and
    defaults are used when it's absent.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    encoder: Optional[EncoderConfig] = Field(default=None)
