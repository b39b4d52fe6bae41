# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the Tessera CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. This is the one layer that catches exceptions: everything below it
raises, and the handlers translate failures into structured log records
plus the matching exit code.

No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

from tessera.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from tessera.config.exceptions import ConfigError
from tessera.config.loader import load_config
from tessera.config.schema import EncoderConfig, TesseraConfig
from tessera.exceptions import ArtifactIntegrityError, InvalidModelError, UnencodableError
from tessera.logging.logger import get_logger
from tessera.vocab.core import Vocabulary


def _load_and_configure(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[TesseraConfig], logging.Logger]:
    """
    Shared setup: build the command logger and load --config if given.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller returns it immediately.
    """
    logger = get_logger(f"tessera.cli.{command_name}", log_level=args.log_level)

    if args.config is None:
        logger.debug("No config provided, running with defaults", extra={"command": command_name})
        return SUCCESS, None, logger

    try:
        config = load_config(Path(args.config))
    except ConfigError as err:
        logger.error("Configuration error", extra={"command": command_name, "error": str(err)})
        return CONFIG_ERROR, None, logger

    return SUCCESS, config, logger


def _load_vocab(
    args: argparse.Namespace,
    config: Optional[TesseraConfig],
) -> Optional[tuple[Vocabulary, EncoderConfig]]:
    """
    Resolve the vocabulary from --bundle or --tokenizer-json.

    An `encoder:` section in --config overrides the settings a bundle
    carries or a tokenizer.json implies. Returns None when no vocabulary source was given.
    """
    override = config.encoder if config is not None else None

    if getattr(args, "bundle", None):
        from tessera.artifacts.bundle import load_bundle

        vocab, bundle_config = load_bundle(Path(args.bundle))
        return vocab, override or bundle_config

    if getattr(args, "tokenizer_json", None):
        from tessera.vocab.loader import load_tokenizer_json

        vocab, tokenizer_config = load_tokenizer_json(Path(args.tokenizer_json))
        return vocab, override or tokenizer_config

    return None


def _run(args: argparse.Namespace, command_name: str, body) -> int:  # type: ignore[no-untyped-def]
    """Run a command body with the standard error-to-exit-code mapping."""
    exit_code, config, logger = _load_and_configure(args, command_name)
    if exit_code != SUCCESS:
        return exit_code

    try:
        return body(config, logger)
    except ConfigError as err:
        logger.error("Configuration error", extra={"command": command_name, "error": str(err)})
        return CONFIG_ERROR
    except (ArtifactIntegrityError, InvalidModelError, FileNotFoundError) as err:
        logger.error("Invalid vocabulary", extra={"command": command_name, "error": str(err)})
        return VALIDATION_ERROR
    except UnencodableError as err:
        logger.error("Text is not encodable", extra={"command": command_name, "error": str(err)})
        return RUNTIME_ERROR
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": command_name, "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR


def handle_encode(args: argparse.Namespace) -> int:
    """Encode --text (or --input-file) and log the resulting tokens."""

    def body(config: Optional[TesseraConfig], logger: logging.Logger) -> int:
        from tessera.encoder.core import Encoder

        text = args.text or ""
        if args.input_file:
            text = Path(args.input_file).read_bytes().decode("utf-8", errors="surrogateescape")
        if not text:
            logger.error("No text provided — use --text or --input-file")
            return USER_ERROR

        loaded = _load_vocab(args, config)
        if loaded is None:
            logger.error("No vocabulary provided — use --bundle or --tokenizer-json")
            return USER_ERROR
        vocab, encoder_config = loaded

        tokens = Encoder(vocab, encoder_config).encode(text)
        logger.info(
            "Encoding complete",
            extra={
                "input_length": len(text),
                "token_count": len(tokens),
                "ids": [token.id for token in tokens],
                "pieces": [token.text for token in tokens],
            },
        )
        return SUCCESS

    return _run(args, "encode", body)


def handle_decode(args: argparse.Namespace) -> int:
    """Decode a comma-separated list of IDs and log the text."""

    def body(config: Optional[TesseraConfig], logger: logging.Logger) -> int:
        from tessera.decoder.core import Decoder

        if not args.token_ids:
            logger.error("No token IDs provided — use --ids")
            return USER_ERROR
        try:
            ids = [int(part) for part in args.token_ids.split(",") if part.strip()]
        except ValueError:
            logger.error("Token IDs must be integers", extra={"ids": args.token_ids})
            return USER_ERROR

        loaded = _load_vocab(args, config)
        if loaded is None:
            logger.error("No vocabulary provided — use --bundle or --tokenizer-json")
            return USER_ERROR
        vocab, encoder_config = loaded

        text = Decoder(vocab, encoder_config.normalizer).decode_ids(ids)
        logger.info("Decoding complete", extra={"token_count": len(ids), "text": text})
        return SUCCESS

    return _run(args, "decode", body)


def handle_probe(args: argparse.Namespace) -> int:
    """
    Run the diagnostic probes on --text: the special-symbol match (needs a
    vocabulary) and the <0xHH> byte-token parse (doesn't).
    """

    def body(config: Optional[TesseraConfig], logger: logging.Logger) -> int:
        from tessera.bytefallback.core import decode_hex_token
        from tessera.symbols.core import SymbolMatcher

        if args.text is None:
            logger.error("No text provided — use --text")
            return USER_ERROR

        result: dict[str, object] = {"text": args.text, "hex_value": decode_hex_token(args.text)}

        loaded = _load_vocab(args, config)
        if loaded is not None:
            vocab, encoder_config = loaded
            matcher = SymbolMatcher(vocab, include_control=encoder_config.match_control_symbols)
            length, found = matcher.match(args.text)
            result["symbol_length"] = length
            result["symbol_found"] = found

        logger.info("Probe complete", extra=result)
        return SUCCESS

    return _run(args, "probe", body)


def handle_info(args: argparse.Namespace) -> int:
    """Log package info, plus vocabulary statistics when a vocabulary is given."""

    def body(config: Optional[TesseraConfig], logger: logging.Logger) -> int:
        from tessera import __version__
        from tessera.segmenter.core import ALGORITHMS

        info: dict[str, object] = {"version": __version__, "algorithms": list(ALGORITHMS)}
        if config is not None:
            info["project_name"] = config.global_config.project_name

        loaded = _load_vocab(args, config)
        if loaded is not None:
            vocab, encoder_config = loaded
            info.update(
                {
                    "vocab_size": len(vocab),
                    "model_type": vocab.model_type,
                    "algorithm": encoder_config.algorithm or vocab.model_type,
                    "byte_fallback": vocab.has_byte_fallback,
                    "kinds": vocab.kind_counts(),
                }
            )

        logger.info("Tessera info", extra=info)
        return SUCCESS

    return _run(args, "info", body)
