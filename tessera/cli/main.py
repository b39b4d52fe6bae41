# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for Tessera.

Every operation is a subcommand of `tessera`. The global options
(--config, --log-level) are inherited by every subcommand through
argparse's parent parser mechanism; the vocabulary source options are
shared by the commands that need a vocabulary.

Usage:
    tessera encode --bundle data/vocab --text "hello world"
    tessera decode --tokenizer-json tokenizer.json --ids 17534,2134
    tessera probe --bundle data/vocab --text "<start_of_turn>"
    tessera info --bundle data/vocab
"""

import argparse
import sys

from tessera.cli.commands import handle_decode, handle_encode, handle_info, handle_probe
from tessera.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    return parent


def _build_vocab_parser() -> argparse.ArgumentParser:
    """Options selecting where the vocabulary comes from."""
    vocab_parent = argparse.ArgumentParser(add_help=False)
    source = vocab_parent.add_mutually_exclusive_group()
    source.add_argument(
        "--bundle",
        type=str,
        default=None,
        help="Path to a vocabulary bundle directory.",
    )
    source.add_argument(
        "--tokenizer-json",
        type=str,
        default=None,
        dest="tokenizer_json",
        help="Path to a HuggingFace tokenizer.json (Unigram or BPE).",
    )
    return vocab_parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    vocab_parent = _build_vocab_parser()

    encode_parser = subparsers.add_parser(
        "encode", parents=[parent, vocab_parent], help="Encode text into tokens."
    )
    encode_parser.add_argument("--text", type=str, default=None, help="Text to encode.")
    encode_parser.add_argument(
        "--input-file",
        type=str,
        default=None,
        dest="input_file",
        help="Encode the contents of this file instead of --text.",
    )
    encode_parser.set_defaults(func=handle_encode)

    decode_parser = subparsers.add_parser(
        "decode", parents=[parent, vocab_parent], help="Decode token IDs back into text."
    )
    decode_parser.add_argument(
        "--ids", type=str, default=None, dest="token_ids", help="Comma-separated token IDs."
    )
    decode_parser.set_defaults(func=handle_decode)

    probe_parser = subparsers.add_parser(
        "probe",
        parents=[parent, vocab_parent],
        help="Probe text for a special symbol and a <0xHH> byte token.",
    )
    probe_parser.add_argument("--text", type=str, default=None, help="Text to probe.")
    probe_parser.set_defaults(func=handle_probe)

    info_parser = subparsers.add_parser(
        "info", parents=[parent, vocab_parent], help="Display vocabulary information."
    )
    info_parser.set_defaults(func=handle_info)


def main() -> None:
    """
    Main CLI entrypoint, referenced by pyproject.toml's [project.scripts].

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="tessera",
        description="Tessera — deterministic SentencePiece-compatible subword encoder.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
