# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tessera — deterministic subword encoding against SentencePiece-style vocabularies.

Text goes through four stages on its way to (id, text) tokens:
  - normalizer   spaces become the whitespace marker
  - symbols      control/user-defined tags and whitespace runs, matched first
  - segmenter    BPE merges, Unigram Viterbi or greedy longest match
  - bytefallback <0xHH> pieces for anything the vocabulary can't cover

The Encoder in tessera.encoder.core strings them together.
"""

__version__ = "0.1.0"
