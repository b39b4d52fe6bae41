# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the vocabulary table.

Construction is where model invariants are enforced, so most of these
check that a broken piece list is refused with InvalidModelError rather
than loading into a table that hands out wrong IDs later.
"""

import pytest

from tessera.exceptions import InvalidModelError, OutOfRangeError
from tessera.vocab.core import PieceKind, VocabEntry, Vocabulary


class TestLookup:
    def test_lookup_finds_exclusive_kinds(self, vocab: Vocabulary) -> None:
        assert vocab.lookup("hello").kind is PieceKind.NORMAL
        assert vocab.lookup("<td>").kind is PieceKind.USER_DEFINED
        assert vocab.lookup("<pad>").kind is PieceKind.CONTROL

    def test_lookup_absent_returns_none(self, vocab: Vocabulary) -> None:
        assert vocab.lookup("goodbye") is None

    def test_lookup_skips_byte_and_unknown_pieces(self, vocab: Vocabulary) -> None:
        assert vocab.lookup("<0x41>") is None
        assert vocab.lookup("<unk>") is None

    def test_segmentable_excludes_control(self, vocab: Vocabulary) -> None:
        assert vocab.segmentable("<pad>") is None
        assert vocab.segmentable("<td>") is not None
        assert vocab.segmentable("hi") is not None

    def test_by_id_matches_position(self, vocab: Vocabulary) -> None:
        for entry in vocab:
            assert vocab.by_id(entry.id) is entry

    @pytest.mark.parametrize("bad_id", [-1, 10_000])
    def test_by_id_out_of_range(self, vocab: Vocabulary, bad_id: int) -> None:
        with pytest.raises(OutOfRangeError):
            vocab.by_id(bad_id)

    def test_out_of_range_is_an_index_error(self, vocab: Vocabulary) -> None:
        with pytest.raises(IndexError):
            vocab.by_id(len(vocab))


class TestSpecialEntries:
    def test_unknown_entry(self, vocab: Vocabulary) -> None:
        assert vocab.unknown is not None
        assert vocab.unknown.text == "<unk>"

    def test_byte_entries_cover_every_byte(self, vocab: Vocabulary) -> None:
        assert vocab.has_byte_fallback
        for value in range(256):
            assert vocab.byte_entry(value).text == f"<0x{value:02X}>"

    def test_vocab_without_bytes(self, unigram_vocab: Vocabulary) -> None:
        assert not unigram_vocab.has_byte_fallback
        assert unigram_vocab.byte_entry(0x41) is None

    def test_symbols_with_and_without_control(self, vocab: Vocabulary) -> None:
        with_control = {entry.text for entry in vocab.symbols(include_control=True)}
        without_control = {entry.text for entry in vocab.symbols(include_control=False)}
        assert "<pad>" in with_control
        assert "<pad>" not in without_control
        assert "<mask>" in without_control

    def test_min_score_is_lowest_normal_score(self, unigram_vocab: Vocabulary) -> None:
        assert unigram_vocab.min_score == -10.0

    def test_kind_counts(self, vocab: Vocabulary) -> None:
        counts = vocab.kind_counts()
        assert counts["BYTE"] == 256
        assert counts["CONTROL"] == 3
        assert counts["UNKNOWN"] == 1


class TestConstruction:
    def test_from_pieces_assigns_ids_by_position(self) -> None:
        vocab = Vocabulary.from_pieces([("a", -1.0, "NORMAL"), ("b", -2, 1)])
        assert [entry.id for entry in vocab] == [0, 1]
        assert vocab.by_id(1) == VocabEntry(id=1, text="b", score=-2.0, kind=PieceKind.NORMAL)

    def test_non_contiguous_ids_rejected(self) -> None:
        entries = [
            VocabEntry(id=0, text="a", score=0.0, kind=PieceKind.NORMAL),
            VocabEntry(id=2, text="b", score=0.0, kind=PieceKind.NORMAL),
        ]
        with pytest.raises(InvalidModelError, match="contiguous"):
            Vocabulary(entries)

    def test_duplicate_normal_text_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="Duplicate"):
            Vocabulary.from_pieces([("a", 0.0, "NORMAL"), ("a", -1.0, "NORMAL")])

    def test_duplicate_across_exclusive_kinds_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="Duplicate"):
            Vocabulary.from_pieces([("<s>", 0.0, "CONTROL"), ("<s>", 0.0, "USER_DEFINED")])

    def test_byte_text_may_repeat_a_normal_piece(self) -> None:
        vocab = Vocabulary.from_pieces([("<0x41>", 0.0, "NORMAL"), ("<0x41>", 0.0, "BYTE")])
        assert vocab.lookup("<0x41>").id == 0
        assert vocab.byte_entry(0x41).id == 1

    def test_malformed_byte_piece_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="malformed"):
            Vocabulary.from_pieces([("<0xZZ>", 0.0, "BYTE")])

    def test_duplicate_byte_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="twice"):
            Vocabulary.from_pieces([("<0x0a>", 0.0, "BYTE"), ("<0x0A>", 0.0, "BYTE")])

    def test_unknown_model_type_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="model type"):
            Vocabulary.from_pieces([("a", 0.0, "NORMAL")], model_type="wordpiece")

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(InvalidModelError, match="kind"):
            Vocabulary.from_pieces([("a", 0.0, "SPECIAL")])

    def test_entries_are_immutable(self, vocab: Vocabulary) -> None:
        entry = vocab.by_id(0)
        with pytest.raises(AttributeError):
            entry.text = "changed"  # type: ignore[misc]
