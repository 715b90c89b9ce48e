import math

import pytest

from utils import TextChunk, batched, chunk_text, dedupe_last_wins


class TestChunkText:
    def test_short_input_is_single_chunk(self):
        assert chunk_text("hello", chunk_size=10, overlap=2) == [TextChunk("hello", 0)]

    def test_empty_input_is_single_empty_chunk(self):
        assert chunk_text("", chunk_size=10) == [TextChunk("", 0)]

    def test_quiz_configuration_offsets(self):
        text = "x" * 120_000
        chunks = chunk_text(text, chunk_size=60_000, overlap=1_000)
        assert [c.offset for c in chunks] == [0, 59_000, 118_000]
        assert [len(c.text) for c in chunks] == [60_000, 60_000, 2_000]

    @pytest.mark.parametrize("length,size,overlap", [
        (10, 10, 3), (11, 10, 3), (100, 10, 0), (101, 10, 0), (997, 50, 7), (5000, 64, 63),
    ])
    def test_chunk_count_and_coverage(self, length, size, overlap):
        text = "".join(chr(97 + i % 26) for i in range(length))
        chunks = chunk_text(text, size, overlap)

        assert len(chunks) == math.ceil((length - overlap) / (size - overlap))
        assert all(len(c.text) <= size for c in chunks)
        assert all(text[c.offset:c.offset + len(c.text)] == c.text for c in chunks)
        # no gaps between consecutive chunks, last chunk reaches the end
        for prev, nxt in zip(chunks, chunks[1:]):
            assert nxt.offset <= prev.offset + len(prev.text)
        assert chunks[-1].offset + len(chunks[-1].text) == length

    def test_no_overlap_splits_cleanly(self):
        chunks = chunk_text("abcdefghij", chunk_size=4)
        assert [c.text for c in chunks] == ["abcd", "efgh", "ij"]
        assert "".join(c.text for c in chunks) == "abcdefghij"

    @pytest.mark.parametrize("size,overlap", [(10, 10), (10, 11), (0, 0), (10, -1)])
    def test_rejects_invalid_configuration(self, size, overlap):
        with pytest.raises(ValueError):
            chunk_text("anything", size, overlap)


class TestDedupeLastWins:
    def test_later_item_replaces_earlier_in_first_position(self):
        items = [("a", 1), ("b", 2), ("a", 3)]
        assert dedupe_last_wins(items, key=lambda x: x[0]) == [("a", 3), ("b", 2)]

    def test_keeps_distinct_items_in_order(self):
        items = [("c", 1), ("a", 2), ("b", 3)]
        assert dedupe_last_wins(items, key=lambda x: x[0]) == items

    def test_empty(self):
        assert dedupe_last_wins([], key=lambda x: x) == []


class TestBatched:
    def test_yields_offsets_and_slices(self):
        assert list(batched(list(range(7)), 3)) == [(0, [0, 1, 2]), (3, [3, 4, 5]), (6, [6])]

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            list(batched([1], 0))
