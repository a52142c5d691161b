import random

import pytest

from zkqr.chunker import (
    Chunk,
    broadcast_schedule,
    checksum_of,
    count_chunks,
    parse_chunk,
    split,
)
from zkqr.errors import MalformedChunk, PayloadTooLarge


def test_split_sizes():
    chunks = split("a" * 1350, 500)
    assert [c.sequence_index for c in chunks] == [1, 2, 3]
    assert {c.total_chunks for c in chunks} == {3}
    assert [len(c.payload_slice) for c in chunks] == [500, 500, 350]
    assert "".join(c.payload_slice for c in chunks) == "a" * 1350


def test_split_exact_multiple_and_empty():
    assert len(split("b" * 1000, 500)) == 2
    empty = split("", 500)
    assert len(empty) == 1
    assert empty[0].payload_slice == ""
    assert empty[0].to_wire() == "1/1|00000000|"


def test_count_chunks_requires_positive_size():
    assert count_chunks(0, 10) == 1
    with pytest.raises(ValueError):
        count_chunks(10, 0)


def test_split_enforces_chunk_limit():
    with pytest.raises(PayloadTooLarge):
        split("x" * 10, 3, max_chunks=3)
    assert len(split("x" * 9, 3, max_chunks=3)) == 3


def test_wire_roundtrip():
    chunk = split("hello|world", 100)[0]
    wire = chunk.to_wire()
    assert wire == f"1/1|{checksum_of('hello|world')}|hello|world"
    parsed = parse_chunk(wire + "\r\n")
    assert parsed == chunk
    assert parsed.is_intact()


def test_parse_leaves_checksum_checks_to_the_caller():
    parsed = parse_chunk("1/2|00000000|abc")
    assert isinstance(parsed, Chunk)
    assert not parsed.is_intact()


@pytest.mark.parametrize(
    "frame",
    [
        "garbage",
        "1/1|deadbeef",
        "0/1|deadbeef|x",
        "1/0|deadbeef|x",
        "3/2|deadbeef|x",
        "01/2|deadbeef|x",
        "a/2|deadbeef|x",
        "1/2|DEADBEEF|x",
        "1/2|deadbee|x",
    ],
)
def test_parse_rejects_malformed(frame):
    with pytest.raises(MalformedChunk):
        parse_chunk(frame)


def test_broadcast_schedule_order():
    order = list(broadcast_schedule(4, rng=random.Random(7)))
    assert order[:4] == [1, 2, 3, 4]
    assert order[4:8] == [4, 3, 2, 1]
    assert sorted(order[8:]) == [1, 2, 3, 4]
    assert len(list(broadcast_schedule(4, cycles=3, rng=random.Random(7)))) == 36
    with pytest.raises(ValueError):
        list(broadcast_schedule(0))


@pytest.mark.parametrize("index, total", [(0, 2), (3, 2), (1, 0), (-1, 4)])
def test_chunk_rejects_index_outside_total(index, total):
    with pytest.raises(MalformedChunk):
        Chunk(index, total, checksum_of("x"), "x")
