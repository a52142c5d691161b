import random

import pytest

from zkqr.chunker import Chunk, checksum_of, split
from zkqr.errors import ConflictingTransmission, CorruptChunk, IncompleteAfterTimeout, MalformedChunk
from zkqr.reassembler import ChunkSet, Reassembler, ReassemblyStatus


TEXT = "".join(chr(ord("A") + i % 26) for i in range(1350))


def test_any_order_with_duplicates():
    chunks = split(TEXT, 500)
    frames = [c.to_wire() for c in chunks] * 2
    random.Random(3).shuffle(frames)
    reassembler = Reassembler()
    result = None
    for frame in frames:
        state = reassembler.ingest_and_maybe_finalize(frame)
        if state.status is ReassemblyStatus.COMPLETE:
            result = state.text
            break
    assert result == TEXT
    assert reassembler.open_transmissions == []


def test_progress_and_missing():
    chunks = split(TEXT, 500)
    reassembler = Reassembler()
    state = reassembler.ingest(chunks[1])
    assert state.status is ReassemblyStatus.COLLECTING
    assert state.missing == (1, 3)
    assert state.progress == pytest.approx(1 / 3)
    state = reassembler.ingest(chunks[1])
    assert state.received == 1
    assert reassembler.ingest(chunks[0]).missing == (3,)
    final = reassembler.ingest(chunks[2])
    assert final.status is ReassemblyStatus.COMPLETE
    assert final.text == TEXT


def test_corrupt_chunk_is_rejected():
    chunks = split(TEXT, 500)
    reassembler = Reassembler()
    reassembler.ingest(chunks[0])
    bad = chunks[1]
    tampered = Chunk(bad.sequence_index, bad.total_chunks, bad.checksum, "Z" + bad.payload_slice[1:])
    with pytest.raises(CorruptChunk) as excinfo:
        reassembler.ingest(tampered.to_wire())
    assert excinfo.value.index == 2
    state = reassembler.ingest(chunks[2])
    assert state.status is ReassemblyStatus.COLLECTING
    assert state.missing == (2,)


def test_conflicting_payload():
    chunk_set = ChunkSet(2)
    first = split("aaaa", 2)[0]
    chunk_set.ingest(first)
    other = split("bbbb", 2)[0]
    with pytest.raises(ConflictingTransmission) as excinfo:
        chunk_set.ingest(other)
    assert excinfo.value.index == 1


def test_separate_transmissions_by_total():
    two = split("x" * 20, 10)
    three = split("y" * 30, 10)
    reassembler = Reassembler()
    reassembler.ingest(two[0])
    reassembler.ingest(three[0])
    reassembler.ingest(three[1])
    assert reassembler.open_transmissions == [2, 3]
    assert reassembler.ingest(two[1]).text == "x" * 20
    assert reassembler.ingest(three[2]).text == "y" * 30
    assert reassembler.open_transmissions == []


def test_abandon_reports_missing():
    chunks = split(TEXT, 500)
    reassembler = Reassembler()
    reassembler.ingest(chunks[0])
    chunk_set = reassembler.chunk_set(3)
    error = reassembler.abandon(3)
    assert isinstance(error, IncompleteAfterTimeout)
    assert error.missing == (2, 3)
    assert chunk_set.status is ReassemblyStatus.ABANDONED
    with pytest.raises(IncompleteAfterTimeout):
        chunk_set.ingest(chunks[1])
    with pytest.raises(KeyError):
        reassembler.abandon(3)


def test_chunk_set_finalize_requires_completion():
    chunk_set = ChunkSet(2)
    assert chunk_set.status is ReassemblyStatus.EMPTY
    with pytest.raises(IncompleteAfterTimeout):
        chunk_set.finalize()
    for chunk in split("abcd", 2):
        chunk_set.ingest(chunk)
    assert chunk_set.finalize() == "abcd"
    with pytest.raises(ValueError):
        chunk_set.abandon()


def test_frame_limits():
    with pytest.raises(MalformedChunk):
        Reassembler(max_frame_len=16).ingest(split("q" * 20, 20)[0].to_wire())
    with pytest.raises(MalformedChunk):
        Reassembler(max_chunks=2).ingest(split("q" * 30, 10)[0].to_wire())
    with pytest.raises(MalformedChunk):
        Reassembler().ingest("not a frame")


def test_out_of_range_index_never_completes_a_set():
    chunk_set = ChunkSet(2)
    chunk_set.ingest(Chunk(1, 2, checksum_of("ab"), "ab"))
    with pytest.raises(MalformedChunk):
        chunk_set.ingest(Chunk(5, 2, checksum_of("cd"), "cd"))
    assert chunk_set.status is ReassemblyStatus.COLLECTING
    assert chunk_set.missing() == [2]

    reassembler = Reassembler()
    reassembler.ingest(Chunk(1, 2, checksum_of("ab"), "ab"))
    with pytest.raises(MalformedChunk):
        reassembler.ingest(Chunk(0, 2, checksum_of("zz"), "zz"))
    assert reassembler.chunk_set(2).missing() == [2]


def test_late_duplicates_after_completion():
    chunks = split("abcd", 2)
    reassembler = Reassembler()
    reassembler.ingest(chunks[0])
    assert reassembler.ingest(chunks[1]).text == "abcd"

    late = reassembler.ingest(chunks[0].to_wire())
    assert late.status is ReassemblyStatus.COMPLETE
    assert late.text == "abcd"
    assert reassembler.open_transmissions == []


def test_new_transmission_after_completion():
    reassembler = Reassembler()
    for chunk in split("abcd", 2):
        reassembler.ingest(chunk)
    following = split("wxyz", 2)
    state = reassembler.ingest(following[1])
    assert state.status is ReassemblyStatus.COLLECTING
    assert reassembler.open_transmissions == [2]
    assert reassembler.ingest(following[0]).text == "wxyz"


@pytest.mark.parametrize("text", ["", "q", "abcdefghijklmn", "0123456789abcdefghijklmnopqrstuvwxyz!"])
@pytest.mark.parametrize("size", [1, 2, 7, "len", "len+1"])
def test_roundtrip_any_order_with_duplicates(text, size):
    if size == "len":
        size = max(1, len(text))
    elif size == "len+1":
        size = len(text) + 1
    frames = [chunk.to_wire() for chunk in split(text, size)]
    frames = frames + frames[::2]
    random.Random(len(text) * 31 + size).shuffle(frames)
    reassembler = Reassembler()
    results = [reassembler.ingest(frame) for frame in frames]
    completed = [state.text for state in results if state.status is ReassemblyStatus.COMPLETE]
    assert completed
    assert set(completed) == {text}
    assert reassembler.open_transmissions == []
