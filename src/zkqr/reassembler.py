"""Order-independent reassembly of chunked transmissions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .chunker import MAX_CHUNKS, MAX_FRAME_LEN, Chunk, checksum_of, parse_chunk
from .errors import ConflictingTransmission, CorruptChunk, IncompleteAfterTimeout, MalformedChunk


class ReassemblyStatus(str, Enum):
    EMPTY = "empty"
    COLLECTING = "collecting"
    COMPLETE = "complete"
    ABANDONED = "abandoned"


class ChunkSet:
    """Chunks of a single transmission, identified by its ``total_chunks``.

    Single-writer: hosts sharing one across threads must serialize
    ``ingest``/``finalize``/``abandon`` themselves.
    """

    def __init__(self, total_chunks: int):
        if total_chunks < 1:
            raise ValueError("total_chunks must be positive")
        self.total_chunks = total_chunks
        self._slices: Dict[int, Tuple[str, str]] = {}
        self._abandoned = False
        self._text: Optional[str] = None

    @property
    def status(self) -> ReassemblyStatus:
        if self._abandoned:
            return ReassemblyStatus.ABANDONED
        if not self._slices:
            return ReassemblyStatus.EMPTY
        if all(i in self._slices for i in range(1, self.total_chunks + 1)):
            return ReassemblyStatus.COMPLETE
        return ReassemblyStatus.COLLECTING

    @property
    def received(self) -> int:
        return len(self._slices)

    def missing(self) -> List[int]:
        return [i for i in range(1, self.total_chunks + 1) if i not in self._slices]

    def ingest(self, chunk: Chunk) -> ReassemblyStatus:
        if chunk.total_chunks != self.total_chunks:
            raise ValueError(f"Chunk belongs to a {chunk.total_chunks}-chunk transmission, not {self.total_chunks}")
        if not (1 <= chunk.sequence_index <= self.total_chunks):
            raise MalformedChunk(f"Chunk index {chunk.sequence_index} outside 1..{self.total_chunks}")
        if self._abandoned:
            raise IncompleteAfterTimeout(self.total_chunks, self.missing())
        actual = checksum_of(chunk.payload_slice)
        if actual != chunk.checksum:
            raise CorruptChunk(chunk.sequence_index, chunk.checksum, actual)
        existing = self._slices.get(chunk.sequence_index)
        if existing is not None:
            if existing != (chunk.checksum, chunk.payload_slice):
                raise ConflictingTransmission(chunk.sequence_index, self.total_chunks)
            return self.status
        self._slices[chunk.sequence_index] = (chunk.checksum, chunk.payload_slice)
        return self.status

    def holds(self, chunk: Chunk) -> bool:
        return self._slices.get(chunk.sequence_index) == (chunk.checksum, chunk.payload_slice)

    def finalize(self) -> str:
        if self.status is not ReassemblyStatus.COMPLETE:
            raise IncompleteAfterTimeout(self.total_chunks, self.missing())
        if self._text is None:
            self._text = "".join(self._slices[i][1] for i in range(1, self.total_chunks + 1))
        return self._text

    def abandon(self) -> None:
        if self.status is ReassemblyStatus.COMPLETE:
            raise ValueError("A complete transmission cannot be abandoned")
        self._abandoned = True


@dataclass(frozen=True, slots=True)
class ReassemblyState:
    status: ReassemblyStatus
    total_chunks: int
    received: int
    missing: Tuple[int, ...]
    text: Optional[str] = None

    @property
    def progress(self) -> float:
        return self.received / self.total_chunks


class Reassembler:
    """Tracks every open transmission, one ``ChunkSet`` per ``total_chunks`` value.

    A chunk whose header was corrupted into a different (but well-formed)
    ``total_chunks`` opens a spurious set; the checksum only covers the
    payload. Such sets never complete on their own and are dropped with
    ``abandon``.

    The last finished set per ``total_chunks`` is kept: late re-reads of its
    frames report ``COMPLETE`` again without opening a new set, while a chunk
    that differs from it starts a fresh transmission.
    """

    def __init__(
        self,
        *,
        max_chunks: int = MAX_CHUNKS,
        max_frame_len: int = MAX_FRAME_LEN,
        logger: logging.Logger | None = None,
    ):
        self.max_chunks = max_chunks
        self.max_frame_len = max_frame_len
        self.log = logger or logging.getLogger(__name__)
        self._sets: Dict[int, ChunkSet] = {}
        self._completed: Dict[int, ChunkSet] = {}

    @property
    def open_transmissions(self) -> List[int]:
        return sorted(self._sets)

    def chunk_set(self, total_chunks: int) -> Optional[ChunkSet]:
        return self._sets.get(total_chunks)

    def _coerce(self, chunk: Union[Chunk, str]) -> Chunk:
        if isinstance(chunk, Chunk):
            parsed = chunk
        else:
            if len(chunk) > self.max_frame_len:
                raise MalformedChunk(f"Frame of {len(chunk)} characters exceeds {self.max_frame_len}")
            parsed = parse_chunk(chunk)
        if parsed.total_chunks > self.max_chunks:
            raise MalformedChunk(f"Transmission of {parsed.total_chunks} chunks exceeds limit {self.max_chunks}")
        return parsed

    def ingest_and_maybe_finalize(self, chunk: Union[Chunk, str]) -> ReassemblyState:
        parsed = self._coerce(chunk)
        actual = checksum_of(parsed.payload_slice)
        if actual != parsed.checksum:
            self.log.warning("corrupt chunk %d/%d (declared %s, computed %s)", parsed.sequence_index, parsed.total_chunks, parsed.checksum, actual)
            raise CorruptChunk(parsed.sequence_index, parsed.checksum, actual)
        finished = self._completed.get(parsed.total_chunks)
        if finished is not None:
            if finished.holds(parsed):
                self.log.debug("late duplicate of finished chunk %d/%d", parsed.sequence_index, parsed.total_chunks)
                return ReassemblyState(
                    ReassemblyStatus.COMPLETE, parsed.total_chunks, finished.received, (), finished.finalize()
                )
            del self._completed[parsed.total_chunks]
        chunk_set = self._sets.get(parsed.total_chunks)
        if chunk_set is None:
            chunk_set = ChunkSet(parsed.total_chunks)
            self._sets[parsed.total_chunks] = chunk_set
            self.log.debug("new transmission of %d chunks", parsed.total_chunks)
        try:
            status = chunk_set.ingest(parsed)
        except ConflictingTransmission:
            self.log.warning("conflicting payload for chunk %d/%d", parsed.sequence_index, parsed.total_chunks)
            raise
        if status is ReassemblyStatus.COMPLETE:
            text = chunk_set.finalize()
            del self._sets[parsed.total_chunks]
            self._completed[parsed.total_chunks] = chunk_set
            self.log.info("reassembled %d chunks into %d characters", parsed.total_chunks, len(text))
            return ReassemblyState(status, parsed.total_chunks, chunk_set.received, (), text)
        self.log.debug("chunk %d/%d, %d received", parsed.sequence_index, parsed.total_chunks, chunk_set.received)
        return ReassemblyState(status, parsed.total_chunks, chunk_set.received, tuple(chunk_set.missing()))

    ingest = ingest_and_maybe_finalize

    def abandon(self, total_chunks: int) -> IncompleteAfterTimeout:
        """Drop an open transmission; returns the error describing what was missing."""
        chunk_set = self._sets.pop(total_chunks, None)
        if chunk_set is None:
            raise KeyError(f"No open transmission of {total_chunks} chunks")
        chunk_set.abandon()
        self.log.info("abandoned transmission of %d chunks with %d received", total_chunks, chunk_set.received)
        return IncompleteAfterTimeout(total_chunks, chunk_set.missing())
