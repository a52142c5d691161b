"""Splitting encoded payloads into addressed, checksummed frames."""

from __future__ import annotations

import random
import re
import zlib
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import MalformedChunk, PayloadTooLarge

DELIMITER = "|"
DEFAULT_CHUNK_PAYLOAD_LEN = 750
MAX_CHUNKS = 500
MAX_FRAME_LEN = 2048

_HEADER_RE = re.compile(r"^([1-9][0-9]*)/([1-9][0-9]*)$")
_CHECKSUM_RE = re.compile(r"^[0-9a-f]{8}$")


def checksum_of(payload: str) -> str:
    return f"{zlib.crc32(payload.encode('utf-8')) & 0xFFFFFFFF:08x}"


@dataclass(frozen=True, slots=True)
class Chunk:
    sequence_index: int
    total_chunks: int
    checksum: str
    payload_slice: str

    def __post_init__(self) -> None:
        if self.total_chunks < 1:
            raise MalformedChunk(f"Chunk total {self.total_chunks} must be positive")
        if not (1 <= self.sequence_index <= self.total_chunks):
            raise MalformedChunk(f"Chunk index {self.sequence_index} outside 1..{self.total_chunks}")

    def is_intact(self) -> bool:
        return checksum_of(self.payload_slice) == self.checksum

    def to_wire(self) -> str:
        return f"{self.sequence_index}/{self.total_chunks}{DELIMITER}{self.checksum}{DELIMITER}{self.payload_slice}"


def parse_chunk(frame: str) -> Chunk:
    """Parse ``"<index>/<total>|<crc32 hex>|<payload>"``; checksums are not checked here."""
    parts = frame.rstrip("\r\n").split(DELIMITER, 2)
    if len(parts) != 3:
        raise MalformedChunk(f"Expected 3 '|'-separated fields, got {len(parts)}")
    header, checksum, payload = parts
    match = _HEADER_RE.match(header)
    if match is None:
        raise MalformedChunk(f"Bad chunk header {header!r}")
    index, total = int(match.group(1)), int(match.group(2))
    if _CHECKSUM_RE.match(checksum) is None:
        raise MalformedChunk(f"Bad checksum field {checksum!r}")
    return Chunk(sequence_index=index, total_chunks=total, checksum=checksum, payload_slice=payload)


def count_chunks(text_len: int, max_chunk_payload_len: int) -> int:
    if max_chunk_payload_len < 1:
        raise ValueError("max_chunk_payload_len must be at least 1")
    return max(1, -(-text_len // max_chunk_payload_len))


def iter_chunks(text: str, max_chunk_payload_len: int = DEFAULT_CHUNK_PAYLOAD_LEN) -> Iterator[Chunk]:
    total = count_chunks(len(text), max_chunk_payload_len)
    for i in range(total):
        piece = text[i * max_chunk_payload_len : (i + 1) * max_chunk_payload_len]
        yield Chunk(sequence_index=i + 1, total_chunks=total, checksum=checksum_of(piece), payload_slice=piece)


def split(
    text: str,
    max_chunk_payload_len: int = DEFAULT_CHUNK_PAYLOAD_LEN,
    *,
    max_chunks: Optional[int] = None,
) -> List[Chunk]:
    total = count_chunks(len(text), max_chunk_payload_len)
    if max_chunks is not None and total > max_chunks:
        raise PayloadTooLarge(
            f"{len(text)} characters need {total} chunks of {max_chunk_payload_len}, limit is {max_chunks}"
        )
    return list(iter_chunks(text, max_chunk_payload_len))


def broadcast_schedule(total_chunks: int, cycles: int = 1, rng: random.Random | None = None) -> Iterator[int]:
    """Yield 1-based indices: forward, reverse, then shuffled, once per cycle."""
    if total_chunks < 1:
        raise ValueError("total_chunks must be positive")
    rng = rng or random.Random()
    for _ in range(cycles):
        yield from range(1, total_chunks + 1)
        yield from range(total_chunks, 0, -1)
        shuffled = list(range(1, total_chunks + 1))
        rng.shuffle(shuffled)
        yield from shuffled
