"""Chunked media upload.

A media upload is a fixed sequence of frames: an optional prologue (for
example a start command and a length announcement), one frame per chunk of
the pixel buffer, and an epilogue that terminates the transfer. The frame
layout of a chunk belongs to the protocol family and is supplied as
``build_chunk``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class Chunk:
    """One slice of a media buffer.

    ``padding`` is the number of zero bytes the frame appends after
    ``data``. Only the final chunk of an aligned upload carries padding.
    """

    index: int
    data: bytes
    padding: int = 0


def chunk_count(length: int, chunk_size: int) -> int:
    """Number of chunks needed for ``length`` bytes."""
    return (length + chunk_size - 1) // chunk_size


def split_chunks(data: bytes, chunk_size: int, align: int = 1) -> list[Chunk]:
    """Split ``data`` into indexed chunks.

    Args:
        data: The pixel buffer.
        chunk_size: Bytes of data per frame.
        align: The final chunk is padded so its length is a multiple of this.

    Returns:
        Chunks in transmission order.
    """
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    if align <= 0:
        raise ValueError(f"Alignment must be positive, got {align}")

    chunks = [
        Chunk(index=i, data=bytes(data[start:start + chunk_size]))
        for i, start in enumerate(range(0, len(data), chunk_size))
    ]
    if chunks:
        last = chunks[-1]
        padding = (align - len(last.data) % align) % align
        if padding:
            chunks[-1] = Chunk(index=last.index, data=last.data, padding=padding)
    return chunks


def upload(
    send: Callable[[bytes], object],
    data: bytes,
    chunk_size: int,
    build_chunk: Callable[[Chunk], bytes],
    prologue: Iterable[bytes] = (),
    epilogue: Iterable[bytes] = (),
    align: int = 1,
    progress: ProgressCallback | None = None,
) -> int:
    """Send a media buffer as a framed chunk sequence.

    ``progress`` is called with the chunk index before each chunk is sent,
    and once more with the chunk count after the epilogue, so a caller sees
    exactly ``chunk_count + 1`` calls for a completed upload.

    Args:
        send: Sends one frame; raises on failure.
        data: The pixel buffer.
        chunk_size: Bytes of data per chunk frame.
        build_chunk: Builds the frame for one chunk.
        prologue: Frames sent before the first chunk.
        epilogue: Frames sent after the last chunk.
        align: Alignment of the final chunk.
        progress: Optional progress callback.

    Returns:
        The number of chunks sent.
    """
    chunks = split_chunks(data, chunk_size, align)
    logger.debug("Uploading %d bytes in %d chunks", len(data), len(chunks))

    for frame in prologue:
        send(frame)

    for chunk in chunks:
        if progress is not None:
            progress(chunk.index)
        send(build_chunk(chunk))

    for frame in epilogue:
        send(frame)

    if progress is not None:
        progress(len(chunks))
    return len(chunks)
