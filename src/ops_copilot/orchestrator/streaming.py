"""Chunking and server-sent-event encoding for streamed replies.

A stream is a sequence of StreamChunk values: content chunks in order,
optionally an error chunk, then exactly one end marker.
"""

import json
import re
from collections.abc import AsyncIterator

from pydantic import BaseModel

END_OF_STREAM = "[DONE]"

# Split before each non-space that follows whitespace: every chunk is one word
# plus its trailing whitespace, so "".join(chunks) == text.
_CHUNK_BOUNDARY = re.compile(r"(?<=\s)(?=\S)")


class StreamChunk(BaseModel):
    """One element of a streamed reply."""

    content: str | None = None
    error: str | None = None
    done: bool = False

    @classmethod
    def end(cls) -> "StreamChunk":
        """The end-of-stream marker."""
        return cls(done=True)


def split_into_chunks(text: str) -> list[str]:
    """Split text into word-sized chunks whose concatenation is ``text``.

    Example:
        >>> split_into_chunks("MRR is  120000.")
        ['MRR ', 'is  ', '120000.']
    """
    if not text:
        return []
    return _CHUNK_BOUNDARY.split(text)


def encode_sse(chunk: StreamChunk) -> str:
    """Encode one chunk as a ``data:`` line of a text/event-stream."""
    if chunk.done:
        return f"data: {END_OF_STREAM}\n\n"
    if chunk.error is not None:
        return f"data: {json.dumps({'error': chunk.error})}\n\n"
    return f"data: {json.dumps({'content': chunk.content or ''})}\n\n"


async def sse_events(chunks: AsyncIterator[StreamChunk]) -> AsyncIterator[str]:
    """Encode a chunk stream as server-sent events."""
    async for chunk in chunks:
        yield encode_sse(chunk)


def collect_text(chunks: list[StreamChunk]) -> str:
    """Concatenate the content of ``chunks`` (the inverse of chunking)."""
    return "".join(chunk.content or "" for chunk in chunks if not chunk.done)
