"""Incremental decoder for the assistant's SSE frame stream.

Network chunks can split anywhere: inside a JSON payload, between the two
bytes of a CRLF, or in the middle of a multi-byte UTF-8 sequence. The
decoder buffers until a record's blank-line terminator has fully arrived,
so the frames produced never depend on where the chunks were cut.
"""

import codecs
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator

from wishlist.core.exceptions import FrameDecodeError
from wishlist.services.assistant.frames import Frame, parse_frame

logger = logging.getLogger(__name__)

_LINE_END = re.compile(r"\r\n|\r|\n")


class FrameDecoder:
    """Pull-based SSE parser: push chunks in with feed(), get whole frames out."""

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._data_lines: list[str] = []
        self._pending_error: FrameDecodeError | None = None

    def feed(self, chunk: bytes | str) -> list[Frame]:
        """Add a chunk and return every frame it completes.

        When a malformed record follows good ones in the same chunk, the good
        frames are returned first and the error is raised by the next call.

        Raises:
            FrameDecodeError: On invalid UTF-8 or a malformed frame payload.
        """
        self._raise_pending()
        if isinstance(chunk, bytes):
            try:
                chunk = self._utf8.decode(chunk)
            except UnicodeDecodeError as e:
                raise FrameDecodeError(f"Invalid UTF-8 in stream: {e}") from e
        self._buffer += chunk
        return self._drain(final=False)

    def close(self) -> list[Frame]:
        """Flush at end of stream. An unterminated trailing record is discarded."""
        self._raise_pending()
        try:
            self._buffer += self._utf8.decode(b"", final=True)
        except UnicodeDecodeError:
            logger.debug("Stream ended inside a UTF-8 sequence")
        frames = self._drain(final=True)

        if self._buffer or self._data_lines:
            logger.debug(
                "Discarding incomplete trailing frame (%d buffered chars)",
                len(self._buffer) + sum(len(line) for line in self._data_lines),
            )
        self._reset()
        return frames

    def _reset(self) -> None:
        self._utf8.reset()
        self._buffer = ""
        self._data_lines = []

    def _raise_pending(self) -> None:
        if self._pending_error is not None:
            error, self._pending_error = self._pending_error, None
            self._reset()
            raise error

    def _drain(self, *, final: bool) -> list[Frame]:
        frames: list[Frame] = []
        while True:
            match = _LINE_END.search(self._buffer)
            if match is None:
                break
            # A lone CR at the end may be the first half of a CRLF
            if match.group() == "\r" and match.end() == len(self._buffer) and not final:
                break
            line = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end() :]
            try:
                frame = self._process_line(line)
            except FrameDecodeError as e:
                if not frames:
                    raise
                self._pending_error = e
                break
            if frame is not None:
                frames.append(frame)
        return frames

    def _process_line(self, line: str) -> Frame | None:
        if not line:
            if not self._data_lines:
                return None
            payload = "\n".join(self._data_lines)
            self._data_lines = []
            return parse_frame(payload)

        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data_lines.append(value)
        # event, id and retry fields carry nothing for this protocol
        return None


async def aiter_frames(chunks: AsyncIterable[bytes]) -> AsyncIterator[Frame]:
    """Decode an async byte stream into frames."""
    decoder = FrameDecoder()
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
    for frame in decoder.close():
        yield frame
