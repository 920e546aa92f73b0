"""Line-oriented content readers and writers for objects."""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from typing import IO, Any, Iterable, Optional

from googleapiclient.http import MediaUpload

from gcsnav.errors import InvalidStateError
from gcsnav.models import StorageObject

logger = logging.getLogger(__name__)

ENCODING: str = "utf-8"


class GcsStringReader:
    """Read the downloaded content of an object line by line."""

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream

    def read(self, read_count: int = 0) -> list[str]:
        """
        Read up to `read_count` lines, or every remaining line if it is <= 0.

        Line terminators are stripped. Bytes that are not valid UTF-8 become
        U+FFFD. An empty list means end of content.
        """
        lines: list[str] = []
        while read_count <= 0 or len(lines) < read_count:
            raw = self._stream.readline()
            if not raw:
                break
            lines.append(raw.decode(ENCODING, errors="replace").rstrip("\r\n"))
        return lines

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Seek the underlying byte stream."""
        return self._stream.seek(offset, whence)

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> GcsStringReader:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class GcsContentWriter:
    """
    Write lines into an upload that runs in the background.

    The upload consumes the other end of the pipe behind `stream`. Closing the
    writer ends the upload and waits for it; an upload failure is raised from
    `close()`, or from `write()` once the upload has stopped reading.
    """

    def __init__(self, stream: IO[bytes], future: Future[StorageObject]) -> None:
        self._stream = stream
        self._future = future
        self._closed = False
        self.result: Optional[StorageObject] = None

    def write(self, items: Iterable[Any]) -> list[Any]:
        """Write each item as one line. Returns the items written."""
        if self._closed:
            raise InvalidStateError("Content writer is closed")

        written = list(items)
        try:
            for item in written:
                self._stream.write(f"{item}\n".encode(ENCODING))
        except BrokenPipeError as exc:
            self._raise_upload_error(exc)
        return written

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        # Pipes cannot seek; this raises for anything but a no-op.
        return self._stream.seek(offset, whence)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.close()
        except BrokenPipeError as exc:
            self._raise_upload_error(exc)
        self.result = self._future.result()

    def __enter__(self) -> GcsContentWriter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _raise_upload_error(self, exc: BrokenPipeError) -> None:
        # The reader end only closes early when the upload has failed.
        upload_error = self._future.exception()
        if upload_error is not None:
            raise upload_error from exc
        raise exc


class PipeMediaUpload(MediaUpload):
    """
    Resumable upload media reading from a pipe of unknown length.

    Bytes already sent but not yet acknowledged by the server are kept in a
    buffer, since the server may ask for a chunk to be resent.
    """

    def __init__(self, fd: IO[bytes], mimetype: str, chunksize: int) -> None:
        super().__init__()
        self._fd = fd
        self._mimetype = mimetype
        self._chunksize = chunksize
        self._buffer = bytearray()
        self._buffer_start = 0
        self._eof = False

    def chunksize(self) -> int:
        return self._chunksize

    def mimetype(self) -> str:
        return self._mimetype

    def size(self) -> None:
        return None

    def resumable(self) -> bool:
        return True

    def has_stream(self) -> bool:
        return False

    def getbytes(self, begin: int, length: int) -> bytes:
        """
        Return `length` bytes starting at `begin`, fewer only at end of input.

        The upload treats a short chunk as the last one, so this blocks until
        the pipe yields enough bytes or is closed.
        """
        if begin < self._buffer_start:
            raise InvalidStateError(
                "Upload asked for bytes that were already released",
                details={"begin": begin, "buffer_start": self._buffer_start},
            )

        del self._buffer[: begin - self._buffer_start]
        self._buffer_start = begin

        while len(self._buffer) < length and not self._eof:
            data = self._fd.read(length - len(self._buffer))
            if not data:
                self._eof = True
                break
            self._buffer.extend(data)

        return bytes(self._buffer[:length])

    def to_json(self) -> str:
        raise NotImplementedError("Pipe uploads cannot be serialized")
