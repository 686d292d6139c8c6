"""
Per-session chunk buffer for captured audio.

The browser records with a 1 s timeslice and pushes each encoded blob
(webm/opus or wav). Chunks are kept in arrival order until the hand-off timer
drains them into a single blob for processing.
"""

from typing import List


class ChunkBuffer:
    """
    Ordered collection of encoded audio chunks for one capture session.

    - Empty chunks are ignored (MediaRecorder emits size-0 blobs on pause).
    - drain() returns everything buffered as one blob and leaves the buffer empty,
      so the next batch starts clean.
    - len() is the number of chunks, which the capture session turns into seconds.
    """

    def __init__(self):
        self._chunks: List[bytes] = []
        self._size = 0
        self._total_appended = 0

    def append(self, chunk: bytes) -> None:
        if not chunk:
            return
        self._chunks.append(bytes(chunk))
        self._size += len(chunk)
        self._total_appended += len(chunk)

    def __len__(self) -> int:
        return len(self._chunks)

    def is_empty(self) -> bool:
        return not self._chunks

    def size_bytes(self) -> int:
        return self._size

    def drain(self) -> bytes:
        """Return all buffered chunks as one blob and clear the buffer."""
        blob = b"".join(self._chunks)
        self.clear()
        return blob

    def clear(self) -> None:
        self._chunks = []
        self._size = 0

    def total_appended_bytes(self) -> int:
        """Total bytes ever appended, across drains."""
        return self._total_appended
