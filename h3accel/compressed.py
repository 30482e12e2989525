"""
Compressed storage for ordered sequences of identifiers.

Successive identifiers along a path share most of their bits. They are
stored as wrapping uint64 deltas and compressed with zlib; decompression
happens lazily in chunks while iterating.
"""

import zlib
from typing import Iterable, Iterator

import numpy as np

# number of compressed bytes fed to the decompressor per step
DECOMPRESS_CHUNK_SIZE = 16 * 1024

_ITEM_SIZE = 8
_DTYPE = np.dtype("<u8")


class CompressedEdgeBlock:
    """
    Immutable, compressed, ordered sequence of 64-bit identifiers.

    The length is stored next to the payload, so ``len()`` never
    decompresses anything.
    """

    __slots__ = ("_payload", "_length")

    def __init__(self, payload: bytes, length: int):
        self._payload = payload
        self._length = length

    @classmethod
    def from_edges(cls, edges: Iterable[int]) -> "CompressedEdgeBlock":
        values = np.fromiter((int(e) for e in edges), dtype=np.uint64)
        deltas = np.diff(values, prepend=np.uint64(0)).astype(_DTYPE)
        return cls(zlib.compress(deltas.tobytes()), len(values))

    def __len__(self) -> int:
        return self._length

    @property
    def nbytes(self) -> int:
        """Size of the compressed payload."""
        return len(self._payload)

    def iter_uncompressed(self) -> "DecompressedEdges":
        """Restartable sequence of the identifiers, decompressed on demand."""
        return DecompressedEdges(self)

    def __iter__(self) -> Iterator[int]:
        return iter(self.iter_uncompressed())

    def __eq__(self, other) -> bool:
        if not isinstance(other, CompressedEdgeBlock):
            return NotImplemented
        return self._length == other._length and self._payload == other._payload

    def __hash__(self) -> int:
        return hash((self._length, self._payload))

    def __getstate__(self):
        return self._payload, self._length

    def __setstate__(self, state):
        self._payload, self._length = state

    def __repr__(self) -> str:
        return f"CompressedEdgeBlock(len={self._length}, nbytes={self.nbytes})"


class DecompressedEdges:
    """
    Iterable view of a ``CompressedEdgeBlock``.

    Every call to ``iter()`` starts a new pass at offset 0 of the payload;
    the block is never modified, so several passes can run independently.
    """

    __slots__ = ("_block",)

    def __init__(self, block: CompressedEdgeBlock):
        self._block = block

    def __len__(self) -> int:
        return len(self._block)

    def __iter__(self) -> Iterator[int]:
        payload = self._block._payload
        decompressor = zlib.decompressobj()
        previous = np.uint64(0)
        pending = b""
        offset = 0

        while offset < len(payload):
            data = pending + decompressor.decompress(payload[offset:offset + DECOMPRESS_CHUNK_SIZE])
            offset += DECOMPRESS_CHUNK_SIZE
            usable = len(data) - len(data) % _ITEM_SIZE
            pending = data[usable:]
            if usable:
                values = np.cumsum(np.frombuffer(data[:usable], dtype=_DTYPE), dtype=np.uint64) + previous
                previous = values[-1]
                yield from values.tolist()

        data = pending + decompressor.flush()
        if len(data) % _ITEM_SIZE:
            raise ValueError("Corrupt compressed block: truncated item")
        if data:
            values = np.cumsum(np.frombuffer(data, dtype=_DTYPE), dtype=np.uint64) + previous
            yield from values.tolist()

    def __repr__(self) -> str:
        return f"DecompressedEdges(len={len(self)})"
