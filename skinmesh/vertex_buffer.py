"""
Deduplicating interleaved vertex buffer.

Vertices are float32 records of a fixed size. Identical records are stored
once: a cheap hash over the float bit patterns (ignoring the lowest 8 bits of
each) selects candidates, then the components are compared exactly.
"""

import struct

NEGATIVE_ZERO_BITS = 0x80000000


def float_bits(values):
    """Raw 32-bit patterns of a float32 record."""
    return struct.unpack(f'<{len(values)}I', struct.pack(f'<{len(values)}f', *values))


def vertex_hash(words):
    """Hash over 32-bit float patterns.

    Every word contributes its top 24 bits, so noise in the lowest mantissa
    bits still lands in a nearby (usually the same) bucket. -0.0 hashes as
    +0.0 so value-equal records share a bucket.
    """
    result = 0
    for w in words:
        if w == NEGATIVE_ZERO_BITS:
            w = 0
        result += (w & 0xFFFFFF00) >> 8
    return result & 0xFFFFFFFF


def records_equal(lhs_words, lhs_values, rhs_words, rhs_values):
    for i in range(len(lhs_words)):
        if lhs_words[i] != rhs_words[i] and lhs_values[i] != rhs_values[i]:
            return False
    return True


class VertexBuffer:
    def __init__(self, vertex_size):
        if vertex_size <= 0:
            raise ValueError(f"vertex size must be > 0, got {vertex_size}")
        self.vertex_size = vertex_size
        self._record_fmt = f'<{vertex_size}f'
        self._word_fmt = f'<{vertex_size}I'
        self._data = bytearray()
        self._words = []     # index -> tuple of bit patterns
        self._values = []    # index -> tuple of float values
        self._buckets = {}   # hash -> [index, ...]

    def _pack(self, record):
        if isinstance(record, (bytes, bytearray, memoryview)):
            raw = bytes(record)
            if len(raw) != 4 * self.vertex_size:
                raise ValueError(f"vertex record is {len(raw)} bytes, expected {4 * self.vertex_size}")
            return raw
        if len(record) != self.vertex_size:
            raise ValueError(f"vertex record has {len(record)} floats, expected {self.vertex_size}")
        return struct.pack(self._record_fmt, *record)

    def add(self, record):
        """Return the index of `record`, appending it if not yet present."""
        raw = self._pack(record)
        words = struct.unpack(self._word_fmt, raw)
        values = struct.unpack(self._record_fmt, raw)
        h = vertex_hash(words)
        bucket = self._buckets.get(h)
        if bucket is not None:
            for i in bucket:
                if records_equal(self._words[i], self._values[i], words, values):
                    return i
        else:
            bucket = self._buckets[h] = []
        index = len(self._words)
        bucket.append(index)
        self._words.append(words)
        self._values.append(values)
        self._data += raw
        return index

    intern = add

    def vertex_count(self):
        return len(self._words)

    def __len__(self):
        return len(self._words)

    def vertex(self, index):
        return list(self._values[index])

    def vertex_bits(self, index):
        return self._words[index]

    @property
    def vertices(self):
        """Flat list of all floats, vertex after vertex."""
        out = []
        for values in self._values:
            out.extend(values)
        return out

    @property
    def words(self):
        """Flat list of all 32-bit patterns, vertex after vertex."""
        out = []
        for words in self._words:
            out.extend(words)
        return out

    def to_bytes(self):
        return bytes(self._data)

    def __repr__(self):
        return f"VertexBuffer(size={self.vertex_size}, vertices={len(self._words)})"
