"""Bit-granular access to bech32 payloads.

Invoice fields sit on 5-bit (and odder) boundaries: a 35-bit timestamp,
10-bit lengths, 264-bit keys.  Everything above this module reads through
a `BitReader` and converts the returned spans with the helpers below.
"""
from .exceptions import TruncatedPayloadError
from typing import Iterable
import bitstring  # type: ignore


# Bech32 spits out array of 5-bit values.  Shim here.
def u5_to_bitarray(arr: Iterable[int]) -> bitstring.Bits:
    ret = bitstring.BitArray()
    for a in arr:
        ret += bitstring.pack("uint:5", a)
    return bitstring.Bits(ret)


def bitarray_to_u5(barr) -> bytes:
    assert barr.len % 5 == 0
    ret = []
    s = bitstring.ConstBitStream(barr)
    while s.pos != s.len:
        ret.append(s.read(5).uint)
    return bytes(ret)


def to_integer(span: bitstring.Bits) -> int:
    """Big-endian unsigned value of a span of any width (0 if empty)."""
    if span.len == 0:
        return 0
    return span.uint


def to_bytes(span: bitstring.Bits) -> bytes:
    """Right-pad with zero bits to a byte boundary."""
    return span.tobytes()


# Discard trailing bits, convert to bytes.
def trim_to_bytes(span: bitstring.Bits) -> bytes:
    # Adds a byte if necessary.
    b = span.tobytes()
    if span.len % 8 != 0:
        return b[:-1]
    return b


class BitReader(object):
    """Cursor over an immutable bit string.

    `read()` either advances by exactly the requested number of bits or
    raises `TruncatedPayloadError` leaving the cursor untouched.
    """
    def __init__(self, bits):
        self.bits = bitstring.Bits(bits)
        self._stream = bitstring.ConstBitStream(self.bits)

    @classmethod
    def from_u5(cls, symbols: Iterable[int]) -> 'BitReader':
        return cls(u5_to_bitarray(symbols))

    @property
    def pos(self) -> int:
        return self._stream.pos

    @property
    def len(self) -> int:
        return self.bits.len

    @property
    def remaining(self) -> int:
        return self.len - self.pos

    def read(self, n: int) -> bitstring.Bits:
        if n < 0 or n > self.remaining:
            raise TruncatedPayloadError(n, self.remaining)
        return bitstring.Bits(self._stream.read(n))

    def read_uint(self, n: int) -> int:
        return to_integer(self.read(n))

    def __len__(self):
        return self.len

    def __repr__(self):
        return "BitReader(pos={}, len={})".format(self.pos, self.len)
