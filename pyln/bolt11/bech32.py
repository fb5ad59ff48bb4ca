# Copyright (c) 2017 Pieter Wuille
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.

"""Bech32 and bech32m framing for invoices and segwit fallback addresses.

Invoices are far longer than the 90 characters BIP-173 allows for
addresses, so decoding takes an explicit `max_length`.
"""
from enum import Enum
from typing import Optional, Sequence, Tuple


CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"


class Encoding(Enum):
    """Checksum constant of each variant (BIP-173 and BIP-350)."""
    BECH32 = 1
    BECH32M = 0x2bc830a3


def bech32_polymod(values: bytes) -> int:
    """Internal function that computes the Bech32 checksum."""
    generator = [0x3b6a57b2, 0x26508e6d, 0x1ea119fa, 0x3d4233dd, 0x2a1462b3]
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1ffffff) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> bytes:
    """Expand the HRP into values for checksum computation."""
    return bytes([ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp])


def bech32_verify_checksum(hrp: str, data: bytes) -> Optional[Encoding]:
    """Return the variant whose checksum matches, or None."""
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    for encoding in Encoding:
        if const == encoding.value:
            return encoding
    return None


def bech32_create_checksum(hrp: str, data: bytes,
                           encoding: Encoding = Encoding.BECH32) -> bytes:
    """Compute the checksum values given HRP and data."""
    values = bech32_hrp_expand(hrp) + data
    polymod = bech32_polymod(values + bytes([0, 0, 0, 0, 0, 0])) ^ encoding.value
    return bytes([(polymod >> 5 * (5 - i)) & 31 for i in range(6)])


def bech32_encode(hrp: str, data: Sequence[int],
                  encoding: Encoding = Encoding.BECH32) -> str:
    """Compute a Bech32 string given HRP and data values."""
    data = bytes(data)
    combined = data + bech32_create_checksum(hrp, data, encoding)
    return hrp + '1' + ''.join([CHARSET[d] for d in combined])


def bech32_decode(bech: str, max_length: int = 90,
                  encoding: Encoding = Encoding.BECH32) -> Tuple[str, bytes]:
    """Validate a Bech32 string, and determine HRP and data.

    Raises ValueError if the string is malformed, too long, or its
    checksum does not match `encoding`.
    """
    if len(bech) > max_length:
        raise ValueError("Bech32 string of length {} exceeds maximum of {}".format(
            len(bech), max_length))

    if ((any(ord(x) < 33 or ord(x) > 126 for x in bech)) or (bech.lower() != bech and bech.upper() != bech)):
        raise ValueError("Not a bech32-encoded string: {}".format(bech))

    bech = bech.lower()
    pos = bech.rfind('1')
    if pos < 1 or pos + 7 > len(bech):
        raise ValueError("Could not locate hrp separator '1' in {}".format(bech))

    if not all(x in CHARSET for x in bech[pos + 1:]):
        raise ValueError("Non-bech32 character found in {}".format(bech))

    hrp = bech[:pos]
    data = bytes([CHARSET.find(x) for x in bech[pos + 1:]])
    if bech32_verify_checksum(hrp, data) != encoding:
        raise ValueError("Checksum verification failed for {}".format(bech))

    return (hrp, data[:-6])


def segwit_encoding(witver: int) -> Encoding:
    """Witness v0 uses bech32, every later version bech32m (BIP-350)."""
    return Encoding.BECH32 if witver == 0 else Encoding.BECH32M
