"""On-chain fallback addresses carried in the `f` field.

The field holds a 5-bit version followed by the program: versions 0-16
are witness programs, 17 a P2PKH hash and 18 a P2SH hash.
"""
from .bech32 import bech32_encode, segwit_encoding
from .bitstream import bitarray_to_u5, to_integer, to_bytes, trim_to_bytes
from collections import namedtuple
from types import MappingProxyType
from typing import Optional, Tuple, Union
import base58
import hashlib
import logging


logger = logging.getLogger(__name__)

Network = namedtuple('Network', ['segwit_hrp', 'p2pkh_prefix', 'p2sh_prefix'])

# Map of invoice currency codes to classical and witness address prefixes
NETWORKS = MappingProxyType({
    'bc': Network('bc', 0, 5),
    'tb': Network('tb', 111, 196),
    'tbs': Network('tb', 111, 196),
    'bcrt': Network('bcrt', 111, 196),
})

WITNESS_VERSION_MAX = 16
P2PKH_VERSION = 17
P2SH_VERSION = 18


def _as_bytes(data: Union[bytes, str, list]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return bytes(data)


def double_sha256(data) -> bytes:
    data = _as_bytes(data)
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def base58_encode_check(data) -> str:
    """Base58 of `data` followed by the first 4 bytes of its double-SHA256."""
    return base58.b58encode_check(_as_bytes(data)).decode('ASCII')


def parse_fallback(fallback, currency: str) -> Optional[Tuple[Union[str, bytes], Optional[int]]]:
    """Render an `f` field as an address for `currency`.

    Returns `(address, witness_version)`, or `None` when the version is
    not one we can render; the caller keeps the field as unknown then.
    For currencies without a known network the raw payload bytes come
    back with no version.
    """
    network = NETWORKS.get(currency)
    if network is None:
        return to_bytes(fallback), None

    if fallback.len < 5:
        logger.info("Fallback field too short for a version (%d bits)", fallback.len)
        return None

    wver = to_integer(fallback[0:5])
    if wver == P2PKH_VERSION:
        addr = base58_encode_check(bytes([network.p2pkh_prefix]) + trim_to_bytes(fallback[5:]))
    elif wver == P2SH_VERSION:
        addr = base58_encode_check(bytes([network.p2sh_prefix]) + trim_to_bytes(fallback[5:]))
    elif wver <= WITNESS_VERSION_MAX:
        addr = bech32_encode(network.segwit_hrp, bitarray_to_u5(fallback),
                             segwit_encoding(wver))
    else:
        logger.info("Unsupported fallback address version %d", wver)
        return None
    return addr, wver
