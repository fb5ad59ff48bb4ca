"""Recover the payee node key from an invoice signature.

The signature is over SHA256 of the prefix characters and the payload
bits; libsecp256k1 (through coincurve) does the actual recovery, with the
recovery flag selecting which candidate nonce point is used.
"""
from .exceptions import RecoveryFailureError
import coincurve
import hashlib
import logging


logger = logging.getLogger(__name__)

SIGNATURE_LEN = 64
DIGEST_LEN = 32


def signing_digest(hrp: str, payload) -> bytes:
    """SHA256 of the prefix characters followed by the payload bits.

    `payload` is the bit string between the prefix and the signature; it is
    zero-padded to a byte boundary, as the writer did when signing.
    """
    # We actually sign the hrp, then data (padded to 8 bits with zeroes).
    msg = bytearray([ord(c) for c in hrp]) + payload.tobytes()
    return hashlib.sha256(msg).digest()


def recover_pubkey(digest: bytes, signature: bytes, recovery_flag: int) -> bytes:
    """Return the 33-byte compressed key that produced `signature`."""
    if len(digest) != DIGEST_LEN:
        raise RecoveryFailureError("digest must be {} bytes".format(DIGEST_LEN), recovery_flag)
    if len(signature) != SIGNATURE_LEN:
        raise RecoveryFailureError("signature must be {} bytes".format(SIGNATURE_LEN), recovery_flag)
    if recovery_flag not in range(4):
        raise RecoveryFailureError("recovery flag {} out of range".format(recovery_flag), recovery_flag)

    try:
        key = coincurve.PublicKey.from_signature_and_message(
            bytes(signature) + bytes([recovery_flag]), digest, hasher=None)
    except ValueError as err:
        raise RecoveryFailureError(str(err), recovery_flag) from err

    pubkey = key.format(compressed=True)
    logger.debug("Recovered pubkey %s", pubkey.hex())
    return pubkey
