from .amount import decode_hrp, unshorten_amount
from .bitstream import BitReader
from .exceptions import (
    Bolt11Error,
    ChecksumError,
    InvalidAmountError,
    RecoveryFailureError,
    TruncatedPayloadError,
    UnsupportedPrefixError,
)
from .fallback import base58_encode_check, double_sha256, parse_fallback
from .invoice import Invoice, MAX_INVOICE_LENGTH, decode
from .primitives import RouteHint, ShortChannelId
from .recovery import recover_pubkey

__version__ = "0.1.0"

__all__ = [
    "Invoice",
    "RouteHint",
    "ShortChannelId",
    "BitReader",
    "decode",
    "decode_hrp",
    "unshorten_amount",
    "parse_fallback",
    "base58_encode_check",
    "double_sha256",
    "recover_pubkey",
    "MAX_INVOICE_LENGTH",
    "Bolt11Error",
    "ChecksumError",
    "UnsupportedPrefixError",
    "TruncatedPayloadError",
    "InvalidAmountError",
    "RecoveryFailureError",
    "__version__",
]
