from .amount import amount_to_msat, amount_to_sat, decode_hrp
from .bech32 import bech32_decode, CHARSET
from .bitstream import BitReader, u5_to_bitarray, to_integer, to_bytes, trim_to_bytes
from .exceptions import ChecksumError, TruncatedPayloadError, UnsupportedPrefixError
from .fallback import parse_fallback
from .primitives import RouteHint
from .recovery import recover_pubkey, signing_digest
from collections import namedtuple, OrderedDict
from types import MappingProxyType
from typing import Optional
import logging
import time


logger = logging.getLogger(__name__)

MAX_INVOICE_LENGTH = 1024

# BOLT #11:
#
# 1. `timestamp`: seconds-since-1970 (35 bits, big-endian)
# 1. zero or more tagged parts
# 1. `signature`: Bitcoin-style signature of above (520 bits)
TIMESTAMP_BITS = 35
SIGNATURE_BITS = 65 * 8

DEFAULT_EXPIRY = 3600
DEFAULT_MIN_FINAL_CLTV_EXPIRY_DELTA = 18


# Try to pull out tagged data: returns tag and tagged data.
def pull_tagged(reader: BitReader):
    tag = reader.read_uint(5)
    length = reader.read_uint(5) * 32 + reader.read_uint(5)
    return (CHARSET[tag], reader.read(length * 5))


class TaggedField(object):
    """Decoding rule for one tag letter.

    `data_length` is the required length in 5-bit symbols, or None for
    variable-length fields.  `decode()` stores the value in the fields dict
    and returns False if the data cannot be understood, in which case the
    decoder keeps the field in `unknown_tags` instead.
    """
    tag: Optional[str] = None
    data_length: Optional[int] = None

    def accepts(self, tagdata) -> bool:
        return self.data_length is None or tagdata.len == self.data_length * 5

    def decode(self, fields: dict, tagdata) -> bool:
        raise NotImplementedError()

    def __repr__(self):
        return '{}({!r})'.format(type(self).__name__, self.tag)


class UnknownField(TaggedField):
    """A reader MUST skip over unknown fields."""
    def accepts(self, tagdata) -> bool:
        return False

    def decode(self, fields, tagdata):
        return False


class HashField(TaggedField):
    """A 256-bit value in 52 symbols, the trailing 4 pad bits dropped."""
    data_length = 52
    attr: str = ''

    def decode(self, fields, tagdata):
        fields[self.attr] = trim_to_bytes(tagdata)
        return True


# BOLT #11:
#
# * `p` (1): `data_length` 52. 256-bit SHA256 payment_hash.
class PaymentHashField(HashField):
    tag = 'p'
    attr = 'payment_hash'


# * `s` (16): `data_length` 52. This 256-bit secret prevents forwarding
#   nodes from probing the payment recipient.
class PaymentSecretField(HashField):
    tag = 's'
    attr = 'payment_secret'


# * `h` (23): `data_length` 52. 256-bit description of purpose of payment
#   (SHA256).
class DescriptionHashField(HashField):
    tag = 'h'
    attr = 'description_hash'


# * `d` (13): `data_length` variable. Short description of purpose of
#   payment (UTF-8).
class DescriptionField(TaggedField):
    tag = 'd'

    def decode(self, fields, tagdata):
        try:
            fields['short_description'] = trim_to_bytes(tagdata).decode('utf-8')
        except UnicodeDecodeError as e:
            logger.info("Ignoring description that is not UTF-8: %s", e)
            return False
        return True


class IntegerField(TaggedField):
    attr: str = ''

    def decode(self, fields, tagdata):
        fields[self.attr] = to_integer(tagdata)
        return True


# * `x` (6): `data_length` variable. `expiry` time in seconds (big-endian).
class ExpiryField(IntegerField):
    tag = 'x'
    attr = 'expiry'


# * `c` (24): `data_length` variable. `min_final_cltv_expiry_delta` to use
#   for the last HTLC in the route.
class MinFinalCltvExpiryField(IntegerField):
    tag = 'c'
    attr = 'min_final_cltv_expiry_delta'


# * `n` (19): `data_length` 53. 33-byte public key of the payee node
class PayeeField(TaggedField):
    tag = 'n'
    data_length = 53

    def decode(self, fields, tagdata):
        fields['pubkey'] = trim_to_bytes(tagdata)
        return True


# * `r` (3): `data_length` variable. One or more entries containing extra
#   routing information for a private route; there may be more than one `r`
#   field.
class RouteHintField(TaggedField):
    tag = 'r'

    def decode(self, fields, tagdata):
        reader = BitReader(tagdata)
        while reader.remaining >= RouteHint.bit_length:
            hint = RouteHint.read(reader)
            logger.debug("Read route hint %s", hint)
            fields['routing_info'].append(hint)
        return True


# * `f` (9): `data_length` variable, depending on version. Fallback on-chain
#   address.
class FallbackField(TaggedField):
    tag = 'f'

    def decode(self, fields, tagdata):
        fallback = parse_fallback(tagdata, fields['currency'])
        if fallback is None:
            return False
        fields['fallback_addr'], fields['witness_version'] = fallback
        return True


UNKNOWN_FIELD = UnknownField()

TAGGED_FIELDS = MappingProxyType(OrderedDict((f.tag, f) for f in [
    PaymentHashField(),
    PaymentSecretField(),
    DescriptionField(),
    DescriptionHashField(),
    ExpiryField(),
    MinFinalCltvExpiryField(),
    PayeeField(),
    RouteHintField(),
    FallbackField(),
]))


def tagged_field(tag: str) -> TaggedField:
    return TAGGED_FIELDS.get(tag, UNKNOWN_FIELD)


_InvoiceBase = namedtuple('Invoice', [
    'currency',
    'amount',
    'timestamp',
    'payment_hash',
    'payment_secret',
    'description_hash',
    'short_description',
    'expiry',
    'min_final_cltv_expiry_delta',
    'pubkey',
    'signature',
    'recovery_flag',
    'fallback_addr',
    'witness_version',
    'routing_info',
    'unknown_tags',
])


class Invoice(_InvoiceBase):
    """A decoded BOLT #11 payment request.

    Instances are only produced by `Invoice.decode()` and never change
    afterwards.  Byte-valued fields hold raw bytes; `amount` is a `Decimal`
    in whole currency units, or None if the payer chooses.
    """
    __slots__ = ()

    def __str__(self):
        return "Invoice[{}, amount={}{} timestamp={} hash={}]".format(
            self.hexpubkey, self.amount, self.currency, self.timestamp,
            self.hexpaymenthash)

    @property
    def hexpubkey(self):
        return self.pubkey.hex()

    @property
    def hexpaymenthash(self):
        return self.payment_hash.hex() if self.payment_hash is not None else None

    @property
    def satoshi(self) -> Optional[int]:
        return amount_to_sat(self.amount) if self.amount is not None else None

    @property
    def msatoshi(self) -> Optional[int]:
        return amount_to_msat(self.amount) if self.amount is not None else None

    def _get_tagged(self, tag):
        return [t[1] for t in self.unknown_tags if t[0] == tag]

    @property
    def featurebits(self) -> int:
        features = self._get_tagged('9')
        if features == []:
            return 0
        return to_integer(features[-1])

    @property
    def expires_at(self) -> int:
        return self.timestamp + self.expiry

    def is_expired(self, now=None) -> bool:
        if now is None:
            now = time.time()
        return now > self.expires_at

    def to_dict(self):
        def hexornone(b):
            return b.hex() if b is not None else None

        fallback = self.fallback_addr
        if isinstance(fallback, bytes):
            fallback = fallback.hex()

        return {
            'currency': self.currency,
            'amount': str(self.amount) if self.amount is not None else None,
            'timestamp': self.timestamp,
            'payment_hash': hexornone(self.payment_hash),
            'payment_secret': hexornone(self.payment_secret),
            'description_hash': hexornone(self.description_hash),
            'short_description': self.short_description,
            'expiry': self.expiry,
            'min_final_cltv_expiry_delta': self.min_final_cltv_expiry_delta,
            'pubkey': self.hexpubkey,
            'signature': self.signature.hex(),
            'recovery_flag': self.recovery_flag,
            'fallback_addr': fallback,
            'witness_version': self.witness_version,
            'routing_info': [rh.to_dict() for rh in self.routing_info],
            'unknown_tags': [{'tag': t, 'data': d.bin} for t, d in self.unknown_tags],
        }

    @classmethod
    def decode(cls, b: str, max_length: int = MAX_INVOICE_LENGTH) -> 'Invoice':
        try:
            hrp, data = bech32_decode(b, max_length)
        except ValueError as e:
            raise ChecksumError(b, str(e)) from e

        # BOLT #11:
        #
        # A reader MUST fail if it does not understand the `prefix`.
        if not hrp.startswith('ln'):
            raise UnsupportedPrefixError(hrp)

        data = u5_to_bitarray(data)

        # Final signature 65 bytes, split it off.
        if data.len < SIGNATURE_BITS:
            raise TruncatedPayloadError(SIGNATURE_BITS, data.len)
        sigdecoded = data[-SIGNATURE_BITS:]
        reader = BitReader(data[:-SIGNATURE_BITS])

        currency, amount = decode_hrp(hrp)
        fields = {
            'currency': currency,
            'amount': amount,
            'timestamp': reader.read_uint(TIMESTAMP_BITS),
            'payment_hash': None,
            'payment_secret': None,
            'description_hash': None,
            'short_description': None,
            'expiry': DEFAULT_EXPIRY,
            'min_final_cltv_expiry_delta': DEFAULT_MIN_FINAL_CLTV_EXPIRY_DELTA,
            'pubkey': None,
            'fallback_addr': None,
            'witness_version': None,
            'routing_info': [],
            'unknown_tags': [],
        }

        while reader.remaining > 0:
            tag, tagdata = pull_tagged(reader)
            rule = tagged_field(tag)
            logger.debug("Field '%s' of %d bits handled by %r", tag, tagdata.len, rule)

            # BOLT #11:
            #
            # A reader MUST skip over unknown fields, an `f` field with unknown
            # `version`, or a `p`, `h`, `s` or `n` field which does not have
            # `data_length` 52, 52, 52 or 53 respectively.
            if rule.accepts(tagdata) and rule.decode(fields, tagdata):
                continue
            if rule is not UNKNOWN_FIELD:
                logger.info("Keeping '%s' field of %d bits as unknown", tag, tagdata.len)
            fields['unknown_tags'].append((tag, tagdata))

        fields['signature'] = to_bytes(sigdecoded[0:512])
        fields['recovery_flag'] = to_integer(sigdecoded[512:])

        # BOLT #11:
        #
        # A reader MUST use the `n` field to validate the signature instead of
        # performing signature recovery if a valid `n` field is provided.
        if fields['pubkey'] is None:
            fields['pubkey'] = recover_pubkey(
                signing_digest(hrp, reader.bits),
                fields['signature'],
                fields['recovery_flag'])

        fields['routing_info'] = tuple(fields['routing_info'])
        fields['unknown_tags'] = tuple(fields['unknown_tags'])
        return cls(**fields)


def decode(invoice: str, max_length: int = MAX_INVOICE_LENGTH) -> Invoice:
    """Decode a BOLT #11 invoice string.

    Raises a `Bolt11Error` subclass on the first fatal problem; fields it
    cannot interpret end up in `Invoice.unknown_tags`.
    """
    return Invoice.decode(invoice, max_length=max_length)
