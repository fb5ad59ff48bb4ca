from .exceptions import InvalidAmountError
from decimal import Decimal, localcontext
from types import MappingProxyType
from typing import Optional, Tuple
import re


# BOLT #11:
# The following `multiplier` letters are defined:
#
# * `m` (milli): multiply by 0.001
# * `u` (micro): multiply by 0.000001
# * `n` (nano): multiply by 0.000000001
# * `p` (pico): multiply by 0.000000000001
MULTIPLIERS = MappingProxyType({
    'p': 10**12,
    'n': 10**9,
    'u': 10**6,
    'm': 10**3,
})

SATOSHIS_PER_UNIT = 10**8
MILLISATOSHIS_PER_UNIT = 10**11

_AMOUNT_RE = re.compile(r'[0-9]+[pnum]?')
_CURRENCY_RE = re.compile(r'[^0-9]+')


def _exact(digits: int) -> int:
    """Context precision that keeps a value with `digits` digits exact."""
    return max(28, digits + 12)


def unshorten_amount(amount: str) -> Decimal:
    """ Given a shortened amount, convert it into a decimal
    """
    # BOLT #11:
    # A reader SHOULD fail if `amount` contains a non-digit, or is followed by
    # anything except a `multiplier` in the table above.
    if not isinstance(amount, str) or not _AMOUNT_RE.fullmatch(amount):
        raise InvalidAmountError(str(amount))

    unit = amount[-1]
    if unit in MULTIPLIERS:
        with localcontext() as ctx:
            ctx.prec = _exact(len(amount))
            return Decimal(amount[:-1]) / MULTIPLIERS[unit]
    return Decimal(amount)


def decode_hrp(hrp: str) -> Tuple[str, Optional[Decimal]]:
    """Split an invoice prefix into its currency code and amount.

    `hrp` still carries the leading `ln`.  The amount is `None` when the
    invoice leaves it to the payer.
    """
    m = _CURRENCY_RE.match(hrp[2:])
    if m is None:
        raise InvalidAmountError(hrp, "No currency code in")

    currency = m.group(0)
    amountstr = hrp[2 + m.end():]

    # BOLT #11:
    #
    # A reader SHOULD indicate if amount is unspecified, otherwise it MUST
    # multiply `amount` by the `multiplier` value (if any) to derive the
    # amount required for payment.
    if amountstr == '':
        return currency, None
    return currency, unshorten_amount(amountstr)


def to_units(amount: Decimal, per_unit: int) -> int:
    """Scale a currency amount and truncate towards zero."""
    with localcontext() as ctx:
        ctx.prec = _exact(len(amount.as_tuple().digits) + len(str(per_unit)))
        return int(amount * per_unit)


def amount_to_sat(amount: Decimal) -> int:
    return to_units(amount, SATOSHIS_PER_UNIT)


def amount_to_msat(amount: Decimal) -> int:
    return to_units(amount, MILLISATOSHIS_PER_UNIT)
