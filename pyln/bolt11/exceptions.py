class Bolt11Error(ValueError):
    """Base class for every fatal invoice decoding failure."""


class ChecksumError(Bolt11Error):
    def __init__(self, invoice: str, reason: str):
        super().__init__("Bad bech32 checksum: {}".format(reason))
        self.invoice = invoice
        self.reason = reason


class UnsupportedPrefixError(Bolt11Error):
    def __init__(self, hrp: str):
        super().__init__("Does not start with ln: {}".format(hrp))
        self.hrp = hrp


class TruncatedPayloadError(Bolt11Error):
    """Fewer bits available than a read, or the signature, requires."""
    def __init__(self, wanted: int, available: int):
        super().__init__("Too short: wanted {} bits, only {} left".format(
            wanted, available))
        self.wanted = wanted
        self.available = available


class InvalidAmountError(Bolt11Error):
    def __init__(self, amount: str, reason: str = "Invalid amount"):
        super().__init__("{} '{}'".format(reason, amount))
        self.amount = amount


class RecoveryFailureError(Bolt11Error):
    def __init__(self, reason: str, recovery_flag: int = None):
        super().__init__("Cannot recover public key: {}".format(reason))
        self.reason = reason
        self.recovery_flag = recovery_flag
