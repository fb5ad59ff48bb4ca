from .bitstream import BitReader, to_bytes
from collections import namedtuple
import struct


class ShortChannelId(namedtuple('ShortChannelId', ['block', 'txnum', 'outnum'])):
    """Rendering of the 8 opaque channel id bytes of a route hint."""
    __slots__ = ()

    @classmethod
    def from_bytes(cls, b: bytes) -> 'ShortChannelId':
        i, = struct.unpack("!Q", b)
        return cls(block=(i >> 40) & 0xFFFFFF,
                   txnum=(i >> 16) & 0xFFFFFF,
                   outnum=i & 0xFFFF)

    def __str__(self):
        return "{self.block}x{self.txnum}x{self.outnum}".format(self=self)


class RouteHint(namedtuple('RouteHint', [
        'pubkey',
        'short_channel_id',
        'fee_base_msat',
        'fee_proportional_millionths',
        'cltv_expiry_delta'])):
    """One hop of a private route, as carried in an `r` field.

    `short_channel_id` is kept as the 8 raw bytes from the invoice.
    """
    __slots__ = ()

    # BOLT #11:
    #
    # * `pubkey` (264 bits)
    # * `short_channel_id` (64 bits)
    # * `fee_base_msat` (32 bits, big-endian)
    # * `fee_proportional_millionths` (32 bits, big-endian)
    # * `cltv_expiry_delta` (16 bits, big-endian)
    bit_length = 264 + 64 + 32 + 32 + 16

    @classmethod
    def read(cls, reader: BitReader) -> 'RouteHint':
        return cls(
            pubkey=to_bytes(reader.read(264)),
            short_channel_id=to_bytes(reader.read(64)),
            fee_base_msat=reader.read_uint(32),
            fee_proportional_millionths=reader.read_uint(32),
            cltv_expiry_delta=reader.read_uint(16),
        )

    @property
    def hexpubkey(self):
        return self.pubkey.hex()

    @property
    def short_channel_id_str(self):
        return str(ShortChannelId.from_bytes(self.short_channel_id))

    def to_dict(self):
        return {
            'pubkey': self.hexpubkey,
            'short_channel_id': self.short_channel_id_str,
            'fee_base_msat': self.fee_base_msat,
            'fee_proportional_millionths': self.fee_proportional_millionths,
            'cltv_expiry_delta': self.cltv_expiry_delta,
        }

    def __str__(self):
        return "RouteHint<pubkey={}, short_channel_id={}, fee_base_msat={}, fee_prop={}, cltv_expiry_delta={}>".format(
            self.hexpubkey, self.short_channel_id_str, self.fee_base_msat,
            self.fee_proportional_millionths, self.cltv_expiry_delta)
