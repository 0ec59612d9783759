from Crypto.Hash import keccak

from .types import Bytes32


def keccak_256(x: bytes) -> Bytes32:
    return Bytes32(keccak.new(digest_bits=256, data=bytes(x)).digest())


# Secure tries key accounts and slots by the hash of the raw address / slot, not the raw value.
def key_digest(raw_key: bytes) -> Bytes32:
    return keccak_256(raw_key)


def encode_hex(v: bytes) -> str:
    return '0x' + bytes(v).hex()


def decode_hex(v: str) -> bytes:
    if v.startswith('0x'):
        v = v[2:]
    if len(v) % 2 == 1:
        v = '0' + v
    return bytes.fromhex(v)


def decode_quantity(v) -> int:
    # JSON-RPC quantities are 0x prefixed hex strings without leading zeros
    if isinstance(v, int):
        return v
    return int(v, 16)
