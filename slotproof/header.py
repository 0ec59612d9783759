"""Block header decoding and encoding.

The chain starts from an RLP encoded block header. Its hash identifies the
block, and field 3 of the header list is the state root the account proof is
checked against.
"""
from typing import Any, Dict, NamedTuple

from .errors import HeaderDecodeError, MalformedEncoding
from .params import HEADER_MIN_FIELDS, HEADER_STATE_ROOT_INDEX
from .rlp_codec import decode, encode
from .types import Bytes32
from .util import decode_hex, decode_quantity, keccak_256

# JSON-RPC block fields in header order, see the yellow paper and the EIPs that appended fields.
BLOCK_HEADER = (
    "parentHash",
    "sha3Uncles",
    "miner",
    "stateRoot",
    "transactionsRoot",
    "receiptsRoot",
    "logsBloom",
    "difficulty",
    "number",
    "gasLimit",
    "gasUsed",
    "timestamp",
    "extraData",
    "mixHash",
    "nonce",
    "baseFeePerGas",  # London
    "withdrawalsRoot",  # Shanghai
    "blobGasUsed",  # Cancun
    "excessBlobGas",  # Cancun
    "parentBeaconBlockRoot",  # Cancun
    "requestsHash",  # Prague
)

# Fields that are integers in the header, and hex quantities in JSON-RPC.
QUANTITY_FIELDS = {
    "difficulty",
    "number",
    "gasLimit",
    "gasUsed",
    "timestamp",
    "baseFeePerGas",
    "blobGasUsed",
    "excessBlobGas",
}


class StateRootLocation(NamedTuple):
    state_root: Bytes32
    # byte offset of the 32 state root bytes within the encoded header
    offset: int


def locate_state_root(header_rlp: bytes) -> StateRootLocation:
    try:
        fields = decode(header_rlp)
    except MalformedEncoding as e:
        raise HeaderDecodeError("header is not valid RLP: %s" % e.message) from e
    if not isinstance(fields, list) or len(fields) < HEADER_MIN_FIELDS:
        raise HeaderDecodeError("header must be an RLP list of at least %d fields" % HEADER_MIN_FIELDS)
    state_root = fields[HEADER_STATE_ROOT_INDEX]
    if not isinstance(state_root, bytes) or len(state_root) != 32:
        raise HeaderDecodeError("header field %d is not a 32 byte state root" % HEADER_STATE_ROOT_INDEX)

    # decoding is strict, so re-encoding each field reproduces the exact header bytes
    payload_length = sum(len(encode(f)) for f in fields)
    list_prefix_length = len(header_rlp) - payload_length
    before = sum(len(encode(f)) for f in fields[:HEADER_STATE_ROOT_INDEX])
    offset = list_prefix_length + before + 1  # +1 for the 0xa0 string prefix of the root
    return StateRootLocation(state_root=Bytes32(state_root), offset=offset)


def read_state_root(header_rlp: bytes) -> Bytes32:
    return locate_state_root(header_rlp).state_root


def block_hash(header_rlp: bytes) -> Bytes32:
    return keccak_256(header_rlp)


def encode_block_header(block: Dict[str, Any]) -> bytes:
    """Encode a JSON-RPC block object (eth_getBlockByNumber) into its RLP header.

    If the block carries a hash, the encoding must hash to it.
    """
    items = []
    for k in BLOCK_HEADER:
        if k not in block or block[k] is None:
            continue
        if k in QUANTITY_FIELDS:
            v = decode_quantity(block[k])
            items.append(v.to_bytes(length=(v.bit_length() + 7) // 8, byteorder='big'))
        else:
            items.append(decode_hex(block[k]))
    header_rlp = encode(items)

    if "hash" in block and block["hash"] is not None:
        expected = Bytes32(decode_hex(block["hash"]))
        if block_hash(header_rlp) != expected:
            raise HeaderDecodeError("encoded header hashes to %s, block hash is %s"
                                    % (block_hash(header_rlp).hex(), expected.hex()))
    return header_rlp
