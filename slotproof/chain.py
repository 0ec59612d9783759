"""
Chain assembler: block header -> state root -> account -> storage root -> slot value.

Each stage must succeed before the next one starts. On failure no partial
chain is returned, the error names the stage that failed.
"""
from typing import NamedTuple, Sequence, Tuple

import rlp
from rlp.exceptions import RLPException
from rlp.sedes import Binary, List, big_endian_int
from remerkleable.basic import uint64, uint256

from .errors import (AccountProofFailed, ConfigurationError, DataIntegrityError, HashLinkageBroken,
                     MalformedEncoding, StorageProofFailed)
from .header import block_hash, read_state_root
from .log import get_logger
from .mpt_proof import verify_key
from .params import ADDRESS_BYTES, KEY_BYTES
from .rlp_codec import decode_bytes
from .types import AccountRecord, Address, Bytes32
from .util import keccak_256

log = get_logger(__name__)

# Root of a trie without any nodes: keccak(rlp(b""))
EMPTY_TRIE_ROOT = keccak_256(b"\x80")

account_sedes = List([big_endian_int, big_endian_int, Binary.fixed_length(32), Binary.fixed_length(32)],
                     strict=True)


class VerifiedChain(NamedTuple):
    block_header: bytes
    block_hash: Bytes32
    state_root: Bytes32
    address: Address
    slot_key: Bytes32
    account: AccountRecord
    account_value: bytes  # RLP encoded account, as found in the state trie
    account_proof: Tuple[bytes, ...]
    storage_root: Bytes32
    storage_proof: Tuple[bytes, ...]
    slot_value: Bytes32


def decode_account(value: bytes) -> AccountRecord:
    try:
        nonce, balance, storage_root, code_hash = rlp.decode(value, sedes=account_sedes, strict=True)
    except RLPException as e:
        raise MalformedEncoding("invalid account record: %s" % e) from e
    if nonce >= 2**64:
        raise MalformedEncoding("account nonce %d does not fit 64 bits" % nonce)
    if balance >= 2**256:
        raise MalformedEncoding("account balance does not fit 256 bits")
    return AccountRecord(
        nonce=uint64(nonce),
        balance=uint256(balance),
        storage_root=Bytes32(storage_root),
        code_hash=Bytes32(code_hash),
    )


def decode_slot_value(value: bytes) -> Bytes32:
    # storage values are stored as RLP byte strings, without leading zero bytes
    raw = decode_bytes(value)
    if len(raw) > 32:
        raise MalformedEncoding("slot value of %d bytes is longer than 32 bytes" % len(raw))
    return Bytes32(raw.rjust(32, b'\x00'))


def assemble(block_header: bytes, address: bytes, slot_key: bytes,
             account_proof: Sequence[bytes], storage_proof: Sequence[bytes]) -> VerifiedChain:
    if len(address) != ADDRESS_BYTES:
        raise ConfigurationError("account address must be %d bytes, got %d" % (ADDRESS_BYTES, len(address)))
    if len(slot_key) != KEY_BYTES:
        raise ConfigurationError("storage slot key must be %d bytes, got %d" % (KEY_BYTES, len(slot_key)))
    block_header = bytes(block_header)
    account_proof = tuple(bytes(node) for node in account_proof)
    storage_proof = tuple(bytes(node) for node in storage_proof)

    # 1. the caller vouches for the header, its hash only identifies it
    header_hash = block_hash(block_header)
    # 2. state root from the header
    state_root = read_state_root(block_header)
    log.debug("block %s has state root %s", header_hash.hex(), state_root.hex())

    # 3. account, keyed by keccak(address) in the state trie
    try:
        account_value = verify_key(account_proof, state_root, address)
        account = decode_account(account_value)
    except DataIntegrityError as e:
        raise AccountProofFailed(e) from e
    storage_root = account.storage_root
    log.debug("account %s has storage root %s", bytes(address).hex(), storage_root.hex())

    # 4. + 5. slot, keyed by keccak(slot) in the account storage trie
    try:
        if storage_root == EMPTY_TRIE_ROOT:
            # no storage at all, every slot holds the default value
            for i, node in enumerate(storage_proof):
                if keccak_256(node) != EMPTY_TRIE_ROOT:
                    raise HashLinkageBroken("storage trie is empty, but proof node is not the empty node",
                                            index=i, depth=0)
            slot_value = Bytes32()
        else:
            slot_value = decode_slot_value(verify_key(storage_proof, storage_root, slot_key))
    except DataIntegrityError as e:
        raise StorageProofFailed(e) from e
    log.debug("slot %s holds %s", bytes(slot_key).hex(), slot_value.hex())

    return VerifiedChain(
        block_header=block_header,
        block_hash=header_hash,
        state_root=state_root,
        address=Address(address),
        slot_key=Bytes32(slot_key),
        account=account,
        account_value=account_value,
        account_proof=account_proof,
        storage_root=storage_root,
        storage_proof=storage_proof,
        slot_value=slot_value,
    )
