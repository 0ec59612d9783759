from functools import lru_cache
from typing import Any, Dict, Optional, Sequence, Tuple, Type

from remerkleable.basic import uint32
from remerkleable.byte_arrays import ByteList, ByteVector, Bytes32
from remerkleable.complex import Container, Vector

from .chain import VerifiedChain, assemble
from .errors import CapacityExceeded, ConfigurationError, DataIntegrityError
from .header import locate_state_root
from .log import get_logger
from .params import DEFAULT_MAX_HEADER_BYTES, MAX_ACCOUNT_VALUE_BYTES
from .types import Address

log = get_logger(__name__)


# The circuit has a static capacity, so the witness type is fixed per capacity.
# Every proof node is zero-padded to max_node_bytes, the account proof to max_nodes nodes
# and the storage proof to max_storage_nodes nodes.
# The true count and lengths are recorded next to the padded data, to tell real bytes from padding.
def witness_record_type(max_nodes: int, max_node_bytes: int, max_header_bytes: int,
                        max_storage_nodes: Optional[int] = None) -> Type[Container]:
    if max_storage_nodes is None:
        max_storage_nodes = max_nodes
    return _witness_record_type(max_nodes, max_node_bytes, max_header_bytes, max_storage_nodes)


@lru_cache(maxsize=None)
def _witness_record_type(max_nodes: int, max_node_bytes: int, max_header_bytes: int,
                         max_storage_nodes: int) -> Type[Container]:
    for name, v in (("max_nodes", max_nodes), ("max_node_bytes", max_node_bytes),
                    ("max_header_bytes", max_header_bytes), ("max_storage_nodes", max_storage_nodes)):
        if v < 1:
            raise ConfigurationError("%s must be positive, got %d" % (name, v))

    ProofNode = ByteVector[max_node_bytes]
    AccountNodes = Vector[ProofNode, max_nodes]
    AccountNodeLengths = Vector[uint32, max_nodes]
    StorageNodes = Vector[ProofNode, max_storage_nodes]
    StorageNodeLengths = Vector[uint32, max_storage_nodes]
    Header = ByteVector[max_header_bytes]

    class WitnessRecord(Container):
        block_hash: Bytes32
        state_root: Bytes32
        storage_root: Bytes32
        slot_value: Bytes32
        account_address: Address
        storage_key: Bytes32
        # RLP encoded account record, the value of the account proof
        account_value: ByteList[MAX_ACCOUNT_VALUE_BYTES]
        # header bytes before the state root, the state root, and after it:
        # the circuit swaps in its own state root and rehashes to the block hash.
        block_header: Header
        block_header_length: uint32
        state_root_offset: uint32
        header_tail_length: uint32
        account_proof_nodes: AccountNodes
        true_account_node_count: uint32
        true_account_node_lengths: AccountNodeLengths
        storage_proof_nodes: StorageNodes
        true_storage_node_count: uint32
        true_storage_node_lengths: StorageNodeLengths

    return WitnessRecord


def _pad_proof(name: str, proof: Sequence[bytes], max_nodes: int, max_node_bytes: int):
    if len(proof) > max_nodes:
        raise CapacityExceeded("%s proof node count" % name, len(proof), max_nodes)
    for i, node in enumerate(proof):
        if len(node) > max_node_bytes:
            raise CapacityExceeded("%s proof node %d length" % (name, i), len(node), max_node_bytes)

    padded = [node.ljust(max_node_bytes, b'\x00') for node in proof]
    padded.extend([b'\x00' * max_node_bytes] * (max_nodes - len(proof)))
    lengths = [len(node) for node in proof] + [0] * (max_nodes - len(proof))
    return padded, len(proof), lengths


def shape(chain: VerifiedChain, max_nodes: int, max_node_bytes: int,
          max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES, max_storage_nodes: Optional[int] = None) -> Container:
    if max_storage_nodes is None:
        max_storage_nodes = max_nodes
    typ = witness_record_type(max_nodes, max_node_bytes, max_header_bytes, max_storage_nodes)

    account_nodes, account_count, account_lengths = _pad_proof(
        "account", chain.account_proof, max_nodes, max_node_bytes)
    storage_nodes, storage_count, storage_lengths = _pad_proof(
        "storage", chain.storage_proof, max_storage_nodes, max_node_bytes)

    header = chain.block_header
    if len(header) > max_header_bytes:
        raise CapacityExceeded("block header length", len(header), max_header_bytes)
    if len(chain.account_value) > MAX_ACCOUNT_VALUE_BYTES:
        raise CapacityExceeded("account value length", len(chain.account_value), MAX_ACCOUNT_VALUE_BYTES)
    loc = locate_state_root(header)

    fields = typ.fields()
    record = typ(
        block_hash=chain.block_hash,
        state_root=chain.state_root,
        storage_root=chain.storage_root,
        slot_value=chain.slot_value,
        account_address=chain.address,
        storage_key=chain.slot_key,
        account_value=fields['account_value'](chain.account_value),
        block_header=fields['block_header'](header.ljust(max_header_bytes, b'\x00')),
        block_header_length=len(header),
        state_root_offset=loc.offset,
        header_tail_length=len(header) - loc.offset - 32,
        account_proof_nodes=fields['account_proof_nodes'](account_nodes),
        true_account_node_count=account_count,
        true_account_node_lengths=fields['true_account_node_lengths'](account_lengths),
        storage_proof_nodes=fields['storage_proof_nodes'](storage_nodes),
        true_storage_node_count=storage_count,
        true_storage_node_lengths=fields['true_storage_node_lengths'](storage_lengths),
    )
    log.debug("shaped witness %s: %d account nodes, %d storage nodes",
              record.hash_tree_root().hex(), account_count, storage_count)
    return record


# (max_nodes, max_node_bytes, max_header_bytes, max_storage_nodes)
def witness_capacity(record: Container) -> Tuple[int, int, int, int]:
    return (len(record.account_proof_nodes), len(record.account_proof_nodes[0]), len(record.block_header),
            len(record.storage_proof_nodes))


def _unpad(name: str, data: bytes, length: int) -> bytes:
    if length > len(data):
        raise DataIntegrityError("%s length %d is larger than its padded size %d" % (name, length, len(data)))
    if any(data[length:]):
        raise DataIntegrityError("%s has non-zero padding" % name)
    return data[:length]


def _unpad_proof(name: str, nodes, count: int, lengths) -> Tuple[bytes, ...]:
    if count > len(nodes):
        raise DataIntegrityError("%s proof node count %d is larger than capacity %d" % (name, count, len(nodes)))
    out = []
    for i in range(len(nodes)):
        length = int(lengths[i])
        if i >= count and length != 0:
            raise DataIntegrityError("%s proof node %d is padding, but has length %d" % (name, i, length))
        node = _unpad("%s proof node %d" % (name, i), bytes(nodes[i]), length)
        if i < count:
            out.append(node)
    return tuple(out)


def unshape(record: Container) -> Tuple[Tuple[bytes, ...], Tuple[bytes, ...]]:
    """Recover the account and storage proofs from a witness record."""
    account_proof = _unpad_proof("account", record.account_proof_nodes,
                                 int(record.true_account_node_count), record.true_account_node_lengths)
    storage_proof = _unpad_proof("storage", record.storage_proof_nodes,
                                 int(record.true_storage_node_count), record.true_storage_node_lengths)
    return account_proof, storage_proof


def check_witness(record: Container) -> VerifiedChain:
    """Verify a witness record outside of the circuit.

    Performs the same checks the circuit does: the padding is empty, the header
    carries the state root at the recorded offset, and the chain of proofs
    leads to the recorded slot value.
    """
    header = _unpad("block header", bytes(record.block_header), int(record.block_header_length))
    loc = locate_state_root(header)
    if loc.offset != int(record.state_root_offset):
        raise DataIntegrityError("state root is at offset %d, witness says %d"
                                 % (loc.offset, int(record.state_root_offset)))
    if len(header) - loc.offset - 32 != int(record.header_tail_length):
        raise DataIntegrityError("header tail length does not match the witness")

    account_proof, storage_proof = unshape(record)
    chain = assemble(header, bytes(record.account_address), bytes(record.storage_key),
                     account_proof, storage_proof)

    for name, got in (("block_hash", chain.block_hash), ("state_root", chain.state_root),
                      ("storage_root", chain.storage_root), ("slot_value", chain.slot_value),
                      ("account_value", chain.account_value)):
        if bytes(got) != bytes(getattr(record, name)):
            raise DataIntegrityError("witness %s does not match the verified chain" % name)
    return chain


# Values the verifier sees. The proofs and the header stay with the prover.
class PublicInputs(Container):
    account_address: Address
    account_value: ByteList[MAX_ACCOUNT_VALUE_BYTES]
    block_hash: Bytes32
    storage_key: Bytes32
    slot_value: Bytes32


def public_inputs(record: Container) -> PublicInputs:
    return PublicInputs(
        account_address=record.account_address,
        account_value=record.account_value,
        block_hash=record.block_hash,
        storage_key=record.storage_key,
        slot_value=record.slot_value,
    )


# JSON friendly form: the capacity travels with the record, it determines the record type.
def witness_to_obj(record: Container) -> Dict[str, Any]:
    max_nodes, max_node_bytes, max_header_bytes, max_storage_nodes = witness_capacity(record)
    return {
        "max_nodes": max_nodes,
        "max_node_bytes": max_node_bytes,
        "max_header_bytes": max_header_bytes,
        "max_storage_nodes": max_storage_nodes,
        "witness": record.to_obj(),
    }


def witness_from_obj(obj: Dict[str, Any]) -> Container:
    try:
        typ = witness_record_type(int(obj["max_nodes"]), int(obj["max_node_bytes"]), int(obj["max_header_bytes"]),
                                  int(obj.get("max_storage_nodes", obj["max_nodes"])))
        return typ.from_obj(obj["witness"])
    except (KeyError, TypeError, ValueError) as e:
        raise DataIntegrityError("malformed witness object: %r" % e) from e
