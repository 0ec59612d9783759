from typing import Sequence

from .errors import HashLinkageBroken, InvalidNodeShape, KeyNotFound, MalformedEncoding, PathMismatch, ProofTooDeep
from .log import get_logger
from .mpt_node import Branch, ChildRef, Extension, Leaf, NibblePath, TrieNode, key_to_nibbles, parse_node
from .params import MAX_PROOF_DEPTH
from .types import Bytes32
from .util import keccak_256, key_digest

log = get_logger(__name__)


def _check_exhausted(proof: Sequence[bytes], index: int, depth: int) -> None:
    # nothing may follow the terminal node: extra entries are not linked to the root
    if index != len(proof):
        raise HashLinkageBroken("%d proof nodes after the terminal node are not linked"
                                % (len(proof) - index), index=index, depth=depth)


def verify_proof(proof: Sequence[bytes], root: Bytes32, key: NibblePath) -> bytes:
    """Walk ``proof`` from ``root`` along ``key`` and return the value stored at the key.

    The walk is a state machine over (index, depth, expected): the next proof entry to read,
    the number of key nibbles consumed so far, and the reference the next node must match.
    Hashed references consume a proof entry, embedded nodes are taken from their parent.
    Each node visited is one step, at most MAX_PROOF_DEPTH steps are taken.
    """
    index = 0
    depth = 0
    expected: ChildRef = Bytes32(root)
    steps = 0
    while True:
        if steps >= MAX_PROOF_DEPTH:
            raise ProofTooDeep("walk needs more than %d steps" % MAX_PROOF_DEPTH, index=index, depth=depth)
        steps += 1

        node: TrieNode
        if isinstance(expected, bytes):
            if index >= len(proof):
                raise HashLinkageBroken("proof ends, missing node %s" % expected.hex(), index=index, depth=depth)
            raw = bytes(proof[index])
            # check that the provided node matches the reference before looking inside it
            if keccak_256(raw) != expected:
                raise HashLinkageBroken("node hash does not match expected %s" % expected.hex(),
                                        index=index, depth=depth)
            try:
                node = parse_node(raw)
            except (MalformedEncoding, InvalidNodeShape) as e:
                raise type(e)(e.message, index=index, depth=depth) from e
            index += 1
        else:
            node = expected

        remaining = key[depth:]
        if isinstance(node, Branch):
            if len(remaining) == 0:
                if node.value is None:
                    raise KeyNotFound("branch at end of key has no value", index=index - 1, depth=depth)
                _check_exhausted(proof, index, depth)
                return node.value
            child = node.children[remaining[0]]
            if child is None:
                raise KeyNotFound("branch has no child at nibble %x" % remaining[0], index=index - 1, depth=depth)
            depth += 1
            expected = child
        elif isinstance(node, Extension):
            if remaining[:len(node.path)] != node.path:
                raise PathMismatch("extension path does not match key", index=index - 1, depth=depth)
            depth += len(node.path)
            expected = node.child
        elif isinstance(node, Leaf):
            if remaining != node.path:
                raise PathMismatch("leaf path does not match remaining key", index=index - 1, depth=depth)
            _check_exhausted(proof, index, depth + len(node.path))
            log.debug("proof verified in %d steps, %d nodes", steps, index)
            return node.value
        else:
            raise TypeError("unknown trie node %r" % (node,))


def verify_key(proof: Sequence[bytes], root: Bytes32, raw_key: bytes) -> bytes:
    """Verify a secure-trie proof, where the trie path is the hash of the raw key."""
    return verify_proof(proof, root, key_to_nibbles(key_digest(raw_key)))
