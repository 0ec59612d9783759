from typing import NamedTuple, Optional, Tuple, Union

from .errors import InvalidNodeShape
from .rlp_codec import RlpItem, decode
from .types import Bytes32

# Sequence of 4-bit values, most significant nibble of each key byte first.
NibblePath = Tuple[int, ...]


def key_to_nibbles(key: bytes) -> NibblePath:
    out = []
    for b in bytes(key):
        out.append(b >> 4)
        out.append(b & 0x0F)
    return tuple(out)


# 2-item nodes:
# - leaf A 2-item node [ encodedPath, value ]
# - extension A 2-item node [ encodedPath, key ]
#
# The first nibble of the encodedPath is defined as:
#
# hex char    bits    |    node type partial     path length
# ----------------------------------------------------------
# 0        0000    |       extension              even
# 1        0001    |       extension              odd
# 2        0010    |   terminating (leaf)         even
# 3        0011    |   terminating (leaf)         odd

def decode_path(encoded_path: bytes) -> Tuple[bool, NibblePath]:
    if len(encoded_path) == 0:
        raise InvalidNodeShape("empty encoded path, missing flag nibble")
    flag_nibble = (encoded_path[0] & 0xF0) >> 4
    if flag_nibble & 0b1100 != 0:
        raise InvalidNodeShape("unknown path flag nibble %d" % flag_nibble)
    terminating = flag_nibble & 0b0010 != 0
    evenlen = flag_nibble & 0b0001 == 0
    rest = key_to_nibbles(encoded_path[1:])
    if evenlen:
        # padding nibble is ignored, as geth does
        return terminating, rest
    # if odd, then the 4 bits "after" (when hex encoded) the flag bits are part of the path
    return terminating, (encoded_path[0] & 0x0F,) + rest


def encode_path(path: NibblePath, terminating: bool) -> bytes:
    first_byte = 0
    if len(path) % 2 == 1:  # check if odd length
        first_byte |= (0b0001 << 4) | path[0]
        path = path[1:]
    if terminating:  # check if terminating leaf
        first_byte |= 0b0010 << 4
    out = bytearray([first_byte])
    for i in range(0, len(path), 2):
        out.append((path[i] << 4) | path[i + 1])
    return bytes(out)


class Leaf(NamedTuple):
    path: NibblePath
    value: bytes


class Extension(NamedTuple):
    path: NibblePath
    child: "ChildRef"


class Branch(NamedTuple):
    children: Tuple[Optional["ChildRef"], ...]  # 16 entries, indexed by nibble
    value: Optional[bytes]


TrieNode = Union[Leaf, Extension, Branch]

# A child is referenced by the hash of its RLP encoding, or, if that encoding is
# shorter than 32 bytes, embedded in place in the parent.
ChildRef = Union[Bytes32, TrieNode]


def _parse_child(item: RlpItem) -> ChildRef:
    if isinstance(item, list):
        return parse_node_item(item)
    if len(item) == 32:
        return Bytes32(item)
    raise InvalidNodeShape("child reference must be a 32 byte hash or an embedded node, got %d bytes" % len(item))


def parse_node_item(item: RlpItem) -> TrieNode:
    if not isinstance(item, list):
        raise InvalidNodeShape("node must be an RLP list, got a %d byte string" % len(item))

    if len(item) == 2:
        encoded_path, content = item
        if not isinstance(encoded_path, bytes):
            raise InvalidNodeShape("node path must be a byte string")
        terminating, path = decode_path(encoded_path)
        if terminating:
            if not isinstance(content, bytes):
                raise InvalidNodeShape("leaf value must be a byte string")
            return Leaf(path=path, value=content)
        if isinstance(content, bytes) and len(content) == 0:
            raise InvalidNodeShape("extension without child")
        return Extension(path=path, child=_parse_child(content))

    if len(item) == 17:
        children = []
        for child in item[:16]:
            if isinstance(child, bytes) and len(child) == 0:
                children.append(None)
            else:
                children.append(_parse_child(child))
        value = item[16]
        if not isinstance(value, bytes):
            raise InvalidNodeShape("branch value must be a byte string")
        return Branch(children=tuple(children), value=value if len(value) > 0 else None)

    raise InvalidNodeShape("unexpected amount of elements in node list: %d" % len(item))


def parse_node(raw: bytes) -> TrieNode:
    return parse_node_item(decode(raw))
