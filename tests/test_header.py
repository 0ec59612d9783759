import pytest
import rlp

from slotproof.errors import HeaderDecodeError
from slotproof.header import block_hash, encode_block_header, locate_state_root, read_state_root

from .mpt_fixtures import keccak, make_world, recording


def test_state_root_location():
    w = make_world(n_other_accounts=3)
    loc = locate_state_root(w.header)
    assert bytes(loc.state_root) == w.state_trie.root_hash
    assert w.header[loc.offset:loc.offset + 32] == w.state_trie.root_hash
    assert w.header[loc.offset - 1] == 0xa0


def test_state_root_location_pre_london():
    w = make_world(n_other_accounts=3)
    header = rlp.encode(w.header_fields[:15])
    loc = locate_state_root(header)
    assert header[loc.offset:loc.offset + 32] == w.state_trie.root_hash


def test_long_extra_data_moves_nothing_before_root():
    w = make_world(n_other_accounts=3)
    fields = list(w.header_fields)
    fields[12] = b"x" * 32
    short = locate_state_root(rlp.encode(w.header_fields))
    assert locate_state_root(rlp.encode(fields)).offset == short.offset


@pytest.mark.parametrize("header", [
    b"\x83abc",  # not a list
    rlp.encode([b"x"] * 14),  # too few fields
    rlp.encode([b"x"] * 3 + [b"\x01" * 31] + [b"x"] * 11),  # short state root
    rlp.encode([b"x"] * 3 + [[b"\x01" * 32]] + [b"x"] * 11),  # state root is a list
    b"\xf9\x00\x10" + b"\x00" * 16,  # malformed RLP
])
def test_invalid_header(header):
    with pytest.raises(HeaderDecodeError):
        read_state_root(header)


def test_encode_block_header():
    w = make_world(n_other_accounts=3)
    block = recording(w, 0)["block"]
    assert encode_block_header(block) == w.header
    assert bytes(block_hash(w.header)) == keccak(w.header)


def test_encode_block_header_zero_quantity():
    w = make_world(n_other_accounts=3)
    fields = list(w.header_fields)
    fields[7] = 0  # post-merge difficulty
    w = w._replace(header_fields=fields, header=rlp.encode(fields))
    block = recording(w, 0)["block"]
    assert block["difficulty"] == "0x0"
    assert encode_block_header(block) == w.header


def test_encode_block_header_hash_mismatch():
    w = make_world(n_other_accounts=3)
    block = recording(w, 0)["block"]
    block["hash"] = "0x" + "11" * 32
    with pytest.raises(HeaderDecodeError):
        encode_block_header(block)
