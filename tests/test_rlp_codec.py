import pytest
import rlp

from slotproof.errors import MalformedEncoding
from slotproof.rlp_codec import decode, decode_bytes, encode


@pytest.mark.parametrize("item", [
    b"",
    b"\x00",
    b"\x7f",
    b"\x80",
    b"a" * 55,
    b"a" * 56,
    b"b" * 1024,
    [],
    [b""],
    [[], [[]], [[], [[]]]],
    [b"\x01" * 32] * 16 + [b""],
    [b"x" * 300, [b"y" * 60, b"z"]],
])
def test_canonical_round_trip(item):
    data = rlp.encode(item)
    assert decode(data) == item
    assert encode(decode(data)) == data


@pytest.mark.parametrize("data", [
    b"",  # nothing to decode
    b"\x81\x05",  # single byte below 0x80 wrapped in a prefix
    b"\xb8\x05abcde",  # long length form for a short string
    b"\xb9\x00\x40" + b"a" * 64,  # length with a leading zero byte
    b"\xb8",  # length of length missing
    b"\x83ab",  # claims more bytes than remain
    b"\x80\x00",  # trailing bytes
    b"\xc2\x83abc",  # list item overruns the list payload
    b"\xf8\x02\x01\x02",  # long list form for a short list
    b"\xc3\x01\x02",  # list claims more bytes than remain
])
def test_malformed(data):
    with pytest.raises(MalformedEncoding):
        decode(data)


def test_decode_bytes_rejects_list():
    assert decode_bytes(rlp.encode(b"\x12\x34")) == b"\x12\x34"
    with pytest.raises(MalformedEncoding):
        decode_bytes(rlp.encode([b"\x12"]))
