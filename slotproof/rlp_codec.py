from typing import List, Tuple, Union

import rlp

from .errors import MalformedEncoding

# An RLP item is either a byte string or a list of items, never both.
RlpItem = Union[bytes, List["RlpItem"]]


# Reads the prefix at `start`. Returns (is_list, payload_start, payload_end).
# Rejects every non-canonical length encoding: the decoder only accepts what `encode` produces.
def _read_prefix(data: bytes, start: int) -> Tuple[bool, int, int]:
    if start >= len(data):
        raise MalformedEncoding("expected item at offset %d, but input ends" % start)
    first_byte = data[start]
    if first_byte <= 0x7f:
        # single byte, encoded as-is
        return False, start, start + 1

    is_list = first_byte >= 0xc0
    short_base = 0xc0 if is_list else 0x80
    long_base = 0xf7 if is_list else 0xb7
    if first_byte <= long_base:
        length = first_byte - short_base
        payload_start = start + 1
        if not is_list and length == 1:
            if payload_start < len(data) and data[payload_start] <= 0x7f:
                raise MalformedEncoding("single byte 0x%02x wrapped in a string prefix at offset %d"
                                        % (data[payload_start], start))
    else:
        length_of_length = first_byte - long_base
        payload_start = start + 1 + length_of_length
        if payload_start > len(data):
            raise MalformedEncoding("not enough bytes for length of length at offset %d" % start)
        if data[start + 1] == 0:
            raise MalformedEncoding("length with leading zero byte at offset %d" % start)
        length = int.from_bytes(data[start + 1:payload_start], byteorder='big')
        if length <= 55:
            raise MalformedEncoding("long length form used for short payload of %d bytes at offset %d"
                                    % (length, start))

    payload_end = payload_start + length
    if payload_end > len(data):
        raise MalformedEncoding("prefix at offset %d claims %d bytes, only %d remain"
                                % (start, length, len(data) - payload_start))
    return is_list, payload_start, payload_end


def _consume_item(data: bytes, start: int) -> Tuple[RlpItem, int]:
    is_list, payload_start, payload_end = _read_prefix(data, start)
    if not is_list:
        return data[payload_start:payload_end], payload_end

    out = []
    pos = payload_start
    while pos < payload_end:
        item, pos = _consume_item(data, pos)
        # items must stay within the list payload
        if pos > payload_end:
            raise MalformedEncoding("list item overruns list payload ending at offset %d" % payload_end)
        out.append(item)
    return out, payload_end


def decode(data: bytes) -> RlpItem:
    data = bytes(data)
    if len(data) == 0:
        raise MalformedEncoding("empty input")
    item, end = _consume_item(data, 0)
    if end != len(data):
        raise MalformedEncoding("%d trailing bytes after item" % (len(data) - end))
    return item


def encode(item: RlpItem) -> bytes:
    return rlp.encode(item)


def decode_bytes(data: bytes) -> bytes:
    # decode, requiring a byte string rather than a list
    item = decode(data)
    if not isinstance(item, bytes):
        raise MalformedEncoding("expected byte string, got list of %d items" % len(item))
    return item
