import json
from typing import Any, Dict, List, Optional, Protocol

from .errors import ConfigurationError
from .header import encode_block_header
from .types import Address, Bytes32
from .util import decode_hex, decode_quantity


# Supplies the raw data the chain is verified from. Nothing it returns is trusted.
class ProofSource(Protocol):
    def block_header(self, block_number: int) -> bytes:
        raise NotImplementedError

    def account_proof(self, addr: Address, block_number: int) -> List[bytes]:
        raise NotImplementedError

    def storage_proof(self, addr: Address, key: Bytes32, block_number: int) -> List[bytes]:
        raise NotImplementedError


class RecordedSource(ProofSource):
    """Replays a recorded JSON-RPC session.

    The recording is a JSON object with the result of eth_getBlockByNumber under "block"
    and the result of eth_getProof for one address and at least one slot under "proof".
    It may also carry eth_getStorageAt results under "storageAt", keyed by slot.
    """
    block: Dict[str, Any]
    proof: Dict[str, Any]
    storage_at: Dict[str, str]

    def __init__(self, block: Dict[str, Any], proof: Dict[str, Any], storage_at: Optional[Dict[str, str]] = None):
        self.block = block
        self.proof = proof
        self.storage_at = storage_at or {}

    @staticmethod
    def load(path: str) -> "RecordedSource":
        with open(path, "rt", encoding="utf8") as f:
            try:
                obj = json.load(f)
            except ValueError as e:
                raise ConfigurationError("recording %s is not valid JSON: %s" % (path, e)) from e
        if not isinstance(obj, dict) or "block" not in obj or "proof" not in obj:
            raise ConfigurationError("recording %s needs a \"block\" and a \"proof\" entry" % path)
        return RecordedSource(obj["block"], obj["proof"], obj.get("storageAt"))

    def block_number(self) -> int:
        return decode_quantity(self.block["number"])

    def _check_block(self, block_number: int) -> None:
        if block_number != self.block_number():
            raise ConfigurationError("recording is of block %d, not block %d" % (self.block_number(), block_number))

    def block_header(self, block_number: int) -> bytes:
        self._check_block(block_number)
        return encode_block_header(self.block)

    def _check_address(self, addr: Address) -> None:
        recorded = decode_hex(self.proof["address"])
        if recorded != bytes(addr):
            raise ConfigurationError("recording has a proof for %s, not %s" % (recorded.hex(), bytes(addr).hex()))

    def account_proof(self, addr: Address, block_number: int) -> List[bytes]:
        self._check_block(block_number)
        self._check_address(addr)
        return [decode_hex(node) for node in self.proof["accountProof"]]

    def storage_proof(self, addr: Address, key: Bytes32, block_number: int) -> List[bytes]:
        self._check_block(block_number)
        self._check_address(addr)
        for entry in self.proof["storageProof"]:
            # keys may be recorded as compact quantities, e.g. "0x0"
            if decode_quantity(entry["key"]) == int.from_bytes(bytes(key), byteorder='big'):
                return [decode_hex(node) for node in entry["proof"]]
        raise ConfigurationError("recording has no storage proof for slot %s" % bytes(key).hex())

    def recorded_slot_value(self, key: Bytes32) -> Optional[bytes]:
        """The eth_getStorageAt result for the slot, left-padded to 32 bytes, if it was recorded."""
        for k, v in self.storage_at.items():
            if decode_quantity(k) == int.from_bytes(bytes(key), byteorder='big'):
                return decode_hex(v).rjust(32, b'\x00')
        return None
