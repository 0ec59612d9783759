from remerkleable.complex import Container
from remerkleable.byte_arrays import Bytes32, ByteVector
from remerkleable.basic import uint64, uint256


class Address(ByteVector[20]):
    pass


# Value stored in the state trie under keccak(address).
# RLP form: [nonce, balance, storageRoot, codeHash]
class AccountRecord(Container):
    nonce: uint64
    balance: uint256
    storage_root: Bytes32
    code_hash: Bytes32
