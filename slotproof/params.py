
# Every nibble of a 32 byte key can take at most one trie node to resolve.
MAX_PROOF_DEPTH = 64

KEY_BYTES = 32
ADDRESS_BYTES = 20

# Index of the state root in the RLP list of a block header.
# [parentHash, ommersHash, beneficiary, stateRoot, transactionsRoot, ...]
HEADER_STATE_ROOT_INDEX = 3
HEADER_MIN_FIELDS = 15  # pre-London headers have 15 fields, later forks append more

# Default witness capacity, as compiled into the circuit.
DEFAULT_MAX_NODES = 10  # deepest account proof the circuit accepts
DEFAULT_MAX_STORAGE_NODES = 9  # deepest storage proof the circuit accepts
DEFAULT_MAX_NODE_BYTES = 532  # a full branch node is at most 532 bytes
DEFAULT_MAX_HEADER_BYTES = 590

# 4 fields: nonce (<= 9 bytes), balance (<= 33), storage root (33), code hash (33), plus list prefix
MAX_ACCOUNT_VALUE_BYTES = 128
