from .util import keccak_256, key_digest
from .rlp_codec import decode as rlp_decode, encode as rlp_encode
from .mpt_node import Branch, Extension, Leaf, key_to_nibbles, parse_node
from .mpt_proof import verify_key, verify_proof
from .chain import VerifiedChain, assemble
from .witness import check_witness, public_inputs, shape, unshape
from .errors import (SlotProofError, DataIntegrityError, ConfigurationError, MalformedEncoding, InvalidNodeShape,
                     HashLinkageBroken, PathMismatch, KeyNotFound, ProofTooDeep, HeaderDecodeError,
                     AccountProofFailed, StorageProofFailed, CapacityExceeded)
