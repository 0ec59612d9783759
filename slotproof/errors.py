"""
Exception hierarchy for slotproof.

Every error is terminal for the run that produced it, nothing is retried.

- DataIntegrityError: the supplied header or proof data is malformed or does not
  link up. Retrying with the same data can never succeed.
- ConfigurationError: the run was configured wrongly (target sizes, witness
  capacity). The caller must change the configuration and rerun the pipeline.
"""
from typing import Optional


class SlotProofError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DataIntegrityError(SlotProofError):
    """Raised when input data fails decoding or verification.

    ``index`` is the proof entry and ``depth`` the number of key nibbles consumed
    at the point of failure, when the error happened inside a trie walk.
    """

    def __init__(self, message: str, index: Optional[int] = None, depth: Optional[int] = None):
        super().__init__(message)
        self.index = index
        self.depth = depth

    def __str__(self) -> str:
        if self.index is None:
            return self.message
        return "%s (proof node %d, nibble %d)" % (self.message, self.index, self.depth or 0)


class ConfigurationError(SlotProofError):
    pass


class MalformedEncoding(DataIntegrityError):
    pass


class InvalidNodeShape(DataIntegrityError):
    pass


class HashLinkageBroken(DataIntegrityError):
    pass


class PathMismatch(DataIntegrityError):
    pass


class KeyNotFound(DataIntegrityError):
    pass


class ProofTooDeep(DataIntegrityError):
    pass


class HeaderDecodeError(DataIntegrityError):
    pass


class StageFailed(DataIntegrityError):
    """A trie proof stage of the chain failed. The lower level error is kept in ``cause``."""
    stage = ""

    def __init__(self, cause: DataIntegrityError):
        super().__init__("%s proof failed: %s" % (self.stage, cause.message), cause.index, cause.depth)
        self.cause = cause


class AccountProofFailed(StageFailed):
    stage = "account"


class StorageProofFailed(StageFailed):
    stage = "storage"


class CapacityExceeded(ConfigurationError):
    """The witness capacity is too small for the data. Raise the limit and rerun."""

    def __init__(self, field: str, actual: int, limit: int):
        super().__init__("%s needs %d but capacity is %d" % (field, actual, limit))
        self.field = field
        self.actual = actual
        self.limit = limit
