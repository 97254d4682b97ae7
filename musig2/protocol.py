from __future__ import annotations
from enum import Enum


class ProtocolState(Enum):
    """An enum containing the byte representations of the states a
        SigningSession passes through. No state may be skipped.
    """
    UNINITIALIZED = 0x00
    NONCES_GENERATED = 0x10
    NONCES_EXCHANGED = 0x20
    PARTIAL_SIGNED = 0x30
    AGGREGATED = 0xe0
    ABORTED = 0xff


class ErrorKind(Enum):
    """An enum of the distinct failure conditions surfaced by ProtocolError."""
    KEY_NOT_IN_SET = 0x01
    DUPLICATE_KEY = 0x02
    NONCE_COUNT_MISMATCH = 0x03
    MALFORMED_POINT = 0x04
    MALFORMED_SCALAR = 0x05
    MISMATCHED_NONCE = 0x06
    NONCE_REUSE = 0x07
    UNKNOWN_PARTICIPANT = 0x08
    INVALID_STATE = 0x09


class ProtocolError(Exception):
    """A custom error raised for protocol violations. The kind attribute can
        be inspected to decide whether to abort the session, request a
        retransmission, or reject a peer.
    """
    def __init__(self, message: str, kind: ErrorKind) -> None:
        self.message = message
        self.kind = kind
        super().__init__(message)

    def __bytes__(self) -> bytes:
        """Result of calling bytes() on instance; i.e. serialize to bytes."""
        return self.kind.value.to_bytes(1, 'little') + bytes(self.message, 'utf-8')

    def __str__(self) -> str:
        """Result of calling str() on an instance."""
        return self.kind.name + ':' + self.message

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return bytes(self) == bytes(other)

    def __hash__(self) -> int:
        """Result of calling hash() on instance; allows inclusion in sets and
            use as a key in a dict.
        """
        return hash(bytes(self))

    @classmethod
    def from_bytes(cls, bts: bytes) -> ProtocolError:
        """Deserializes output from __bytes__."""
        kind = ErrorKind(bts[0])
        message = str(bts[1:], 'utf-8')
        return cls(message, kind)

    @classmethod
    def from_str(cls, s: str) -> ProtocolError:
        """Deserializes output from __str__."""
        parts = s.split(':')
        kind = ErrorKind[parts[0]]
        message = ':'.join(parts[1:])
        return cls(message, kind)
