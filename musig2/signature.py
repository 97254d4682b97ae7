from __future__ import annotations
from base64 import b64decode
from musig2.abstractclasses import AbstractSignature, AbstractPartialSignature
from musig2.helpers import bytes_are_same, validate_point, validate_scalar
from musig2.protocol import ErrorKind, ProtocolError
import logging
import nacl.bindings


logger = logging.getLogger(__name__)


class Signature(AbstractSignature):
    """A class that sums PartialSignatures into a full Signature. The bytes
        of an instance (R + s + M) are an Ed25519 signed message.
    """
    def __init__(self, data: dict = None) -> None:
        """Initialize an instance. Initialize with `{'s': bytes, 'R': bytes}`
            and optionally `'M': bytes` to restore a signature. Use the create
            method to make a new signature from partial signatures.
        """
        if not isinstance(data, dict):
            raise TypeError('data for initialization must be of type dict')

        if 'R' in data:
            self.R = data['R'] if type(data['R']) is bytes else b64decode(data['R'])
        if 's' in data:
            self.s = data['s'] if type(data['s']) is bytes else b64decode(data['s'])
        if 'M' in data:
            self.M = data['M'] if type(data['M']) is bytes else b64decode(data['M'])

    def __bytes__(self) -> bytes:
        """Result of calling bytes() on an instance; i.e. serialize to bytes."""
        return self.R + self.s + (self.M or b'')

    @classmethod
    def from_bytes(cls, data: bytes) -> Signature:
        """Deserializes output from __bytes__."""
        if type(data) is not bytes:
            raise TypeError('data must be bytes with length at least 64')
        if len(data) < 64:
            raise ValueError('data must be bytes with length at least 64')

        R = data[:32]
        s = data[32:64]
        M = data[64:]

        return cls({
            'R': R,
            's': s,
            'M': M
        })

    @classmethod
    def create(cls, my_partial_sig: AbstractPartialSignature,
            parts: list[AbstractPartialSignature|bytes], M: bytes|None = None) -> Signature:
        """Create a new instance from the partial signature of the participant
            (my_partial_sig), the partial signatures (or bare s_i scalars) of
            every other participant (parts), and optionally the message (M).
            Raises ProtocolError if any part was made over a different R.
        """
        if not isinstance(my_partial_sig, AbstractPartialSignature):
            raise TypeError('my_partial_sig must be a PartialSignature')
        if my_partial_sig.R is None:
            raise ValueError('my_partial_sig must include the aggregate nonce point')
        if type(parts) not in (list, tuple):
            raise TypeError('parts must be list or tuple of PartialSignature objects or bytes')

        scalars = []
        for p in parts:
            if isinstance(p, AbstractPartialSignature):
                if p.R is not None and not bytes_are_same(p.R, my_partial_sig.R):
                    raise ProtocolError('partial signature made over a different R',
                        ErrorKind.MISMATCHED_NONCE)
                scalars.append(p.s_i)
            elif type(p) is bytes:
                scalars.append(validate_scalar(p, 'each partial signature'))
            else:
                raise TypeError('parts must be list or tuple of PartialSignature objects or bytes')

        # sum the partial signatures
        s = my_partial_sig.s_i
        for s_i in scalars:
            s = nacl.bindings.crypto_core_ed25519_scalar_add(s, s_i)

        logger.debug('aggregated %d partial signatures', len(scalars) + 1)

        data = {
            'R': my_partial_sig.R,
            's': s,
        }
        if M is not None:
            data['M'] = M

        return cls(data)

    @property
    def R(self) -> bytes|None:
        """Effective aggregate nonce point."""
        return self._R if hasattr(self, '_R') else None

    @R.setter
    def R(self, data: bytes):
        """Effective aggregate nonce point."""
        if type(data) is not bytes:
            raise TypeError('R must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('R must be bytes of len 32')
        validate_point(data, 'R')

        self['R'] = data

    @property
    def s(self) -> bytes|None:
        """Aggregate signature made from summing partial signatures."""
        return self._s if hasattr(self, '_s') else None

    @s.setter
    def s(self, data: bytes):
        """Aggregate signature made from summing partial signatures."""
        if type(data) is not bytes:
            raise TypeError('s must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('s must be bytes of len 32')
        validate_scalar(data, 's')

        self['s'] = data

    @property
    def M(self) -> bytes|None:
        """Message that was signed."""
        return self._M if hasattr(self, '_M') else None

    @M.setter
    def M(self, data: bytes):
        """Message that was signed."""
        if type(data) not in (bytes, str):
            raise TypeError('M must be bytes or str')

        self['M'] = data if type(data) is bytes else bytes(data, 'utf-8')
