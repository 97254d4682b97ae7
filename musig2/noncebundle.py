from __future__ import annotations
from base64 import b64decode
from musig2.abstractclasses import AbstractNonceBundle
from musig2.constants import NUMBER_OF_NONCES, RANDOM_BYTES_PER_NONCE
from musig2.helpers import (
    aggregate_points, expand_signing_key, H_non, validate_point, validate_scalar
)
from musig2.protocol import ErrorKind, ProtocolError
from nacl.signing import SigningKey
from secrets import token_bytes
from typing import Callable
import logging
import nacl.bindings


logger = logging.getLogger(__name__)


class NonceBundle(AbstractNonceBundle):
    """A class that handles generating, serializing, and deserializing the
        set of nonces a participant uses for a single signing session. Once
        the secret values have been consumed by a partial signature, the
        bundle cannot be used again.
    """

    def __init__(self, data: dict = None) -> None:
        """Initialize the instance with supplied data.
            Call NonceBundle.create to make a new NonceBundle.
            Call with `data={r:[b64val, ...]}` to restore a full NonceBundle.
            Call with `data={R:[b64val, ...]}` to restore a public NonceBundle.
        """
        if data is None:
            raise ValueError('cannot instantiate empty NonceBundle')
        if not isinstance(data, dict):
            raise TypeError('NonceBundle can be instantiated only with dict.')

        if 'R' in data:
            self.R = tuple([R if type(R) is bytes else b64decode(R) for R in data['R']])
        if 'r' in data:
            self.r = tuple([r if type(r) is bytes else b64decode(r) for r in data['r']])
            self.R = tuple([nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(r) for r in self.r])
        if data.get('consumed', False):
            if self.r is not None:
                del self['r']
            self.consumed = True

    def __bytes__(self) -> bytes:
        """Result of calling bytes() on an instance."""
        if self.r is not None:
            return b'r' + b''.join(self.r)
        if self.R is not None:
            return b''.join(self.R)
        return b''

    @classmethod
    def from_bytes(cls, data: bytes) -> NonceBundle:
        """Deserializes output from __bytes__."""
        if type(data) is not bytes:
            raise TypeError('cannot call from_bytes with non-bytes param')

        if len(data) % 32 == 1 and data[:1] == b'r':
            # restore full NonceBundle with private scalars and public points.
            return cls({'r': [data[i:i+32] for i in range(1, len(data), 32)]})

        if len(data) % 32 == 0 and len(data) > 0:
            # restore partial NonceBundle with just the public points.
            return cls({'R': [data[i:i+32] for i in range(0, len(data), 32)]})

        raise ValueError('byte length must be a multiple of 32, optionally prefixed with r')

    @classmethod
    def create(cls, skey: SigningKey, M: bytes|str|None = None,
            random_bytes: Callable[[int], bytes] = token_bytes) -> NonceBundle:
        """Create a new NonceBundle for a single signing session. Each secret
            nonce is derived from the nonce seed of skey, the optional message
            context (M), and fresh random bytes from random_bytes.
        """
        if not isinstance(skey, SigningKey):
            raise TypeError('skey must be a SigningKey')

        M = bytes(M, 'utf-8') if type(M) is str else M
        if M is not None and type(M) is not bytes:
            raise TypeError('M must be bytes, str, or None')

        _, prefix = expand_signing_key(skey)

        r = []
        for _ in range(NUMBER_OF_NONCES):
            rand = random_bytes(RANDOM_BYTES_PER_NONCE)
            if type(rand) is not bytes or len(rand) != RANDOM_BYTES_PER_NONCE:
                raise ValueError(f'random_bytes must return {RANDOM_BYTES_PER_NONCE} bytes')
            r.append(H_non(prefix, M, rand))

        logger.debug('generated NonceBundle with %d nonces', NUMBER_OF_NONCES)

        return cls({'r': tuple(r)})

    def __add__(self, other: NonceBundle) -> NonceBundle:
        """Result of the + operation between two NonceBundles: the slot-wise
            sum of their public points.
        """
        if not isinstance(other, NonceBundle):
            raise TypeError('can only add NonceBundle to NonceBundle')

        R_sum = [aggregate_points([R1, R2]) for R1, R2 in zip(self.R, other.R)]
        return NonceBundle({'R': tuple(R_sum)})

    def copy(self) -> NonceBundle:
        """Make a copy of the public points and the consumed marker. The
            secret values are never copied.
        """
        return self.__class__({'R': self.R, 'consumed': self.consumed})

    def public(self) -> NonceBundle:
        """Return a NonceBundle with only the public nonce points."""
        return self.__class__({'R': self.R})

    def consume(self) -> tuple[bytes, ...]:
        """Return the private scalars, then drop them from the instance and
            mark it as consumed. Raises ProtocolError if already consumed.
        """
        if self.consumed:
            raise ProtocolError('NonceBundle has already been used', ErrorKind.NONCE_REUSE)
        if self.r is None:
            raise ValueError('NonceBundle has no private values')

        r = self.r
        del self['r']
        self.consumed = True

        return r

    # properties
    @property
    def r(self) -> tuple[bytes, ...]|None:
        """The private scalar values."""
        return self._r if hasattr(self, '_r') else None

    @r.setter
    def r(self, value: tuple[bytes, ...]):
        """The private scalar values."""
        if type(value) not in (list, tuple):
            raise TypeError('r value must be list or tuple of bytes')
        if len(value) != NUMBER_OF_NONCES:
            raise ProtocolError(f'NonceBundle must have {NUMBER_OF_NONCES} nonces',
                ErrorKind.NONCE_COUNT_MISMATCH)
        for r in value:
            if type(r) is not bytes:
                raise TypeError('r value must be list or tuple of bytes')
            validate_scalar(r, 'each r value')

        self['r'] = tuple(value)

    @property
    def R(self) -> tuple[bytes, ...]|None:
        """The public point values."""
        return self._R if hasattr(self, '_R') else None

    @R.setter
    def R(self, value: tuple[bytes, ...]):
        """The public point values."""
        if type(value) not in (list, tuple):
            raise TypeError('R value must be list or tuple of bytes')
        if len(value) != NUMBER_OF_NONCES:
            raise ProtocolError(f'NonceBundle must have {NUMBER_OF_NONCES} nonces',
                ErrorKind.NONCE_COUNT_MISMATCH)
        for R in value:
            if type(R) is not bytes:
                raise TypeError('R value must be list or tuple of bytes')
            validate_point(R, 'each R value')

        self['R'] = tuple(value)

    @property
    def consumed(self) -> bool:
        """Whether the private values have been used for a partial signature."""
        return self._consumed if hasattr(self, '_consumed') else False

    @consumed.setter
    def consumed(self, value: bool):
        """Whether the private values have been used for a partial signature."""
        if type(value) is not bool:
            raise TypeError('consumed must be a bool')

        self['consumed'] = value
