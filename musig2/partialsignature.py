from __future__ import annotations
from base64 import b64decode
from musig2.abstractclasses import AbstractAggregatedKey, AbstractPartialSignature
from musig2.constants import NUMBER_OF_NONCES
from musig2.helpers import (
    SCALAR_ONE, aggregate_points, bytes_are_same, expand_signing_key, H_bind,
    H_sig, validate_point, validate_scalar
)
from musig2.noncebundle import NonceBundle
from musig2.protocol import ErrorKind, ProtocolError
from nacl.signing import SigningKey
import logging
import nacl.bindings


logger = logging.getLogger(__name__)


class PartialSignature(AbstractPartialSignature):
    """A class that handles creation, serialization, and deserialization of
        partial signatures used to create MuSig2 aggregate signatures.
    """
    def __init__(self, data: dict) -> None:
        """Initialize an instance with dict.
            At a minimum data should include s_i key with base64-encoded value
            of 32 bytes; key of R with base64-encoded value of 32 bytes is
            optional.
        """
        if not isinstance(data, dict):
            raise TypeError('data must be type dict')

        if 's_i' in data:
            self.s_i = data['s_i'] if type(data['s_i']) is bytes else b64decode(data['s_i'])
        if 'R' in data:
            self.R = data['R'] if type(data['R']) is bytes else b64decode(data['R'])

    def __bytes__(self) -> bytes:
        """Result of calling bytes() on an instance."""
        if self.R is not None:
            return self.s_i + self.R
        return self.s_i

    @classmethod
    def from_bytes(cls, data: bytes) -> PartialSignature:
        """Deserializes output from __bytes__."""
        if type(data) is not bytes:
            raise TypeError('data must be bytes of len 32 or 64')

        if len(data) not in (32, 64):
            raise ValueError('data must be bytes of len 32 or 64')

        new_data = {
            's_i': data[:32]
        }

        if len(data) == 64:
            new_data['R'] = data[32:]

        return cls(new_data)

    @classmethod
    def create(cls, nonces_from_other_parties: list[NonceBundle|list[bytes]],
            my_nonces: NonceBundle, agg_key: AbstractAggregatedKey,
            skey: SigningKey, M: bytes) -> PartialSignature:
        """Create a new instance from the public nonces received from every
            other participant, the NonceBundle of the participant (my_nonces),
            the AggregatedKey of the participant (agg_key), the SigningKey of
            the participant (skey), and the message (M). my_nonces is
            consumed and cannot be used again.
        """
        if type(nonces_from_other_parties) not in (list, tuple):
            raise TypeError('nonces_from_other_parties must be list or tuple')
        if not isinstance(my_nonces, NonceBundle):
            raise TypeError('my_nonces must be a NonceBundle')
        if not isinstance(agg_key, AbstractAggregatedKey):
            raise TypeError('agg_key must be an AggregatedKey')
        if not isinstance(skey, SigningKey):
            raise TypeError('skey must be a SigningKey')
        if type(M) is not bytes:
            raise TypeError('M must be bytes')
        if agg_key.musig_coefficient is None:
            raise ValueError('agg_key must include the musig_coefficient')
        if agg_key.vkey is not None and agg_key.vkey != skey.verify_key:
            raise ProtocolError('agg_key was not computed for this skey', ErrorKind.KEY_NOT_IN_SET)
        if my_nonces.consumed:
            raise ProtocolError('NonceBundle has already been used', ErrorKind.NONCE_REUSE)
        if my_nonces.r is None:
            raise ValueError('my_nonces must include the secret values')

        others = [cls.parse_nonces(n) for n in nonces_from_other_parties]

        # sum up the public nonces of all parties slot by slot
        R = my_nonces.public()
        for n in others:
            R = R + n

        X = agg_key.agg_public_key
        b = H_bind(X, R.R, M)
        r = my_nonces.consume()

        # effective nonce: sum of b^j * R_j and b^j * r_j
        R_eff = R.R[0]
        r_eff = r[0]
        b_j = SCALAR_ONE
        for j in range(1, NUMBER_OF_NONCES):
            b_j = nacl.bindings.crypto_core_ed25519_scalar_mul(b_j, b)
            R_eff = aggregate_points([R_eff,
                nacl.bindings.crypto_scalarmult_ed25519_noclamp(b_j, R.R[j])])
            r_eff = nacl.bindings.crypto_core_ed25519_scalar_add(r_eff,
                nacl.bindings.crypto_core_ed25519_scalar_mul(b_j, r[j]))

        # challenge and partial signature: s_i = e * a_i * x_i + r_eff
        x_i, _ = expand_signing_key(skey)
        e = H_sig(R_eff, X, M)
        s_i = nacl.bindings.crypto_core_ed25519_scalar_mul(e, agg_key.musig_coefficient)
        s_i = nacl.bindings.crypto_core_ed25519_scalar_mul(s_i, x_i)
        s_i = nacl.bindings.crypto_core_ed25519_scalar_add(s_i, r_eff)

        logger.debug('made partial signature over nonces from %d parties', len(others) + 1)

        return cls({
            's_i': s_i,
            'R': R_eff,
        })

    @classmethod
    def parse_nonces(cls, nonces: NonceBundle|list[bytes]|tuple[bytes, ...]) -> NonceBundle:
        """Normalize the public nonces received from another party into a
            public NonceBundle, validating the count and every point.
        """
        if isinstance(nonces, NonceBundle):
            if nonces.R is None:
                raise ValueError('NonceBundle must include public points')
            return nonces.public()

        if type(nonces) not in (list, tuple):
            raise TypeError('each set of nonces must be a NonceBundle or list/tuple of bytes')
        if len(nonces) != NUMBER_OF_NONCES:
            raise ProtocolError(f'received {len(nonces)} nonces instead of {NUMBER_OF_NONCES}',
                ErrorKind.NONCE_COUNT_MISMATCH)

        return NonceBundle({'R': tuple([validate_point(R, 'each nonce') for R in nonces])})

    def public(self) -> PartialSignature:
        """Return a copy of the instance with only the public value (s_i)."""
        return self.__class__({'s_i': self.s_i})

    def matches(self, other: PartialSignature) -> bool:
        """Check whether other was made over the same effective nonce point.
            Returns True if either instance lacks R.
        """
        if self.R is None or other.R is None:
            return True
        return bytes_are_same(self.R, other.R)

    @property
    def s_i(self) -> bytes|None:
        """The partial signature scalar."""
        return self._s_i if hasattr(self, '_s_i') else None

    @s_i.setter
    def s_i(self, data: bytes):
        """The partial signature scalar."""
        if type(data) is not bytes:
            raise TypeError('data must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('data must be bytes of len 32')
        validate_scalar(data, 's_i')

        self['s_i'] = data

    @property
    def R(self) -> bytes|None:
        """The effective aggregate nonce point."""
        return self._R if hasattr(self, '_R') else None

    @R.setter
    def R(self, data: bytes):
        """The effective aggregate nonce point."""
        if type(data) is not bytes:
            raise TypeError('data must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('data must be bytes of len 32')
        validate_point(data, 'R')

        self['R'] = data
