from __future__ import annotations
from base64 import b64decode
from musig2.abstractclasses import AbstractAggregatedKey, AbstractSignature
from musig2.helpers import (
    SCALAR_ONE, aggregate_points, bytes_are_same, H_agg, validate_point, validate_scalar
)
from musig2.protocol import ErrorKind, ProtocolError
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
import logging
import nacl.bindings


logger = logging.getLogger(__name__)


class AggregatedKey(AbstractAggregatedKey):
    """A class that aggregates the public keys of the participants into a
        single key and records the musig coefficient of the participant
        using the instance. Also verifies Signatures.
    """

    def __init__(self, data: dict = None) -> None:
        """Initialize the instance using the given data.
            Initialize with `{'vkeys': list_of_vkeys, 'vkey': VerifyKey}` to
            aggregate participant keys. Initialize with
            `{'agg_public_key': bytes, 'musig_coefficient': bytes}` to restore
            enough to make partial signatures, or with just
            `{'agg_public_key': bytes}` to restore enough to verify signatures.
        """
        if data is None:
            raise ValueError('cannot instantiate empty AggregatedKey')

        if type(data) is not dict:
            raise TypeError('input data must be dict')

        if 'vkeys' in data:
            vkeys = [vk if isinstance(vk, VerifyKey) else VerifyKey(vk if type(vk) is bytes else b64decode(vk))
                for vk in data['vkeys']]
            self.vkeys = tuple([VerifyKey(vk) for vk in self.sort_keys(vkeys)])
        if 'vkey' in data:
            vkey = data['vkey']
            self.vkey = vkey if isinstance(vkey, VerifyKey) else VerifyKey(vkey if type(vkey) is bytes else b64decode(vkey))
        if 'agg_public_key' in data:
            X = data['agg_public_key']
            self.agg_public_key = X if type(X) is bytes else b64decode(X)
        if 'musig_coefficient' in data:
            a = data['musig_coefficient']
            self.musig_coefficient = a if type(a) is bytes else b64decode(a)

        if len(self.vkeys) > 0:
            X, a = self.aggregate_public_keys(self.vkeys, self.vkey)
            if self.agg_public_key is not None and not bytes_are_same(X, self.agg_public_key):
                raise ValueError('serialized aggregate key does not match the key set')
            if a is not None and self.musig_coefficient is not None \
                    and not bytes_are_same(a, self.musig_coefficient):
                raise ValueError('serialized aggregate key does not match the key set')
            self.agg_public_key = X
            if a is not None:
                self.musig_coefficient = a

    def __bytes__(self) -> bytes:
        """Serialize to bytes by calling bytes() on an instance."""
        if len(self.vkeys) > 0 and self.vkey is not None:
            return self.agg_public_key + self.musig_coefficient + bytes(self.vkey) + \
                b''.join([bytes(vk) for vk in self.vkeys])
        if self.musig_coefficient is not None:
            return self.agg_public_key + self.musig_coefficient
        return self.agg_public_key

    @classmethod
    def from_bytes(cls, data: bytes) -> AggregatedKey:
        """Deserialize an instance from bytes."""
        if type(data) is not bytes:
            raise TypeError('cannot call from_bytes with non-bytes param')
        if len(data) not in (32, 64) and (len(data) < 128 or len(data) % 32 > 0):
            raise ValueError('byte length must be 32, 64, or a multiple of 32 >= 128')

        if len(data) == 32:
            return cls({'agg_public_key': data})

        if len(data) == 64:
            return cls({'agg_public_key': data[:32], 'musig_coefficient': data[32:]})

        return cls({
            'agg_public_key': data[:32],
            'musig_coefficient': data[32:64],
            'vkey': data[64:96],
            'vkeys': [data[i:i+32] for i in range(96, len(data), 32)],
        })

    @classmethod
    def create(cls, vkeys: list[VerifyKey|bytes], vkey: VerifyKey|bytes) -> AggregatedKey:
        """Create a new AggregatedKey from a list or tuple of participant
            VerifyKeys and the VerifyKey of the participant using it. Raises
            ProtocolError if vkey is not a member of vkeys.
        """
        if type(vkeys) not in (list, tuple):
            raise TypeError('vkeys must be list or tuple of VerifyKey')

        for vk in [*vkeys, vkey]:
            if type(vk) not in (bytes, VerifyKey):
                raise TypeError('vkeys must be list or tuple of VerifyKey')

        return cls({
            'vkeys': tuple(vkeys),
            'vkey': vkey,
        })

    def public(self) -> AggregatedKey:
        """Return a copy of the instance with only the public value (agg_public_key)."""
        return self.__class__({
            'agg_public_key': self.agg_public_key
        })

    def verify(self, sig: AbstractSignature, M: bytes|None = None) -> bool:
        """Verify a signature is valid for this AggregatedKey using the
            standard Ed25519 verification algorithm. The message defaults to
            the one carried by the signature.
        """
        if not isinstance(sig, AbstractSignature):
            raise TypeError('sig must be a Signature')

        M = sig.M if M is None else M
        if M is None:
            raise ValueError('cannot verify a Signature without a message')

        try:
            VerifyKey(self.agg_public_key).verify(M, sig.R + sig.s)
            return True
        except BadSignatureError:
            return False

    @classmethod
    def aggregate_public_keys(cls, vkeys: list[VerifyKey|bytes],
            vkey: VerifyKey|bytes|None = None) -> tuple[bytes, bytes|None]:
        """Calculate the aggregate public key from the participant keys and
            the coefficient of vkey (or None if vkey is None).
        """
        sorted_keys = cls.sort_keys(vkeys)
        vkey = bytes(vkey) if vkey is not None else None

        if vkey is not None and vkey not in sorted_keys:
            raise ProtocolError('vkey is not a member of the key set', ErrorKind.KEY_NOT_IN_SET)

        transformed = []
        my_coefficient = None
        for key in sorted_keys:
            a_i = cls.key_coefficient(key, sorted_keys)
            transformed.append(nacl.bindings.crypto_scalarmult_ed25519_noclamp(a_i, key))
            if vkey is not None and bytes_are_same(key, vkey):
                my_coefficient = a_i

        X = aggregate_points(transformed)
        logger.debug('aggregated %d keys into %s', len(sorted_keys), X.hex())

        return (X, my_coefficient)

    @classmethod
    def sort_keys(cls, vkeys: list[VerifyKey|bytes]) -> list[bytes]:
        """Sort the participant keys into a deterministic order by their
            encodings. Raises ProtocolError for invalid or duplicate keys.
        """
        keys = [bytes(vk) if isinstance(vk, VerifyKey) else vk for vk in vkeys]

        if len(keys) < 1:
            raise ValueError('at least one participant key is required')

        for key in keys:
            validate_point(key, 'each participant key')

        keys.sort()

        for i in range(1, len(keys)):
            if keys[i] == keys[i-1]:
                raise ProtocolError('participant keys must be unique', ErrorKind.DUPLICATE_KEY)

        return keys

    @classmethod
    def second_key(cls, sorted_keys: list[bytes]) -> bytes:
        """Return the first key whose encoding is strictly greater than the
            smallest. With a single participant the only key is returned.
        """
        for key in sorted_keys[1:]:
            if key > sorted_keys[0]:
                return key
        return sorted_keys[0]

    @classmethod
    def key_coefficient(cls, vkey: VerifyKey|bytes, sorted_keys: list[bytes]) -> bytes:
        """Calculate the musig coefficient of a participant key. The second
            key always gets a coefficient of 1; every other coefficient is
            bound to the whole key set.
        """
        vkey = bytes(vkey)
        if bytes_are_same(vkey, cls.second_key(sorted_keys)):
            return SCALAR_ONE
        return H_agg(vkey, sorted_keys)

    # define some properties
    @property
    def agg_public_key(self) -> bytes|None:
        """The bytes of the aggregate public key."""
        return self._agg_public_key if hasattr(self, '_agg_public_key') else None

    @agg_public_key.setter
    def agg_public_key(self, data: bytes):
        """The bytes of the aggregate public key."""
        if type(data) is not bytes:
            raise TypeError('agg_public_key must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('agg_public_key must be bytes of len 32')
        validate_point(data, 'agg_public_key')

        self['agg_public_key'] = data

    @property
    def musig_coefficient(self) -> bytes|None:
        """The coefficient of the participant using this instance."""
        return self._musig_coefficient if hasattr(self, '_musig_coefficient') else None

    @musig_coefficient.setter
    def musig_coefficient(self, data: bytes):
        """The coefficient of the participant using this instance."""
        if type(data) is not bytes:
            raise TypeError('musig_coefficient must be bytes of len 32')
        if len(data) != 32:
            raise ValueError('musig_coefficient must be bytes of len 32')
        validate_scalar(data, 'musig_coefficient')

        self['musig_coefficient'] = data

    @property
    def vkey(self) -> VerifyKey|None:
        """The VerifyKey of the participant using this instance."""
        return self._vkey if hasattr(self, '_vkey') else None

    @vkey.setter
    def vkey(self, data: VerifyKey):
        """The VerifyKey of the participant using this instance."""
        if not isinstance(data, VerifyKey):
            raise TypeError('vkey must be VerifyKey')

        self['vkey'] = data

    @property
    def vkeys(self) -> tuple[VerifyKey, ...]:
        """Tuple of participant VerifyKeys in canonical order."""
        return self._vkeys if hasattr(self, '_vkeys') else tuple()

    @vkeys.setter
    def vkeys(self, data: list[VerifyKey]):
        """Tuple of participant VerifyKeys in canonical order."""
        if type(data) not in (list, tuple):
            raise TypeError('vkeys must be list or tuple of VerifyKeys')
        for vk in data:
            if not isinstance(vk, VerifyKey):
                raise TypeError('vkeys must be list or tuple of VerifyKeys')

        self['vkeys'] = tuple(data)
