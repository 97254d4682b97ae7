from __future__ import annotations
from abc import abstractmethod
from base64 import b64encode
from musig2.helpers import bytes_are_same
from nacl.signing import SigningKey, VerifyKey


class ExtendedDict(dict):
    """ExtendedDict handles some serialization/deserialization."""
    def __setitem__(self, key, value) -> None:
        """Method that is called when `instance[key]=value` is used.
            Any key that is not a property of the instance will not be set.
            Any key that is set will have its values encoded to be maximally
            compatible with json serialization.
        """
        if hasattr(self, key):
            setattr(self, f'_{key}', value)
            if type(value) in (int, str, bool):
                super().__setitem__(key, value)
            elif type(value) is bytes:
                super().__setitem__(key, b64encode(value).decode())
            elif type(value) in (tuple, list):
                val = []
                for item in value:
                    if type(item) in (int, str):
                        val.append(item)
                    else:
                        val.append(b64encode(item if type(item) is bytes else bytes(item)).decode())
                super().__setitem__(key, tuple(val))
            elif type(value) is dict:
                nv = {}
                for name in value:
                    val = value[name]
                    if type(name) not in (str, int):
                        name = b64encode(name if type(name) is bytes else bytes(name)).decode()
                    if type(val) not in (str, int):
                        val = b64encode(val if type(val) is bytes else bytes(val)).decode()
                    nv[name] = val
                super().__setitem__(key, nv)
            else:
                super().__setitem__(key, b64encode(bytes(value)).decode())

    def __delitem__(self, key) -> None:
        """Method that is called when `del instance[key]` is used. Removes
            both the serialized value and the underlying attribute.
        """
        if hasattr(self, f'_{key}'):
            delattr(self, f'_{key}')
        if key in self:
            super().__delitem__(key)

    @abstractmethod
    def __bytes__(self) -> bytes:
        """Result of calling bytes() on instance; i.e. serializes instance as
            bytes. Must be implemented for __str__ and from_str to function.
        """
        ...

    def __str__(self) -> str:
        """Result of calling str() on instance; serializes instance as a
            hexidecimal str based upon the bytes serialization. Relies upon
            __bytes__ to function.
        """
        return bytes(self).hex()

    def __hash__(self) -> int:
        """Result of calling hash() on instance; allows inclusion in sets and
            use as a key in a dict (of dubious worth, but technically possible.)
        """
        return hash(bytes(self))

    def __eq__(self, other) -> bool:
        """Timing-attack safe comparison."""
        if not isinstance(other, self.__class__):
            return False
        return bytes_are_same(bytes(self), bytes(other))

    @classmethod
    @abstractmethod
    def from_bytes(cls, data: bytes) -> ExtendedDict:
        """Deserializes output from __bytes__. Must be implemented for from_str
            to function.
        """
        ...

    @classmethod
    def from_str(cls, data: str) -> ExtendedDict:
        """Deserializes output from __str__, i.e. hexidecimal str of __bytes__
            output. Relies upon from_bytes to function.
        """
        return cls.from_bytes(bytes.fromhex(data))


class AbstractAggregatedKey(ExtendedDict):
    @classmethod
    @abstractmethod
    def create(cls, vkeys: list[VerifyKey|bytes], vkey: VerifyKey|bytes) -> AbstractAggregatedKey:
        """Create a new instance from a list/tuple of participant VerifyKeys
            and the VerifyKey of the participant using the instance. This must
            derive the aggregate public key and the musig coefficient of vkey.
        """
        ...

    @abstractmethod
    def public(self) -> AbstractAggregatedKey:
        """Return a copy of the instance with only the aggregate public key."""
        ...

    @abstractmethod
    def verify(self, sig: AbstractSignature) -> bool:
        """Check if a given signature is valid for the aggregate public key."""
        ...

    @classmethod
    @abstractmethod
    def sort_keys(cls, vkeys: list[VerifyKey|bytes]) -> list[bytes]:
        """Sort the participant keys by their canonical encoding."""
        ...

    @classmethod
    @abstractmethod
    def second_key(cls, sorted_keys: list[bytes]) -> bytes:
        """Find the key exempted from hashing (coefficient 1)."""
        ...

    @classmethod
    @abstractmethod
    def key_coefficient(cls, vkey: bytes, sorted_keys: list[bytes]) -> bytes:
        """Calculate the musig coefficient of a participant key."""
        ...

    @property
    @abstractmethod
    def agg_public_key(self) -> bytes:
        """The bytes of the aggregate public key."""
        ...

    @property
    @abstractmethod
    def musig_coefficient(self) -> bytes:
        """The coefficient of the participant using this instance."""
        ...

    @property
    @abstractmethod
    def vkey(self) -> VerifyKey|None:
        """The VerifyKey of the participant using this instance."""
        ...

    @property
    @abstractmethod
    def vkeys(self) -> tuple[VerifyKey, ...]:
        """Tuple of participant VerifyKeys in canonical order."""
        ...


class AbstractNonceBundle(ExtendedDict):
    @classmethod
    @abstractmethod
    def create(cls, skey: SigningKey, M: bytes|None = None, random_bytes=None) -> AbstractNonceBundle:
        """Create a fresh bundle of secret/public nonce pairs for one session."""
        ...

    @abstractmethod
    def __add__(self, other: AbstractNonceBundle) -> AbstractNonceBundle:
        ...

    @abstractmethod
    def copy(self) -> AbstractNonceBundle:
        """Make a copy of the instance without the secret scalars (r)."""
        ...

    @abstractmethod
    def public(self) -> AbstractNonceBundle:
        """Return a copy of the instance with only the public points (R)."""
        ...

    @abstractmethod
    def consume(self) -> tuple[bytes, ...]:
        """Return the secret scalars and mark the instance as used."""
        ...

    @property
    @abstractmethod
    def r(self) -> tuple[bytes, ...]|None:
        """The private scalar values."""
        ...

    @property
    @abstractmethod
    def R(self) -> tuple[bytes, ...]|None:
        """The public point values."""
        ...

    @property
    @abstractmethod
    def consumed(self) -> bool:
        """Whether the secret values have been used to make a partial signature."""
        ...


class AbstractPartialSignature(ExtendedDict):
    @classmethod
    @abstractmethod
    def create(cls, nonces_from_other_parties: list, my_nonces: AbstractNonceBundle,
            agg_key: AbstractAggregatedKey, skey: SigningKey, M: bytes) -> AbstractPartialSignature:
        """Create a new instance from the public nonces of the other parties,
            the NonceBundle of the participant, the AggregatedKey, the
            SigningKey of the participant, and the message (M).
        """
        ...

    @abstractmethod
    def public(self) -> AbstractPartialSignature:
        """Return a copy of the instance with only the public value (s_i)."""
        ...

    @property
    @abstractmethod
    def s_i(self) -> bytes:
        """The partial signature scalar."""
        ...

    @property
    @abstractmethod
    def R(self) -> bytes:
        """The effective aggregate nonce point."""
        ...


class AbstractSignature(ExtendedDict):
    @classmethod
    @abstractmethod
    def create(cls, my_partial_sig: AbstractPartialSignature,
            parts: list[AbstractPartialSignature|bytes], M: bytes|None = None) -> AbstractSignature:
        """Create a new instance by summing the partial signature of the
            participant with the partial signatures of the other parties.
        """
        ...

    @property
    @abstractmethod
    def R(self) -> bytes:
        """Effective aggregate nonce point."""
        ...

    @property
    @abstractmethod
    def s(self) -> bytes:
        """Aggregate signature made from summing partial signatures."""
        ...

    @property
    @abstractmethod
    def M(self) -> bytes|None:
        """Message that was signed."""
        ...


class AbstractSingleSigKey(ExtendedDict):
    @abstractmethod
    def sign_message(self, M: bytes) -> AbstractSignature:
        """Sign a message (M) and return a signature."""
        ...

    @property
    @abstractmethod
    def skey(self) -> SigningKey|None:
        """The SigningKey used for creating signatures."""
        ...

    @property
    @abstractmethod
    def vkey(self) -> AbstractAggregatedKey|None:
        """The aggregate public key for verifying signatures."""
        ...


class AbstractSigningSession:
    @abstractmethod
    def generate_nonces(self, random_bytes=None) -> AbstractNonceBundle:
        """Generate the NonceBundle for this session and return its public half."""
        ...

    @abstractmethod
    def add_nonce(self, nonce: AbstractNonceBundle, vkey: VerifyKey) -> None:
        """Add a public NonceBundle from a participant identified by the VerifyKey."""
        ...

    @abstractmethod
    def make_partial_signature(self) -> AbstractPartialSignature:
        """Create a partial signature to be broadcast to other participants."""
        ...

    @abstractmethod
    def add_partial_signature(self, sig: AbstractPartialSignature, vkey: VerifyKey) -> None:
        """Add a PartialSignature from a participant identified by the VerifyKey."""
        ...

    @abstractmethod
    def abort(self, reason: str) -> None:
        """Move the session into the terminal ABORTED state."""
        ...
