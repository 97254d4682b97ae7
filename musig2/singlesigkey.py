from __future__ import annotations
from base64 import b64decode
from musig2.abstractclasses import AbstractSingleSigKey
from musig2.aggregatedkey import AggregatedKey
from musig2.noncebundle import NonceBundle
from musig2.partialsignature import PartialSignature
from musig2.signature import Signature
from nacl.signing import SigningKey
import nacl.bindings


class SingleSigKey(AbstractSingleSigKey):
    """A simple-to-use class that generates 1-of-1 MuSig2 signatures. With a
        single participant the aggregate key is the participant VerifyKey,
        so the signatures also verify against skey.verify_key.
    """

    def __init__(self, data: dict = None) -> None:
        """Initialize using a nacl.signing.SigningKey or deserialize.
            Call with `{'skey':SigningKey}` to create a new SingleSigKey.
            Call with a dict containing json.loads output from a json.dumps
            serialization to restore an instance.
        """
        if data is None:
            raise ValueError('cannot instantiate an empty SingleSigKey')

        if not isinstance(data, dict):
            raise TypeError('data for initialization must be of type dict')

        if 'skey' in data:
            if isinstance(data['skey'], SigningKey):
                self.skey = data['skey']
            else:
                seed = data['skey'] if isinstance(data['skey'], bytes) else b64decode(data['skey'])
                self.skey = SigningKey(seed)

        if self.skey is not None:
            vkey = self.skey.verify_key
            self.vkey = AggregatedKey.create([vkey], vkey)

    def __bytes__(self) -> bytes:
        """Result of calling bytes() on an instance; i.e. serialize to bytes."""
        if self.skey is not None:
            return bytes(self.skey)
        return b''

    @classmethod
    def from_bytes(cls, data: bytes) -> SingleSigKey:
        """Deserializes output from __bytes__."""
        if type(data) is not bytes:
            raise TypeError('bytes input must have length of ' +
                    str(nacl.bindings.crypto_sign_SEEDBYTES))
        if len(data) != nacl.bindings.crypto_sign_SEEDBYTES:
            raise ValueError('bytes input must have length of ' +
                str(nacl.bindings.crypto_sign_SEEDBYTES))

        return cls({'skey': SigningKey(data)})

    def sign_message(self, M: bytes|str) -> Signature:
        """Sign a message (M) and return a Signature."""
        M = bytes(M, 'utf-8') if type(M) is str else M
        nonces = NonceBundle.create(self.skey, M)
        sig = PartialSignature.create([], nonces, self.vkey, self.skey, M)
        return Signature.create(sig, [], M)

    @property
    def skey(self) -> SigningKey|None:
        """The SigningKey used for creating signatures."""
        return self._skey if hasattr(self, '_skey') else None

    @skey.setter
    def skey(self, data: SigningKey):
        """The SigningKey used for creating signatures."""
        if not isinstance(data, SigningKey):
            raise TypeError('skey must be SigningKey')

        self['skey'] = data

    @property
    def vkey(self) -> AggregatedKey|None:
        """The aggregate public key for verifying signatures."""
        return self._vkey if hasattr(self, '_vkey') else None

    @vkey.setter
    def vkey(self, data: AggregatedKey):
        """The aggregate public key for verifying signatures."""
        if not isinstance(data, AggregatedKey):
            raise TypeError('vkey must be AggregatedKey')

        self['vkey'] = data
