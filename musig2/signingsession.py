from __future__ import annotations
from musig2.abstractclasses import AbstractSigningSession
from musig2.aggregatedkey import AggregatedKey
from musig2.noncebundle import NonceBundle
from musig2.partialsignature import PartialSignature
from musig2.protocol import ErrorKind, ProtocolError, ProtocolState
from musig2.signature import Signature
from nacl.signing import SigningKey, VerifyKey
from secrets import token_bytes
from typing import Callable
import logging


logger = logging.getLogger(__name__)


class SigningSession(AbstractSigningSession):
    """A class that walks a single participant through one MuSig2 signing
        session: UNINITIALIZED -> NONCES_GENERATED -> NONCES_EXCHANGED ->
        PARTIAL_SIGNED -> AGGREGATED. No state can be skipped, and a session
        generates exactly one NonceBundle. Protocol violations by peers move
        the session to ABORTED. Transport between participants is left to
        the caller.
    """

    def __init__(self, data: dict = None) -> None:
        """Initialize with `{'skey': SigningKey, 'vkeys': list_of_vkeys}` and
            optionally `'message': bytes|str`. The VerifyKey of skey must be
            one of the vkeys.
        """
        if data is None:
            raise ValueError('cannot instantiate an empty SigningSession')
        if type(data) is not dict:
            raise TypeError('data for initialization must be of type dict')
        if 'skey' not in data or 'vkeys' not in data:
            raise ValueError('skey and vkeys are required to initialize a SigningSession')
        if not isinstance(data['skey'], SigningKey):
            raise TypeError('skey must be a nacl.signing.SigningKey')

        self._skey = data['skey']
        self._public_key = AggregatedKey.create(list(data['vkeys']), self._skey.verify_key)
        self._protocol_state = ProtocolState.UNINITIALIZED
        self._nonces = None
        self._nonce_points = {}
        self._partial_signature = None
        self._partial_signatures = {}
        self._signature = None
        self._message = None

        if data.get('message') is not None:
            self.message = data['message']

    def generate_nonces(self, random_bytes: Callable[[int], bytes] = token_bytes) -> NonceBundle:
        """Generate the NonceBundle for this session and return its public
            half for broadcast. Can be called only once per session.
        """
        self._check_active()
        if self.nonces is not None or self.protocol_state is not ProtocolState.UNINITIALIZED:
            raise ProtocolError('nonces were already generated for this session', ErrorKind.NONCE_REUSE)

        self._nonces = NonceBundle.create(self.skey, self.message, random_bytes)
        self._nonce_points[self.vkey] = self._nonces.public()
        self.protocol_state = ProtocolState.NONCES_GENERATED
        self.update_protocol_state()

        return self._nonces.public()

    def add_nonce(self, nonce: NonceBundle|list[bytes], vkey: VerifyKey) -> None:
        """Add the public NonceBundle of another participant identified by
            the VerifyKey.
        """
        self._check_active()
        if not isinstance(vkey, VerifyKey):
            raise TypeError('vkey must be a VerifyKey')
        if vkey not in self.vkeys or vkey == self.vkey:
            raise ProtocolError('unrecognized vkey', ErrorKind.UNKNOWN_PARTICIPANT)

        nonce = PartialSignature.parse_nonces(nonce)

        if vkey in self._nonce_points:
            if nonce == self._nonce_points[vkey]:
                return
            self.abort('conflicting nonces received')
            raise ProtocolError('a different NonceBundle was already added for this vkey',
                ErrorKind.NONCE_REUSE)

        self._nonce_points[vkey] = nonce
        self.update_protocol_state()

    def make_partial_signature(self) -> PartialSignature:
        """Create a partial signature to be broadcast to other participants."""
        self._check_active()
        if self.protocol_state is not ProtocolState.NONCES_EXCHANGED:
            raise ProtocolError(f'cannot sign in state {self.protocol_state.name}',
                ErrorKind.INVALID_STATE)
        if self.message is None:
            raise ProtocolError('message must be set before signing', ErrorKind.INVALID_STATE)

        others = [self._nonce_points[vk] for vk in self.vkeys if vk != self.vkey]
        sig = PartialSignature.create(others, self._nonces, self.public_key, self.skey, self.message)

        self._partial_signature = sig
        self._partial_signatures[self.vkey] = sig
        self.protocol_state = ProtocolState.PARTIAL_SIGNED
        self.update_protocol_state()

        return sig

    def add_partial_signature(self, sig: PartialSignature, vkey: VerifyKey) -> None:
        """Add a PartialSignature from a participant identified by the VerifyKey."""
        self._check_active()
        if not isinstance(sig, PartialSignature):
            raise TypeError('sig must be a PartialSignature')
        if not isinstance(vkey, VerifyKey):
            raise TypeError('vkey must be a VerifyKey')
        if vkey not in self.vkeys or vkey == self.vkey:
            raise ProtocolError('unrecognized vkey', ErrorKind.UNKNOWN_PARTICIPANT)
        if vkey in self._partial_signatures and sig != self._partial_signatures[vkey]:
            self.abort('conflicting partial signatures received')
            raise ProtocolError('a different PartialSignature was already added for this vkey',
                ErrorKind.INVALID_STATE)
        if self.partial_signature is not None and not self.partial_signature.matches(sig):
            self.abort('partial signature made over a different R')
            raise ProtocolError('partial signature made over a different R', ErrorKind.MISMATCHED_NONCE)

        self._partial_signatures[vkey] = sig
        self.update_protocol_state()

    def update_protocol_state(self) -> None:
        """Handle transitions between ProtocolStates once the conditions for
            the next state have been met. Called after every update.
        """
        if self.protocol_state is ProtocolState.NONCES_GENERATED:
            if all([vk in self._nonce_points for vk in self.vkeys]):
                self.protocol_state = ProtocolState.NONCES_EXCHANGED

        if self.protocol_state is ProtocolState.PARTIAL_SIGNED:
            if all([vk in self._partial_signatures for vk in self.vkeys]):
                parts = [self._partial_signatures[vk] for vk in self.vkeys if vk != self.vkey]
                try:
                    self._signature = Signature.create(self.partial_signature, parts, self.message)
                except ProtocolError as e:
                    self.abort(e.message)
                    raise
                self.protocol_state = ProtocolState.AGGREGATED

    def abort(self, reason: str = 'aborted by caller') -> None:
        """Move the session into the terminal ABORTED state and drop any
            unused secret nonces.
        """
        logger.warning('aborting signing session: %s', reason)
        if self._nonces is not None and not self._nonces.consumed:
            self._nonces.consume()
        self.protocol_state = ProtocolState.ABORTED

    def _check_active(self) -> None:
        if self.protocol_state in (ProtocolState.ABORTED, ProtocolState.AGGREGATED):
            raise ProtocolError(f'session is {self.protocol_state.name}', ErrorKind.INVALID_STATE)

    @property
    def protocol_state(self) -> ProtocolState:
        """The current state of the session."""
        return self._protocol_state

    @protocol_state.setter
    def protocol_state(self, value: ProtocolState):
        """The current state of the session."""
        if not isinstance(value, ProtocolState):
            raise TypeError('protocol_state must be a ProtocolState')

        logger.info('signing session state %s -> %s', self._protocol_state.name, value.name)
        self._protocol_state = value

    @property
    def skey(self) -> SigningKey:
        """The SigningKey of the participant using this instance."""
        return self._skey

    @property
    def vkey(self) -> VerifyKey:
        """The VerifyKey of the participant using this instance."""
        return self._skey.verify_key

    @property
    def vkeys(self) -> tuple[VerifyKey, ...]:
        """A tuple of participant VerifyKeys in canonical order."""
        return self._public_key.vkeys

    @property
    def public_key(self) -> AggregatedKey:
        """The aggregate public key for the session."""
        return self._public_key

    @property
    def nonces(self) -> NonceBundle|None:
        """The NonceBundle of the participant using this instance."""
        return self._nonces

    @property
    def nonce_points(self) -> dict[VerifyKey, NonceBundle]:
        """A dict mapping participant VerifyKey to public NonceBundle."""
        return dict(self._nonce_points)

    @property
    def message(self) -> bytes|None:
        """The message to be n-of-n signed."""
        return self._message

    @message.setter
    def message(self, value: bytes|str):
        """The message to be n-of-n signed. Cannot change after signing."""
        value = bytes(value, 'utf-8') if type(value) is str else value

        if type(value) is not bytes:
            raise TypeError('message must be bytes or str')
        if self.partial_signature is not None:
            raise ProtocolError('cannot change the message after signing', ErrorKind.INVALID_STATE)

        self._message = value

    @property
    def partial_signature(self) -> PartialSignature|None:
        """The PartialSignature made by the participant using this instance."""
        return self._partial_signature

    @property
    def partial_signatures(self) -> dict[VerifyKey, PartialSignature]:
        """A dict mapping participant VerifyKey to PartialSignature."""
        return dict(self._partial_signatures)

    @property
    def signature(self) -> Signature|None:
        """The final n-of-n signature."""
        return self._signature
