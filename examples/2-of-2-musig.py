"""2-of-2 example"""


from musig2 import (
    NonceBundle,
    PartialSignature,
    SigningSession,
    ProtocolState,
    ProtocolError,
)
from nacl.signing import SignedMessage, SigningKey, VerifyKey
from secrets import token_bytes


# simulate sending a serialized value to the other participant
def send(value):
    print(f'sending: {value.hex()}\n')
    return value


def main():
    """Do something to load a seed for private key creation."""
    skey = SigningKey(token_bytes())

    """Simulate the other guy. Participant VerifyKeys are exchanged before
        the session begins.
    """
    other_skey = SigningKey(token_bytes())
    vkeys = [skey.verify_key, other_skey.verify_key]
    message = b'obviously a bitcoin transaction'

    """Initialize the sessions. The order of vkeys does not matter."""
    session = SigningSession({'skey': skey, 'vkeys': vkeys, 'message': message})
    other_session = SigningSession({'skey': other_skey, 'vkeys': vkeys[::-1], 'message': message})
    assert session.public_key.public() == other_session.public_key.public()

    """Round 1: generate and exchange public nonces."""
    n = send(bytes(session.generate_nonces()))
    other_n = send(bytes(other_session.generate_nonces()))

    try:
        session.add_nonce(NonceBundle.from_bytes(other_n), other_skey.verify_key)
        other_session.add_nonce(NonceBundle.from_bytes(n), skey.verify_key)
    except ProtocolError as err:
        """If the vkey is not from a known participant, if the wrong number
            of nonces is received, or if a participant sends two different
            NonceBundles, an error will be raised and the session may be
            ABORTED, so deal with that here.
        """
        print(f'{err=}')
        raise

    assert session.protocol_state is ProtocolState.NONCES_EXCHANGED

    """Round 2: make and exchange partial signatures. Only the scalar needs
        to be sent. Once all partial signatures are gathered, the aggregate
        signature will be calculated.
    """
    ps = send(bytes(session.make_partial_signature().public()))
    other_ps = send(bytes(other_session.make_partial_signature().public()))

    try:
        session.add_partial_signature(PartialSignature.from_bytes(other_ps), other_skey.verify_key)
        other_session.add_partial_signature(PartialSignature.from_bytes(ps), skey.verify_key)
    except ProtocolError as err:
        """If the vkey is not a known participant vkey, or if a conflicting
            partial signature is added when one already exists, handle the
            error here.
        """
        print(f'{err=}')
        raise

    """State should now be AGGREGATED, so distribute the signature."""
    assert session.protocol_state is ProtocolState.AGGREGATED
    signature = session.signature
    assert signature == other_session.signature
    assert session.public_key.verify(signature)
    print(f'{signature=}')
    print(f'{str(signature)=}')

    # compatible with ordinary Ed25519 signature verification
    sig = SignedMessage(bytes(signature))
    vkey = VerifyKey(bytes(session.public_key.public()))
    assert vkey.verify(sig) == session.message


if __name__ == '__main__':
    main()
