"""A collection of helper functions that are used by many classes. Not all
    calls to nacl.bindings functions are abstracted into helpers, but many are.
    Each function has a short docblock explaining its purpose.
"""


from hashlib import new
from musig2.constants import KEY_AGG_TAG, NONCE_BINDING_TAG, NONCE_TAG
from musig2.protocol import ErrorKind, ProtocolError
from nacl.signing import SigningKey, VerifyKey
import nacl.bindings


SCALAR_ONE = (1).to_bytes(nacl.bindings.crypto_core_ed25519_SCALARBYTES, 'little')


def clamp_scalar(scalar: bytes, from_private_key: bool = False) -> bytes:
    """Make a clamped scalar."""
    if type(scalar) is not bytes or len(scalar) < 32:
        raise ValueError('scalar must be bytes of len >= 32')

    x_i = bytearray(scalar[:32])

    if from_private_key:
        # set bits 0, 1, and 2 to 0
        # nb: lsb is right-indexed
        x_i[0] &= 0b11111000
        # set bit 254 to 1
        x_i[31] |= 0b01000000

    # set bit 255 to 0
    x_i[31] &= 0b01111111

    return bytes(x_i)

def reduce_scalar(scalar: bytes) -> bytes:
    """Reduce a little-endian integer of up to 64 bytes modulo the group order."""
    if type(scalar) is not bytes or len(scalar) > 64:
        raise ValueError('scalar must be bytes of len <= 64')
    return nacl.bindings.crypto_core_ed25519_scalar_reduce(scalar.ljust(64, b'\x00'))

def expand_signing_key(skey: SigningKey) -> tuple[bytes, bytes]:
    """Derive the private scalar (x) and the nonce derivation seed (prefix)
        from a SigningKey, matching the Ed25519 key expansion. The returned
        scalar satisfies x*G == skey.verify_key.
    """
    if not isinstance(skey, SigningKey):
        raise TypeError('skey must be a SigningKey')

    h = H_big(bytes(skey))
    x = reduce_scalar(clamp_scalar(h[:32], True))
    return (x, h[32:])

def aggregate_points(points: list[bytes|VerifyKey]) -> bytes:
    """Aggregate points on the Ed25519 curve."""
    # type checking inputs
    for pt in points:
        if type(pt) is not bytes and type(pt) is not VerifyKey:
            raise TypeError('each point must be bytes or VerifyKey')

    if len(points) < 1:
        raise ValueError('at least one point is required')

    # normalize points to bytes
    points = [pt if type(pt) is bytes else bytes(pt) for pt in points]

    # raise an error for invalid points
    for pt in points:
        validate_point(pt)

    # compute the sum
    sum = points[0]
    for i in range(1, len(points)):
        sum = nacl.bindings.crypto_core_ed25519_add(sum, points[i])

    return sum

def validate_point(point: bytes, name: str = 'point') -> bytes:
    """Raise a ProtocolError unless point is a valid ed25519 point encoding."""
    if type(point) is not bytes or len(point) != nacl.bindings.crypto_core_ed25519_BYTES \
            or not nacl.bindings.crypto_core_ed25519_is_valid_point(point):
        raise ProtocolError(f'{name} must be a valid ed25519 point', ErrorKind.MALFORMED_POINT)
    return point

def validate_scalar(scalar: bytes, name: str = 'scalar') -> bytes:
    """Raise a ProtocolError unless scalar is a canonical (reduced) scalar."""
    if type(scalar) is not bytes or len(scalar) != nacl.bindings.crypto_core_ed25519_SCALARBYTES \
            or not bytes_are_same(reduce_scalar(scalar), scalar):
        raise ProtocolError(f'{name} must be a canonical ed25519 scalar', ErrorKind.MALFORMED_SCALAR)
    return scalar

def H_big(*parts: bytes) -> bytes:
    """The big, 64-byte hash function."""
    return new('sha512', b''.join(parts)).digest()

def H_small(*parts: bytes) -> bytes:
    """The small, 32-byte hash function; i.e. hash-to-scalar."""
    return nacl.bindings.crypto_core_ed25519_scalar_reduce(H_big(*parts))

def H_agg(X_i: bytes, sorted_keys: list[bytes]) -> bytes:
    """The hash used for deriving a key aggregation coefficient."""
    return H_small(KEY_AGG_TAG, X_i, *sorted_keys)

def H_non(prefix: bytes, M: bytes|None, rand: bytes) -> bytes:
    """The hash used for deriving a secret nonce scalar."""
    return H_small(NONCE_TAG, prefix, M or b'', rand)

def H_bind(X: bytes, R: tuple[bytes, ...], M: bytes) -> bytes:
    """The hash used for binding the aggregate nonces to the key and message."""
    return H_small(NONCE_BINDING_TAG, X, *R, M)

def H_sig(R: bytes, X: bytes, M: bytes) -> bytes:
    """The hash used to derive the challenge used in signing and verifying.
        This is the unmodified Ed25519 challenge, so aggregate signatures
        verify with any Ed25519 implementation.
    """
    return H_small(R, X, M)

def xor(b1: bytes, b2: bytes) -> bytes:
    """XOR two equal-length byte strings together."""
    b3 = bytearray()
    for i in range(len(b1)):
        b3.append(b1[i] ^ b2[i])

    return bytes(b3)

def bytes_are_same(b1: bytes, b2: bytes) -> bool:
    """Timing-attack safe bytes comparison."""
    return len(b1) == len(b2) and int.from_bytes(xor(b1, b2), 'little') == 0
