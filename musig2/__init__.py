from musig2.constants import (
    NUMBER_OF_NONCES,
    RANDOM_BYTES_PER_NONCE,
    KEY_AGG_TAG,
    NONCE_TAG,
    NONCE_BINDING_TAG,
)
from musig2.protocol import ProtocolState, ErrorKind, ProtocolError
from musig2.helpers import (
    clamp_scalar, reduce_scalar, expand_signing_key, aggregate_points,
    validate_point, validate_scalar, H_big, H_small, H_agg, H_non, H_bind,
    H_sig, xor, bytes_are_same, SCALAR_ONE
)
# the below imports must be in this order due to dependency coupling
from musig2.aggregatedkey import AggregatedKey
from musig2.noncebundle import NonceBundle
from musig2.partialsignature import PartialSignature
from musig2.signature import Signature
from musig2.singlesigkey import SingleSigKey
from musig2.signingsession import SigningSession

__version__ = '0.1.0'

def version() -> str:
    """Return the version of the package."""
    return __version__
