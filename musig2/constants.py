"""Constants that fix the shape of the protocol. Every participant in a
    session must use the same values, so none of these should be changed
    for a single session.
"""


NUMBER_OF_NONCES = 2 # nonces generated by each party per session
RANDOM_BYTES_PER_NONCE = 32

# leading domain separation tags for the hash-to-scalar calls
KEY_AGG_TAG = b'\x01'
NONCE_TAG = b'\x02'
NONCE_BINDING_TAG = b'\x03'
