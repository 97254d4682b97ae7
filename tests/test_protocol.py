from context import musig2
from enum import Enum
import inspect
import unittest


class TestMuSig2Protocol(unittest.TestCase):
    """Test suite for ProtocolState, ErrorKind, and ProtocolError."""

    # ProtocolState tests
    def test_ProtocolState_is_Enum(self):
        assert hasattr(musig2, 'ProtocolState')
        assert inspect.isclass(musig2.ProtocolState)
        assert issubclass(musig2.ProtocolState, Enum)

    def test_ProtocolState_values_are_int(self):
        for attr in musig2.ProtocolState:
            assert type(attr.value) is int

    def test_ProtocolState_values_are_ordered_by_session_progress(self):
        states = [
            musig2.ProtocolState.UNINITIALIZED,
            musig2.ProtocolState.NONCES_GENERATED,
            musig2.ProtocolState.NONCES_EXCHANGED,
            musig2.ProtocolState.PARTIAL_SIGNED,
            musig2.ProtocolState.AGGREGATED,
        ]
        values = [s.value for s in states]
        assert values == sorted(values)

    # ErrorKind tests
    def test_ErrorKind_is_Enum_with_distinct_values(self):
        assert issubclass(musig2.ErrorKind, Enum)
        values = [k.value for k in musig2.ErrorKind]
        assert len(values) == len(set(values))
        for name in ('KEY_NOT_IN_SET', 'NONCE_COUNT_MISMATCH', 'MALFORMED_POINT',
                'MALFORMED_SCALAR', 'MISMATCHED_NONCE', 'NONCE_REUSE'):
            assert hasattr(musig2.ErrorKind, name)

    # ProtocolError tests
    def test_ProtocolError_is_class_that_inherits_from_Exception(self):
        assert hasattr(musig2, 'ProtocolError')
        assert inspect.isclass(musig2.ProtocolError)
        assert issubclass(musig2.ProtocolError, Exception)

    def test_ProtocolError_exposes_message_and_kind(self):
        err = musig2.ProtocolError('bad nonce', musig2.ErrorKind.NONCE_REUSE)
        assert err.message == 'bad nonce'
        assert err.kind is musig2.ErrorKind.NONCE_REUSE
        assert str(err) == 'NONCE_REUSE:bad nonce'

    def test_ProtocolError_serializes_to_and_from_bytes_properly(self):
        for kind in musig2.ErrorKind:
            err0 = musig2.ProtocolError('important information', kind)
            err1 = musig2.ProtocolError.from_bytes(bytes(err0))
            assert err0 == err1
            assert err1.kind is kind

    def test_ProtocolError_serializes_to_and_from_str_properly(self):
        for kind in musig2.ErrorKind:
            err0 = musig2.ProtocolError('important: information', kind)
            err1 = musig2.ProtocolError.from_str(str(err0))
            assert err0 == err1
            assert err1.message == 'important: information'

    def test_ProtocolError_instances_can_be_members_of_sets(self):
        err0 = musig2.ProtocolError('x', musig2.ErrorKind.DUPLICATE_KEY)
        err1 = musig2.ProtocolError('x', musig2.ErrorKind.DUPLICATE_KEY)
        err2 = musig2.ProtocolError('x', musig2.ErrorKind.MALFORMED_POINT)
        assert len(set([err0, err1, err2])) == 2


if __name__ == '__main__':
    unittest.main()
