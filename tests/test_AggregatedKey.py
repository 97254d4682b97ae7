from context import musig2
from itertools import permutations
from json import dumps, loads
from nacl.signing import SigningKey, VerifyKey
import inspect
import unittest


class TestMuSig2AggregatedKey(unittest.TestCase):
    """Test suite for AggregatedKey."""
    @classmethod
    def setUpClass(cls):
        cls.seeds = [
            'bc66e048abf92e97c35f00607a9260dd8299d91e698253c1090872d7d441df80',
            'a7a4b3a2afae8026fb6d523f06f67e5e69ca8e583881ca34574a8e6a9658eaec',
            'a5f496e55953105c5f80939f7a7794edcfd89997e801b6365effd35af1150b02'
        ]
        cls.seeds = [bytes.fromhex(seed) for seed in cls.seeds]
        cls.signing_keys = [SigningKey(seed) for seed in cls.seeds]
        cls.verify_keys = [sk.verify_key for sk in cls.signing_keys]
        cls.agg_public_key = 'fbeb797ddd8e4a62c9afb99547d75c9acd9365a91a64193eeef20781b56b6de8'

    def test_AggregatedKey_is_a_class(self):
        assert inspect.isclass(musig2.AggregatedKey)

    def test_AggregatedKey_init_raises_ValueError_without_proper_arg(self):
        with self.assertRaises(ValueError) as err:
            musig2.AggregatedKey()
        assert str(err.exception) == 'cannot instantiate empty AggregatedKey'

        with self.assertRaises(TypeError) as err:
            musig2.AggregatedKey((1,2))
        assert str(err.exception) == 'input data must be dict'

    def test_AggregatedKey_instances_have_correct_attributes(self):
        aggkey = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[0])
        assert type(aggkey.agg_public_key) is bytes
        assert type(aggkey.musig_coefficient) is bytes
        assert isinstance(aggkey.vkey, VerifyKey)
        assert type(aggkey.vkeys) is tuple
        for vk in aggkey.vkeys:
            assert isinstance(vk, VerifyKey)

    def test_AggregatedKey_instances_have_correct_aggregate_keys(self):
        aggkey1 = musig2.AggregatedKey.create(self.verify_keys[:1], self.verify_keys[0])
        aggkey2 = musig2.AggregatedKey.create(self.verify_keys[:2], self.verify_keys[0])
        aggkey3 = musig2.AggregatedKey.create(self.verify_keys[:3], self.verify_keys[0])

        expected1 = '3139a8eacf6b00b9d420831381a75a73cbef3ffbdaa7796861a034a479844071'
        expected2 = 'c0b81ab6af3222e754d187d9208157fe817f66c53e64e9fba897a37d4b43dbbd'
        expected3 = self.agg_public_key

        assert aggkey1.agg_public_key.hex() == expected1
        assert aggkey2.agg_public_key.hex() == expected2
        assert aggkey3.agg_public_key.hex() == expected3

    def test_AggregatedKey_instances_have_correct_coefficients(self):
        expected = [
            '0c6ead3e97038f20dc97b07f3deb366e77ed80bde744949b557db0295cd63c08',
            '0100000000000000000000000000000000000000000000000000000000000000',
            '9e90e67675368a64aa1448e90ad5e4b274b7be6df18c4cd2e6c05010717eaf0a',
        ]
        for vk, coefficient in zip(self.verify_keys, expected):
            aggkey = musig2.AggregatedKey.create(self.verify_keys, vk)
            assert aggkey.musig_coefficient.hex() == coefficient
            assert aggkey.agg_public_key.hex() == self.agg_public_key

        aggkey = musig2.AggregatedKey.create(self.verify_keys[:2], self.verify_keys[0])
        assert aggkey.musig_coefficient.hex() == '7a0fe1d133313685a7ade0ece83c5433e9ed6eee225d217742f8011bab2c680e'

    def test_AggregatedKey_is_independent_of_key_order(self):
        for order in permutations(self.verify_keys):
            aggkey = musig2.AggregatedKey.create(list(order), self.verify_keys[2])
            assert aggkey.agg_public_key.hex() == self.agg_public_key
            assert aggkey.vkeys == tuple(self.verify_keys)

    def test_AggregatedKey_second_key_gets_coefficient_of_one(self):
        keys = [SigningKey.generate().verify_key for _ in range(5)]
        sorted_keys = musig2.AggregatedKey.sort_keys(keys)
        second = musig2.AggregatedKey.second_key(sorted_keys)
        assert second == sorted_keys[1]
        assert musig2.AggregatedKey.key_coefficient(second, sorted_keys) == musig2.SCALAR_ONE
        for key in sorted_keys:
            if key != second:
                assert musig2.AggregatedKey.key_coefficient(key, sorted_keys) != musig2.SCALAR_ONE

    def test_AggregatedKey_coefficients_are_bound_to_the_whole_key_set(self):
        keys = [SigningKey.generate().verify_key for _ in range(3)]
        others = keys[1:] + [SigningKey.generate().verify_key]
        shared = [k for k in keys if k in others]
        for vk in shared:
            before = musig2.AggregatedKey.create(keys, vk)
            after = musig2.AggregatedKey.create(others, vk)
            sorted_before = musig2.AggregatedKey.sort_keys(keys)
            sorted_after = musig2.AggregatedKey.sort_keys(others)
            if musig2.AggregatedKey.second_key(sorted_before) != bytes(vk) and \
                    musig2.AggregatedKey.second_key(sorted_after) != bytes(vk):
                assert before.musig_coefficient != after.musig_coefficient

    def test_AggregatedKey_with_single_key_is_that_key(self):
        vk = self.verify_keys[1]
        aggkey = musig2.AggregatedKey.create([vk], vk)
        assert aggkey.agg_public_key == bytes(vk)
        assert aggkey.musig_coefficient == musig2.SCALAR_ONE

    def test_AggregatedKey_create_raises_ProtocolError_when_vkey_not_in_set(self):
        with self.assertRaises(musig2.ProtocolError) as err:
            musig2.AggregatedKey.create(self.verify_keys[:2], self.verify_keys[2])
        assert err.exception.kind is musig2.ErrorKind.KEY_NOT_IN_SET

    def test_AggregatedKey_create_raises_ProtocolError_for_duplicate_keys(self):
        keys = [self.verify_keys[0], self.verify_keys[1], self.verify_keys[0]]
        with self.assertRaises(musig2.ProtocolError) as err:
            musig2.AggregatedKey.create(keys, self.verify_keys[0])
        assert err.exception.kind is musig2.ErrorKind.DUPLICATE_KEY

    def test_AggregatedKey_create_raises_ProtocolError_for_invalid_keys(self):
        with self.assertRaises(musig2.ProtocolError) as err:
            musig2.AggregatedKey.create([b'\xff' * 32, self.verify_keys[0]], self.verify_keys[0])
        assert err.exception.kind is musig2.ErrorKind.MALFORMED_POINT

    def test_AggregatedKey_create_raises_TypeError_or_ValueError_for_invalid_args(self):
        with self.assertRaises(TypeError):
            musig2.AggregatedKey.create('not a list', self.verify_keys[0])
        with self.assertRaises(TypeError):
            musig2.AggregatedKey.create([1, 2], self.verify_keys[0])
        with self.assertRaises(ValueError):
            musig2.AggregatedKey.create([], self.verify_keys[0])

    def test_AggregatedKey_from_bytes_raises_ValueError_or_TypeError_when_given_invalid_serialization(self):
        with self.assertRaises(TypeError) as err:
            musig2.AggregatedKey.from_bytes('not bytes')
        assert str(err.exception) == 'cannot call from_bytes with non-bytes param'
        with self.assertRaises(ValueError) as err:
            musig2.AggregatedKey.from_bytes(b'incorrect length')
        assert str(err.exception) == 'byte length must be 32, 64, or a multiple of 32 >= 128'

    def test_AggregatedKey_from_bytes_rejects_tampered_serialization(self):
        aggkey = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[0])
        other = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[2])
        tampered = bytes(other)[:64] + bytes(aggkey)[64:]
        with self.assertRaises(ValueError) as err:
            musig2.AggregatedKey.from_bytes(tampered)
        assert str(err.exception) == 'serialized aggregate key does not match the key set'

    def test_AggregatedKey_init_rejects_values_inconsistent_with_key_set(self):
        aggkey = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[0])
        other = musig2.AggregatedKey.create(self.verify_keys[:2], self.verify_keys[0])

        data = loads(dumps(aggkey))
        data['agg_public_key'] = other['agg_public_key']
        with self.assertRaises(ValueError) as err:
            musig2.AggregatedKey(data)
        assert str(err.exception) == 'serialized aggregate key does not match the key set'

        data = loads(dumps(aggkey))
        data['musig_coefficient'] = musig2.AggregatedKey.create(
            self.verify_keys, self.verify_keys[2])['musig_coefficient']
        with self.assertRaises(ValueError) as err:
            musig2.AggregatedKey(data)
        assert str(err.exception) == 'serialized aggregate key does not match the key set'

        assert musig2.AggregatedKey(loads(dumps(aggkey))) == aggkey

    def test_AggregatedKey_public_method_returns_instance_with_only_agg_public_key(self):
        aggkey = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[0])
        pubkey = aggkey.public()
        assert len(pubkey.vkeys) == 0
        assert pubkey.vkey is None
        assert pubkey.musig_coefficient is None
        assert pubkey.agg_public_key == aggkey.agg_public_key
        assert bytes(pubkey) == aggkey.agg_public_key

    def test_AggregatedKey_instance_serialize_and_deserialize_properly(self):
        aggkey0 = musig2.AggregatedKey.create(self.verify_keys, self.verify_keys[1])
        for aggkey in (aggkey0, aggkey0.public(),
                musig2.AggregatedKey.from_bytes(bytes(aggkey0)[:64])):
            bts = bytes(aggkey)
            str1 = str(aggkey)
            js = dumps(aggkey)
            aggkey1 = musig2.AggregatedKey.from_bytes(bts)
            aggkey2 = musig2.AggregatedKey.from_str(str1)
            aggkey3 = musig2.AggregatedKey(loads(js))
            assert aggkey1 == aggkey
            assert aggkey2 == aggkey
            assert aggkey3 == aggkey
            assert aggkey1.musig_coefficient == aggkey.musig_coefficient

    def test_AggregatedKey_verify_rejects_other_messages(self):
        ssk = musig2.SingleSigKey({'skey': self.signing_keys[0]})
        sig = ssk.sign_message(b'hello world')
        assert ssk.vkey.verify(sig)
        assert not ssk.vkey.verify(sig, b'goodbye world')
        with self.assertRaises(ValueError):
            ssk.vkey.verify(musig2.Signature({'R': sig.R, 's': sig.s}))


if __name__ == '__main__':
    unittest.main()
