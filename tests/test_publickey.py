import base64
import threading
import unittest
from unittest import mock

from mixkey import publickey
from mixkey.bignumber import WORDS
from mixkey.errors import ModulusDecodeError
from mixkey.publickey import (ALPHABET, CHAR_TO_NUM, KEY_STRING, PublicKey, check_key_tables, decode_key_string,
                              get_public_key, parse_asn1_integer)


class TestKeyString(unittest.TestCase):

    def test_tables(self):
        check_key_tables()
        self.assertEqual(len(CHAR_TO_NUM), 256)
        self.assertEqual(sorted(v for v in CHAR_TO_NUM if v >= 0), list(range(64)))
        for i, ch in enumerate(ALPHABET):
            self.assertEqual(CHAR_TO_NUM[ord(ch)], i)

    def test_invalid_tables(self):
        with self.assertRaises(ModulusDecodeError):
            check_key_tables('abc')
        with self.assertRaises(ModulusDecodeError):
            check_key_tables('ab*d')
        with self.assertRaises(ModulusDecodeError):
            decode_key_string('ab=d')

    def test_decode(self):
        self.assertEqual(decode_key_string(), base64.b64decode(KEY_STRING))
        self.assertEqual(decode_key_string('AQID'), b'\x01\x02\x03')
        self.assertEqual(decode_key_string(''), b'')


class TestASN1Integer(unittest.TestCase):

    def test_short_form(self):
        key = parse_asn1_integer(b'\x02\x03\x01\x02\x03', 4)
        self.assertEqual(int(key), 0x010203)

    def test_long_form(self):
        content = bytes(range(1, 201))
        key = parse_asn1_integer(b'\x02\x81\xc8' + content, WORDS)
        self.assertEqual(int(key), int.from_bytes(content, 'big'))

        key = parse_asn1_integer(b'\x02\x82\x00\x02\x7f\xff', 4)
        self.assertEqual(int(key), 0x7FFF)

    def test_sign_extension(self):
        key = parse_asn1_integer(b'\x02\x02\x80\x01', 4)
        self.assertEqual(int(key), int.from_bytes(b'\x01\x80' + b'\xff' * 14, 'little'))

    def test_full_register(self):
        content = b'\x7f' + b'\xee' * 15
        key = parse_asn1_integer(b'\x02\x10' + content, 4)
        self.assertEqual(int(key), int.from_bytes(content, 'big'))

    def test_errors(self):
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x03\x01\x05', 4)  # not an INTEGER
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x02', 4)
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x02\x11' + bytes(17), 4)  # wider than the register
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x02\x82\x01\x01' + bytes(257), WORDS)
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x02\x05\x01\x02', 4)  # truncated content
        with self.assertRaises(ModulusDecodeError):
            parse_asn1_integer(b'\x02\x82\x01', 4)  # truncated length


class TestPublicKey(unittest.TestCase):

    def test_embedded_key(self):
        raw = base64.b64decode(KEY_STRING)
        self.assertEqual(raw[:2], b'\x02\x28')
        modulus = int.from_bytes(raw[2:], 'big')

        key = PublicKey.decode()
        self.assertEqual(int(key.modulus), modulus)
        self.assertEqual(int(key.exponent), 65537)
        self.assertEqual(key.bit_length, modulus.bit_length() - 1)
        self.assertEqual(key.bit_length, 318)

    def test_read_only(self):
        key = PublicKey.decode()
        with self.assertRaises(ValueError):
            key.modulus.words[0] = 1
        with self.assertRaises(AttributeError):
            key.bit_length = 1

    def test_bad_constant(self):
        with self.assertRaises(ModulusDecodeError):
            PublicKey.decode('AyhRvNoI')  # tag 0x03

    def test_from_int(self):
        key = PublicKey.from_int(0xC0FFEE << 100, 3)
        self.assertEqual(int(key.modulus), 0xC0FFEE << 100)
        self.assertEqual(int(key.exponent), 3)
        self.assertEqual(key.bit_length, 123)

    def test_get_public_key_once(self):
        publickey._public_key = None
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(get_public_key())

        with mock.patch.object(PublicKey, 'decode', wraps=PublicKey.decode) as decode:
            threads = [threading.Thread(target=worker) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        self.assertEqual(decode.call_count, 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))
        self.assertIs(get_public_key(), results[0])


if __name__ == '__main__':
    unittest.main(verbosity=2)
