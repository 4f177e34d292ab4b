## The public key embedded in Westwood's MIX loaders: a base64-style string holding an ASN.1 INTEGER (the modulus),
# paired with the fixed public exponent 65537.
import logging
import threading

from .bignumber import FixedWidthInteger, WORDS, bit_length, initialize
from .errors import ModulusDecodeError

logger = logging.getLogger(__name__)

KEY_STRING = 'AihRvNoIbTn85FZRYNZRcT+i6KpU+maCsEqr3Q5q+LDB5tH7Tz2qQ38V'
ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/'
PUBLIC_EXPONENT = 0x00010001

ASN1_INTEGER = 0x02

# byte -> 6-bit symbol value, -1 where the byte is not a symbol
CHAR_TO_NUM = tuple(ALPHABET.find(chr(c)) if chr(c) in ALPHABET else -1 for c in range(256))


def check_key_tables(text: str = KEY_STRING):
    ''' The key string must be made of whole four-symbol groups, every symbol known to CHAR_TO_NUM. '''
    if len(text) % 4:
        raise ModulusDecodeError(f'Key string length {len(text)} is not a multiple of 4')

    for i, ch in enumerate(text):
        if ord(ch) > 0xFF or CHAR_TO_NUM[ord(ch)] < 0:
            raise ModulusDecodeError(f'Invalid symbol {ch!r} at position {i} of the key string')


def decode_key_string(text: str = KEY_STRING) -> bytes:
    ''' Four 6-bit symbols to three bytes, most significant first. '''
    check_key_tables(text)

    out = bytearray()
    for i in range(0, len(text), 4):
        group = 0
        for ch in text[i:i + 4]:
            group = (group << 6) | CHAR_TO_NUM[ord(ch)]

        out += bytes(((group >> 16) & 0xFF, (group >> 8) & 0xFF, group & 0xFF))

    return bytes(out)


def parse_asn1_integer(data: bytes, limit: int = WORDS) -> FixedWidthInteger:
    '''
        Parse a DER INTEGER into a `limit`-word register. The content (big-endian) is right-justified; when its top bit
        is set the unused high bytes are filled with 0xFF.
    :raise ModulusDecodeError: wrong tag, truncated data, or content longer than limit * 4 bytes
    '''
    if len(data) < 2 or data[0] != ASN1_INTEGER:
        raise ModulusDecodeError(f'Expected an ASN.1 INTEGER (tag 0x02), got {data[:1].hex() or "nothing"}')

    pos = 1
    if data[pos] & 0x80:
        count = data[pos] & 0x7F
        if pos + 1 + count > len(data):
            raise ModulusDecodeError('Truncated ASN.1 long-form length')

        length = int.from_bytes(data[pos + 1:pos + 1 + count], 'big')
        pos += count + 1
    else:
        length = data[pos]
        pos += 1

    if length > limit * 4:
        raise ModulusDecodeError(f'Modulus of {length} bytes exceeds the {limit * 4}-byte register')

    content = data[pos:pos + length]
    if len(content) < length:
        raise ModulusDecodeError(f'ASN.1 INTEGER declares {length} bytes, only {len(content)} present')

    sign = 0xFF if content and content[0] & 0x80 else 0x00
    raw = content[::-1] + bytes([sign]) * (limit * 4 - length)
    return FixedWidthInteger.from_bytes(raw, limit)


class PublicKey:
    ''' Decoded modulus and exponent. Read-only once built, safe to share between threads. '''

    __slots__ = ('_modulus', '_exponent', '_bit_length')

    def __init__(self, modulus: FixedWidthInteger, exponent: FixedWidthInteger):
        self._modulus = modulus.copy()
        self._exponent = exponent.copy()
        self._modulus.words.flags.writeable = False
        self._exponent.words.flags.writeable = False
        # one less than the modulus' bit length
        self._bit_length = bit_length(self._modulus, WORDS) - 1

    @classmethod
    def decode(cls, text: str = KEY_STRING) -> 'PublicKey':
        modulus = parse_asn1_integer(decode_key_string(text), WORDS)
        exponent = FixedWidthInteger(WORDS)
        initialize(exponent, PUBLIC_EXPONENT, WORDS)

        key = cls(modulus, exponent)
        logger.debug(f'Decoded public key: {key.bit_length + 1}-bit modulus, exponent {PUBLIC_EXPONENT}')
        return key

    @classmethod
    def from_int(cls, modulus: int, exponent: int = PUBLIC_EXPONENT) -> 'PublicKey':
        return cls(FixedWidthInteger.from_int(modulus, WORDS), FixedWidthInteger.from_int(exponent, WORDS))

    @property
    def modulus(self) -> FixedWidthInteger:
        return self._modulus

    @property
    def exponent(self) -> FixedWidthInteger:
        return self._exponent

    @property
    def bit_length(self) -> int:
        return self._bit_length

    def __repr__(self):
        return f'PublicKey(modulus=0x{int(self._modulus):x}, exponent={int(self._exponent)})'


_public_key = None
_public_key_lock = threading.Lock()


def get_public_key() -> PublicKey:
    ''' The embedded key, decoded on first use. Concurrent first callers wait for a single decode. '''
    global _public_key

    key = _public_key
    if key is None:
        with _public_key_lock:
            if _public_key is None:
                _public_key = PublicKey.decode(KEY_STRING)
            key = _public_key

    return key
