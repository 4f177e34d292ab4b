## Blowfish key recovery for MIX archives.
# The 80-byte key source in an encrypted MIX header is a sequence of RSA blocks. Each (a+1)-byte block, read as a
# little-endian number, is raised to the public exponent modulo the embedded modulus and the low `a` bytes of the
# result are key material; the first 56 bytes of it are the Blowfish key for the rest of the header.
import logging
from concurrent.futures import ThreadPoolExecutor

from .bignumber import FixedWidthInteger, WORDS
from .errors import DegenerateModulusError, InputLengthError
from .publickey import PublicKey, get_public_key
from .reduction import modular_power
from .utils import config, profiler

logger = logging.getLogger(__name__)

SOURCE_SIZE = 80
KEY_SIZE = 56


def block_size(public_key: PublicKey) -> int:
    ''' Key bytes recovered per block, one less than the block's source bytes. '''
    a = (public_key.bit_length - 1) // 8
    if a <= 0:
        raise DegenerateModulusError(f'A {public_key.bit_length + 1}-bit modulus cannot carry a key block')
    return a


def source_length(public_key: PublicKey) -> int:
    ''' Source bytes consumed: enough whole blocks to recover at least KEY_SIZE bytes. '''
    a = block_size(public_key)
    return ((KEY_SIZE - 1) // a + 1) * (a + 1)


def derive_key_material(source, public_key: PublicKey = None) -> bytes:
    '''
        Run every block of the key source through the public key.
    :param source: the key source, at least source_length(public_key) bytes; anything past that is ignored
    :param public_key: defaults to the embedded key
    :return: a bytes per block, never fewer than KEY_SIZE bytes in total
    '''
    if public_key is None:
        public_key = get_public_key()

    a = block_size(public_key)
    remaining = source_length(public_key)

    source = bytes(source)
    if len(source) < remaining:
        raise InputLengthError(f'Key source must be at least {remaining} bytes, got {len(source)}')

    logger.debug(f'Deriving key material from {remaining} source bytes in {remaining // (a + 1)} blocks of {a + 1}')

    out = bytearray()
    result = FixedWidthInteger(WORDS)
    pos = 0
    while a + 1 <= remaining:
        block = FixedWidthInteger.from_bytes(source[pos:pos + a + 1], WORDS)
        modular_power(result, block, public_key.exponent, public_key.modulus, WORDS)
        out += result.to_bytes(a)

        remaining -= a + 1
        pos += a + 1

    return bytes(out)


@profiler(num_runs=config.get('PROFILE_RUNS', 10), enabled=config.get('PROFILE', False))
def derive_blowfish_key(source, public_key: PublicKey = None) -> bytes:
    ''' The 56-byte Blowfish key for an 80-byte MIX key source. '''
    material = derive_key_material(source, public_key)
    return material[:KEY_SIZE]


def get_blowfish_key(source, dest):
    '''
        Write the Blowfish key for `source` into the caller's buffer.
    :param source: the 80-byte key source
    :param dest: writable buffer (bytearray, memoryview, ...) of at least 56 bytes, left untouched on failure
    '''
    view = memoryview(dest)
    if view.readonly:
        raise TypeError('Destination buffer is read-only')
    if view.nbytes < KEY_SIZE:
        raise InputLengthError(f'Destination buffer must hold {KEY_SIZE} bytes, got {view.nbytes}')

    key = derive_blowfish_key(source)
    view.cast('B')[:KEY_SIZE] = key


def derive_blowfish_keys(sources, max_workers=None, public_key: PublicKey = None) -> list:
    ''' Keys for many key sources at once, in order. Derivations share only the read-only public key. '''
    if max_workers is None:
        max_workers = config.get('TOTAL_CORES', 6)

    if public_key is None:
        public_key = get_public_key()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda s: derive_blowfish_key(s, public_key), sources))
