## Fixed-width integers stored as arrays of unsigned 32-bit words (least significant word first).
# Every primitive takes an explicit `limit`, the number of words it may touch, so that one register can be worked on
# at the width of whatever modulus is currently in use. Multiplication and subtraction run over 16-bit lanes
# (half-words); lane `i` is the low half of word `i // 2` when `i` is even and the high half otherwise.
import numpy as np

# Capacities used by the key recovery
WORDS_HI = 4  # leading-word reciprocal registers
WORDS = 64  # modulus, exponent and operands
WORDS_PRODUCT = 130  # double-width product plus guard words

WORD_BITS = 32
WORD_MASK = 0xFFFFFFFF
LANE_BITS = 16
LANE_MASK = 0xFFFF


class FixedWidthInteger:
    ''' An unsigned integer of `capacity` 32-bit words. '''

    __slots__ = ('words',)

    def __init__(self, capacity: int = WORDS):
        if capacity <= 0:
            raise ValueError(f'Capacity must be a positive number of words, got {capacity}')
        self.words = np.zeros(capacity, dtype=np.uint32)

    @classmethod
    def from_int(cls, value: int, capacity: int = WORDS) -> 'FixedWidthInteger':
        if value < 0 or value.bit_length() > capacity * WORD_BITS:
            raise ValueError(f'{value} does not fit in {capacity} words')

        inst = cls(capacity)
        for i in range(capacity):
            inst.words[i] = (value >> (i * WORD_BITS)) & WORD_MASK
        return inst

    @classmethod
    def from_bytes(cls, data, capacity: int = WORDS) -> 'FixedWidthInteger':
        ''' Lift little-endian bytes into a zero-extended register. '''
        data = bytes(data)
        if len(data) > capacity * 4:
            raise ValueError(f'{len(data)} bytes do not fit in {capacity} words')

        inst = cls(capacity)
        padded = data + bytes(capacity * 4 - len(data))
        inst.words[:] = np.frombuffer(padded, dtype='<u4')
        return inst

    def to_bytes(self, length: int) -> bytes:
        ''' The lowest `length` bytes, little-endian. '''
        return self.words.astype('<u4').tobytes()[:length]

    @property
    def capacity(self) -> int:
        return len(self.words)

    def word(self, i: int) -> int:
        return int(self.words[i])

    def set_word(self, i: int, value: int):
        self.words[i] = value & WORD_MASK

    def lane(self, i: int) -> int:
        return (int(self.words[i >> 1]) >> ((i & 1) * LANE_BITS)) & LANE_MASK

    def set_lane(self, i: int, value: int):
        shift = (i & 1) * LANE_BITS
        w = int(self.words[i >> 1]) & ~(LANE_MASK << shift)
        self.words[i >> 1] = (w | ((value & LANE_MASK) << shift)) & WORD_MASK

    def copy(self) -> 'FixedWidthInteger':
        inst = FixedWidthInteger(self.capacity)
        inst.words[:] = self.words
        return inst

    def __int__(self):
        return sum(int(w) << (i * WORD_BITS) for i, w in enumerate(self.words))

    def __eq__(self, other):
        if isinstance(other, FixedWidthInteger):
            return int(self) == int(other)
        if isinstance(other, int):
            return int(self) == other
        return NotImplemented

    # mutable register
    __hash__ = None

    def __repr__(self):
        return f'FixedWidthInteger({self.capacity}, 0x{int(self):x})'


def initialize(x: FixedWidthInteger, value: int, limit: int):
    x.words[:limit] = 0
    x.words[0] = value & WORD_MASK


def move(dest: FixedWidthInteger, src: FixedWidthInteger, limit: int, src_offset: int = 0):
    ''' Copy `limit` words of src (starting at word `src_offset`) into the bottom of dest. '''
    # copy() so that moving within one register behaves like memmove
    dest.words[:limit] = src.words[src_offset:src_offset + limit].copy()


def significant_word_count(x: FixedWidthInteger, limit: int) -> int:
    nz = np.flatnonzero(x.words[:limit])
    return int(nz[-1]) + 1 if nz.size else 0


def bit_length(x: FixedWidthInteger, limit: int) -> int:
    n = significant_word_count(x, limit)
    if n == 0:
        return 0

    return (n - 1) * WORD_BITS + x.word(n - 1).bit_length()


def compare(a: FixedWidthInteger, b: FixedWidthInteger, limit: int) -> int:
    ''' Unsigned comparison from the most significant word down, returns -1, 0 or 1. '''
    diff = np.flatnonzero(a.words[:limit] != b.words[:limit])
    if not diff.size:
        return 0

    i = int(diff[-1])
    return -1 if a.word(i) < b.word(i) else 1


def increment(x: FixedWidthInteger, limit: int):
    for i in range(limit):
        w = (x.word(i) + 1) & WORD_MASK
        x.words[i] = w
        if w != 0:
            break


def decrement(x: FixedWidthInteger, limit: int):
    ''' Subtract 1, zero wraps around to all ones. '''
    for i in range(limit):
        w = (x.word(i) - 1) & WORD_MASK
        x.words[i] = w
        if w != WORD_MASK:
            break


def complement(x: FixedWidthInteger, limit: int):
    x.words[:limit] = np.invert(x.words[:limit])


def negate(x: FixedWidthInteger, limit: int):
    ''' Two's complement negation within `limit` words. '''
    complement(x, limit)
    increment(x, limit)


def shift_left(x: FixedWidthInteger, bits: int, limit: int):
    if bits < 0:
        raise ValueError(f'Shift amount must be non-negative, got {bits}')

    words, bits = divmod(bits, WORD_BITS)
    if words > 0:
        if words < limit:
            x.words[words:limit] = x.words[:limit - words].copy()
        # every vacated word, word 0 included
        x.words[:min(words, limit)] = 0

    if bits == 0:
        return

    w = x.words[:limit]
    carried = np.zeros(limit, dtype=np.uint32)
    carried[1:] = w[:-1] >> np.uint32(WORD_BITS - bits)
    x.words[:limit] = (w << np.uint32(bits)) | carried


def shift_right(x: FixedWidthInteger, bits: int, limit: int):
    if bits < 0:
        raise ValueError(f'Shift amount must be non-negative, got {bits}')

    words, bits = divmod(bits, WORD_BITS)
    if words > 0:
        if words < limit:
            x.words[:limit - words] = x.words[words:limit].copy()
        x.words[max(limit - words, 0):limit] = 0

    if bits == 0:
        return

    w = x.words[:limit]
    carried = np.zeros(limit, dtype=np.uint32)
    carried[:-1] = w[1:] << np.uint32(WORD_BITS - bits)
    x.words[:limit] = (w >> np.uint32(bits)) | carried


def subtract(dest: FixedWidthInteger, a: FixedWidthInteger, b: FixedWidthInteger, borrow: int, limit: int,
             offset: int = 0) -> int:
    '''
        dest = a - b - borrow over `2 * limit` lanes
    :param offset: lane offset applied to both dest and a (b is always read from lane 0)
    :return: the borrow out of the top lane, 0 or 1
    '''
    for i in range(limit * 2):
        d = a.lane(offset + i) - b.lane(i) - borrow
        dest.set_lane(offset + i, d)
        borrow = 1 if d < 0 else 0

    return borrow


def multiply_word(dest: FixedWidthInteger, a: FixedWidthInteger, value: int, limit: int, offset: int = 0):
    '''
        dest += a * value, for a 16-bit value, accumulated from lane `offset` of dest
        NOTE: the final carry is added into lane `offset + 2 * limit` and wraps at 16 bits, dest must have room for it
    '''
    carry = 0
    for i in range(limit * 2):
        t = value * a.lane(i) + dest.lane(offset + i) + carry
        dest.set_lane(offset + i, t)
        carry = t >> LANE_BITS

    top = offset + limit * 2
    dest.set_lane(top, dest.lane(top) + carry)


def multiply(dest: FixedWidthInteger, a: FixedWidthInteger, b: FixedWidthInteger, limit: int):
    ''' Schoolbook product of two `limit`-word numbers into `2 * limit` words of dest. '''
    initialize(dest, 0, limit * 2)

    for i in range(limit * 2):
        multiply_word(dest, a, b.lane(i), limit, offset=i)
