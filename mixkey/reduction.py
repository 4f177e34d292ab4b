## Modular multiplication and exponentiation over fixed-width integers.
# The reduction works like Barrett's: a reciprocal of the modulus' leading 32 bits gives a quotient estimate for each
# 16-bit position of the double-width product, that multiple of the modulus is removed, and a single subtraction
# corrects an estimate that went one too far. The product is held in one's complement while reducing, so removing
# q * modulus is carried out by multiply_word's accumulate.
# references:
# [1] [Barrett reduction](https://en.wikipedia.org/wiki/Barrett_reduction)
# [2] D. Knuth, The Art of Computer Programming, vol. 2, 4.3.1 (Algorithm D)
import logging

from .bignumber import *
from .errors import DegenerateModulusError

logger = logging.getLogger(__name__)


def reciprocal(dest: FixedWidthInteger, source: FixedWidthInteger, limit: int):
    '''
        Restoring binary long division of 2^(2B-1) by source, where B is the bit length of source. One quotient bit
        per round, B rounds, written one position up: for a source that is not a power of two the result is
        2 * floor(2^(2B-1) / source).
    :param dest: receives the reciprocal
    :param source: a non-zero number
    :param limit: word count of both registers, must hold B + 1 bits
    '''
    remainder = FixedWidthInteger(dest.capacity)
    initialize(remainder, 0, limit)
    initialize(dest, 0, limit)

    bits = bit_length(source, limit)
    if bits == 0:
        raise ZeroDivisionError('Reciprocal of zero')

    index = (bits + WORD_BITS) // WORD_BITS - 1
    bit = 1 << (bits % WORD_BITS)
    remainder.set_word((bits - 1) // WORD_BITS, 1 << ((bits - 1) % WORD_BITS))

    for _ in range(bits):
        shift_left(remainder, 1, limit)
        if compare(remainder, source, limit) != -1:
            subtract(remainder, remainder, source, 0, limit)
            dest.set_word(index, dest.word(index) | bit)

        bit >>= 1
        if bit == 0:
            index -= 1
            bit = 0x80000000

    initialize(remainder, 0, limit)


class ReductionContext:
    '''
        Per-modulus scratch for modular_multiply. Owned by a single modular_power call and never shared, so that
        concurrent derivations against different moduli cannot see each other's registers.
    '''

    def __init__(self):
        self.modulus = FixedWidthInteger(WORDS)
        self.bit_length = 0
        self.lanes = 0  # half-word length of the modulus, ceil(bit_length / 16)

        self.hi = FixedWidthInteger(WORDS_HI)  # leading 32 bits of the modulus
        self.hi_inv = FixedWidthInteger(WORDS_HI)
        self.hi_shift = 0
        self.hi_inv_lo = 0
        self.hi_inv_hi = 0

        self.product = FixedWidthInteger(WORDS_PRODUCT)

    @classmethod
    def for_modulus(cls, modulus: FixedWidthInteger, limit: int) -> 'ReductionContext':
        inst = cls()
        inst.setup(modulus, limit)
        return inst

    def setup(self, modulus: FixedWidthInteger, limit: int):
        words = significant_word_count(modulus, limit)
        if words < 2:
            raise DegenerateModulusError(f'Modulus needs at least 2 significant words, got {words}')

        move(self.modulus, modulus, limit)
        self.bit_length = bit_length(self.modulus, limit)
        self.lanes = (self.bit_length + 15) // 16

        # normalise the top two words down to the leading 32 bits
        move(self.hi, self.modulus, 2, src_offset=words - 2)
        shift = bit_length(self.hi, 2) - WORD_BITS
        shift_right(self.hi, shift, 2)

        reciprocal(self.hi_inv, self.hi, 2)
        shift_right(self.hi_inv, 1, 2)
        self.hi_shift = (shift + 15) % 16 + 1
        increment(self.hi_inv, 2)

        # rounding up may have carried into bit 32
        if bit_length(self.hi_inv, 2) > WORD_BITS:
            shift_right(self.hi_inv, 1, 2)
            self.hi_shift -= 1

        self.hi_inv_lo = self.hi_inv.lane(0)
        self.hi_inv_hi = self.hi_inv.lane(1)

    def estimate_quotient(self, lane: int) -> int:
        '''
            Quotient digit for the product window topped by `lane`, from the three lanes lane, lane-1, lane-2 of the
            complemented product. Arithmetic wraps at 32 bits.
        '''
        lo, hi = self.hi_inv_lo, self.hi_inv_hi
        w0 = self.product.lane(lane) ^ LANE_MASK
        w1 = self.product.lane(lane - 1) ^ LANE_MASK
        w2 = self.product.lane(lane - 2) ^ LANE_MASK

        t = ((w1 * lo + 0x10000) >> 1) + ((w2 * hi + hi) >> 1) + 1
        t = (t >> 16) + ((w1 * hi) >> 1) + ((w0 * lo) >> 1) + 1
        t = ((t >> 14) + hi * w0 * 2) & WORD_MASK
        q = t >> self.hi_shift

        return min(q, LANE_MASK)

    def clear(self):
        initialize(self.modulus, 0, self.modulus.capacity)
        self.bit_length = 0
        self.lanes = 0

        initialize(self.hi, 0, WORDS_HI)
        initialize(self.hi_inv, 0, WORDS_HI)
        self.hi_shift = 0
        self.hi_inv_lo = 0
        self.hi_inv_hi = 0

        initialize(self.product, 0, self.product.capacity)


def modular_multiply(dest: FixedWidthInteger, a: FixedWidthInteger, b: FixedWidthInteger,
                     context: ReductionContext, limit: int):
    '''
        dest = a * b mod m, for the modulus m the context was set up with
    :param limit: working width in words, the modulus' significant word count
    '''
    product = context.product
    multiply(product, a, b, limit)
    product.set_word(limit * 2, 0)

    product_lanes = significant_word_count(product, limit * 2 + 1) * 2
    if product_lanes >= context.lanes:
        # work on ~product, q * m is then taken off by adding it
        increment(product, limit * 2 + 1)
        negate(product, limit * 2 + 1)

        window = 1 + product_lanes - context.lanes
        top = product_lanes + 1

        for _ in range(product_lanes + 1 - context.lanes):
            window -= 1
            top -= 1
            q = context.estimate_quotient(top)
            if q == 0:
                continue

            multiply_word(product, context.modulus, q, limit, offset=window)

            # sign bit clear in the complement: went one multiple too far
            if not product.lane(top) & 0x8000:
                # the borrow leaves the subtracted span in the lane multiply_word spilled into
                if subtract(product, product, context.modulus, 0, limit, offset=window):
                    spill = window + limit * 2
                    product.set_lane(spill, product.lane(spill) - 1)

        negate(product, limit)
        decrement(product, limit)

    move(dest, product, limit)


def modular_power(dest: FixedWidthInteger, base: FixedWidthInteger, exponent: FixedWidthInteger,
                  modulus: FixedWidthInteger, limit: int = WORDS):
    '''
        dest = base ^ exponent mod modulus, by left-to-right square and multiply
    :param limit: capacity of the operands; the arithmetic itself runs at the modulus' significant word count
    '''
    if dest is base:
        base = base.copy()
    initialize(dest, 1, limit)

    width = significant_word_count(modulus, limit)
    context = ReductionContext.for_modulus(modulus, width)

    exp_bits = bit_length(exponent, width)
    if exp_bits == 0:
        context.clear()
        return

    exp_word = (exp_bits + 31) // 32 - 1
    mask = (1 << ((exp_bits - 1) % 32)) >> 1

    temp = FixedWidthInteger(WORDS)
    move(dest, base, width)

    # the leading exponent bit is the copy of base above
    for _ in range(exp_bits - 1):
        if mask == 0:
            mask = 0x80000000
            exp_word -= 1

        modular_multiply(temp, dest, dest, context, width)
        if exponent.word(exp_word) & mask:
            modular_multiply(dest, temp, base, context, width)
        else:
            move(dest, temp, width)

        mask >>= 1

    initialize(temp, 0, width)
    context.clear()
