from mixkey import derive_blowfish_key, derive_key_material, get_public_key, setup_logging
from mixkey.bignumber import FixedWidthInteger, WORDS
from mixkey.key import block_size
from mixkey.reduction import modular_power

if __name__ == '__main__':

    setup_logging()
    public = get_public_key()
    n = int(public.modulus)
    a = block_size(public)
    print(f'modulus: {n.bit_length()} bits, {a + 1}-byte blocks carrying {a} key bytes')

    # a key source with two blocks below the modulus
    source = bytes(range(1, 40)) + b'\x00' + bytes(range(100, 139)) + b'\x00'

    key = derive_blowfish_key(source)
    assert len(key) == 56

    # every block is plain RSA with e = 65537
    material = derive_key_material(source)
    for i in range(2):
        x = int.from_bytes(source[i * (a + 1):(i + 1) * (a + 1)], 'little')
        assert material[i * a:(i + 1) * a] == pow(x, 65537, n).to_bytes(a + 1, 'little')[:a]

    # the engine on its own
    x = 0x123456789ABCDEF
    dest = FixedWidthInteger(WORDS)
    modular_power(dest, FixedWidthInteger.from_int(x, WORDS), public.exponent, public.modulus)
    assert int(dest) == pow(x, 65537, n)

    print(f'key: {key.hex()}')
    print(f'succeeded!')
