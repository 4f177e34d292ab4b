## Exceptions raised by the key recovery. None of them is transient: the computation is pure, so retrying with the
# same input and modulus fails the same way.


class MixKeyError(Exception):
    pass


class ModulusDecodeError(MixKeyError):
    ''' The embedded public key constant is malformed, or its modulus is wider than the working registers. '''
    pass


class DegenerateModulusError(MixKeyError):
    ''' The modulus is too small to carry a single byte of key per block. '''
    pass


class InputLengthError(MixKeyError, ValueError):
    ''' A caller supplied buffer is shorter than the block layout requires. '''
    pass
