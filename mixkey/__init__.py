from .errors import MixKeyError, ModulusDecodeError, DegenerateModulusError, InputLengthError
from .publickey import PublicKey, get_public_key
from .key import (KEY_SIZE, SOURCE_SIZE, derive_blowfish_key, derive_blowfish_keys, derive_key_material,
                  get_blowfish_key)
from .utils import setup_logging

__version__ = '0.1.0'
