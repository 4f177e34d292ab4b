## Utils: configuration, logging, profiling and test number generation
import functools
import json
import logging
import os
import time

import sympy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "LOG_LEVEL": "WARNING",
    "PROFILE": False,
    "PROFILE_RUNS": 10,
    "TOTAL_CORES": 6
}


def load_config():
    '''
        Look for config.json in the current working directory, then the project root, then at MIXKEY_CONFIG_PATH.
        Missing keys fall back to DEFAULT_CONFIG.
    '''
    config_filename = 'config.json'

    # Determine the script directory (assumed to be the project root)
    script_directory = os.path.dirname(os.path.abspath(__file__))
    project_root_config_path = os.path.join(script_directory, '..', config_filename)

    # Paths to check for the config file
    paths_to_check = [
        os.path.join(os.getcwd(), config_filename),  # Current Working Directory
        os.path.normpath(project_root_config_path)  # Project Root Directory
    ]

    env_config_path = os.getenv('MIXKEY_CONFIG_PATH')
    if env_config_path:
        paths_to_check.append(env_config_path)

    config = dict(DEFAULT_CONFIG)
    for path in paths_to_check:
        if os.path.exists(path):
            with open(path, 'r') as file:
                config.update(json.load(file))
            logger.debug(f'Loaded configuration from {path}')
            break

    return config


def setup_logging(level=None):
    ''' Set the package logger's level, from LOG_LEVEL unless given. '''
    if level is None:
        level = config.get('LOG_LEVEL', DEFAULT_CONFIG['LOG_LEVEL'])

    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(level)
    return package_logger


def profiler(num_runs=100, enabled=True):
    def decorator(func):
        if not enabled:
            # If profiling is disabled, return the original function unmodified
            return func

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            total_time = 0
            for _ in range(num_runs):
                start_time = time.perf_counter()
                func(*args, **kwargs)
                total_time += time.perf_counter() - start_time
            logger.info(f'Average execution time for {func.__name__}: {total_time / num_runs} seconds')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def generate_moduli(count, num_bits=320):
    ''' RSA-style moduli of exactly num_bits bits, each the product of two random primes. '''
    moduli = []
    while len(moduli) < count:
        half = num_bits // 2
        p = int(sympy.randprime(2 ** (half - 1), 2 ** half))
        q = int(sympy.randprime(2 ** (num_bits - half - 1), 2 ** (num_bits - half)))
        n = p * q
        if n.bit_length() == num_bits and p != q:
            moduli.append(n)
    return moduli


config = load_config()
