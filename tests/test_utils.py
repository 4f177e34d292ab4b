import importlib
import json
import logging
import os
import tempfile
import unittest
from unittest import mock

import mixkey
from mixkey.utils import DEFAULT_CONFIG, generate_moduli, load_config, profiler, setup_logging


class TestUtils(unittest.TestCase):

    def test_default_config(self):
        with tempfile.TemporaryDirectory() as d, mock.patch('os.getcwd', return_value=d), \
                mock.patch.dict(os.environ, {}, clear=True):
            config = load_config()
            self.assertFalse(os.path.exists(os.path.join(d, 'config.json')))  # nothing is written

        self.assertEqual(config, DEFAULT_CONFIG)

    def test_config_from_env(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'mixkey.json')
            with open(path, 'w') as file:
                json.dump({"TOTAL_CORES": 2, "LOG_LEVEL": "DEBUG"}, file)

            with mock.patch('os.getcwd', return_value=d), mock.patch.dict(os.environ, {'MIXKEY_CONFIG_PATH': path}):
                config = load_config()

        self.assertEqual(config['TOTAL_CORES'], 2)
        self.assertEqual(config['LOG_LEVEL'], 'DEBUG')
        self.assertEqual(config['PROFILE'], DEFAULT_CONFIG['PROFILE'])

    def test_setup_logging(self):
        package_logger = setup_logging('DEBUG')
        try:
            self.assertEqual(package_logger.name, 'mixkey')
            self.assertEqual(package_logger.level, logging.DEBUG)

            with mock.patch.dict('mixkey.utils.config', {'LOG_LEVEL': 'ERROR'}):
                package_logger = setup_logging()
            self.assertEqual(package_logger.level, logging.ERROR)
        finally:
            package_logger.setLevel(logging.NOTSET)

    def test_import_leaves_logging_alone(self):
        # the host application owns the logging setup
        package_logger = logging.getLogger('mixkey')
        package_logger.setLevel(logging.NOTSET)
        importlib.reload(mixkey)
        self.assertEqual(package_logger.level, logging.NOTSET)

    def test_profiler(self):
        calls = []

        def work(x):
            calls.append(x)
            return x * 2

        self.assertIs(profiler(num_runs=3, enabled=False)(work), work)

        with self.assertLogs('mixkey.utils', level='INFO') as logs:
            self.assertEqual(profiler(num_runs=3, enabled=True)(work)(21), 42)
        self.assertEqual(len(calls), 4)
        self.assertIn('Average execution time for work', logs.output[0])

    def test_generate_moduli(self):
        for n in generate_moduli(3, 128):
            self.assertEqual(n.bit_length(), 128)
            self.assertEqual(n & 1, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
