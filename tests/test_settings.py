#!/usr/bin/env python3
"""
Tests for configuration validation.
"""

import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import Config


class TestConfigValidate(unittest.TestCase):

    def test_defaults_are_valid(self):
        with patch.multiple(Config, PORT=3001, EAPI_PORT=443, EAPI_TIMEOUT=30, LOG_LEVEL='info'):
            self.assertEqual(Config.validate(), [])

    def test_bad_values_reported(self):
        with patch.multiple(Config, PORT=-1, EAPI_PORT=70000, EAPI_TIMEOUT=0, LOG_LEVEL='loud'):
            errors = Config.validate()
        self.assertEqual(len(errors), 4)
        self.assertTrue(any('LOG_LEVEL' in e for e in errors))

    def test_empty_inventory_path_reported(self):
        with patch.object(Config, 'SWITCHES_CONFIG', ''):
            self.assertIn("SWITCHES_CONFIG must point to a JSON file", Config.validate())


if __name__ == '__main__':
    unittest.main()
