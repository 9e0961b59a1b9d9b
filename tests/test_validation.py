#!/usr/bin/env python3
"""
Tests for request validation.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.validation import NetworkValidator, ValidationError


def tunnel_body(**overrides):
    body = {
        'switchA': 'switch-1',
        'switchB': 'switch-2',
        'vni': 10100,
        'vlan': 100,
        'vtepA': '10.0.0.1',
        'vtepB': '10.0.0.2'
    }
    body.update(overrides)
    return body


class TestScalarValidators(unittest.TestCase):

    def test_vlan_id_bounds(self):
        self.assertTrue(NetworkValidator.validate_vlan_id(1)[0])
        self.assertTrue(NetworkValidator.validate_vlan_id('4094')[0])
        for bad in (0, 4095, -5, 'abc', None):
            is_valid, error = NetworkValidator.validate_vlan_id(bad)
            self.assertFalse(is_valid)
            self.assertEqual(error, "Invalid VLAN ID (must be between 1-4094)")

    def test_vlan_id_rejects_bools_and_fractions(self):
        for bad in (True, False, 100.7, '100.0'):
            self.assertFalse(NetworkValidator.validate_vlan_id(bad)[0], repr(bad))
        self.assertTrue(NetworkValidator.validate_vlan_id(100.0)[0])

    def test_vni_rejects_bools_and_fractions(self):
        for bad in (True, 10100.5):
            self.assertFalse(NetworkValidator.validate_vni(bad)[0], repr(bad))
        self.assertTrue(NetworkValidator.validate_vni('10100')[0])

    def test_vni_bounds(self):
        self.assertTrue(NetworkValidator.validate_vni(1)[0])
        self.assertTrue(NetworkValidator.validate_vni(16777215)[0])
        self.assertFalse(NetworkValidator.validate_vni(0)[0])
        self.assertFalse(NetworkValidator.validate_vni(16777216)[0])
        self.assertFalse(NetworkValidator.validate_vni('ten')[0])

    def test_ip_address(self):
        self.assertEqual(NetworkValidator.validate_ip_address('192.168.1.10'), (True, None))
        self.assertFalse(NetworkValidator.validate_ip_address('192.168.1.256')[0])
        self.assertFalse(NetworkValidator.validate_ip_address('switch01')[0])
        self.assertFalse(NetworkValidator.validate_ip_address('')[0])

    def test_vlan_name(self):
        self.assertTrue(NetworkValidator.validate_vlan_name('USERS')[0])
        self.assertFalse(NetworkValidator.validate_vlan_name('two words')[0])
        self.assertFalse(NetworkValidator.validate_vlan_name('x' * 33)[0])

    def test_interface_name(self):
        for name in ('Loopback0', 'Ethernet49/1', 'Port-Channel10', 'Ethernet1.100'):
            self.assertTrue(NetworkValidator.validate_interface_name(name)[0], name)
        self.assertFalse(NetworkValidator.validate_interface_name('loop back')[0])

    def test_vlan_1_cannot_be_deleted(self):
        self.assertEqual(NetworkValidator.validate_vlan_delete('1'), ["Cannot delete reserved VLAN 1"])
        self.assertEqual(NetworkValidator.validate_vlan_delete('100'), [])
        self.assertEqual(len(NetworkValidator.validate_vlan_delete('5000')), 1)


class TestRequestValidators(unittest.TestCase):

    def test_missing_fields_treats_empty_string_as_missing(self):
        missing = NetworkValidator.missing_fields({'vni': 0, 'vlan': ''}, ('vni', 'vlan', 'vtepIp'))
        self.assertEqual(missing, ['vlan', 'vtepIp'])

    def test_vxlan_config(self):
        good = {'vni': 10100, 'vlan': 100, 'sourceInterface': 'Loopback0', 'vtepIp': '10.0.0.2'}
        self.assertEqual(NetworkValidator.validate_vxlan_config(good), [])

        bad = dict(good, vni=0, vtepIp='nope')
        self.assertEqual(len(NetworkValidator.validate_vxlan_config(bad)), 2)

    def test_valid_tunnel(self):
        self.assertEqual(NetworkValidator.validate_tunnel_request(tunnel_body()), [])

    def test_tunnel_same_switch_rejected(self):
        errors = NetworkValidator.validate_tunnel_request(tunnel_body(switchB='switch-1'))
        self.assertIn("switchA and switchB must be different switches", errors)

    def test_tunnel_same_vtep_rejected(self):
        errors = NetworkValidator.validate_tunnel_request(tunnel_body(vtepB='10.0.0.1'))
        self.assertIn("vtepA and vtepB must be different addresses", errors)

    def test_tunnel_field_prefixes(self):
        errors = NetworkValidator.validate_tunnel_request(
            tunnel_body(vtepA='bad', sourceInterfaceB='not valid')
        )
        self.assertTrue(any(e.startswith('vtepA: ') for e in errors))
        self.assertTrue(any(e.startswith('sourceInterfaceB: ') for e in errors))

    def test_validation_error_message(self):
        error = ValidationError(['first', 'second'])
        self.assertEqual(str(error), 'first; second')
        self.assertEqual(error.errors, ['first', 'second'])


if __name__ == '__main__':
    unittest.main()
