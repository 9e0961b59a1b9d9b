#!/usr/bin/env python3
"""
Tests for the eAPI client with the HTTP layer mocked at requests.Session.post.
"""

import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.api_logger import api_logger
from core.eapi_client import EAPIClient
from core.exceptions import (
    APIUnavailableError, CommandError, ConnectionTimeoutError, InvalidCredentialsError,
    MalformedResponseError, PermissionDeniedError, UnknownSwitchError
)


def reply(result=None, status_code=200, error=None, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.reason = 'OK' if status_code == 200 else 'Error'
    response.text = ''
    if body is not None:
        response.json.return_value = body
    elif error is not None:
        response.json.return_value = {'jsonrpc': '2.0', 'id': '1', 'error': error}
    else:
        response.json.return_value = {'jsonrpc': '2.0', 'id': '1', 'result': result}
    return response


class EAPIClientTestCase(unittest.TestCase):

    def setUp(self):
        api_logger.clear_history()
        self.client = EAPIClient('192.168.1.10', 'admin', 'arista', port=443,
                                 use_ssl=True, verify_ssl=False, timeout=5)
        patcher = patch('requests.Session.post')
        self.post = patcher.start()
        self.addCleanup(patcher.stop)

    def sent_payload(self):
        return self.post.call_args.kwargs['json']


class TestRunCommands(EAPIClientTestCase):

    def test_request_shape(self):
        self.post.return_value = reply([{}])
        self.client.run_commands(['show version'])

        self.assertEqual(self.post.call_args.args[0], 'https://192.168.1.10:443/command-api')
        self.assertEqual(self.post.call_args.kwargs['timeout'], 5)
        payload = self.sent_payload()
        self.assertEqual(payload['jsonrpc'], '2.0')
        self.assertEqual(payload['method'], 'runCmds')
        self.assertEqual(payload['params'], {'version': 1, 'cmds': ['show version'], 'format': 'json'})
        self.assertIsInstance(payload['id'], str)

    def test_session_closed_after_call(self):
        self.post.return_value = reply([{}])
        with patch('requests.Session.close') as close:
            self.client.run_commands(['show version'])
        close.assert_called_once()

    def test_session_closed_after_timeout(self):
        self.post.side_effect = requests.exceptions.Timeout()
        with patch('requests.Session.close') as close:
            with self.assertRaises(ConnectionTimeoutError):
                self.client.run_commands(['show version'])
        close.assert_called_once()

    def test_http_scheme_when_ssl_disabled(self):
        client = EAPIClient('10.1.1.1', 'admin', 'pw', port=80, use_ssl=False)
        self.assertEqual(client.base_url, 'http://10.1.1.1:80/command-api')

    def test_results_in_request_order(self):
        self.post.return_value = reply([{'a': 1}, {'b': 2}])
        self.assertEqual(self.client.run_commands(['show a', 'show b']), [{'a': 1}, {'b': 2}])

    def test_http_status_mapping(self):
        cases = {401: InvalidCredentialsError, 403: PermissionDeniedError,
                 404: APIUnavailableError, 500: UnknownSwitchError}
        for status_code, error_class in cases.items():
            self.post.return_value = reply(status_code=status_code)
            with self.assertRaises(error_class):
                self.client.run_commands(['show version'])

    def test_timeout(self):
        self.post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(ConnectionTimeoutError) as ctx:
            self.client.run_commands(['show version'])
        self.assertEqual(ctx.exception.http_status, 503)

    def test_connection_refused(self):
        self.post.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(ConnectionTimeoutError):
            self.client.run_commands(['show version'])

    def test_jsonrpc_error_names_failed_command(self):
        self.post.return_value = reply(error={
            'code': 1002,
            'message': "CLI command 3 of 3 'vlan 5000' failed: invalid command",
            'data': [{}, {}, {'errors': ['Invalid input (at token 1)']}]
        })
        commands = ['enable', 'configure', 'vlan 5000']
        with self.assertRaises(CommandError) as ctx:
            self.client.run_commands(commands, 'text')

        self.assertEqual(ctx.exception.http_status, 502)
        self.assertIn('Invalid input (at token 1)', str(ctx.exception))
        self.assertIn("vlan 5000", str(ctx.exception))

    def test_malformed_replies(self):
        for body in ({'jsonrpc': '2.0'}, {'result': 'text'}, ['not', 'a', 'dict']):
            self.post.return_value = reply(body=body)
            with self.assertRaises(MalformedResponseError):
                self.client.run_commands(['show version'])

    def test_result_count_mismatch(self):
        self.post.return_value = reply([{}])
        with self.assertRaises(MalformedResponseError):
            self.client.run_commands(['show a', 'show b'])

    def test_non_json_body(self):
        response = reply([{}])
        response.json.side_effect = ValueError('no json')
        self.post.return_value = response
        with self.assertRaises(MalformedResponseError):
            self.client.run_commands(['show version'])

    def test_calls_are_logged(self):
        self.post.return_value = reply([{}])
        self.client.run_commands(['show version'])
        self.post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(ConnectionTimeoutError):
            self.client.run_commands(['show version'])

        calls = api_logger.get_recent_calls()
        self.assertEqual(len(calls), 2)
        self.assertTrue(calls[0]['success'])
        self.assertEqual(calls[0]['response_code'], 200)
        self.assertFalse(calls[1]['success'])
        self.assertIsNone(calls[1]['response_code'])


class TestOperations(EAPIClientTestCase):

    def test_connection_success(self):
        self.post.return_value = reply([{
            'hostname': 'leaf1', 'modelName': 'DCS-7050SX3-48YC8',
            'version': '4.28.1F', 'serialNumber': 'JPE123', 'uptime': 1234.5
        }])
        result = self.client.test_connection()
        self.assertTrue(result['connected'])
        self.assertEqual(result['model'], 'DCS-7050SX3-48YC8')
        self.assertEqual(result['eosVersion'], '4.28.1F')

    def test_connection_failure_is_reported_not_raised(self):
        self.post.return_value = reply(status_code=401)
        result = self.client.test_connection()
        self.assertFalse(result['connected'])
        self.assertIn('error', result)

    def test_get_vlans(self):
        self.post.return_value = reply([{'vlans': {
            '100': {'name': 'USERS', 'status': 'active', 'interfaces': {'Ethernet2': {}, 'Ethernet1': {}}},
            '1': {'name': 'default', 'status': 'active', 'interfaces': {}}
        }}])
        vlans = self.client.get_vlans()
        self.assertEqual([v['vlanId'] for v in vlans], [1, 100])
        self.assertEqual(vlans[1]['interfaces'], ['Ethernet1', 'Ethernet2'])

    def test_create_vlan_commands(self):
        self.post.return_value = reply(['', '', '', '', ''])
        result = self.client.create_vlan(100, 'USERS')

        self.assertEqual(result, {'success': True, 'vlanId': 100, 'name': 'USERS'})
        payload = self.sent_payload()
        self.assertEqual(payload['params']['cmds'], ['enable', 'configure', 'vlan 100', 'name USERS', 'end'])
        self.assertEqual(payload['params']['format'], 'text')

    def test_delete_vlan_commands(self):
        self.post.return_value = reply(['', '', '', ''])
        self.client.delete_vlan(100)
        self.assertEqual(self.sent_payload()['params']['cmds'], ['enable', 'configure', 'no vlan 100', 'end'])

    def test_get_vxlans_flat_layout(self):
        self.post.return_value = reply([{'vnis': {
            '10100': {'vlan': 100, 'floodList': ['10.0.0.2'], 'sourceInterface': 'Loopback0', 'type': 'static'}
        }}])
        self.assertEqual(self.client.get_vxlans(), [{
            'vni': 10100, 'floodList': ['10.0.0.2'], 'vlan': 100,
            'sourceInterface': 'Loopback0', 'type': 'static'
        }])

    def test_get_vxlans_interface_layout(self):
        self.post.return_value = reply([{'vxlanIntfs': {'Vxlan1': {'vniBindings': {
            '20001': {'vlan': 200, 'source': 'static'}
        }}}}])
        vxlans = self.client.get_vxlans()
        self.assertEqual(vxlans[0]['vni'], 20001)
        self.assertEqual(vxlans[0]['floodList'], [])
        self.assertEqual(vxlans[0]['sourceInterface'], 'Vxlan1')

    def test_configure_vxlan_commands(self):
        self.post.return_value = reply([''] * 8)
        self.client.configure_vxlan(10100, 100, 'Loopback0', '10.0.0.2')
        self.assertEqual(self.sent_payload()['params']['cmds'], [
            'enable', 'configure', 'interface vxlan 1', 'vxlan vni 10100 vlan 100',
            'vxlan source-interface Loopback0', 'vxlan vlan 100 vni 10100',
            'vxlan flood vtep 10.0.0.2', 'end'
        ])

    def test_loopback_interfaces(self):
        self.post.return_value = reply([{'interfaceStatuses': {
            'Ethernet1': {'linkStatus': 'connected'},
            'Loopback0': {'linkStatus': 'connected', 'description': 'router-id'}
        }}])
        self.assertEqual(self.client.get_loopback_interfaces(), [
            {'name': 'Loopback0', 'status': 'connected', 'description': 'router-id'}
        ])


if __name__ == '__main__':
    unittest.main()
