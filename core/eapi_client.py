"""
Arista eAPI client: JSON-RPC runCmds over HTTP(S) POST to /command-api.
"""
import logging
import time
from typing import Dict, List, Any, Optional

import requests
import urllib3

from config.settings import Config
from core.exceptions import (
    InvalidCredentialsError, PermissionDeniedError, ConnectionTimeoutError,
    APIUnavailableError, CommandError, MalformedResponseError, UnknownSwitchError,
    SwitchConnectionError
)
from core.api_logger import api_logger

if not Config.SSL_VERIFY:
    # Lab switches run self-signed certificates
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logging.getLogger('urllib3').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class EAPIClient:
    """Client for a single switch's eAPI endpoint."""

    def __init__(self, host: str, username: str, password: str,
                 port: Optional[int] = None, use_ssl: Optional[bool] = None,
                 verify_ssl: Optional[bool] = None, timeout: Optional[int] = None):
        self.host = host
        self.username = username
        self.port = port or Config.EAPI_PORT
        self.use_ssl = Config.EAPI_USE_SSL if use_ssl is None else use_ssl
        self.timeout = timeout or Config.EAPI_TIMEOUT
        self.base_url = f"{'https' if self.use_ssl else 'http'}://{host}:{self.port}/command-api"

        self.auth = (username, password)
        self.verify_ssl = Config.SSL_VERIFY if verify_ssl is None else verify_ssl

    def _session(self) -> requests.Session:
        """New session per call, closed once the reply is read."""
        session = requests.Session()
        session.auth = self.auth
        session.verify = self.verify_ssl
        session.headers.update({'Content-Type': 'application/json'})
        return session

    def run_commands(self, commands: List[str], fmt: str = 'json') -> List[Any]:
        """
        Execute a batch of CLI commands.

        Returns one result per command, in request order. Raises a
        SwitchConnectionError subclass for transport failures, JSON-RPC
        errors and malformed replies.
        """
        payload = {
            'jsonrpc': '2.0',
            'method': 'runCmds',
            'params': {
                'version': 1,
                'cmds': commands,
                'format': fmt
            },
            'id': str(int(time.time() * 1000))
        }

        start_time = time.time()
        response = None
        try:
            with self._session() as session:
                response = session.post(self.base_url, json=payload, timeout=self.timeout)
            result = self._parse_response(response, commands)
        except requests.exceptions.Timeout:
            error = ConnectionTimeoutError(self.host, f"No reply within {self.timeout}s")
            self._log(commands, fmt, None, start_time, str(error))
            raise error
        except requests.exceptions.ConnectionError as e:
            error = ConnectionTimeoutError(self.host, f"Network connection failed: {e}")
            self._log(commands, fmt, None, start_time, str(error))
            raise error
        except SwitchConnectionError as e:
            self._log(commands, fmt, response.status_code, start_time, str(e))
            raise

        self._log(commands, fmt, response.status_code, start_time)
        return result

    def _log(self, commands: List[str], fmt: str, status_code: Optional[int],
             start_time: float, error: Optional[str] = None) -> None:
        api_logger.log_call(
            switch_ip=self.host,
            url=self.base_url,
            commands=commands,
            output_format=fmt,
            response_code=status_code,
            duration_ms=(time.time() - start_time) * 1000,
            error=error
        )

    def _parse_response(self, response: requests.Response, commands: List[str]) -> List[Any]:
        """Map an HTTP reply to the command results or the matching exception."""
        status_code = response.status_code

        if status_code == 401:
            raise InvalidCredentialsError(self.host, self.username, response.text.strip() or None)
        if status_code == 403:
            raise PermissionDeniedError(self.host, self.username, response.text.strip() or None)
        if status_code == 404:
            raise APIUnavailableError(self.host, f"{self.base_url} not found")
        if not 200 <= status_code < 300:
            raise UnknownSwitchError(self.host, status_code, f"HTTP Error: {status_code} {response.reason}")

        try:
            data = response.json()
        except ValueError:
            raise MalformedResponseError(self.host, "response body is not JSON")

        if not isinstance(data, dict):
            raise MalformedResponseError(self.host, "response is not a JSON-RPC object")

        if data.get('error'):
            raise self._command_error(data['error'], commands)

        result = data.get('result')
        if not isinstance(result, list):
            raise MalformedResponseError(self.host, "missing 'result' list")
        if len(result) != len(commands):
            raise MalformedResponseError(
                self.host, f"expected {len(commands)} results, got {len(result)}"
            )
        return result

    def _command_error(self, error: Any, commands: List[str]) -> CommandError:
        """
        Build a CommandError from a JSON-RPC error object.
        eAPI puts one entry per executed command in error.data; the failing
        one carries an 'errors' list.
        """
        if not isinstance(error, dict):
            return CommandError(self.host, str(error))

        message = error.get('message') or str(error)
        failed_command = None
        details: List[str] = []
        for index, entry in enumerate(error.get('data') or []):
            if isinstance(entry, dict) and entry.get('errors'):
                details = [str(e) for e in entry['errors']]
                if index < len(commands):
                    failed_command = commands[index]
                break

        if details:
            message = f"{message}: {'; '.join(details)}"
        return CommandError(self.host, message, error.get('code'), failed_command)

    def run_config(self, commands: List[str]) -> List[Any]:
        """Run configuration commands inside enable/configure ... end."""
        return self.run_commands(['enable', 'configure', *commands, 'end'], 'text')

    def test_connection(self) -> Dict[str, Any]:
        """Run 'show version' and report whether the switch answered."""
        try:
            version_info = self.run_commands(['show version'])[0]
            return {
                'connected': True,
                'hostname': version_info.get('hostname'),
                'model': version_info.get('modelName'),
                'eosVersion': version_info.get('version'),
                'serialNumber': version_info.get('serialNumber'),
                'uptime': version_info.get('uptime')
            }
        except SwitchConnectionError as e:
            logger.warning(f"Connection test to {self.host} failed: {e}")
            return {
                'connected': False,
                'error': str(e)
            }

    def get_switch_info(self) -> Dict[str, Any]:
        version_info, interface_status = self.run_commands([
            'show version',
            'show interfaces status'
        ])
        return {
            'hostname': version_info.get('hostname'),
            'model': version_info.get('modelName'),
            'eosVersion': version_info.get('version'),
            'serialNumber': version_info.get('serialNumber'),
            'uptime': version_info.get('uptime'),
            'interfaces': interface_status.get('interfaceStatuses', {})
        }

    def get_vlans(self) -> List[Dict[str, Any]]:
        """Return the switch's VLANs sorted by id."""
        vlan_info = self.run_commands(['show vlan'])[0]
        vlans = []
        for vid, data in (vlan_info.get('vlans') or {}).items():
            interfaces = data.get('interfaces') or []
            if isinstance(interfaces, dict):
                interfaces = sorted(interfaces.keys())
            vlans.append({
                'vlanId': int(vid),
                'name': data.get('name'),
                'status': data.get('status'),
                'interfaces': interfaces
            })
        return sorted(vlans, key=lambda v: v['vlanId'])

    def create_vlan(self, vlan_id: int, name: str) -> Dict[str, Any]:
        self.run_config([f"vlan {vlan_id}", f"name {name}"])
        logger.info(f"Created VLAN {vlan_id} ('{name}') on {self.host}")
        return {'success': True, 'vlanId': vlan_id, 'name': name}

    def delete_vlan(self, vlan_id: int) -> Dict[str, Any]:
        self.run_config([f"no vlan {vlan_id}"])
        logger.info(f"Deleted VLAN {vlan_id} from {self.host}")
        return {'success': True, 'vlanId': vlan_id}

    def get_vxlans(self) -> List[Dict[str, Any]]:
        """
        Return VNI bindings from 'show vxlan vni'.

        Accepts the flat {'vnis': {...}} layout as well as the per-interface
        {'vxlanIntfs': {'Vxlan1': {'vniBindings': {...}}}} layout newer EOS
        releases emit.
        """
        vxlan_info = self.run_commands(['show vxlan vni'])[0]

        if vxlan_info.get('vnis'):
            return sorted((
                {
                    'vni': int(vni),
                    'floodList': data.get('floodList') or [],
                    'vlan': data.get('vlan'),
                    'sourceInterface': data.get('sourceInterface'),
                    'type': data.get('type')
                }
                for vni, data in vxlan_info['vnis'].items()
            ), key=lambda v: v['vni'])

        vxlans = []
        for intf_name, intf in (vxlan_info.get('vxlanIntfs') or {}).items():
            for vni, data in (intf.get('vniBindings') or {}).items():
                vxlans.append({
                    'vni': int(vni),
                    'floodList': data.get('floodList') or [],
                    'vlan': data.get('vlan'),
                    'sourceInterface': intf.get('sourceInterface', intf_name),
                    'type': data.get('source', 'static')
                })
        return sorted(vxlans, key=lambda v: v['vni'])

    def configure_vxlan(self, vni: int, vlan: int, source_interface: str, vtep_ip: str) -> Dict[str, Any]:
        self.run_config([
            'interface vxlan 1',
            f"vxlan vni {vni} vlan {vlan}",
            f"vxlan source-interface {source_interface}",
            f"vxlan vlan {vlan} vni {vni}",
            f"vxlan flood vtep {vtep_ip}"
        ])
        logger.info(f"Configured VNI {vni} on VLAN {vlan} at {self.host} (flood VTEP {vtep_ip})")
        return {'success': True, 'vni': vni, 'vlan': vlan}

    def get_loopback_interfaces(self) -> List[Dict[str, str]]:
        """Loopbacks are the usual VXLAN source interfaces."""
        interface_status = self.run_commands(['show interfaces status'])[0]
        return [
            {
                'name': name,
                'status': data.get('linkStatus'),
                'description': data.get('description') or ''
            }
            for name, data in sorted((interface_status.get('interfaceStatuses') or {}).items())
            if name.lower().startswith('loopback')
        ]
