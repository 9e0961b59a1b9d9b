"""
Point-to-point VXLAN tunnel orchestration across two switches.

Creating a tunnel configures switch A, then switch B, each with one batched
eAPI call, and records a phase entry after every step. The first failure
stops the sequence. If switch A was already configured at that point its
side is rolled back with a compensating batch, so a failed run does not
leave a one-sided flood list behind.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.client_factory import client_factory as default_client_factory
from core.eapi_client import EAPIClient
from core.projections import tunnel_view, vnis_in_use
from core.validation import NetworkValidator, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_INTERFACE = 'Loopback0'

PHASE_SESSIONS = ('Creating configuration sessions', 20)
PHASE_SWITCH_A = ('Configuring Switch A', 50)
PHASE_SWITCH_B = ('Configuring Switch B', 80)
PHASE_VERIFY = ('Verifying tunnel configuration', 100)
PHASE_ROLLBACK_A = 'Rolling back Switch A'


@dataclass
class TunnelRequest:
    """Parameters for a tunnel between two inventory switches."""
    switch_a: str
    switch_b: str
    vni: int
    vlan: int
    vtep_a: str
    vtep_b: str
    source_interface_a: str = DEFAULT_SOURCE_INTERFACE
    source_interface_b: str = DEFAULT_SOURCE_INTERFACE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TunnelRequest':
        """Build a request from a JSON body, raising ValidationError on bad input."""
        missing = NetworkValidator.missing_fields(data, NetworkValidator.TUNNEL_FIELDS)
        if missing:
            raise ValidationError([f"Missing required fields: {', '.join(missing)}"])

        errors = NetworkValidator.validate_tunnel_request(data)
        if errors:
            raise ValidationError(errors)

        return cls(
            switch_a=data['switchA'],
            switch_b=data['switchB'],
            vni=int(data['vni']),
            vlan=int(data['vlan']),
            vtep_a=data['vtepA'].strip(),
            vtep_b=data['vtepB'].strip(),
            source_interface_a=data.get('sourceInterfaceA') or DEFAULT_SOURCE_INTERFACE,
            source_interface_b=data.get('sourceInterfaceB') or DEFAULT_SOURCE_INTERFACE,
        )


def side_commands(vlan: int, vni: int, source_interface: str, remote_vtep: str) -> List[str]:
    """Full eAPI batch configuring one end of the tunnel."""
    return [
        'enable',
        'configure',
        f"vlan {vlan}",
        f"name VXLAN-{vni}",
        'exit',
        'interface vxlan 1',
        f"vxlan vni {vni} vlan {vlan}",
        f"vxlan source-interface {source_interface}",
        f"vxlan flood vtep {remote_vtep}",
        'end'
    ]


def rollback_commands(vlan: int, vni: int, remote_vtep: str) -> List[str]:
    # The VLAN itself is left alone, it may have existed before the tunnel
    return [
        'enable',
        'configure',
        'interface vxlan 1',
        f"no vxlan flood vtep {remote_vtep}",
        f"no vxlan vni {vni} vlan {vlan}",
        'end'
    ]


def side_config_text(label: str, vlan: int, vni: int, source_interface: str, remote_vtep: str) -> str:
    """EOS running-config style preview for one end."""
    return '\n'.join([
        '!',
        f"! {label} VXLAN Configuration",
        '!',
        'interface vxlan 1',
        f"  vxlan vni {vni} vlan {vlan}",
        f"  vxlan source-interface {source_interface}",
        f"  vxlan flood vtep {remote_vtep}",
        '!',
        f"vlan {vlan}",
        f"  name VXLAN-{vni}",
        '!'
    ])


class TunnelOrchestrator:
    """Runs tunnel previews, creation and discovery against inventory switches."""

    def __init__(self, client_factory=None):
        self.client_factory = client_factory or default_client_factory

    def preview(self, request: TunnelRequest) -> Dict[str, str]:
        return {
            'configA': side_config_text('Switch A', request.vlan, request.vni,
                                        request.source_interface_a, request.vtep_b),
            'configB': side_config_text('Switch B', request.vlan, request.vni,
                                        request.source_interface_b, request.vtep_a),
        }

    def create(self, request: TunnelRequest) -> Dict[str, Any]:
        """
        Configure both ends and return the run summary:
        {sessionId, status, phases, errorMessage}. status ends as
        'success' or 'failed'; failures never raise.
        """
        result = {
            'sessionId': f"tunnel-{int(time.time() * 1000)}",
            'status': 'inProgress',
            'phases': [],
            'errorMessage': None
        }
        progress = self._complete_phase(result, *PHASE_SESSIONS)
        configured_a: Optional[EAPIClient] = None

        logger.info(f"Tunnel {result['sessionId']}: VNI {request.vni} VLAN {request.vlan} "
                    f"between {request.switch_a} ({request.vtep_a}) and {request.switch_b} ({request.vtep_b})")
        try:
            client_a = self.client_factory.client_for_id(request.switch_a)
            client_a.run_commands(
                side_commands(request.vlan, request.vni, request.source_interface_a, request.vtep_b), 'text'
            )
            configured_a = client_a
            progress = self._complete_phase(result, *PHASE_SWITCH_A)

            client_b = self.client_factory.client_for_id(request.switch_b)
            client_b.run_commands(
                side_commands(request.vlan, request.vni, request.source_interface_b, request.vtep_a), 'text'
            )
            progress = self._complete_phase(result, *PHASE_SWITCH_B)

            progress = self._complete_phase(result, *PHASE_VERIFY)
            result['status'] = 'success'
            logger.info(f"Tunnel {result['sessionId']} created")

        except Exception as e:
            logger.error(f"Tunnel {result['sessionId']} failed at {progress}%: {e}")
            if configured_a is not None:
                self._rollback_switch_a(result, configured_a, request, progress)
            result['phases'].append({
                'name': f"Error during phase at {progress}%",
                'status': 'failed',
                'progress': progress,
                'error': str(e)
            })
            result['status'] = 'failed'
            result['errorMessage'] = str(e)

        return result

    @staticmethod
    def _complete_phase(result: Dict[str, Any], name: str, progress: int) -> int:
        result['phases'].append({'name': name, 'status': 'complete', 'progress': progress})
        return progress

    def _rollback_switch_a(self, result: Dict[str, Any], client: EAPIClient,
                           request: TunnelRequest, progress: int) -> None:
        """Best effort; a rollback failure is recorded but never replaces the original error."""
        try:
            client.run_commands(rollback_commands(request.vlan, request.vni, request.vtep_b), 'text')
            result['phases'].append({'name': PHASE_ROLLBACK_A, 'status': 'complete', 'progress': progress})
            logger.info(f"Tunnel {result['sessionId']}: rolled back {request.switch_a}")
        except Exception as e:
            logger.error(f"Tunnel {result['sessionId']}: rollback of {request.switch_a} failed: {e}")
            result['phases'].append({
                'name': PHASE_ROLLBACK_A,
                'status': 'failed',
                'progress': progress,
                'error': str(e)
            })

    def list_tunnels(self, switch_id: str) -> List[Dict[str, Any]]:
        """Tunnels on one switch, derived from its VNI bindings."""
        client = self.client_factory.client_for_id(switch_id)
        return [tunnel_view(vxlan) for vxlan in client.get_vxlans()]

    def suggest_vnis(self, count: int = 5, start: int = 20001) -> List[int]:
        """First free VNIs from start, skipping any VNI in use on a reachable switch."""
        used = vnis_in_use(self.client_factory.inventory.get_all_switches(), self.client_factory)
        suggested = []
        candidate = start
        while len(suggested) < count and candidate <= NetworkValidator.MAX_VNI:
            if candidate not in used:
                suggested.append(candidate)
            candidate += 1
        return suggested


# Global orchestrator instance
tunnel_orchestrator = TunnelOrchestrator()
