"""
Read projections of live switch state.

VLANs, VXLANs and tunnels are never stored. They are rebuilt from
'show vlan' / 'show vxlan vni' on every request, and each rebuild mints
fresh ids.
"""
import logging
import time
from typing import Any, Dict, List

from config.switch_inventory import SwitchInfo
from core.exceptions import SwitchConnectionError

logger = logging.getLogger(__name__)


def _stamp() -> int:
    return int(time.time() * 1000)


def vlan_view(vlan: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': f"vlan-{vlan['vlanId']}-{_stamp()}",
        'vlanId': vlan['vlanId'],
        'name': vlan['name'],
        'status': 'active' if vlan.get('status') == 'active' else 'inactive',
        'interfaces': vlan.get('interfaces') or []
    }


def vxlan_view(vxlan: Dict[str, Any]) -> Dict[str, Any]:
    flood_list = vxlan.get('floodList') or []
    return {
        'id': f"vxlan-{vxlan['vni']}-{_stamp()}",
        'vni': vxlan['vni'],
        'name': f"VXLAN-{vxlan['vni']}",
        'vlan': vxlan.get('vlan'),
        'vtepIps': list(flood_list),
        'status': 'active',
        'tunnelCount': len(flood_list)
    }


def tunnel_view(vxlan: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': f"tunnel-{vxlan['vni']}-{_stamp()}",
        'vni': vxlan['vni'],
        'vlan': vxlan.get('vlan'),
        'type': vxlan.get('type'),
        'sourceInterface': vxlan.get('sourceInterface'),
        'vteps': vxlan.get('floodList') or [],
        'status': 'active'
    }


def collect_vlans(switches: List[SwitchInfo], client_factory) -> List[Dict[str, Any]]:
    """
    Merge VLANs across switches by VLAN id.
    Switches that cannot be queried are logged and skipped.
    """
    merged: Dict[int, Dict[str, Any]] = {}
    for switch in switches:
        try:
            vlans = client_factory.client_for_switch(switch).get_vlans()
        except SwitchConnectionError as e:
            logger.error(f"Error fetching VLANs from {switch.hostname}: {e}")
            continue

        for vlan in vlans:
            entry = merged.get(vlan['vlanId'])
            if entry is None:
                entry = vlan_view(vlan)
                del entry['interfaces']
                entry['switches'] = []
                merged[vlan['vlanId']] = entry
            if switch.id not in {s['id'] for s in entry['switches']}:
                entry['switches'].append(switch.summary())

    return [merged[vid] for vid in sorted(merged)]


def collect_vxlans(switches: List[SwitchInfo], client_factory) -> List[Dict[str, Any]]:
    """
    Merge VNIs across switches, unioning their flood lists.
    Switches that cannot be queried are logged and skipped.
    """
    merged: Dict[int, Dict[str, Any]] = {}
    for switch in switches:
        try:
            vxlans = client_factory.client_for_switch(switch).get_vxlans()
        except SwitchConnectionError as e:
            logger.error(f"Error fetching VXLANs from {switch.hostname}: {e}")
            continue

        for vxlan in vxlans:
            entry = merged.get(vxlan['vni'])
            if entry is None:
                entry = vxlan_view(vxlan)
                entry['switches'] = []
                merged[vxlan['vni']] = entry
            else:
                for vtep in vxlan.get('floodList') or []:
                    if vtep not in entry['vtepIps']:
                        entry['vtepIps'].append(vtep)
                entry['tunnelCount'] = len(entry['vtepIps'])
            if switch.id not in {s['id'] for s in entry['switches']}:
                entry['switches'].append(switch.summary())

    return [merged[vni] for vni in sorted(merged)]


def vnis_in_use(switches: List[SwitchInfo], client_factory) -> set:
    """VNIs configured on any reachable switch."""
    used = set()
    for switch in switches:
        try:
            used.update(v['vni'] for v in client_factory.client_for_switch(switch).get_vxlans())
        except SwitchConnectionError as e:
            logger.warning(f"Skipping {switch.hostname} while collecting VNIs: {e}")
    return used
