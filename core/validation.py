"""
Input validation for switch, VLAN, VXLAN and tunnel requests.
"""
import re
import logging
from typing import List, Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when validation fails."""

    def __init__(self, errors: List[str]):
        super().__init__('; '.join(errors))
        self.errors = errors


class NetworkValidator:
    """Validates network configuration inputs before they reach a switch."""

    # VLAN 1 always exists on EOS and cannot be removed
    RESERVED_VLANS = {1}

    MIN_VLAN_ID = 1
    MAX_VLAN_ID = 4094

    # 24-bit VXLAN network identifier
    MIN_VNI = 1
    MAX_VNI = 16777215

    # EOS VLAN names: up to 32 printable characters, no whitespace
    VLAN_NAME_PATTERN = re.compile(r'^\S{1,32}$')

    IP_PATTERN = re.compile(r'^(\d{1,3}\.){3}\d{1,3}$')

    # Loopback0, Ethernet1, Ethernet49/1, Port-Channel10, Vlan100, Ethernet1.100
    INTERFACE_PATTERN = re.compile(r'^[A-Za-z][A-Za-z-]*\d+(/\d+)*(\.\d+)?$')

    TUNNEL_FIELDS = ('switchA', 'switchB', 'vni', 'vtepA', 'vtepB', 'vlan')

    @staticmethod
    def _whole_number(value: Any) -> Optional[int]:
        """int for ints, integral floats and digit strings; None for anything else, bools included."""
        if isinstance(value, bool):
            return None
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @classmethod
    def validate_ip_address(cls, ip_address: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate IPv4 address format.
        Returns (is_valid, error_message).
        """
        if not ip_address or not isinstance(ip_address, str):
            return False, "IP address must be a non-empty string"

        ip_address = ip_address.strip()

        if not cls.IP_PATTERN.match(ip_address):
            return False, f"IP address '{ip_address}' must be in format x.x.x.x"

        for octet in ip_address.split('.'):
            if int(octet) > 255:
                return False, f"IP address octet {octet} is out of range (0-255)"

        return True, None

    @classmethod
    def validate_vlan_id(cls, vlan_id: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate VLAN ID.
        Returns (is_valid, error_message).
        """
        vlan_id = cls._whole_number(vlan_id)
        if vlan_id is None or vlan_id < cls.MIN_VLAN_ID or vlan_id > cls.MAX_VLAN_ID:
            return False, f"Invalid VLAN ID (must be between {cls.MIN_VLAN_ID}-{cls.MAX_VLAN_ID})"

        return True, None

    @classmethod
    def validate_vni(cls, vni: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate a VXLAN network identifier.
        Returns (is_valid, error_message).
        """
        vni = cls._whole_number(vni)
        if vni is None or vni < cls.MIN_VNI or vni > cls.MAX_VNI:
            return False, f"Invalid VNI (must be between {cls.MIN_VNI}-{cls.MAX_VNI})"

        return True, None

    @classmethod
    def validate_vlan_name(cls, vlan_name: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate VLAN name.
        Returns (is_valid, error_message).
        """
        if not vlan_name or not isinstance(vlan_name, str):
            return False, "VLAN name must be a non-empty string"

        if len(vlan_name) > 32:
            return False, "VLAN name cannot exceed 32 characters"

        if not cls.VLAN_NAME_PATTERN.match(vlan_name):
            return False, "VLAN name cannot contain whitespace"

        return True, None

    @classmethod
    def validate_interface_name(cls, interface_name: Any) -> Tuple[bool, Optional[str]]:
        if not interface_name or not isinstance(interface_name, str):
            return False, "Interface name must be a non-empty string"

        if not cls.INTERFACE_PATTERN.match(interface_name.strip()):
            return False, f"Invalid interface name '{interface_name}'"

        return True, None

    @staticmethod
    def missing_fields(data: Dict[str, Any], fields) -> List[str]:
        """Return the required fields that are absent or empty."""
        return [field for field in fields if data.get(field) in (None, '')]

    @classmethod
    def validate_vlan_delete(cls, vlan_id: Any) -> List[str]:
        is_valid, error = cls.validate_vlan_id(vlan_id)
        if not is_valid:
            return [error]
        if int(vlan_id) in cls.RESERVED_VLANS:
            return [f"Cannot delete reserved VLAN {int(vlan_id)}"]
        return []

    @classmethod
    def validate_vxlan_config(cls, data: Dict[str, Any]) -> List[str]:
        """
        Validate a single-switch VXLAN request.
        Returns list of error messages (empty if valid).
        """
        errors = []

        for check, field in ((cls.validate_vni, 'vni'),
                             (cls.validate_vlan_id, 'vlan'),
                             (cls.validate_interface_name, 'sourceInterface'),
                             (cls.validate_ip_address, 'vtepIp')):
            is_valid, error = check(data.get(field))
            if not is_valid:
                errors.append(error)

        return errors

    @classmethod
    def validate_tunnel_request(cls, data: Dict[str, Any]) -> List[str]:
        """
        Validate a tunnel preview/create request.
        Returns list of error messages (empty if valid).
        """
        errors = []

        is_valid, error = cls.validate_vni(data.get('vni'))
        if not is_valid:
            errors.append(error)

        is_valid, error = cls.validate_vlan_id(data.get('vlan'))
        if not is_valid:
            errors.append(error)

        for field in ('vtepA', 'vtepB'):
            is_valid, error = cls.validate_ip_address(data.get(field))
            if not is_valid:
                errors.append(f"{field}: {error}")

        for field in ('sourceInterfaceA', 'sourceInterfaceB'):
            if data.get(field):
                is_valid, error = cls.validate_interface_name(data[field])
                if not is_valid:
                    errors.append(f"{field}: {error}")

        if data.get('switchA') == data.get('switchB'):
            errors.append("switchA and switchB must be different switches")

        if data.get('vtepA') and data.get('vtepA') == data.get('vtepB'):
            errors.append("vtepA and vtepB must be different addresses")

        return errors


