"""
Switch inventory persisted as a single JSON file.

Every operation re-reads the whole file and writes it back wholesale.
There is no locking: two requests writing at the same time can lose one
of the writes. That is acceptable for the lab deployments this targets.
"""
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.settings import Config

logger = logging.getLogger(__name__)

MASKED_PASSWORD = '********'

# Fields a PUT may change; anything else in the body is ignored
UPDATABLE_FIELDS = ('hostname', 'mgmtIP', 'username', 'password', 'status')


@dataclass
class SwitchInfo:
    """A managed Arista switch and its cached status."""
    id: str
    hostname: str
    mgmt_ip: str
    username: str
    password: str
    model: Optional[str] = None
    eos_version: Optional[str] = None
    uptime: Optional[float] = None
    status: str = "unknown"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'SwitchInfo':
        return cls(
            id=record['id'],
            hostname=record.get('hostname', ''),
            mgmt_ip=record.get('mgmtIP', ''),
            username=record.get('username', ''),
            password=record.get('password', ''),
            model=record.get('model'),
            eos_version=record.get('eosVersion'),
            uptime=record.get('uptime'),
            status=record.get('status', 'unknown'),
        )

    def to_record(self) -> Dict[str, Any]:
        """Shape written to the inventory file."""
        return {
            'id': self.id,
            'hostname': self.hostname,
            'mgmtIP': self.mgmt_ip,
            'username': self.username,
            'password': self.password,
            'model': self.model,
            'eosVersion': self.eos_version,
            'uptime': self.uptime,
            'status': self.status,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses, with the password masked."""
        data = self.to_record()
        data['password'] = MASKED_PASSWORD
        return data

    def summary(self) -> Dict[str, str]:
        return {'id': self.id, 'hostname': self.hostname}


class SwitchInventory:
    """Manages the inventory of Arista switches stored in a JSON file."""

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)

    def load(self) -> List[SwitchInfo]:
        """Read every switch from disk, creating an empty file on first run."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"Switch inventory {self.config_path} not found, creating it")
            self.save([])
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Error loading switches config {self.config_path}: {e}")
            raise

        return [SwitchInfo.from_record(record) for record in data.get('switches', [])]

    def save(self, switches: List[SwitchInfo]) -> None:
        """Write the full switch list back to disk."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {'switches': [switch.to_record() for switch in switches]}
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
        logger.debug(f"Saved {len(switches)} switches to {self.config_path}")

    def get_all_switches(self) -> List[SwitchInfo]:
        """Get all switches in inventory."""
        return self.load()

    def get_switch(self, switch_id: str) -> Optional[SwitchInfo]:
        """Get switch information by id."""
        for switch in self.load():
            if switch.id == switch_id:
                return switch
        return None

    def get_connected_switches(self) -> List[SwitchInfo]:
        """Get only switches whose last connectivity test passed."""
        return [switch for switch in self.load() if switch.status == 'connected']

    def add_switch(self, hostname: str, mgmt_ip: str, username: str, password: str,
                   model: Optional[str] = None, eos_version: Optional[str] = None,
                   uptime: Optional[float] = None, status: str = 'connected') -> SwitchInfo:
        """Add a switch to the inventory and return it."""
        switches = self.load()
        switch = SwitchInfo(
            id=self.generate_id({s.id for s in switches}),
            hostname=hostname,
            mgmt_ip=mgmt_ip,
            username=username,
            password=password,
            model=model,
            eos_version=eos_version,
            uptime=uptime,
            status=status,
        )
        switches.append(switch)
        self.save(switches)
        logger.info(f"Added switch {hostname} ({mgmt_ip}) to inventory as {switch.id}")
        return switch

    def update_switch(self, switch_id: str, **changes: Any) -> Optional[SwitchInfo]:
        """
        Shallow-merge changes into a stored switch.
        Empty values are ignored so a form can omit fields it does not change.
        """
        switches = self.load()
        for index, switch in enumerate(switches):
            if switch.id != switch_id:
                continue
            record = switch.to_record()
            for field in UPDATABLE_FIELDS:
                value = changes.get(field)
                if value:
                    record[field] = value
            switches[index] = SwitchInfo.from_record(record)
            self.save(switches)
            logger.info(f"Updated switch {switch_id}")
            return switches[index]
        return None

    def remove_switch(self, switch_id: str) -> bool:
        """Remove a switch from the inventory."""
        switches = self.load()
        remaining = [switch for switch in switches if switch.id != switch_id]
        if len(remaining) == len(switches):
            return False
        self.save(remaining)
        logger.info(f"Removed switch {switch_id} from inventory")
        return True

    @staticmethod
    def generate_id(existing_ids=()) -> str:
        """Timestamp-based id, bumped by a millisecond on collision."""
        stamp = int(time.time() * 1000)
        while f"switch-{stamp}" in existing_ids:
            stamp += 1
        return f"switch-{stamp}"


# Global inventory instance
inventory = SwitchInventory(Config.SWITCHES_CONFIG)
