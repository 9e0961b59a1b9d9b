"""
Factory resolving inventory switches to eAPI clients.
"""
import logging

from config.switch_inventory import SwitchInfo, inventory
from core.eapi_client import EAPIClient
from core.exceptions import SwitchNotFoundError

logger = logging.getLogger(__name__)


class EAPIClientFactory:
    """Builds EAPIClient instances from stored or ad-hoc credentials."""

    def __init__(self, switch_inventory=None):
        self._inventory = switch_inventory

    @property
    def inventory(self):
        return self._inventory or inventory

    def client_for_credentials(self, host: str, username: str, password: str) -> EAPIClient:
        """Client for a switch that is not in the inventory yet."""
        return EAPIClient(host=host, username=username, password=password)

    def client_for_switch(self, switch_info: SwitchInfo) -> EAPIClient:
        logger.debug(f"Building eAPI client for {switch_info.id} ({switch_info.mgmt_ip})")
        return self.client_for_credentials(switch_info.mgmt_ip, switch_info.username, switch_info.password)

    def client_for_id(self, switch_id: str) -> EAPIClient:
        """Resolve a switch id with a fresh inventory read."""
        switch_info = self.inventory.get_switch(switch_id)
        if not switch_info:
            raise SwitchNotFoundError(switch_id)
        return self.client_for_switch(switch_info)


# Global factory instance
client_factory = EAPIClientFactory()
