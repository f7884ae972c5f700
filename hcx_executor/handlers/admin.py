"""Appliance admin configuration (admin API on :9443)"""

import time
from typing import Any, Dict, List, Optional, Sequence

from hcx_executor import config
from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.adapter import AuthKind
from hcx_executor.hcx_api.errors import OperationFailed
from hcx_executor.utils import encode_password
from .base import BaseHandler

SSO_PROVIDER_TYPE = "PSC"
APP_ENGINE_STOPPED = "STOPPED"
APP_ENGINE_RUNNING = "RUNNING"
SYSTEM_ADMINISTRATOR_ROLE = "System Administrator"
ENTERPRISE_ADMINISTRATOR_ROLE = "Enterprise Administrator"


def _config_items(response: Any) -> List[Dict[str, Any]]:
    return ((response or {}).get("data") or {}).get("items") or []


def _first_uuid(response: Any) -> Optional[str]:
    items = _config_items(response)
    if not items:
        return None
    return (items[0].get("config") or {}).get("UUID")


class AdminConfigHandler(BaseHandler):
    """
    Day-0 appliance configuration.

    Every call uses basic auth with the appliance admin credentials.
    """

    def _get(self, path: str) -> Any:
        return self.session.get(path, auth_kind=AuthKind.ADMIN)

    def _post(self, path: str, body: Any = None) -> Any:
        return self.session.post(path, body, auth_kind=AuthKind.ADMIN)

    def _put(self, path: str, body: Any = None) -> Any:
        return self.session.put(path, body, auth_kind=AuthKind.ADMIN)

    def _delete(self, path: str) -> Any:
        return self.session.delete(path, auth_kind=AuthKind.ADMIN)

    # Activation

    def get_activation(self) -> Optional[str]:
        """UUID of the current activation config, None when the appliance is not activated."""
        return _first_uuid(self._get(endpoints.ADMIN_ACTIVATION))

    def activate(self, url: str, activation_key: str) -> Optional[str]:
        """Activate the appliance unless an activation config already exists."""
        existing = self.get_activation()
        if existing:
            self.logger.info(f"Appliance already activated ({existing})")
            return existing

        self.logger.info(f"Activating appliance against {url}")
        body = {"data": {"items": [{"config": {"url": url, "activationKey": activation_key}}]}}
        self._post(endpoints.ADMIN_ACTIVATION, body)
        return self.get_activation()

    # SSO lookup service

    def get_sso(self) -> Optional[str]:
        return _first_uuid(self._get(endpoints.ADMIN_LOOKUP_SERVICE))

    def set_sso(self, lookup_service_url: str) -> Optional[str]:
        """Insert the lookup service config, or update the existing one in place."""
        existing = self.get_sso()
        item_config: Dict[str, Any] = {"lookupServiceUrl": lookup_service_url, "providerType": SSO_PROVIDER_TYPE}

        if existing is None:
            self.logger.info(f"Registering SSO lookup service {lookup_service_url}")
            response = self._post(endpoints.ADMIN_LOOKUP_SERVICE, {"data": {"items": [{"config": item_config}]}})
            return _first_uuid(response)

        self.logger.info(f"Updating SSO lookup service {existing} to {lookup_service_url}")
        item_config["UUID"] = existing
        self._post(
            endpoints.ADMIN_LOOKUP_SERVICE_ITEM.format(uuid=existing),
            {"data": {"items": [{"config": item_config}]}},
        )
        return existing

    def delete_sso(self, uuid: str):
        self.logger.info(f"Removing SSO lookup service {uuid}")
        self._delete(endpoints.ADMIN_LOOKUP_SERVICE_ITEM.format(uuid=uuid))

    # Location

    def set_location(
        self,
        city: str,
        country: str,
        province: str = "",
        latitude: float = config.DEFAULT_LATITUDE,
        longitude: float = config.DEFAULT_LONGITUDE,
    ):
        body = {
            "city": city,
            "country": country,
            "cityAscii": city,
            "province": province,
            "latitude": latitude,
            "longitude": longitude,
        }
        self._put(endpoints.ADMIN_LOCATION, body)

    def get_location(self) -> Dict[str, Any]:
        return self._get(endpoints.ADMIN_LOCATION) or {}

    def reset_location(self):
        self.set_location("", "", "", config.DEFAULT_LATITUDE, config.DEFAULT_LONGITUDE)

    # Role mappings

    def set_role_mappings(self, system_admin_groups: Sequence[str], enterprise_admin_groups: Sequence[str]) -> Dict[str, Any]:
        body = [
            {"role": SYSTEM_ADMINISTRATOR_ROLE, "userGroups": list(system_admin_groups)},
            {"role": ENTERPRISE_ADMINISTRATOR_ROLE, "userGroups": list(enterprise_admin_groups)},
        ]
        response = self._put(endpoints.ADMIN_ROLE_MAPPINGS, body) or {}
        if response.get("isSuccess") is False:
            raise OperationFailed(f"Role mapping update rejected: {response.get('message')}")
        return response

    def reset_role_mappings(self):
        self.set_role_mappings([], [])

    # vCenter registration

    def app_engine_status(self) -> str:
        return (self._get(endpoints.APP_ENGINE_STATUS) or {}).get("result", "")

    def _wait_for_app_engine(self, expected: str, max_polls: Optional[int] = None):
        polls = 0
        while True:
            status = self.app_engine_status()
            polls += 1
            if status == expected:
                return
            if max_polls is not None and polls >= max_polls:
                raise OperationFailed(f"App engine still '{status}' after {polls} polls, expected {expected}")
            time.sleep(config.APP_ENGINE_POLL_INTERVAL)

    def restart_app_engine(self, max_polls: Optional[int] = None):
        self.logger.info("Restarting app engine")
        self._post(endpoints.APP_ENGINE_STOP)
        self._wait_for_app_engine(APP_ENGINE_STOPPED, max_polls)
        self._post(endpoints.APP_ENGINE_START)
        self._wait_for_app_engine(APP_ENGINE_RUNNING, max_polls)
        time.sleep(config.APP_ENGINE_SETTLE_DELAY)

    def register_vcenter(self, url: str, username: str, password: str) -> Optional[str]:
        """
        Register a vCenter with the connector and restart the app engine so it is picked up.

        Returns:
            UUID of the vCenter config
        """
        self.logger.info(f"Registering vCenter {url}")
        body = {
            "data": {
                "items": [
                    {"config": {"url": url, "userName": username, "password": encode_password(password)}}
                ]
            }
        }
        uuid = _first_uuid(self._post(endpoints.ADMIN_VCENTER, body))
        self.restart_app_engine()
        return uuid

    def delete_vcenter(self, uuid: str):
        self.logger.info(f"Removing vCenter {uuid}")
        self._delete(endpoints.ADMIN_VCENTER_ITEM.format(uuid=uuid))
