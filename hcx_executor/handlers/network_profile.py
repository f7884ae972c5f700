"""Network profile handler"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.errors import InvalidInputError, OperationFailed
from hcx_executor.hcx_api.models import NamedEntity, SitePairing
from .base import BaseHandler

NETWORK_TYPE_DVPG = "DistributedVirtualPortgroup"
NETWORK_TYPE_NSX_SEGMENT = "NsxtSegment"
ALLOWED_NETWORK_TYPES = (NETWORK_TYPE_DVPG, NETWORK_TYPE_NSX_SEGMENT)


def validate_network_type(network_type: str):
    if network_type not in ALLOWED_NETWORK_TYPES:
        raise InvalidInputError(
            f"Unsupported network type '{network_type}', expected one of {', '.join(ALLOWED_NETWORK_TYPES)}"
        )


@dataclass
class NetworkProfileConfig:
    """Desired state of a network profile"""

    name: str
    mtu: int
    prefix_length: int
    gateway: str = ""
    primary_dns: str = ""
    secondary_dns: str = ""
    dns_suffix: str = ""
    network_name: str = ""
    network_type: str = NETWORK_TYPE_DVPG
    ip_ranges: List[Tuple[str, str]] = field(default_factory=list)
    # VMC SDDCs come with their network profiles; they are updated, never created or deleted
    vmc: bool = False

    def ip_scope(self, pool_id: str = "") -> Dict[str, Any]:
        scope: Dict[str, Any] = {"prefixLength": self.prefix_length, "poolId": pool_id}
        optional = {
            "dnsSuffix": self.dns_suffix,
            "gateway": self.gateway,
            "primaryDns": self.primary_dns,
            "secondaryDns": self.secondary_dns,
        }
        scope.update({key: value for key, value in optional.items() if value})
        if self.ip_ranges:
            scope["networkIpRanges"] = [
                {"startAddress": start, "endAddress": end} for start, end in self.ip_ranges
            ]
        return scope


class NetworkProfileHandler(BaseHandler):
    """Creates, updates and deletes HCX network profiles"""

    def _backing(self, profile: NetworkProfileConfig, site_pairing: SitePairing) -> Dict[str, Any]:
        validate_network_type(profile.network_type)
        network = self.resolver().network_backing(
            profile.network_name, site_pairing.local_endpoint_id, profile.network_type
        )
        return {
            "backingId": network.id,
            "backingName": profile.network_name,
            "type": profile.network_type,
            "vCenterInstanceUuid": site_pairing.local_vc,
        }

    def _wait(self, response: Dict[str, Any], what: str):
        job_id = ((response or {}).get("data") or {}).get("jobId")
        if not job_id:
            raise OperationFailed(f"{what}: response carries no job id")
        self.poller.wait_for_job(job_id)

    def create(self, profile: NetworkProfileConfig, site_pairing: SitePairing) -> str:
        """
        Create a network profile and return its object id.

        In VMC mode the profile already exists and is updated instead.
        """
        if profile.vmc:
            return self.update(profile, site_pairing)

        if not profile.network_name:
            raise InvalidInputError("VMC switch is not enabled. Network name is mandatory")

        body = {
            "backings": [self._backing(profile, site_pairing)],
            "description": "",
            "organization": "DEFAULT",
            "ipScopes": [profile.ip_scope()],
            "mtu": profile.mtu,
            "name": profile.name,
            "l3TenantManaged": False,
            "ownedBySystem": True,
        }
        self.logger.info(f"Creating network profile {profile.name} on {profile.network_name}")
        self._wait(self.session.post(endpoints.NETWORKS, body), f"Network profile {profile.name}")
        return self.read(profile.name).id

    def read(self, name: str) -> NamedEntity:
        return self.resolver().network_profile(name)

    def update(self, profile: NetworkProfileConfig, site_pairing: SitePairing) -> str:
        """
        Rewrite the IP scope (and, outside VMC mode, the backing) of an existing profile.

        The pool id of the current IP scope is preserved.
        """
        existing = self.read(profile.name)
        body = dict(existing.raw)

        if not profile.vmc:
            body["name"] = profile.name
            body["backings"] = [self._backing(profile, site_pairing)]

        scopes = body.get("ipScopes") or [{}]
        body["mtu"] = profile.mtu
        body["ipScopes"] = [profile.ip_scope(pool_id=scopes[0].get("poolId", ""))]

        self.logger.info(f"Updating network profile {profile.name} ({existing.id})")
        self._wait(
            self.session.put(endpoints.NETWORK.format(object_id=existing.id), body),
            f"Network profile {profile.name}",
        )
        return self.read(profile.name).id

    def delete(self, object_id: str, vmc: bool = False):
        if vmc:
            self.logger.info(f"Network profile {object_id} belongs to the SDDC, leaving it in place")
            return
        self.logger.info(f"Deleting network profile {object_id}")
        self._wait(self.session.delete(endpoints.NETWORK.format(object_id=object_id)), f"Network profile {object_id}")
