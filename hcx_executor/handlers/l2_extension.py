"""L2 network extension handler and network extension appliance selection"""

from typing import Any, Dict, List, Optional

from hcx_executor import config
from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.errors import OperationFailed
from hcx_executor.hcx_api.models import ApplianceAllocation, NamedEntity, SitePairing
from hcx_executor.hcx_api.resolver import NamedEntityResolver
from .base import BaseHandler
from .network_profile import validate_network_type


class ApplianceAllocator:
    """Chooses which network extension appliance carries a new L2 extension"""

    def __init__(self, resolver: NamedEntityResolver, logger):
        self.resolver = resolver
        self.logger = logger

    @staticmethod
    def _allocation(appliance: Dict[str, Any]) -> ApplianceAllocation:
        return ApplianceAllocation(
            appliance_id=appliance.get("applianceId"),
            service_mesh_id=appliance.get("serviceMeshId"),
            current_extension_count=int(appliance.get("networkExtensionCount") or 0),
        )

    def select(
        self,
        endpoint_id: str,
        service_mesh_id: Optional[str] = None,
        appliance_id: Optional[str] = None,
    ) -> ApplianceAllocation:
        """
        Pick an appliance for ``endpoint_id``.

        An explicit ``appliance_id`` wins without any capacity check. Otherwise
        the first appliance of ``service_mesh_id`` with spare capacity is used,
        falling back to the first appliance returned. With no appliance at all
        the allocation carries no id and HCX deploys one.
        """
        if appliance_id:
            return ApplianceAllocation(appliance_id=appliance_id, service_mesh_id=service_mesh_id)

        appliances: List[Dict[str, Any]] = self.resolver.appliances(endpoint_id)
        if not appliances:
            self.logger.info(f"No network extension appliance on endpoint {endpoint_id}, letting HCX pick one")
            return ApplianceAllocation(appliance_id=None, service_mesh_id=service_mesh_id)

        if service_mesh_id:
            for appliance in appliances:
                allocation = self._allocation(appliance)
                if (
                    allocation.service_mesh_id == service_mesh_id
                    and allocation.current_extension_count < config.APPLIANCE_EXTENSION_CAPACITY
                ):
                    return allocation

        fallback = self._allocation(appliances[0])
        if not service_mesh_id:
            return fallback
        self.logger.warning(
            f"No appliance with spare capacity in service mesh {service_mesh_id}, "
            f"using first appliance {fallback.appliance_id} (mesh {fallback.service_mesh_id})"
        )
        return fallback


class L2ExtensionHandler(BaseHandler):
    """Stretches a local network to the remote site over a service mesh appliance"""

    def build_body(
        self,
        site_pairing: SitePairing,
        source_network: NamedEntity,
        allocation: ApplianceAllocation,
        destination_t1: str,
        gateway: str,
        netmask: str,
        egress_optimization: bool = False,
        mon: bool = False,
    ) -> Dict[str, Any]:
        source_appliance = {}
        if allocation.appliance_id:
            source_appliance["applianceId"] = allocation.appliance_id
        return {
            "vcGuid": site_pairing.local_vc,
            "gateway": gateway,
            "netmask": netmask,
            "dns": [],
            "destination": {
                "endpointId": site_pairing.endpoint_id,
                "endpointName": site_pairing.remote_name,
                "endpointType": site_pairing.remote_endpoint_type,
                "resourceId": site_pairing.remote_resource_id,
                "resourceName": site_pairing.remote_resource_name,
                "resourceType": site_pairing.remote_resource_type,
            },
            "destinationNetwork": {"gatewayId": destination_t1},
            "features": {"egressOptimization": egress_optimization, "mobilityOptimizedNetworking": mon},
            "sourceAppliance": source_appliance,
            "sourceNetwork": {
                "networkId": source_network.id,
                "networkName": source_network.name,
                "networkType": source_network.type,
            },
        }

    def create(
        self,
        site_pairing: SitePairing,
        source_network: str,
        network_type: str,
        destination_t1: str,
        gateway: str,
        netmask: str,
        service_mesh_id: Optional[str] = None,
        appliance_id: Optional[str] = None,
        egress_optimization: bool = False,
        mon: bool = False,
    ) -> str:
        """
        Extend ``source_network`` and return the stretch id.

        Args:
            site_pairing: Pairing with the destination site
            source_network: Local port group / segment name
            network_type: DistributedVirtualPortgroup or NsxtSegment
            destination_t1: Gateway id on the destination side
            gateway: Gateway address of the extended network
            netmask: Netmask of the extended network
            service_mesh_id: Mesh whose appliances are preferred
            appliance_id: Force a specific appliance
            egress_optimization: Enable egress optimization
            mon: Enable Mobility Optimized Networking

        Raises:
            InvalidInputError: Unsupported network type
            NotFoundError: Network or resulting extension not found
            OperationFailed: The extension job failed
        """
        validate_network_type(network_type)
        resolver = self.resolver()
        network = resolver.network_backing(source_network, site_pairing.local_endpoint_id, network_type)
        allocation = ApplianceAllocator(resolver, self.logger).select(
            site_pairing.local_endpoint_id, service_mesh_id, appliance_id
        )

        body = self.build_body(
            site_pairing, network, allocation, destination_t1, gateway, netmask, egress_optimization, mon
        )
        self.logger.info(f"Extending network {source_network} via appliance {allocation.appliance_id or '(auto)'}")
        response = self.session.post(endpoints.L2_EXTENSIONS, body) or {}
        job_id = response.get("id")
        if not job_id:
            raise OperationFailed(f"L2 extension of {source_network}: response carries no job id")
        self.poller.wait_for_job(job_id)

        stretch = resolver.l2_extension(network.name)
        self.logger.info(f"Network {source_network} extended ({stretch.id})")
        return stretch.id

    def delete(self, stretch_id: str):
        self.logger.info(f"Deleting L2 extension {stretch_id}")
        response = self.session.delete(endpoints.L2_EXTENSION.format(stretch_id=stretch_id)) or {}
        job_id = response.get("id")
        if job_id:
            self.poller.wait_for_job(job_id)
