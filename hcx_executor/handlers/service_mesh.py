"""Service mesh handler"""

from typing import Any, Dict, Sequence

from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.errors import CompositionError, OperationFailed
from hcx_executor.hcx_api.models import NamedEntity, SitePairing
from .base import BaseHandler

DEFAULT_UPLINK_MAX_BANDWIDTH = 10000


class ServiceMeshHandler(BaseHandler):
    """Pairs a local and a remote compute profile into a service mesh"""

    @staticmethod
    def _first_switch(profile: NamedEntity) -> Dict[str, Any]:
        switches = profile.raw.get("switches") or []
        if not switches:
            raise CompositionError(f"Compute profile '{profile.name}' has no switch")
        return switches[0]

    def build_body(
        self,
        name: str,
        site_pairing: SitePairing,
        local_profile: NamedEntity,
        remote_profile: NamedEntity,
        services: Sequence[str],
        uplink_max_bandwidth: int = DEFAULT_UPLINK_MAX_BANDWIDTH,
        app_path_resiliency_enabled: bool = False,
        tcp_flow_conditioning_enabled: bool = False,
        nb_appliances: int = 1,
    ) -> Dict[str, Any]:
        return {
            "name": name,
            "computeProfiles": [
                {
                    "computeProfileId": local_profile.id,
                    "computeProfileName": local_profile.name,
                    "endpointId": site_pairing.local_endpoint_id,
                    "endpointName": site_pairing.local_name,
                },
                {
                    "computeProfileId": remote_profile.id,
                    "computeProfileName": remote_profile.name,
                    "endpointId": site_pairing.endpoint_id,
                    "endpointName": site_pairing.remote_name,
                },
            ],
            "wanoptConfig": {"uplinkMaxBandwidth": uplink_max_bandwidth},
            "trafficEnggCfg": {
                "isAppPathResiliencyEnabled": app_path_resiliency_enabled,
                "isTcpFlowConditioningEnabled": tcp_flow_conditioning_enabled,
            },
            "services": [{"name": service} for service in services],
            "switchPairCount": [
                {
                    "switches": [self._first_switch(local_profile), self._first_switch(remote_profile)],
                    "l2cApplianceCount": nb_appliances,
                }
            ],
        }

    def create(
        self,
        name: str,
        site_pairing: SitePairing,
        local_compute_profile: str,
        remote_compute_profile: str,
        services: Sequence[str],
        uplink_max_bandwidth: int = DEFAULT_UPLINK_MAX_BANDWIDTH,
        app_path_resiliency_enabled: bool = False,
        tcp_flow_conditioning_enabled: bool = False,
        nb_appliances: int = 1,
    ) -> Dict[str, Any]:
        """
        Create a service mesh and wait for its interconnect task.

        Args:
            name: Service mesh name
            site_pairing: Pairing the mesh spans (gives both endpoint ids)
            local_compute_profile: Compute profile name on the local endpoint
            remote_compute_profile: Compute profile name on the remote endpoint
            services: HCX service names to enable
            uplink_max_bandwidth: WAN optimization bandwidth cap (Mbps)
            app_path_resiliency_enabled: Traffic engineering flag
            tcp_flow_conditioning_enabled: Traffic engineering flag
            nb_appliances: Network extension appliances per switch pair

        Returns:
            dict: service_mesh_id and appliances_id (network extension appliances of the mesh)
        """
        resolver = self.resolver()
        local_profile = resolver.compute_profile(local_compute_profile, site_pairing.local_endpoint_id)
        remote_profile = resolver.compute_profile(remote_compute_profile, site_pairing.endpoint_id)

        body = self.build_body(
            name,
            site_pairing,
            local_profile,
            remote_profile,
            services,
            uplink_max_bandwidth=uplink_max_bandwidth,
            app_path_resiliency_enabled=app_path_resiliency_enabled,
            tcp_flow_conditioning_enabled=tcp_flow_conditioning_enabled,
            nb_appliances=nb_appliances,
        )

        self.logger.info(f"Creating service mesh {name}")
        response = self.session.post(endpoints.SERVICE_MESHES, body) or {}
        data = response.get("data") or {}
        task_id = data.get("interconnectTaskId")
        service_mesh_id = data.get("serviceMeshId", "")
        if not task_id:
            raise OperationFailed(f"Service mesh {name}: response carries no interconnect task id")

        self.poller.wait_for_task(task_id)

        appliances = resolver.appliances(site_pairing.local_endpoint_id, service_mesh_id)
        appliance_ids = [a.get("applianceId", "") for a in appliances]
        self.logger.info(f"Service mesh {name} created ({service_mesh_id}) with {len(appliance_ids)} appliance(s)")
        return {"service_mesh_id": service_mesh_id, "appliances_id": appliance_ids}

    def delete(self, service_mesh_id: str, force: bool = False):
        self.logger.info(f"Deleting service mesh {service_mesh_id} (force={force})")
        path = endpoints.SERVICE_MESH_DELETE.format(service_mesh_id=service_mesh_id, force=str(force).lower())
        response = self.session.delete(path) or {}
        task_id = (response.get("data") or {}).get("interconnectTaskId")
        if task_id:
            self.poller.wait_for_task(task_id)
