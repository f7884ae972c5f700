"""Compute profile handler and the role-tagged network list it depends on"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.errors import CompositionError, OperationFailed
from hcx_executor.hcx_api.models import NETWORK_ROLE_ORDER, NamedEntity, NetworkAssignment, NetworkRole
from hcx_executor.hcx_api.resolver import CLUSTER_COMPUTE_TYPE
from .base import BaseHandler

DEFAULT_COMPUTE_TYPE = "VC"
REALIZED_STATUS = "REALIZED"


class NetworkRoleAssigner:
    """
    Builds the ``networks`` list of a compute profile.

    Management is always inserted first; replication, uplink and vmotion
    follow in that order. A role whose network name is already in the list
    is added to that entry's tags instead of producing a second entry.
    """

    @staticmethod
    def build_network_list(role_to_network: Mapping[NetworkRole, NamedEntity]) -> List[NetworkAssignment]:
        missing = [role.value for role in NETWORK_ROLE_ORDER if role not in role_to_network]
        if missing:
            raise CompositionError(f"No network resolved for role(s): {', '.join(missing)}")

        assignments: List[NetworkAssignment] = []
        for role in NETWORK_ROLE_ORDER:
            network = role_to_network[role]
            existing = None
            if role is not NetworkRole.MANAGEMENT:
                existing = next((a for a in assignments if a.network.name == network.name), None)
            if existing is None:
                assignments.append(NetworkAssignment(network=network, roles=[role]))
            elif role not in existing.roles:
                existing.roles.append(role)
        return assignments

    @staticmethod
    def to_body(assignments: Sequence[NetworkAssignment]) -> List[Dict[str, Any]]:
        return [
            {
                "name": a.network.name,
                "id": a.network.id,
                "staticRoutes": [],
                "status": {"state": REALIZED_STATUS},
                "tags": [role.value for role in a.roles],
            }
            for a in assignments
        ]


class ComputeProfileHandler(BaseHandler):
    """Creates, looks up and deletes interconnect compute profiles"""

    def _compute_ref(self, vcenter: NamedEntity, item: NamedEntity) -> Dict[str, Any]:
        return {
            "cmpId": vcenter.id,
            "cmpName": vcenter.name,
            "cmpType": DEFAULT_COMPUTE_TYPE,
            "id": item.id,
            "name": item.name,
            "type": item.type,
        }

    def build_body(
        self,
        name: str,
        vcenter: NamedEntity,
        datacenter: NamedEntity,
        cluster: NamedEntity,
        datastore: NamedEntity,
        dvs: NamedEntity,
        networks: Sequence[NetworkAssignment],
        services: Sequence[str],
    ) -> Dict[str, Any]:
        """Assemble the computeProfiles POST body from already resolved entities."""
        cluster_ref = NamedEntity(id=cluster.id, name=cluster.name, type=CLUSTER_COMPUTE_TYPE)
        switch = {
            "cmpId": vcenter.id,
            "id": dvs.id,
            "maxMtu": dvs.raw.get("maxMtu", 0),
            "name": dvs.name,
            "type": dvs.type,
        }
        return {
            "compute": [self._compute_ref(vcenter, datacenter)],
            "computeProfileId": "",
            "deploymentContainer": {
                "compute": [self._compute_ref(vcenter, cluster_ref)],
                "cpuReservation": 0,
                "memoryReservation": 0,
                "storage": [self._compute_ref(vcenter, datastore)],
            },
            "name": name,
            "networks": NetworkRoleAssigner.to_body(networks),
            "services": [{"name": service} for service in services],
            "state": "",
            "switches": [switch],
        }

    def create(
        self,
        name: str,
        cluster: str,
        datastore: str,
        dvs: str,
        management_network: str,
        replication_network: str,
        uplink_network: str,
        vmotion_network: str,
        services: Sequence[str],
        datacenter: Optional[str] = None,
    ) -> str:
        """
        Create a compute profile and wait for its interconnect task.

        Args:
            name: Compute profile name
            cluster: vSphere cluster name
            datastore: Datastore name in that cluster
            dvs: Distributed switch name in that cluster
            management_network: Network profile id used for management
            replication_network: Network profile id used for replication
            uplink_network: Network profile id used for uplink
            vmotion_network: Network profile id used for vMotion
            services: HCX service names to enable
            datacenter: Datacenter name (first datacenter when omitted)

        Returns:
            str: The new compute profile id

        Raises:
            NotFoundError: A named cluster, datastore, switch or network is missing
            OperationFailed: The interconnect task failed
        """
        resolver = self.resolver()
        vcenter = resolver.vcenter()
        dc = resolver.datacenter(vcenter, datacenter)
        cluster_entity = resolver.cluster(cluster, dc)
        datastore_entity = resolver.datastore(datastore, vcenter.id, cluster_entity.id)
        dvs_entity = resolver.dvs(dvs, vcenter.id, cluster_entity.id)

        role_to_network = {
            NetworkRole.MANAGEMENT: resolver.network_profile_by_id(management_network),
            NetworkRole.REPLICATION: resolver.network_profile_by_id(replication_network),
            NetworkRole.UPLINK: resolver.network_profile_by_id(uplink_network),
            NetworkRole.VMOTION: resolver.network_profile_by_id(vmotion_network),
        }
        networks = NetworkRoleAssigner.build_network_list(role_to_network)

        body = self.build_body(name, vcenter, dc, cluster_entity, datastore_entity, dvs_entity, networks, services)
        self.logger.info(f"Creating compute profile {name} on cluster {cluster}")
        response = self.session.post(endpoints.COMPUTE_PROFILES, body) or {}
        data = response.get("data") or {}
        task_id = data.get("interconnectTaskId")
        if not task_id:
            raise OperationFailed(f"Compute profile {name}: response carries no interconnect task id")

        self.poller.wait_for_task(task_id)
        self.logger.info(f"Compute profile {name} created ({data.get('computeProfileId')})")
        return data.get("computeProfileId", "")

    def get(self, name: str, endpoint_id: Optional[str] = None) -> NamedEntity:
        """Look up a compute profile by name, on the local endpoint unless one is given."""
        resolver = self.resolver()
        if endpoint_id is None:
            endpoint_id = resolver.local_cloud().id
        return resolver.compute_profile(name, endpoint_id)

    def delete(self, compute_profile_id: str):
        self.logger.info(f"Deleting compute profile {compute_profile_id}")
        response = self.session.delete(endpoints.COMPUTE_PROFILE.format(compute_profile_id=compute_profile_id)) or {}
        task_id = (response.get("data") or {}).get("interconnectTaskId")
        if task_id:
            self.poller.wait_for_task(task_id)
