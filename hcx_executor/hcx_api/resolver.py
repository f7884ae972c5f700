"""
Named entity resolution.

Translates the names found in configuration into the identifiers HCX
expects, by fetching the full list from the matching inventory or listing
endpoint and scanning it for an exact match. Nothing is cached between
resolver instances; a handler creates one resolver per operation and may
ask it to memoize lookups it repeats within that operation.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import endpoints
from .adapter import AuthKind
from .errors import InvalidInputError, NotFoundError
from .models import NamedEntity, Sddc

CLUSTER_COMPUTE_TYPE = "ClusterComputeResource"
NETWORK_EXTENSION_APPLIANCE = "HCX-NET-EXT"


def _items(response: Any, *path: str) -> List[Dict[str, Any]]:
    """Walk ``path`` into a response and return the list found there ([] when absent)."""
    node = response
    for key in path:
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    return node if isinstance(node, list) else []


class NamedEntityResolver:
    """Exact-match lookups against HCX list and query endpoints"""

    def __init__(self, session, memoize: bool = False, logger: Optional[logging.Logger] = None):
        """
        Args:
            session: HcxSession used for the lookups
            memoize: Reuse results of identical lookups made through this instance
            logger: Defaults to the session logger
        """
        self.session = session
        self.logger = logger or session.logger
        self._memo: Optional[Dict[Tuple, Any]] = {} if memoize else None

    def _cached(self, key: Tuple, lookup: Callable[[], Any]) -> Any:
        if self._memo is None:
            return lookup()
        if key not in self._memo:
            self._memo[key] = lookup()
        return self._memo[key]

    def _match(
        self,
        kind: str,
        key: str,
        items: Iterable[Dict[str, Any]],
        predicate: Callable[[Dict[str, Any]], bool],
        build: Callable[[Dict[str, Any]], NamedEntity],
        scope: Optional[str] = None,
    ) -> NamedEntity:
        for item in items:
            if predicate(item):
                entity = build(item)
                self.logger.debug(f"Resolved {kind} '{key}' to {entity.id}")
                return entity
        self.logger.error(f"Cannot find {kind} '{key}'" + (f" in {scope}" if scope else ""))
        raise NotFoundError(kind, key, scope)

    def resolve(self, kind: str, name: str, **scope: Any) -> NamedEntity:
        """
        Generic entry point: ``resolve("datastore", "ds-1", vcenter_instance_id=..., cluster_id=...)``.

        Raises:
            InvalidInputError: Unknown kind
            NotFoundError: No exact match
        """
        lookups = {
            "cluster": self.cluster,
            "datastore": self.datastore,
            "dvs": self.dvs,
            "network_backing": self.network_backing,
            "compute_profile": self.compute_profile,
            "network_profile": self.network_profile,
            "network_profile_id": self.network_profile_by_id,
            "l2_extension": self.l2_extension,
            "remote_cloud": self.remote_cloud,
        }
        if kind not in lookups:
            raise InvalidInputError(f"Unknown entity kind '{kind}'")
        return lookups[kind](name, **scope)

    # vCenter inventory

    def vcenter(self) -> NamedEntity:
        """First vCenter registered with the connector, with its inventory tree in ``raw``."""

        def lookup():
            response = self.session.post(endpoints.INVENTORY_VC_LIST, {})
            items = _items(response, "data", "items")
            if not items:
                raise NotFoundError("vCenter", "*", "vc/list")
            item = items[0]
            return NamedEntity(
                id=item.get("entity_id", ""),
                name=item.get("name", ""),
                type=item.get("entityType", ""),
                parent_context=item.get("vcenter_instanceId"),
                raw=item,
            )

        return self._cached(("vcenter",), lookup)

    def datacenter(self, vcenter: NamedEntity, name: Optional[str] = None) -> NamedEntity:
        """Datacenter child of a vCenter, by name or the first one when no name is given."""
        children = vcenter.raw.get("children") or []
        build = lambda item: NamedEntity(
            id=item.get("entity_id", ""),
            name=item.get("name", ""),
            type=item.get("entityType", ""),
            parent_context=item.get("vcenter_instanceId", vcenter.parent_context),
            raw=item,
        )
        if name is None:
            if not children:
                raise NotFoundError("datacenter", "*", f"vCenter {vcenter.name}")
            return build(children[0])
        return self._match("datacenter", name, children, lambda d: d.get("name") == name, build, f"vCenter {vcenter.name}")

    def cluster(self, name: str, datacenter: NamedEntity) -> NamedEntity:
        return self._match(
            "cluster",
            name,
            datacenter.raw.get("children") or [],
            lambda c: c.get("name") == name,
            lambda c: NamedEntity(
                id=c.get("entity_id", ""),
                name=c.get("name", ""),
                type=c.get("entityType", ""),
                parent_context=c.get("vcenter_instanceId", datacenter.parent_context),
                raw=c,
            ),
            f"datacenter {datacenter.name}",
        )

    def _compute_query(self, path: str, vcenter_instance_id: str, cluster_id: str) -> List[Dict[str, Any]]:
        body = {
            "filter": {
                "computeType": CLUSTER_COMPUTE_TYPE,
                "vcenter_instanceId": vcenter_instance_id,
                "computeIds": [cluster_id],
            }
        }
        return _items(self.session.post(path, body), "data", "items")

    def datastore(self, name: str, vcenter_instance_id: str, cluster_id: str) -> NamedEntity:
        def lookup():
            return self._match(
                "datastore",
                name,
                self._compute_query(endpoints.INVENTORY_DATASTORES, vcenter_instance_id, cluster_id),
                lambda d: d.get("name") == name,
                lambda d: NamedEntity(
                    id=d.get("id", ""),
                    name=d.get("name", ""),
                    type=d.get("entity_type", ""),
                    parent_context=cluster_id,
                    raw=d,
                ),
                f"cluster {cluster_id}",
            )

        return self._cached(("datastore", name, vcenter_instance_id, cluster_id), lookup)

    def dvs(self, name: str, vcenter_instance_id: str, cluster_id: str) -> NamedEntity:
        def lookup():
            return self._match(
                "distributed switch",
                name,
                self._compute_query(endpoints.INVENTORY_DVS, vcenter_instance_id, cluster_id),
                lambda d: d.get("name") == name,
                lambda d: NamedEntity(
                    id=d.get("id", ""),
                    name=d.get("name", ""),
                    type=d.get("type", ""),
                    parent_context=cluster_id,
                    raw=d,
                ),
                f"cluster {cluster_id}",
            )

        return self._cached(("dvs", name, vcenter_instance_id, cluster_id), lookup)

    # Networks

    def network_backing(self, name: str, endpoint_id: str, network_type: str) -> NamedEntity:
        """Network backing (port group or segment) matched on name AND entity type."""

        def lookup():
            response = self.session.post(
                endpoints.INVENTORY_NETWORKS, {"filter": {"cloud": {"endpointId": endpoint_id}}}
            )
            return self._match(
                "network",
                name,
                _items(response, "data", "items"),
                lambda n: n.get("name") == name and n.get("entityType") == network_type,
                lambda n: NamedEntity(
                    id=n.get("entity_id", ""),
                    name=n.get("name", ""),
                    type=n.get("entityType", ""),
                    parent_context=endpoint_id,
                    raw=n,
                ),
                f"endpoint {endpoint_id} ({network_type})",
            )

        return self._cached(("network_backing", name, endpoint_id, network_type), lookup)

    def _network_profiles(self) -> List[Dict[str, Any]]:
        def fetch():
            response = self.session.post(
                endpoints.NETWORKS_QUERY_IP_USAGE,
                {"filter": {"ownedBySystem": True, "allowTrunkInterfaces": False}},
            )
            return response if isinstance(response, list) else _items(response, "items")

        return self._cached(("network_profiles",), fetch)

    @staticmethod
    def _network_profile_entity(profile: Dict[str, Any]) -> NamedEntity:
        return NamedEntity(id=profile.get("objectId", ""), name=profile.get("name", ""), type="NetworkProfile", raw=profile)

    def network_profile(self, name: str) -> NamedEntity:
        return self._cached(
            ("network_profile", name),
            lambda: self._match(
                "network profile",
                name,
                self._network_profiles(),
                lambda p: p.get("name") == name,
                self._network_profile_entity,
            ),
        )

    def network_profile_by_id(self, object_id: str) -> NamedEntity:
        return self._cached(
            ("network_profile_id", object_id),
            lambda: self._match(
                "network profile",
                object_id,
                self._network_profiles(),
                lambda p: p.get("objectId") == object_id,
                self._network_profile_entity,
            ),
        )

    # Interconnect

    def compute_profile(self, name: str, endpoint_id: str) -> NamedEntity:
        def lookup():
            response = self.session.get(endpoints.COMPUTE_PROFILES_BY_ENDPOINT.format(endpoint_id=endpoint_id))
            return self._match(
                "compute profile",
                name,
                _items(response, "items"),
                lambda p: p.get("name") == name,
                lambda p: NamedEntity(
                    id=p.get("computeProfileId", ""),
                    name=p.get("name", ""),
                    type="ComputeProfile",
                    parent_context=endpoint_id,
                    raw=p,
                ),
                f"endpoint {endpoint_id}",
            )

        return self._cached(("compute_profile", name, endpoint_id), lookup)

    def appliances(self, endpoint_id: str, service_mesh_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """All network extension appliances for an endpoint, optionally restricted to one mesh."""
        query = {"applianceType": NETWORK_EXTENSION_APPLIANCE, "endpointId": endpoint_id}
        if service_mesh_id:
            query["serviceMeshId"] = service_mesh_id
        return _items(self.session.post(endpoints.APPLIANCES_QUERY, {"filter": query}), "items")

    def l2_extension(self, network_name: str) -> NamedEntity:
        response = self.session.get(endpoints.L2_EXTENSIONS)
        return self._match(
            "L2 extension",
            network_name,
            _items(response, "items"),
            lambda e: (e.get("sourceNetwork") or {}).get("networkName") == network_name,
            lambda e: NamedEntity(
                id=e.get("stretchId", ""),
                name=network_name,
                type="L2Extension",
                raw=e,
            ),
        )

    # Clouds and resource containers

    def _cloud_list(self, local: bool) -> List[Dict[str, Any]]:
        body = {"filter": {"local": local, "remote": not local}}
        return _items(self.session.post(endpoints.INVENTORY_CLOUD_LIST, body), "data", "items")

    @staticmethod
    def _cloud_entity(item: Dict[str, Any]) -> NamedEntity:
        return NamedEntity(
            id=item.get("endpointId", ""),
            name=item.get("name", ""),
            type=item.get("endpointType", ""),
            parent_context=item.get("url"),
            raw=item,
        )

    def local_cloud(self) -> NamedEntity:
        def lookup():
            items = self._cloud_list(local=True)
            if not items:
                raise NotFoundError("local cloud", "*", "cloud/list")
            return self._cloud_entity(items[0])

        return self._cached(("local_cloud",), lookup)

    def remote_cloud(self, url: str) -> NamedEntity:
        return self._cached(
            ("remote_cloud", url),
            lambda: self._match(
                "remote cloud", url, self._cloud_list(local=False), lambda c: c.get("url") == url, self._cloud_entity
            ),
        )

    def resource_container(self, local: bool) -> NamedEntity:
        """First local (or remote) resource container: the vCenter behind each side of a pairing."""
        body = {"filter": {"cloud": {"local": local, "remote": not local}}}
        items = _items(self.session.post(endpoints.INVENTORY_RESOURCE_CONTAINERS, body), "data", "items")
        side = "local" if local else "remote"
        if not items:
            raise NotFoundError(f"{side} resource container", "*", "resourcecontainer/list")
        item = items[0]
        return NamedEntity(
            id=item.get("resourceId", ""),
            name=item.get("resourceName") or item.get("name", ""),
            type=item.get("resourceType", ""),
            parent_context=item.get("vcuuid"),
            raw=item,
        )

    # Cloud services

    def sddc(self, sddc_id: Optional[str] = None, name: Optional[str] = None) -> Sddc:
        """
        Look up an SDDC by id or by name (exactly one of the two).

        Raises:
            InvalidInputError: Both or neither of sddc_id / name given
            NotFoundError: No SDDC matches
        """
        if bool(sddc_id) == bool(name):
            raise InvalidInputError("Exactly one of SDDC id or SDDC name must be supplied")

        response = self.session.get(
            f"{self.session.cloud_consumer_url}{endpoints.SDDCS}", auth_kind=AuthKind.CLOUD
        )
        field_name, key = ("id", sddc_id) if sddc_id else ("name", name)
        entity = self._match(
            "SDDC",
            key,
            _items(response, "sddcs"),
            lambda s: s.get(field_name) == key,
            lambda s: NamedEntity(id=s.get("id", ""), name=s.get("name", ""), type="SDDC", raw=s),
        )
        return Sddc.from_response(entity.raw)
