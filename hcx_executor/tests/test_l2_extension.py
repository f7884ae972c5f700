import logging
import unittest
from unittest.mock import patch

from hcx_executor.handlers.l2_extension import ApplianceAllocator, L2ExtensionHandler
from hcx_executor.hcx_api.errors import InvalidInputError, OperationFailed
from hcx_executor.hcx_api.resolver import NamedEntityResolver
from hcx_executor.tests.fakes import SITE_PAIRING as PAIRING, FakeSession

APPLIANCES_QUERY = "/hybridity/api/interconnect/appliances/query"


def appliance(appliance_id, mesh_id, count):
    return {"applianceId": appliance_id, "serviceMeshId": mesh_id, "networkExtensionCount": count}


class ApplianceAllocatorTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.allocator = ApplianceAllocator(NamedEntityResolver(self.session), logging.getLogger("test"))

    def test_explicit_appliance_wins_without_query(self):
        allocation = self.allocator.select("ep-local", "mesh-1", appliance_id="app-forced")

        self.assertEqual(allocation.appliance_id, "app-forced")
        self.assertEqual(self.session.calls, [])

    def test_prefers_mesh_appliance_with_capacity(self):
        self.session.add(
            "POST",
            APPLIANCES_QUERY,
            {"items": [appliance("app-0", "mesh-0", 0), appliance("app-full", "mesh-1", 9), appliance("app-free", "mesh-1", 3)]},
        )

        allocation = self.allocator.select("ep-local", "mesh-1")

        self.assertEqual(allocation.appliance_id, "app-free")
        self.assertEqual(allocation.current_extension_count, 3)
        query = self.session.calls[0][2]
        self.assertEqual(query, {"filter": {"applianceType": "HCX-NET-EXT", "endpointId": "ep-local"}})

    def test_full_mesh_falls_back_to_first_appliance(self):
        self.session.add(
            "POST",
            APPLIANCES_QUERY,
            {"items": [appliance("app-0", "mesh-0", 2), appliance("app-full", "mesh-1", 9)]},
        )

        with self.assertLogs("test", level="WARNING"):
            allocation = self.allocator.select("ep-local", "mesh-1")

        self.assertEqual(allocation.appliance_id, "app-0")
        self.assertEqual(allocation.service_mesh_id, "mesh-0")

    def test_no_mesh_takes_first_appliance(self):
        self.session.add("POST", APPLIANCES_QUERY, {"items": [appliance("app-0", "mesh-0", 9), appliance("app-1", "mesh-1", 0)]})
        self.assertEqual(self.allocator.select("ep-local").appliance_id, "app-0")

    def test_no_appliance_leaves_choice_to_hcx(self):
        self.session.add("POST", APPLIANCES_QUERY, {"items": []})
        allocation = self.allocator.select("ep-local", "mesh-1")
        self.assertIsNone(allocation.appliance_id)


class L2ExtensionHandlerTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.session.add(
            "POST",
            "/hybridity/api/service/inventory/networks",
            {"data": {"items": [{"name": "web", "entityType": "DistributedVirtualPortgroup", "entity_id": "dvpg-7"}]}},
        )
        self.handler = L2ExtensionHandler(self.session)

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_create_builds_body_and_returns_stretch_id(self, mock_sleep):
        self.session.add("POST", APPLIANCES_QUERY, {"items": [appliance("app-1", "mesh-1", 1)]})
        self.session.add("POST", "/hybridity/api/l2Extensions", {"id": "job-l2"})
        self.session.add("GET", "/hybridity/api/jobs/job-l2", {"isDone": False}, {"isDone": True})
        self.session.add(
            "GET",
            "/hybridity/api/l2Extensions",
            {"items": [{"stretchId": "other", "sourceNetwork": {"networkName": "web-2"}}, {"stretchId": "stretch-1", "sourceNetwork": {"networkName": "web"}}]},
        )

        stretch_id = self.handler.create(
            PAIRING,
            source_network="web",
            network_type="DistributedVirtualPortgroup",
            destination_t1="t1-gw",
            gateway="10.0.0.1",
            netmask="255.255.255.0",
            service_mesh_id="mesh-1",
            mon=True,
        )

        self.assertEqual(stretch_id, "stretch-1")
        self.assertEqual(mock_sleep.call_count, 1)
        body = self.session.calls_to("POST", "/hybridity/api/l2Extensions")[0][2]
        self.assertEqual(body["vcGuid"], "vcuuid-1")
        self.assertEqual(body["sourceAppliance"], {"applianceId": "app-1"})
        self.assertEqual(
            body["sourceNetwork"],
            {"networkId": "dvpg-7", "networkName": "web", "networkType": "DistributedVirtualPortgroup"},
        )
        self.assertEqual(body["destination"]["endpointId"], "ep-remote")
        self.assertEqual(body["destination"]["resourceId"], "vc-remote")
        self.assertEqual(body["destinationNetwork"], {"gatewayId": "t1-gw"})
        self.assertEqual(body["features"], {"egressOptimization": False, "mobilityOptimizedNetworking": True})

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_empty_appliance_list_sends_empty_source_appliance(self, _mock_sleep):
        self.session.add("POST", APPLIANCES_QUERY, {"items": []})
        self.session.add("POST", "/hybridity/api/l2Extensions", {"id": "job-l2"})
        self.session.add("GET", "/hybridity/api/jobs/job-l2", {"isDone": True})
        self.session.add("GET", "/hybridity/api/l2Extensions", {"items": [{"stretchId": "s", "sourceNetwork": {"networkName": "web"}}]})

        self.handler.create(PAIRING, "web", "DistributedVirtualPortgroup", "t1", "10.0.0.1", "255.255.255.0")

        body = self.session.calls_to("POST", "/hybridity/api/l2Extensions")[0][2]
        self.assertEqual(body["sourceAppliance"], {})

    def test_unsupported_network_type_rejected_before_any_call(self):
        with self.assertRaises(InvalidInputError):
            self.handler.create(PAIRING, "web", "OpaqueNetwork", "t1", "10.0.0.1", "255.255.255.0")
        self.assertEqual(self.session.calls, [])

    def test_missing_job_id_is_failure(self):
        self.session.add("POST", APPLIANCES_QUERY, {"items": []})
        self.session.add("POST", "/hybridity/api/l2Extensions", {})
        with self.assertRaises(OperationFailed):
            self.handler.create(PAIRING, "web", "DistributedVirtualPortgroup", "t1", "10.0.0.1", "255.255.255.0")

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_delete_waits_for_job(self, _mock_sleep):
        self.session.add("DELETE", "/hybridity/api/l2Extensions/stretch-1", {"id": "job-del"})
        self.session.add("GET", "/hybridity/api/jobs/job-del", {"isDone": True})

        self.handler.delete("stretch-1")

        self.assertEqual(len(self.session.calls_to("GET", "/hybridity/api/jobs/job-del")), 1)


if __name__ == "__main__":
    unittest.main()
