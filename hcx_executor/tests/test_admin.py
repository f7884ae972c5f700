import unittest
from unittest.mock import call, patch

from hcx_executor import config
from hcx_executor.handlers.admin import AdminConfigHandler
from hcx_executor.hcx_api.adapter import AuthKind
from hcx_executor.hcx_api.errors import OperationFailed
from hcx_executor.tests.fakes import FakeSession

ACTIVATION = "/api/admin/global/config/hcx"
LOOKUP = "/api/admin/global/config/lookupservice"


def config_items(uuid=None):
    items = [{"config": {"UUID": uuid}}] if uuid else []
    return {"data": {"items": items}}


class AdminConfigHandlerTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.handler = AdminConfigHandler(self.session)

    def test_every_call_uses_admin_auth(self):
        self.session.add("GET", "/api/admin/global/config/location", {"city": "Paris"})
        self.handler.get_location()
        self.assertIs(self.session.calls[0][3], AuthKind.ADMIN)

    def test_activate_posts_key_when_not_activated(self):
        self.session.add("GET", ACTIVATION, config_items(), config_items("act-1"))
        self.session.add("POST", ACTIVATION, {})

        uuid = self.handler.activate("https://connect.hcx.vmware.com", "KEY-123")

        self.assertEqual(uuid, "act-1")
        body = self.session.calls_to("POST", ACTIVATION)[0][2]
        self.assertEqual(
            body, {"data": {"items": [{"config": {"url": "https://connect.hcx.vmware.com", "activationKey": "KEY-123"}}]}}
        )

    def test_activate_skips_when_already_activated(self):
        self.session.add("GET", ACTIVATION, config_items("act-1"))

        self.assertEqual(self.handler.activate("https://connect", "KEY"), "act-1")
        self.assertEqual(self.session.calls_to("POST", ACTIVATION), [])

    def test_set_sso_inserts_then_updates(self):
        self.session.add("GET", LOOKUP, config_items())
        self.session.add("POST", LOOKUP, config_items("sso-1"))
        self.assertEqual(self.handler.set_sso("https://vc/lookupservice/sdk"), "sso-1")

        self.session.responses[("GET", LOOKUP)] = [(config_items("sso-1"), {})]
        self.session.add("POST", f"{LOOKUP}/sso-1", {})
        self.assertEqual(self.handler.set_sso("https://vc2/lookupservice/sdk"), "sso-1")

        update = self.session.calls_to("POST", f"{LOOKUP}/sso-1")[0][2]
        self.assertEqual(update["data"]["items"][0]["config"]["UUID"], "sso-1")
        self.assertEqual(update["data"]["items"][0]["config"]["providerType"], "PSC")

    def test_reset_location_sends_defaults(self):
        self.session.add("PUT", "/api/admin/global/config/location", {})

        self.handler.reset_location()

        body = self.session.calls[0][2]
        self.assertEqual(body["city"], "")
        self.assertEqual((body["latitude"], body["longitude"]), (config.DEFAULT_LATITUDE, config.DEFAULT_LONGITUDE))

    def test_rejected_role_mapping(self):
        self.session.add("PUT", "/api/admin/global/config/roleMappings", {"isSuccess": False, "message": "bad group"})
        with self.assertRaises(OperationFailed) as ctx:
            self.handler.set_role_mappings(["vsphere.local\\Administrators"], [])
        self.assertIn("bad group", str(ctx.exception))

    @patch("hcx_executor.handlers.admin.time.sleep")
    def test_register_vcenter_encodes_password_and_restarts_app_engine(self, mock_sleep):
        self.session.add("POST", "/api/admin/global/config/vcenter", config_items("vc-cfg"))
        self.session.add("POST", "/components/appengine?action=stop", {})
        self.session.add("POST", "/components/appengine?action=start", {})
        self.session.add(
            "GET",
            "/components/appengine/status",
            {"result": "RUNNING"},
            {"result": "STOPPED"},
            {"result": "STARTING"},
            {"result": "RUNNING"},
        )

        uuid = self.handler.register_vcenter("https://vc.local", "administrator@vsphere.local", "pw")

        self.assertEqual(uuid, "vc-cfg")
        body = self.session.calls_to("POST", "/api/admin/global/config/vcenter")[0][2]
        self.assertEqual(body["data"]["items"][0]["config"]["password"], "cHc=")
        self.assertEqual(
            mock_sleep.call_args_list,
            [call(config.APP_ENGINE_POLL_INTERVAL), call(config.APP_ENGINE_POLL_INTERVAL), call(config.APP_ENGINE_SETTLE_DELAY)],
        )

    @patch("hcx_executor.handlers.admin.time.sleep")
    def test_app_engine_wait_is_bounded(self, _mock_sleep):
        self.session.add("POST", "/components/appengine?action=stop", {})
        self.session.add("GET", "/components/appengine/status", {"result": "RUNNING"})

        with self.assertRaises(OperationFailed):
            self.handler.restart_app_engine(max_polls=3)

        self.assertEqual(len(self.session.calls_to("GET", "/components/appengine/status")), 3)


if __name__ == "__main__":
    unittest.main()
