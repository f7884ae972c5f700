import unittest
from unittest.mock import patch

from hcx_executor import config
from hcx_executor.handlers.site_pairing import SitePairingHandler
from hcx_executor.hcx_api.adapter import AuthKind
from hcx_executor.hcx_api.errors import AuthError, NotFoundError, OperationFailed
from hcx_executor.tests.fakes import FakeSession

REMOTE_URL = "https://hcx-cloud.remote"
CLOUD_CONFIGS = "/hybridity/api/cloudConfigs"
CERTIFICATES = "/hybridity/api/admin/certificates"

CERT_ERROR = {"errors": [{"error": "Untrusted certificate", "data": [{"certificate": "-----BEGIN CERT-----"}]}]}
LOGIN_ERROR = {"errors": [{"error": "Login failure", "text": "Invalid username or password"}]}
UNKNOWN_ERROR = {"errors": [{"error": "Remote unreachable"}]}
SUBMITTED = {"data": {"jobId": "pair-job"}}
JOB_DONE = {"isDone": True, "didFail": False}
JOB_RUNNING = {"isDone": False, "didFail": False}

PAIRINGS = {"data": {"items": [{"url": REMOTE_URL, "endpointId": "ep-remote"}]}}


def add_read_responses(session):
    session.add(
        "POST",
        "/hybridity/api/service/inventory/resourcecontainer/list",
        {"data": {"items": [{"resourceId": "vc-local", "resourceName": "local-vc", "resourceType": "VC", "vcuuid": "vcuuid-1"}]}},
    )
    # remote list is read before the local one
    session.add(
        "POST",
        "/hybridity/api/service/inventory/cloud/list",
        {
            "data": {
                "items": [
                    {"endpointId": "ep-other", "name": "other", "endpointType": "VCD", "url": "https://other"},
                    {"endpointId": "ep-remote", "name": "remote-site", "endpointType": "VC", "url": REMOTE_URL},
                ]
            }
        },
        {"data": {"items": [{"endpointId": "ep-local", "name": "local-site", "endpointType": "VC", "url": "https://hcx.test"}]}},
    )


class SitePairingCreateTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.handler = SitePairingHandler(self.session)

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_untrusted_certificate_installed_once_then_resubmitted(self, _mock_sleep):
        self.session.add("POST", CLOUD_CONFIGS, CERT_ERROR, SUBMITTED)
        self.session.add("POST", CERTIFICATES, {})
        self.session.add("GET", "/hybridity/api/jobs/pair-job", JOB_DONE)
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS)
        add_read_responses(self.session)

        pairing = self.handler.create(REMOTE_URL, "cloudadmin", "pw")

        self.assertEqual(len(self.session.calls_to("POST", CLOUD_CONFIGS)), 2)
        installs = self.session.calls_to("POST", CERTIFICATES)
        self.assertEqual(len(installs), 1)
        self.assertEqual(installs[0][2], {"certificate": "-----BEGIN CERT-----"})
        self.assertIs(installs[0][3], AuthKind.ADMIN)
        self.assertEqual(pairing.endpoint_id, "ep-remote")

    def test_certificate_error_on_resubmission_is_fatal(self):
        self.session.add("POST", CLOUD_CONFIGS, CERT_ERROR, CERT_ERROR)
        self.session.add("POST", CERTIFICATES, {})

        with self.assertRaises(OperationFailed):
            self.handler.create(REMOTE_URL, "cloudadmin", "pw")

        self.assertEqual(len(self.session.calls_to("POST", CLOUD_CONFIGS)), 2)
        self.assertEqual(len(self.session.calls_to("POST", CERTIFICATES)), 1)

    def test_login_failure_is_auth_error(self):
        self.session.add("POST", CLOUD_CONFIGS, LOGIN_ERROR)

        with self.assertRaises(AuthError) as ctx:
            self.handler.create(REMOTE_URL, "cloudadmin", "wrong")

        self.assertIn("Invalid username or password", str(ctx.exception))
        self.assertEqual(self.session.calls_to("POST", CERTIFICATES), [])

    def test_unknown_error_is_fatal_without_retry(self):
        self.session.add("POST", CLOUD_CONFIGS, UNKNOWN_ERROR)

        with self.assertRaises(OperationFailed):
            self.handler.create(REMOTE_URL, "cloudadmin", "pw")

        self.assertEqual(len(self.session.calls_to("POST", CLOUD_CONFIGS)), 1)

    def test_submission_body_carries_remote_credentials(self):
        self.session.add("POST", CLOUD_CONFIGS, UNKNOWN_ERROR)
        with self.assertRaises(OperationFailed):
            self.handler.create(REMOTE_URL, "cloudadmin", "pw")
        body = self.session.calls_to("POST", CLOUD_CONFIGS)[0][2]
        self.assertEqual(body, {"remote": {"username": "cloudadmin", "password": "pw", "url": REMOTE_URL}})

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_unfinished_job_resubmitted_once(self, mock_sleep):
        self.session.add("POST", CLOUD_CONFIGS, SUBMITTED)
        self.session.add("GET", "/hybridity/api/jobs/pair-job", JOB_RUNNING)
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS)
        add_read_responses(self.session)

        self.handler.create(REMOTE_URL, "cloudadmin", "pw")

        self.assertEqual(len(self.session.calls_to("POST", CLOUD_CONFIGS)), 2)
        polls = self.session.calls_to("GET", "/hybridity/api/jobs/pair-job")
        self.assertEqual(len(polls), 2 * config.SITE_PAIRING_MAX_POLLS)
        mock_sleep.assert_called_with(config.SITE_PAIRING_POLL_INTERVAL)

    @patch("hcx_executor.hcx_api.helpers.time.sleep")
    def test_failed_pairing_job_raises(self, _mock_sleep):
        self.session.add("POST", CLOUD_CONFIGS, SUBMITTED)
        self.session.add("GET", "/hybridity/api/jobs/pair-job", {"isDone": True, "didFail": True})

        with self.assertRaises(OperationFailed):
            self.handler.create(REMOTE_URL, "cloudadmin", "pw")


class SitePairingReadDeleteTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.handler = SitePairingHandler(self.session)

    def test_read_collects_local_and_remote_details(self):
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS)
        add_read_responses(self.session)

        pairing = self.handler.read(REMOTE_URL)

        self.assertEqual(pairing.local_vc, "vcuuid-1")
        self.assertEqual(pairing.local_endpoint_id, "ep-local")
        self.assertEqual(pairing.local_name, "local-site")
        self.assertEqual(pairing.remote_name, "remote-site")
        self.assertEqual(pairing.remote_endpoint_type, "VC")
        self.assertEqual(pairing.remote_resource_id, "vc-local")

    def test_read_unknown_url(self):
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS)
        with self.assertRaises(NotFoundError):
            self.handler.read("https://nowhere")

    @patch("hcx_executor.handlers.site_pairing.time.sleep")
    def test_delete_polls_until_gone(self, mock_sleep):
        self.session.add("DELETE", "/hybridity/api/endpointPairing/ep-remote", {})
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS, PAIRINGS, {"data": {"items": []}})

        self.handler.delete(REMOTE_URL, "ep-remote")

        self.assertEqual(mock_sleep.call_count, 2)
        mock_sleep.assert_called_with(config.SITE_PAIRING_DELETE_POLL_INTERVAL)

    @patch("hcx_executor.handlers.site_pairing.time.sleep")
    def test_delete_gives_up_after_max_polls(self, _mock_sleep):
        self.session.add("DELETE", "/hybridity/api/endpointPairing/ep-remote", {})
        self.session.add("GET", CLOUD_CONFIGS, PAIRINGS)

        with self.assertRaises(OperationFailed):
            self.handler.delete(REMOTE_URL, "ep-remote", max_polls=3)

        self.assertEqual(len(self.session.calls_to("GET", CLOUD_CONFIGS)), 3)


if __name__ == "__main__":
    unittest.main()
