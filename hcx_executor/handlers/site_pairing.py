"""Site pairing handler: create, read and delete pairings with a remote HCX site"""

import time
from typing import Any, Dict, Optional

from hcx_executor import config
from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.adapter import AuthKind
from hcx_executor.hcx_api.errors import AuthError, HcxErrorCodes, NotFoundError, OperationFailed, map_hcx_error
from hcx_executor.hcx_api.models import SitePairing
from .base import BaseHandler


class SitePairingHandler(BaseHandler):
    """
    Pairs the local connector with a remote HCX site.

    Pairing is the one place where a known partial failure is recovered
    automatically: when the remote presents a certificate the local side
    does not trust yet, the certificate is installed and the pairing is
    submitted again, exactly once.
    """

    def _submit(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.session.post(endpoints.CLOUD_CONFIGS, body) or {}

    def install_certificate(self, certificate: str):
        """Add a PEM certificate to the connector trust store."""
        self.session.post(endpoints.CERTIFICATES, {"certificate": certificate}, auth_kind=AuthKind.ADMIN)

    def _submit_with_recovery(self, body: Dict[str, Any], url: str) -> Dict[str, Any]:
        response = self._submit(body)
        error_info = map_hcx_error(response)
        if not error_info:
            return response

        if error_info["code"] == HcxErrorCodes.LOGIN_FAILURE["code"]:
            self.logger.error(f"Site pairing with {url} rejected: {error_info['message']}")
            raise AuthError(error_info["message"], error_code=error_info["code"])

        if error_info["code"] != HcxErrorCodes.CERTIFICATE_UNTRUSTED["code"]:
            self.logger.error(f"Site pairing with {url} failed: {error_info['errors']}")
            raise OperationFailed(error_info["message"], error_code=error_info["code"])

        self.logger.warning(f"Remote site {url} presented an untrusted certificate, installing it")
        self.install_certificate(error_info["certificate"])

        response = self._submit(body)
        retry_info = map_hcx_error(response)
        if retry_info:
            self.logger.error(f"Site pairing with {url} failed after certificate install: {retry_info['errors']}")
            raise OperationFailed(
                f"Site pairing with {url} failed after certificate install: {retry_info['message']}",
                error_code=retry_info["code"],
            )
        return response

    def _wait_for_pairing_job(self, response: Dict[str, Any]) -> bool:
        job_id = (response.get("data") or {}).get("jobId")
        if not job_id:
            raise OperationFailed("Site pairing response carries no job id")
        status = self.poller.wait_for_job(
            job_id,
            poll_interval=config.SITE_PAIRING_POLL_INTERVAL,
            max_polls=config.SITE_PAIRING_MAX_POLLS,
        )
        return status is not None

    def create(self, url: str, username: str, password: str) -> SitePairing:
        """
        Pair with the remote site at ``url``.

        Args:
            url: Remote HCX Cloud URL
            username: Remote site user
            password: Remote site password

        Returns:
            SitePairing: The pairing as read back after the job settles

        Raises:
            AuthError: The remote site rejected the credentials
            OperationFailed: Unknown pairing errors, or the pairing job failed
        """
        body = {"remote": {"username": username, "password": password, "url": url}}
        self.logger.info(f"Creating site pairing with {url}")

        response = self._submit_with_recovery(body, url)
        if not self._wait_for_pairing_job(response):
            self.logger.warning(f"Site pairing job for {url} did not finish, submitting pairing again")
            response = self._submit(body)
            if not self._wait_for_pairing_job(response):
                self.logger.warning(f"Site pairing job for {url} still running, reading current state")

        return self.read(url)

    def _pairings(self):
        response = self.session.get(endpoints.CLOUD_CONFIGS) or {}
        return (response.get("data") or {}).get("items") or []

    def find(self, url: str) -> Optional[Dict[str, Any]]:
        for item in self._pairings():
            if item.get("url") == url:
                return item
        return None

    def read(self, url: str) -> SitePairing:
        """
        Read the pairing with ``url`` and the local/remote details tied to it.

        Raises:
            NotFoundError: No pairing with that URL exists
        """
        pairing = self.find(url)
        if pairing is None:
            raise NotFoundError("site pairing", url)

        resolver = self.resolver()
        local_container = resolver.resource_container(local=True)
        remote_container = resolver.resource_container(local=False)
        remote_cloud = resolver.remote_cloud(url)
        local_cloud = resolver.local_cloud()

        return SitePairing(
            url=url,
            endpoint_id=pairing.get("endpointId", ""),
            local_vc=local_container.parent_context or "",
            local_endpoint_id=local_cloud.id,
            local_name=local_cloud.name,
            remote_name=remote_cloud.name,
            remote_endpoint_type=remote_cloud.type,
            remote_resource_id=remote_container.id,
            remote_resource_name=remote_container.name,
            remote_resource_type=remote_container.type,
        )

    def delete(self, url: str, endpoint_id: str, max_polls: Optional[int] = None):
        """
        Remove a pairing and wait until it no longer shows up in the pairing list.

        Args:
            url: Remote HCX Cloud URL of the pairing
            endpoint_id: Endpoint id of the pairing
            max_polls: Stop waiting after this many list calls (None: wait until gone)
        """
        self.logger.info(f"Deleting site pairing {endpoint_id} ({url})")
        self.session.delete(endpoints.ENDPOINT_PAIRING.format(endpoint_id=endpoint_id))

        polls = 0
        while self.find(url) is not None:
            polls += 1
            if max_polls is not None and polls >= max_polls:
                raise OperationFailed(f"Site pairing {endpoint_id} still present after {polls} polls", operation_id=endpoint_id)
            time.sleep(config.SITE_PAIRING_DELETE_POLL_INTERVAL)
        self.logger.info(f"Site pairing {endpoint_id} removed")
