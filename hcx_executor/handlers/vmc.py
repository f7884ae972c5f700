"""HCX activation on VMware Cloud on AWS SDDCs"""

import logging
import threading
from typing import Optional

from hcx_executor import config
from hcx_executor.hcx_api import endpoints
from hcx_executor.hcx_api.adapter import AuthKind
from hcx_executor.hcx_api.errors import (
    AuthError,
    InvalidInputError,
    NotFoundError,
    OperationFailed,
    TransportError,
)
from hcx_executor.hcx_api.helpers import calculate_backoff, wait_or_cancel
from hcx_executor.hcx_api.models import Sddc, SddcDeploymentStatus
from .base import BaseHandler


class VmcHandler(BaseHandler):
    """
    Activates and deactivates HCX on an SDDC through the cloud services API.

    SDDC transitions take long and the status endpoint regularly answers
    with proxy errors, so status polling tolerates fetch failures with an
    exponential backoff bounded by ``max_retries`` consecutive failures.
    The loop honours ``cancel_event`` on every wait.
    """

    def __init__(
        self,
        session,
        logger: Optional[logging.Logger] = None,
        cancel_event: Optional[threading.Event] = None,
        max_retries: int = config.VMC_MAX_RETRIES,
    ):
        super().__init__(session, logger)
        self.cancel_event = cancel_event
        self.max_retries = max_retries

    def vmc_access_token(self) -> str:
        """Exchange the cloud services refresh token for an access token."""
        if not self.session.vmc_token:
            raise AuthError("VMC API token is empty")
        url = f"{self.session.vmc_auth_url}{endpoints.VMC_AUTHORIZE.format(token=self.session.vmc_token)}"
        response = self.session.request("POST", url, auth_kind=AuthKind.CLOUD, attach_token=False).body or {}
        access_token = response.get("access_token")
        if not access_token:
            raise AuthError("Cloud services did not return an access token")
        return access_token

    def authenticate(self):
        """Obtain an HCX cloud session token and attach it to the session."""
        access_token = self.vmc_access_token()
        response = self.session.request(
            "POST",
            f"{self.session.cloud_auth_url}{endpoints.HCX_CLOUD_SESSIONS}",
            body={"token": access_token},
            auth_kind=AuthKind.CLOUD,
            attach_token=False,
        )
        token = response.headers.get(endpoints.AUTH_HEADER)
        if not token:
            raise AuthError("cannot authorize hcx cloud")
        self.session.set_cloud_token(token)
        self.logger.info("Authenticated to HCX cloud services")

    def read(self, sddc_id: Optional[str] = None, sddc_name: Optional[str] = None) -> Sddc:
        """
        Look up the SDDC by id or name.

        Raises:
            InvalidInputError: Neither or both of sddc_id / sddc_name given
            NotFoundError: No such SDDC
        """
        if not sddc_id and not sddc_name:
            raise InvalidInputError("SDDC name or Id must be specified")
        self.authenticate()
        return self.resolver().sddc(sddc_id=sddc_id, name=sddc_name)

    def _action(self, sddc: Sddc, action: str):
        self.logger.info(f"Requesting HCX {action} on SDDC {sddc.name} ({sddc.id})")
        self.session.post(
            f"{self.session.cloud_consumer_url}{endpoints.SDDC_ACTION.format(sddc_id=sddc.id, action=action)}",
            auth_kind=AuthKind.CLOUD,
        )

    def activate(self, sddc_id: Optional[str] = None, sddc_name: Optional[str] = None) -> Sddc:
        """
        Activate HCX on an SDDC and wait until it reports ACTIVE.

        Raises:
            InvalidInputError: The SDDC is already active
            OperationFailed: Activation reported ACTIVATION_FAILED
            OperationCancelled: cancel_event was set while waiting
        """
        sddc = self.read(sddc_id, sddc_name)
        if sddc.deployment_status is SddcDeploymentStatus.ACTIVE:
            self.logger.error(f"SDDC {sddc.id} is already activated")
            raise InvalidInputError(f"SDDC {sddc.id} already activated")

        self._action(sddc, "activate")
        return self.wait_for_status(
            sddc,
            success=SddcDeploymentStatus.ACTIVE,
            failure=SddcDeploymentStatus.ACTIVATION_FAILED,
        )

    def deactivate(self, sddc_id: Optional[str] = None, sddc_name: Optional[str] = None) -> Sddc:
        """
        Deactivate HCX on an SDDC and wait until it is DE-ACTIVATED or gone.

        Raises:
            OperationFailed: Deactivation reported DEACTIVATION_FAILED
            OperationCancelled: cancel_event was set while waiting
        """
        sddc = self.read(sddc_id, sddc_name)
        self._action(sddc, "deactivate")
        return self.wait_for_status(
            sddc,
            success=SddcDeploymentStatus.DEACTIVATED,
            failure=SddcDeploymentStatus.DEACTIVATION_FAILED,
            deleting=True,
        )

    def wait_for_status(
        self,
        sddc: Sddc,
        success: SddcDeploymentStatus,
        failure: SddcDeploymentStatus,
        deleting: bool = False,
    ) -> Sddc:
        """
        Poll the SDDC until ``success`` or ``failure`` is reported.

        A status fetch that fails is retried after calculate_backoff(n); more
        than ``max_retries`` consecutive failures re-raise the last error.
        While deleting, an empty status or a vanished SDDC counts as success.
        """
        failures = 0
        while True:
            try:
                current = self.resolver().sddc(sddc_id=sddc.id)
            except NotFoundError:
                if deleting:
                    self.logger.info(f"SDDC {sddc.id} no longer listed, treating as removed")
                    return sddc
                raise
            except (TransportError, AuthError) as e:
                failures += 1
                self.logger.warning(f"Error retrieving SDDC {sddc.id} status ({failures}/{self.max_retries}): {e.message}")
                if failures > self.max_retries:
                    self.logger.error(f"Giving up on SDDC {sddc.id} after {failures} failed status fetches")
                    raise
                wait_or_cancel(calculate_backoff(failures - 1), self.cancel_event, f"SDDC {sddc.id}")
                continue

            failures = 0
            status = current.deployment_status
            if status is success:
                self.logger.info(f"SDDC {sddc.id} reached {status.value}")
                return current
            if status is failure:
                self.logger.error(f"SDDC {sddc.id} reported {status.value}")
                raise OperationFailed(f"SDDC {sddc.id}: {status.value}", operation_id=sddc.id, error_code=status.value)
            if deleting and status is SddcDeploymentStatus.EMPTY:
                self.logger.info(f"SDDC {sddc.id} has no deployment status, treating as removed")
                return current

            self.logger.info(f"SDDC {sddc.id} status is '{current.raw_deployment_status}', waiting")
            wait_or_cancel(config.VMC_RETRY_INTERVAL, self.cancel_event, f"SDDC {sddc.id}")
