"""
HCX data model

Resolved entities, operation status vocabularies and allocation records
shared by the resolver, the pollers and the handlers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class NamedEntity:
    """
    A remote object resolved from a list/query endpoint.

    ``raw`` keeps the full record as returned by the API so callers can read
    kind-specific fields (maxMtu, switches, ipScopes...) without another call.
    """

    id: str
    name: str
    type: str = ""
    parent_context: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class NetworkRole(Enum):
    MANAGEMENT = "management"
    REPLICATION = "replication"
    UPLINK = "uplink"
    VMOTION = "vmotion"


# Processing order for compute profile network tagging
NETWORK_ROLE_ORDER: Tuple[NetworkRole, ...] = (
    NetworkRole.MANAGEMENT,
    NetworkRole.REPLICATION,
    NetworkRole.UPLINK,
    NetworkRole.VMOTION,
)


class OperationOutcome(Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class JobStatus:
    """Job vocabulary: two booleans, ``isDone`` and ``didFail``."""

    job_id: str
    is_done: bool
    did_fail: bool
    percent_complete: int = 0

    @classmethod
    def from_response(cls, job_id: str, response: Dict[str, Any]) -> "JobStatus":
        return cls(
            job_id=job_id,
            is_done=bool(response.get("isDone", False)),
            did_fail=bool(response.get("didFail", False)),
            percent_complete=int(response.get("percentComplete") or 0),
        )

    @property
    def outcome(self) -> OperationOutcome:
        # A failed job may also report isDone; failure wins
        if self.did_fail:
            return OperationOutcome.FAILED
        if self.is_done:
            return OperationOutcome.SUCCEEDED
        return OperationOutcome.RUNNING


class TaskState(Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "TaskState":
        if value == cls.SUCCESS.value:
            return cls.SUCCESS
        if value == cls.FAILED.value:
            return cls.FAILED
        return cls.IN_PROGRESS


@dataclass(frozen=True)
class TaskStatus:
    """Interconnect task vocabulary: a single ``status`` string."""

    task_id: str
    state: TaskState
    raw_status: str = ""

    @classmethod
    def from_response(cls, task_id: str, response: Dict[str, Any]) -> "TaskStatus":
        raw_status = response.get("status") or ""
        return cls(task_id=task_id, state=TaskState.from_raw(raw_status), raw_status=raw_status)

    @property
    def outcome(self) -> OperationOutcome:
        if self.state is TaskState.SUCCESS:
            return OperationOutcome.SUCCEEDED
        if self.state is TaskState.FAILED:
            return OperationOutcome.FAILED
        return OperationOutcome.RUNNING


class SddcDeploymentStatus(Enum):
    ACTIVE = "ACTIVE"
    ACTIVATION_FAILED = "ACTIVATION_FAILED"
    DEACTIVATED = "DE-ACTIVATED"
    DEACTIVATION_FAILED = "DEACTIVATION_FAILED"
    EMPTY = ""
    OTHER = "OTHER"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "SddcDeploymentStatus":
        value = value or ""
        for member in cls:
            if member is not cls.OTHER and member.value == value:
                return member
        return cls.OTHER


@dataclass(frozen=True)
class Sddc:
    id: str
    name: str
    deployment_status: SddcDeploymentStatus
    raw_deployment_status: str = ""
    cloud_url: str = ""
    cloud_name: str = ""
    cloud_type: str = ""

    @classmethod
    def from_response(cls, item: Dict[str, Any]) -> "Sddc":
        raw_status = item.get("deploymentStatus") or ""
        return cls(
            id=item.get("id", ""),
            name=item.get("name", ""),
            deployment_status=SddcDeploymentStatus.from_raw(raw_status),
            raw_deployment_status=raw_status,
            cloud_url=item.get("cloudUrl", ""),
            cloud_name=item.get("cloudName", ""),
            cloud_type=item.get("cloudType", ""),
        )


@dataclass(frozen=True)
class ApplianceAllocation:
    """Network extension appliance chosen for an L2 extension (None: let HCX pick)."""

    appliance_id: Optional[str]
    service_mesh_id: Optional[str] = None
    current_extension_count: int = 0


@dataclass(frozen=True)
class SitePairing:
    """Everything dependent resources need to know about one site pairing."""

    url: str
    endpoint_id: str
    local_vc: str = ""
    local_endpoint_id: str = ""
    local_name: str = ""
    remote_name: str = ""
    remote_endpoint_type: str = ""
    remote_resource_id: str = ""
    remote_resource_name: str = ""
    remote_resource_type: str = ""


@dataclass
class NetworkAssignment:
    """One compute profile network entry and the roles tagged onto it."""

    network: NamedEntity
    roles: List[NetworkRole] = field(default_factory=list)
