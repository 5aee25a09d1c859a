import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from deno_deploy.errors import ValidationError

log = logging.getLogger(__name__)

DEPLOYMENT_STATUSES: tuple[str, ...] = ("pending", "building", "success", "failed", "cancelled")


def parse_dt(value: str | None) -> datetime | None:
    """
    Parse an ISO 8601 timestamp string into an aware UTC datetime.

    Deno Deploy returns strings like '2024-11-03T14:32:00.000Z'. Naive
    values are taken to be UTC.
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.warning("Could not parse datetime string: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_dt(dt: datetime) -> str:
    """ISO 8601 UTC with millisecond precision, e.g. 2026-02-21T12:39:08.000Z"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_dt(datetime.now(tz=timezone.utc))


@dataclass(frozen=True)
class Credentials:
    access_token: str
    organization_id: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Credentials":
        """Build from the host's credential record (`accessToken`, `organizationId`)."""
        token  = data.get("accessToken")
        org_id = data.get("organizationId")
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("Credential 'accessToken' is required")
        if not isinstance(org_id, str) or not org_id.strip():
            raise ValidationError("Credential 'organizationId' is required")
        return cls(access_token=token.strip(), organization_id=org_id.strip())

    def __repr__(self) -> str:
        return f"Credentials(organization_id={self.organization_id!r}, access_token='***')"


@dataclass
class Deployment:
    """
    One deployment as returned by the API.

    Only the fields the trigger reasons about are lifted out; `raw` keeps the
    full payload so events carry exactly what the API sent.
    """
    id: str
    status: str                    # pending | building | success | failed | cancelled
    project_id: str | None
    created_at: str | None         # kept as the API's string, emitted verbatim
    updated_at: str | None
    raw: dict[str, Any] = field(repr=False, default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Deployment":
        if not isinstance(data, Mapping):
            raise ValueError(f"Deployment payload is not an object: {data!r}")
        deployment_id = data.get("id")
        if not deployment_id:
            raise ValueError(f"Deployment payload has no id: {data!r}")
        status = str(data.get("status") or "")
        if status and status not in DEPLOYMENT_STATUSES:
            log.debug("Unrecognised deployment status %r for %s", status, deployment_id)
        return cls(
            id=str(deployment_id),
            status=status,
            project_id=data.get("projectId"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            raw=dict(data),
        )


@dataclass
class DeploymentEvent:
    event: str                     # deployment.created | deployment.<status>
    deployment: dict[str, Any]
    organization_id: str
    project_id: str
    timestamp: str
    previous_status: str | None = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"event": self.event}
        if self.previous_status is not None:
            data["previousStatus"] = self.previous_status
        data.update(
            deployment=self.deployment,
            organizationId=self.organization_id,
            projectId=self.project_id,
            timestamp=self.timestamp,
        )
        return data


@dataclass
class PollState:
    """
    Trigger memory between poll cycles, stored by the host as plain JSON.

    `last_deployment_id` is None until a poll has seen at least one
    deployment; while it is None no events are emitted.
    """
    last_deployment_id: str | None = None
    last_deployment_statuses: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PollState":
        statuses = data.get("lastDeploymentStatuses") or {}
        return cls(
            last_deployment_id=data.get("lastDeploymentId"),
            last_deployment_statuses={str(k): str(v) for k, v in statuses.items()},
        )

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {"lastDeploymentStatuses": dict(self.last_deployment_statuses)}
        if self.last_deployment_id is not None:
            data["lastDeploymentId"] = self.last_deployment_id
        return data

    @property
    def is_seeded(self) -> bool:
        return self.last_deployment_id is not None
