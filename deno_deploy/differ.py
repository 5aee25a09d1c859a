from deno_deploy.errors import ValidationError
from deno_deploy.models import Deployment, DeploymentEvent, PollState, utc_now_iso

EVENT_CREATED = "deployment.created"
EVENT_SUCCESS = "deployment.success"
EVENT_FAILED  = "deployment.failed"
EVENT_ANY     = "deployment.any"

EVENT_FILTERS: tuple[str, ...] = (EVENT_CREATED, EVENT_FAILED, EVENT_SUCCESS, EVENT_ANY)


class DeploymentDiffer:
    """
    Compares a freshly fetched window of deployments with the previous poll.

    Per deployment id the state is implicit in the status map:
      - no entry        → unseen; first sighting emits deployment.created
      - entry S         → seen; a different status S' emits deployment.<S'>

    The very first poll (state not yet seeded) only records statuses.
    The returned state holds just the fetched window, so deployments that
    scroll out of it are forgotten.
    """

    def __init__(self, event_filter: str = EVENT_CREATED) -> None:
        if event_filter not in EVENT_FILTERS:
            raise ValidationError(f"Unknown event filter {event_filter!r}; expected one of {EVENT_FILTERS}")
        self.event_filter = event_filter

    def diff(
        self,
        deployments: list[Deployment],
        state: PollState,
        organization_id: str,
        project_id: str,
    ) -> tuple[list[DeploymentEvent], PollState]:
        """
        `deployments` is newest first, as the API returns it. Events come back
        oldest first.
        """
        events: list[DeploymentEvent] = []
        current: dict[str, str] = {}
        seeding = not state.is_seeded

        for deployment in reversed(deployments):
            previous = state.last_deployment_statuses.get(deployment.id)
            current[deployment.id] = deployment.status

            if seeding:
                continue

            if previous is None:
                if self._wants_created():
                    events.append(DeploymentEvent(
                        event=EVENT_CREATED,
                        deployment=deployment.raw,
                        organization_id=organization_id,
                        project_id=project_id,
                        timestamp=deployment.created_at or utc_now_iso(),
                    ))
            elif previous != deployment.status:
                if self._wants_status(deployment.status):
                    events.append(DeploymentEvent(
                        event=f"deployment.{deployment.status}",
                        deployment=deployment.raw,
                        organization_id=organization_id,
                        project_id=project_id,
                        timestamp=deployment.updated_at or utc_now_iso(),
                        previous_status=previous,
                    ))

        last_id = deployments[0].id if deployments else state.last_deployment_id
        return events, PollState(last_deployment_id=last_id, last_deployment_statuses=current)

    def _wants_created(self) -> bool:
        return self.event_filter in (EVENT_CREATED, EVENT_ANY)

    def _wants_status(self, status: str) -> bool:
        return (
            self.event_filter == EVENT_ANY
            or (self.event_filter == EVENT_SUCCESS and status == "success")
            or (self.event_filter == EVENT_FAILED and status == "failed")
        )
