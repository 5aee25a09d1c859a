# DeploymentTrigger: turns one project's deployment list into lifecycle events.

# responsibilities:
#   - fetch the most recent deployments for the watched project
#   - diff them against the statuses remembered from the previous poll
#   - write the new state back into the host's static data
#   - never raise from a poll cycle; a failed cycle reports nothing and the
#     next tick tries again
#
# run_forever() is the standalone loop used by the orchestrator; a workflow
# host calls poll() itself on its own schedule.

import asyncio
import logging
from typing import Any, MutableMapping, Protocol

from deno_deploy.config import POLL_DEPLOYMENT_LIMIT, POLL_INTERVAL_SECONDS
from deno_deploy.differ import EVENT_CREATED, DeploymentDiffer
from deno_deploy.errors import ValidationError
from deno_deploy.http_client import DenoDeployClient
from deno_deploy.models import Deployment, PollState
from deno_deploy.pagination import extract_items
from deno_deploy.retry import retrying


class StateStore(Protocol):
    def load(self, key: str) -> dict[str, Any]: ...
    def save(self, key: str, static_data: dict[str, Any]) -> None: ...


class EventHandler(Protocol):
    async def handle(self, event: dict[str, Any]) -> None: ...


class DeploymentTrigger:

    def __init__(
        self,
        client: DenoDeployClient,
        project_id: str,
        event_filter: str = EVENT_CREATED,
        limit: int = POLL_DEPLOYMENT_LIMIT,
        **retry_kwargs: Any,
    ) -> None:
        if not project_id or not project_id.strip():
            raise ValidationError("Parameter 'projectId' is required")
        self.project_id = project_id.strip()
        self.limit = limit
        self._client = client
        self._request = retrying(client.request, **retry_kwargs)
        self._differ = DeploymentDiffer(event_filter)
        self._log = logging.getLogger(f"watcher.{self.project_id}")

    @property
    def event_filter(self) -> str:
        return self._differ.event_filter

    @property
    def state_key(self) -> str:
        return f"{self.project_id}:{self.event_filter}"

    async def poll(self, static_data: MutableMapping[str, Any]) -> list[dict[str, Any]] | None:
        """
        Run one poll cycle against `static_data` (edited in place).

        Returns the event items to emit, or None when there is nothing to report.
        """
        try:
            organization_id = self._client.organization_id
            if not organization_id:
                raise ValidationError("Credential 'organizationId' is required")

            response = await self._request(
                "GET",
                f"/projects/{self.project_id}/deployments",
                None,
                {"limit": self.limit},
            )
            deployments = self._parse_deployments(extract_items(response))

            state = PollState.from_mapping(static_data)
            events, new_state = self._differ.diff(
                deployments, state, organization_id, self.project_id,
            )
        except Exception as exc:
            self._log.error("Deno Deploy Trigger error: %s", exc)
            return None

        if not state.is_seeded and new_state.is_seeded:
            self._log.info("Seeded state with %d deployment(s)", len(new_state.last_deployment_statuses))

        static_data.clear()
        static_data.update(new_state.to_mapping())

        if events:
            return [event.to_json() for event in events]
        return None

    def _parse_deployments(self, items: list[Any]) -> list[Deployment]:
        deployments: list[Deployment] = []
        for item in items:
            try:
                deployments.append(Deployment.from_api(item))
            except ValueError as exc:
                self._log.warning("Skipping deployment: %s", exc)
        return deployments

    async def run_forever(
        self,
        store: StateStore,
        handler: EventHandler,
        interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._log.info(
            "Started watching project %s for %s every %ss",
            self.project_id, self.event_filter, interval,
        )

        while True:
            try:
                static_data = store.load(self.state_key)
                events = await self.poll(static_data)
                store.save(self.state_key, static_data)

                if events:
                    self._log.info("%d new event(s) for %s", len(events), self.project_id)
                    for event in events:
                        await handler.handle(event)
                else:
                    self._log.debug("No deployment changes for %s", self.project_id)

            except asyncio.CancelledError:
                self._log.info("Watcher for %s cancelled.", self.project_id)
                raise

            except Exception as exc:
                self._log.exception("Unexpected error in watcher for %s: %s", self.project_id, exc)

            await asyncio.sleep(interval)
