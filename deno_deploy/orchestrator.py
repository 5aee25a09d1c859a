# DeploymentMonitor: the top-level standalone runner.

# Opens one authenticated session for every watched project, checks the token
# against the organization once, then runs a DeploymentTrigger task per
# project until stop() cancels them.
#
# Each trigger owns its own state key, so tasks never share poll state.

import asyncio
import logging

import aiohttp

from deno_deploy.config import API_BASE_URL, POLL_INTERVAL_SECONDS, USER_AGENT
from deno_deploy.differ import EVENT_CREATED
from deno_deploy.handlers import ConsoleEventHandler
from deno_deploy.http_client import DenoDeployClient
from deno_deploy.models import Credentials
from deno_deploy.watcher import DeploymentTrigger, EventHandler, StateStore

log = logging.getLogger(__name__)


class DeploymentMonitor:

    def __init__(
        self,
        credentials: Credentials,
        project_ids: list[str],
        store: StateStore,
        event_filter: str = EVENT_CREATED,
        handler: EventHandler | None = None,
        base_url: str = API_BASE_URL,
        interval: float = POLL_INTERVAL_SECONDS,
        verify: bool = True,
    ) -> None:
        self._credentials = credentials
        self._project_ids = project_ids
        self._store = store
        self._event_filter = event_filter
        self._handler = handler or ConsoleEventHandler()
        self._base_url = base_url
        self._interval = interval
        self._verify = verify
        self._tasks: list[asyncio.Task] = []

    async def run(self) -> None:
        connector = aiohttp.TCPConnector(limit=20)
        async with aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": USER_AGENT},
        ) as session:

            client = DenoDeployClient(session, self._credentials, self._base_url)

            if self._verify:
                org = await client.verify_credentials()
                log.info("Authenticated against organization %s", org.get("name") or client.organization_id)

            for project_id in self._project_ids:
                trigger = DeploymentTrigger(client, project_id, self._event_filter)
                task = asyncio.create_task(
                    trigger.run_forever(self._store, self._handler, self._interval),
                    name=f"watcher-{project_id}",
                )
                self._tasks.append(task)

            log.info(
                "DeploymentMonitor running, watching %d project(s). Press Ctrl+C to stop.",
                len(self._project_ids),
            )

            # blocks until all tasks finish (normally only on cancellation)
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def stop(self) -> None:
        """Cancel every trigger task; run() returns once they have unwound."""
        for task in self._tasks:
            task.cancel()

    async def wait_stopped(self) -> None:
        await asyncio.gather(*self._tasks, return_exceptions=True)
