# event handlers: the output layer of the standalone monitor.

# each handler receives one event item, as emitted by DeploymentTrigger.poll():
#     {"event", "deployment", "previousStatus"?, "organizationId", "projectId", "timestamp"}
# and decides what to do with it. To add an output target, implement
#     async def handle(self, event: dict) -> None: ...
# and pass it into DeploymentMonitor.

import json
import logging
from typing import Any

log = logging.getLogger(__name__)

_R = "\033[0m"   # reset

_STATUS_COLOR: dict[str, str] = {
    "created":   "\033[36m",   # cyan
    "pending":   "\033[33m",   # yellow
    "building":  "\033[34m",   # blue
    "success":   "\033[32m",   # green
    "failed":    "\033[31m",   # red
    "cancelled": "\033[90m",   # grey
}


def _color_status(status: str) -> str:
    c = _STATUS_COLOR.get(status.lower(), "")
    return f"{c}{status.upper()}{_R}" if c else status.upper()


class ConsoleEventHandler:
    """
    Prints one pipe-delimited line per event to stdout.

    Format:
        [2026-02-21T12:39:08.000Z] my-project | SUCCESS | Deployment=abc123 | Previous=BUILDING | Domains=my-project.deno.dev
    """

    def __init__(self, color: bool = True) -> None:
        self._color = color

    async def handle(self, event: dict[str, Any]) -> None:
        print(self.format(event), flush=True)

    def format(self, event: dict[str, Any]) -> str:
        deployment = event.get("deployment") or {}
        kind       = event.get("event", "deployment.unknown").split(".", 1)[-1]
        status     = _color_status(kind) if self._color else kind.upper()
        domains    = ", ".join(deployment.get("domains") or []) or "N/A"

        parts = [
            f"[{event.get('timestamp', '')}] {event.get('projectId', '')}",
            status,
            f"Deployment={deployment.get('id', 'unknown')}",
        ]
        if event.get("previousStatus"):
            parts.append(f"Previous={event['previousStatus'].upper()}")
        parts.append(f"Domains={domains}")
        return " | ".join(parts)


class JsonLinesEventHandler:
    """Writes each event as one JSON object per line, for piping into other tools."""

    async def handle(self, event: dict[str, Any]) -> None:
        print(json.dumps(event, sort_keys=True), flush=True)
