from __future__ import annotations

import json

import pytest

from deno_deploy.handlers import ConsoleEventHandler, JsonLinesEventHandler

EVENT = {
    "event": "deployment.success",
    "previousStatus": "building",
    "deployment": {"id": "dep-1", "status": "success", "domains": ["demo.deno.dev"]},
    "organizationId": "org-1",
    "projectId": "demo",
    "timestamp": "2026-02-21T12:39:08.000Z",
}


def test_console_format_without_color() -> None:
    line = ConsoleEventHandler(color=False).format(EVENT)

    assert line == (
        "[2026-02-21T12:39:08.000Z] demo | SUCCESS | Deployment=dep-1 | "
        "Previous=BUILDING | Domains=demo.deno.dev"
    )


def test_console_format_created_event_has_no_previous() -> None:
    event = {**EVENT, "event": "deployment.created", "deployment": {"id": "dep-2"}}
    del event["previousStatus"]

    line = ConsoleEventHandler(color=True).format(event)

    assert "CREATED" in line
    assert "\033[36m" in line
    assert "Previous=" not in line
    assert line.endswith("Domains=N/A")


@pytest.mark.asyncio
async def test_handlers_print_one_line_per_event(capsys) -> None:
    await ConsoleEventHandler(color=False).handle(EVENT)
    await JsonLinesEventHandler().handle(EVENT)

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[2026-02-21T12:39:08.000Z] demo | SUCCESS")
    assert json.loads(lines[1]) == EVENT
