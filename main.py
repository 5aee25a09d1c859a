import argparse
import asyncio
import json
import logging
import platform
import signal
import sys
from pathlib import Path

from deno_deploy.config import API_BASE_URL, POLL_INTERVAL_SECONDS
from deno_deploy.differ import EVENT_CREATED, EVENT_FILTERS
from deno_deploy.errors import DenoDeployError
from deno_deploy.handlers import ConsoleEventHandler, JsonLinesEventHandler
from deno_deploy.models import Credentials
from deno_deploy.orchestrator import DeploymentMonitor
from deno_deploy.state import JsonFileStateStore

log = logging.getLogger("main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="deno-deploy-monitor",
        description="Watch Deno Deploy projects and print deployment lifecycle events.",
    )
    parser.add_argument(
        "--credentials", required=True, type=Path,
        help='JSON file with {"accessToken": ..., "organizationId": ...}',
    )
    parser.add_argument(
        "--project", dest="projects", action="append", required=True,
        help="project id to watch (repeatable)",
    )
    parser.add_argument("--event", choices=EVENT_FILTERS, default=EVENT_CREATED)
    parser.add_argument("--state-file", type=Path, default=Path(".deno-deploy-state.json"))
    parser.add_argument("--base-url", default=API_BASE_URL)
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL_SECONDS)
    parser.add_argument("--json", action="store_true", help="emit events as JSON lines")
    parser.add_argument("--no-verify", action="store_true", help="skip the credential check at startup")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def load_credentials(path: Path) -> Credentials:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise DenoDeployError(f"Cannot read credentials from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DenoDeployError(f"Credentials file {path} must hold a JSON object")
    return Credentials.from_mapping(data)


async def main(args: argparse.Namespace) -> None:
    monitor = DeploymentMonitor(
        credentials=load_credentials(args.credentials),
        project_ids=args.projects,
        store=JsonFileStateStore(args.state_file),
        event_filter=args.event,
        handler=JsonLinesEventHandler() if args.json else ConsoleEventHandler(),
        base_url=args.base_url,
        interval=args.interval,
        verify=not args.no_verify,
    )
    loop = asyncio.get_running_loop()

    if platform.system() != "Windows":

        def _shutdown(sig: signal.Signals) -> None:
            log.info("Received %s, shutting down gracefully...", sig.name)
            monitor.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _shutdown, sig)

        try:
            await monitor.run()
        except asyncio.CancelledError:
            log.info("Monitor stopped.")

    else:
        try:
            await monitor.run()
        except (asyncio.CancelledError, KeyboardInterrupt):
            log.info("Shutting down...")
            monitor.stop()
            await monitor.wait_stopped()
            log.info("Monitor stopped.")


def cli(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    log.info("Deno Deploy monitor starting (API %s)", args.base_url)

    try:
        asyncio.run(main(args))
    except DenoDeployError as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(cli())
