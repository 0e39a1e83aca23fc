"""Command line entry points: the booth server and the camera agent."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable

import uvicorn

from photobooth.adapters.booth_client import HttpxBoothClient
from photobooth.app_logging import configure_logging
from photobooth.config import AgentSettings
from photobooth.containers import build_camera
from photobooth.domain.errors import CaptureFailed
from photobooth.services.remote_agent import RemoteCameraAgent

logger = logging.getLogger("photobooth.cli")


def cmd_serve(args: argparse.Namespace) -> int:
    uvicorn.run(
        "photobooth.api.asgi:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def cmd_listen(args: argparse.Namespace) -> int:
    async def listen(agent: RemoteCameraAgent) -> dict[str, object]:
        await agent.run_forever()
        return {}

    try:
        _run_agent(args, listen)
    except KeyboardInterrupt:
        logger.info("Camera agent stopped")
    return 0


def cmd_start_session(args: argparse.Namespace) -> int:
    async def start(agent: RemoteCameraAgent) -> dict[str, object]:
        return {"sessionId": await agent.client.start_session()}

    _print(_run_agent(args, start))
    return 0


def cmd_capture(args: argparse.Namespace) -> int:
    async def capture(agent: RemoteCameraAgent) -> dict[str, object]:
        session_id = args.session_id
        if session_id is None:
            current = await agent.client.current()
            if not current.get("active"):
                return {"success": False, "error": "No active session"}
            session_id = current["sessionId"]
        try:
            return await agent.capture_into(session_id)
        except CaptureFailed as exc:
            return exc.to_payload()

    result = _run_agent(args, capture)
    _print(result)
    return 0 if result.get("success", True) else 1


def cmd_finish(args: argparse.Namespace) -> int:
    async def finish(agent: RemoteCameraAgent) -> dict[str, object]:
        payload = await agent.client.finish()
        payload.pop("qrCode", None)
        return payload

    _print(_run_agent(args, finish))
    return 0


def _run_agent(
    args: argparse.Namespace,
    action: Callable[[RemoteCameraAgent], Awaitable[dict[str, object]]],
) -> dict[str, object]:
    settings = AgentSettings()
    configure_logging(settings.log_level, settings.log_dir)

    async def run() -> dict[str, object]:
        client = HttpxBoothClient.create(args.booth_url or settings.booth_api_url)
        agent = RemoteCameraAgent(client=client, camera=build_camera(settings))
        try:
            return await action(agent)
        finally:
            await client.close()

    return asyncio.run(run())


def _print(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2))


def _add_agent_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--booth-url",
        default=None,
        help="Booth server base URL (default: BOOTH_API_URL or http://localhost:8000)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="photobooth", description="Event photobooth")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Run the booth server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind address")  # noqa: S104
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    p_agent = sub.add_parser("agent", help="Camera agent for a remote booth")
    agent_sub = p_agent.add_subparsers(dest="agent_cmd", required=True)

    p_listen = agent_sub.add_parser("listen", help="Wait for trigger commands and capture")
    _add_agent_args(p_listen)
    p_listen.set_defaults(func=cmd_listen)

    p_start = agent_sub.add_parser("start-session", help="Start a session on the booth")
    _add_agent_args(p_start)
    p_start.set_defaults(func=cmd_start_session)

    p_capture = agent_sub.add_parser("capture", help="Capture once and upload")
    _add_agent_args(p_capture)
    p_capture.add_argument(
        "--session-id", default=None, help="Target session (default: the active one)"
    )
    p_capture.set_defaults(func=cmd_capture)

    p_finish = agent_sub.add_parser("finish", help="Finish the active session")
    _add_agent_args(p_finish)
    p_finish.set_defaults(func=cmd_finish)

    return p


def main(argv: list[str] | None = None) -> None:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
