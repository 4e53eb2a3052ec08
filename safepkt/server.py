"""HTTP API for uploading sources and running verification steps."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

from aiohttp import web
from dotenv import load_dotenv

from safepkt.container import ContainerAPIClient
from safepkt.file_system import save_content_in_file_system
from safepkt.output import setup_logging
from safepkt.runtime import VerificationRuntime, build_steps, steps_names
from safepkt.step import Step, which_step
from safepkt.value_objects import deserialize_flags, deserialize_source

logger = logging.getLogger("safepkt")

CLIENT_FACTORY = web.AppKey("client_factory", object)

_ROUTING_ERROR_BODY = "Sorry, something went wrong."


def build_response(body: bytes, status: int = 200) -> web.Response:
    """Wrap a JSON body in a response carrying the API's headers."""
    return web.Response(
        body=body,
        status=status,
        headers={
            "Content-Type": "application/json",
            "X-Content-Type-Options": "nosniff",
        },
    )


def _json_response(payload: Any, status: int = 200) -> web.Response:
    return build_response(json.dumps(payload).encode("utf-8"), status)


@web.middleware
async def _log_requests(request: web.Request, handler) -> web.StreamResponse:
    logger.info("%s %s %s", request.remote, request.method, request.path)
    return await handler(request)


_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


@web.middleware
async def _cors(request: web.Request, handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=_CORS_HEADERS)
    response = await handler(request)
    response.headers.update(_CORS_HEADERS)
    return response


@web.middleware
async def _handle_errors(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as err:
        logger.error("Routing error: %s", err)
        return web.Response(status=500, text=_ROUTING_ERROR_BODY)


def _runtime(request: web.Request, steps: Mapping[str, Step]) -> VerificationRuntime:
    plan = which_step(steps, request.match_info["stepName"], request.match_info["projectId"])
    return VerificationRuntime(plan, steps, request.app[CLIENT_FACTORY]())


async def save_source(request: web.Request) -> web.Response:
    """Store an uploaded base64-encoded source and answer with its project id."""
    body = await request.text()
    source = deserialize_source(body)
    _, project_id = save_content_in_file_system(source.source)
    return _json_response({"project_id": project_id})


async def get_steps(request: web.Request) -> web.Response:
    """List the names of the available verification steps."""
    return _json_response({"steps": steps_names()})


async def start_running_step(request: web.Request) -> web.Response:
    """Start a step for a project, with optional flags in the request body."""
    body = await request.text()
    if body:
        flags = deserialize_flags(body).flags.decode("utf-8")
        steps = build_steps(flags)
    else:
        steps = build_steps(None)

    runtime = _runtime(request, steps)
    step_name = runtime.project_step.name
    project_id = request.match_info["projectId"]
    try:
        result = await runtime.start_running()
    except Exception as report:
        logger.error("%s", report)
        message = f'Could not run "{step_name}" step for project having id "{project_id}"'
        return _json_response({"error": message}, 400)
    return _json_response(result)


async def _follow(request: web.Request, action: Callable[[VerificationRuntime], Any]) -> web.Response:
    runtime = _runtime(request, build_steps(None))
    try:
        result = await action(runtime)
    except Exception as report:
        return _json_response({"error": str(report)}, 400)
    return _json_response(result)


async def stop_running_step(request: web.Request) -> web.Response:
    """Stop the container running a step for a project."""
    return await _follow(request, lambda runtime: runtime.stop_running())


async def get_step_report(request: web.Request) -> web.Response:
    """Return the logs of the container running a step."""
    return await _follow(request, lambda runtime: runtime.get_report())


async def get_step_progress(request: web.Request) -> web.Response:
    """Return the status of the container running a step."""
    return await _follow(request, lambda runtime: runtime.get_progress())


def create_app(client_factory: Callable[[], Any] | None = None) -> web.Application:
    """Build the web application; the factory provides container API clients."""
    app = web.Application(middlewares=[_log_requests, _cors, _handle_errors])
    app[CLIENT_FACTORY] = client_factory if client_factory is not None else ContainerAPIClient
    app.router.add_post("/source", save_source)
    app.router.add_get("/steps", get_steps)
    app.router.add_post("/{stepName}/{projectId}", start_running_step)
    app.router.add_get("/{stepName}/{projectId}/report", get_step_report)
    app.router.add_get("/{stepName}/{projectId}/progress", get_step_progress)
    app.router.add_delete("/{stepName}/{projectId}", stop_running_step)
    return app


def main(argv: list[str] | None = None) -> int:
    """Serve the API on HOST and PORT until interrupted."""
    setup_logging()
    load_dotenv()

    host = os.environ["HOST"]
    port = os.environ["PORT"]

    logger.info("About to listen to address %s and port %s", host, port)
    try:
        web.run_app(create_app(), host=host, port=int(port), print=None)
    except Exception as err:
        logger.error("server error: %s", err)
    return 0