"""A small Docker Engine API client and container follow-up operations."""

from __future__ import annotations

import json
import os
import re
from typing import Any
from urllib.parse import quote

import aiohttp

from safepkt.output import print_err, print_out

DEFAULT_SOCKET_PATH = "/var/run/docker.sock"
_UNIX_SCHEME = "unix://"

_STREAMS = {0: "stdin", 1: "stdout", 2: "stderr"}
_HEADER_SIZE = 8

_RUNNING_TEST = re.compile(r"^Running\s.+")
_STDERR_LINE = re.compile(r"^STDERR:.+")


class DockerError(Exception):
    """Raised when the Docker Engine API reports a failure."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ContainerNotFoundError(DockerError):
    """Raised when no container has the requested name."""


def _default_socket_path() -> str:
    host = os.environ.get("DOCKER_HOST", "")
    if host.startswith(_UNIX_SCHEME):
        return host[len(_UNIX_SCHEME):]
    return DEFAULT_SOCKET_PATH


def _error_message(body: bytes, status: int) -> str:
    try:
        document = json.loads(body)
    except ValueError:
        text = body.decode("utf-8", errors="replace").strip()
        return text or f"Docker API responded with status {status}"
    if isinstance(document, dict) and "message" in document:
        return str(document["message"])
    return f"Docker API responded with status {status}"


def demultiplex_logs(data: bytes) -> list[tuple[str, bytes]]:
    """Split a Docker log stream into (stream, payload) frames.

    Streams are "stdin", "stdout" and "stderr"; data without frame headers,
    as produced for a TTY, comes out as a single "console" frame.
    """
    raw = bytes(data)
    frames: list[tuple[str, bytes]] = []
    offset = 0
    while offset < len(raw):
        header = raw[offset:offset + _HEADER_SIZE]
        kind = _STREAMS.get(header[0])
        if len(header) < _HEADER_SIZE or kind is None or header[1:4] != b"\x00\x00\x00":
            frames.append(("console", raw[offset:]))
            break
        size = int.from_bytes(header[4:8], "big")
        start = offset + _HEADER_SIZE
        frames.append((kind, raw[start:start + size]))
        offset = start + size
    return frames


class DockerClient:
    """Asynchronous access to the Docker Engine API over a Unix socket or HTTP."""

    def __init__(self, socket_path: str | None = None, base_url: str | None = None) -> None:
        if base_url is None:
            self.socket_path: str | None = socket_path or _default_socket_path()
            self.base_url = "http://localhost"
        else:
            self.socket_path = socket_path
            self.base_url = base_url.rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> bytes:
        connector = aiohttp.UnixConnector(path=self.socket_path) if self.socket_path else None
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.request(
                method, self.base_url + path, params=params, json=json_body
            ) as response:
                body = await response.read()
                if response.status >= 400:
                    raise DockerError(_error_message(body, response.status), response.status)
                return body

    async def list_containers(self, name: str, all_containers: bool = True) -> list[dict]:
        """List containers whose name matches."""
        params = {
            "all": "true" if all_containers else "false",
            "filters": json.dumps({"name": [name]}),
        }
        return json.loads(await self._request("GET", "/containers/json", params=params))

    async def inspect_container(self, container_id: str) -> dict:
        """Return the low-level description of a container."""
        body = await self._request("GET", f"/containers/{quote(container_id, safe='')}/json")
        return json.loads(body)

    async def remove_container(self, name: str, force: bool = False) -> None:
        """Remove a container, killing it first when forced."""
        await self._request(
            "DELETE",
            f"/containers/{quote(name, safe='')}",
            params={"force": "true" if force else "false"},
        )

    async def create_container(self, name: str, config: dict) -> str:
        """Create a named container from a configuration; return its id."""
        body = await self._request(
            "POST", "/containers/create", params={"name": name}, json_body=config
        )
        return json.loads(body)["Id"]

    async def start_container(self, container_id: str) -> None:
        """Start a created container."""
        await self._request("POST", f"/containers/{quote(container_id, safe='')}/start")

    async def stop_container(self, name: str) -> None:
        """Stop a running container."""
        await self._request("POST", f"/containers/{quote(name, safe='')}/stop")

    async def logs(self, name: str) -> list[tuple[str, bytes]]:
        """Fetch the standard output and error logs of a container."""
        body = await self._request(
            "GET",
            f"/containers/{quote(name, safe='')}/logs",
            params={"stdout": "true", "stderr": "true"},
        )
        return demultiplex_logs(body)


def _no_container(container_name: str) -> ContainerNotFoundError:
    return ContainerNotFoundError(f'There is no container having name "{container_name}"')


async def container_exists(client, container_name: str) -> bool:
    """Tell whether any container, running or not, matches the name."""
    containers = await client.list_containers(container_name, all_containers=True)
    return bool(containers)


async def tail_container_logs(client, container_name: str) -> dict[str, str]:
    """Echo and collect the logs of a container."""
    if not await container_exists(client, container_name):
        raise _no_container(container_name)

    logs = [""]
    for kind, payload in await client.logs(container_name):
        if kind == "stdin":
            continue
        message = payload.decode("utf-8")
        if kind == "stdout":
            if _RUNNING_TEST.match(message):
                print_out("{}{}", ["\n", message], no_linefeed=True)
                logs.append("\n" + message)
            elif _STDERR_LINE.match(message):
                print_out("{}", ["."], no_linefeed=True)
                logs.append(".")
            else:
                print_out("[STDOUT] {}", [message], no_linefeed=True)
                logs.append(message)
        elif kind == "stderr":
            print_err("[STDERR] {}", [message], no_linefeed=True)
            logs.append(message)
        else:
            print_out("[CONSOLE] {}", [message], no_linefeed=True)
            logs.append(message)

    all_logs = "".join(logs)
    return {
        "container_name": container_name,
        "messages": f'Logs tailed for container having name "{container_name}":\n\n{all_logs}',
        "raw_log": all_logs,
    }


async def _get_status(client, container_summary: dict) -> dict[str, str]:
    container_id = container_summary["Id"]
    inspection = await client.inspect_container(container_id)
    container_image = container_summary["Image"]

    status = (inspection.get("State") or {}).get("Status")
    if status is None:
        raise DockerError(f'No status reported for container "{container_id}"')

    return {
        "container_name": container_id,
        "docker_image": container_image,
        "raw_status": str(status),
        "message": (
            "Status provided by inspection of container having name "
            f'"{container_id}" and being based on "{container_image}" '
            f'Docker image is "{status}"'
        ),
    }


async def inspect_container_status(client, container_name: str) -> dict[str, str]:
    """Report the status of the first container matching the name."""
    if not await container_exists(client, container_name):
        raise _no_container(container_name)
    containers = await client.list_containers(container_name, all_containers=True)
    if not containers:
        raise _no_container(container_name)
    return await _get_status(client, containers[0])


async def remove_existing_container(client, container_name: str) -> None:
    """Force the removal of a container when one has the name."""
    if await container_exists(client, container_name):
        await client.remove_container(container_name, force=True)