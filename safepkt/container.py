"""Commands, configuration and lifecycle of verification containers."""

from __future__ import annotations

import os
from collections.abc import Sequence

from safepkt import docker_api
from safepkt.docker_api import DockerClient
from safepkt.file_system import get_uploaded_source_directory
from safepkt.output import print_out
from safepkt.scaffold import (
    TARGET_RVT_DIRECTORY,
    format_directory_path_to_scaffold,
    format_project_name,
)
from safepkt.step import StepInVerificationPlan, StepProvider

TARGET_SOURCE_DIRECTORY = "/safepkt-ink/examples/source"
TARGET_UPLOADED_SOURCES = "/uploaded-sources"
TARGET_VERIFICATION_SCRIPT = "/usr/local/bin/verify"
TARGET_UPLOADED_SOURCES_LISTING_SCRIPT = "/usr/local/bin/list-uploaded-sources"

_CONTRACT_NAME = "multisig_plain"
_FUZZING_ITERATIONS = "5"


def program_verification_cmd_provider() -> StepProvider:
    """Provide the command verifying a program, with optional extra flags."""

    def provide(prefixed_hash: str, bitcode: str, additional_flags: str | None) -> str:
        flags = additional_flags if additional_flags is not None else ""
        return f"{TARGET_VERIFICATION_SCRIPT} {prefixed_hash} {bitcode} {_CONTRACT_NAME}  {flags}"

    return provide


def program_fuzzing_cmd_provider() -> StepProvider:
    """Provide the command fuzzing a program; extra flags are ignored."""

    def provide(prefixed_hash: str, bitcode: str, _flags: str | None) -> str:
        return (
            f"{TARGET_VERIFICATION_SCRIPT} {prefixed_hash} {bitcode} "
            f"{_CONTRACT_NAME} {_FUZZING_ITERATIONS} "
        )

    return provide


def source_code_restoration_cmd_provider() -> StepProvider:
    """Provide the command printing the scaffolded library source."""

    def provide(_prefixed_hash: str, _bitcode: str, _flags: str | None) -> str:
        path_to_source = os.sep.join([TARGET_SOURCE_DIRECTORY, "src", "lib.rs"])
        return f"cat {path_to_source}"

    return provide


def uploaded_sources_listing_cmd_provider() -> StepProvider:
    """Provide the command listing uploaded sources."""

    def provide(_prefixed_hash: str, _bitcode: str, _flags: str | None) -> str:
        return TARGET_UPLOADED_SOURCES_LISTING_SCRIPT

    return provide


def get_bitcode_filename(project_id: str) -> str:
    """Name the bitcode file produced for a project."""
    return f"{project_id}.bc"


def _bind_mount(target: str, source: str) -> dict:
    return {"Target": target, "Source": source, "Type": "bind", "Consistency": "default"}


def get_configuration(
    command_parts: Sequence[str], container_image: str, project_id: str, uid_gid: str
) -> dict:
    """Build the Docker container configuration for running a command on a project."""
    rvt_directory = os.environ["RVT_DIRECTORY"]
    verification_script_path = os.environ["VERIFICATION_SCRIPT"]
    listing_script_path = os.environ["UPLOADED_SOURCES_LISTING_SCRIPT"]

    host_config = {
        "AutoRemove": False,
        "Mounts": [
            _bind_mount(TARGET_SOURCE_DIRECTORY, format_directory_path_to_scaffold(project_id)),
            _bind_mount(TARGET_UPLOADED_SOURCES, get_uploaded_source_directory()),
            _bind_mount(TARGET_RVT_DIRECTORY, rvt_directory),
            _bind_mount(TARGET_UPLOADED_SOURCES_LISTING_SCRIPT, listing_script_path),
            _bind_mount(TARGET_VERIFICATION_SCRIPT, verification_script_path),
        ],
        "NetworkMode": "host",
    }
    return {
        "Cmd": list(command_parts),
        "Env": [uid_gid],
        "HostConfig": host_config,
        "Image": container_image,
        "WorkingDir": TARGET_SOURCE_DIRECTORY,
    }


async def start_container(
    client, container_name: str, project_step: StepInVerificationPlan
) -> None:
    """Create and start the container running a step for a project."""
    project_id = project_step.project_id
    step = project_step.step

    container_image = os.environ["RVT_DOCKER_IMAGE"]
    command = step.step_provider(
        format_project_name(project_id), get_bitcode_filename(project_id), step.flags
    )
    uid_gid = f"UID_GID={os.environ['UID_GID']}"

    configuration = get_configuration(command.split(" "), container_image, project_id, uid_gid)

    print_out(
        "About to start container with name {} based on image {}",
        [container_name, container_image],
    )

    container_id = await client.create_container(container_name, configuration)
    await client.start_container(container_id)


async def stop_container(
    client, container_name: str, project_step: StepInVerificationPlan
) -> None:
    """Stop the container running a step."""
    container_image = os.environ["RVT_DOCKER_IMAGE"]
    print_out(
        'About to stop container with name "{}" based on image "{}"',
        [container_name, container_image],
    )
    await client.stop_container(container_name)


class ContainerAPIClient:
    """Container operations keyed by the step in a verification plan."""

    def __init__(self, client=None) -> None:
        self.client = client if client is not None else DockerClient()

    def format_container_name(self, project_step: StepInVerificationPlan) -> str:
        return f"{project_step.step.name}-{project_step.project_id}"

    async def inspect_container_status(self, project_step: StepInVerificationPlan) -> dict:
        return await docker_api.inspect_container_status(
            self.client, self.format_container_name(project_step)
        )

    async def remove_existing_container(self, project_step: StepInVerificationPlan) -> None:
        await docker_api.remove_existing_container(
            self.client, self.format_container_name(project_step)
        )

    async def start_container(self, project_step: StepInVerificationPlan) -> None:
        await start_container(
            self.client, self.format_container_name(project_step), project_step
        )

    async def stop_container(self, project_step: StepInVerificationPlan) -> None:
        await stop_container(
            self.client, self.format_container_name(project_step), project_step
        )

    async def tail_container_logs(self, project_step: StepInVerificationPlan) -> dict:
        return await docker_api.tail_container_logs(
            self.client, self.format_container_name(project_step)
        )