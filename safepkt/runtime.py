"""Running verification steps in containers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from safepkt.container import (
    ContainerAPIClient,
    program_fuzzing_cmd_provider,
    program_verification_cmd_provider,
    source_code_restoration_cmd_provider,
    uploaded_sources_listing_cmd_provider,
)
from safepkt.output import print_err
from safepkt.scaffold import scaffold_library
from safepkt.step import (
    Step,
    StepInVerificationPlan,
    VerificationStepsCollection,
    VerificationTarget,
    which_step,
)

PROGRAM_FUZZING = "program_fuzzing"
PROGRAM_VERIFICATION = "program_verification"
SOURCE_RESTORATION = "source_restoration"
UPLOADED_SOURCES_LISTING = "uploaded_sources_listing"


def build_steps(flags: str | None = None) -> dict[str, Step]:
    """Build every known step; flags apply to fuzzing and verification only."""
    return {
        PROGRAM_FUZZING: Step(PROGRAM_FUZZING, program_fuzzing_cmd_provider(), flags),
        PROGRAM_VERIFICATION: Step(
            PROGRAM_VERIFICATION, program_verification_cmd_provider(), flags
        ),
        UPLOADED_SOURCES_LISTING: Step(
            UPLOADED_SOURCES_LISTING, uploaded_sources_listing_cmd_provider(), None
        ),
        SOURCE_RESTORATION: Step(
            SOURCE_RESTORATION, source_code_restoration_cmd_provider(), None
        ),
    }


def steps_names() -> list[str]:
    """Names of the steps a runtime can run."""
    return [PROGRAM_FUZZING, PROGRAM_VERIFICATION, UPLOADED_SOURCES_LISTING, SOURCE_RESTORATION]


class VerificationRuntime:
    """Runs one step of a verification plan in a container."""

    def __init__(
        self,
        step_in_verification_plan: StepInVerificationPlan,
        steps: Mapping[str, Step],
        container_api_client: ContainerAPIClient | None = None,
    ) -> None:
        self.container_api_client = (
            container_api_client if container_api_client is not None else ContainerAPIClient()
        )
        self.step_in_verification_plan = step_in_verification_plan
        self.verification_step_collection = VerificationStepsCollection(steps)

    @property
    def project_id(self) -> str:
        return self.step_in_verification_plan.project_id

    @property
    def project_step(self) -> Step:
        return self.step_in_verification_plan.step

    async def get_progress(self) -> dict[str, str]:
        return await self.container_api_client.inspect_container_status(
            self.step_in_verification_plan
        )

    async def get_report(self) -> dict[str, str]:
        return await self.container_api_client.tail_container_logs(
            self.step_in_verification_plan
        )

    async def start_running(self) -> dict[str, str]:
        plan = self.step_in_verification_plan
        await self.container_api_client.remove_existing_container(plan)
        if plan.step.name != UPLOADED_SOURCES_LISTING:
            scaffold_library(plan.project_id)

        await self.container_api_client.start_container(plan)
        return {
            "container_name": self.container_api_client.format_container_name(plan),
            "message": "Rust verification tools container started successfully.",
        }

    async def stop_running(self) -> dict[str, str]:
        plan = self.step_in_verification_plan
        await self.container_api_client.stop_container(plan)
        return {
            "message": (
                "Removed running container successfully for project with id "
                f'"{plan.project_id}".'
            )
        }


@dataclass
class SmartContractVerification:
    """Runs and follows a verification step for a smart contract."""

    target: VerificationTarget
    container_api_client: ContainerAPIClient | None = None

    def _runtime(self) -> VerificationRuntime:
        steps = build_steps(None)
        plan = which_step(steps, self.target.step, self.target.project_id)
        return VerificationRuntime(plan, steps, self.container_api_client)

    async def run_step(self) -> dict[str, str]:
        runtime = self._runtime()
        try:
            return await runtime.start_running()
        except Exception as report:
            print_err("{}", [str(report)])
            raise RuntimeError(
                f'Could not run "{runtime.project_step.name}" step for project '
                f'having id "{self.target.project_id}"'
            ) from report

    async def step_report(self) -> dict[str, str]:
        runtime = self._runtime()
        try:
            return await runtime.get_report()
        except Exception as report:
            print_err("{}", [str(report)])
            raise

    async def step_progress(self) -> dict[str, str]:
        runtime = self._runtime()
        try:
            return await runtime.get_progress()
        except Exception as report:
            print_err("{}", [str(report)])
            raise