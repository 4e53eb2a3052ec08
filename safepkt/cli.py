"""Command-line verification of smart contracts."""

from __future__ import annotations

import argparse
import asyncio
import base64
import os
import signal
from pathlib import Path

from dotenv import load_dotenv

from safepkt.file_system import save_content_in_file_system
from safepkt.output import print_err, print_out, setup_logging
from safepkt.runtime import PROGRAM_FUZZING, PROGRAM_VERIFICATION, SmartContractVerification
from safepkt.step import VerificationTarget

VERSION = "0.2.1"

ARGUMENT_SOURCE = "source"
OPTION_WITH_FUZZING = "fuzz"
SUBCOMMAND_NAME_VERIFY_PROGRAM = "verify_program"

_POLL_INTERVAL = 2.0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its verify_program subcommand."""
    parser = argparse.ArgumentParser(
        prog="safepkt", description="Rust-based smart contract verification"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    subparsers = parser.add_subparsers(dest="command")
    verify = subparsers.add_parser(
        SUBCOMMAND_NAME_VERIFY_PROGRAM, help="Verify program", description="Verify program"
    )
    verify.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    verify.add_argument(
        "-f",
        f"--{OPTION_WITH_FUZZING}",
        action="store_true",
        help='Fuzz test program by relying on the "propverify" crate',
    )
    verify.add_argument(
        "-s",
        f"--{ARGUMENT_SOURCE}",
        help="Path to a rust-based smart contract",
    )
    return parser


def reset_signal_pipe_handler() -> None:
    """Restore the default SIGPIPE behaviour so piped output ends quietly."""
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def _prepare_verification(
    source_path: str, with_fuzzing: bool, container_api_client
) -> SmartContractVerification:
    """Upload a source and set up the verification of its chosen step."""
    content = Path(source_path).read_text(encoding="utf-8")
    _, project_id = save_content_in_file_system(base64.b64encode(content.encode("utf-8")))

    step = PROGRAM_FUZZING if with_fuzzing else PROGRAM_VERIFICATION
    return SmartContractVerification(VerificationTarget(step, project_id), container_api_client)


async def _follow_verification(
    verification: SmartContractVerification, poll_interval: float
) -> dict[str, str]:
    """Run a verification step, wait while it runs and return its report."""
    await verification.run_step()
    print_out("{}", [""])

    while True:
        progress = await verification.step_progress()
        if progress["raw_status"] != "running":
            print_out("{}", [""])
            break
        print_out("{}", ["."], no_linefeed=True)
        await asyncio.sleep(poll_interval)

    return await verification.step_report()


async def verify_program(source_path: str, with_fuzzing: bool) -> dict[str, str]:
    """Upload a source, run its verification step, wait for it and return the report."""
    verification = _prepare_verification(source_path, with_fuzzing, None)
    return await _follow_verification(verification, _POLL_INTERVAL)


async def run_verify_program(args: argparse.Namespace) -> None:
    """Check the parsed arguments of verify_program and run it."""
    if args.source is None:
        print_err(
            "A --{} argument (absolute path to smart contract) is required.",
            [ARGUMENT_SOURCE],
        )
        return

    source = Path(args.source)
    if not source.exists() or source.is_dir():
        print_err("Invalid path to rust-based smart contract.")
        return

    await verify_program(args.source, args.fuzz)


def main(argv: list[str] | None = None) -> int:
    """Entry point of the safepkt command."""
    reset_signal_pipe_handler()
    setup_logging()
    load_dotenv()
    os.environ["CLI"] = "true"

    args = build_parser().parse_args(argv)
    if args.command == SUBCOMMAND_NAME_VERIFY_PROGRAM:
        asyncio.run(run_verify_program(args))
        return 0

    print_err("Pass --help flag to this command to print help information")
    return 0