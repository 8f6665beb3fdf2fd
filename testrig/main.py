"""testrig CLI: pick a device for a test run, run the tests, tear it down."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from testrig.config import (
    DeviceOverrides,
    build_target_spec,
    get_default_run_type,
    get_inventory_path,
    load_capabilities,
)
from testrig.device.loader import load_inventory
from testrig.device.manager import DeviceManager
from testrig.models import DeviceError, TargetSpec

logger = logging.getLogger("testrig")

DEVICE_ENV = "TESTRIG_DEVICE"


def _add_target_flags(parser: argparse.ArgumentParser) -> None:
    """Add the device request flags shared by every subcommand."""
    parser.add_argument("--caps", "-c", required=True, help="Path to a capabilities JSON file")
    parser.add_argument(
        "--inventory", "-i", default=None,
        help="Inventory implementation as module:attr (default: from ~/.testrig/config.json)",
    )
    parser.add_argument("--run-type", default=None, help="Run lane identifier (default: from config)")
    parser.add_argument("--reuse", action="store_true", help="Reuse an already running device")
    parser.add_argument(
        "--remote-lab", action="store_true",
        help="Device lives in a remote lab; skip the local inventory",
    )
    parser.add_argument(
        "--ignore-inventory", action="store_true",
        help="Do not consult or control the local inventory",
    )
    parser.add_argument(
        "--relaxed-security", action="store_true",
        help="Allow raw shell commands through the automation driver",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def _build_spec(args: argparse.Namespace) -> TargetSpec:
    caps = load_capabilities(args.caps)
    return build_target_spec(
        caps,
        DeviceOverrides.from_env(),
        run_type=args.run_type or get_default_run_type(),
        reuse_device=args.reuse,
        remote_lab=args.remote_lab,
        ignore_inventory=args.ignore_inventory,
        relaxed_security=args.relaxed_security,
    )


def _build_manager(args: argparse.Namespace) -> DeviceManager:
    import_path = args.inventory or get_inventory_path()
    if not import_path:
        raise DeviceError(
            "No inventory configured. Pass --inventory module:attr "
            "or set \"inventory\" in ~/.testrig/config.json",
            tool="config",
        )
    return DeviceManager(load_inventory(import_path))


async def _cmd_select(args: argparse.Namespace) -> int:
    """Select and start a device, print it as JSON."""
    spec = _build_spec(args)
    manager = _build_manager(args)
    selection = await manager.start_device(spec)
    if not selection.found:
        print(f"No device selected: {selection.reason}", file=sys.stderr)
        return 1
    if args.metrics:
        await manager.resolve_display_metrics(spec, selection.device)
    print(selection.device.model_dump_json(indent=2))
    return 0


async def _cmd_metrics(args: argparse.Namespace) -> int:
    """Select a device and print only its display metrics."""
    spec = _build_spec(args)
    manager = _build_manager(args)
    selection = await manager.start_device(spec)
    if not selection.found:
        print(f"No device selected: {selection.reason}", file=sys.stderr)
        return 1
    await manager.resolve_display_metrics(spec, selection.device)
    print(selection.device.config.model_dump_json(indent=2))
    return 0


async def _cmd_run(args: argparse.Namespace) -> int:
    """Start a device, run the test command against it, then stop the device."""
    command = list(args.cmd)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("Nothing to run: pass the test command after --", file=sys.stderr)
        return 2

    spec = _build_spec(args)
    manager = _build_manager(args)
    selection = await manager.start_device(spec)
    if not selection.found:
        print(f"No device selected: {selection.reason}", file=sys.stderr)
        return 1

    device = selection.device
    try:
        await manager.resolve_display_metrics(spec, device)
        env = dict(os.environ)
        env[DEVICE_ENV] = device.model_dump_json()

        logger.info("Running %s on %s", " ".join(command), device.describe())
        try:
            proc = await asyncio.create_subprocess_exec(*command, env=env)
        except OSError as e:
            raise DeviceError(f"Could not run {command[0]}: {e}", tool="run") from e
        returncode = await proc.wait()
    finally:
        await manager.stop_device(spec)

    logger.info("Test command exited with %d", returncode)
    return returncode


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="testrig: select and manage mobile test devices",
    )
    parser.set_defaults(command=None)

    subparsers = parser.add_subparsers(dest="command")

    # select
    select_parser = subparsers.add_parser("select", help="Select and start a device, print it as JSON")
    _add_target_flags(select_parser)
    select_parser.add_argument(
        "--metrics", action="store_true", help="Also resolve density and offset",
    )

    # metrics
    metrics_parser = subparsers.add_parser("metrics", help="Print density and offset for the selected device")
    _add_target_flags(metrics_parser)

    # run
    run_parser = subparsers.add_parser("run", help="Run a test command on a selected device")
    _add_target_flags(run_parser)
    run_parser.add_argument("cmd", nargs=argparse.REMAINDER, help="Command to run, after --")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    handlers = {
        "select": _cmd_select,
        "metrics": _cmd_metrics,
        "run": _cmd_run,
    }
    try:
        code = asyncio.run(handlers[args.command](args))
    except DeviceError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    cli()
