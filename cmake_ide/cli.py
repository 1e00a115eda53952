"""Command line interface for cmake-ide."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, Sequence
import json
import sys

from .build_config import BUILD_TYPES, BuildConfig
from .command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .config_loader import Settings, load_settings
from .console import Console
from .orchestrator import ConfigureOrchestrator, is_source_file, log_file_for
from .reply import find_target, list_targets, resolve_launch_target, target_detail
from .result import Result


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _prompt_build_type(choices: Sequence[str]) -> str | None:
    if not sys.stdin.isatty():
        return None
    options = "/".join(choices)
    while True:
        try:
            answer = input(f"Build type ({options}): ").strip()
        except EOFError:
            return None
        if not answer:
            return None
        if answer in choices:
            return answer
        print(f"Please choose one of: {', '.join(choices)}")


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="cmake-ide", description="Drive cmake and query its codemodel")
    parser.add_argument(
        "--config-dir",
        dest="config_dirs",
        action="append",
        default=[],
        help="Additional directory searched for cmake-ide settings (repeatable)",
    )
    parser.add_argument("--source-dir", help="Project root containing CMakeLists.txt (default: cwd)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug output")
    verbosity.add_argument("--quiet", action="store_true", help="Only report errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    configure_parser = subparsers.add_parser("configure", help="Run cmake for the project")
    configure_parser.add_argument("--build-type", help=f"Build type ({', '.join(BUILD_TYPES)})")
    configure_parser.add_argument("--build-dir", help="Override build directory")
    configure_parser.add_argument("--wait", action="store_true", help="Wait for cmake to finish")
    configure_parser.add_argument("--dry-run", action="store_true", help="Print the cmake command without running it")

    targets_parser = subparsers.add_parser("targets", help="List codemodel targets")
    targets_parser.add_argument("--build-dir", help="Override build directory")

    info_parser = subparsers.add_parser("target-info", help="Print a target's reply document")
    info_parser.add_argument("name", help="Target name")
    info_parser.add_argument("--build-dir", help="Override build directory")

    launch_parser = subparsers.add_parser("launch-target", help="Resolve the launch target executable")
    launch_parser.add_argument("--name", help="Launch target (defaults to the configured one)")
    launch_parser.add_argument("--build-dir", help="Override build directory")

    should_parser = subparsers.add_parser(
        "should-configure", help="Exit 0 when saving FILE should trigger configuration"
    )
    should_parser.add_argument("file", help="Path of the saved file")

    subparsers.add_parser("build-types", help="List the selectable build types")

    return parser.parse_args(list(argv))


def _console_level(args: Namespace, settings: Settings) -> str:
    if args.verbose:
        return "debug"
    if args.quiet:
        return "error"
    return settings.console_level


def _prepare(args: Namespace, workspace: Path) -> tuple[BuildConfig, Settings, Console]:
    source_dir = Path(args.source_dir).resolve() if args.source_dir else workspace
    settings = load_settings(source_dir, getattr(args, "config_dirs", []))
    build_dir = getattr(args, "build_dir", None)
    if build_dir:
        settings.build_dir = build_dir
    console = Console(_console_level(args, settings), dry_run=getattr(args, "dry_run", False))
    for path in settings.sources:
        console.debug(f"Loaded settings from {path}")

    config = BuildConfig(source_dir=source_dir)
    settings.apply_to(config)
    config.update_build_dir(settings.resolve_build_dir(source_dir))
    return config, settings, console


def _finish(console: Console, result: Result) -> int:
    console.report(result)
    return 0 if result.ok else 1


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()

    if args.command == "build-types":
        for build_type in BUILD_TYPES:
            print(build_type)
        return 0

    try:
        config, settings, console = _prepare(args, workspace)
    except (OSError, TypeError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    if args.command == "configure":
        return _handle_configure(args, config, settings, console)
    if args.command == "targets":
        return _handle_targets(config, console)
    if args.command == "target-info":
        return _handle_target_info(args, config, console)
    if args.command == "launch-target":
        return _handle_launch_target(args, config, console)
    if args.command == "should-configure":
        return _handle_should_configure(args, settings, console)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_configure(
    args: Namespace,
    config: BuildConfig,
    settings: Settings,
    console: Console,
    *,
    runner: CommandRunner | None = None,
) -> int:
    if args.build_type:
        config.set_build_type(args.build_type)
    command_runner = runner if runner is not None else _make_runner(args.dry_run)
    orchestrator = ConfigureOrchestrator(
        config=config,
        settings=settings,
        command_runner=command_runner,
        console=console,
        prompt_build_type=_prompt_build_type,
        detach=not args.wait,
    )
    result = orchestrator.configure()
    if not result.ok:
        return _finish(console, result)

    if isinstance(command_runner, RecordingCommandRunner):
        for line in command_runner.iter_formatted(workspace=config.get_cwd()):
            console.dry(line)
        return 0

    if not args.wait:
        log_file = log_file_for(config.get_build_dir(), settings.process_name)
        console.info(f"cmake started in background; output goes to {log_file}")
        return 0

    completed = result.data.future.result()
    if completed.stdout:
        print(completed.stdout, end="")
    if completed.stderr:
        print(completed.stderr, end="", file=sys.stderr)
    if completed.returncode != 0:
        console.error(f"cmake exited with status {completed.returncode}")
        return completed.returncode
    return 0


def _handle_targets(config: BuildConfig, console: Console) -> int:
    result = list_targets(config)
    if result.ok:
        for descriptor in result.data:
            print(descriptor.get("name", ""))
    return _finish(console, result)


def _handle_target_info(args: Namespace, config: BuildConfig, console: Console) -> int:
    found = find_target(config, args.name)
    if not found.ok:
        return _finish(console, found)
    detail = target_detail(config, found.data)
    if detail.ok:
        print(json.dumps(detail.data, indent=2, sort_keys=True))
    return _finish(console, detail)


def _handle_launch_target(args: Namespace, config: BuildConfig, console: Console) -> int:
    if args.name:
        config.set_launch_target(args.name)
    result = resolve_launch_target(config)
    if result.ok:
        print(result.data)
    return _finish(console, result)


def _handle_should_configure(args: Namespace, settings: Settings, console: Console) -> int:
    if is_source_file(args.file, settings.source_extensions):
        return 0
    console.debug(f"{args.file} does not trigger configuration")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
