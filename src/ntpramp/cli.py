from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import Callable

from ntpramp.config import ConfigError, RunConfig
from ntpramp.loadgen import NtpProbe, Probe, RunResult, run_ramp
from ntpramp.metrics import StepResult
from ntpramp.report import format_config, format_step, format_summary, render_charts, write_csv

LOGGER = logging.getLogger("ntpramp.cli")

DEFAULT_SERVER = "pool.ntp.org"
DEFAULT_START_RATE = 1
DEFAULT_MAX_RATE = 1000
DEFAULT_INCREMENT = 1
DEFAULT_WINDOW_SEC = 1

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_INTERRUPTED = 130

InputFn = Callable[[str], str]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NTP Server Stress Test")
    parser.add_argument("--server", default=DEFAULT_SERVER, help="NTP server, host or host:port")
    parser.add_argument("--start-rate", type=int, default=DEFAULT_START_RATE)
    parser.add_argument("--max-rate", type=int, default=DEFAULT_MAX_RATE)
    parser.add_argument("--increment", type=int, default=DEFAULT_INCREMENT)
    parser.add_argument("--window", type=int, default=DEFAULT_WINDOW_SEC, help="Seconds per rate step")
    parser.add_argument("--timeout", type=float, default=5.0, help="Per-probe reply timeout (sec)")
    parser.add_argument("--interactive", action="store_true", help="Prompt for each parameter")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    parser.add_argument("--csv", type=Path, default=None, help="Also export the step series as CSV")
    parser.add_argument("--no-charts", action="store_true")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )
    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    config = RunConfig(
        server=args.server,
        start_rate=args.start_rate,
        max_rate=args.max_rate,
        increment=args.increment,
        window_sec=args.window,
    )
    if config.max_rate < config.start_rate:
        msg = f"max_rate ({config.max_rate}) must be >= start_rate ({config.start_rate})"
        raise ConfigError(msg)
    return config


def _prompt(input_fn: InputFn, prompt: str, default: str) -> str:
    value = input_fn(prompt).strip()
    return value or default


def _prompt_int(input_fn: InputFn, prompt: str, default: int, label: str) -> int:
    raw = _prompt(input_fn, prompt, str(default))
    try:
        return int(raw)
    except ValueError:
        print(f"Invalid input. Using default {label} of {default}.")
        return default


def _collect_interactive(args: argparse.Namespace, input_fn: InputFn) -> argparse.Namespace:
    args.server = _prompt(input_fn, f"Enter the NTP server (default: {args.server}): ", args.server)
    args.start_rate = _prompt_int(
        input_fn, "Enter the starting request rate (requests per second): ", args.start_rate, "start rate"
    )
    args.max_rate = _prompt_int(
        input_fn, "Enter the maximum request rate (requests per second): ", args.max_rate, "max rate"
    )
    args.increment = _prompt_int(
        input_fn, "Enter the increment rate (requests per second): ", args.increment, "increment"
    )
    args.window = _prompt_int(
        input_fn, "Enter the duration for each increment (seconds): ", args.window, "duration"
    )
    return args


def _configure_interactively(args: argparse.Namespace, input_fn: InputFn) -> RunConfig | None:
    while True:
        try:
            _collect_interactive(args, input_fn)
            config = build_config(args)
        except ConfigError as exc:
            print(f"Invalid configuration: {exc}")
            print("Let's try setting the parameters again.")
            continue
        except EOFError:
            return None
        print()
        print(format_config(config))
        if args.yes:
            return config
        try:
            proceed = _prompt(input_fn, "Do you want to proceed with these settings? (yes/no): ", "no")
        except EOFError:
            return None
        if proceed.lower() == "yes":
            return config
        print("Let's try setting the parameters again.")


async def _print_step(step: StepResult, index: int, total: int) -> None:
    print(format_step(step), flush=True)


async def execute(config: RunConfig, probe: Probe) -> RunResult:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop.set)
    except (NotImplementedError, RuntimeError):
        LOGGER.debug("SIGINT handler unavailable; interrupts will abort the run")
    try:
        return await run_ramp(config, probe, stop=stop, progress=_print_step)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def report(result: RunResult, args: argparse.Namespace) -> None:
    print(format_summary(result))
    if args.csv is not None:
        path = write_csv(result.series, args.csv)
        print(f"Step series written to {path}")
    if not args.no_charts:
        for path in render_charts(result.series, args.output_dir):
            print(f"Chart written to {path}")


def main(argv: list[str] | None = None, input_fn: InputFn = input) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    print("NTP Server Stress Test")
    if args.interactive:
        config = _configure_interactively(args, input_fn)
        if config is None:
            print("Aborted.")
            return EXIT_ABORTED
    else:
        try:
            config = build_config(args)
        except ConfigError as exc:
            parser.error(str(exc))
        print(format_config(config))

    result = asyncio.run(execute(config, NtpProbe(timeout_sec=args.timeout)))
    report(result, args)
    return EXIT_INTERRUPTED if result.cancelled else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
