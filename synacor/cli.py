#!/usr/bin/env python3
"""Command-line runner: load a program image and execute it on the terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .config import RunConfig
from .ports import (
    CharacterSource,
    ChainedSource,
    LineBufferedSource,
    ScriptedSource,
    TerminalSink,
)
from .runner import run
from .vm import VirtualMachine

logger = logging.getLogger(__name__)

EXIT_HALTED = 0
EXIT_FAULTED = 1
EXIT_USAGE = 2
EXIT_STEP_LIMIT = 3
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synacor-vm", description="Run a Synacor program image"
    )
    parser.add_argument("image", help="Program image (little-endian 16-bit words)")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Stop after this many instructions (default: unlimited, or SYNACOR_MAX_STEPS)",
    )
    parser.add_argument(
        "--script",
        type=str,
        default=None,
        help="Text file replayed as input before reading from stdin",
    )
    parser.add_argument(
        "--trace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Log every executed instruction at DEBUG level",
    )
    parser.add_argument(
        "--dump",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Print the register dump to stderr when the run ends (default on)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=None,
        help="Logging level (default: WARNING, or SYNACOR_LOG_LEVEL)",
    )
    return parser


def _configure_logging(level: str, trace: bool = False) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if trace:
        logging.getLogger("synacor.runner").setLevel(logging.DEBUG)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = RunConfig.from_env().with_overrides(
            max_steps=args.max_steps,
            trace=args.trace,
            log_level=args.log_level,
            dump_state=args.dump,
        )
    except ValueError as exc:
        print(f"synacor-vm: {exc}", file=sys.stderr)
        return EXIT_USAGE
    _configure_logging(config.log_level, trace=config.trace)

    sources: List[CharacterSource] = []
    try:
        if args.script:
            sources.append(ScriptedSource.from_file(args.script))
        sources.append(LineBufferedSource(sys.stdin))
        sink = TerminalSink(sys.stdout)
        vm = VirtualMachine.from_image(
            args.image, output=sink, input=ChainedSource(*sources)
        )
    except OSError as exc:
        print(f"synacor-vm: {exc}", file=sys.stderr)
        return EXIT_USAGE

    try:
        result = run(vm, max_steps=config.max_steps, trace=config.trace)
    except KeyboardInterrupt:
        sink.flush()
        logger.warning("Interrupted at pc=%d", vm.pc)
        if config.dump_state:
            print(f"\n{vm.snapshot().format_dump()}", file=sys.stderr)
        return EXIT_INTERRUPTED

    sink.flush()
    if config.dump_state:
        print(f"\n{vm.snapshot().format_dump()}", file=sys.stderr)

    if result.limit_reached:
        return EXIT_STEP_LIMIT
    if result.fault is not None:
        return EXIT_FAULTED
    return EXIT_HALTED


if __name__ == "__main__":
    sys.exit(main())
