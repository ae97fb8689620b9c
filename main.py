#!/usr/bin/env python3
"""btern Command Line Interface.

Run encoded balanced-ternary programs on the btern CPU simulator.

Usage:
    python main.py --example sum_1_to_10
    python main.py --program build/fib.tw --trace
    python main.py --example fibonacci --output build/fib.bin
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from btern import TernaryCPU, TernaryError
from btern.cpu import DEFAULT_MAX_CYCLES
from btern.program_io import FORMATS, load_program_file, save_program
from btern.programs import example_names, get_example
from btern.state import DEFAULT_MEMORY_SIZE, DEFAULT_STACK_SIZE


def main():
    parser = argparse.ArgumentParser(
        description="btern: Balanced-Ternary Reference Virtual Machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
    # Run a bundled example
    python main.py --example sum_1_to_10

    # Run an encoded program with full trace output
    python main.py --program fib.tw --trace

    # Encode an example to a trit-stream file instead of running it
    python main.py --example fibonacci --output fib.bin

Bundled examples: {", ".join(example_names())}
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--program", "-p",
        type=str,
        help="Path to an encoded program (.tw word records or .bin trit stream)"
    )
    source.add_argument(
        "--example", "-e",
        choices=example_names(),
        help="Run a bundled example program"
    )
    parser.add_argument(
        "--format", "-f",
        choices=FORMATS,
        help="Program file format. Default: inferred from the file suffix"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        help="Encode the selected example to this file instead of running it"
    )
    parser.add_argument(
        "--base",
        type=int,
        default=0,
        help="Load address, also the initial PC. Default: 0"
    )
    parser.add_argument(
        "--memory-size",
        type=int,
        default=DEFAULT_MEMORY_SIZE,
        help=f"Memory capacity in Words. Default: {DEFAULT_MEMORY_SIZE}"
    )
    parser.add_argument(
        "--stack-size",
        type=int,
        default=DEFAULT_STACK_SIZE,
        help=f"Call stack capacity. Default: {DEFAULT_STACK_SIZE}"
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help=f"Maximum execution cycles (safety limit). Default: {DEFAULT_MAX_CYCLES}"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (non-zero final registers only)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log engine activity (-v info, -vv debug per cycle)"
    )

    args = parser.parse_args()

    if args.output and not args.example:
        parser.error("--output requires --example")

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Load program
    try:
        if args.example:
            example = get_example(args.example)
            words = example.words()
            if args.output:
                path = save_program(args.output, words, args.format)
                print(f"Encoded {args.example} ({len(words)} words) to {path}")
                return 0
            if not args.quiet:
                print(f"Loading example: {example.name} - {example.description}")
        else:
            program_path = Path(args.program)
            if not program_path.exists():
                print(f"Error: Program file not found: {args.program}")
                return 1
            words = load_program_file(program_path, args.format)
            if not args.quiet:
                print(f"Loading program: {args.program} ({len(words)} words)")
    except (TernaryError, ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    cpu = TernaryCPU(
        memory_size=args.memory_size,
        stack_size=args.stack_size,
        max_cycles=args.max_cycles
    )
    try:
        cpu.load_program(words, base=args.base)
    except (TernaryError, ValueError) as e:
        print(f"Error loading program: {e}")
        return 1

    # Run
    if not args.quiet:
        print("-" * 60)
        print("Executing...")
        print("-" * 60)

    try:
        cpu.run()
    except RuntimeError as e:
        print(f"Execution error: {e}")

    # Output
    if args.trace:
        cpu.print_trace()
    elif not args.quiet:
        print()
        summary = cpu.get_summary()
        print(f"Cycles: {summary['cycles']}")
        print(f"Halted: {summary['halted']}")
        print(f"PC: {summary['pc']}")
        nonzero = {k: v for k, v in summary["registers"].items() if v != 0}
        print(f"Registers: {nonzero}")
        if summary["fault"]:
            print(f"Fault: {summary['fault']}")
    else:
        regs = cpu.dump_registers()
        for reg, value in regs.items():
            if value != 0:
                print(f"{reg}={value}")

    # Exit code: 0 only for a clean HALT
    return 0 if cpu.is_halted() and cpu.get_fault() is None else 1


if __name__ == "__main__":
    sys.exit(main())
