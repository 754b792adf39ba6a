"""
Command-line interface for the CC remapper.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from .config import PortConfig, load_any
from .devices import PortNotFoundError, list_midi_ports, list_output_ports, open_transport
from .dispatcher import create_dispatcher
from .mapfile import parse_map_line
from .mapping import MappingTable
from .messages import DestinationType
from .runner import StopFlag, run_stream

logger = logging.getLogger(__name__)

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


class AppendMapping(argparse.Action):
    """
    Collect -f files and mapping options in command-line order.

    Later mappings for the same source override earlier ones, so the order
    in which files and options are given matters.
    """

    def __init__(self, option_strings, dest, dest_type: DestinationType | None = None, **kwargs):
        self.dest_type = dest_type
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        items = list(getattr(namespace, self.dest) or [])
        if self.dest_type is None:
            items.append(Path(values))
        else:
            try:
                items.append(parse_map_line(values, self.dest_type))
            except ValueError as e:
                parser.error(f"{option_string}: {e}")
        setattr(namespace, self.dest, items)


def build_table(sources: list) -> tuple[MappingTable, PortConfig]:
    """
    Apply files and mapping options in order.

    Returns:
        The mapping table and the port settings found in config files.
    """
    table = MappingTable()
    ports = PortConfig()
    for item in sources:
        if isinstance(item, Path):
            print(f"Reading file {item}")
            config = load_any(item)
            ports = ports.merge(config.ports)
            for mapping in config.mappings:
                table.apply(mapping)
        else:
            table.apply(item)
    return table, ports


def load_table(args: argparse.Namespace) -> tuple[MappingTable, PortConfig] | None:
    """Build the table, printing configuration errors instead of raising."""
    try:
        return build_table(args.sources)
    except OSError as e:
        print(f"Error: cannot open file {e.filename}: {e.strerror}", file=sys.stderr)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Error: invalid mapping, aborting", file=sys.stderr)
    return None


def cmd_run(args: argparse.Namespace) -> int:
    """Run the remapper."""
    loaded = load_table(args)
    if loaded is None:
        return 1
    table, ports = loaded

    ports = ports.merge(PortConfig(
        input=args.input,
        output=args.output,
        virtual=args.virtual,
        raw=args.raw,
    ))

    try:
        transport = open_transport(ports)
    except PortNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Available input ports:")
        for port in list_midi_ports():
            print(f"  - {port}")
        print("Available output ports:")
        for port in list_output_ports():
            print(f"  - {port}")
        return 1
    except OSError as e:
        print(f"Error: problem opening MIDI device: {e}", file=sys.stderr)
        return 1

    dispatcher = create_dispatcher(table)
    stop = StopFlag()
    stop.install()

    print(f"Remapping: {transport}")
    print("-" * 60)
    print("Press Ctrl+C to stop")
    print("-" * 60)

    try:
        stats = run_stream(transport, transport, dispatcher, stop)
    except OSError as e:
        logger.error("Problem with MIDI transport: %s", e)
        return 1
    finally:
        transport.close()

    print()
    print(stats)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Validate the configuration and print the active mappings."""
    loaded = load_table(args)
    if loaded is None:
        return 1
    table, _ports = loaded

    mappings = list(table.describe())
    if not mappings:
        print("No mappings: all MIDI passes through unchanged.")
    else:
        print("Active mappings:")
        print()
        for label, entry in mappings:
            print(f"  {label:<20} -> {entry}")
    print()

    if table.warnings:
        print(f"{len(table.warnings)} warning(s):")
        for warning in table.warnings:
            print(f"  {warning}")
        print()

    return 0


def cmd_list_ports(args: argparse.Namespace) -> int:
    """List available MIDI ports."""
    inputs = list_midi_ports()
    outputs = list_output_ports()

    if not inputs and not outputs:
        print("No MIDI ports found.")
        return 0

    print("Available MIDI input ports:")
    print()
    for i, port in enumerate(inputs, 1):
        print(f"  [{i}] {port}")
    print()
    print("Available MIDI output ports:")
    print()
    for i, port in enumerate(outputs, 1):
        print(f"  [{i}] {port}")
    print()

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="midi-ccmap",
        description="Remap MIDI control changes, aftertouch and pitch bend to CC, NRPN, RPN, pitch bend or aftertouch",
        epilog=(
            "Mappings are comma separated, e.g. --nrpn 1,2 or --cc 7,8,-64,191. "
            "SRC is a controller number (0 to 127), AT or PB. NUM is 0 to 127 for CC and "
            "0 to 16383 for RPN/NRPN. An optional output range FROM,TO may follow; pitch "
            "bend ranges are signed (-8192 to 8191). Numbers are decimal or hex with 0x prefix."
        ),
    )
    parser.set_defaults(sources=[])
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Verbose output (can be given twice)",
    )
    parser.add_argument(
        "-f", "--file",
        dest="sources",
        action=AppendMapping,
        metavar="FILE",
        help="Read mappings from a map file or YAML config",
    )
    for flag, dest_type, metavar in (
        ("--nrpn", DestinationType.NRPN, "SRC,NUM"),
        ("--rpn", DestinationType.RPN, "SRC,NUM"),
        ("--cc", DestinationType.CC, "SRC,NUM"),
        ("--pb", DestinationType.PITCH_BEND, "SRC"),
        ("--at", DestinationType.AFTERTOUCH, "SRC"),
    ):
        parser.add_argument(
            flag,
            dest="sources",
            action=AppendMapping,
            dest_type=dest_type,
            metavar=metavar,
            help=f"Map SRC to {dest_type}, optionally followed by an output range FROM,TO",
        )

    ports = parser.add_argument_group("ports")
    ports.add_argument("-i", "--input", help="Input port (substring of the port name)")
    ports.add_argument("-o", "--output", help="Output port (substring of the port name)")
    ports.add_argument("--virtual", metavar="NAME", help="Open virtual ports with this name")
    ports.add_argument("--raw", metavar="DEVICE", help="Use a raw MIDI device file, e.g. /dev/snd/midiC1D0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command (default)
    run_parser = subparsers.add_parser("run", help="Run the remapper")
    run_parser.set_defaults(func=cmd_run)

    # check command
    check_parser = subparsers.add_parser("check", help="Validate mappings and print them")
    check_parser.set_defaults(func=cmd_check)

    # list-ports command
    list_parser = subparsers.add_parser("list-ports", help="List MIDI ports")
    list_parser.set_defaults(func=cmd_list_ports)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Default to 'run' if no command specified
    if args.command is None:
        args.func = cmd_run

    logging.basicConfig(
        level=LOG_LEVELS[min(args.verbose, len(LOG_LEVELS) - 1)],
        format="%(levelname)s: %(message)s",
    )

    # Ensure unbuffered output
    sys.stdout.reconfigure(line_buffering=True)

    sys.exit(args.func(args))
