"""
Given a firmware descriptor (QMK/ZMK config as JSON or YAML, ZMK keymap, QMK C source or a
compiled binary), normalize it into a keyboard model with positioned keys and print it as YAML,
or print a key test results document for it.
"""

import json
import logging
import sys
from argparse import ArgumentParser, FileType, Namespace
from importlib.metadata import version

import yaml

from firmware_layout import logger
from firmware_layout.config import ParseConfig
from firmware_layout.dispatch import parse_file
from firmware_layout.session import KeyTestSession


def parse(args: Namespace, config: ParseConfig) -> None:
    """Parse the given firmware file and dump the YAML representation of the keyboard model."""
    model = parse_file(args.firmware_file, config)
    yaml.safe_dump(
        model.model_dump(mode="json", exclude_none=True),
        args.output,
        width=160,
        sort_keys=False,
        default_flow_style=None,
        allow_unicode=True,
    )


def results(args: Namespace, config: ParseConfig) -> None:
    """Parse the given firmware file and dump the results document of a test session as JSON."""
    session = KeyTestSession(parse_file(args.firmware_file, config))
    for key_id in args.tested or []:
        session.mark_tested(key_id)
    json.dump(session.results().dump(), args.output, indent=2)
    args.output.write("\n")


def dump_config(args: Namespace, config: ParseConfig) -> None:
    """Dump the currently active config, either default or parsed from args."""
    yaml.safe_dump(config.model_dump(), args.output, sort_keys=False, allow_unicode=True)


def main() -> None:
    """Parse the configuration and run the requested command."""
    parser = ArgumentParser(description=__doc__)
    parser.add_argument("-v", "--version", action="version", version=version("firmware-layout"))
    parser.add_argument("-d", "--debug", action="store_true")
    parser.add_argument(
        "-c",
        "--config",
        help="A YAML file containing settings for parsing, "
        "default can be dumped using `dump-config` command and to be modified",
        type=FileType("rt", encoding="utf-8"),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_p = subparsers.add_parser("parse", help="parse a firmware file to a YAML keyboard model on stdout")
    parse_p.add_argument(
        "firmware_file", help="Path to firmware file, e.g. info.json, *.keymap, keymap.c or *.uf2 to parse"
    )
    parse_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    results_p = subparsers.add_parser(
        "results", help="parse a firmware file and print a JSON key test results document on stdout"
    )
    results_p.add_argument("firmware_file", help="Path to firmware file to parse")
    results_p.add_argument(
        "-t",
        "--tested",
        help="A list of zero-based key ids to mark as tested in the results",
        nargs="+",
        type=int,
    )
    results_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    dump_p = subparsers.add_parser(
        "dump-config", help="dump default parse config to stdout that can be passed to -c/--config option"
    )
    dump_p.add_argument(
        "-o",
        "--output",
        help="Output to path instead of stdout",
        type=FileType("wt", encoding="utf-8"),
        default=sys.stdout,
    )

    args = parser.parse_args()

    if args.debug:
        logger.setLevel(logging.DEBUG)

    config = ParseConfig.model_validate(yaml.safe_load(args.config) or {}) if args.config else ParseConfig()

    match args.command:
        case "parse":
            parse(args, config)
        case "results":
            results(args, config)
        case "dump-config":
            dump_config(args, config)


if __name__ == "__main__":
    main()
