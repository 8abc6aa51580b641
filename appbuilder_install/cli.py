"""Command-line entry point for ``appbuilder-install``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from .config import load_settings
from .install import DEFAULT_STEPS, run_install
from .modes import list_modes
from .outcome import PreconditionError
from .pipeline import list_steps

EXIT_MISSING_NAME = 1
EXIT_FAILED = 2

TENANT_FIELDS = ("username", "password", "email", "url")

EXAMPLES = """
examples:

  $ appbuilder-install install ABv2
      - installs AppBuilder into directory ./ABv2

  $ appbuilder-install install Dev --develop
      - installs AppBuilder into directory ./Dev
      - installs all services locally

  $ appbuilder-install install sails --V1
      - installs AppBuilder v1 into directory ./sails
"""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )


def _add_install_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", nargs="?", help="Directory to install the AppBuilder runtime into")
    parser.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    parser.add_argument("--develop", "--Develop", action="store_true", help="Set up a programming environment")
    parser.add_argument("--V1", dest="V1", action="store_true", help="Set up the v1 AppBuilder environment")
    parser.add_argument("--v1", dest="v1", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--prod2021", action="store_true", help="Set up the 2021 production environment")
    parser.add_argument("--travisCI", dest="travis_ci", action="store_true", help="Running inside travisCI")
    parser.add_argument("--verbose", action="store_true", help="Display more logs during install")
    parser.add_argument("--platform", choices=["docker", "podman"])
    parser.add_argument("--runtime", help="Branch or commit of the runtime repository to check out")
    parser.add_argument("--stack", help="Stack name for the container services")
    parser.add_argument("--port", type=int, help="HTTP port the runtime listens on")
    parser.add_argument("--db-password", dest="db_password")
    for field_name in TENANT_FIELDS:
        parser.add_argument(f"--tenant.{field_name}", dest=f"tenant_{field_name}", help=f"Default tenant admin {field_name}")
    parser.add_argument("--option", action="append", help="Extra run option as key=value")


def _options_from_args(args: argparse.Namespace) -> Dict[str, object]:
    options: Dict[str, object] = {
        "name": args.name,
        "_": list(args.extra or []),
        "develop": args.develop,
        "V1": args.V1,
        "v1": args.v1,
        "prod2021": args.prod2021,
        "travis_ci": args.travis_ci,
        "verbose": args.verbose,
    }
    for key in ("platform", "runtime", "stack", "port", "db_password"):
        value = getattr(args, key)
        if value is not None:
            options[key] = value

    tenant = {
        field_name: getattr(args, f"tenant_{field_name}")
        for field_name in TENANT_FIELDS
        if getattr(args, f"tenant_{field_name}") is not None
    }
    if tenant:
        options["tenant"] = tenant

    options.update(_parse_key_value_args(args.option or []))
    return options


def _parse_key_value_args(values: List[str]) -> Dict[str, object]:
    options: Dict[str, object] = {}
    for entry in values:
        if "=" not in entry:
            raise ValueError(f"Option must be key=value (got '{entry}')")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Option key cannot be empty.")
        options[key] = raw_value.strip()
    return options


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="appbuilder-install", description="Install the AppBuilder runtime")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser(
        "install",
        help="Perform a new installation of the AB Runtime",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_install_arguments(install)

    steps_cmd = subparsers.add_parser("steps", help="Inspect the install steps")
    steps_subparsers = steps_cmd.add_subparsers(dest="steps_command", required=True)
    steps_subparsers.add_parser("list", help="List the default install steps in order")

    modes_cmd = subparsers.add_parser("modes", help="Inspect alternate install modes")
    modes_subparsers = modes_cmd.add_subparsers(dest="modes_command", required=True)
    modes_subparsers.add_parser("list", help="List install modes in precedence order")

    args = parser.parse_args(argv)

    if args.command == "steps":
        print(json.dumps(list_steps(DEFAULT_STEPS), indent=2))
        return 0

    if args.command == "modes":
        print(json.dumps([spec.to_dict() for spec in list_modes()], indent=2))
        return 0

    if args.command == "install":
        _configure_logging(args.verbose)
        if not args.name:
            print("missing required param: [name]", file=sys.stderr)
            install.print_help(sys.stderr)
            return EXIT_MISSING_NAME

        try:
            options = _options_from_args(args)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return EXIT_FAILED

        try:
            result = run_install(options, settings=load_settings())
        except PreconditionError as exc:
            print(str(exc), file=sys.stderr)
            return EXIT_MISSING_NAME

        print(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            print(str(result.error), file=sys.stderr)
            return EXIT_FAILED
        return 0

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
