from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import _resolve_config_file, _resolve_env_file, doctor


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Configuration utilities for read-more-locator.")
    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Validate configuration sources.")
    paths_parser = subparsers.add_parser("paths", help="Show which configuration files are read.")
    for sub in (doctor_parser, paths_parser):
        sub.add_argument("--env-file", type=Path, help="Path to the .env file to read.")
        sub.add_argument(
            "--config-file", type=Path, help="Path to the user config file (config.toml)."
        )

    args = parser.parse_args(argv)
    if args.command == "doctor":
        success = doctor(env_file=args.env_file, config_file=args.config_file)
        return 0 if success else 1
    if args.command == "paths":
        for label, path in (
            ("env file", _resolve_env_file(args.env_file)),
            ("config file", _resolve_config_file(args.config_file)),
        ):
            state = "found" if path.is_file() else "missing"
            print(f"{label}: {path} ({state})", file=sys.stdout)
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
