#!/usr/bin/env python3
"""
covprofile: Resolve coverage run profiles from the command line and tarpaulin.toml

Common usage:
  covprofile
  covprofile --root path/to/project
  covprofile --config ci/tarpaulin.toml --exclude-files "tests/*"
  covprofile --check src/lib.rs --check src/generated/mod.rs

Prints one line per resolved profile. With `--check`, also reports whether each
path is excluded from coverage in each profile.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys

from covprofile.args import build_parser
from covprofile.config import ProfileSet, resolve_profiles
from covprofile.profile import Profile


def _parse_args(args: list[str] | None = None) -> argparse.Namespace:
    # Use the module's docstring as the description
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = build_parser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--check",
        action="append",
        default=[],
        metavar="PATH",
        help="Report whether PATH is excluded in each profile. Can be repeated",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    return parser.parse_args(args)


def _configure_logging(opts: argparse.Namespace) -> None:
    if opts.debug:
        level = logging.DEBUG
    elif opts.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def _label(profile: Profile) -> str:
    return profile.name or "(args)"


def _print_profiles(profiles: ProfileSet) -> None:
    for profile in profiles:
        config = profile.config if profile.config is not None else "-"
        print(
            f"{_label(profile)}  config={config}  manifest={profile.manifest}"
            f"  base={profile.get_base_dir()}"
        )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the covprofile CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    opts = _parse_args(args)
    _configure_logging(opts)

    if opts.version:
        try:
            version = importlib.metadata.version("covprofile")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    try:
        profiles = resolve_profiles(opts)
    except OSError as e:
        # Only an explicit --config path that can't be found gets here.
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_profiles(profiles)

    for path in opts.check:
        for profile in profiles:
            status = "excluded" if profile.exclude_path(path) else "included"
            print(f"{_label(profile)}  {path}  {status}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
