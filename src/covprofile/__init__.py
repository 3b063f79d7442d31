"""
Resolution of coverage run profiles from command-line options and
`tarpaulin.toml` config files.

Usage::

    from covprofile import build_parser, resolve_profiles

    args = build_parser().parse_args(["--exclude-files", "tests/*"])
    for profile in resolve_profiles(args):
        if not profile.exclude_path("src/lib.rs"):
            ...
"""

from covprofile.args import build_parser, profile_from_args
from covprofile.config import (
    ProfileSet,
    load_config_file,
    merge_profiles,
    parse_config_toml,
    resolve_profiles,
)
from covprofile.errors import ConfigError, ConfigParseError, EmptyConfigError, InvalidValueError
from covprofile.paths import path_relative_from
from covprofile.profile import Profile
from covprofile.types import CiService, OutputFile, RunType

__all__ = [
    "CiService",
    "ConfigError",
    "ConfigParseError",
    "EmptyConfigError",
    "InvalidValueError",
    "OutputFile",
    "Profile",
    "ProfileSet",
    "RunType",
    "build_parser",
    "load_config_file",
    "merge_profiles",
    "parse_config_toml",
    "path_relative_from",
    "profile_from_args",
    "resolve_profiles",
]
