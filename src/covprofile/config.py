"""
TOML-based profile loading and resolution.

A config file (`tarpaulin.toml` or `.tarpaulin.toml`) holds one table per named
profile. Each file profile is merged with the profile built from command-line
arguments; if there is no usable file, the args profile is used on its own.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from covprofile.args import profile_from_args
from covprofile.durations import parse_duration
from covprofile.errors import ConfigError, ConfigParseError, EmptyConfigError, InvalidValueError
from covprofile.profile import Profile
from covprofile.types import OutputFile, RunType, parse_ci_server

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

log = logging.getLogger(__name__)


# Mapping from TOML keys to `Profile` field names
_KEY_TO_FIELD: dict[str, str] = {
    "manifest-path": "manifest",
    "config": "config",
    "root": "root",
    "ignored": "run_ignored",
    "ignore-tests": "ignore_tests",
    "ignore-panics": "ignore_panics",
    "force-clean": "force_clean",
    "verbose": "verbose",
    "debug": "debug",
    "count": "count",
    "line": "line_coverage",
    "branch": "branch_coverage",
    "output-dir": "output_directory",
    "coveralls": "coveralls",
    "ciserver": "ci_tool",
    "report-uri": "report_uri",
    "forward": "forward_signals",
    "all-features": "all_features",
    "no-default-features": "no_default_features",
    "all": "all",
    "workspace": "all",
    "timeout": "test_timeout",
    "release": "release",
    "no-run": "no_run",
    "locked": "locked",
    "frozen": "frozen",
    "target-dir": "target_dir",
    "offline": "offline",
    "run-types": "run_types",
    "packages": "packages",
    "exclude": "exclude",
    "exclude-files": "excluded_files_raw",
    "args": "varargs",
    "features": "features",
    "Z": "unstable_features",
    "out": "generate",
}


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigParseError(f"expected a boolean, got {value!r}")
    return value


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigParseError(f"expected a string, got {value!r}")
    return value


def _as_path(value: Any) -> Path:
    return Path(_as_str(value))


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ConfigParseError(f"expected an array of strings, got {value!r}")
    return [_as_str(item) for item in cast(list[Any], value)]


def _as_run_types(value: Any) -> list[RunType]:
    try:
        return [RunType(item) for item in _as_str_list(value)]
    except ValueError as e:
        raise InvalidValueError(str(e)) from e


def _as_outputs(value: Any) -> list[OutputFile]:
    try:
        return [OutputFile(item) for item in _as_str_list(value)]
    except ValueError as e:
        raise InvalidValueError(str(e)) from e


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "manifest": _as_path,
    "config": _as_path,
    "root": _as_str,
    "output_directory": _as_path,
    "coveralls": _as_str,
    "ci_tool": lambda value: parse_ci_server(_as_str(value)),
    "report_uri": _as_str,
    "test_timeout": lambda value: parse_duration(_as_str(value)),
    "target_dir": _as_path,
    "run_types": _as_run_types,
    "packages": _as_str_list,
    "exclude": _as_str_list,
    "excluded_files_raw": _as_str_list,
    "varargs": _as_str_list,
    "features": _as_str_list,
    "unstable_features": _as_str_list,
    "generate": _as_outputs,
}


def _parse_profile(name: str, table: dict[str, Any]) -> Profile:
    """Convert one TOML table into a `Profile` named `name`."""
    mapped: dict[str, Any] = {}
    for key, value in table.items():
        if key == "name":
            continue  # Always taken from the table key
        field_name = _KEY_TO_FIELD.get(key)
        if field_name is None:
            log.warning("Ignoring unrecognized config key %r in profile %r", key, name)
            continue
        convert = _CONVERTERS.get(field_name, _as_bool)
        try:
            mapped[field_name] = convert(value)
        except ConfigParseError as e:
            raise type(e)(f"[{name}] {key}: {e}") from e

    return Profile(name=name, **mapped)


def parse_config_toml(buffer: bytes) -> list[Profile]:
    """
    Parse a config file's bytes into one `Profile` per top-level table, in
    document order. Each profile is named after its table.

    Raises `ConfigParseError` for invalid TOML or badly-typed values, and
    `EmptyConfigError` when there are no tables.
    """
    try:
        data = tomllib.loads(buffer.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        log.error("Invalid config file %s", e)
        raise ConfigParseError(str(e)) from e

    result: list[Profile] = []
    for name, table in data.items():
        if not isinstance(table, dict):
            raise ConfigParseError(f"[{name}] expected a table of settings, got {table!r}")
        result.append(_parse_profile(name, cast(dict[str, Any], table)))

    if not result:
        raise EmptyConfigError("No config tables")
    return result


def load_config_file(path: Path) -> list[Profile]:
    """
    Read and parse the config file at `path`, recording `path` as each
    profile's `config`. IO failures propagate as `OSError`.
    """
    profiles = parse_config_toml(path.read_bytes())
    for profile in profiles:
        profile.config = path
    log.info("Loaded %d profile(s) from %s", len(profiles), path)
    return profiles


def load_profiles_or_none(path: Path) -> list[Profile] | None:
    """Like `load_config_file`, but logs and returns `None` on any failure."""
    try:
        return load_config_file(path)
    except (OSError, ConfigError) as e:
        log.warning("Could not load config file %s: %s", path, e)
        return None


@dataclass
class ProfileSet:
    """The non-empty, ordered list of profiles produced by one resolution."""

    profiles: list[Profile]

    def __post_init__(self) -> None:
        if not self.profiles:
            raise ValueError("ProfileSet requires at least one profile")

    def __len__(self) -> int:
        return len(self.profiles)

    def __iter__(self) -> Iterator[Profile]:
        return iter(self.profiles)

    def __getitem__(self, index: int) -> Profile:
        return self.profiles[index]

    @property
    def names(self) -> list[str]:
        return [profile.name for profile in self.profiles]

    def get(self, name: str) -> Profile | None:
        """The first profile called `name`, if any."""
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None


def merge_profiles(file_profiles: Sequence[Profile] | None, args_profile: Profile) -> ProfileSet:
    """
    Merge `args_profile` into every file profile. `file_profiles` is `None` when
    the file couldn't be loaded, in which case the args profile is used alone.
    """
    if file_profiles is None:
        log.warning("Failed to deserialize config file, falling back to provided args")
        return ProfileSet([args_profile])

    merged = [profile.merge(args_profile) for profile in file_profiles]
    if not merged:
        return ProfileSet([args_profile])
    return ProfileSet(merged)


def resolve_config_path(raw: str) -> Path:
    """
    Resolve an explicitly requested config path. Relative paths are joined to
    the current directory and must exist (`FileNotFoundError` otherwise).
    """
    path = Path(raw)
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve(strict=True)
    return path


def resolve_profiles(args: argparse.Namespace) -> ProfileSet:
    """
    Build the final profiles for parsed command-line `args`.

    `--ignore-config` skips config files. `--config` loads the given file.
    Otherwise a config file is looked up next to the project. Unusable config
    files fall back to the args profile; only a missing relative `--config`
    path raises.
    """
    log.info("Creating config")
    args_profile = profile_from_args(args)

    if getattr(args, "ignore_config", False):
        return ProfileSet([args_profile])

    explicit = getattr(args, "config", None)
    if explicit:
        path = resolve_config_path(explicit)
    else:
        found = args_profile.check_for_configs()
        if found is None:
            return ProfileSet([args_profile])
        log.info("Found config file %s", found)
        path = found

    return merge_profiles(load_profiles_or_none(path), args_profile)
