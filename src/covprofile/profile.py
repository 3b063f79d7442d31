"""
The `Profile` type: one fully-resolved run configuration.

A profile comes either from the command line or from one table of a
`tarpaulin.toml` file. File profiles are merged with the command-line profile
once, after which only the compiled exclusion-pattern cache changes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from covprofile.patterns import ExcludePattern, compile_patterns, matches_any
from covprofile.paths import StrPath, path_relative_from
from covprofile.types import CiService, OutputFile, RunType

log = logging.getLogger(__name__)

# Config file names searched for, in priority order.
CONFIG_FILENAMES = ["tarpaulin.toml", ".tarpaulin.toml"]

DEFAULT_TIMEOUT = timedelta(seconds=60)


def default_manifest() -> Path:
    """`Cargo.toml` in the current directory, canonicalized when it exists."""
    manifest = Path.cwd() / "Cargo.toml"
    try:
        return manifest.resolve(strict=True)
    except OSError:
        return manifest


def find_config_file(directory: StrPath) -> Path | None:
    """Return the first config file present in `directory`, or `None`."""
    for filename in CONFIG_FILENAMES:
        candidate = Path(directory) / filename
        if candidate.exists():
            return candidate
    return None


@dataclass
class Profile:
    """
    Settings for a single coverage run. Field defaults are the defaults for a
    config file table; command-line defaults are filled in by
    `covprofile.args.profile_from_args`.
    """

    name: str = ""
    # Location
    manifest: Path = field(default_factory=default_manifest)
    config: Path | None = None
    root: str | None = None
    # Test selection
    run_ignored: bool = False
    ignore_tests: bool = False
    ignore_panics: bool = False
    force_clean: bool = False
    verbose: bool = False
    debug: bool = False
    count: bool = False
    line_coverage: bool = True
    branch_coverage: bool = False
    # Reporting
    output_directory: Path = field(default_factory=Path.cwd)
    coveralls: str | None = None
    ci_tool: CiService | str | None = None
    report_uri: str | None = None
    forward_signals: bool = False
    # Build
    all_features: bool = False
    no_default_features: bool = False
    all: bool = False
    test_timeout: timedelta = DEFAULT_TIMEOUT
    release: bool = False
    no_run: bool = False
    locked: bool = False
    frozen: bool = False
    target_dir: Path | None = None
    offline: bool = False
    run_types: list[RunType] = field(default_factory=lambda: [RunType.TESTS])
    packages: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    excluded_files_raw: list[str] = field(default_factory=list)
    varargs: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    unstable_features: list[str] = field(default_factory=list)
    generate: list[OutputFile] = field(default_factory=list)
    # Compiled form of `excluded_files_raw`, rebuilt whenever the lengths differ.
    _excluded_files: list[ExcludePattern] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    @property
    def is_coveralls(self) -> bool:
        return self.coveralls is not None

    @property
    def compiled_patterns(self) -> list[ExcludePattern]:
        """The compiled exclusion patterns, recompiled first if stale."""
        if len(self._excluded_files) != len(self.excluded_files_raw):
            log.debug(
                "Compiling %d exclusion pattern(s) for profile %r",
                len(self.excluded_files_raw),
                self.name,
            )
            self._excluded_files[:] = compile_patterns(self.excluded_files_raw)
        return self._excluded_files

    def check_for_configs(self) -> Path | None:
        """
        Look for a config file next to this profile's project: in `root` if set,
        otherwise in the manifest's directory.
        """
        if self.root is not None:
            return find_config_file(self.root)
        return find_config_file(self.manifest.parent)

    def merge(self, other: Profile) -> Profile:
        """
        Carry the command-line settings that always apply from `other` (an
        args-derived profile) into this file-derived profile. `other` is not
        modified. Returns `self`.

        Debug and verbose can only be switched on. Manifest and root always
        come from `other`. Exclusion patterns are appended. Every other field
        keeps the value from the file.
        """
        if other.debug:
            self.debug = other.debug
            self.verbose = other.verbose
        elif other.verbose:
            self.verbose = other.verbose
        self.manifest = other.manifest
        self.root = other.root
        if other.excluded_files_raw:
            self.excluded_files_raw.extend(other.excluded_files_raw)
            self._excluded_files.clear()
        return self

    def exclude_path(self, path: StrPath) -> bool:
        """
        True if `path` matches any exclusion pattern. The path is made relative
        to `get_base_dir()` first when possible. Paths that are not valid UTF-8
        never match.
        """
        patterns = self.compiled_patterns
        if not patterns:
            return False
        text = os.fspath(self.strip_base_dir(path))
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            return False
        return matches_any(patterns, text)

    def get_base_dir(self) -> Path:
        """
        Directory that exclusion paths are relative to: `root` if set (joined
        to the current directory and canonicalized when relative), otherwise
        the current directory.
        """
        if self.root is not None:
            root = Path(self.root)
            if root.is_absolute():
                return root
            return (Path.cwd() / root).resolve()
        return Path.cwd()

    def strip_base_dir(self, path: StrPath) -> Path:
        """`path` relative to the base dir, or `path` itself if there is no relative form."""
        relative = path_relative_from(path, self.get_base_dir())
        return relative if relative is not None else Path(path)

    def is_default_output_dir(self) -> bool:
        return self.output_directory == Path.cwd()
