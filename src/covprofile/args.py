"""
Command-line options and the profile built from them.

`profile_from_args` accepts any `argparse.Namespace`. Options missing from the
namespace are treated as not given, so callers can use their own parser.
"""

from __future__ import annotations

import argparse
from datetime import timedelta
from pathlib import Path
from typing import Any

from covprofile.profile import Profile
from covprofile.types import OutputFile, RunType, parse_ci_server

# Target-selection flags and the run type each one adds.
_TARGET_FLAGS: dict[str, RunType] = {
    "lib": RunType.LIB,
    "bins": RunType.BINS,
    "examples": RunType.EXAMPLES,
    "doc": RunType.DOCTESTS,
    "benches": RunType.BENCHMARKS,
    "tests": RunType.TESTS,
    "all_targets": RunType.ALL_TARGETS,
}


def add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    """Add every option that feeds into a `Profile` to `parser`."""
    location = parser.add_argument_group("project location")
    location.add_argument(
        "--manifest-path",
        type=str,
        metavar="PATH",
        help="Path to Cargo.toml (default: Cargo.toml in the current or --root directory)",
    )
    location.add_argument(
        "-r", "--root", type=str, metavar="DIR", help="Calculates relative paths to root directory"
    )
    location.add_argument(
        "--config", type=str, metavar="FILE", help="Path to a toml file specifying a list of options"
    )
    location.add_argument(
        "--ignore-config",
        action="store_true",
        help="Ignore any project config files",
    )
    location.add_argument(
        "--target-dir", type=str, metavar="DIR", help="Directory for all generated artifacts"
    )

    coverage = parser.add_argument_group("coverage")
    coverage.add_argument(
        "-l", "--line", action="store_true", help="Line coverage (on by default unless --branch)"
    )
    coverage.add_argument(
        "-b", "--branch", action="store_true", help="Branch coverage (on by default unless --line)"
    )
    coverage.add_argument("--count", action="store_true", help="Counts the number of hits")
    coverage.add_argument(
        "-i", "--ignored", action="store_true", help="Run ignored tests as well"
    )
    coverage.add_argument(
        "--ignore-tests", action="store_true", help="Ignore lines of test functions"
    )
    coverage.add_argument(
        "--ignore-panics", action="store_true", help="Ignore panic macros in tests"
    )
    coverage.add_argument(
        "--exclude-files",
        action="extend",
        nargs="+",
        metavar="FILE",
        help="Exclude given files from coverage results; `*` is a wildcard. Can be repeated",
    )
    coverage.add_argument(
        "-t",
        "--timeout",
        type=int,
        metavar="SECONDS",
        help="Integer for the maximum time in seconds without response from test "
        "before timeout (default: 60)",
    )
    coverage.add_argument(
        "-f",
        "--forward",
        action="store_true",
        help="Forward unexpected signals to the test executables",
    )

    targets = parser.add_argument_group("test targets")
    targets.add_argument(
        "--run-types",
        type=RunType,
        action="extend",
        nargs="+",
        metavar="TYPE",
        help="Types of tests to collect coverage for ("
        + ", ".join(t.value for t in RunType)
        + ")",
    )
    targets.add_argument("--lib", action="store_true", help="Test only this package's library")
    targets.add_argument("--bins", action="store_true", help="Test all binaries")
    targets.add_argument("--examples", action="store_true", help="Test all examples")
    targets.add_argument("--doc", action="store_true", help="Test only this library's documentation")
    targets.add_argument("--benches", action="store_true", help="Test all benches")
    targets.add_argument("--tests", action="store_true", help="Test all tests")
    targets.add_argument(
        "--all-targets", action="store_true", help="Test all targets (excluding doctests)"
    )

    build = parser.add_argument_group("build")
    build.add_argument("--force-clean", action="store_true", help="Force a clean before the build")
    build.add_argument(
        "-p", "--packages", action="extend", nargs="+", metavar="PACKAGE", help="Packages to build"
    )
    build.add_argument(
        "-e",
        "--exclude",
        action="extend",
        nargs="+",
        metavar="PACKAGE",
        help="Packages to exclude from testing",
    )
    build.add_argument("--all", action="store_true", help="Alias for --workspace")
    build.add_argument("--workspace", action="store_true", help="Test all packages in the workspace")
    build.add_argument(
        "--features", action="extend", nargs="+", metavar="FEATURE", help="Features to build"
    )
    build.add_argument("--all-features", action="store_true", help="Build all available features")
    build.add_argument(
        "--no-default-features", action="store_true", help="Do not include default features"
    )
    build.add_argument("--release", action="store_true", help="Build in release mode")
    build.add_argument(
        "--no-run", action="store_true", help="Compile tests but don't run coverage"
    )
    build.add_argument("--locked", action="store_true", help="Do not update Cargo.lock")
    build.add_argument(
        "--frozen", action="store_true", help="Do not update Cargo.lock or any caches"
    )
    build.add_argument("--offline", action="store_true", help="Run without accessing the network")
    build.add_argument(
        "-Z",
        dest="Z",
        action="extend",
        nargs="+",
        metavar="FEATURE",
        help="List of unstable nightly only flags",
    )

    report = parser.add_argument_group("reporting")
    report.add_argument(
        "-o",
        "--out",
        type=OutputFile,
        action="extend",
        nargs="+",
        metavar="FORMAT",
        help="Output formats ("
        + ", ".join(f.value for f in OutputFile)
        + ")",
    )
    report.add_argument(
        "--output-dir", type=str, metavar="DIR", help="Directory to write output files"
    )
    report.add_argument("--coveralls", type=str, metavar="KEY", help="Coveralls key")
    report.add_argument(
        "--ciserver", type=str, metavar="SERVICE", help="Name of service, supported services are: "
        "travis-ci, travis-pro, circle-ci, semaphore, jenkins and codeship"
    )
    report.add_argument(
        "--report-uri", type=str, metavar="URI", help="URI to send report to, only used if "
        "the option --coveralls is used"
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "-v", "--verbose", action="store_true", help="Show extra output"
    )
    output.add_argument(
        "--debug", action="store_true", help="Show debug output (implies --verbose)"
    )

    parser.add_argument(
        "args",
        nargs="*",
        default=[],
        metavar="ARGS",
        help="Arguments to be passed to the test executables, after `--`",
    )


def build_parser(**kwargs: Any) -> argparse.ArgumentParser:
    """An `ArgumentParser` with all profile options. `kwargs` go to the parser."""
    parser = argparse.ArgumentParser(**kwargs)
    add_profile_arguments(parser)
    return parser


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


def _value(args: argparse.Namespace, name: str) -> Any:
    return getattr(args, name, None)


def _list(args: argparse.Namespace, name: str) -> list[Any]:
    return list(getattr(args, name, None) or [])


def get_manifest(args: argparse.Namespace) -> Path:
    """`--manifest-path`, else `Cargo.toml` in the current (or `--root`) directory."""
    explicit = _value(args, "manifest_path")
    if explicit:
        return Path(explicit)
    manifest = Path.cwd()
    root = _value(args, "root")
    if root:
        manifest = manifest / root
    manifest = manifest / "Cargo.toml"
    try:
        return manifest.resolve(strict=True)
    except OSError:
        return manifest


def get_line_cov(args: argparse.Namespace) -> bool:
    line = _flag(args, "line")
    return line or not (line or _flag(args, "branch"))


def get_branch_cov(args: argparse.Namespace) -> bool:
    branch = _flag(args, "branch")
    return branch or not (branch or _flag(args, "line"))


def get_run_types(args: argparse.Namespace) -> list[RunType]:
    """`--run-types` plus any target flags, de-duplicated; `[Tests]` if none."""
    run_types: list[RunType] = []
    requested = _list(args, "run_types") + [
        run_type for flag, run_type in _TARGET_FLAGS.items() if _flag(args, flag)
    ]
    for run_type in requested:
        run_type = RunType(run_type)
        if run_type not in run_types:
            run_types.append(run_type)
    return run_types or [RunType.TESTS]


def get_timeout(args: argparse.Namespace) -> timedelta:
    seconds = _value(args, "timeout")
    return timedelta(seconds=60 if seconds is None else int(seconds))


def get_output_directory(args: argparse.Namespace) -> Path:
    output_dir = _value(args, "output_dir")
    return Path(output_dir) if output_dir else Path.cwd()


def get_target_dir(args: argparse.Namespace) -> Path | None:
    target_dir = _value(args, "target_dir")
    if not target_dir:
        return None
    path = Path(target_dir)
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def profile_from_args(args: argparse.Namespace) -> Profile:
    """Build the command-line `Profile`, filling defaults for anything not given."""
    debug = _flag(args, "debug")
    ci_server = _value(args, "ciserver")

    return Profile(
        name="",
        manifest=get_manifest(args),
        config=None,
        root=_value(args, "root"),
        run_types=get_run_types(args),
        run_ignored=_flag(args, "ignored"),
        ignore_tests=_flag(args, "ignore_tests"),
        ignore_panics=_flag(args, "ignore_panics"),
        force_clean=_flag(args, "force_clean"),
        verbose=_flag(args, "verbose") or debug,
        debug=debug,
        count=_flag(args, "count"),
        line_coverage=get_line_cov(args),
        branch_coverage=get_branch_cov(args),
        generate=[OutputFile(out) for out in _list(args, "out")],
        output_directory=get_output_directory(args),
        coveralls=_value(args, "coveralls"),
        ci_tool=parse_ci_server(ci_server) if ci_server else None,
        report_uri=_value(args, "report_uri"),
        forward_signals=_flag(args, "forward"),
        all_features=_flag(args, "all_features"),
        no_default_features=_flag(args, "no_default_features"),
        features=_list(args, "features"),
        unstable_features=_list(args, "Z"),
        all=_flag(args, "all") or _flag(args, "workspace"),
        packages=_list(args, "packages"),
        exclude=_list(args, "exclude"),
        excluded_files_raw=_list(args, "exclude_files"),
        varargs=_list(args, "args"),
        test_timeout=get_timeout(args),
        release=_flag(args, "release"),
        no_run=_flag(args, "no_run"),
        locked=_flag(args, "locked"),
        frozen=_flag(args, "frozen"),
        target_dir=get_target_dir(args),
        offline=_flag(args, "offline"),
    )
