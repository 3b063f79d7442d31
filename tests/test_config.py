"""Tests for config file parsing, loading and profile resolution."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import pytest

from covprofile.args import build_parser, profile_from_args
from covprofile.config import (
    ProfileSet,
    load_config_file,
    load_profiles_or_none,
    merge_profiles,
    parse_config_toml,
    resolve_profiles,
)
from covprofile.errors import ConfigParseError, EmptyConfigError, InvalidValueError
from covprofile.profile import Profile
from covprofile.types import CiService, OutputFile, RunType


def test_config_toml() -> None:
    toml = b"""[global]
    ignored= true
    coveralls= "hello"

    [other]
    run-types = ["Doctests", "Tests"]
    """
    configs = parse_config_toml(toml)
    assert len(configs) == 2
    for c in configs:
        if c.name == "global":
            assert c.run_ignored is True
            assert c.coveralls == "hello"
        elif c.name == "other":
            assert c.run_types == [RunType.DOCTESTS, RunType.TESTS]
        else:
            pytest.fail(f"Unexpected name {c.name}")


def test_profiles_keep_document_order() -> None:
    configs = parse_config_toml(b"[zeta]\n[alpha]\n[mid]\n")
    assert [c.name for c in configs] == ["zeta", "alpha", "mid"]


def test_table_key_overrides_name() -> None:
    configs = parse_config_toml(b'[real]\nname = "fake"\n')
    assert configs[0].name == "real"


def test_unset_keys_use_defaults() -> None:
    (config,) = parse_config_toml(b"[only]\ncount = true\n")
    assert config.count
    assert config.line_coverage
    assert not config.branch_coverage
    assert config.run_types == [RunType.TESTS]
    assert config.test_timeout == timedelta(seconds=60)
    assert config.excluded_files_raw == []
    assert config.config is None


def test_excluded_merge() -> None:
    toml = b"""[a]
    exclude-files = ["target/*"]
    [b]
    exclude-files = ["foo.rs"]
    """
    configs = parse_config_toml(toml)
    config = configs.pop(0)
    config.merge(configs[0])
    assert "target/*" in config.excluded_files_raw
    assert "foo.rs" in config.excluded_files_raw
    assert len(config.excluded_files_raw) == 2
    assert len(configs[0].excluded_files_raw) == 1


def test_all_toml_options() -> None:
    toml = b"""[all]
    debug = true
    verbose = true
    ignore-panics = true
    ignore-tests = true
    count = true
    ignored = true
    force-clean = true
    line = false
    branch = true
    forward = true
    coveralls = "hello"
    report-uri = "http://hello.com"
    no-default-features = true
    features = ["a"]
    all-features = true
    workspace = true
    packages = ["pack_1"]
    exclude = ["pack_2"]
    exclude-files = ["fuzz/*"]
    timeout = "5s"
    release = true
    no-run = true
    locked = true
    frozen = true
    target-dir = "/tmp"
    output-dir = "/tmp/reports"
    offline = true
    Z = ["something-nightly"]
    out = ["Html"]
    run-types = ["Doctests"]
    root = "/home/rust"
    manifest-path = "/home/rust/foo/Cargo.toml"
    config = "/home/rust/other.toml"
    ciserver = "travis-ci"
    args = ["--nocapture"]
    """
    configs = parse_config_toml(toml)
    assert len(configs) == 1
    config = configs[0]
    assert config.name == "all"
    assert config.debug
    assert config.verbose
    assert config.ignore_panics
    assert config.ignore_tests
    assert config.count
    assert config.run_ignored
    assert config.force_clean
    assert not config.line_coverage
    assert config.branch_coverage
    assert config.forward_signals
    assert config.coveralls == "hello"
    assert config.report_uri == "http://hello.com"
    assert config.no_default_features
    assert config.all_features
    assert config.all
    assert config.release
    assert config.no_run
    assert config.locked
    assert config.frozen
    assert config.offline
    assert config.test_timeout == timedelta(seconds=5)
    assert config.unstable_features == ["something-nightly"]
    assert config.varargs == ["--nocapture"]
    assert config.features == ["a"]
    assert config.excluded_files_raw == ["fuzz/*"]
    assert config.packages == ["pack_1"]
    assert config.exclude == ["pack_2"]
    assert config.generate == [OutputFile.HTML]
    assert config.run_types == [RunType.DOCTESTS]
    assert config.ci_tool == CiService.TRAVIS
    assert config.root == "/home/rust"
    assert config.manifest == Path("/home/rust/foo/Cargo.toml")
    assert config.config == Path("/home/rust/other.toml")
    assert config.target_dir == Path("/tmp")
    assert config.output_directory == Path("/tmp/reports")


def test_all_key_alias() -> None:
    (config,) = parse_config_toml(b"[x]\nall = true\n")
    assert config.all


def test_unknown_ci_server_kept_as_string() -> None:
    (config,) = parse_config_toml(b'[x]\nciserver = "buildkite"\n')
    assert config.ci_tool == "buildkite"


def test_enum_values_case_insensitive() -> None:
    (config,) = parse_config_toml(b'[x]\nrun-types = ["doctests", "ALLTARGETS"]\nout = ["lcov"]\n')
    assert config.run_types == [RunType.DOCTESTS, RunType.ALL_TARGETS]
    assert config.generate == [OutputFile.LCOV]


def test_compound_timeout() -> None:
    (config,) = parse_config_toml(b'[x]\ntimeout = "1m 30s"\n')
    assert config.test_timeout == timedelta(seconds=90)


def test_empty_document_rejected() -> None:
    with pytest.raises(EmptyConfigError):
        parse_config_toml(b"")


def test_comment_only_document_rejected() -> None:
    with pytest.raises(EmptyConfigError):
        parse_config_toml(b"# nothing configured\n")


def test_malformed_toml_rejected() -> None:
    with pytest.raises(ConfigParseError):
        parse_config_toml(b"this is not valid toml [[[")


def test_non_table_value_rejected() -> None:
    with pytest.raises(ConfigParseError):
        parse_config_toml(b"verbose = true\n")


def test_wrong_value_type_rejected() -> None:
    with pytest.raises(ConfigParseError, match="ignored"):
        parse_config_toml(b'[x]\nignored = "yes"\n')


def test_unknown_run_type_rejected() -> None:
    with pytest.raises(InvalidValueError):
        parse_config_toml(b'[x]\nrun-types = ["Everything"]\n')


def test_bad_timeout_rejected() -> None:
    with pytest.raises(InvalidValueError):
        parse_config_toml(b'[x]\ntimeout = "soon"\n')


def test_unknown_key_warns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="covprofile.config"):
        (config,) = parse_config_toml(b"[x]\nunknown_key = true\ncount = true\n")
    assert config.count
    assert "unknown_key" in caplog.text


def test_load_config_file_sets_config_path(tmp_path: Path) -> None:
    config_file = tmp_path / "tarpaulin.toml"
    config_file.write_text("[a]\ncount = true\n[b]\nrelease = true\n")
    profiles = load_config_file(config_file)
    assert [p.name for p in profiles] == ["a", "b"]
    assert all(p.config == config_file for p in profiles)


def test_load_config_file_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config_file(tmp_path / "tarpaulin.toml")


def test_load_profiles_or_none_on_failure(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    bad = tmp_path / "tarpaulin.toml"
    bad.write_text("[[[")
    with caplog.at_level(logging.WARNING, logger="covprofile.config"):
        assert load_profiles_or_none(bad) is None
        assert load_profiles_or_none(tmp_path / "missing.toml") is None
    assert "Could not load config file" in caplog.text


def test_profile_set_rejects_empty() -> None:
    with pytest.raises(ValueError):
        ProfileSet([])


def test_profile_set_lookup() -> None:
    profiles = ProfileSet([Profile(name="a"), Profile(name="b")])
    assert len(profiles) == 2
    assert profiles.names == ["a", "b"]
    assert profiles[1].name == "b"
    assert profiles.get("a") is profiles[0]
    assert profiles.get("missing") is None


def test_merge_profiles_falls_back_on_failure() -> None:
    args_profile = Profile(verbose=True)
    result = merge_profiles(None, args_profile)
    assert list(result) == [args_profile]


def test_merge_profiles_falls_back_when_empty() -> None:
    args_profile = Profile()
    result = merge_profiles([], args_profile)
    assert result.profiles == [args_profile]


def test_merge_profiles_applies_args_to_each() -> None:
    args_profile = Profile(debug=True, verbose=True, excluded_files_raw=["gen/*"])
    file_profiles = [
        Profile(name="a", excluded_files_raw=["target/*"]),
        Profile(name="b", release=True),
    ]
    result = merge_profiles(file_profiles, args_profile)
    assert result.names == ["a", "b"]
    assert result[0].excluded_files_raw == ["target/*", "gen/*"]
    assert result[1].excluded_files_raw == ["gen/*"]
    assert all(p.debug and p.verbose for p in result)
    assert result[1].release
    assert args_profile.excluded_files_raw == ["gen/*"]


def _resolve(argv: list[str]) -> ProfileSet:
    return resolve_profiles(build_parser().parse_args(argv))


def test_resolve_without_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--exclude-files", "*module*"])
    assert len(profiles) == 1
    assert profiles[0].name == ""
    assert profiles[0].config is None
    assert profiles[0].exclude_path("src/module/file.rs")


def test_resolve_discovers_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "tarpaulin.toml").write_text(
        '[unit]\nexclude-files = ["target/*"]\n[docs]\nrun-types = ["Doctests"]\n'
    )
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--exclude-files", "gen/*", "--debug"])
    assert profiles.names == ["unit", "docs"]
    unit = profiles.get("unit")
    assert unit is not None
    assert unit.config is not None
    assert unit.config.resolve() == (tmp_path / "tarpaulin.toml").resolve()
    assert unit.excluded_files_raw == ["target/*", "gen/*"]
    assert unit.debug and unit.verbose
    docs = profiles.get("docs")
    assert docs is not None
    assert docs.run_types == [RunType.DOCTESTS]


def test_resolve_discovers_dotfile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".tarpaulin.toml").write_text("[hidden]\nrelease = true\n")
    monkeypatch.chdir(tmp_path)
    profiles = _resolve([])
    assert profiles.names == ["hidden"]
    assert profiles[0].release


def test_resolve_discovers_in_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    project = tmp_path / "project"
    project.mkdir()
    (project / "tarpaulin.toml").write_text("[rooted]\n")
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--root", str(project)])
    assert profiles.names == ["rooted"]
    assert profiles[0].root == str(project)


def test_resolve_file_settings_win_over_args(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "tarpaulin.toml").write_text('[ci]\nbranch = false\nline = true\ntimeout = "2m"\n')
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--branch", "--timeout", "5"])
    assert not profiles[0].branch_coverage
    assert profiles[0].test_timeout == timedelta(minutes=2)


def test_resolve_manifest_comes_from_args(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "tarpaulin.toml").write_text('[a]\nmanifest-path = "/elsewhere/Cargo.toml"\n')
    monkeypatch.chdir(tmp_path)
    profiles = _resolve([])
    assert profiles[0].manifest == Path.cwd() / "Cargo.toml"


def test_resolve_ignore_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "tarpaulin.toml").write_text("[unit]\n")
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--ignore-config"])
    assert profiles.names == [""]
    assert profiles[0].config is None


def test_resolve_explicit_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "tarpaulin.toml").write_text("[discovered]\n")
    ci = tmp_path / "ci"
    ci.mkdir()
    (ci / "coverage.toml").write_text("[explicit]\ncount = true\n")
    monkeypatch.chdir(tmp_path)
    profiles = _resolve(["--config", "ci/coverage.toml"])
    assert profiles.names == ["explicit"]
    assert profiles[0].config == (ci / "coverage.toml").resolve()
    assert profiles[0].count


def test_resolve_explicit_missing_config_raises(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        _resolve(["--config", "missing.toml"])


def test_resolve_malformed_config_falls_back(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "tarpaulin.toml").write_text("this is not valid toml [[[")
    monkeypatch.chdir(tmp_path)
    with caplog.at_level(logging.WARNING, logger="covprofile"):
        profiles = _resolve(["--release"])
    assert profiles.names == [""]
    assert profiles[0].release
    assert "falling back to provided args" in caplog.text


def test_resolve_empty_config_falls_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "tarpaulin.toml").write_text("")
    monkeypatch.chdir(tmp_path)
    profiles = _resolve([])
    assert profiles.names == [""]


def test_resolve_accepts_foreign_namespace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import argparse

    monkeypatch.chdir(tmp_path)
    profiles = resolve_profiles(argparse.Namespace(exclude_files=["*/lib.rs"]))
    assert profiles[0].exclude_path("src/lib.rs")
    assert not profiles[0].exclude_path("lib.rs")
    assert profile_from_args(argparse.Namespace()).run_types == [RunType.TESTS]
