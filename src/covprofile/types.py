"""Enumerations shared by config files and command-line options."""

from __future__ import annotations

from enum import Enum


class _NamedEnum(str, Enum):
    """
    Enum whose values are their display names. Lookup is case-insensitive, so
    `RunType("doctests")` and `RunType("Doctests")` are the same member.
    """

    @classmethod
    def _missing_(cls, value: object) -> _NamedEnum | None:
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None

    def __str__(self) -> str:
        return self.value


class RunType(_NamedEnum):
    """Kinds of test targets to collect coverage on."""

    TESTS = "Tests"
    DOCTESTS = "Doctests"
    BENCHMARKS = "Benchmarks"
    EXAMPLES = "Examples"
    LIB = "Lib"
    BINS = "Bins"
    ALL_TARGETS = "AllTargets"


class OutputFile(_NamedEnum):
    """Report formats that can be generated after a run."""

    JSON = "Json"
    TOML = "Toml"
    STDOUT = "Stdout"
    XML = "Xml"
    HTML = "Html"
    LCOV = "Lcov"


class CiService(str, Enum):
    """Known CI services, keyed by the identifier used in config files."""

    TRAVIS = "travis-ci"
    TRAVIS_PRO = "travis-pro"
    CIRCLE = "circle-ci"
    SEMAPHORE = "semaphore"
    JENKINS = "jenkins"
    CODESHIP = "codeship"

    def __str__(self) -> str:
        return self.value


def parse_ci_server(value: str) -> CiService | str:
    """
    Map a CI identifier to a `CiService`. Unknown identifiers are returned
    unchanged so they can still be reported as a custom service name.
    """
    try:
        return CiService(value)
    except ValueError:
        return value
