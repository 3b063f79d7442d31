"""Exceptions raised while reading profile configuration."""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for problems with a profile config file."""


class ConfigParseError(ConfigError):
    """The config file is not valid TOML or holds values of the wrong type."""


class EmptyConfigError(ConfigParseError):
    """The config file parsed but declares no profile tables."""


class InvalidValueError(ConfigParseError):
    """A value could not be converted (unknown enum name, bad duration)."""
