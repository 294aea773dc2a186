"""Configuration file handling.

Settings live in an INI file (``~/.okta-assume`` by default).  Each key may
be overridden on the command line; values still missing afterwards are
prompted for by the CLI.

    [default]
    organization = example
    app_path = home/amazon_aws/0oa1234567890abcdef/272
    username = jane.doe
    role_arn = arn:aws:iam::111111111111:role/Target
    profile = okta
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from typing import Any, Mapping

from okta_assume.errors import ConfigError
from okta_assume.mfa import MFA_TIMEOUT, POLL_INTERVAL
from okta_assume.sts import DEFAULT_REGION, SAML_DURATION_SECONDS
from okta_assume.transport import OKTA_SERVER

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.okta-assume")
DEFAULT_SECTION = "default"
DEFAULT_PROFILE = "okta"


@dataclass(frozen=True)
class Settings:
    organization: str | None = None
    okta_server: str = OKTA_SERVER
    app_path: str | None = None
    username: str | None = None
    role_arn: str | None = None
    profile: str = DEFAULT_PROFILE
    region: str = DEFAULT_REGION
    duration: int = SAML_DURATION_SECONDS
    mfa_timeout: float = MFA_TIMEOUT
    poll_interval: float = POLL_INTERVAL
    source_account: str | None = None
    source_role: str | None = None

    def missing(self) -> list[str]:
        """Names of required values that are still unset."""
        required = ("organization", "app_path", "username", "role_arn")
        return [name for name in required if not getattr(self, name)]


_INT_KEYS = frozenset({"duration"})
_FLOAT_KEYS = frozenset({"mfa_timeout", "poll_interval"})


def load_config(config_path):
    """Load configuration from an INI file."""
    config = configparser.ConfigParser()
    if os.path.exists(config_path):
        try:
            config.read(config_path)
        except configparser.Error as exc:
            raise ConfigError(f"cannot read {config_path}: {exc}") from exc
    return config


def load_settings(
    config_path: str = DEFAULT_CONFIG_PATH,
    section: str = DEFAULT_SECTION,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Merge the INI *section* with non-None *overrides* into Settings."""
    config = load_config(config_path)
    overrides = overrides or {}
    values: dict[str, Any] = {}

    for name in Settings.__dataclass_fields__:
        value = overrides.get(name)
        if value is None and config.has_section(section) and config.has_option(section, name):
            value = config.get(section, name).strip() or None
        if value is None:
            continue
        values[name] = _coerce(name, value)

    return Settings(**values)


def _coerce(name: str, value: Any) -> Any:
    try:
        if name in _INT_KEYS:
            value = int(value)
        elif name in _FLOAT_KEYS:
            value = float(value)
        else:
            return value
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {name}: {value!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value
