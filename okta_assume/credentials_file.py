"""Writing issued credentials where the AWS CLI and SDKs will find them."""

from __future__ import annotations

import configparser
import os

from okta_assume.models import Credentials

AWS_CREDENTIALS_PATH = os.path.expanduser("~/.aws/credentials")
AWS_CONFIG_PATH = os.path.expanduser("~/.aws/config")


def write_aws_credentials(
    credentials: Credentials,
    profile: str,
    region: str,
    credentials_path: str = AWS_CREDENTIALS_PATH,
    config_path: str = AWS_CONFIG_PATH,
) -> None:
    """Write temporary credentials to ~/.aws/credentials (and region to ~/.aws/config).

    Both files are left with mode 0o600.
    """
    os.makedirs(os.path.dirname(credentials_path), exist_ok=True)

    creds_config = configparser.ConfigParser()
    if os.path.exists(credentials_path):
        creds_config.read(credentials_path)

    if not creds_config.has_section(profile):
        creds_config.add_section(profile)

    creds_config.set(profile, "aws_access_key_id", credentials.access_key_id)
    creds_config.set(profile, "aws_secret_access_key", credentials.secret_access_key)
    creds_config.set(profile, "aws_session_token", credentials.session_token)
    creds_config.set(profile, "aws_session_expiration", credentials.expiration.isoformat())

    _write_private(credentials_path, creds_config)

    aws_cfg = configparser.ConfigParser()
    if os.path.exists(config_path):
        aws_cfg.read(config_path)

    cfg_section = "default" if profile == "default" else f"profile {profile}"
    if not aws_cfg.has_section(cfg_section):
        aws_cfg.add_section(cfg_section)
    aws_cfg.set(cfg_section, "region", region)
    aws_cfg.set(cfg_section, "output", "json")

    _write_private(config_path, aws_cfg)


def _write_private(path, parser):
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as fh:
        parser.write(fh)
    os.chmod(path, 0o600)


def export_lines(credentials: Credentials, region: str) -> list[str]:
    """Shell ``export`` statements for the credentials."""
    return [
        f"export AWS_ACCESS_KEY_ID={credentials.access_key_id}",
        f"export AWS_SECRET_ACCESS_KEY={credentials.secret_access_key}",
        f"export AWS_SESSION_TOKEN={credentials.session_token}",
        f"export AWS_DEFAULT_REGION={region}",
    ]
