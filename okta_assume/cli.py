"""okta-assume: authenticate to AWS via Okta SAML, Duo push and role chaining.

Authenticates to Okta (including the Duo factor), fetches the AWS SAML
assertion, assumes the first eligible role via STS, chains into the target
role and writes the temporary credentials to ~/.aws/credentials.
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys

from okta_assume.client import OktaClient
from okta_assume.config import DEFAULT_CONFIG_PATH, DEFAULT_PROFILE, DEFAULT_SECTION, load_settings
from okta_assume.credentials_file import AWS_CREDENTIALS_PATH, export_lines, write_aws_credentials
from okta_assume.errors import ConfigError, OktaAssumeError
from okta_assume.logging_utils import configure_logging
from okta_assume.mfa import MFAChallenger
from okta_assume.roles import RoleMatcher, first_role, prompt_for_role
from okta_assume.sts import DelegationClient
from okta_assume.transport import OktaTransport

PASSWORD_ENV = "OKTA_PASSWORD"

_PROMPTS = {
    "organization": "Okta organization (e.g. example for example.okta.com): ",
    "app_path": "Okta AWS app path (e.g. home/amazon_aws/<app id>/272): ",
    "username": "Username: ",
    "role_arn": "Target role ARN: ",
}


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Authenticate to AWS via Okta SAML with Duo push and role chaining.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  okta-assume                              Use values from ~/.okta-assume
  okta-assume --profile dev                Store credentials in 'dev' profile
  okta-assume --role-arn arn:aws:iam::111111111111:role/Admin
  eval "$(okta-assume --export)"           Export credentials into the shell
""",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Path to config file (default: ~/.okta-assume)")
    parser.add_argument("--section", default=DEFAULT_SECTION,
                        help="Config file section to read (default: default)")
    parser.add_argument("--organization", help="Okta organization name")
    parser.add_argument("--username", help="Okta username (overrides config)")
    parser.add_argument("--app-path", dest="app_path",
                        help="Path of the Okta AWS SAML app")
    parser.add_argument("--role-arn", dest="role_arn", help="Role to chain into")
    parser.add_argument("--profile",
                        help=f"AWS credentials profile name (default: {DEFAULT_PROFILE})")
    parser.add_argument("--region", help="AWS region for STS and the profile")
    parser.add_argument("--mfa-timeout", dest="mfa_timeout", type=float,
                        help="Seconds to wait for Duo push approval")
    parser.add_argument("--account", dest="source_account",
                        help="Pre-select the SAML role's AWS account ID")
    parser.add_argument("--role", dest="source_role",
                        help="Pre-select the SAML role name")
    parser.add_argument("--interactive", action="store_true",
                        help="Prompt for the SAML role when several are available")
    parser.add_argument("--export", action="store_true",
                        help="Print export statements instead of writing a profile")
    parser.add_argument("--debug", action="store_true",
                        help="Log every step of the login")
    return parser


def _role_selector(args, settings):
    if args.interactive:
        return prompt_for_role
    if settings.source_account or settings.source_role:
        return RoleMatcher(
            account=settings.source_account,
            role=settings.source_role,
            username=settings.username,
        )
    return first_role


def build_client(settings, password, role_selector=first_role):
    transport = OktaTransport(settings.organization, server=settings.okta_server)
    return OktaClient(
        settings.organization,
        settings.username,
        password,
        settings.app_path,
        transport=transport,
        challenger=MFAChallenger(
            transport,
            poll_interval=settings.poll_interval,
            timeout=settings.mfa_timeout,
        ),
        delegation=DelegationClient(region=settings.region),
        role_selector=role_selector,
        saml_duration=settings.duration,
    )


def main(argv=None):
    args = _build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else "INFO")

    overrides = {
        key: getattr(args, key)
        for key in ("organization", "username", "app_path", "role_arn", "profile",
                    "region", "mfa_timeout", "source_account", "source_role")
    }

    try:
        settings = load_settings(args.config, args.section, overrides)

        # Prompt for any missing required values
        prompted = {name: input(_PROMPTS[name]).strip() for name in settings.missing()}
        if prompted:
            settings = load_settings(args.config, args.section, {**overrides, **prompted})
        missing = settings.missing()
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")

        print(f"Authenticating to {settings.organization}.{settings.okta_server} "
              f"as {settings.username}…", file=sys.stderr)
        password = os.environ.get(PASSWORD_ENV) or getpass.getpass("Password: ")

        client = build_client(settings, password, _role_selector(args, settings))
        credentials = client.authenticate(settings.role_arn, settings.profile)
    except OktaAssumeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    expiry = credentials.expiration.strftime("%Y-%m-%d %H:%M:%S UTC")
    if args.export:
        print("\n".join(export_lines(credentials, settings.region)))
        print(f"# Expires: {expiry}", file=sys.stderr)
        return 0

    write_aws_credentials(credentials, settings.profile, settings.region)
    print(f"\nCredentials written to profile '{settings.profile}' ({AWS_CREDENTIALS_PATH})")
    print(f"Expires: {expiry}")
    print()
    if settings.profile == "default":
        print("  aws sts get-caller-identity")
    else:
        print(f"  aws --profile {settings.profile} sts get-caller-identity")
        print(f"  # or: export AWS_PROFILE={settings.profile}")
    return 0
