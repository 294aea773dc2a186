from __future__ import annotations

from pathlib import Path

import pytest

from okta_assume import cli as cli_module
from okta_assume.errors import AuthenticationError
from okta_assume.roles import RoleMatcher, first_role, prompt_for_role

from support import FINAL_CREDS, TARGET_ROLE

CONFIG = (
    "[default]\n"
    "organization = example\n"
    "app_path = home/amazon_aws/app/272\n"
    "username = jane\n"
    f"role_arn = {TARGET_ROLE}\n"
)


class _FakeClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def authenticate(self, role_arn: str, profile: str):
        self.calls.append((role_arn, profile))
        if self.error is not None:
            raise self.error
        return FINAL_CREDS


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    config = tmp_path / "okta-assume.ini"
    config.write_text(CONFIG)
    state: dict = {"client": _FakeClient(), "written": [], "levels": []}

    def _build_client(settings, password, role_selector=first_role):
        state["settings"] = settings
        state["password"] = password
        state["selector"] = role_selector
        return state["client"]

    monkeypatch.setattr(cli_module, "build_client", _build_client)
    monkeypatch.setattr(cli_module, "configure_logging", state["levels"].append)
    monkeypatch.setattr(
        cli_module, "write_aws_credentials", lambda *args: state["written"].append(args)
    )
    monkeypatch.setenv(cli_module.PASSWORD_ENV, "hunter2")
    state["config"] = str(config)
    return state


def test_main_writes_profile(cli_env, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli_module.main(["--config", cli_env["config"], "--profile", "dev"])

    assert code == 0
    assert cli_env["client"].calls == [(TARGET_ROLE, "dev")]
    assert cli_env["password"] == "hunter2"
    assert cli_env["selector"] is first_role
    assert cli_env["written"] == [(FINAL_CREDS, "dev", "us-west-2")]
    assert cli_env["levels"] == ["INFO"]
    assert "Credentials written to profile 'dev'" in capsys.readouterr().out


def test_main_export(cli_env, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli_module.main(["--config", cli_env["config"], "--export", "--debug"])

    assert code == 0
    assert cli_env["written"] == []
    assert cli_env["levels"] == ["DEBUG"]
    out = capsys.readouterr().out
    assert "export AWS_ACCESS_KEY_ID=AK2" in out
    assert "export AWS_SESSION_TOKEN=ST2" in out


def test_main_reports_errors(cli_env, capsys: pytest.CaptureFixture[str]) -> None:
    cli_env["client"] = _FakeClient(AuthenticationError("jane", "LOCKED_OUT"))

    code = cli_module.main(["--config", cli_env["config"]])

    assert code == 1
    assert cli_env["written"] == []
    assert "authentication failed for jane" in capsys.readouterr().err


def test_main_prompts_for_missing_values(cli_env, tmp_path: Path, monkeypatch) -> None:
    answers = iter(["example", "home/amazon_aws/app/272", "jane", TARGET_ROLE])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

    code = cli_module.main(["--config", str(tmp_path / "absent.ini")])

    assert code == 0
    settings = cli_env["settings"]
    assert (settings.organization, settings.username, settings.role_arn) == (
        "example",
        "jane",
        TARGET_ROLE,
    )


def test_role_selector_options(cli_env) -> None:
    cli_module.main(["--config", cli_env["config"], "--account", "111111111111", "--role", "Engineer"])
    selector = cli_env["selector"]
    assert isinstance(selector, RoleMatcher)
    assert (selector.account, selector.role) == ("111111111111", "Engineer")

    cli_module.main(["--config", cli_env["config"], "--interactive"])
    assert cli_env["selector"] is prompt_for_role


def test_main_rejects_empty_answers(
    cli_env, tmp_path: Path, monkeypatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("builtins.input", lambda prompt: "  ")

    code = cli_module.main(["--config", str(tmp_path / "absent.ini")])

    assert code == 1
    assert "settings" not in cli_env
    err = capsys.readouterr().err
    assert "missing required settings: organization, app_path, username, role_arn" in err
