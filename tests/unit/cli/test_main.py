"""Unit tests for pipewright-cli."""

import base64
import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

import pipewright_cli.main as cli_main
from pipewright_cli.main import app
from pipewright_core.ports.lifecycle import LifecycleErrorCode, build_lifecycle_error
from pipewright_core.ports.provider import ProviderBundle, ProviderError
from pipewright_io.loader import ConfigLoadError
from pipewright_schemas.exit_codes import ExitCode
from tests.helpers.fakes import SPEC_YAML, build_fake_providers, write_account_config

runner = CliRunner()


def _secrets_blob(values: list[dict[str, str]]) -> str:
    return base64.b64encode(json.dumps(values).encode("utf-8")).decode("ascii")


TOKEN_BLOB = _secrets_blob(
    [{"phaseName": "Source", "name": "githubAccessToken", "value": "t0k"}]
)


@pytest.fixture
def providers(monkeypatch: pytest.MonkeyPatch, config_cache: Path) -> ProviderBundle:
    """Replace the AWS providers with in-memory fakes.

    Returns:
        ProviderBundle: Fakes shared by every command in the test.
    """
    bundle = build_fake_providers()
    monkeypatch.setattr(
        cli_main, "build_aws_providers", lambda region, session=None: bundle
    )
    monkeypatch.setattr(cli_main, "configure_logging", lambda verbosity="info": None)
    monkeypatch.setenv("PIPEWRIGHT_LOG_SINKS", '["noop"]')
    return bundle


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    """Write a valid pipewright.yml.

    Returns:
        Path: Spec file path.
    """
    path = tmp_path / "pipewright.yml"
    path.write_text(SPEC_YAML, encoding="utf-8")
    return path


@pytest.fixture
def account_configs(tmp_path: Path) -> Path:
    """Write the dev account config.

    Returns:
        Path: Directory holding dev.yml.
    """
    return write_account_config(tmp_path / "accounts")


def _deploy_args(spec_file: Path, account_configs: Path, *extra: str) -> list[str]:
    return [
        "deploy",
        "--file",
        str(spec_file),
        "--pipeline",
        "main",
        "--account-name",
        "dev",
        "--account-configs-path",
        str(account_configs),
        *extra,
    ]


def test_version_command() -> None:
    """Version prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "pipewright" in result.output


def test_check_valid_spec(providers: ProviderBundle, spec_file: Path) -> None:
    """A valid spec passes check."""
    result = runner.invoke(app, ["check", "--file", str(spec_file)])

    assert result.exit_code == 0
    assert "has no errors" in result.output


def test_check_invalid_spec(providers: ProviderBundle, tmp_path: Path) -> None:
    """Spec errors exit with the validation code."""
    path = tmp_path / "pipewright.yml"
    path.write_text("pipelines: {}\n", encoding="utf-8")

    result = runner.invoke(app, ["check", "--file", str(path)])

    assert result.exit_code == ExitCode.VALIDATION_ERROR


def test_check_missing_file(providers: ProviderBundle, tmp_path: Path) -> None:
    """A missing spec file is a config error."""
    result = runner.invoke(app, ["check", "--file", str(tmp_path / "nope.yml")])

    assert result.exit_code == ExitCode.CONFIG_ERROR
    assert "file not found" in result.output


def test_deploy_non_interactive_creates_then_updates(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """Deploying twice creates the pipeline and then updates it."""
    args = _deploy_args(spec_file, account_configs, "--secrets", TOKEN_BLOB)

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)

    assert first.exit_code == 0, first.output
    assert "Created pipeline myapp-main" in first.output
    assert second.exit_code == 0, second.output
    assert "Updated pipeline myapp-main" in second.output
    assert providers.account.buckets == {"codepipeline-us-west-2-123456789012"}
    declaration = providers.pipelines.pipelines["myapp-main"]
    source = declaration.stages[0].actions[0]
    assert source.configuration["OAuthToken"] == "t0k"


def test_deploy_prompts_for_secrets(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """Without --secrets the token is prompted for."""
    result = runner.invoke(app, _deploy_args(spec_file, account_configs), input="t0k\n")

    assert result.exit_code == 0, result.output
    assert "myapp-main-webhook" in providers.webhooks.registered


def test_deploy_prompts_for_and_caches_configs_path(
    providers: ProviderBundle,
    spec_file: Path,
    account_configs: Path,
    config_cache: Path,
) -> None:
    """A prompted account configs path is saved to the config cache."""
    args = ["deploy", "--file", str(spec_file), "--account-name", "dev"]

    result = runner.invoke(app, args, input=f"{account_configs}\nt0k\n")

    assert result.exit_code == 0, result.output
    cached = yaml.safe_load(config_cache.read_text(encoding="utf-8"))
    assert cached == {"account_configs_path": str(account_configs)}

    again = runner.invoke(app, args, input="t0k\n")
    assert again.exit_code == 0, again.output


def test_deploy_rejects_other_account(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """Deploying with credentials for another account fails."""
    providers.account.account_id = "999999999999"

    result = runner.invoke(
        app, _deploy_args(spec_file, account_configs, "--secrets", TOKEN_BLOB)
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    assert "999999999999" in result.output
    assert providers.pipelines.pipelines == {}


def test_deploy_rejects_malformed_secrets(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """A malformed --secrets blob is a config error."""
    result = runner.invoke(
        app, _deploy_args(spec_file, account_configs, "--secrets", "%%%")
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR


def test_deploy_missing_secret(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """A blob without the GitHub token fails the deploy."""
    result = runner.invoke(
        app, _deploy_args(spec_file, account_configs, "--secrets", _secrets_blob([]))
    )

    assert result.exit_code == ExitCode.LIFECYCLE_ERROR
    assert providers.pipelines.pipelines == {}


def test_deploy_unknown_pipeline(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """Naming an undeclared pipeline is a config error."""
    args = _deploy_args(spec_file, account_configs, "--secrets", TOKEN_BLOB)
    args[args.index("main")] = "nope"

    result = runner.invoke(app, args)

    assert result.exit_code == ExitCode.CONFIG_ERROR


def test_delete_after_deploy(
    providers: ProviderBundle, spec_file: Path, account_configs: Path
) -> None:
    """Delete removes the pipeline, webhook and build project."""
    deploy = runner.invoke(
        app, _deploy_args(spec_file, account_configs, "--secrets", TOKEN_BLOB)
    )
    assert deploy.exit_code == 0, deploy.output

    args = [
        "delete",
        "--file",
        str(spec_file),
        "--pipeline",
        "main",
        "--account-name",
        "dev",
        "--account-configs-path",
        str(account_configs),
    ]
    result = runner.invoke(app, args)
    again = runner.invoke(app, args)

    assert result.exit_code == 0, result.output
    assert again.exit_code == 0, again.output
    assert providers.pipelines.pipelines == {}
    assert providers.webhooks.webhooks == {}
    assert providers.build_projects.projects == {}


def test_list_required_secrets(providers: ProviderBundle, spec_file: Path) -> None:
    """Required secrets print as camelCase JSON."""
    result = runner.invoke(
        app,
        ["list-required-secrets", "--file", str(spec_file), "--pipeline", "main"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [
        {
            "phaseName": "Source",
            "name": "githubAccessToken",
            "message": "'Source' phase - Please enter your GitHub access token",
        }
    ]


def test_list_required_secrets_requires_pipeline(
    providers: ProviderBundle, spec_file: Path
) -> None:
    """The --pipeline option is mandatory."""
    result = runner.invoke(app, ["list-required-secrets", "--file", str(spec_file)])

    assert result.exit_code == ExitCode.VALIDATION_ERROR


@pytest.mark.parametrize(
    ("exc", "code", "exit_code"),
    [
        (
            build_lifecycle_error(LifecycleErrorCode.PHASE_FAILED, "failed"),
            "phase_failed",
            ExitCode.LIFECYCLE_ERROR,
        ),
        (
            ProviderError("create_project", "p", "denied"),
            "provider_error",
            ExitCode.PROVIDER_ERROR,
        ),
        (
            ConfigLoadError(Path("x.yml"), "file not found"),
            "config_error",
            ExitCode.CONFIG_ERROR,
        ),
        (ValueError("bad"), "validation_error", ExitCode.VALIDATION_ERROR),
        (RuntimeError(), "runtime_error", ExitCode.RUNTIME_ERROR),
    ],
)
def test_error_from_exception(exc: Exception, code: str, exit_code: ExitCode) -> None:
    """Exceptions map to error codes and exit codes."""
    error = cli_main._error_from_exception(exc)

    assert error.code == code
    assert error.exit_code == exit_code
    assert error.message
