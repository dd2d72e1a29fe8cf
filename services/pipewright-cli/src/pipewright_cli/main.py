"""CLI entry point - thin adapter over pipewright-core."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import NoReturn

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from pipewright_core import VERSION
from pipewright_core.assembler import AssemblyResult, PipelineAssembler
from pipewright_core.lifecycle import PipelineLifecycle, build_pipeline_context
from pipewright_core.ports.lifecycle import (
    LifecycleError,
    LifecycleErrorCode,
    LogSinkProtocol,
    build_lifecycle_error,
)
from pipewright_core.ports.provider import ProviderBundle, ProviderError
from pipewright_core.registry import build_default_registry
from pipewright_cli.log_config import configure_logging
from pipewright_cli.prompts import (
    TyperSecretPrompter,
    prompt_account_configs_path,
    prompt_account_name,
    prompt_pipeline,
)
from pipewright_cli.settings import (
    CliSettings,
    load_settings,
    save_account_configs_path,
)
from pipewright_io.aws import build_aws_providers
from pipewright_io.loader import (
    ConfigLoadError,
    load_account_config,
    load_pipeline_spec,
)
from pipewright_io.sinks import build_log_sink
from pipewright_schemas.account import AccountConfig
from pipewright_schemas.exit_codes import ExitCode, resolve_exit_code
from pipewright_schemas.redaction import Redactor, build_redactor
from pipewright_schemas.responses import ErrorResponse
from pipewright_schemas.spec import PipelineCheckReport, PipelineSpec

logger = logging.getLogger(__name__)

FILE_OPTION = typer.Option(
    Path("pipewright.yml"), "--file", "-f", help="Path to the pipeline spec file"
)
PIPELINE_OPTION = typer.Option(None, "--pipeline", help="Pipeline to operate on")
ACCOUNT_NAME_OPTION = typer.Option(
    None, "--account-name", help="Account config name to deploy into"
)
SECRETS_OPTION = typer.Option(
    None,
    "--secrets",
    help="Base64-encoded JSON list of {phaseName, name, value} secrets",
)
ACCOUNT_CONFIGS_PATH_OPTION = typer.Option(
    None,
    "--account-configs-path",
    help="Directory containing <account-name>.yml files",
)
DEBUG_OPTION = typer.Option(False, "--debug", "-d", help="Enable debug logging")

app = typer.Typer(
    help="Deploy, check and delete CI/CD pipelines from pipewright.yml",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """Pipewright CLI."""


@app.command()
def version() -> None:
    """Display version information."""
    rprint(f"[bold]pipewright[/bold] v{VERSION}")


@app.command()
def check(
    file: Path = FILE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Check the pipeline spec file for errors.

    Raises:
        typer.Exit: When the spec has errors or cannot be loaded.
    """
    configure_logging("debug" if debug else "info")
    try:
        settings = load_settings()
        spec = load_pipeline_spec(file)
        report = asyncio.run(_check_async(spec, settings))
    except (typer.Exit, typer.Abort):
        raise
    except Exception as exc:
        _exit_with_error(exc)
    if report.has_errors:
        _render_check_errors(report)
        raise typer.Exit(code=ExitCode.VALIDATION_ERROR)
    rprint(f"[green]{file} has no errors[/green]")


@app.command()
def deploy(
    file: Path = FILE_OPTION,
    pipeline: str | None = PIPELINE_OPTION,
    account_name: str | None = ACCOUNT_NAME_OPTION,
    secrets: str | None = SECRETS_OPTION,
    account_configs_path: Path | None = ACCOUNT_CONFIGS_PATH_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Deploy a pipeline, creating or updating it as needed.

    Passing --pipeline, --account-name and --secrets together runs without
    prompts.

    Raises:
        typer.Exit: When the deploy fails.
    """
    configure_logging("debug" if debug else "info")
    try:
        _load_dotenv(file)
        settings = load_settings()
        spec = load_pipeline_spec(file)
        interactive = not (pipeline and account_name and secrets)
        pipeline_name = pipeline or prompt_pipeline(sorted(spec.pipelines or {}))
        account = _resolve_account(
            settings, account_name, account_configs_path, interactive
        )
        result = asyncio.run(
            _deploy_async(spec, pipeline_name, account, secrets, settings)
        )
    except (typer.Exit, typer.Abort):
        raise
    except Exception as exc:
        _exit_with_error(exc)
    action = "Created" if result.created else "Updated"
    rprint(f"[green]{action} pipeline {result.resource.name}[/green]")


@app.command()
def delete(
    file: Path = FILE_OPTION,
    pipeline: str | None = PIPELINE_OPTION,
    account_name: str | None = ACCOUNT_NAME_OPTION,
    account_configs_path: Path | None = ACCOUNT_CONFIGS_PATH_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Delete a pipeline and every resource its phases created.

    Raises:
        typer.Exit: When the delete fails.
    """
    configure_logging("debug" if debug else "info")
    try:
        _load_dotenv(file)
        settings = load_settings()
        spec = load_pipeline_spec(file)
        interactive = not (pipeline and account_name)
        pipeline_name = pipeline or prompt_pipeline(sorted(spec.pipelines or {}))
        account = _resolve_account(
            settings, account_name, account_configs_path, interactive
        )
        asyncio.run(_delete_async(spec, pipeline_name, account, settings))
    except (typer.Exit, typer.Abort):
        raise
    except Exception as exc:
        _exit_with_error(exc)
    rprint(f"[green]Deleted pipeline {pipeline_name}[/green]")


@app.command("list-required-secrets")
def list_required_secrets(
    file: Path = FILE_OPTION,
    pipeline: str | None = PIPELINE_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Print the secrets a pipeline needs as JSON.

    Raises:
        typer.Exit: When --pipeline is missing or the spec is invalid.
    """
    configure_logging("debug" if debug else "info")
    try:
        if not pipeline:
            raise ValueError("The --pipeline option is required")
        settings = load_settings()
        spec = load_pipeline_spec(file)
        lifecycle = PipelineLifecycle(
            build_default_registry(build_aws_providers(settings.default_region))
        )
        report = asyncio.run(lifecycle.check(spec))
        _ensure_valid(report)
        questions = lifecycle.list_secret_questions(spec, pipeline)
    except (typer.Exit, typer.Abort):
        raise
    except Exception as exc:
        _exit_with_error(exc)
    print(json.dumps([question.model_dump(by_alias=True) for question in questions]))


async def _check_async(spec: PipelineSpec, settings: CliSettings) -> PipelineCheckReport:
    providers = build_aws_providers(settings.default_region)
    lifecycle = PipelineLifecycle(
        build_default_registry(providers),
        log_sink=_build_command_log_sink(settings, build_redactor()),
    )
    return await lifecycle.check(spec)


async def _deploy_async(
    spec: PipelineSpec,
    pipeline_name: str,
    account: AccountConfig,
    secrets: str | None,
    settings: CliSettings,
) -> AssemblyResult:
    redactor = build_redactor()
    providers = build_aws_providers(account.region)
    lifecycle = _build_lifecycle(providers, _build_command_log_sink(settings, redactor))
    _ensure_valid(await lifecycle.check(spec))

    await _verify_account(providers, account)
    context = build_pipeline_context(spec, pipeline_name, account)
    await providers.account.ensure_bucket(context.artifact_bucket, account.region)

    if secrets:
        phase_secrets = await lifecycle.resolve_secrets(spec, pipeline_name, secrets)
    else:
        phase_secrets = await lifecycle.collect_secrets(
            spec, pipeline_name, TyperSecretPrompter()
        )
    redactor.add_literal_values(
        value for values in phase_secrets.values() for value in values.values()
    )
    return await lifecycle.deploy(context.with_secrets(phase_secrets))


async def _delete_async(
    spec: PipelineSpec,
    pipeline_name: str,
    account: AccountConfig,
    settings: CliSettings,
) -> None:
    providers = build_aws_providers(account.region)
    lifecycle = _build_lifecycle(
        providers, _build_command_log_sink(settings, build_redactor())
    )
    _ensure_valid(await lifecycle.check(spec))
    await _verify_account(providers, account)
    context = build_pipeline_context(spec, pipeline_name, account)
    await lifecycle.delete(context)


def _build_lifecycle(
    providers: ProviderBundle, log_sink: LogSinkProtocol
) -> PipelineLifecycle:
    return PipelineLifecycle(
        build_default_registry(providers),
        PipelineAssembler(providers.pipelines, providers.roles),
        log_sink=log_sink,
    )


def _build_command_log_sink(
    settings: CliSettings, redactor: Redactor
) -> LogSinkProtocol:
    return build_log_sink(settings.logging_config(), redactor=redactor)


async def _verify_account(providers: ProviderBundle, account: AccountConfig) -> None:
    caller_account = await providers.account.get_caller_account_id()
    if caller_account != account.account_id:
        raise build_lifecycle_error(
            LifecycleErrorCode.ACCOUNT_MISMATCH,
            f"You are trying to deploy to the account {account.account_id}, "
            f"but you are logged into the account {caller_account}",
            reason=f"caller account {caller_account}",
        )


def _ensure_valid(report: PipelineCheckReport) -> None:
    if not report.has_errors:
        return
    _render_check_errors(report)
    raise build_lifecycle_error(
        LifecycleErrorCode.INVALID_SPECIFICATION,
        "The pipeline spec file has errors; fix them and try again",
    )


def _resolve_account(
    settings: CliSettings,
    account_name: str | None,
    account_configs_path: Path | None,
    interactive: bool,
) -> AccountConfig:
    name = account_name or prompt_account_name()
    configs_path = account_configs_path or settings.account_configs_path
    if configs_path is None:
        if not interactive:
            raise ValueError(
                "No account configs path given; pass --account-configs-path "
                "or set PIPEWRIGHT_ACCOUNT_CONFIGS_PATH"
            )
        configs_path = prompt_account_configs_path()
        save_account_configs_path(configs_path)
    return load_account_config(configs_path, name)


def _load_dotenv(spec_path: Path) -> None:
    env_path = spec_path.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _render_check_errors(report: PipelineCheckReport) -> None:
    table = Table(title="Pipeline spec errors")
    table.add_column("Pipeline")
    table.add_column("Error")
    for error in report.errors:
        table.add_row("-", error)
    for pipeline_name, errors in report.pipeline_errors.items():
        for error in errors:
            table.add_row(pipeline_name, error)
    Console(stderr=True).print(table)


def _error_from_exception(exc: Exception) -> ErrorResponse:
    if isinstance(exc, LifecycleError):
        error = exc.info.to_error_response()
        exit_code = resolve_exit_code(error.code, domain="lifecycle")
        return error.model_copy(update={"exit_code": int(exit_code)})
    if isinstance(exc, ProviderError):
        return ErrorResponse(
            code="provider_error",
            message=str(exc),
            exit_code=int(ExitCode.PROVIDER_ERROR),
        )
    if isinstance(exc, ConfigLoadError):
        return ErrorResponse(
            code="config_error",
            message=str(exc),
            exit_code=int(ExitCode.CONFIG_ERROR),
        )
    if isinstance(exc, ValidationError):
        message = "Validation failed"
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = first.get("loc", [])
            label = ".".join(str(part) for part in loc) if loc else ""
            detail = first.get("msg", "")
            if label and detail:
                message = f"Validation failed: {label} - {detail}"
            elif detail:
                message = f"Validation failed: {detail}"
        return ErrorResponse(
            code="validation_error",
            message=message,
            exit_code=int(ExitCode.VALIDATION_ERROR),
        )
    if isinstance(exc, ValueError):
        return ErrorResponse(
            code="validation_error",
            message=str(exc),
            exit_code=int(ExitCode.VALIDATION_ERROR),
        )
    return ErrorResponse(
        code="runtime_error",
        message=str(exc) or type(exc).__name__,
        exit_code=int(ExitCode.RUNTIME_ERROR),
    )


def _exit_with_error(exc: Exception) -> NoReturn:
    error = _error_from_exception(exc)
    logger.debug("Command failed", exc_info=exc)
    typer.secho(f"Error: {error.message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=error.exit_code or int(ExitCode.RUNTIME_ERROR))


if __name__ == "__main__":
    app()
