"""Pipeline lifecycle orchestration: check, secrets, deploy, delete, webhooks."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from pipewright_core.assembler import AssemblyResult, PipelineAssembler
from pipewright_core.ports.lifecycle import (
    LifecycleErrorCode,
    LogSinkProtocol,
    build_check_completed_log,
    build_lifecycle_error,
    build_phase_log,
    build_pipeline_log,
    build_secrets_resolved_log,
    build_webhook_log,
)
from pipewright_core.ports.phase import PhasePluginProtocol, WebhookPhasePluginProtocol
from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_core.registry import PhaseRegistry
from pipewright_schemas.account import AccountConfig, artifact_bucket_name
from pipewright_schemas.context import PhaseContext, PipelineContext
from pipewright_schemas.events import PhaseEvent, PipelineEvent, WebhookEvent
from pipewright_schemas.logs import LogEntry
from pipewright_schemas.primitives import (
    BUILD_PHASE_TYPES,
    SOURCE_PHASE_TYPES,
    JsonValue,
    PhaseSecrets,
    RunId,
    Timestamp,
)
from pipewright_schemas.secrets import PhaseSecretQuestion, PhaseSecretValue
from pipewright_schemas.spec import PhaseDeclaration, PipelineCheckReport, PipelineSpec
from pipewright_schemas.stages import StageDescription
from pipewright_schemas.validation import validate_secret_values
from pipewright_schemas.version import CURRENT_SPEC_VERSION


def validate_pipeline_spec(spec: PipelineSpec) -> PipelineCheckReport:
    """Run the structural checks that do not depend on any phase plugin.

    Args:
        spec: Parsed pipeline specification.

    Returns:
        PipelineCheckReport: Top-level errors and structural errors per
        pipeline, in file order.
    """
    errors: list[str] = []
    pipeline_errors: dict[str, list[str]] = {}

    if not spec.name:
        errors.append("The top-level name field is required")

    if not spec.pipelines:
        errors.append(
            "You must specify at least one or more pipelines in the 'pipelines' field"
        )
        return PipelineCheckReport(errors=errors, pipeline_errors=pipeline_errors)

    for pipeline_name in spec.pipelines:
        pipeline_errors[pipeline_name] = _validate_pipeline_phases(
            pipeline_name, spec.get_phases(pipeline_name)
        )
    return PipelineCheckReport(errors=errors, pipeline_errors=pipeline_errors)


def _validate_pipeline_phases(
    pipeline_name: str, phases: list[PhaseDeclaration]
) -> list[str]:
    errors: list[str] = []
    if len(phases) < 2:
        errors.append(
            f"You must specify at least two phases in your pipeline {pipeline_name}: "
            "a source phase followed by a codebuild phase"
        )
    else:
        if phases[0].type not in SOURCE_PHASE_TYPES:
            errors.append(
                f"The first phase in your pipeline {pipeline_name} must be a "
                "'github' or 'codecommit' phase"
            )
        if phases[1].type not in BUILD_PHASE_TYPES:
            errors.append(
                f"The second phase in your pipeline {pipeline_name} must be a "
                "'codebuild' phase"
            )

    seen: set[str] = set()
    for phase in phases:
        if not phase.type:
            errors.append(
                f"You must specify a type for all the phases in your pipeline "
                f"{pipeline_name}"
            )
        if not phase.name:
            errors.append(
                f"You must specify a name for all the phases in your pipeline "
                f"{pipeline_name}"
            )
        elif phase.name in seen:
            errors.append(
                f"The phase name '{phase.name}' is used more than once in your "
                f"pipeline {pipeline_name}"
            )
        else:
            seen.add(phase.name)
    return errors


def check_phases(spec: PipelineSpec, registry: PhaseRegistry) -> dict[str, list[str]]:
    """Run every phase plugin's own parameter check.

    Args:
        spec: Parsed pipeline specification.
        registry: Phase plugin registry.

    Returns:
        dict[str, list[str]]: Errors keyed by pipeline, in declaration order.
    """
    pipeline_errors: dict[str, list[str]] = {}
    for pipeline_name in spec.pipelines or {}:
        errors: list[str] = []
        for phase in spec.get_phases(pipeline_name):
            if not phase.type or not phase.name:
                # Reported by the structural checks
                continue
            plugin = registry.resolve(phase.type)
            if plugin is None:
                errors.append(f"You specified an invalid phase type: '{phase.type}'")
                continue
            errors.extend(plugin.check(phase))
        pipeline_errors[pipeline_name] = errors
    return pipeline_errors


def build_pipeline_context(
    spec: PipelineSpec, pipeline_name: str, account_config: AccountConfig
) -> PipelineContext:
    """Build the context for one pipeline run.

    Args:
        spec: Checked pipeline specification.
        pipeline_name: Pipeline to operate on.
        account_config: Target account configuration.

    Returns:
        PipelineContext: Context with one phase context per declared phase
        and no secrets attached.

    Raises:
        LifecycleError: If the pipeline is unknown or the specification is
            structurally incomplete.
    """
    if not spec.has_pipeline(pipeline_name):
        raise build_lifecycle_error(
            LifecycleErrorCode.UNKNOWN_PIPELINE,
            f"The pipeline '{pipeline_name}' is not declared in the specification",
            pipeline=pipeline_name,
            valid_options=sorted(spec.pipelines or {}),
        )
    if not spec.name:
        raise build_lifecycle_error(
            LifecycleErrorCode.INVALID_SPECIFICATION,
            "The top-level name field is required",
            pipeline=pipeline_name,
        )

    bucket = artifact_bucket_name(account_config)
    phase_contexts: dict[str, PhaseContext] = {}
    for phase in spec.get_phases(pipeline_name):
        if not phase.type or not phase.name:
            raise build_lifecycle_error(
                LifecycleErrorCode.INVALID_SPECIFICATION,
                f"Every phase in pipeline {pipeline_name} needs a type and a name",
                pipeline=pipeline_name,
                phase=phase.name,
                phase_type=phase.type,
            )
        phase_contexts[phase.name] = PhaseContext(
            app_name=spec.name,
            pipeline_name=pipeline_name,
            phase_name=phase.name,
            phase_type=phase.type,
            artifact_bucket=bucket,
            account_config=account_config,
            declaration=phase,
        )

    return PipelineContext(
        version=spec.version if spec.version is not None else CURRENT_SPEC_VERSION,
        app_name=spec.name,
        pipeline_name=pipeline_name,
        account_config=account_config,
        artifact_bucket=bucket,
        phase_contexts=phase_contexts,
    )


def decode_secrets(blob: str) -> list[PhaseSecretValue]:
    """Decode a base64 JSON list of ``{phaseName, name, value}`` triples.

    Args:
        blob: Base64-encoded JSON document.

    Returns:
        list[PhaseSecretValue]: Decoded secret triples.

    Raises:
        LifecycleError: If the blob is not valid base64 JSON of the right shape.
    """
    try:
        decoded = base64.b64decode(blob, validate=True).decode("utf-8")
        return validate_secret_values(json.loads(decoded))
    except ValueError as exc:
        # binascii, unicode, json and pydantic errors are all ValueErrors
        raise build_lifecycle_error(
            LifecycleErrorCode.INVALID_SECRETS,
            "The --secrets value must be base64-encoded JSON of "
            "[{phaseName, name, value}] objects",
            reason=type(exc).__name__,
        ) from exc


def distribute_secrets(
    spec: PipelineSpec, pipeline_name: str, values: list[PhaseSecretValue]
) -> dict[str, PhaseSecrets]:
    """Group secret triples by the phase they belong to.

    Args:
        spec: Pipeline specification.
        pipeline_name: Pipeline being deployed.
        values: Decoded secret triples.

    Returns:
        dict[str, PhaseSecrets]: One entry per declared phase in declaration
        order; phases without triples map to an empty dict. Triples naming
        undeclared phases are ignored.
    """
    distributed: dict[str, PhaseSecrets] = {}
    for phase in spec.get_phases(pipeline_name):
        if not phase.name:
            continue
        distributed[phase.name] = {
            value.name: value.value for value in values if value.phase_name == phase.name
        }
    return distributed


def _now_timestamp() -> Timestamp:
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")


class PipelineLifecycle:
    """Drives phase plugins through check, secrets, deploy and delete."""

    def __init__(
        self,
        registry: PhaseRegistry,
        assembler: PipelineAssembler | None = None,
        log_sink: LogSinkProtocol | None = None,
        clock: Callable[[], Timestamp] | None = None,
        run_id: RunId | None = None,
    ) -> None:
        """Initialize the lifecycle orchestrator.

        Args:
            registry: Phase plugin registry.
            assembler: Pipeline assembler; required for pipeline deploy/delete.
            log_sink: Optional structured log sink.
            clock: Optional timestamp provider.
            run_id: Optional run identifier; a new one is generated otherwise.
        """
        self._registry = registry
        self._assembler = assembler
        self._log_sink = log_sink
        self._clock = clock or _now_timestamp
        self.run_id: RunId = run_id or uuid4()

    async def check(self, spec: PipelineSpec) -> PipelineCheckReport:
        """Validate the specification structurally and per phase.

        Args:
            spec: Parsed pipeline specification.

        Returns:
            PipelineCheckReport: Every accumulated error; structural errors
            come before phase errors within each pipeline.
        """
        structural = validate_pipeline_spec(spec)
        phase_errors = check_phases(spec, self._registry)
        pipeline_errors = {
            name: [*errors, *phase_errors.get(name, [])]
            for name, errors in structural.pipeline_errors.items()
        }
        report = PipelineCheckReport(
            errors=list(structural.errors), pipeline_errors=pipeline_errors
        )
        await self._emit_log(
            build_check_completed_log(
                self._clock(),
                self.run_id,
                len(report.all_errors()),
                list(pipeline_errors),
            )
        )
        return report

    def list_secret_questions(
        self, spec: PipelineSpec, pipeline_name: str
    ) -> list[PhaseSecretQuestion]:
        """Return every question the pipeline's phases would ask.

        Args:
            spec: Pipeline specification.
            pipeline_name: Pipeline to inspect.

        Returns:
            list[PhaseSecretQuestion]: Questions in declaration order.

        Raises:
            LifecycleError: If the pipeline or a phase type is unknown.
        """
        self._require_pipeline(spec, pipeline_name)
        questions: list[PhaseSecretQuestion] = []
        for phase in spec.get_phases(pipeline_name):
            plugin = self._require_plugin(pipeline_name, phase.name, phase.type)
            questions.extend(plugin.get_secret_questions(phase))
        return questions

    async def collect_secrets(
        self,
        spec: PipelineSpec,
        pipeline_name: str,
        prompter: SecretPrompterProtocol,
    ) -> dict[str, PhaseSecrets]:
        """Interactively collect secrets for every phase, one at a time.

        Args:
            spec: Pipeline specification.
            pipeline_name: Pipeline being deployed.
            prompter: Prompter used by plugins to reach a human.

        Returns:
            dict[str, PhaseSecrets]: Secrets keyed by phase name.

        Raises:
            LifecycleError: If the pipeline or a phase type is unknown.
        """
        self._require_pipeline(spec, pipeline_name)
        collected: dict[str, PhaseSecrets] = {}
        for phase in spec.get_phases(pipeline_name):
            plugin = self._require_plugin(pipeline_name, phase.name, phase.type)
            collected[phase.name or ""] = await plugin.get_secrets_for_phase(
                phase, prompter
            )
        await self._emit_secrets_resolved(pipeline_name, collected)
        return collected

    async def resolve_secrets(
        self, spec: PipelineSpec, pipeline_name: str, blob: str
    ) -> dict[str, PhaseSecrets]:
        """Resolve secrets from a pre-supplied base64 blob.

        Args:
            spec: Pipeline specification.
            pipeline_name: Pipeline being deployed.
            blob: Base64 JSON list of secret triples.

        Returns:
            dict[str, PhaseSecrets]: Secrets keyed by phase name.

        Raises:
            LifecycleError: If the blob is malformed.
        """
        self._require_pipeline(spec, pipeline_name)
        distributed = distribute_secrets(spec, pipeline_name, decode_secrets(blob))
        await self._emit_secrets_resolved(pipeline_name, distributed)
        return distributed

    async def deploy_phases(self, context: PipelineContext) -> list[StageDescription]:
        """Deploy every phase concurrently.

        Every plugin is resolved before any deploy starts. The first failing
        deploy rejects the call with its own exception; the other deploys are
        left to finish and their results are dropped.

        Args:
            context: Pipeline context with secrets attached.

        Returns:
            list[StageDescription]: Stages in declaration order.

        Raises:
            LifecycleError: If a phase type has no registered plugin.
        """
        planned = [
            (phase_context, self._require_phase_plugin(phase_context))
            for phase_context in context.ordered_phase_contexts()
        ]
        stages = await asyncio.gather(
            *(
                self._deploy_phase(phase_context, plugin)
                for phase_context, plugin in planned
            )
        )
        return list(stages)

    async def deploy_pipeline(
        self, context: PipelineContext, stages: list[StageDescription]
    ) -> AssemblyResult:
        """Create or update the provider pipeline from deployed stages.

        Args:
            context: Pipeline context.
            stages: Stages in declaration order.

        Returns:
            AssemblyResult: Resulting pipeline resource.
        """
        result = await self._require_assembler().create_or_update(context, stages)
        event = PipelineEvent.CREATED if result.created else PipelineEvent.UPDATED
        await self._emit_log(
            build_pipeline_log(
                self._clock(),
                self.run_id,
                context.pipeline_name,
                event,
                context.pipeline_resource_name,
            )
        )
        return result

    async def deploy(self, context: PipelineContext) -> AssemblyResult:
        """Deploy phases, reconcile the pipeline, then register webhooks.

        Args:
            context: Pipeline context with secrets attached.

        Returns:
            AssemblyResult: Resulting pipeline resource.
        """
        stages = await self.deploy_phases(context)
        result = await self.deploy_pipeline(context, stages)
        await self.add_webhooks(context)
        return result

    async def delete_phases(self, context: PipelineContext) -> list[bool]:
        """Delete every phase's resources concurrently.

        Args:
            context: Pipeline context.

        Returns:
            list[bool]: Plugin results in declaration order.

        Raises:
            LifecycleError: If a phase type has no registered plugin.
        """
        planned = [
            (phase_context, self._require_phase_plugin(phase_context))
            for phase_context in context.ordered_phase_contexts()
        ]
        results = await asyncio.gather(
            *(
                self._delete_phase(phase_context, plugin)
                for phase_context, plugin in planned
            )
        )
        return list(results)

    async def delete_pipeline(self, context: PipelineContext) -> bool:
        """Delete the provider pipeline and its service role.

        Args:
            context: Pipeline context.

        Returns:
            bool: True when a pipeline existed and was deleted.
        """
        deleted = await self._require_assembler().delete(context)
        if deleted:
            await self._emit_log(
                build_pipeline_log(
                    self._clock(),
                    self.run_id,
                    context.pipeline_name,
                    PipelineEvent.DELETED,
                    context.pipeline_resource_name,
                )
            )
        return deleted

    async def delete(self, context: PipelineContext) -> None:
        """Remove webhooks, delete the pipeline, then delete phase resources.

        Args:
            context: Pipeline context.
        """
        await self.remove_webhooks(context)
        await self.delete_pipeline(context)
        await self.delete_phases(context)

    async def add_webhooks(self, context: PipelineContext) -> list[str]:
        """Register webhooks for phases that support them, in order.

        Args:
            context: Pipeline context.

        Returns:
            list[str]: Phases whose webhook was created.
        """
        changed: list[str] = []
        for phase_context in context.ordered_phase_contexts():
            plugin = self._require_phase_plugin(phase_context)
            if not isinstance(plugin, WebhookPhasePluginProtocol):
                continue
            if await plugin.add_webhook(phase_context):
                changed.append(phase_context.phase_name)
                await self._emit_log(
                    build_webhook_log(
                        self._clock(),
                        self.run_id,
                        context.pipeline_name,
                        phase_context.phase_name,
                        WebhookEvent.ADDED,
                    )
                )
        return changed

    async def remove_webhooks(self, context: PipelineContext) -> list[str]:
        """Remove webhooks for phases that support them, in order.

        Args:
            context: Pipeline context.

        Returns:
            list[str]: Phases whose webhook was removed.
        """
        changed: list[str] = []
        for phase_context in context.ordered_phase_contexts():
            plugin = self._require_phase_plugin(phase_context)
            if not isinstance(plugin, WebhookPhasePluginProtocol):
                continue
            if await plugin.remove_webhook(phase_context):
                changed.append(phase_context.phase_name)
                await self._emit_log(
                    build_webhook_log(
                        self._clock(),
                        self.run_id,
                        context.pipeline_name,
                        phase_context.phase_name,
                        WebhookEvent.REMOVED,
                    )
                )
        return changed

    async def _deploy_phase(
        self, phase_context: PhaseContext, plugin: PhasePluginProtocol
    ) -> StageDescription:
        await self._emit_phase_log(
            phase_context, PhaseEvent.DEPLOY_STARTED, "Phase deploy started"
        )
        try:
            stage = await plugin.deploy_phase(phase_context)
        except Exception as exc:
            await self._emit_phase_log(
                phase_context,
                PhaseEvent.DEPLOY_FAILED,
                "Phase deploy failed",
                {"error": str(exc) or type(exc).__name__},
            )
            raise
        await self._emit_phase_log(
            phase_context,
            PhaseEvent.DEPLOYED,
            "Phase deployed",
            {"stage": stage.name, "actions": len(stage.actions)},
        )
        return stage

    async def _delete_phase(
        self, phase_context: PhaseContext, plugin: PhasePluginProtocol
    ) -> bool:
        try:
            deleted = await plugin.delete_phase(phase_context)
        except Exception as exc:
            await self._emit_phase_log(
                phase_context,
                PhaseEvent.DELETE_FAILED,
                "Phase delete failed",
                {"error": str(exc) or type(exc).__name__},
            )
            raise
        await self._emit_phase_log(phase_context, PhaseEvent.DELETED, "Phase deleted")
        return deleted

    def _require_pipeline(self, spec: PipelineSpec, pipeline_name: str) -> None:
        if not spec.has_pipeline(pipeline_name):
            raise build_lifecycle_error(
                LifecycleErrorCode.UNKNOWN_PIPELINE,
                f"The pipeline '{pipeline_name}' is not declared in the "
                "specification",
                pipeline=pipeline_name,
                valid_options=sorted(spec.pipelines or {}),
            )

    def _require_phase_plugin(self, phase_context: PhaseContext) -> PhasePluginProtocol:
        return self._require_plugin(
            phase_context.pipeline_name,
            phase_context.phase_name,
            phase_context.phase_type,
        )

    def _require_plugin(
        self, pipeline_name: str, phase_name: str | None, phase_type: str | None
    ) -> PhasePluginProtocol:
        plugin = self._registry.resolve(phase_type)
        if plugin is None:
            raise build_lifecycle_error(
                LifecycleErrorCode.UNSUPPORTED_PHASE_TYPE,
                f"Invalid or unsupported pipeline phase type {phase_type}",
                pipeline=pipeline_name,
                phase=phase_name,
                phase_type=phase_type,
                valid_options=self._registry.list_phase_types(),
            )
        return plugin

    def _require_assembler(self) -> PipelineAssembler:
        if self._assembler is None:
            raise ValueError("A pipeline assembler is required for this operation")
        return self._assembler

    async def _emit_secrets_resolved(
        self, pipeline_name: str, secrets: dict[str, PhaseSecrets]
    ) -> None:
        await self._emit_log(
            build_secrets_resolved_log(
                self._clock(),
                self.run_id,
                pipeline_name,
                {phase: sorted(values) for phase, values in secrets.items()},
            )
        )

    async def _emit_phase_log(
        self,
        phase_context: PhaseContext,
        event: PhaseEvent,
        message: str,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        await self._emit_log(
            build_phase_log(
                self._clock(),
                self.run_id,
                phase_context.pipeline_name,
                phase_context.phase_name,
                event,
                message,
                data={"phase_type": phase_context.phase_type, **(data or {})},
            )
        )

    async def _emit_log(self, entry: LogEntry) -> None:
        if self._log_sink is None:
            return
        await self._log_sink.emit_log(entry)
