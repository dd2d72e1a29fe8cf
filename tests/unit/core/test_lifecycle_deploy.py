"""Unit tests for deploy, delete and webhook orchestration."""

import pytest

from pipewright_core.assembler import PipelineAssembler
from pipewright_core.lifecycle import PipelineLifecycle, build_pipeline_context
from pipewright_core.ports.lifecycle import LifecycleError, LifecycleErrorCode
from pipewright_core.ports.provider import ProviderBundle, ProviderError
from pipewright_core.registry import PhaseRegistry, build_default_registry
from pipewright_schemas.context import PipelineContext
from tests.helpers.fakes import (
    RUN_ID,
    FakeAccountApi,
    FakeBuildProjectApi,
    FakePipelineApi,
    FakeRoleApi,
    RecordingLogSink,
    ScriptedPhase,
    SuspendingRoleApi,
    build_fake_providers,
    fixed_clock,
    make_account,
    make_spec,
)


def _scripted_lifecycle(
    completed: list[str],
    *,
    delays: dict[str, float] | None = None,
    fail_on: set[str] | None = None,
    fail_delete_on: set[str] | None = None,
    log_sink: RecordingLogSink | None = None,
) -> tuple[PipelineLifecycle, FakePipelineApi, ScriptedPhase]:
    registry = PhaseRegistry()
    plugin = ScriptedPhase(
        "github",
        completed,
        delays=delays,
        fail_on=fail_on,
        fail_delete_on=fail_delete_on,
    )
    registry.register("github", plugin)
    registry.register("codebuild", plugin)
    pipelines = FakePipelineApi()
    lifecycle = PipelineLifecycle(
        registry,
        PipelineAssembler(pipelines, FakeRoleApi()),
        log_sink=log_sink,
        clock=fixed_clock,
        run_id=RUN_ID,
    )
    return lifecycle, pipelines, plugin


def _context() -> PipelineContext:
    return build_pipeline_context(make_spec(), "main", make_account())


@pytest.mark.anyio
async def test_stages_keep_declaration_order() -> None:
    """Stages follow declaration order even when a later phase finishes first."""
    completed: list[str] = []
    lifecycle, pipelines, _ = _scripted_lifecycle(
        completed, delays={"Source": 0.05}
    )

    await lifecycle.deploy(_context())

    assert completed == ["Build", "Source"]
    declaration = pipelines.pipelines["myapp-main"]
    assert [stage.name for stage in declaration.stages] == ["Source", "Build"]


@pytest.mark.anyio
async def test_failed_phase_skips_pipeline_assembly() -> None:
    """A failing phase rejects the deploy before the pipeline is touched."""
    completed: list[str] = []
    sink = RecordingLogSink()
    lifecycle, pipelines, _ = _scripted_lifecycle(
        completed, fail_on={"Build"}, log_sink=sink
    )

    with pytest.raises(ProviderError, match="boom"):
        await lifecycle.deploy(_context())

    assert pipelines.calls == []
    assert "phase_deploy_failed" in sink.events()
    assert "pipeline_created" not in sink.events()


@pytest.mark.anyio
async def test_deploy_creates_then_updates() -> None:
    """Exactly one of create or update is issued per deploy."""
    lifecycle, pipelines, _ = _scripted_lifecycle([])

    first = await lifecycle.deploy(_context())
    second = await lifecycle.deploy(_context())

    assert first.created is True
    assert second.created is False
    mutations = [
        call for call in pipelines.calls if not call.startswith("get_pipeline")
    ]
    assert mutations == [
        "create_pipeline:myapp-main",
        "update_pipeline:myapp-main",
    ]


@pytest.mark.anyio
async def test_deploy_passes_secrets_to_phases() -> None:
    """Each phase sees only its own secrets."""
    lifecycle, _, plugin = _scripted_lifecycle([])
    context = _context().with_secrets({"Source": {"githubAccessToken": "t0k"}})

    await lifecycle.deploy_phases(context)

    assert plugin.seen_secrets == {
        "Source": {"githubAccessToken": "t0k"},
        "Build": {},
    }


@pytest.mark.anyio
async def test_unknown_phase_type_fails_before_any_deploy() -> None:
    """Every plugin is resolved before deploys start."""
    completed: list[str] = []
    lifecycle, pipelines, _ = _scripted_lifecycle(completed)
    spec = make_spec(
        {
            "main": {
                "phases": [
                    {"type": "github", "name": "Source"},
                    {"type": "codebuild", "name": "Build"},
                    {"type": "lambda", "name": "Fn"},
                ]
            }
        }
    )
    context = build_pipeline_context(spec, "main", make_account())

    with pytest.raises(LifecycleError) as exc_info:
        await lifecycle.deploy(context)

    assert exc_info.value.info.code == LifecycleErrorCode.UNSUPPORTED_PHASE_TYPE
    assert exc_info.value.info.message == (
        "Invalid or unsupported pipeline phase type lambda"
    )
    assert completed == []
    assert pipelines.calls == []


@pytest.mark.anyio
async def test_deploy_emits_phase_and_pipeline_events() -> None:
    """Deploy logs each phase and the pipeline creation."""
    sink = RecordingLogSink()
    lifecycle, _, _ = _scripted_lifecycle([], log_sink=sink)

    await lifecycle.deploy(_context())

    events = sink.events()
    assert events.count("phase_deploy_started") == 2
    assert events.count("phase_deployed") == 2
    assert events[-1] == "pipeline_created"
    assert all(entry.run_id == RUN_ID for entry in sink.entries)


@pytest.mark.anyio
async def test_deploy_pipeline_requires_assembler() -> None:
    """Pipeline operations need an assembler."""
    lifecycle = PipelineLifecycle(PhaseRegistry())

    with pytest.raises(ValueError, match="assembler"):
        await lifecycle.deploy_pipeline(_context(), [])


@pytest.mark.anyio
async def test_delete_removes_pipeline_and_phases() -> None:
    """Delete removes the pipeline then every phase's resources."""
    completed: list[str] = []
    sink = RecordingLogSink()
    lifecycle, pipelines, plugin = _scripted_lifecycle(completed, log_sink=sink)
    await lifecycle.deploy(_context())

    await lifecycle.delete(_context())

    assert pipelines.pipelines == {}
    assert sorted(plugin.deleted) == ["Build", "Source"]
    assert "pipeline_deleted" in sink.events()
    assert sink.events().count("phase_deleted") == 2


@pytest.mark.anyio
async def test_delete_is_idempotent() -> None:
    """Deleting a pipeline that does not exist succeeds."""
    sink = RecordingLogSink()
    lifecycle, _, _ = _scripted_lifecycle([], log_sink=sink)

    assert await lifecycle.delete_pipeline(_context()) is False
    await lifecycle.delete(_context())

    assert "pipeline_deleted" not in sink.events()


@pytest.mark.anyio
async def test_full_deploy_with_builtin_phases() -> None:
    """The built-in plugins provision a project, roles and a webhook."""
    providers = build_fake_providers()
    sink = RecordingLogSink()
    lifecycle = PipelineLifecycle(
        build_default_registry(providers),
        PipelineAssembler(providers.pipelines, providers.roles),
        log_sink=sink,
        clock=fixed_clock,
        run_id=RUN_ID,
    )
    context = _context().with_secrets({"Source": {"githubAccessToken": "t0k"}})

    result = await lifecycle.deploy(context)

    assert result.created is True
    assert result.resource.name == "myapp-main"
    assert providers.build_projects.projects["myapp-main-Build"].image == (
        "aws/codebuild/standard:7.0"
    )
    assert set(providers.roles.roles) == {
        "myapp-main-Build-PipewrightBuildPhase",
        "myapp-main-PipewrightPipeline",
    }
    assert "myapp-main-webhook" in providers.webhooks.registered
    assert sink.events()[-1] == "webhook_added"


@pytest.mark.anyio
async def test_webhooks_are_added_and_removed_once() -> None:
    """Adding or removing a webhook twice only changes state once."""
    providers = build_fake_providers()
    lifecycle = PipelineLifecycle(build_default_registry(providers))
    context = _context()

    assert await lifecycle.add_webhooks(context) == ["Source"]
    assert await lifecycle.add_webhooks(context) == []
    assert await lifecycle.remove_webhooks(context) == ["Source"]
    assert await lifecycle.remove_webhooks(context) == []
    assert providers.webhooks.webhooks == {}


@pytest.mark.anyio
async def test_phases_without_webhook_support_are_skipped() -> None:
    """Plugins lacking webhook hooks are ignored by webhook operations."""
    lifecycle, pipelines, _ = _scripted_lifecycle([])

    assert await lifecycle.add_webhooks(_context()) == []
    assert await lifecycle.remove_webhooks(_context()) == []
    assert pipelines.webhooks == {}


@pytest.mark.anyio
async def test_failed_phase_delete_is_logged_and_raised() -> None:
    """A phase that cannot be deleted surfaces its error after the pipeline goes."""
    sink = RecordingLogSink()
    lifecycle, pipelines, _ = _scripted_lifecycle(
        [], fail_delete_on={"Build"}, log_sink=sink
    )
    await lifecycle.deploy(_context())

    with pytest.raises(ProviderError, match="denied"):
        await lifecycle.delete(_context())

    assert pipelines.pipelines == {}
    assert "phase_delete_failed" in sink.events()


@pytest.mark.anyio
async def test_concurrent_codebuild_phases_get_their_own_roles() -> None:
    """Two build phases deploying together never contend for one role."""
    pipelines = FakePipelineApi()
    roles = SuspendingRoleApi()
    providers = ProviderBundle(
        pipelines=pipelines,
        webhooks=pipelines,
        build_projects=FakeBuildProjectApi(),
        roles=roles,
        account=FakeAccountApi(),
    )
    lifecycle = PipelineLifecycle(
        build_default_registry(providers),
        PipelineAssembler(pipelines, roles),
    )
    spec = make_spec(
        {
            "main": {
                "phases": [
                    {"type": "codecommit", "name": "Source", "repo": "widgets"},
                    {"type": "codebuild", "name": "Build", "build_image": "img"},
                    {"type": "codebuild", "name": "Test", "build_image": "img"},
                ]
            }
        }
    )
    context = build_pipeline_context(spec, "main", make_account())

    stages = await lifecycle.deploy_phases(context)
    await lifecycle.delete_phases(context)

    assert [stage.name for stage in stages] == ["Source", "Build", "Test"]
    assert sorted(call for call in roles.calls if call.startswith("put_role")) == [
        "put_role:myapp-main-Build-PipewrightBuildPhase",
        "put_role:myapp-main-Test-PipewrightBuildPhase",
    ]
    assert roles.roles == {}
