"""Unit tests for the built-in phase plugins and the registry."""

import pytest

from pipewright_core.lifecycle import build_pipeline_context
from pipewright_core.phases import (
    ApprovalPhase,
    CodeBuildPhase,
    CodeCommitPhase,
    GithubPhase,
)
from pipewright_core.phases.codebuild import (
    build_project_name,
    build_role_name,
    expand_build_image,
)
from pipewright_core.ports.lifecycle import LifecycleError, LifecycleErrorCode
from pipewright_core.ports.phase import WebhookPhasePluginProtocol
from pipewright_core.registry import PhaseRegistry, build_default_registry
from pipewright_schemas.context import PhaseContext
from tests.helpers.fakes import (
    FakeBuildProjectApi,
    FakePipelineApi,
    FakeRoleApi,
    build_fake_providers,
    make_account,
    make_spec,
)


def _phase_context(phases: list[dict], phase_name: str) -> PhaseContext:
    spec = make_spec({"main": {"phases": phases}})
    context = build_pipeline_context(spec, "main", make_account())
    return context.phase_contexts[phase_name]


def _build_context(**params: object) -> PhaseContext:
    build = {"type": "codebuild", "name": "Build", "build_image": "img:1"}
    build.update(params)
    return _phase_context(
        [{"type": "codecommit", "name": "Source", "repo": "r"}, build], "Build"
    )


def test_default_registry_lists_builtin_types() -> None:
    """The default registry knows every shipped phase type."""
    registry = build_default_registry(build_fake_providers())

    assert registry.list_phase_types() == [
        "approval",
        "codebuild",
        "codecommit",
        "github",
    ]
    assert registry.resolve("lambda") is None
    assert registry.resolve(None) is None


def test_registry_rejects_duplicate_types() -> None:
    """A phase type can only be registered once."""
    registry = PhaseRegistry()
    registry.register("approval", ApprovalPhase())

    with pytest.raises(ValueError, match="already registered"):
        registry.register("approval", ApprovalPhase())


def test_only_github_supports_webhooks() -> None:
    """Webhook support is detected structurally."""
    assert isinstance(GithubPhase(FakePipelineApi()), WebhookPhasePluginProtocol)
    assert not isinstance(CodeCommitPhase(), WebhookPhasePluginProtocol)
    assert not isinstance(ApprovalPhase(), WebhookPhasePluginProtocol)


@pytest.mark.anyio
async def test_github_stage() -> None:
    """The GitHub stage carries the repo and token and emits the source."""
    spec = make_spec()
    context = build_pipeline_context(spec, "main", make_account()).with_secrets(
        {"Source": {"githubAccessToken": "t0k"}}
    )

    stage = await GithubPhase(FakePipelineApi()).deploy_phase(
        context.phase_contexts["Source"]
    )

    action = stage.actions[0]
    assert action.name == "Source"
    assert action.action_type_id.owner == "ThirdParty"
    assert action.configuration == {
        "Owner": "acme",
        "Repo": "widgets",
        "Branch": "main",
        "OAuthToken": "t0k",
        "PollForSourceChanges": "false",
    }
    assert [artifact.name for artifact in action.output_artifacts] == [
        "Output_Source"
    ]


@pytest.mark.anyio
async def test_github_webhook_definition() -> None:
    """The webhook targets the source action and filters on the branch."""
    webhooks = FakePipelineApi()
    context = _phase_context(
        [
            {"type": "github", "name": "Source", "owner": "acme", "repo": "widgets"},
            {"type": "codebuild", "name": "Build", "build_image": "img"},
        ],
        "Source",
    )

    assert await GithubPhase(webhooks).add_webhook(context) is True

    definition = webhooks.webhooks["myapp-main-webhook"]
    assert definition.target_pipeline == "myapp-main"
    assert definition.target_action == "Source"
    assert len(definition.secret_token.get_secret_value()) == 64
    assert definition.filters[0].match_equals == "refs/heads/{Branch}"
    assert webhooks.calls == [
        "put_webhook:myapp-main-webhook",
        "register_webhook:myapp-main-webhook",
    ]


@pytest.mark.anyio
async def test_codecommit_stage() -> None:
    """The CodeCommit stage names the repository and branch."""
    context = _phase_context(
        [
            {"type": "codecommit", "name": "Source", "repo": "r", "branch": "dev"},
            {"type": "codebuild", "name": "Build", "build_image": "img"},
        ],
        "Source",
    )

    stage = await CodeCommitPhase().deploy_phase(context)

    assert stage.actions[0].configuration == {
        "RepositoryName": "r",
        "BranchName": "dev",
    }


@pytest.mark.anyio
async def test_approval_stage() -> None:
    """Approval stages use the manual approval provider."""
    context = _phase_context(
        [
            {"type": "codecommit", "name": "Source", "repo": "r"},
            {"type": "codebuild", "name": "Build", "build_image": "img"},
            {"type": "approval", "name": "Approve"},
        ],
        "Approve",
    )

    stage = await ApprovalPhase().deploy_phase(context)

    action = stage.actions[0]
    assert action.action_type_id.category == "Approval"
    assert action.action_type_id.provider == "Manual"
    assert action.input_artifacts == []


def test_approval_rejects_parameters() -> None:
    """Approval phases accept only type and name."""
    spec = make_spec(
        {"main": {"phases": [{"type": "approval", "name": "Approve", "x": 1}]}}
    )

    errors = ApprovalPhase().check(spec.get_phases("main")[0])

    assert errors == [
        "Approval - Invalid property 'x' specified. Make sure to check your spelling!"
    ]


@pytest.mark.anyio
async def test_codebuild_creates_then_updates_project() -> None:
    """The first deploy creates the project; later deploys update it."""
    projects = FakeBuildProjectApi()
    roles = FakeRoleApi()
    phase = CodeBuildPhase(projects, roles)
    context = _build_context(environment_variables={"DEBUG": True, "N": 3})

    stage = await phase.deploy_phase(context)
    await phase.deploy_phase(context)

    assert projects.calls == [
        "create_project:myapp-main-Build",
        "update_project:myapp-main-Build",
    ]
    spec = projects.projects["myapp-main-Build"]
    assert spec.environment_variables == {"DEBUG": "True", "N": "3"}
    assert spec.service_role_arn.endswith(
        ":role/myapp-main-Build-PipewrightBuildPhase"
    )
    assert spec.cache.type == "no-cache"
    action = stage.actions[0]
    assert action.configuration == {"ProjectName": "myapp-main-Build"}
    assert [artifact.name for artifact in action.input_artifacts] == [
        "Output_Source"
    ]
    assert [artifact.name for artifact in action.output_artifacts] == [
        "Output_Build"
    ]


@pytest.mark.anyio
async def test_codebuild_s3_cache_location() -> None:
    """S3 caches live under the artifact bucket."""
    projects = FakeBuildProjectApi()
    context = _build_context(cache="s3")

    await CodeBuildPhase(projects, FakeRoleApi()).deploy_phase(context)

    cache = projects.projects["myapp-main-Build"].cache
    assert cache.type == "s3"
    assert cache.location == (
        "codepipeline-us-west-2-123456789012/caches/myapp/main/Build/codeBuildCache"
    )


@pytest.mark.anyio
async def test_codebuild_uses_existing_role() -> None:
    """A declared build_role is used instead of a generated one."""
    roles = FakeRoleApi(existing=["custom-role"])
    projects = FakeBuildProjectApi()
    context = _build_context(build_role="custom-role")

    await CodeBuildPhase(projects, roles).deploy_phase(context)

    assert roles.calls == []
    assert projects.projects["myapp-main-Build"].service_role_arn.endswith(
        ":role/custom-role"
    )


@pytest.mark.anyio
async def test_codebuild_missing_role_fails() -> None:
    """A declared build_role that does not exist fails the phase."""
    context = _build_context(build_role="missing-role")

    with pytest.raises(LifecycleError) as exc_info:
        await CodeBuildPhase(FakeBuildProjectApi(), FakeRoleApi()).deploy_phase(
            context
        )

    info = exc_info.value.info
    assert info.code == LifecycleErrorCode.PHASE_FAILED
    assert info.message == "No role named missing-role exists in this account"


@pytest.mark.anyio
async def test_codebuild_delete_tolerates_missing_resources() -> None:
    """Deleting twice succeeds both times."""
    projects = FakeBuildProjectApi()
    roles = FakeRoleApi()
    phase = CodeBuildPhase(projects, roles)
    context = _build_context()
    await phase.deploy_phase(context)

    assert await phase.delete_phase(context) is True
    assert await phase.delete_phase(context) is True
    assert projects.projects == {}
    assert roles.roles == {}


def test_codebuild_names() -> None:
    """Project and role names are scoped to the app and pipeline."""
    context = _build_context()

    assert build_project_name(context) == "myapp-main-Build"
    assert build_role_name(context) == "myapp-main-Build-PipewrightBuildPhase"


def test_expand_build_image() -> None:
    """The <account> prefix expands to the account's registry."""
    account = make_account()

    assert expand_build_image("<account>/builder:latest", account) == (
        "123456789012.dkr.ecr.us-west-2.amazonaws.com/builder:latest"
    )
    assert expand_build_image("aws/codebuild/standard:7.0", account) == (
        "aws/codebuild/standard:7.0"
    )
