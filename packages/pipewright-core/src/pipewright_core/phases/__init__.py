"""Built-in phase plugins."""

from __future__ import annotations

from pipewright_core.phases.approval import ApprovalPhase
from pipewright_core.phases.codebuild import CodeBuildPhase
from pipewright_core.phases.codecommit import CodeCommitPhase
from pipewright_core.phases.github import GithubPhase

__all__ = ["ApprovalPhase", "CodeBuildPhase", "CodeCommitPhase", "GithubPhase"]
