"""Terminal prompts backed by Typer."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from pipewright_core.ports.prompt import SecretPrompterProtocol
from pipewright_schemas.secrets import PhaseSecretQuestion


class TyperSecretPrompter(SecretPrompterProtocol):
    """Asks secret questions on the terminal without echoing answers."""

    async def prompt_secrets(
        self, questions: list[PhaseSecretQuestion]
    ) -> dict[str, str]:
        """Ask every question; blank answers are left out."""
        return await asyncio.to_thread(self._ask, questions)

    def _ask(self, questions: list[PhaseSecretQuestion]) -> dict[str, str]:
        answers: dict[str, str] = {}
        for question in questions:
            value = typer.prompt(
                question.message, default="", show_default=False, hide_input=True
            )
            if value:
                answers[question.name] = value
        return answers


def prompt_pipeline(pipeline_names: list[str]) -> str:
    """Ask which pipeline to operate on; a single pipeline is chosen silently."""
    if len(pipeline_names) == 1:
        return pipeline_names[0]
    choices = ", ".join(pipeline_names)
    return typer.prompt(f"Which pipeline do you want to use? ({choices})")


def prompt_account_name() -> str:
    """Ask for the target account name."""
    return typer.prompt("Which account name do you want to use?")


def prompt_account_configs_path() -> Path:
    """Ask for the directory holding account config files."""
    value = typer.prompt("Please enter the path to the directory of account configs")
    return Path(value).expanduser()
