"""Fallback entrypoint for `python -m pipewright`.

Routes to the pipewright_cli Typer application.
"""

from pipewright_cli.main import app

if __name__ == "__main__":
    app(prog_name="pipewright")
