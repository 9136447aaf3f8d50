"""Fallback entrypoint for `python -m lokal`.

Routes to the lokal_cli Typer application.
"""

from lokal_cli.main import app

if __name__ == "__main__":
    app()
