"""Entry point for ``python -m mutineer.worker``."""

from .main import app

app(prog_name="mutineer-worker")
