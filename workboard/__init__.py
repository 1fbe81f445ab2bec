"""Workboard: workspaces, members and task boards over a FastAPI API."""

__version__ = "0.1.0"
