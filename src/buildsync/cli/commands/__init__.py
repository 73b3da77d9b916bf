"""CLI command modules for buildsync."""

from . import broadcast, offer, project, wall
from .login import login, logout
from .watch import watch

__all__ = ["broadcast", "login", "logout", "offer", "project", "wall", "watch"]
