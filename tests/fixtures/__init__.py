"""Shared pytest fixtures for data-access, HTTP and CLI tests."""

from .core import *  # noqa: F401,F403
