"""Test configuration shared by every test module."""

import os

# must be set before bookshelf loads its configuration
os.environ["APP_ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("DATABASE_CONNECTION", "sqlite://")

from tests.fixtures import *  # noqa: E402,F401,F403
