"""Shared fixtures for quill-auth tests."""

import pytest


@pytest.fixture(autouse=True)
def _quill_test_env(monkeypatch):
    """Default all auth tests to test mode with no secret from the environment."""
    monkeypatch.setenv("QUILL_ENV", "test")
    monkeypatch.delenv("QUILL_JWT_SECRET", raising=False)
