"""Authentication strategies."""

from quill_auth.strategies.bearer import BearerStrategy

__all__ = ["BearerStrategy"]
