"""Infrastructure interface exports."""

from .token_provider import TokenProvider

__all__ = ["TokenProvider"]
