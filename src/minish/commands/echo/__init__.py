"""The echo command."""

from .echo import EchoCommand

__all__ = ["EchoCommand"]
