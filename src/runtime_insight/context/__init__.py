"""Collaborators building runtime contexts for the engine."""

from .builder import ContextBuilder
from .traceback_parser import TracebackParser

__all__ = ["ContextBuilder", "TracebackParser"]
