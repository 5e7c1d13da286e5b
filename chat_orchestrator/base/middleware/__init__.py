"""Stream middleware: base hooks, chain and reasoning extraction."""

from .chain import MiddlewareChain
from .middleware_base import Middleware
from .reasoning_extraction import ReasoningExtractionMiddleware

__all__ = ["Middleware", "MiddlewareChain", "ReasoningExtractionMiddleware"]
