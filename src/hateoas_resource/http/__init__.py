"""HTTP - fetcher and middleware chain."""

from .fetcher import FetchMiddleware, Fetcher, NextHandler, compile_origin, problem_from_response

__all__ = ["Fetcher", "FetchMiddleware", "NextHandler", "compile_origin", "problem_from_response"]
