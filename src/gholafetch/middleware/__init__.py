"""Middleware records and the chain that applies them."""

from gholafetch.middleware.base import (
    ErrorHook,
    FunctionMiddleware,
    Middleware,
    PostHook,
    PreHook,
    RetryFunction,
    middleware,
)
from gholafetch.middleware.chain import MiddlewareChain, as_middleware

__all__ = [
    "ErrorHook",
    "FunctionMiddleware",
    "Middleware",
    "MiddlewareChain",
    "PostHook",
    "PreHook",
    "RetryFunction",
    "as_middleware",
    "middleware",
]
