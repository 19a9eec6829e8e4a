# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .auth import AuthenticateStage, AuthorizeStage
from .body_guard import BodyGuard
from .context import Outcome, RequestContext, success
from .pipeline import Continue, Halt, Pipeline
from .rate_limit import (
    InMemoryBucketStore,
    RateLimiter,
    RateLimitStage,
    RedisBucketStore,
    api_policy,
    login_policy,
)
from .request_logger import RequestLogger
from .sanitizer import RequestSanitizer, SanitizeStage

__all__ = [
    "AuthenticateStage",
    "AuthorizeStage",
    "BodyGuard",
    "Continue",
    "Halt",
    "InMemoryBucketStore",
    "Outcome",
    "Pipeline",
    "RateLimitStage",
    "RateLimiter",
    "RedisBucketStore",
    "RequestContext",
    "RequestLogger",
    "RequestSanitizer",
    "SanitizeStage",
    "api_policy",
    "login_policy",
    "success",
]
