"""Advisory (generative advice and session summary) service boundary."""

from .client import AdviceResponse, AdvisoryService, HttpAdvisoryClient, ServiceUnavailable

__all__ = [
    "AdviceResponse",
    "AdvisoryService",
    "HttpAdvisoryClient",
    "ServiceUnavailable",
]
