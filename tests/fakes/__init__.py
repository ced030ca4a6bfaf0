"""
Fake implementations for testing.

This package provides in-memory fakes of the completion service interface
for fast, isolated testing without network access.
"""

from tests.fakes.completion_client import (
    FailingCompletionClient,
    FakeCompletionClient,
    SlowCompletionClient,
)

__all__ = [
    "FakeCompletionClient",
    "FailingCompletionClient",
    "SlowCompletionClient",
]
