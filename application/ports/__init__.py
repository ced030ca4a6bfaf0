"""
Port interfaces (Protocols) for the microcycle planner.

This package defines the interface contracts that infrastructure
implementations must satisfy. Using Protocols enables:
- Clean separation of concerns
- Easy testing with fake implementations
- Dependency inversion (depend on abstractions, not concretions)
"""

from application.ports.completion_service import ChatMessage, CompletionService

__all__ = [
    "ChatMessage",
    "CompletionService",
]
