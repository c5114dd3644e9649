"""
Adapters package for the Transcript Service.

Wraps the upstream transcript provider. Adapters encapsulate transport
concerns (outbound proxy, worker threads) and raise the provider's own
errors; translating them into the shared taxonomy is the domain layer's job.
"""

from .transcript_dispatcher import TranscriptDispatcher

__all__ = [
    "TranscriptDispatcher",
]
