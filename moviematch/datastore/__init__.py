"""
Durable store adapter.

Provides:
- Datastore: engine and transactional sessions
- Repositories: conditional create, atomic increment, point reads, counts
"""

from moviematch.datastore.engine import Datastore
from moviematch.datastore.errors import AlreadyExistsError
from moviematch.datastore.repositories import (
    CacheEntryRepository,
    MembershipRepository,
    RoomRepository,
    StoredCacheEntry,
    VoteReceiptRepository,
    VoteTallyRepository,
)

__all__ = [
    "Datastore",
    "AlreadyExistsError",
    "CacheEntryRepository",
    "MembershipRepository",
    "RoomRepository",
    "StoredCacheEntry",
    "VoteReceiptRepository",
    "VoteTallyRepository",
]
