"""Local storage module.

Durable storage for approved candidate profiles.
"""

from local_storage.profile_store import ProfileStore, candidate_key

__all__ = ["ProfileStore", "candidate_key"]
