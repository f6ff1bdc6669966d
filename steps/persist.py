"""Profile persistence step."""

from local_storage.profile_store import ProfileStore, candidate_key
from schemas.candidate import EnrichedProfile, Snippets


def persist_profile(
    store: ProfileStore,
    candidate_id: str,
    enriched: EnrichedProfile,
    snippets: Snippets,
    approved: bool,
) -> str:
    """Upsert the reviewed profile under the candidate key.

    Returns:
        The store key written
    """
    key = candidate_key(candidate_id)
    store.upsert(
        key,
        {
            "enriched": enriched.to_wire(),
            "snippets": snippets.to_wire(),
            "approved": approved,
            "candidateId": candidate_id,
        },
    )
    return key
