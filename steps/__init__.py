"""Pipeline steps of the resume review workflow, in execution order."""

from .approval import human_approval
from .enrich import EnrichmentTools, agent_enrich_profile, find_gaps, merge_search_urls
from .extract import extract_and_normalize
from .ingest import ingest_sources
from .notify import notify_teams
from .persist import persist_profile
from .snippets import generate_snippets
from .validate import validate_input

__all__ = [
    "EnrichmentTools",
    "agent_enrich_profile",
    "extract_and_normalize",
    "find_gaps",
    "generate_snippets",
    "human_approval",
    "ingest_sources",
    "merge_search_urls",
    "notify_teams",
    "persist_profile",
    "validate_input",
]
