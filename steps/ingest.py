"""Source ingestion step."""

import logging

from integrations.base import SourceFetcher
from schemas.candidate import CandidateInput, RawSources

from .fixtures import MOCK_GITHUB_README, MOCK_LINKEDIN_HTML, MOCK_RESUME_TEXT

logger = logging.getLogger(__name__)


async def ingest_sources(
    candidate: CandidateInput,
    mock_sources: bool = True,
    fetcher: SourceFetcher | None = None,
) -> RawSources:
    """Gather the raw text of each source channel.

    With mocked sources all three channels get fixture text whatever URLs
    were supplied. Otherwise only channels with a URL are fetched and the
    rest stay None.

    Args:
        candidate: Validated input
        mock_sources: Return fixtures instead of fetching
        fetcher: Source fetcher used in real mode

    Returns:
        Raw source blobs

    Raises:
        ExternalOperationError: If a fetch fails
    """
    if mock_sources:
        logger.info("[mock] Using fixture sources for %s", candidate.candidate_id)
        return RawSources(
            resume_text=MOCK_RESUME_TEXT,
            linked_in_html=MOCK_LINKEDIN_HTML,
            github_readme=MOCK_GITHUB_README,
        )

    if fetcher is None:
        raise ValueError("A source fetcher is required when sources are not mocked")

    resume_text = await fetcher.fetch_resume(candidate.upload_url) if candidate.upload_url else None
    linked_in_html = await fetcher.fetch_linkedin(candidate.linked_in_url) if candidate.linked_in_url else None
    github_readme = await fetcher.fetch_github_readme(candidate.github_url) if candidate.github_url else None

    return RawSources(
        resume_text=resume_text,
        linked_in_html=linked_in_html,
        github_readme=github_readme,
    )


def summarize_sources(raw: RawSources) -> dict[str, bool]:
    return {
        "hasResume": bool(raw.resume_text),
        "hasLinkedIn": bool(raw.linked_in_html),
        "hasGitHub": bool(raw.github_readme),
    }
