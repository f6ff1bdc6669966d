"""Agent enrichment step.

Runs the enrichment tools in order and surfaces each call on the progress
stream:

1. extractCanonicalProfile - structured profile from the extracted text
2. schemaCheck - array defaults and experience entry checks
3. webSearch - only when the profile has gaps; merges result URLs
4. scoreWithRubric - score, risk flags and rationale against the job
"""

import logging
from dataclasses import dataclass, field

from orchestrator.stream import ProgressEmitter
from schemas.candidate import (
    CanonicalProfile,
    EnrichedProfile,
    ExtractedData,
    JobContext,
    SearchResult,
)
from schemas.progress import ProgressEvent, StepName, ToolCall
from tools import (
    BaseTool,
    ProfileExtractorTool,
    SchemaCheckTool,
    ScoreRubricTool,
    WebSearchTool,
)

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentTools:
    """The tools the enrichment step calls."""

    extractor: BaseTool = field(default_factory=ProfileExtractorTool)
    schema: BaseTool = field(default_factory=SchemaCheckTool)
    search: BaseTool = field(default_factory=WebSearchTool)
    scorer: BaseTool = field(default_factory=ScoreRubricTool)


def find_gaps(canonical: CanonicalProfile) -> list[str]:
    """List the missing facts among email, skills, experience, location, education."""
    gaps = []
    if not canonical.emails:
        gaps.append("email")
    if not canonical.skills:
        gaps.append("skills")
    if not canonical.experience:
        gaps.append("experience")
    if not canonical.location:
        gaps.append("location")
    if not canonical.education:
        gaps.append("education")
    return gaps


def build_gap_query(gaps: list[str], canonical: CanonicalProfile) -> str:
    return f"{canonical.name or 'candidate'} {' '.join(gaps)} professional profile"


def merge_search_urls(canonical: CanonicalProfile, results: list[SearchResult]) -> CanonicalProfile:
    """Copy of the profile with result URLs appended.

    Only URLs are taken from search results; other gaps stay open.
    """
    urls = list(canonical.urls or [])
    for result in results:
        if result.url not in urls:
            urls.append(result.url)
    return canonical.model_copy(update={"urls": urls})


async def agent_enrich_profile(
    extracted: ExtractedData,
    job_context: JobContext | None,
    emitter: ProgressEmitter,
    tools: EnrichmentTools | None = None,
) -> EnrichedProfile:
    """Build the enriched profile for one candidate.

    Args:
        extracted: Normalized text from the extract step
        job_context: Role to score against (default target skills if None)
        emitter: Stream that receives the tool-call events
        tools: Tool set (mock-backed defaults if None)

    Returns:
        Enriched profile

    Raises:
        ProfileSchemaError: If the extracted profile is malformed
        ExternalOperationError: If an external tool fails
    """
    tools = tools or EnrichmentTools()
    calls: list[ToolCall] = []

    async def surface(tool: BaseTool, description: str | None = None) -> None:
        calls.append(tool.tool_call(description))
        await emitter.emit(ProgressEvent.tool_call(StepName.AGENT_ENRICH, calls))

    logger.info("[agent] Processing %d tokens of candidate data", extracted.tokens)

    await surface(tools.extractor)
    canonical = await tools.extractor.execute(text=extracted.text)

    await surface(tools.schema)
    canonical = await tools.schema.execute(profile=canonical)

    gaps = find_gaps(canonical)
    if gaps:
        query = build_gap_query(gaps, canonical)
        logger.info("[agent] Found %d gaps %s; searching for: %s", len(gaps), gaps, query)
        await surface(tools.search, f"Search for missing information: {', '.join(gaps)}")
        results = await tools.search.execute(query=query)
        canonical = merge_search_urls(canonical, results)
        logger.info("[agent] After search, remaining gaps: %d", len(find_gaps(canonical)))

    await surface(tools.scorer)
    scoring = await tools.scorer.execute(canonical=canonical, job=job_context)

    return EnrichedProfile(
        canonical=canonical,
        gaps=find_gaps(canonical),
        risk_flags=scoring.risk_flags,
        overall_score=scoring.score,
        rationale=scoring.rationale,
    )


def summarize_enrichment(enriched: EnrichedProfile) -> dict[str, int]:
    return {
        "score": enriched.overall_score,
        "gaps": len(enriched.gaps),
        "riskFlags": len(enriched.risk_flags),
    }
