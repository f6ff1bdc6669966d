"""Candidate data model for the resume review workflow.

Every entity here crosses the wire (progress stream, HTTP API, run journal),
so models serialize with the camelCase names the UI consumes while Python
code keeps snake_case attributes. Both spellings are accepted on input.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model with camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-ready camelCase form, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class JobContext(WireModel):
    """Target role the candidate is evaluated against."""

    role: str = Field("", description="Target role title")
    seniority: str | None = Field(None, description="Seniority level")
    skills: list[str] | None = Field(None, description="Required skills")


class CandidateInput(WireModel):
    """Identifies one workflow run.

    candidate_id is optional at the model level so that a missing id reaches
    the validate step (and its error event) instead of failing at parse time.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "candidateId": "c1",
                "linkedInUrl": "https://linkedin.com/in/mock-user",
                "jobContext": {"role": "Eng", "skills": ["TypeScript", "React"]},
            }
        },
    )

    candidate_id: str | None = Field(None, description="Stable candidate key")
    upload_url: str | None = Field(None, description="Uploaded resume location")
    linked_in_url: str | None = Field(None, description="LinkedIn profile URL")
    github_url: str | None = Field(None, description="GitHub profile URL")
    job_context: JobContext | None = Field(None, description="Role to score against")

    def has_sources(self) -> bool:
        """Check whether at least one source locator is present."""
        return bool(self.upload_url or self.linked_in_url or self.github_url)


class RawSources(WireModel):
    """Raw blobs gathered per source channel."""

    resume_text: str | None = None
    linked_in_html: str | None = None
    github_readme: str | None = None


class ExtractedData(WireModel):
    """Normalized text of all sources plus a coarse token estimate."""

    text: str
    tokens: int


class ExperienceEntry(WireModel):
    """A single position.

    company and title are required by schema_check, not by the model, so an
    incomplete extraction is reported as a schema error with its index.
    """

    company: str | None = None
    title: str | None = None
    dates: str | None = None
    bullets: list[str] | None = None


class EducationEntry(WireModel):
    school: str | None = None
    degree: str | None = None
    dates: str | None = None


class CanonicalProfile(WireModel):
    """Structured candidate facts extracted from the raw text."""

    name: str | None = None
    headline: str | None = None
    location: str | None = None
    emails: list[str] | None = None
    urls: list[str] | None = None
    skills: list[str] | None = None
    experience: list[ExperienceEntry] | None = None
    education: list[EducationEntry] | None = None


class EnrichedProfile(WireModel):
    """Canonical profile plus gaps, risk flags and score."""

    canonical: CanonicalProfile
    gaps: list[str] = Field(default_factory=list)
    risk_flags: list[str] = Field(default_factory=list)
    overall_score: int = Field(..., ge=0, le=100)
    rationale: str = ""


class Snippets(WireModel):
    """Recruiter-facing text."""

    headline: str
    bio: str
    highlights: list[str] = Field(default_factory=list)


class ApprovalResult(WireModel):
    approved: bool
    reason: str | None = None


class SearchResult(WireModel):
    title: str
    url: str
    snippet: str = ""


class ScoringResult(WireModel):
    score: int = Field(..., ge=0, le=100)
    rationale: str
    risk_flags: list[str] = Field(default_factory=list)


class WorkflowResult(WireModel):
    """Terminal record of a run; the only entity returned to the caller."""

    status: Literal["completed", "failed"]
    candidate_id: str | None = None
    approved: bool = False
    reason: str | None = None
    enriched: EnrichedProfile | None = None
    snippets: Snippets | None = None
