"""Profile extraction tool.

Turns the normalized candidate text into a CanonicalProfile. In mock mode a
fixed profile is returned; otherwise the configured LLM backend is asked for
a JSON object, which is validated against the profile model.
"""

import asyncio
import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from llm_backend import LLMBackend
from orchestrator.errors import ExternalOperationError, ProfileSchemaError
from schemas.candidate import CanonicalProfile

from .base import BaseTool

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Extract a structured candidate profile from the following resume/profile text.

Include:
- Name, headline, location
- Contact emails
- URLs (LinkedIn, GitHub, portfolio, etc.)
- Technical skills
- Work experience with company, title, dates, and key accomplishments
- Education with school, degree, and dates

Reply with a single JSON object with the keys: name, headline, location,
emails, urls, skills, experience (list of {company, title, dates, bullets}),
education (list of {school, degree, dates}).

Resume text:
"""

MOCK_PROFILE: dict[str, Any] = {
    "name": "Taylor Doe",
    "headline": "Senior Full-Stack Engineer",
    "location": "New York, NY",
    "emails": ["taylor@example.com"],
    "urls": ["https://github.com/mock-user", "https://linkedin.com/in/mock-user"],
    "skills": ["TypeScript", "React", "Node.js", "PostgreSQL", "Next.js", "Docker", "AWS", "Redis"],
    "experience": [
        {
            "company": "Acme Inc.",
            "title": "Senior Full-Stack Engineer",
            "dates": "2021–present",
            "bullets": [
                "Led migration to Next.js, improving performance by 60%",
                "Built real-time collaboration features",
                "Mentored 3 junior engineers",
            ],
        },
        {
            "company": "Globex Corporation",
            "title": "Software Engineer",
            "dates": "2018–2021",
            "bullets": [
                "Built ETL pipelines processing 10M+ records daily",
                "Developed REST APIs serving 500K+ users",
            ],
        },
    ],
    "education": [
        {"school": "State University", "degree": "BS Computer Science", "dates": "2014–2018"},
    ],
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def parse_profile_reply(reply: str) -> CanonicalProfile:
    """Parse an LLM reply into a profile.

    Raises:
        ProfileSchemaError: If the reply is not a JSON object matching the model
    """
    cleaned = _FENCE_RE.sub("", reply.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ProfileSchemaError(f"Profile extraction returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProfileSchemaError("canonical object invalid: not an object")
    try:
        return CanonicalProfile.model_validate(data)
    except ValidationError as e:
        raise ProfileSchemaError(f"Profile extraction returned invalid profile: {e.error_count()} field errors") from e


class ProfileExtractorTool(BaseTool):
    name = "extractCanonicalProfile"
    description = "Extract structured profile from resume text using LLM"

    def __init__(
        self,
        llm: LLMBackend | None = None,
        mock: bool = True,
        model: str | None = None,
    ) -> None:
        """Initialize extractor.

        Args:
            llm: Backend used when mock is False
            mock: Return the fixed profile instead of calling a model
            model: Optional model override passed to the backend
        """
        self.llm = llm
        self.mock = mock
        self.model = model

    async def execute(self, text: str = "", **kwargs: Any) -> CanonicalProfile:
        if self.mock:
            return CanonicalProfile.model_validate(MOCK_PROFILE)

        if self.llm is None:
            raise ExternalOperationError("No LLM backend configured for profile extraction")

        messages = [
            {"role": "system", "content": "You extract structured data from resumes."},
            {"role": "user", "content": EXTRACTION_PROMPT + text},
        ]
        try:
            # Backends are synchronous; keep the event loop free for other runs
            reply = await asyncio.to_thread(self.llm.chat, messages, model=self.model, json_mode=True)
        except (ConnectionError, TimeoutError, RuntimeError) as e:
            raise ExternalOperationError(f"Profile extraction failed: {e}") from e

        logger.debug("Profile extraction reply: %d chars", len(reply))
        return parse_profile_reply(reply)
