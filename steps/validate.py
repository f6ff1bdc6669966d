"""Input validation step."""

from orchestrator.errors import InputValidationError
from schemas.candidate import CandidateInput


def validate_input(candidate: CandidateInput, mock_sources: bool = True) -> CandidateInput:
    """Reject inputs the pipeline cannot process.

    Source locators are only required when sources are fetched for real.

    Raises:
        InputValidationError: If candidateId is missing, or no source is given in real mode
    """
    if not candidate.candidate_id:
        raise InputValidationError("candidateId is required")

    if not mock_sources and not candidate.has_sources():
        raise InputValidationError(
            "At least one data source is required (uploadUrl, linkedInUrl, or githubUrl)"
        )

    return candidate
