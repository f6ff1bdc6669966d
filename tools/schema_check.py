"""Canonical profile validation tool."""

import logging
from typing import Any

from pydantic import ValidationError

from orchestrator.errors import ProfileSchemaError
from schemas.candidate import CanonicalProfile

from .base import BaseTool

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("experience", "skills", "education", "emails", "urls")


def schema_check(profile: CanonicalProfile | dict[str, Any] | None) -> CanonicalProfile:
    """Normalize a profile in place and reject broken entries.

    Missing arrays become empty lists. Experience entries must carry both
    company and title. Running it again on a normalized profile changes
    nothing.

    Args:
        profile: Profile model (normalized in place) or raw mapping

    Returns:
        The normalized profile

    Raises:
        ProfileSchemaError: If the profile is not an object or an entry is incomplete
    """
    if isinstance(profile, dict):
        try:
            profile = CanonicalProfile.model_validate(profile)
        except ValidationError as e:
            raise ProfileSchemaError(f"canonical object invalid: {e.error_count()} field errors") from e
    if not isinstance(profile, CanonicalProfile):
        raise ProfileSchemaError("canonical object invalid: not an object")

    for name in _LIST_FIELDS:
        if getattr(profile, name) is None:
            setattr(profile, name, [])

    for i, entry in enumerate(profile.experience or []):
        if not entry.company or not entry.title:
            raise ProfileSchemaError(f"Experience entry {i} missing required fields (company, title)")

    logger.debug("Profile validated successfully")
    return profile


class SchemaCheckTool(BaseTool):
    name = "schemaCheck"
    description = "Validate profile matches expected schema"

    async def execute(self, profile: CanonicalProfile | dict[str, Any] | None = None, **kwargs: Any) -> CanonicalProfile:
        return schema_check(profile)
