"""Tools invoked by the enrichment step.

Each tool wraps one external operation (LLM extraction, search) or a
deterministic check (schema, scoring) behind the BaseTool interface.
"""

from .base import BaseTool
from .profile_extractor import ProfileExtractorTool, parse_profile_reply
from .schema_check import SchemaCheckTool, schema_check
from .score_rubric import ScoreRubricTool, score_with_rubric
from .text import round_half_up, strip_html
from .web_search import SearchProvider, WebSearchTool, mock_search

__all__ = [
    "BaseTool",
    "ProfileExtractorTool",
    "SchemaCheckTool",
    "ScoreRubricTool",
    "SearchProvider",
    "WebSearchTool",
    "mock_search",
    "parse_profile_reply",
    "round_half_up",
    "schema_check",
    "score_with_rubric",
    "strip_html",
]
