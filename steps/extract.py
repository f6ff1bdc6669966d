"""Text extraction and normalization step."""

from schemas.candidate import ExtractedData, RawSources
from tools.text import round_half_up, strip_html

MAX_TOKENS = 16000


def extract_and_normalize(raw: RawSources) -> ExtractedData:
    """Join the available sources with blank lines and estimate tokens.

    The estimate is a rough four characters per token, capped at MAX_TOKENS.
    """
    parts = [raw.resume_text, strip_html(raw.linked_in_html or ""), raw.github_readme]
    text = "\n\n".join(p for p in parts if p)
    tokens = min(MAX_TOKENS, round_half_up(len(text) / 4))
    return ExtractedData(text=text, tokens=tokens)
