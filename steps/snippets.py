"""Recruiter-facing snippet generation."""

from schemas.candidate import EnrichedProfile, Snippets

DEFAULT_TITLE = "Software Engineer"


def generate_snippets(enriched: EnrichedProfile) -> Snippets:
    canonical = enriched.canonical
    experience = canonical.experience or []
    skills = canonical.skills or []

    title = canonical.headline or (experience[0].title if experience else None) or DEFAULT_TITLE

    headline = f"{title} • {min(10, len(skills))} key skills • Score {enriched.overall_score}/100"
    bio = f"Impact-focused {title}. Top skills: {', '.join(skills[:8])}."
    highlights = [f"• {e.title} @ {e.company}" for e in experience[:3]]

    return Snippets(headline=headline, bio=bio, highlights=highlights)
