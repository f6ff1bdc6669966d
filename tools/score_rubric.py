"""Rubric scoring tool.

Scores a canonical profile against the job's required skills, then adjusts
for experience depth and risk flags.
"""

from typing import Any

from schemas.candidate import CanonicalProfile, JobContext, ScoringResult

from .base import BaseTool
from .text import round_half_up

DEFAULT_TARGET_SKILLS = ["typescript", "react", "node.js"]


def score_with_rubric(canonical: CanonicalProfile, job: JobContext | None = None) -> ScoringResult:
    """Score a profile from 0 to 100.

    Skill match is the share of required skills found in the profile
    (case-insensitive). Three or more positions add 10, five or more another
    5, and each risk flag costs 5.
    """
    risk_flags: list[str] = []

    target_skills = job.skills if job is not None and job.skills is not None else DEFAULT_TARGET_SKILLS
    needed = list(dict.fromkeys(s.lower() for s in target_skills))
    has = {s.lower() for s in canonical.skills or []}

    match_count = sum(1 for skill in needed if skill in has)
    skill_score = round_half_up(match_count / max(1, len(needed)) * 100)

    positions = len(canonical.experience or [])
    if positions < 2:
        risk_flags.append("limited_experience")

    if not canonical.emails:
        risk_flags.append("missing_contact_info")

    if positions >= 3:
        # Assumes roughly three years of history across all positions
        avg_tenure = 3 / positions
        if avg_tenure < 1.5:
            risk_flags.append("potential_job_hopping")

    score = skill_score
    if positions >= 3:
        score = min(100, score + 10)
    if positions >= 5:
        score = min(100, score + 5)
    if risk_flags:
        score = max(0, score - len(risk_flags) * 5)

    flags_line = f"Risk flags: {', '.join(risk_flags)}." if risk_flags else "No significant risk flags."
    rationale = "\n".join(
        [
            f"Matched {match_count}/{len(needed)} target skills ({', '.join(needed)}).",
            f"Experience: {positions} positions.",
            flags_line,
        ]
    )

    return ScoringResult(score=round_half_up(score), rationale=rationale, risk_flags=risk_flags)


class ScoreRubricTool(BaseTool):
    name = "scoreWithRubric"
    description = "Evaluate candidate against job requirements"

    async def execute(
        self,
        canonical: CanonicalProfile | None = None,
        job: JobContext | None = None,
        **kwargs: Any,
    ) -> ScoringResult:
        return score_with_rubric(canonical or CanonicalProfile(), job)
