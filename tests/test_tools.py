"""Enrichment tools: schema check, rubric, search and profile extraction."""

import pytest

from llm_backend import get_backend
from orchestrator.errors import ExternalOperationError, ProfileSchemaError
from schemas.candidate import CanonicalProfile, JobContext
from tools import (
    ProfileExtractorTool,
    WebSearchTool,
    parse_profile_reply,
    round_half_up,
    schema_check,
    score_with_rubric,
    strip_html,
)
from tools.profile_extractor import MOCK_PROFILE


def mock_profile() -> CanonicalProfile:
    return CanonicalProfile.model_validate(MOCK_PROFILE)


class TestSchemaCheck:
    def test_fills_missing_arrays(self):
        profile = schema_check(CanonicalProfile(name="A"))
        assert profile.skills == []
        assert profile.experience == []
        assert profile.education == []
        assert profile.emails == []
        assert profile.urls == []

    def test_second_pass_changes_nothing(self):
        once = schema_check(CanonicalProfile(name="A", skills=["Go"]))
        snapshot = once.model_dump()
        twice = schema_check(once)
        assert twice.model_dump() == snapshot

    def test_accepts_mapping(self):
        profile = schema_check({"name": "A", "experience": [{"company": "X", "title": "Y"}]})
        assert profile.experience[0].company == "X"

    def test_rejects_incomplete_experience(self):
        profile = CanonicalProfile.model_validate(
            {"experience": [{"company": "X", "title": "Y"}, {"company": "Z"}]}
        )
        with pytest.raises(ProfileSchemaError, match="Experience entry 1 missing required fields"):
            schema_check(profile)

    def test_rejects_non_object(self):
        with pytest.raises(ProfileSchemaError):
            schema_check(None)


class TestScoreWithRubric:
    def test_full_match_without_flags(self):
        result = score_with_rubric(mock_profile(), JobContext(role="Eng", skills=["TypeScript", "React"]))
        assert result.score == 100
        assert result.risk_flags == []
        assert "Matched 2/2 target skills" in result.rationale

    def test_default_target_skills(self):
        result = score_with_rubric(mock_profile(), None)
        assert result.score == 100
        assert "typescript, react, node.js" in result.rationale

    def test_flags_cost_points(self):
        profile = CanonicalProfile(skills=["React"], experience=[{"company": "X", "title": "Y"}])
        result = score_with_rubric(profile, JobContext(skills=["React", "Go"]))

        # 50 for one of two skills, minus two flags
        assert result.risk_flags == ["limited_experience", "missing_contact_info"]
        assert result.score == 40

    def test_job_hopping_and_experience_bonus(self):
        experience = [{"company": f"C{i}", "title": "Eng"} for i in range(3)]
        profile = CanonicalProfile(skills=["go"], emails=["a@b.c"], experience=experience)
        result = score_with_rubric(profile, JobContext(skills=["Go"]))

        assert result.risk_flags == ["potential_job_hopping"]
        # Bonus capped at 100, then one flag
        assert result.score == 95

    def test_score_never_negative(self):
        result = score_with_rubric(CanonicalProfile(), JobContext(skills=["Rust"]))
        assert result.score == 0


class TestText:
    def test_strip_html(self):
        assert strip_html("<p>Taylor <b>Doe</b></p>\n  <div>NY</div>") == "Taylor Doe NY"

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2
        assert round_half_up(0.5) == 1


class TestProfileExtraction:
    def test_parse_fenced_reply(self):
        profile = parse_profile_reply('```json\n{"name": "A", "skills": ["Go"]}\n```')
        assert profile.name == "A"
        assert profile.skills == ["Go"]

    def test_parse_invalid_json(self):
        with pytest.raises(ProfileSchemaError):
            parse_profile_reply("not json")

    def test_parse_non_object(self):
        with pytest.raises(ProfileSchemaError):
            parse_profile_reply("[1, 2]")

    async def test_mock_extraction(self):
        profile = await ProfileExtractorTool().execute(text="anything")
        assert profile.name == "Taylor Doe"
        assert len(profile.skills) == 8

    async def test_real_mode_without_backend(self):
        with pytest.raises(ExternalOperationError):
            await ProfileExtractorTool(llm=None, mock=False).execute(text="resume")

    async def test_real_mode_uses_backend(self):
        class FakeLLM:
            def __init__(self):
                self.kwargs = None

            def chat(self, messages, model=None, **kwargs):
                self.kwargs = kwargs
                return '{"name": "B", "experience": [{"company": "X", "title": "Y"}]}'

        llm = FakeLLM()
        profile = await ProfileExtractorTool(llm=llm, mock=False).execute(text="resume")
        assert profile.name == "B"
        assert llm.kwargs["json_mode"] is True


async def test_web_search_uses_provider():
    seen = []

    async def provider(query):
        seen.append(query)
        return []

    assert await WebSearchTool(provider).execute(query="q") == []
    assert seen == ["q"]


async def test_default_web_search_returns_fixed_results():
    results = await WebSearchTool().execute(query="anything")
    assert [r.url for r in results] == [
        "https://example.com/jsconf-2023-nextjs-talk",
        "https://github.com/mock/data-utils",
        "https://example.com/reactconf-2022",
    ]


class TestGetBackend:
    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown LLM backend"):
            get_backend("llama")

    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_backend("auto")

    def test_openai_with_key(self):
        backend = get_backend("openai", api_key="sk-test", model="gpt-4o")
        assert backend.name == "openai"
        assert backend.model == "gpt-4o"
