"""Wire format of the data model and progress events."""

import json

import pytest
from pydantic import ValidationError

from schemas.candidate import CandidateInput, EnrichedProfile, CanonicalProfile, WorkflowResult
from schemas.progress import EventStatus, ProgressEvent, StepName, ToolCall, WaitingData
from schemas.candidate import Snippets


class TestCandidateInput:
    def test_accepts_camel_case(self):
        candidate = CandidateInput.model_validate(
            {"candidateId": "c1", "linkedInUrl": "https://linkedin.com/in/x", "jobContext": {"role": "Eng"}}
        )
        assert candidate.candidate_id == "c1"
        assert candidate.linked_in_url == "https://linkedin.com/in/x"
        assert candidate.job_context.role == "Eng"

    def test_accepts_snake_case(self):
        candidate = CandidateInput(candidate_id="c1", github_url="https://github.com/x")
        assert candidate.to_wire() == {"candidateId": "c1", "githubUrl": "https://github.com/x"}

    def test_candidate_id_may_be_missing(self):
        assert CandidateInput().candidate_id is None

    def test_is_frozen(self):
        candidate = CandidateInput(candidate_id="c1")
        with pytest.raises(ValidationError):
            candidate.candidate_id = "c2"

    def test_has_sources(self):
        assert not CandidateInput(candidate_id="c1").has_sources()
        assert CandidateInput(candidate_id="c1", upload_url="https://x/cv.txt").has_sources()


def test_enriched_score_bounds():
    with pytest.raises(ValidationError):
        EnrichedProfile(canonical=CanonicalProfile(), overall_score=101)


def test_workflow_result_omits_absent_fields():
    result = WorkflowResult(status="failed", candidate_id="c1")
    assert result.to_wire() == {"status": "failed", "candidateId": "c1", "approved": False}


class TestProgressEvent:
    def test_line_is_compact_json_in_wire_order(self):
        event = ProgressEvent.completed(StepName.EXTRACT, {"tokens": 42})
        line = event.to_line()

        assert line.endswith("\n")
        assert line.count("\n") == 1
        assert " " not in line
        assert list(json.loads(line)) == ["step", "status", "data", "timestamp"]

    def test_data_omitted_when_absent(self):
        payload = json.loads(ProgressEvent.running(StepName.VALIDATE).to_line())
        assert payload["step"] == "validate"
        assert payload["status"] == "running"
        assert "data" not in payload
        assert isinstance(payload["timestamp"], int)

    def test_tool_call_payload(self):
        calls = [ToolCall(name="schemaCheck", description="Validate profile matches expected schema")]
        event = ProgressEvent.tool_call(StepName.AGENT_ENRICH, calls)

        assert event.status == EventStatus.TOOL_CALL
        assert event.data["toolCalls"][0]["name"] == "schemaCheck"
        assert isinstance(event.data["toolCalls"][0]["timestamp"], int)

    def test_waiting_payload(self):
        snippets = Snippets(headline="h", bio="b", highlights=["• x @ y"])
        event = ProgressEvent.waiting(
            WaitingData(webhook_token="approval:c1-abc", candidate_id="c1", snippets=snippets, score=80)
        )

        assert event.step == StepName.HUMAN_APPROVAL
        assert set(event.data) == {"webhookToken", "candidateId", "snippets", "score"}

    def test_error_payload(self):
        event = ProgressEvent.error(StepName.NOTIFY, "boom", kind="notify_failed", fatal=False)
        assert event.data == {"message": "boom", "kind": "notify_failed", "fatal": False}
        assert not event.is_terminal
        assert ProgressEvent.error(StepName.WORKFLOW, "boom").is_terminal

    def test_line_round_trip(self):
        event = ProgressEvent.completed(StepName.INGEST, {"hasResume": True})
        assert ProgressEvent.from_line(event.to_line()) == event

    def test_events_are_immutable(self):
        event = ProgressEvent.running(StepName.VALIDATE)
        with pytest.raises(ValidationError):
            event.status = EventStatus.COMPLETED
