"""Tests for langfuse_sdk.observation module."""

from datetime import datetime, timezone

import pytest

from langfuse_sdk.manager import EventManager
from langfuse_sdk.observation import (
    EVENT_CREATE,
    GENERATION_CREATE,
    GENERATION_UPDATE,
    SCORE_CREATE,
    SPAN_CREATE,
    SPAN_UPDATE,
    TRACE_CREATE,
    Event,
    Generation,
    Score,
    Span,
    Trace,
)
from langfuse_sdk.record import copy_body


class RecordingManager(EventManager):
    """Keeps (id, event_type, body copy) for every enqueue."""

    def __init__(self):
        self.calls = []

    def enqueue(self, id, event_type, body):
        self.calls.append((id, event_type, copy_body(body)))
        return id

    def flush(self):
        pass


@pytest.fixture
def recorder():
    return RecordingManager()


@pytest.fixture
def trace(recorder):
    return Trace(id="test", name="checkout", manager=recorder)


class TestToDict:
    """Tests for the wire body."""

    def test_camel_case_and_omits_unset(self):
        span = Span(
            id="s1",
            trace_id="t1",
            parent_observation_id="p1",
            status_message="ok",
            start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        assert span.to_dict() == {
            "id": "s1",
            "traceId": "t1",
            "parentObservationId": "p1",
            "statusMessage": "ok",
            "startTime": "2024-01-01T00:00:00.000Z",
        }

    def test_naive_start_time_is_local_time(self, eastern_tz):
        span = Span(id="s", start_time=datetime(2024, 1, 1, 12))

        assert span.to_dict()["startTime"] == "2024-01-01T17:00:00.000Z"

    def test_trace_always_emits_public(self):
        assert Trace(id="t1").to_dict() == {"id": "t1", "public": False}

    def test_score_always_emits_value(self):
        assert Score(id="s1", trace_id="t1", name="q").to_dict() == {
            "id": "s1",
            "name": "q",
            "traceId": "t1",
            "value": 0,
        }

    def test_generation_fields(self):
        generation = Generation(
            id="g1",
            model="gpt-4",
            usage={"input": 10, "output": 5},
            model_parameters={"temperature": 0.2},
            prompt_name="greeting",
        )

        body = generation.to_dict()

        assert body["model"] == "gpt-4"
        assert body["usage"] == {"input": 10, "output": 5}
        assert body["modelParameters"] == {"temperature": 0.2}
        assert body["promptName"] == "greeting"

    def test_manager_not_serialized(self, recorder):
        assert "manager" not in Trace(id="t1", manager=recorder).to_dict()


class TestChildren:
    """Tests for child observations created from a trace or span."""

    def test_trace_span(self, trace, recorder):
        span = trace.span(name="lookup")

        record_id, event_type, body = recorder.calls[-1]
        assert event_type == SPAN_CREATE
        assert record_id == span.id
        assert span.id
        assert span.trace_id == "test"
        assert span.parent_observation_id == "test"
        assert span.start_time is not None
        assert span.manager is recorder
        assert body["traceId"] == "test"

    def test_explicit_child_fields_kept(self, trace, recorder):
        span = trace.span(id="s1", trace_id="other", parent_observation_id="p")

        assert (span.id, span.trace_id, span.parent_observation_id) == ("s1", "other", "p")

    def test_nested_span_inherits_trace(self, trace, recorder):
        outer = trace.span(name="outer")
        inner = outer.span(name="inner")

        assert inner.trace_id == "test"
        assert inner.parent_observation_id == outer.id

    def test_event_and_generation(self, trace, recorder):
        event = trace.event(name="cache-miss")
        generation = trace.generation(name="answer", model="gpt-4")

        assert [c[1] for c in recorder.calls] == [EVENT_CREATE, GENERATION_CREATE]
        assert isinstance(event, Event)
        assert generation.start_time is not None

    def test_trace_score(self, trace, recorder):
        score = trace.score(value=0.9)

        record_id, event_type, body = recorder.calls[-1]
        assert event_type == SCORE_CREATE
        assert score.trace_id == "test"
        assert score.name == "checkout"
        assert score.observation_id == ""
        assert body["value"] == 0.9

    def test_span_score_targets_observation(self, trace, recorder):
        span = trace.span(name="lookup")
        score = span.score(name="accuracy", value=1)

        assert score.observation_id == span.id
        assert score.trace_id == "test"

    def test_unattached_observation_cannot_enqueue(self):
        with pytest.raises(RuntimeError):
            Trace(id="t1").span(name="x")


class TestUpdates:
    """Tests for end() and update()."""

    def test_span_end(self, trace, recorder):
        span = trace.span(name="lookup")
        span.output = {"price": 12.5}
        span.end()

        record_id, event_type, body = recorder.calls[-1]
        assert event_type == SPAN_UPDATE
        assert record_id == ""
        assert body["id"] == span.id
        assert body["output"] == {"price": 12.5}
        assert "endTime" in body

    def test_generation_end(self, trace, recorder):
        generation = trace.generation(name="answer")
        generation.end()

        assert recorder.calls[-1][1] == GENERATION_UPDATE
        assert generation.end_time is not None

    def test_trace_update(self, trace, recorder):
        trace.user_id = "u-1"
        trace.update()

        record_id, event_type, body = recorder.calls[-1]
        assert event_type == TRACE_CREATE
        assert body["userId"] == "u-1"

    def test_update_without_id(self, recorder):
        with pytest.raises(ValueError):
            Trace(manager=recorder).update()
        with pytest.raises(ValueError):
            Span(manager=recorder).end()

    def test_enqueued_body_is_snapshot(self, trace, recorder):
        span = trace.span(name="before")
        span.name = "after"

        assert recorder.calls[-1][2]["name"] == "before"
