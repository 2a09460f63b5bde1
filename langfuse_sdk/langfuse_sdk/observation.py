"""
Domain objects: traces and the observations recorded inside them.

Each object knows the event manager that created it, so children and
updates can be enqueued directly:

    trace = langfuse.trace(name="checkout")
    span = trace.span(name="price-lookup", input={"sku": "A1"})
    span.output = {"price": 12.5}
    span.end()

Objects are mutable on the caller's side. What gets delivered is the copy
taken when the corresponding event was enqueued.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .record import new_id, utc_timestamp

TRACE_CREATE = "trace-create"
SPAN_CREATE = "span-create"
SPAN_UPDATE = "span-update"
EVENT_CREATE = "event-create"
GENERATION_CREATE = "generation-create"
GENERATION_UPDATE = "generation-update"
SCORE_CREATE = "score-create"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == {} or value == []


@dataclass
class Observation:
    """Fields shared by traces and every observation type."""

    id: str = ""
    name: str = ""
    trace_id: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    level: str = ""
    status_message: str = ""
    input: Any = None
    output: Any = None
    version: str = ""
    parent_observation_id: str = ""
    manager: Any = field(default=None, repr=False, compare=False)

    # Wire fields emitted even when empty
    _always_emit: ClassVar[Tuple[str, ...]] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase ingestion body, omitting unset fields."""
        body: Dict[str, Any] = {}
        for f in dataclasses.fields(self):
            if f.name == "manager":
                continue
            value = getattr(self, f.name)
            if _is_empty(value) and f.name not in self._always_emit:
                continue
            if isinstance(value, datetime):
                value = utc_timestamp(value)
            body[_camel(f.name)] = value
        return body

    # -- Enqueueing ---------------------------------------------------------

    def _enqueue(self, record_id: str, event_type: str) -> None:
        if self.manager is None:
            raise RuntimeError(
                f"{type(self).__name__} {self.id!r} is not attached to an event manager"
            )
        self.manager.enqueue(record_id, event_type, self)

    def _child_trace_id(self) -> str:
        return self.trace_id

    def _attach(self, child: "Observation", event_type: str) -> "Observation":
        """Fill a child's defaults from this observation and enqueue it."""
        if not child.id:
            child.id = new_id()
        if not child.parent_observation_id:
            child.parent_observation_id = self.id
        if not child.trace_id:
            child.trace_id = self._child_trace_id()
        if getattr(child, "start_time", False) is None:
            child.start_time = _now()
        child.manager = self.manager
        child._enqueue(child.id, event_type)
        return child

    # -- Children -----------------------------------------------------------

    def span(self, **fields: Any) -> "Span":
        return self._attach(Span(**fields), SPAN_CREATE)

    def event(self, **fields: Any) -> "Event":
        return self._attach(Event(**fields), EVENT_CREATE)

    def generation(self, **fields: Any) -> "Generation":
        return self._attach(Generation(**fields), GENERATION_CREATE)

    def score(self, **fields: Any) -> "Score":
        score = Score(**fields)
        if not score.id:
            score.id = new_id()
        if not score.trace_id:
            score.trace_id = self._child_trace_id()
        if not score.name:
            score.name = self.name
        if not score.observation_id and not isinstance(self, Trace):
            score.observation_id = self.id
        score.manager = self.manager
        score._enqueue(score.id, SCORE_CREATE)
        return score


@dataclass
class Trace(Observation):
    """Top-level unit of work. Its id is the trace id of everything below it."""

    user_id: str = ""
    session_id: str = ""
    release: str = ""
    tags: List[str] = field(default_factory=list)
    public: bool = False

    _always_emit: ClassVar[Tuple[str, ...]] = ("public",)

    def _child_trace_id(self) -> str:
        return self.id

    def update(self) -> None:
        """Send the current state of the trace again."""
        if not self.id:
            raise ValueError("trace id is not set")
        self._enqueue("", TRACE_CREATE)


@dataclass
class Span(Observation):
    """A timed step inside a trace."""

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def end(self) -> None:
        """Stamp the end time and send a span update."""
        if not self.id:
            raise ValueError("span id is not set")
        self.end_time = _now()
        self._enqueue("", SPAN_UPDATE)


@dataclass
class Generation(Observation):
    """A model call: prompt in, completion out, with usage."""

    completion_start_time: Optional[datetime] = None
    model: str = ""
    usage: Dict[str, Any] = field(default_factory=dict)
    model_parameters: Dict[str, Any] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    prompt_name: str = ""
    prompt_version: str = ""

    def end(self) -> None:
        """Stamp the end time and send a generation update."""
        if not self.id:
            raise ValueError("generation id is not set")
        self.end_time = _now()
        self._enqueue("", GENERATION_UPDATE)


@dataclass
class Event(Observation):
    """A point-in-time observation."""

    start_time: Optional[datetime] = None


@dataclass
class Score(Observation):
    """An evaluation attached to a trace or observation."""

    value: float = 0
    observation_id: str = ""
    comment: str = ""

    _always_emit: ClassVar[Tuple[str, ...]] = ("value",)
