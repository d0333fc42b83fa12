import time
from typing import Any
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span
from opentelemetry.trace import SpanKind
from opentelemetry.trace import Tracer

from chaintrace._trace.attributes import ExecutionKind
from chaintrace._trace.scope import ExecutionScope
from chaintrace._trace.scope import set_association_properties
from chaintrace.constants import UNKNOWN_NAME
from chaintrace.internal.logger import get_logger


log = get_logger(__name__)


class ExecutionRecord(object):
    """State of one in-flight run: its span, the context its children start in and their run ids."""

    __slots__ = ("run_id", "span", "kind", "context", "children", "started_at", "_resolved_model", "_closed")

    def __init__(
        self,
        run_id: str,
        span: Span,
        context: Context,
        kind: ExecutionKind = ExecutionKind.UNKNOWN,
        resolved_model: Optional[str] = None,
    ) -> None:
        self.run_id = run_id
        self.span = span
        self.kind = kind
        self.context = context
        self.children: List[str] = []
        self.started_at = time.monotonic_ns()
        self._resolved_model = resolved_model
        self._closed = False

    def __repr__(self):
        return "ExecutionRecord(run_id=%r, kind=%s, children=%r, closed=%r)" % (
            self.run_id,
            self.kind.value,
            self.children,
            self._closed,
        )

    @property
    def resolved_model(self) -> Optional[str]:
        return self._resolved_model

    def set_resolved_model(self, model: Optional[str]) -> None:
        # set once, never overwritten
        if self._resolved_model is None and model:
            self._resolved_model = model

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def duration_ns(self) -> int:
        return time.monotonic_ns() - self.started_at

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.span.end()


class SpanRegistry(object):
    """Live mapping of run ids to their :class:`ExecutionRecord`.

    A record is only reachable between the start of its run and the processing of its end or error
    event. Each registry is owned by a single correlator; it is never shared between threads.
    """

    def __init__(self, tracer: Tracer) -> None:
        self._tracer = tracer
        self._records: Dict[str, ExecutionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, run_id: object) -> bool:
        return run_id in self._records

    def get(self, run_id: str) -> Optional[ExecutionRecord]:
        return self._records.get(run_id)

    def create(
        self,
        run_id: str,
        parent_run_id: Optional[str] = None,
        name: str = UNKNOWN_NAME,
        kind: SpanKind = SpanKind.INTERNAL,
        execution_kind: ExecutionKind = ExecutionKind.UNKNOWN,
        scope: Optional[ExecutionScope] = None,
        properties: Optional[Mapping[str, Any]] = None,
        resolved_model: Optional[str] = None,
    ) -> Span:
        """Start and register the span of ``run_id``.

        The span is a child of the span of ``parent_run_id`` when that run is live. Otherwise the run
        is a root of this registry and its span starts in the scope's context, which is how an
        unknown parent (delivered late or never) degrades.

        A run that is already live keeps its span: the existing span is returned and nothing is started.
        """
        existing = self._records.get(run_id)
        if existing is not None:
            log.debug("run %s is already active, keeping its span", run_id)
            return existing.span

        parent = self._records.get(parent_run_id) if parent_run_id is not None else None
        if parent is not None:
            parent_context = parent.context
        else:
            if parent_run_id is not None:
                log.debug("parent run %s of run %s is not active, starting a root span", parent_run_id, run_id)
            parent_context = (scope or ExecutionScope()).context

        span = self._tracer.start_span(name, context=parent_context, kind=kind)
        context = trace.set_span_in_context(span, parent_context)
        if properties:
            context = set_association_properties(properties, context)

        self._records[run_id] = ExecutionRecord(
            run_id, span, context, kind=execution_kind, resolved_model=resolved_model
        )
        if parent is not None:
            parent.children.append(run_id)
        return span

    def close_cascading(self, run_id: str) -> bool:
        """End the span of ``run_id`` along with the spans of its children that are still open.

        Only direct children are force-closed: grandchildren are expected to have ended with their own
        events, so this is a safety net against leaked spans rather than a recursive teardown.
        Returns ``False`` when ``run_id`` has no live record.
        """
        record = self._records.pop(run_id, None)
        if record is None:
            return False
        for child_id in record.children:
            child = self._records.pop(child_id, None)
            if child is not None:
                log.debug("force closing run %s left open by its parent %s", child_id, run_id)
                child.close()
        record.close()
        log.debug("closed %s run %s after %d ns", record.kind.value, run_id, record.duration_ns)
        return True
