from opentelemetry import trace
from opentelemetry.trace import SpanKind
import pytest

from chaintrace._trace.attributes import ExecutionKind
from chaintrace._trace.registry import SpanRegistry
from chaintrace._trace.scope import ExecutionScope
from chaintrace._trace.scope import get_association_properties


@pytest.fixture
def registry(tracer):
    return SpanRegistry(tracer)


def test_create_root_span(registry, get_spans):
    span = registry.create("root", name="chain root", execution_kind=ExecutionKind.CHAIN)

    assert "root" in registry
    assert len(registry) == 1
    record = registry.get("root")
    assert record.span is span
    assert record.kind is ExecutionKind.CHAIN
    assert record.children == []
    assert trace.get_current_span(record.context) is span
    # nothing is exported until the run is closed
    assert get_spans() == []


def test_create_child_span(registry, get_spans):
    registry.create("parent", name="chain parent")
    registry.create("child", "parent", name="execute_tool child", kind=SpanKind.INTERNAL)

    assert registry.get("parent").children == ["child"]

    registry.close_cascading("child")
    registry.close_cascading("parent")

    child, parent = get_spans()
    assert child.name == "execute_tool child"
    assert parent.name == "chain parent"
    assert parent.parent is None
    assert child.parent.span_id == parent.context.span_id
    assert child.context.trace_id == parent.context.trace_id


def test_create_with_unknown_parent(registry, get_spans):
    registry.create("orphan", "never-started", name="chain orphan")
    registry.close_cascading("orphan")

    (span,) = get_spans()
    assert span.parent is None


def test_create_in_scope_context(registry, tracer, get_spans):
    with tracer.start_as_current_span("app"):
        scope = ExecutionScope.current()
    registry.create("run", scope=scope, name="chain run")
    registry.close_cascading("run")

    app, run = get_spans()
    assert app.name == "app"
    assert run.parent.span_id == app.context.span_id


def test_span_kind(registry, get_spans):
    registry.create("llm", name="chat model", kind=SpanKind.CLIENT)
    registry.close_cascading("llm")

    (span,) = get_spans()
    assert span.kind is SpanKind.CLIENT


def test_close_cascading_closes_open_children(registry, get_spans):
    registry.create("chain", name="chain")
    registry.create("llm", "chain", name="llm")
    registry.create("tool", "chain", name="tool")
    registry.close_cascading("tool")

    assert registry.close_cascading("chain") is True

    assert len(registry) == 0
    assert [s.name for s in get_spans()] == ["tool", "llm", "chain"]
    # the force-closed child is no longer reachable
    assert registry.get("llm") is None
    assert registry.close_cascading("llm") is False


def test_close_cascading_unknown_run(registry, get_spans):
    assert registry.close_cascading("unknown") is False
    assert get_spans() == []


def test_close_cascading_only_direct_children(registry, get_spans):
    registry.create("a", name="a")
    registry.create("b", "a", name="b")
    registry.create("c", "b", name="c")

    registry.close_cascading("a")

    assert [s.name for s in get_spans()] == ["b", "a"]
    assert "c" in registry


def test_record_close_is_idempotent(registry, get_spans):
    registry.create("run", name="run")
    record = registry.get("run")

    record.close()
    record.close()

    assert record.closed
    assert len(get_spans()) == 1


def test_resolved_model_is_set_once(registry):
    registry.create("llm", name="llm", resolved_model="gpt-4")
    record = registry.get("llm")

    record.set_resolved_model("gpt-4-0613")
    assert record.resolved_model == "gpt-4"

    registry.create("other", name="other")
    other = registry.get("other")
    other.set_resolved_model(None)
    other.set_resolved_model("")
    assert other.resolved_model is None
    other.set_resolved_model("granite")
    assert other.resolved_model == "granite"


def test_association_properties_are_inherited(registry):
    registry.create("root", name="root", properties={"user_id": "u-1", "session": "s"})
    registry.create("child", "root", name="child", properties={"session": "s-2"})
    registry.create("bare", "root", name="bare")

    assert get_association_properties(registry.get("root").context) == {"user_id": "u-1", "session": "s"}
    assert get_association_properties(registry.get("child").context) == {"user_id": "u-1", "session": "s-2"}
    assert get_association_properties(registry.get("bare").context) == {"user_id": "u-1", "session": "s"}


def test_registries_are_independent(tracer):
    first = SpanRegistry(tracer)
    second = SpanRegistry(tracer)

    first.create("run", name="run")

    assert "run" in first
    assert "run" not in second


def test_create_live_run_keeps_span(registry, get_spans):
    first = registry.create("run", name="first")
    second = registry.create("run", name="second")

    assert second is first
    assert len(registry) == 1

    registry.close_cascading("run")
    (span,) = get_spans()
    assert span.name == "first"


def test_create_live_child_is_not_linked_twice(registry):
    registry.create("parent", name="parent")
    registry.create("child", "parent", name="child")
    registry.create("child", "parent", name="child")

    assert registry.get("parent").children == ["child"]
