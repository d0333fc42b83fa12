from chaintrace._trace.correlator import SpanCorrelator
from chaintrace._trace.registry import ExecutionRecord
from chaintrace._trace.registry import SpanRegistry
from chaintrace._trace.scope import ExecutionScope
from chaintrace._trace.scope import suppress_instrumentation


__all__ = [
    "ExecutionRecord",
    "ExecutionScope",
    "SpanCorrelator",
    "SpanRegistry",
    "suppress_instrumentation",
]
