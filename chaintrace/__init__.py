from chaintrace._monkey import patch
from chaintrace._trace import ExecutionScope
from chaintrace._trace import SpanCorrelator
from chaintrace._trace import SpanRegistry
from chaintrace._trace import suppress_instrumentation
from chaintrace.settings import config
from chaintrace.version import __version__


__all__ = [
    "ExecutionScope",
    "SpanCorrelator",
    "SpanRegistry",
    "config",
    "patch",
    "suppress_instrumentation",
    "__version__",
]
