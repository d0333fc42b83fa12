"""
Execution scope threaded explicitly through the correlator.

A scope carries the two pieces of ambient state a handler needs: whether instrumentation is
suppressed, and the OpenTelemetry context a run without a live parent should start its span in.
The LangChain adapter builds one per callback with :meth:`ExecutionScope.current`, so
:func:`suppress_instrumentation` stays scoped and is inherited by every nested call made inside it.
"""

import contextlib
from typing import Any
from typing import Dict
from typing import Iterator
from typing import Mapping
from typing import Optional

import attr
from opentelemetry import context as otel_context
from opentelemetry.context import _SUPPRESS_INSTRUMENTATION_KEY
from opentelemetry.context import Context

from chaintrace.constants import ASSOCIATION_PROPERTIES_KEY


@attr.s(frozen=True, slots=True)
class ExecutionScope(object):
    suppressed = attr.ib(type=bool, default=False)
    context = attr.ib(type=Context, factory=Context)

    @classmethod
    def current(cls) -> "ExecutionScope":
        """Capture the scope of the calling code from the active OpenTelemetry context."""
        ctx = otel_context.get_current()
        return cls(suppressed=bool(otel_context.get_value(_SUPPRESS_INSTRUMENTATION_KEY, ctx)), context=ctx)

    def suppress(self) -> "ExecutionScope":
        return attr.evolve(self, suppressed=True)

    @property
    def association_properties(self) -> Dict[str, Any]:
        return get_association_properties(self.context)


def get_association_properties(ctx: Optional[Context]) -> Dict[str, Any]:
    properties = otel_context.get_value(ASSOCIATION_PROPERTIES_KEY, ctx)
    return dict(properties) if properties else {}


def set_association_properties(properties: Mapping[str, Any], ctx: Optional[Context] = None) -> Context:
    """Return a copy of ``ctx`` with ``properties`` merged over the properties it already carries."""
    merged = get_association_properties(ctx)
    merged.update(properties)
    return otel_context.set_value(ASSOCIATION_PROPERTIES_KEY, merged, ctx)


@contextlib.contextmanager
def suppress_instrumentation() -> Iterator[None]:
    """Skip span creation for every run started, ended or enriched inside this block.

    >>> with suppress_instrumentation():
    ...     chain.invoke({"question": "not traced"})
    """
    token = otel_context.attach(otel_context.set_value(_SUPPRESS_INSTRUMENTATION_KEY, True))
    try:
        yield
    finally:
        otel_context.detach(token)
