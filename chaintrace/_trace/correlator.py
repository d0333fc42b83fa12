"""
Correlation of LangChain run events into OpenTelemetry spans.

:class:`SpanCorrelator` receives the start, end and error events of every run (model calls, chat
model calls, chains and tools) plus the agent action/finish events, and turns them into one span per
run. Runs are matched by their run id, nested runs are parented through the run id of their parent,
and a run whose end never arrives is force-closed when its parent closes.

Handlers never raise: tracing must not change the control flow of the traced application, so any
failure while correlating is logged and swallowed.
"""

import functools
from typing import Any
from typing import Callable
from typing import Mapping
from typing import Optional

from opentelemetry.trace import Span
from opentelemetry.trace import SpanKind
from opentelemetry.trace import Tracer
from opentelemetry.trace.status import Status
from opentelemetry.trace.status import StatusCode

from chaintrace._trace.attributes import ExecutionKind
from chaintrace._trace.attributes import ModelResponse
from chaintrace._trace.attributes import RequestParams
from chaintrace._trace.attributes import resolve_name
from chaintrace._trace.attributes import sanitize_metadata
from chaintrace._trace.attributes import sanitize_metadata_value
from chaintrace._trace.attributes import set_span_attribute
from chaintrace._trace.attributes import trunc
from chaintrace._trace.registry import SpanRegistry
from chaintrace._trace.scope import ExecutionScope
from chaintrace.constants import GenAIOperationValues
from chaintrace.constants import SpanAttributes
from chaintrace.internal.logger import get_logger
from chaintrace.internal.utils import get_attr
from chaintrace.settings import ChainTraceConfig
from chaintrace.settings import config


log = get_logger(__name__)


def _event_handler(func: Callable[..., None]) -> Callable[..., None]:
    """Skip the handler under a suppressed scope and swallow any error it raises."""

    @functools.wraps(func)
    def wrapper(self: "SpanCorrelator", *args: Any, scope: Optional[ExecutionScope] = None, **kwargs: Any) -> None:
        scope = scope or ExecutionScope()
        if scope.suppressed:
            return
        try:
            func(self, *args, scope=scope, **kwargs)
        except Exception:
            log.error("Error handling %s for run %s", func.__name__, kwargs.get("run_id"), exc_info=True)

    return wrapper


class SpanCorrelator(object):
    def __init__(
        self,
        tracer: Tracer,
        integration_config: Optional[ChainTraceConfig] = None,
        registry: Optional[SpanRegistry] = None,
    ) -> None:
        self.integration_config = integration_config if integration_config is not None else config
        self.registry = registry if registry is not None else SpanRegistry(tracer)

    def _start_span(
        self,
        execution_kind: ExecutionKind,
        run_id: str,
        parent_run_id: Optional[str],
        name: str,
        kind: SpanKind,
        scope: ExecutionScope,
        metadata: Optional[Mapping[str, Any]],
        resolved_model: Optional[str] = None,
    ) -> Optional[Span]:
        if run_id in self.registry:
            log.debug("run %s already started, ignoring duplicate start event", run_id)
            return None
        span = self.registry.create(
            run_id,
            parent_run_id,
            name=name,
            kind=kind,
            execution_kind=execution_kind,
            scope=scope,
            properties=sanitize_metadata(metadata),
            resolved_model=resolved_model,
        )
        log.debug("started %s run %s (parent: %s)", execution_kind.value, run_id, parent_run_id)
        return span

    def _set_content(self, span: Span, name: str, value: Any) -> None:
        """Record a free-form summary, honoring content capture and the character limit."""
        if value is None or not self.integration_config.capture_content:
            return
        value = sanitize_metadata_value(value)
        if isinstance(value, str):
            value = trunc(value, self.integration_config.span_char_limit)
        set_span_attribute(span, name, value)

    def _end_span(self, run_id: str, error: Optional[BaseException] = None) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        if error is not None:
            record.span.set_status(Status(StatusCode.ERROR, str(error)))
            if not isinstance(error, BaseException):
                error = Exception(str(error))
            record.span.record_exception(error)
        self.registry.close_cascading(run_id)

    def _start_model_run(
        self,
        execution_kind: ExecutionKind,
        operation: str,
        serialized: Optional[Mapping[str, Any]],
        run_id: str,
        parent_run_id: Optional[str],
        metadata: Optional[Mapping[str, Any]],
        name: Optional[str],
        scope: ExecutionScope,
        extra_params: Mapping[str, Any],
    ) -> None:
        params = RequestParams.from_extra_params(extra_params)
        span = self._start_span(
            execution_kind,
            run_id,
            parent_run_id,
            "%s %s" % (GenAIOperationValues.CHAT, resolve_name(serialized, name=name, model=params.model)),
            SpanKind.CLIENT,
            scope,
            metadata,
            resolved_model=params.model,
        )
        if span is None:
            return
        set_span_attribute(span, SpanAttributes.GEN_AI_OPERATION_NAME, operation)
        set_span_attribute(span, SpanAttributes.GEN_AI_SYSTEM, get_attr(serialized or {}, "name", None))
        set_span_attribute(span, SpanAttributes.GEN_AI_REQUEST_MODEL, params.model)
        set_span_attribute(span, SpanAttributes.GEN_AI_RESPONSE_MODEL, params.model)
        set_span_attribute(span, SpanAttributes.GEN_AI_REQUEST_MAX_TOKENS, params.max_tokens)
        set_span_attribute(span, SpanAttributes.GEN_AI_REQUEST_TEMPERATURE, params.temperature)
        set_span_attribute(span, SpanAttributes.GEN_AI_REQUEST_TOP_P, params.top_p)

    @_event_handler
    def on_llm_start(
        self,
        serialized: Optional[Mapping[str, Any]],
        prompts: Any,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        scope: ExecutionScope,
        **extra_params: Any
    ) -> None:
        self._start_model_run(
            ExecutionKind.LLM,
            GenAIOperationValues.TEXT_COMPLETION,
            serialized,
            run_id,
            parent_run_id,
            metadata,
            name,
            scope,
            extra_params,
        )

    @_event_handler
    def on_chat_model_start(
        self,
        serialized: Optional[Mapping[str, Any]],
        messages: Any,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        scope: ExecutionScope,
        **extra_params: Any
    ) -> None:
        self._start_model_run(
            ExecutionKind.CHAT_MODEL,
            GenAIOperationValues.CHAT,
            serialized,
            run_id,
            parent_run_id,
            metadata,
            name,
            scope,
            extra_params,
        )

    @_event_handler
    def on_llm_end(
        self, response: Any, *, run_id: str, parent_run_id: Optional[str] = None, scope: ExecutionScope, **kwargs: Any
    ) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        span = record.span
        model_response = ModelResponse.from_response(response)
        set_span_attribute(span, SpanAttributes.GEN_AI_RESPONSE_MODEL, model_response.model)
        set_span_attribute(span, SpanAttributes.GEN_AI_RESPONSE_ID, model_response.response_id)
        set_span_attribute(span, SpanAttributes.GEN_AI_USAGE_INPUT_TOKENS, model_response.usage.input_tokens)
        set_span_attribute(span, SpanAttributes.GEN_AI_USAGE_OUTPUT_TOKENS, model_response.usage.output_tokens)
        record.set_resolved_model(model_response.model)
        self._end_span(run_id)

    @_event_handler
    def on_llm_error(
        self,
        error: BaseException,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        scope: ExecutionScope,
        **kwargs: Any
    ) -> None:
        self._end_span(run_id, error=error)

    @_event_handler
    def on_chain_start(
        self,
        serialized: Optional[Mapping[str, Any]],
        inputs: Any,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        scope: ExecutionScope,
        **kwargs: Any
    ) -> None:
        span = self._start_span(
            ExecutionKind.CHAIN,
            run_id,
            parent_run_id,
            "%s %s" % (GenAIOperationValues.CHAIN, resolve_name(serialized, name=name)),
            SpanKind.INTERNAL,
            scope,
            metadata,
        )
        if span is None:
            return
        if metadata:
            set_span_attribute(span, SpanAttributes.GEN_AI_AGENT_NAME, metadata.get("agent_name"))
        self._set_content(span, SpanAttributes.GEN_AI_PROMPT, None if inputs is None else str(inputs))

    @_event_handler
    def on_chain_end(
        self, outputs: Any, *, run_id: str, parent_run_id: Optional[str] = None, scope: ExecutionScope, **kwargs: Any
    ) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        self._set_content(record.span, SpanAttributes.GEN_AI_COMPLETION, None if outputs is None else str(outputs))
        self._end_span(run_id)

    @_event_handler
    def on_chain_error(
        self,
        error: BaseException,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        scope: ExecutionScope,
        **kwargs: Any
    ) -> None:
        self._end_span(run_id, error=error)

    @_event_handler
    def on_tool_start(
        self,
        serialized: Optional[Mapping[str, Any]],
        input_str: Any,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        name: Optional[str] = None,
        inputs: Optional[Mapping[str, Any]] = None,
        scope: ExecutionScope,
        **kwargs: Any
    ) -> None:
        tool_name = resolve_name(serialized, name=name)
        span = self._start_span(
            ExecutionKind.TOOL,
            run_id,
            parent_run_id,
            "%s %s" % (GenAIOperationValues.EXECUTE_TOOL, tool_name),
            SpanKind.INTERNAL,
            scope,
            metadata,
        )
        if span is None:
            return
        self._set_content(span, SpanAttributes.GEN_AI_TOOL_INPUT, input_str)
        tool_call_id = (
            get_attr(inputs or {}, "tool_call_id", None)
            or get_attr(metadata or {}, "tool_call_id", None)
            or kwargs.get("tool_call_id")
        )
        set_span_attribute(span, SpanAttributes.GEN_AI_TOOL_CALL_ID, tool_call_id)
        description = get_attr(serialized or {}, "description", None)
        set_span_attribute(span, SpanAttributes.GEN_AI_TOOL_DESCRIPTION, description)
        set_span_attribute(span, SpanAttributes.GEN_AI_TOOL_NAME, tool_name)
        set_span_attribute(span, SpanAttributes.GEN_AI_OPERATION_NAME, GenAIOperationValues.EXECUTE_TOOL)

    @_event_handler
    def on_tool_end(
        self, output: Any, *, run_id: str, parent_run_id: Optional[str] = None, scope: ExecutionScope, **kwargs: Any
    ) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        self._set_content(record.span, SpanAttributes.GEN_AI_TOOL_OUTPUT, None if output is None else str(output))
        self._end_span(run_id)

    @_event_handler
    def on_tool_error(
        self,
        error: BaseException,
        *,
        run_id: str,
        parent_run_id: Optional[str] = None,
        scope: ExecutionScope,
        **kwargs: Any
    ) -> None:
        self._end_span(run_id, error=error)

    @_event_handler
    def on_agent_action(
        self, action: Any, *, run_id: str, parent_run_id: Optional[str] = None, scope: ExecutionScope, **kwargs: Any
    ) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        span = record.span
        self._set_content(span, SpanAttributes.GEN_AI_AGENT_TOOL_INPUT, get_attr(action, "tool_input", None))
        set_span_attribute(span, SpanAttributes.GEN_AI_AGENT_TOOL_NAME, get_attr(action, "tool", None))
        set_span_attribute(span, SpanAttributes.GEN_AI_OPERATION_NAME, GenAIOperationValues.INVOKE_AGENT)

    @_event_handler
    def on_agent_finish(
        self, finish: Any, *, run_id: str, parent_run_id: Optional[str] = None, scope: ExecutionScope, **kwargs: Any
    ) -> None:
        record = self.registry.get(run_id)
        if record is None:
            return
        output = get_attr(get_attr(finish, "return_values", None) or {}, "output", None)
        self._set_content(record.span, SpanAttributes.GEN_AI_AGENT_TOOL_OUTPUT, output)
