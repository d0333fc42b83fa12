from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from uuid import UUID

from langchain_core.callbacks import BaseCallbackHandler
from opentelemetry import trace
from opentelemetry.trace import Tracer

from chaintrace._trace.correlator import SpanCorrelator
from chaintrace._trace.registry import SpanRegistry
from chaintrace._trace.scope import ExecutionScope
from chaintrace.settings import ChainTraceConfig
from chaintrace.version import __version__


TRACER_NAME = "chaintrace.contrib.langchain"


def _run_id(run_id):
    # type: (Optional[UUID]) -> Optional[str]
    return str(run_id) if run_id is not None else None


class OpenTelemetryCallbackHandler(BaseCallbackHandler):
    """LangChain callback handler turning every run into an OpenTelemetry span.

    Runs are correlated through their run ids by a :class:`~chaintrace.SpanCorrelator`; the handler only
    converts LangChain's arguments and captures the caller's :class:`~chaintrace.ExecutionScope`.
    """

    name = "opentelemetry-callback-handler"
    # callbacks of async runs are dispatched on the event loop thread, in order
    run_inline = True

    def __init__(self, tracer: Optional[Tracer] = None, integration_config: Optional[ChainTraceConfig] = None):
        super().__init__()
        if tracer is None:
            tracer = trace.get_tracer(TRACER_NAME, __version__)
        self.correlator = SpanCorrelator(tracer, integration_config=integration_config)

    @property
    def span_mapping(self) -> SpanRegistry:
        return self.correlator.registry

    def on_llm_start(
        self,
        serialized: Dict[str, Any],
        prompts: List[str],
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any
    ) -> None:
        self.correlator.on_llm_start(
            serialized or {},
            prompts,
            run_id=str(run_id),
            parent_run_id=_run_id(parent_run_id),
            scope=ExecutionScope.current(),
            **kwargs
        )

    def on_chat_model_start(
        self,
        serialized: Dict[str, Any],
        messages: List[List[Any]],
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any
    ) -> None:
        self.correlator.on_chat_model_start(
            serialized or {},
            messages,
            run_id=str(run_id),
            parent_run_id=_run_id(parent_run_id),
            scope=ExecutionScope.current(),
            **kwargs
        )

    def on_llm_end(self, response: Any, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any) -> None:
        self.correlator.on_llm_end(
            response, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_llm_error(
        self, error: BaseException, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any
    ) -> None:
        self.correlator.on_llm_error(
            error, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_chain_start(
        self,
        serialized: Optional[Dict[str, Any]],
        inputs: Any,
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any
    ) -> None:
        # runnables built from plain functions are serialized as None
        self.correlator.on_chain_start(
            serialized or {},
            inputs,
            run_id=str(run_id),
            parent_run_id=_run_id(parent_run_id),
            scope=ExecutionScope.current(),
            **kwargs
        )

    def on_chain_end(self, outputs: Any, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any) -> None:
        self.correlator.on_chain_end(
            outputs, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_chain_error(
        self, error: BaseException, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any
    ) -> None:
        self.correlator.on_chain_error(
            error, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_tool_start(
        self,
        serialized: Dict[str, Any],
        input_str: str,
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        **kwargs: Any
    ) -> None:
        self.correlator.on_tool_start(
            serialized or {},
            input_str,
            run_id=str(run_id),
            parent_run_id=_run_id(parent_run_id),
            scope=ExecutionScope.current(),
            **kwargs
        )

    def on_tool_end(self, output: Any, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any) -> None:
        self.correlator.on_tool_end(
            output, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_tool_error(
        self, error: BaseException, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any
    ) -> None:
        self.correlator.on_tool_error(
            error, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_agent_action(
        self, action: Any, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any
    ) -> None:
        self.correlator.on_agent_action(
            action, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )

    def on_agent_finish(
        self, finish: Any, *, run_id: UUID, parent_run_id: Optional[UUID] = None, **kwargs: Any
    ) -> None:
        self.correlator.on_agent_finish(
            finish, run_id=str(run_id), parent_run_id=_run_id(parent_run_id), scope=ExecutionScope.current(), **kwargs
        )
