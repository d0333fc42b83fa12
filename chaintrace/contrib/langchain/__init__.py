"""
The LangChain integration registers an OpenTelemetry callback handler on every LangChain callback
manager, emitting one span per LLM, chat model, chain and tool run. Spans follow the parent/child
structure of the runs, and a run whose end event never arrives is closed together with its parent.

All spans are tagged with the ``gen_ai.*`` attributes that apply to their run:

- ``gen_ai.operation.name``: ``chat``, ``text_completion``, ``execute_tool`` or ``invoke_agent``.
- ``gen_ai.system``: name of the LLM or chat model component.
- ``gen_ai.request.model`` / ``gen_ai.response.model``: model requested and model that answered.
- ``gen_ai.usage.input_tokens`` / ``gen_ai.usage.output_tokens``: token usage reported by the provider.
- ``gen_ai.tool.name``, ``gen_ai.tool.call_id``, ``gen_ai.tool.description`` for tool runs.


Prompt and Completion Capture
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Chain inputs and outputs, tool inputs and outputs, and agent tool inputs and outputs are recorded as
span attributes unless ``CHAINTRACE_CAPTURE_CONTENT`` is false. ``CHAINTRACE_SPAN_CHAR_LIMIT`` bounds
the length of each of them.


Enabling
~~~~~~~~

Use :func:`patch() <chaintrace.patch>` to enable the LangChain integration::

    from chaintrace import patch

    patch(langchain=True)

Spans are created with the global OpenTelemetry tracer provider. To use another one, patch the
integration directly::

    from chaintrace.contrib.langchain import patch

    patch(tracer_provider=provider)

A handler can also be passed explicitly to a single run::

    from chaintrace.contrib.langchain import OpenTelemetryCallbackHandler

    chain.invoke(inputs, config={"callbacks": [OpenTelemetryCallbackHandler()]})

Runs executed inside :func:`chaintrace.suppress_instrumentation` are not traced.


Global Configuration
~~~~~~~~~~~~~~~~~~~~

.. py:data:: chaintrace.config.enabled

   Whether :func:`patch` registers the handler.

   This option can also be set with the ``CHAINTRACE_ENABLED`` environment variable.

   Default: ``True``
"""
from chaintrace.contrib.langchain.handler import OpenTelemetryCallbackHandler
from chaintrace.contrib.langchain.patch import get_handler
from chaintrace.contrib.langchain.patch import get_version
from chaintrace.contrib.langchain.patch import patch
from chaintrace.contrib.langchain.patch import unpatch


__all__ = ["OpenTelemetryCallbackHandler", "get_handler", "get_version", "patch", "unpatch"]
