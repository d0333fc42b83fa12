"""
Span attribute keys and operation names emitted by chaintrace.

The attribute keys are part of the external contract: dashboards built on the exported spans match
them byte for byte, so they must never be renamed.
"""


class GenAIOperationValues(object):
    CHAT = "chat"
    TEXT_COMPLETION = "text_completion"
    EXECUTE_TOOL = "execute_tool"
    INVOKE_AGENT = "invoke_agent"
    CHAIN = "chain"


class SpanAttributes(object):
    GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
    GEN_AI_RESPONSE_MODEL = "gen_ai.response.model"
    GEN_AI_REQUEST_MAX_TOKENS = "gen_ai.request.max_tokens"
    GEN_AI_REQUEST_TEMPERATURE = "gen_ai.request.temperature"
    GEN_AI_REQUEST_TOP_P = "gen_ai.request.top_p"
    GEN_AI_SYSTEM = "gen_ai.system"
    GEN_AI_OPERATION_NAME = "gen_ai.operation.name"
    GEN_AI_RESPONSE_ID = "gen_ai.response.id"
    GEN_AI_USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
    GEN_AI_USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"
    GEN_AI_AGENT_NAME = "gen_ai.agent.name"
    GEN_AI_TOOL_CALL_ID = "gen_ai.tool.call_id"
    GEN_AI_TOOL_DESCRIPTION = "gen_ai.tool.description"
    GEN_AI_TOOL_NAME = "gen_ai.tool.name"

    # free-form summaries, only recorded when content capture is enabled
    GEN_AI_PROMPT = "gen_ai.prompt"
    GEN_AI_COMPLETION = "gen_ai.completion"
    GEN_AI_TOOL_INPUT = "gen_ai.tool.input"
    GEN_AI_TOOL_OUTPUT = "gen_ai.tool.output"
    GEN_AI_AGENT_TOOL_INPUT = "gen_ai.agent.tool.input"
    GEN_AI_AGENT_TOOL_NAME = "gen_ai.agent.tool.name"
    GEN_AI_AGENT_TOOL_OUTPUT = "gen_ai.agent.tool.output"


# Context key holding the sanitized caller metadata a run propagates to its descendants
ASSOCIATION_PROPERTIES_KEY = "chaintrace.association_properties"

UNKNOWN_NAME = "unknown"
