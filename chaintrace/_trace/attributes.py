"""
Attribute extraction for LangChain run payloads.

LangChain payloads do not share a schema: model identity, generation parameters and token usage
show up under different keys depending on the provider integration. The functions here normalize
those payloads into small records and never raise on missing or malformed fields; whatever cannot be
found is simply left as ``None`` and the corresponding span attribute is omitted.
"""

import enum
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

import attr
from opentelemetry.trace import Span

from chaintrace.constants import UNKNOWN_NAME
from chaintrace.internal.utils import get_attr


class ExecutionKind(str, enum.Enum):
    LLM = "llm"
    CHAT_MODEL = "chat_model"
    CHAIN = "chain"
    TOOL = "tool"
    UNKNOWN = "unknown"


# Priority order used everywhere a model identifier is resolved
MODEL_ID_KEYS = ("model_id", "base_model_id")

INPUT_TOKEN_KEYS = ("prompt_tokens", "input_token_count", "input_tokens")
OUTPUT_TOKEN_KEYS = ("completion_tokens", "generated_token_count", "output_tokens")


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def _first_set(*values: Any) -> Any:
    for value in values:
        if _is_set(value):
            return value
    return None


def _first_key(source: Any, keys: Iterable[str]) -> Any:
    if not isinstance(source, Mapping):
        return None
    return _first_set(*(source.get(key) for key in keys))


def set_span_attribute(span: Span, name: str, value: Any) -> None:
    """Set ``name`` on ``span`` unless the value is missing, ``None`` or an empty string."""
    if _is_set(value):
        span.set_attribute(name, value)


def resolve_model(extra_params: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Find the model identifier of a model run.

    Direct keys are searched before the ones nested under ``invocation_params`` and, at each level,
    ``model_id`` wins over ``base_model_id``.
    """
    if not isinstance(extra_params, Mapping):
        return None
    for source in (extra_params, extra_params.get("invocation_params")):
        model = _first_key(source, MODEL_ID_KEYS)
        if model is not None:
            return str(model)
    return None


@attr.s(frozen=True, slots=True)
class RequestParams(object):
    model = attr.ib(type=Optional[str], default=None)
    max_tokens = attr.ib(type=Optional[int], default=None)
    temperature = attr.ib(type=Optional[float], default=None)
    top_p = attr.ib(type=Optional[float], default=None)

    @classmethod
    def from_extra_params(cls, extra_params: Optional[Mapping[str, Any]]) -> "RequestParams":
        if not isinstance(extra_params, Mapping):
            return cls()
        params = extra_params  # type: Any
        invocation_params = extra_params.get("invocation_params")
        if isinstance(invocation_params, Mapping):
            params = invocation_params.get("params") or invocation_params
        if not isinstance(params, Mapping):
            params = {}
        return cls(
            model=resolve_model(extra_params),
            max_tokens=_first_key(params, ("max_tokens", "max_new_tokens")),
            temperature=params.get("temperature"),
            top_p=params.get("top_p"),
        )


@attr.s(frozen=True, slots=True)
class TokenUsage(object):
    input_tokens = attr.ib(type=Optional[int], default=None)
    output_tokens = attr.ib(type=Optional[int], default=None)

    @classmethod
    def from_usage(cls, usage: Any) -> "TokenUsage":
        return cls(
            input_tokens=_first_key(usage, INPUT_TOKEN_KEYS),
            output_tokens=_first_key(usage, OUTPUT_TOKEN_KEYS),
        )


def _generations_usage(generations: Any) -> Optional[Mapping[str, Any]]:
    # chat models report usage on the generated message rather than in llm_output
    for thread in generations or ():
        for generation in thread or ():
            usage = get_attr(get_attr(generation, "message", None), "usage_metadata", None)
            if usage:
                return usage
    return None


@attr.s(frozen=True, slots=True)
class ModelResponse(object):
    model = attr.ib(type=Optional[str], default=None)
    response_id = attr.ib(type=Optional[str], default=None)
    usage = attr.ib(type=TokenUsage, factory=TokenUsage)

    @classmethod
    def from_response(cls, response: Any) -> "ModelResponse":
        """Normalize a LangChain ``LLMResult`` or a bare ``llm_output`` mapping."""
        if isinstance(response, Mapping):
            llm_output, generations = response, None
        else:
            llm_output = get_attr(response, "llm_output", None)
            generations = get_attr(response, "generations", None)
        if not isinstance(llm_output, Mapping):
            llm_output = {}

        usage = llm_output.get("token_usage") or llm_output.get("usage") or _generations_usage(generations)
        return cls(
            model=_first_key(llm_output, ("model_name", "model_id")),
            response_id=_first_set(llm_output.get("id")),
            usage=TokenUsage.from_usage(usage),
        )


def resolve_name(
    serialized: Optional[Mapping[str, Any]],
    name: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    """Pick the display name of a run.

    Preference: the explicit run name, the resolved model, the serialized component's declared name,
    the last segment of its identifier path, then ``"unknown"``.
    """
    if not isinstance(serialized, Mapping):
        serialized = {}
    serialized_kwargs = serialized.get("kwargs")
    ids = serialized.get("id")
    resolved = _first_set(
        name,
        model,
        serialized_kwargs.get("name") if isinstance(serialized_kwargs, Mapping) else None,
        serialized.get("name"),
        ids[-1] if isinstance(ids, (list, tuple)) and ids else None,
    )
    return str(resolved) if resolved is not None else UNKNOWN_NAME


MetadataValue = Union[bool, int, float, str, bytes, List[str]]


def sanitize_metadata_value(value: Any) -> Optional[MetadataValue]:
    if value is None:
        return None
    if isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, (list, tuple)):
        return [str(sanitize_metadata_value(v)) for v in value]
    return str(value)


def sanitize_metadata(metadata: Optional[Mapping[str, Any]]) -> Dict[str, MetadataValue]:
    """Normalize free-form caller metadata, dropping keys whose value is ``None``."""
    if not metadata:
        return {}
    return {k: sanitize_metadata_value(v) for k, v in metadata.items() if v is not None}  # type: ignore[misc]


def trunc(text: str, limit: int) -> str:
    """Truncate ``text`` to ``limit`` characters, ``0`` meaning no limit."""
    if limit and len(text) > limit:
        return text[:limit] + "..."
    return text
