import langchain_core
from langchain_core.callbacks import base as callbacks_base
from opentelemetry import trace
from wrapt import wrap_function_wrapper as _w

from chaintrace.contrib.langchain.handler import TRACER_NAME
from chaintrace.contrib.langchain.handler import OpenTelemetryCallbackHandler
from chaintrace.internal.logger import get_logger
from chaintrace.internal.utils.wrappers import unwrap
from chaintrace.settings import config
from chaintrace.version import __version__


log = get_logger(__name__)


def get_version():
    # type: () -> str
    return getattr(langchain_core, "__version__", "")


def get_handler():
    """Return the handler registered by :func:`patch`, ``None`` when not patched."""
    return getattr(langchain_core, "_chaintrace_handler", None)


def traced_callback_manager_init(handler):
    def wrapper(func, instance, args, kwargs):
        result = func(*args, **kwargs)
        if any(isinstance(h, OpenTelemetryCallbackHandler) for h in instance.handlers):
            return result
        instance.add_handler(handler, True)
        return result

    return wrapper


def patch(tracer_provider=None):
    """Register an :class:`OpenTelemetryCallbackHandler` on every LangChain callback manager."""
    if getattr(langchain_core, "_chaintrace_patch", False):
        return
    if not config.enabled:
        log.debug("chaintrace is disabled, langchain is left unpatched")
        return

    langchain_core._chaintrace_patch = True

    tracer = trace.get_tracer(TRACER_NAME, __version__, tracer_provider)
    handler = OpenTelemetryCallbackHandler(tracer=tracer, integration_config=config)
    langchain_core._chaintrace_handler = handler

    _w("langchain_core.callbacks.base", "BaseCallbackManager.__init__", traced_callback_manager_init(handler))


def unpatch():
    if not getattr(langchain_core, "_chaintrace_patch", False):
        return

    langchain_core._chaintrace_patch = False

    unwrap(callbacks_base.BaseCallbackManager, "__init__")

    delattr(langchain_core, "_chaintrace_handler")
