from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from chaintrace import SpanCorrelator
from chaintrace.internal import logger as chaintrace_logger
from chaintrace.settings import ChainTraceConfig
from tests.utils import override_env


@pytest.fixture
def span_exporter():
    exporter = InMemorySpanExporter()
    yield exporter
    exporter.clear()


@pytest.fixture
def tracer_provider(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(tracer_provider):
    return tracer_provider.get_tracer(__name__)


@pytest.fixture
def integration_config():
    # Read from a clean environment so that CHAINTRACE_* variables of the host do not leak in
    with override_env({}):
        yield ChainTraceConfig()


@pytest.fixture
def correlator(tracer, integration_config):
    return SpanCorrelator(tracer, integration_config=integration_config)


@pytest.fixture
def get_spans(span_exporter):
    def _get_spans():
        return list(span_exporter.get_finished_spans())

    return _get_spans


@pytest.fixture(autouse=True)
def reset_log_buckets():
    chaintrace_logger._buckets.clear()
    yield
    chaintrace_logger._buckets.clear()
