"""
pytest configuration for sdk_core tests.

Adds src directory to Python path for imports and resets process-wide
state (logging context, config singleton) between tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from opentelemetry.sdk.trace import TracerProvider  # noqa: E402
from opentelemetry.sdk.trace.export import SimpleSpanProcessor  # noqa: E402
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (  # noqa: E402
    InMemorySpanExporter,
)

from sdk_core.config import reset_config  # noqa: E402
from sdk_core.logging.context import clear_log_context  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_global_state():
    clear_log_context()
    reset_config()
    yield
    clear_log_context()
    reset_config()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    """Tracer on a private provider so the global provider is never touched."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("sdk_core.tests")


@pytest.fixture
def no_sleep(monkeypatch):
    """Record retry sleeps instead of waiting."""
    sleeps = []
    monkeypatch.setattr("sdk_core.pipeline.policies.retry.time.sleep", sleeps.append)
    monkeypatch.setattr("sdk_core.resilience.retry.time.sleep", sleeps.append)
    return sleeps
