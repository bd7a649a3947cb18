"""Operation-level diagnostic scopes backed by OpenTelemetry."""

from sdk_core.diagnostics.scope import TRACER_NAME, DiagnosticScope, DiagnosticScopeFactory

__all__ = ["DiagnosticScope", "DiagnosticScopeFactory", "TRACER_NAME"]
