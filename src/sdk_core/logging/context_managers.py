"""Context managers for structured logging."""

from typing import Dict, Optional

from sdk_core.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(operation="ConfigurationClient.Get"):
            # All logs in this block carry the operation name
            send()
    """

    def __init__(
        self,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        client_request_id: Optional[str] = None,
        trace_id: Optional[str] = None,
    ):
        self.new_context = {
            "service": service,
            "operation": operation,
            "client_request_id": client_request_id,
            "trace_id": trace_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            service=self.old_context.get("service", ""),
            operation=self.old_context.get("operation", ""),
            client_request_id=self.old_context.get("client_request_id", ""),
            trace_id=self.old_context.get("trace_id", ""),
        )
        return False
