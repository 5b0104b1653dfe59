"""Interception layer.

Wraps write entry points of connection types with the classify-and-record
step, selecting a forwarding wrapper per entry point call convention.
"""

from tablerewind.infrastructure.interception.adapter_registry import AdapterRegistry
from tablerewind.infrastructure.interception.interceptor import InsertInterceptor
from tablerewind.infrastructure.interception.recorded_connection import (
    DEFAULT_ENTRY_POINTS,
    RecordedConnection,
    connection_type_defined,
)
from tablerewind.infrastructure.interception.signature_adapter import (
    AdaptedSignature,
    CallConvention,
    EntryPoint,
    SignatureAdapter,
    is_wrapped,
    wrapper_interceptor,
)

__all__ = [
    "AdaptedSignature",
    "AdapterRegistry",
    "CallConvention",
    "DEFAULT_ENTRY_POINTS",
    "EntryPoint",
    "InsertInterceptor",
    "RecordedConnection",
    "SignatureAdapter",
    "connection_type_defined",
    "is_wrapped",
    "wrapper_interceptor",
]
