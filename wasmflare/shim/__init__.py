"""Generated worker script: host runtime + runtime adapter + trigger dispatch."""

from .generator import FileHostRuntime, GeneratedShim, HostRuntimeSource, ShimGenerator, generate_shim, write_shim
from .templates import ADAPTER_SYMBOLS, BINDING_METHODS, ENTRY_POINTS, HOST_RUNTIME_SYMBOLS

__all__ = [
    "ADAPTER_SYMBOLS",
    "BINDING_METHODS",
    "ENTRY_POINTS",
    "FileHostRuntime",
    "GeneratedShim",
    "HOST_RUNTIME_SYMBOLS",
    "HostRuntimeSource",
    "ShimGenerator",
    "generate_shim",
    "write_shim",
]
