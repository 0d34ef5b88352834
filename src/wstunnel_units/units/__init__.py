"""Service descriptors, the registry and the assembler that fills it."""

from .assembler import GenerationResult, assemble, build_descriptor
from .descriptor import BASELINE_SANDBOX, SandboxProfile, ServiceDescriptor
from .registry import ServiceRegistry

__all__ = [
    "assemble",
    "build_descriptor",
    "GenerationResult",
    "ServiceDescriptor",
    "SandboxProfile",
    "BASELINE_SANDBOX",
    "ServiceRegistry",
]
