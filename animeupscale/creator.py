"""Build upscalers by processor type and describe the core."""

from __future__ import annotations

from typing import Callable

from animeupscale.ac import AC, ACRuntimeError, Parameters, ProcessorType
from animeupscale.anime4k09 import Anime4K09

_CORE_VERSION = "2.5.0"
_CORE_VERSION_STATUS = "stable"

_REGISTRY: dict[ProcessorType, Callable[[Parameters], AC]] = {
    ProcessorType.CPU_ANIME4K09: Anime4K09,
}


def create(parameters: Parameters | None = None, processor_type=ProcessorType.CPU_ANIME4K09) -> AC:
    """Return a new upscaler of ``processor_type`` configured with ``parameters``.

    ``processor_type`` may be a :class:`ProcessorType` or its name such as
    ``"CPU_Anime4K09"``.  Types that are not available raise
    :class:`ACRuntimeError`.
    """
    try:
        kind = ProcessorType(processor_type)
    except ValueError as exc:
        raise ACRuntimeError(f"Unknown processor type: {processor_type}") from exc
    factory = _REGISTRY.get(kind)
    if factory is None:
        raise ACRuntimeError(f"Unsupported processor type: {kind}")
    return factory(parameters if parameters is not None else Parameters())


def supported_processors() -> str:
    """List the processor types that :func:`create` can build, comma separated."""
    return ", ".join(str(kind) for kind in _REGISTRY)


def cpu_optimization_mode() -> str:
    """Name the optimisation used by the CPU processors."""
    return "Normal"


def version() -> str:
    """Return the core version and its release status."""
    return f"{_CORE_VERSION}-{_CORE_VERSION_STATUS}"