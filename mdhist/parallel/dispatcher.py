"""Selection of the backend that runs per-species and per-block work."""

from __future__ import annotations

import logging

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threads import ThreadBackend

logger = logging.getLogger(__name__)

BACKENDS: dict[str, type[ParallelBackend]] = {
    "serial": SerialBackend,
    "threads": ThreadBackend,
}

_default_backend: ParallelBackend | None = None


def available_backends() -> list[str]:
    """Names accepted by :func:`get_backend`."""
    return list(BACKENDS)


def create_backend(name: str, **kwargs) -> ParallelBackend:
    """
    Instantiate a backend by name.

    Args:
        name: One of :func:`available_backends`.
        **kwargs: Passed to the backend class (``n_workers`` for threads).

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        cls = BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown backend: {name}. Available: {', '.join(BACKENDS)}"
        ) from None
    backend = cls(**kwargs)
    logger.debug("Created %s backend with %d worker(s)", backend.name, backend.n_workers)
    return backend


def get_backend(
    backend: str | ParallelBackend | None = None,
    **kwargs,
) -> ParallelBackend:
    """
    Resolve the backend an analysis should run on.

    Instances are returned as given, names are instantiated, and None
    gives the process-wide default (serial until changed).

    Examples:
        >>> get_backend().name
        'serial'
        >>> get_backend("threads", n_workers=4).n_workers
        4
    """
    global _default_backend

    if isinstance(backend, ParallelBackend):
        return backend
    if backend is not None:
        return create_backend(backend, **kwargs)
    if _default_backend is None:
        _default_backend = SerialBackend()
    return _default_backend


def set_default_backend(backend: str | ParallelBackend, **kwargs) -> ParallelBackend:
    """Make ``backend`` the one used when analyses are given no backend."""
    global _default_backend
    _default_backend = get_backend(backend, **kwargs)
    return _default_backend


def reset_default_backend() -> None:
    """Forget the default so the next lookup falls back to serial."""
    global _default_backend
    _default_backend = None
