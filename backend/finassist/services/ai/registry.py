"""
Backend registry: holds every configured backend and which one is active.

Callers capture `registry.active()` once per unit of work and keep using that
reference, so a concurrent switch never changes the backend underneath an
in-flight transcribe-then-extract.
"""

import asyncio
import logging
import threading
from typing import Dict, List, Optional

from .base import BackendHealth, ExtractionBackend

logger = logging.getLogger(__name__)


class BackendRegistry:
    def __init__(self):
        self._backends: Dict[str, ExtractionBackend] = {}
        self._active_name: Optional[str] = None
        self._lock = threading.Lock()

    def register(self, name: str, backend: ExtractionBackend) -> None:
        key = name.strip().lower()
        with self._lock:
            self._backends[key] = backend
        logger.info(f"Registered extraction backend '{key}'")

    def set_active(self, name: str) -> bool:
        """Switch the active backend. Unknown names leave the current selection untouched."""
        key = (name or "").strip().lower()
        with self._lock:
            if key not in self._backends:
                logger.warning(f"Cannot switch to unknown backend '{name}', keeping '{self._active_name_locked()}'")
                return False
            previous = self._active_name
            self._active_name = key
        logger.info(f"Active extraction backend switched from '{previous}' to '{key}'")
        return True

    def _active_name_locked(self) -> Optional[str]:
        if self._active_name is not None:
            return self._active_name
        return next(iter(self._backends), None)

    @property
    def active_name(self) -> Optional[str]:
        with self._lock:
            return self._active_name_locked()

    def active(self) -> ExtractionBackend:
        """The selected backend, or the first registered one if none was ever selected"""
        with self._lock:
            name = self._active_name_locked()
            if name is None:
                raise RuntimeError("No extraction backend is registered")
            return self._backends[name]

    def list_names(self) -> List[str]:
        with self._lock:
            return list(self._backends)

    async def health_all(self) -> Dict[str, BackendHealth]:
        """Check every backend independently; one failing check never affects another"""
        with self._lock:
            backends = dict(self._backends)

        async def check(name: str, backend: ExtractionBackend) -> BackendHealth:
            try:
                return await backend.check_health()
            except Exception as e:
                logger.error(f"Health check for '{name}' raised: {e}")
                return BackendHealth(healthy=False, provider=name, error=str(e))

        results = await asyncio.gather(*(check(n, b) for n, b in backends.items()))
        return dict(zip(backends.keys(), results))


def build_registry(settings) -> BackendRegistry:
    """
    Register every backend whose API key is configured and select the preferred one.

    Raises:
        RuntimeError: No backend could be registered
    """
    from .gemini_backend import GeminiBackend
    from .openai_backend import OpenAIBackend

    factories = {
        "openai": OpenAIBackend.from_settings,
        "gemini": GeminiBackend.from_settings,
    }

    registry = BackendRegistry()
    for name in settings.configured_backends:
        registry.register(name, factories[name](settings))

    if not registry.list_names():
        raise RuntimeError("No extraction backend configured: set OPENAI_API_KEY or GEMINI_API_KEY")

    if settings.ai_provider and not registry.set_active(settings.ai_provider):
        logger.warning(f"Preferred backend '{settings.ai_provider}' is not configured, using '{registry.active_name}'")

    return registry
