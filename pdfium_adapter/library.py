"""Process-wide reference counting of backend library initialisation."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Type

from .backends.base import PDFBackend
from .exceptions import LibraryError

LOGGER = logging.getLogger("pdfium_adapter.library")

_LOCK = threading.Lock()
_REF_COUNTS: Dict[type, int] = {}


def library_ref_count(backend_type: Type) -> int:
    """Number of live guards for ``backend_type``."""
    with _LOCK:
        return _REF_COUNTS.get(backend_type, 0)


class LibraryGuard:
    """
    Keeps a backend's library initialised while held.

    The first guard acquired for a backend type calls ``init_library()``; the
    last one released calls ``destroy_library()``. Each guard counts once, no
    matter how often :meth:`acquire` is called on it.
    """

    def __init__(self, backend: PDFBackend) -> None:
        self.backend = backend
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> "LibraryGuard":
        key = type(self.backend)
        with _LOCK:
            if self._held:
                return self
            count = _REF_COUNTS.get(key, 0)
            if count == 0:
                try:
                    self.backend.init_library()
                except Exception as exc:
                    raise LibraryError(f"Unable to initialise {key.__name__}: {exc}") from exc
                LOGGER.debug("Initialised %s", key.__name__)
            _REF_COUNTS[key] = count + 1
            self._held = True
        return self

    def release(self) -> None:
        key = type(self.backend)
        with _LOCK:
            if not self._held:
                return
            self._held = False
            count = _REF_COUNTS.get(key, 0) - 1
            if count > 0:
                _REF_COUNTS[key] = count
                return
            _REF_COUNTS.pop(key, None)
            try:
                self.backend.destroy_library()
            except Exception as exc:
                raise LibraryError(f"Unable to release {key.__name__}: {exc}") from exc
            LOGGER.debug("Released %s", key.__name__)

    def __enter__(self) -> "LibraryGuard":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
