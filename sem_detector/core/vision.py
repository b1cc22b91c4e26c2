"""
Computer-vision capability loading.

The vision library (OpenCV) is obtained once, in the background, as a
single-shot future. Consumers poll `status` or block on `wait()`; nobody
reads a module-level global. States:

  PENDING -> INITIALIZING -> READY
  PENDING | INITIALIZING -> FAILED
  any but READY -> FORCED    (timeout or explicit user override)

Exactly one fallback source is tried before FAILED.
"""

from __future__ import annotations
import importlib
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from enum import Enum
from types import ModuleType
from typing import Callable, Optional, Sequence

from .errors import VisionUnavailableError

logger = logging.getLogger(__name__)

PRIMARY_SOURCE = "cv2"
FALLBACK_SOURCE = "cv2.cv2"
LOAD_TIMEOUT_S = 10.0

# Entry points detection relies on; a module lacking them is not usable
REQUIRED_ATTRS = ("cvtColor", "GaussianBlur", "HoughCircles")


class VisionStatus(Enum):
    PENDING = "loading"
    INITIALIZING = "initializing"
    READY = "loaded"
    FAILED = "failed"
    FORCED = "forced"

    def __str__(self) -> str:
        return self.value


class VisionLoader:
    """Loads the vision module once and exposes it as a capability."""

    def __init__(
        self,
        primary: str = PRIMARY_SOURCE,
        fallback: Optional[str] = FALLBACK_SOURCE,
        timeout: float = LOAD_TIMEOUT_S,
        importer: Callable[[str], ModuleType] = importlib.import_module,
    ) -> None:
        self.sources: Sequence[str] = [s for s in (primary, fallback) if s]
        self.timeout = float(timeout)
        self._import = importer
        self._future: Future = Future()
        self._lock = threading.Lock()
        self._status = VisionStatus.PENDING
        self._module: Optional[ModuleType] = None
        self._error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    # ---- lifecycle ----
    @property
    def status(self) -> VisionStatus:
        return self._status

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def is_usable(self) -> bool:
        """True once detection may be attempted (ready or forced)."""
        return self._status in (VisionStatus.READY, VisionStatus.FORCED)

    def start(self) -> Future:
        """Begin loading in a daemon thread (idempotent)."""
        with self._lock:
            if self._thread is None and not self._future.done():
                self._thread = threading.Thread(target=self._run, name="vision-loader", daemon=True)
                self._thread.start()
        return self._future

    def load_now(self) -> VisionStatus:
        """Load synchronously in the calling thread."""
        if not self._future.done():
            self._run()
        return self._status

    def _run(self) -> None:
        last: Optional[BaseException] = None
        for i, name in enumerate(self.sources):
            if i > 0:
                logger.warning("vision source %r failed, trying fallback %r", self.sources[0], name)
            try:
                mod = self._import(name)
            except ImportError as e:
                last = e
                continue
            self._mark_initializing()
            missing = [a for a in REQUIRED_ATTRS if not hasattr(mod, a)]
            if missing:
                last = ImportError(f"{name} lacks {', '.join(missing)}")
                continue
            self._settle(VisionStatus.READY, module=mod)
            return
        self._settle(VisionStatus.FAILED, error=last)

    def _mark_initializing(self) -> None:
        with self._lock:
            if not self._future.done():
                self._status = VisionStatus.INITIALIZING

    def _settle(self, status: VisionStatus, module: Optional[ModuleType] = None,
                error: Optional[BaseException] = None) -> None:
        with self._lock:
            if self._future.done():
                # Forced before the load finished: keep the late module if it arrived.
                if module is not None and self._module is None:
                    self._module = module
                return
            self._status = status
            self._module = module
            self._error = error
            self._future.set_result(status)
        if status is VisionStatus.READY:
            logger.info("vision library loaded (%s)", getattr(module, "__version__", "?"))
        else:
            logger.error("vision library failed to load: %s", error)

    def wait(self, timeout: Optional[float] = None) -> VisionStatus:
        """Block until settled; on timeout switch to FORCED."""
        self.start()
        try:
            return self._future.result(timeout=self.timeout if timeout is None else timeout)
        except FutureTimeout:
            logger.warning("vision loading timed out after %.1f s, forcing", self.timeout)
            return self.force()

    def force(self) -> VisionStatus:
        """User override: assume the library is present and continue."""
        with self._lock:
            if self._status is VisionStatus.READY:
                return self._status
            self._status = VisionStatus.FORCED
            if not self._future.done():
                self._future.set_result(VisionStatus.FORCED)
        logger.warning("vision capability forced; detection may fail")
        return self._status

    # ---- capability ----
    def capability(self) -> ModuleType:
        """Return the vision module or raise VisionUnavailableError."""
        if self._module is not None and self.is_usable:
            return self._module
        if self._status is VisionStatus.FORCED:
            for name in self.sources:
                try:
                    self._module = self._import(name)
                    return self._module
                except ImportError:
                    continue
            raise VisionUnavailableError("OpenCV is not available. Please try restarting the application.")
        raise VisionUnavailableError(f"OpenCV is not loaded (status: {self._status}).")
