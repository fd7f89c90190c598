"""
One-shot readiness gate for the data backend.

The gate is settled exactly once, either ready or failed. Callers block on
``wait()`` for at most ``timeout`` seconds and get back an explicit state
instead of polling a shared flag. A timeout is not an error: callers
proceed and let their first backend read fail on its own terms.
"""

import enum
import os
from concurrent.futures import Future, TimeoutError as FutureTimeout
from concurrent.futures import InvalidStateError
from typing import Optional

from homegrown.common.logger import get_logger

logger = get_logger(__name__)

DEFAULT_READY_TIMEOUT = float(os.getenv("HOMEGROWN_BACKEND_READY_TIMEOUT", "5.0"))


class GateState(str, enum.Enum):
    READY = "ready"
    NOT_READY = "not_ready"


class BackendGate:
    def __init__(self):
        self._future: Future = Future()

    @classmethod
    def ready(cls) -> "BackendGate":
        gate = cls()
        gate.set_ready()
        return gate

    def set_ready(self) -> None:
        try:
            self._future.set_result(True)
        except InvalidStateError:
            logger.debug("[gate] already settled, ignoring set_ready")
            return
        logger.info("[gate] backend ready")

    def set_failed(self, exc: BaseException) -> None:
        try:
            self._future.set_exception(exc)
        except InvalidStateError:
            logger.debug("[gate] already settled, ignoring set_failed")
            return
        logger.error(f"[gate] backend failed to initialise: {exc}")

    def is_settled(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> GateState:
        if timeout is None:
            timeout = DEFAULT_READY_TIMEOUT
        try:
            self._future.result(timeout=timeout)
        except FutureTimeout:
            logger.warning(f"[gate] backend not ready after {timeout}s, proceeding")
            return GateState.NOT_READY
        except Exception as exc:
            logger.warning(f"[gate] backend unavailable: {exc}")
            return GateState.NOT_READY
        return GateState.READY
