"""Payment confirmation state machine.

    initialized --start--> polling --success/paid--> confirmed
         |                    |
         |                    +--deadline or attempt ceiling--> abandoned
         +------popup blocked (either state)------> blocked

After checkout opens the gateway's authorization page, the storefront keeps
asking the backend whether the reference has been paid. Verification errors
are treated as transient. The clock and sleep are injectable so the loop can
be driven deterministically.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from impressa.app.common.errors import BackendError

logger = logging.getLogger(__name__)

CONFIRMED_STATUSES = frozenset({"success", "paid"})

DEFAULT_INTERVAL = 4.0
DEFAULT_TIMEOUT = 120.0


class PaymentState(str, Enum):
    INITIALIZED = "initialized"
    POLLING = "polling"
    CONFIRMED = "confirmed"
    ABANDONED = "abandoned"
    BLOCKED = "blocked"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentState.CONFIRMED, PaymentState.ABANDONED, PaymentState.BLOCKED)


@dataclass
class PaymentSession:
    order_id: str
    reference: str
    authorization_url: str
    amount: float
    state: PaymentState = PaymentState.INITIALIZED
    started_at: Optional[float] = None
    attempts: int = 0
    last_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentSession":
        return cls(
            order_id=data["order_id"],
            reference=data["reference"],
            authorization_url=data["authorization_url"],
            amount=data.get("amount", 0),
            state=PaymentState(data.get("state", PaymentState.INITIALIZED.value)),
            started_at=data.get("started_at"),
            attempts=int(data.get("attempts", 0)),
            last_status=data.get("last_status"),
        )


class InvalidTransition(Exception):
    pass


class PaymentConfirmation:
    """Drives one `PaymentSession` towards a terminal state.

    `verify` takes a reference and returns the backend's verification
    payload (`{"status": ...}`); it may raise `BackendError`.
    """

    def __init__(
        self,
        session: PaymentSession,
        verify: Callable[[str], Dict[str, Any]],
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.session = session
        self.verify = verify
        self.interval = interval
        self.timeout = timeout
        self.clock = clock
        self.sleep = sleep

    @property
    def state(self) -> PaymentState:
        return self.session.state

    @property
    def max_attempts(self) -> int:
        return math.ceil(self.timeout / self.interval)

    def start(self) -> None:
        if self.session.state is not PaymentState.INITIALIZED:
            raise InvalidTransition(f"cannot start polling from {self.session.state.value}")
        self.session.started_at = self.clock()
        self.session.state = PaymentState.POLLING

    def mark_blocked(self) -> None:
        if self.session.state.is_terminal:
            raise InvalidTransition(f"payment already {self.session.state.value}")
        logger.info("Authorization window blocked for reference %s", self.session.reference)
        self.session.state = PaymentState.BLOCKED

    def _expired(self) -> bool:
        started = self.session.started_at
        if started is not None and self.clock() - started >= self.timeout:
            return True
        return self.session.attempts >= self.max_attempts

    def poll_once(self) -> PaymentState:
        """Make at most one verification request and return the new state."""
        if self.session.state.is_terminal:
            return self.session.state
        if self.session.state is PaymentState.INITIALIZED:
            self.start()

        if self._expired():
            logger.warning(
                "Payment %s not confirmed after %d attempts; giving up",
                self.session.reference,
                self.session.attempts,
            )
            self.session.state = PaymentState.ABANDONED
            return self.session.state

        self.session.attempts += 1
        try:
            result = self.verify(self.session.reference)
        except BackendError as e:
            logger.info("Verify attempt %d for %s failed: %s", self.session.attempts, self.session.reference, e)
            return self.session.state

        status = str((result or {}).get("status") or "").strip().lower()
        self.session.last_status = status or None
        if status in CONFIRMED_STATUSES:
            logger.info("Payment %s confirmed after %d attempts", self.session.reference, self.session.attempts)
            self.session.state = PaymentState.CONFIRMED
        return self.session.state

    def run(self) -> PaymentState:
        """Poll every `interval` seconds until a terminal state is reached."""
        while True:
            state = self.poll_once()
            if state.is_terminal:
                return state
            self.sleep(self.interval)
