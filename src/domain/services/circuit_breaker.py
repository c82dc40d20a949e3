"""Circuit Breaker - global gate consulted by every mutating ledger operation."""

# Standard library imports
import logging

from ..events import CircuitBreakerToggled
from ..exceptions_ledger import CircuitBreakerEngagedError
from .unit_of_work import LedgerUnitOfWork

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Single boolean gate. Read-only queries never consult it."""

    def __init__(self, unit_of_work: LedgerUnitOfWork, engaged: bool = False) -> None:
        self._uow = unit_of_work
        self._engaged = engaged

    @property
    def engaged(self) -> bool:
        with self._uow.reading():
            return self._engaged

    def ensure_disengaged(self, operation: str) -> None:
        """Raise if mutating operations are currently disabled.

        Raises:
            CircuitBreakerEngagedError: If the breaker is engaged
        """
        if self._engaged:
            raise CircuitBreakerEngagedError(operation)

    def engage(self) -> None:
        self._set(True)

    def disengage(self) -> None:
        self._set(False)

    def _set(self, engaged: bool) -> None:
        with self._uow.atomic("toggle_circuit_breaker"):
            if self._engaged == engaged:
                return
            self._uow.track_attr(self, "_engaged")
            self._engaged = engaged
            self._uow.emit(CircuitBreakerToggled(engaged=engaged))
            logger.warning(
                f"Circuit breaker {'engaged' if engaged else 'disengaged'}",
                extra={"operation_type": "circuit_breaker"},
            )
