"""Admin Service - Application layer gate for administrative ledger operations.

Every operation takes the caller's identity and requires the ADMIN role
before delegating to the domain service that owns the state. Administrative
operations are not gated by the circuit breaker, so an admin can still
reconfigure the ledger or disengage the breaker while it is engaged.
"""

from ...domain.interfaces import IPriceSource
from ...domain.services import (
    AccessControl,
    AssetRegistry,
    CircuitBreaker,
    PositionLedger,
    Role,
)
from ...infrastructure.monitoring.logging import log_ledger_operation


class AdminService:
    """Administrative operations on the registry, ledger, breaker and roles."""

    def __init__(
        self,
        access_control: AccessControl,
        registry: AssetRegistry,
        ledger: PositionLedger,
        circuit_breaker: CircuitBreaker,
    ) -> None:
        self.access_control = access_control
        self.registry = registry
        self.ledger = ledger
        self.circuit_breaker = circuit_breaker

    def _require_admin(self, caller: str, operation: str) -> None:
        self.access_control.require_role(Role.ADMIN, caller, operation)

    # --- Asset registry ---

    @log_ledger_operation("register_asset")
    def register_asset(self, caller: str, asset: str, source: IPriceSource) -> None:
        """Register an asset or replace its price source."""
        self._require_admin(caller, "register_asset")
        self.registry.register(asset, source)

    @log_ledger_operation("deregister_asset")
    def deregister_asset(self, caller: str, asset: str) -> None:
        self._require_admin(caller, "deregister_asset")
        self.registry.deregister(asset)

    # --- Ledger configuration ---

    @log_ledger_operation("set_fee_bps")
    def set_fee_bps(self, caller: str, fee_bps: int) -> None:
        """Set the fee taken from realized profit, in basis points (0-1000)."""
        self._require_admin(caller, "set_fee_bps")
        self.ledger.set_fee_bps(fee_bps)

    @log_ledger_operation("set_open_bounds")
    def set_open_bounds(self, caller: str, minimum: int, maximum: int) -> None:
        self._require_admin(caller, "set_open_bounds")
        self.ledger.set_open_bounds(minimum, maximum)

    @log_ledger_operation("set_min_sell_amount")
    def set_min_sell_amount(self, caller: str, minimum: int) -> None:
        self._require_admin(caller, "set_min_sell_amount")
        self.ledger.set_min_sell_amount(minimum)

    # --- Circuit breaker ---

    @log_ledger_operation("engage_circuit_breaker")
    def engage_circuit_breaker(self, caller: str) -> None:
        self._require_admin(caller, "engage_circuit_breaker")
        self.circuit_breaker.engage()

    @log_ledger_operation("disengage_circuit_breaker")
    def disengage_circuit_breaker(self, caller: str) -> None:
        self._require_admin(caller, "disengage_circuit_breaker")
        self.circuit_breaker.disengage()

    # --- Held value ---

    @log_ledger_operation("sweep_excess")
    def sweep_excess(self, caller: str, recipient: str, amount: int) -> None:
        """Send held value not backing active principal to a recipient."""
        self._require_admin(caller, "sweep_excess")
        self.ledger.sweep_excess(recipient, amount)

    # --- Roles ---

    @log_ledger_operation("grant_role")
    def grant_role(self, caller: str, role: Role, account: str) -> None:
        self._require_admin(caller, "grant_role")
        self.access_control.grant(role, account)

    @log_ledger_operation("revoke_role")
    def revoke_role(self, caller: str, role: Role, account: str) -> None:
        self._require_admin(caller, "revoke_role")
        self.access_control.revoke(role, account)
