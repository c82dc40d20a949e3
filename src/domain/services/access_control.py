"""
Access Control - explicit role store for privileged operations.

Privileged operations receive the caller's identity and look it up here
instead of relying on an ambient notion of "who is calling". Two roles exist:
``ADMIN`` for administrative configuration and ``AUTOMATION`` for the trusted
copy-trading executor.
"""

# Standard library imports
import logging
from enum import Enum

from ..events import RoleChanged
from ..exceptions import ValidationError
from ..exceptions_ledger import UnauthorizedCallerError
from .unit_of_work import LedgerUnitOfWork

logger = logging.getLogger(__name__)


class Role(Enum):
    """Roles recognized by the ledger."""

    ADMIN = "admin"
    AUTOMATION = "automation"


class AccessControl:
    """Role membership with a defined mutation API."""

    def __init__(
        self,
        unit_of_work: LedgerUnitOfWork,
        admin: str,
        automation_accounts: list[str] | None = None,
    ) -> None:
        if not admin:
            raise ValidationError("Admin account cannot be empty", field="admin")

        self._uow = unit_of_work
        self._members: dict[Role, set[str]] = {
            Role.ADMIN: {admin},
            Role.AUTOMATION: set(automation_accounts or []),
        }

    def has_role(self, role: Role, account: str) -> bool:
        with self._uow.reading():
            return account in self._members[role]

    def is_authorized(self, caller: str) -> bool:
        """Check whether a caller may drive copy trades on a follower's behalf."""
        return self.has_role(Role.AUTOMATION, caller)

    def require_role(self, role: Role, caller: str, operation: str) -> None:
        """Raise unless the caller holds the role.

        Raises:
            UnauthorizedCallerError: If the caller lacks the role
        """
        if not self.has_role(role, caller):
            logger.warning(
                f"Rejected {operation} from {caller}",
                extra={"operation_type": "authorization", "caller": caller, "role": role.value},
            )
            raise UnauthorizedCallerError(caller, role.value, operation)

    def members(self, role: Role) -> list[str]:
        with self._uow.reading():
            return sorted(self._members[role])

    def grant(self, role: Role, account: str) -> None:
        if not account:
            raise ValidationError("Account cannot be empty", field="account")

        with self._uow.atomic("grant_role"):
            if account in self._members[role]:
                return
            self._uow.track_key(self._members, role)
            self._members[role] = self._members[role] | {account}
            self._uow.emit(RoleChanged(role=role.value, account=account, granted=True))
            logger.info(f"Granted {role.value} to {account}", extra={"operation_type": "role"})

    def revoke(self, role: Role, account: str) -> None:
        with self._uow.atomic("revoke_role"):
            if account not in self._members[role]:
                return
            if role is Role.ADMIN and len(self._members[role]) == 1:
                raise ValidationError(
                    "Cannot revoke the last admin", field="account", value=account
                )
            self._uow.track_key(self._members, role)
            self._members[role] = self._members[role] - {account}
            self._uow.emit(RoleChanged(role=role.value, account=account, granted=False))
            logger.info(f"Revoked {role.value} from {account}", extra={"operation_type": "role"})
