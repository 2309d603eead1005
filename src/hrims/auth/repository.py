from __future__ import annotations

from typing import Optional, Protocol

from .model import UserAccount


class UserRepository(Protocol):
    """Repository interface for UserAccount.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[UserAccount]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[UserAccount]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: int) -> Optional[UserAccount]:
        raise NotImplementedError

    def create(self, user: UserAccount) -> int:
        raise NotImplementedError

    def update(self, user: UserAccount) -> bool:
        raise NotImplementedError

    def delete(self, user_id: int) -> bool:
        raise NotImplementedError
