"""User directory behind an injectable repository.

There is no login. The directory only tracks who exists and in what role,
so the backing store can be swapped without touching callers.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .config import SeedUserConfig
from .db.repository import Database, UserRecord
from .errors import UserNotFound, ValidationError

USER_ROLES = ("admin", "approver", "user")
USER_STATUSES = ("active", "inactive")


class UserRepository(ABC):
    """Storage interface for users."""

    @abstractmethod
    def list_users(self) -> list[UserRecord]:
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> UserRecord | None:
        pass

    @abstractmethod
    def create_user(self, username: str, email: str, role: str, status: str) -> UserRecord:
        pass

    @abstractmethod
    def update_status(self, user_id: int, status: str) -> UserRecord | None:
        pass

    @abstractmethod
    def update_role(self, user_id: int, role: str) -> UserRecord | None:
        pass

    @abstractmethod
    def delete_user(self, user_id: int) -> bool:
        pass


class InMemoryUserRepository(UserRepository):
    """Process-local users, optionally seeded from config."""

    def __init__(self, seed: list[SeedUserConfig] | None = None):
        self._users: dict[int, UserRecord] = {}
        self._next_id = 1
        for entry in seed or []:
            self.create_user(entry.username, entry.email, entry.role, entry.status)

    def list_users(self) -> list[UserRecord]:
        return sorted(self._users.values(), key=lambda u: u.username)

    def get_user(self, user_id: int) -> UserRecord | None:
        return self._users.get(user_id)

    def create_user(self, username: str, email: str, role: str, status: str) -> UserRecord:
        user = UserRecord(
            id=self._next_id,
            username=username,
            email=email,
            role=role,
            status=status,
            created_at=datetime.now().isoformat(),
        )
        self._users[user.id] = user
        self._next_id += 1
        return user

    def update_status(self, user_id: int, status: str) -> UserRecord | None:
        user = self._users.get(user_id)
        if user is not None:
            user.status = status
        return user

    def update_role(self, user_id: int, role: str) -> UserRecord | None:
        user = self._users.get(user_id)
        if user is not None:
            user.role = role
        return user

    def delete_user(self, user_id: int) -> bool:
        return self._users.pop(user_id, None) is not None


class DatabaseUserRepository(UserRepository):
    """Users stored in the ``users`` table."""

    def __init__(self, db: Database):
        self.db = db

    def list_users(self) -> list[UserRecord]:
        return self.db.list_users()

    def get_user(self, user_id: int) -> UserRecord | None:
        return self.db.get_user(user_id)

    def create_user(self, username: str, email: str, role: str, status: str) -> UserRecord:
        return self.db.create_user(username, email, role=role, status=status)

    def update_status(self, user_id: int, status: str) -> UserRecord | None:
        return self.db.update_user(user_id, status=status)

    def update_role(self, user_id: int, role: str) -> UserRecord | None:
        return self.db.update_user(user_id, role=role)

    def delete_user(self, user_id: int) -> bool:
        return self.db.delete_user(user_id)


class UserService:
    """User administration on top of any UserRepository."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    def list_users(self) -> list[UserRecord]:
        return self.repository.list_users()

    def create_user(
        self,
        username: str,
        email: str,
        role: str = "user",
        status: str = "active",
    ) -> UserRecord:
        if not username or not username.strip():
            raise ValidationError("Username is required")
        if not email or "@" not in email:
            raise ValidationError(f"Invalid email address: {email!r}")
        self._check_role(role)
        self._check_status(status)
        return self.repository.create_user(username.strip(), email.strip(), role, status)

    def update_status(self, user_id: int, status: str) -> UserRecord:
        self._check_status(status)
        return self._found(user_id, self.repository.update_status(user_id, status))

    def update_role(self, user_id: int, role: str) -> UserRecord:
        self._check_role(role)
        return self._found(user_id, self.repository.update_role(user_id, role))

    def delete_user(self, user_id: int) -> None:
        # Deleting an unknown user is not an error
        self.repository.delete_user(user_id)

    def get_user(self, user_id: int) -> UserRecord:
        return self._found(user_id, self.repository.get_user(user_id))

    @staticmethod
    def _found(user_id: int, user: UserRecord | None) -> UserRecord:
        if user is None:
            raise UserNotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def _check_role(role: str) -> None:
        if role not in USER_ROLES:
            raise ValidationError(f"Invalid role '{role}'")

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in USER_STATUSES:
            raise ValidationError(f"Invalid status '{status}'")
