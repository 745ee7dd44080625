"""Core data models for gitolite-admin: identities, repositories and the Config aggregate.

Groups and repositories refer to identities by name only. The Config object is
the arena that owns every User, Group and Repository and resolves those names.

Naming policy: users and groups share one namespace and the group sigil always
decides the kind. A name starting with ``@`` is a group, anything else is a user.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, field_validator

from gitolite_admin.errors import NameConflict, UnknownPermission
from gitolite_admin.utils import (
    is_key_safe_user_name,
    is_valid_key_label,
    is_valid_name,
    strip_key_comment,
)

logger = logging.getLogger("gitolite_admin.models")

GROUP_SIGIL = "@"
EVERYONE_GROUP = "@all"


# --- Enums ---


class Permission(str, Enum):
    """Access levels understood by gitolite, valued by their config-file token."""

    DENY = "-"
    READ_ONLY = "R"
    READ_WRITE = "RW"
    READ_WRITE_FORCE = "RW+"
    CREATE = "C"
    READ_WRITE_CREATE = "RWC"
    READ_WRITE_FORCE_CREATE = "RW+C"
    READ_WRITE_DELETE = "RWD"
    READ_WRITE_FORCE_DELETE = "RW+D"
    READ_WRITE_CREATE_DELETE = "RWCD"
    READ_WRITE_FORCE_CREATE_DELETE = "RW+CD"

    @property
    def token(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str, line_number: int | None = None) -> "Permission":
        """Look up a permission by its canonical token. Raises UnknownPermission."""
        try:
            return cls(token)
        except ValueError:
            raise UnknownPermission(token, line_number) from None


# --- Identities ---


@runtime_checkable
class Identity(Protocol):
    """Anything that can be granted a permission or be a group member."""

    name: str


class User(BaseModel):
    """A user and its SSH keys, keyed by label ('' is the unlabeled key)."""

    name: str
    keys: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not is_valid_name(v) or v.startswith(GROUP_SIGIL) or "/" in v:
            raise ValueError(f"Invalid user name {v!r}")
        if not is_key_safe_user_name(v):
            raise ValueError(f"User name {v!r} would be read back as <user>@<label>")
        return v

    def set_key(self, material: str, label: str = "") -> None:
        """Store key material under label, dropping any trailing comment."""
        if label and not is_valid_key_label(label):
            raise ValueError(f"Invalid key label {label!r}")
        self.keys[label] = strip_key_comment(material)

    def get_key(self, label: str = "") -> str | None:
        return self.keys.get(label)

    def remove_key(self, label: str = "") -> bool:
        return self.keys.pop(label, None) is not None


class Group(BaseModel):
    """A named, ordered set of member names."""

    name: str
    members: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not is_valid_name(v) or not v.startswith(GROUP_SIGIL) or v == GROUP_SIGIL:
            raise ValueError(f"Invalid group name {v!r}")
        return v

    @property
    def is_everyone(self) -> bool:
        return self.name == EVERYONE_GROUP

    def add_member(self, name: str) -> bool:
        """Append name unless already present. Return True if added."""
        if name in self.members:
            return False
        self.members.append(name)
        return True

    def remove_member(self, name: str) -> bool:
        if name not in self.members:
            return False
        self.members.remove(name)
        return True


class Repository(BaseModel):
    """A repository and its permission multimap (permission -> ordered subject names)."""

    name: str
    permissions: dict[Permission, list[str]] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not is_valid_name(v):
            raise ValueError(f"Invalid repository name {v!r}")
        return v

    def add(self, permission: Permission, subject: str) -> bool:
        subjects = self.permissions.setdefault(permission, [])
        if subject in subjects:
            return False
        subjects.append(subject)
        return True

    def remove(self, permission: Permission, subject: str) -> bool:
        subjects = self.permissions.get(permission)
        if not subjects or subject not in subjects:
            return False
        subjects.remove(subject)
        if not subjects:
            del self.permissions[permission]
        return True

    def remove_subject(self, subject: str) -> bool:
        """Drop subject from every permission. Return True if anything changed."""
        changed = False
        for permission in list(self.permissions):
            changed = self.remove(permission, subject) or changed
        return changed


# --- Aggregate ---


class Config:
    """The complete set of groups, users and repositories, keyed by name.

    Not thread-safe; callers that share one instance must serialize access.
    """

    def __init__(self) -> None:
        self._groups: dict[str, Group] = {}
        self._users: dict[str, User] = {}
        self._repositories: dict[str, Repository] = {}

    # Read views

    @property
    def groups(self) -> list[Group]:
        return list(self._groups.values())

    @property
    def users(self) -> list[User]:
        return list(self._users.values())

    @property
    def repositories(self) -> list[Repository]:
        return list(self._repositories.values())

    def get_group(self, name: str) -> Group | None:
        return self._groups.get(name)

    def get_user(self, name: str) -> User | None:
        return self._users.get(name)

    def get_repository(self, name: str) -> Repository | None:
        return self._repositories.get(name)

    def identity(self, name: str) -> Identity | None:
        if name.startswith(GROUP_SIGIL):
            return self._groups.get(name)
        return self._users.get(name)

    # Creation

    def get_or_create_user(self, name: str) -> User:
        self._check_identity_name(name, "user")
        user = self._users.get(name)
        if user is None:
            user = User(name=name)
            self._users[name] = user
            logger.debug("Created user %s", name)
        return user

    def get_or_create_group(self, name: str) -> Group:
        self._check_identity_name(name, "group")
        group = self._groups.get(name)
        if group is None:
            group = Group(name=name)
            self._groups[name] = group
            logger.debug("Created group %s", name)
        return group

    def get_or_create_repository(self, name: str) -> Repository:
        if not is_valid_name(name):
            raise ValueError(f"Invalid repository name {name!r}")
        repo = self._repositories.get(name)
        if repo is None:
            repo = Repository(name=name)
            self._repositories[name] = repo
            logger.debug("Created repository %s", name)
        return repo

    def resolve(self, name: str) -> Identity:
        """Return the identity called name, creating it if needed.

        Names starting with the group sigil resolve to a Group, all others to a User.
        """
        if name.startswith(GROUP_SIGIL):
            return self.get_or_create_group(name)
        return self.get_or_create_user(name)

    def _check_identity_name(self, name: str, kind: str) -> None:
        if not is_valid_name(name):
            raise NameConflict(name, kind, "names must be non-empty and contain no whitespace")
        is_group_name = name.startswith(GROUP_SIGIL)
        if kind == "group" and not is_group_name:
            reason = "a user with that name exists" if name in self._users else f"group names start with {GROUP_SIGIL!r}"
            raise NameConflict(name, kind, reason)
        if kind == "user" and is_group_name:
            reason = "a group with that name exists" if name in self._groups else f"{GROUP_SIGIL!r} is reserved for groups"
            raise NameConflict(name, kind, reason)
        if kind == "user" and "/" in name:
            raise NameConflict(name, kind, "user names cannot contain '/'")
        if kind == "user" and not is_key_safe_user_name(name):
            raise NameConflict(name, kind, "text after '@' in a user name must be an email domain")
        if kind == "group" and name == GROUP_SIGIL:
            raise NameConflict(name, kind, "group name is empty after the sigil")

    # Mutation

    def add_group_member(self, group: str, member: str) -> bool:
        if group == member:
            raise ValueError(f"Group {group!r} cannot contain itself")
        target = self.get_or_create_group(group)
        self.resolve(member)
        return target.add_member(member)

    def remove_group_member(self, group: str, member: str) -> bool:
        target = self._groups.get(group)
        return target.remove_member(member) if target else False

    def grant(self, repository: str, permission: Permission | str, subject: str) -> bool:
        """Give subject permission on repository, creating both as needed."""
        if not isinstance(permission, Permission):
            permission = Permission.from_token(permission)
        repo = self.get_or_create_repository(repository)
        identity = self.resolve(subject)
        return repo.add(permission, identity.name)

    def revoke(self, repository: str, permission: Permission | str, subject: str) -> bool:
        if not isinstance(permission, Permission):
            permission = Permission.from_token(permission)
        repo = self._repositories.get(repository)
        return repo.remove(permission, subject) if repo else False

    def subjects(self, repository: Repository, permission: Permission) -> list[Identity]:
        """Identities holding permission on repository, in grant order."""
        resolved: list[Identity] = []
        for name in repository.permissions.get(permission, []):
            identity = self.identity(name)
            if identity is not None:
                resolved.append(identity)
        return resolved

    def remove_user(self, name: str) -> bool:
        if self._users.pop(name, None) is None:
            return False
        self._drop_references(name)
        return True

    def remove_group(self, name: str) -> bool:
        if self._groups.pop(name, None) is None:
            return False
        self._drop_references(name)
        return True

    def remove_repository(self, name: str) -> bool:
        return self._repositories.pop(name, None) is not None

    def _drop_references(self, name: str) -> None:
        for group in self._groups.values():
            group.remove_member(name)
        for repo in self._repositories.values():
            repo.remove_subject(name)

    # Misc

    def copy(self) -> "Config":
        clone = Config()
        clone._groups = {k: v.model_copy(deep=True) for k, v in self._groups.items()}
        clone._users = {k: v.model_copy(deep=True) for k, v in self._users.items()}
        clone._repositories = {k: v.model_copy(deep=True) for k, v in self._repositories.items()}
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Config):
            return NotImplemented
        return (
            self._groups == other._groups
            and self._users == other._users
            and self._repositories == other._repositories
        )

    def __repr__(self) -> str:
        return (
            f"Config(groups={len(self._groups)}, users={len(self._users)}, "
            f"repositories={len(self._repositories)})"
        )
