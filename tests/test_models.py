"""Tests for the Config aggregate, identities and permissions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gitolite_admin.errors import NameConflict, UnknownPermission
from gitolite_admin.models import (
    EVERYONE_GROUP,
    Config,
    Group,
    Identity,
    Permission,
    User,
)


class TestPermission:
    def test_from_token(self):
        assert Permission.from_token("RW+") is Permission.READ_WRITE_FORCE
        assert Permission.from_token("-") is Permission.DENY
        assert Permission.READ_ONLY.token == "R"

    def test_unknown_token(self):
        with pytest.raises(UnknownPermission) as exc_info:
            Permission.from_token("RX", line_number=7)
        assert exc_info.value.token == "RX"
        assert exc_info.value.line_number == 7


class TestGetOrCreate:
    def test_returns_same_instance(self):
        config = Config()
        assert config.get_or_create_user("alice") is config.get_or_create_user("alice")
        assert config.get_or_create_group("@ops") is config.get_or_create_group("@ops")
        assert config.get_or_create_repository("proj") is config.get_or_create_repository("proj")
        assert len(config.users) == 1
        assert len(config.groups) == 1
        assert len(config.repositories) == 1

    def test_group_without_sigil_conflicts(self):
        config = Config()
        config.get_or_create_user("alice")
        with pytest.raises(NameConflict) as exc_info:
            config.get_or_create_group("alice")
        assert "user with that name exists" in exc_info.value.message

    def test_user_with_sigil_conflicts(self):
        with pytest.raises(NameConflict):
            Config().get_or_create_user("@ops")

    @pytest.mark.parametrize("name", ["", "two words", "@"])
    def test_invalid_identity_names(self, name):
        config = Config()
        with pytest.raises(NameConflict):
            config.resolve(name)

    @pytest.mark.parametrize("name", ["deploy@ci", "a.b@host", "carol@"])
    def test_user_name_that_reads_back_as_label(self, name):
        with pytest.raises(NameConflict):
            Config().get_or_create_user(name)
        with pytest.raises(ValidationError):
            User(name=name)

    def test_email_user_name(self):
        user = Config().get_or_create_user("alice@example.com")
        assert user.name == "alice@example.com"

    def test_invalid_repository_name(self):
        with pytest.raises(ValueError):
            Config().get_or_create_repository("")

    def test_resolve_uses_sigil(self):
        config = Config()
        assert isinstance(config.resolve("@ops"), Group)
        assert isinstance(config.resolve("ops"), User)
        assert isinstance(config.resolve("ops"), Identity)


class TestMutation:
    def test_add_group_member_creates_user(self):
        config = Config()
        assert config.add_group_member("@ops", "alice") is True
        assert config.add_group_member("@ops", "alice") is False
        assert config.get_group("@ops").members == ["alice"]
        assert config.get_user("alice") is not None

    def test_nested_group_member(self):
        config = Config()
        config.add_group_member("@all-staff", "@ops")
        assert isinstance(config.identity("@ops"), Group)

    def test_group_cannot_contain_itself(self):
        with pytest.raises(ValueError):
            Config().add_group_member("@ops", "@ops")

    def test_grant_keeps_order_and_ignores_duplicates(self):
        config = Config()
        config.grant("proj", "RW", "bob")
        config.grant("proj", Permission.READ_WRITE, "alice")
        config.grant("proj", Permission.READ_WRITE, "bob")
        repo = config.get_repository("proj")
        assert repo.permissions[Permission.READ_WRITE] == ["bob", "alice"]
        assert [i.name for i in config.subjects(repo, Permission.READ_WRITE)] == ["bob", "alice"]

    def test_revoke_drops_empty_permission(self):
        config = Config()
        config.grant("proj", "R", "alice")
        assert config.revoke("proj", "R", "alice") is True
        assert config.revoke("proj", "R", "alice") is False
        assert config.get_repository("proj").permissions == {}

    def test_remove_user_drops_references(self, sample_config):
        assert sample_config.remove_user("alice") is True
        assert sample_config.get_group("@developers").members == ["bob"]
        assert Permission.READ_WRITE_FORCE not in sample_config.get_repository("gitolite-admin").permissions
        assert sample_config.remove_user("alice") is False

    def test_remove_group_drops_references(self, sample_config):
        sample_config.remove_group("@developers")
        repo = sample_config.get_repository("project")
        assert list(repo.permissions) == [Permission.READ_ONLY]

    def test_remove_repository(self, sample_config):
        assert sample_config.remove_repository("project") is True
        assert [r.name for r in sample_config.repositories] == ["gitolite-admin"]


class TestUserKeys:
    def test_set_key_strips_comment(self, alice_key):
        user = User(name="alice")
        user.set_key(f"{alice_key} alice@host\n")
        assert user.get_key() == alice_key

    def test_set_key_rejects_bad_material(self):
        with pytest.raises(ValueError):
            User(name="alice").set_key("not-a-key")

    @pytest.mark.parametrize("label", ["has.dot", "a@b", "sub/dir", "two words"])
    def test_set_key_rejects_bad_label(self, label, alice_key):
        with pytest.raises(ValueError):
            User(name="alice").set_key(alice_key, label)

    def test_remove_key(self, alice_key):
        user = User(name="alice")
        user.set_key(alice_key, "laptop")
        assert user.remove_key("laptop") is True
        assert user.remove_key("laptop") is False


class TestValidation:
    def test_group_model_requires_sigil(self):
        with pytest.raises(ValidationError):
            Group(name="ops")

    def test_user_model_rejects_sigil(self):
        with pytest.raises(ValidationError):
            User(name="@ops")

    def test_everyone_group(self):
        assert Group(name=EVERYONE_GROUP).is_everyone
        assert not Group(name="@ops").is_everyone


class TestEqualityAndCopy:
    def test_copy_is_independent(self, sample_config):
        clone = sample_config.copy()
        assert clone == sample_config
        clone.add_group_member("@developers", "carol")
        assert clone != sample_config

    def test_equality_is_structural(self, sample_config):
        other = Config()
        other.add_group_member("@developers", "alice")
        other.add_group_member("@developers", "bob")
        other.grant("gitolite-admin", "RW+", "alice")
        other.grant("project", "RW+", "@developers")
        other.grant("project", "R", "carol")
        assert other == sample_config

    def test_member_order_matters(self):
        a, b = Config(), Config()
        a.add_group_member("@g", "x")
        a.add_group_member("@g", "y")
        b.add_group_member("@g", "y")
        b.add_group_member("@g", "x")
        assert a != b
