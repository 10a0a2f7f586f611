"""Tests for the local account and session handling."""

import pytest

from mindcare.auth.accounts import AccountService, UserStore, hash_password, verify_password
from mindcare.auth.session import SessionManager
from mindcare.journal.journal_models import User
from mindcare.utils.exceptions import AuthenticationError, StorageFailure, ValidationError


@pytest.fixture
def users(store, settings):
    return UserStore(store, settings)


@pytest.fixture
def accounts(users):
    return AccountService(users)


class TestPasswords:

    def test_verify_round_trip(self):
        record = hash_password("s3cret", iterations=1000)
        assert verify_password("s3cret", record)
        assert not verify_password("wrong", record)

    def test_salt_differs_per_hash(self):
        assert hash_password("same", iterations=1000)["hash"] != hash_password("same", iterations=1000)["hash"]

    def test_malformed_record(self):
        assert verify_password("x", {"salt": "zz"}) is False


class TestAccounts:

    def test_sign_up_then_sign_in(self, accounts, users):
        user = accounts.sign_up("Jane Doe", "pw")
        assert user.picture.startswith("https://ui-avatars.com/api/?name=Jane%20Doe")
        assert "pw" not in str(users.get_credentials())

        assert accounts.sign_in("Jane Doe", "pw").id == user.id
        assert accounts.current_user().id == user.id

    def test_sign_in_without_account(self, accounts):
        with pytest.raises(AuthenticationError, match="No account found"):
            accounts.sign_in("Jane", "pw")

    def test_sign_in_wrong_name(self, accounts):
        accounts.sign_up("Jane", "pw")
        with pytest.raises(AuthenticationError, match="Invalid username"):
            accounts.sign_in("John", "pw")

    def test_sign_in_wrong_password(self, accounts):
        accounts.sign_up("Jane", "pw")
        with pytest.raises(AuthenticationError, match="Invalid password"):
            accounts.sign_in("Jane", "nope")

    def test_duplicate_name_conflicts(self, accounts):
        accounts.sign_up("Jane", "pw")
        with pytest.raises(AuthenticationError) as exc:
            accounts.sign_up("Jane", "other")
        assert exc.value.conflict is True

    @pytest.mark.parametrize("name,password", [("", "pw"), ("   ", "pw"), ("Jane", "")])
    def test_sign_up_requires_name_and_password(self, accounts, name, password):
        with pytest.raises(ValidationError):
            accounts.sign_up(name, password)

    def test_rename_updates_picture(self, accounts, users):
        user = accounts.sign_up("Jane", "pw")
        renamed = accounts.rename(user.id, "  Jane Smith ")
        assert renamed.name == "Jane Smith"
        assert renamed.picture.endswith("name=Jane%20Smith&background=2563eb&color=fff&size=40")
        assert users.get().name == "Jane Smith"
        assert accounts.sign_in("Jane Smith", "pw").id == user.id

    def test_rename_requires_current_user(self, accounts):
        accounts.sign_up("Jane", "pw")
        with pytest.raises(AuthenticationError):
            accounts.rename("someone-else", "X")

    def test_corrupt_user_record(self, users, store, settings):
        store.write(settings.user_key, b"[1, 2")
        with pytest.raises(StorageFailure):
            users.get()


class TestSessions:

    def test_open_get_close(self):
        sessions = SessionManager()
        session = sessions.open(User(name="Jane"))
        assert sessions.require(session.token) is session
        assert sessions.close(session.token) is True
        assert sessions.get(session.token) is None
        assert sessions.close(session.token) is False

    def test_require_unknown_token(self):
        with pytest.raises(AuthenticationError, match="Not authenticated"):
            SessionManager().require("missing")

    def test_refresh_user_and_close_all(self):
        sessions = SessionManager()
        user = User(name="Jane")
        a = sessions.open(user)
        b = sessions.open(user)
        assert a.token != b.token

        renamed = User(id=user.id, name="Janet", created_at=user.created_at)
        sessions.refresh_user(renamed)
        assert sessions.get(a.token).user.name == "Janet"

        assert sessions.close_all() == 2
        assert sessions.get(b.token) is None
