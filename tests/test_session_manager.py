"""Tests del ciclo de vida de sesión (login, refresh con rotación, logout, cambio de contraseña)."""
import asyncio
from datetime import timedelta

import pytest
from bson import ObjectId

from app.core import errors
from app.core.config import AuthConfig
from app.infrastructure.security import token_codec
from app.services.session_manager import SessionManager


class TestLogin:
    async def test_login_by_username_returns_tokens_and_public_user(self, sessions, account, users, auth_config):
        res = await sessions.login(username="U1 ", password="pw1")
        payload = token_codec.verify(res["access_token"], auth_config.access_secret)
        assert payload["username"] == "u1"
        assert payload["_id"] == str(account["_id"])
        assert users.stored_refresh_token(account["_id"]) == res["refresh_token"]
        assert "password_hash" not in res["user"]
        assert "refresh_token" not in res["user"]
        assert res["user"]["id"] == str(account["_id"])

    async def test_login_by_email(self, sessions, account):
        res = await sessions.login(email="U1@X.com", password="pw1")
        assert res["user"]["username"] == "u1"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"password": "pw1"},
            {"username": "u1"},
            {"username": "  ", "email": "", "password": "pw1"},
        ],
    )
    async def test_login_requires_identifier_and_password(self, sessions, users, kwargs):
        with pytest.raises(errors.ValidationError):
            await sessions.login(**kwargs)

    async def test_login_unknown_account(self, sessions, account):
        with pytest.raises(errors.NotFound):
            await sessions.login(username="ghost", password="pw1")

    async def test_wrong_password_leaves_stored_token_untouched(self, sessions, account, users):
        first = await sessions.login(username="u1", password="pw1")
        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.login(username="u1", password="wrong")
        assert exc.value.message == "Incorrect password"
        assert users.stored_refresh_token(account["_id"]) == first["refresh_token"]

    async def test_login_overwrites_previous_refresh_token(self, sessions, account, users):
        first = await sessions.login(username="u1", password="pw1")
        second = await sessions.login(username="u1", password="pw1")
        assert users.stored_refresh_token(account["_id"]) == second["refresh_token"]
        with pytest.raises(errors.Unauthorized):
            await sessions.refresh(first["refresh_token"])

    async def test_storage_failure_commits_no_tokens(self, sessions, account, users):
        users.fail_writes = True
        with pytest.raises(errors.InternalError):
            await sessions.login(username="u1", password="pw1")
        assert users.stored_refresh_token(account["_id"]) is None

    async def test_missing_secret_is_internal_error(self, users, hasher, account):
        config = AuthConfig(access_secret=None, access_ttl=timedelta(minutes=1), refresh_secret=None, refresh_ttl=timedelta(days=1))
        with pytest.raises(errors.InternalError):
            await SessionManager(users, hasher, config).login(username="u1", password="pw1")


class TestRefresh:
    async def test_rotation_invalidates_consumed_token(self, sessions, account, users):
        t1 = (await sessions.login(username="u1", password="pw1"))["refresh_token"]
        pair = await sessions.refresh(t1)
        assert pair["refresh_token"] != t1
        assert users.stored_refresh_token(account["_id"]) == pair["refresh_token"]

        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.refresh(t1)
        assert "expired or used" in exc.value.message

    async def test_new_access_token_is_valid(self, sessions, account, auth_config):
        t1 = (await sessions.login(username="u1", password="pw1"))["refresh_token"]
        pair = await sessions.refresh(t1)
        assert token_codec.verify(pair["access_token"], auth_config.access_secret)["username"] == "u1"

    async def test_absent_token(self, sessions):
        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.refresh(None)
        assert exc.value.message == "Unauthorized request"

    async def test_access_token_is_not_a_refresh_token(self, sessions, account):
        access = (await sessions.login(username="u1", password="pw1"))["access_token"]
        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.refresh(access)
        assert exc.value.message.startswith("Invalid refresh token")

    async def test_expired_refresh_token(self, sessions, account, auth_config, users):
        expired = token_codec.issue_refresh_token(account["_id"], auth_config.refresh_secret, timedelta(seconds=-5))
        await users.set_refresh_token(account["_id"], expired)
        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.refresh(expired)
        assert exc.value.message == "Refresh token expired"

    async def test_vanished_account(self, sessions, auth_config):
        token = token_codec.issue_refresh_token(ObjectId(), auth_config.refresh_secret, auth_config.refresh_ttl)
        with pytest.raises(errors.Unauthorized) as exc:
            await sessions.refresh(token)
        assert exc.value.message == "User not found"

    async def test_concurrent_refresh_yields_single_winner(self, sessions, account, users):
        t1 = (await sessions.login(username="u1", password="pw1"))["refresh_token"]
        swaps = []
        original_swap = users.swap_refresh_token

        async def recording_swap(user_id, expected, new):
            swapped = await original_swap(user_id, expected, new)
            swaps.append(swapped)
            return swapped

        users.swap_refresh_token = recording_swap
        results = await asyncio.gather(sessions.refresh(t1), sessions.refresh(t1), return_exceptions=True)
        winners = [r for r in results if isinstance(r, dict)]
        losers = [r for r in results if isinstance(r, errors.Unauthorized)]
        assert len(winners) == 1
        assert len(losers) == 1
        # ambos pasaron la comparación con el valor guardado; decide el compare-and-swap
        assert sorted(swaps) == [False, True]
        assert losers[0].message == "Refresh token is expired or used"
        assert users.stored_refresh_token(account["_id"]) == winners[0]["refresh_token"]

    async def test_unconditional_overwrite_lets_both_refreshes_win(self, sessions, account, users):
        t1 = (await sessions.login(username="u1", password="pw1"))["refresh_token"]

        async def blind_swap(user_id, expected, new):
            return await users.set_refresh_token(user_id, new)

        users.swap_refresh_token = blind_swap
        results = await asyncio.gather(sessions.refresh(t1), sessions.refresh(t1), return_exceptions=True)
        assert all(isinstance(r, dict) for r in results)


class TestLogout:
    async def test_logout_revokes_refresh_token(self, sessions, account, users):
        t1 = (await sessions.login(username="u1", password="pw1"))["refresh_token"]
        await sessions.logout(account["_id"])
        assert users.stored_refresh_token(account["_id"]) is None
        with pytest.raises(errors.Unauthorized):
            await sessions.refresh(t1)

    async def test_logout_is_idempotent(self, sessions, account):
        await sessions.logout(account["_id"])
        await sessions.logout(account["_id"])

    async def test_logout_of_missing_account_is_internal_error(self, sessions):
        with pytest.raises(errors.InternalError):
            await sessions.logout(ObjectId())


class TestChangePassword:
    async def test_new_password_replaces_old(self, sessions, account, users):
        await sessions.change_password(account["_id"], "pw1", "pw2")
        stored = users.docs[account["_id"]]["password_hash"]
        assert stored not in ("pw1", "pw2")
        assert (await sessions.login(username="u1", password="pw2"))["access_token"]
        with pytest.raises(errors.Unauthorized):
            await sessions.login(username="u1", password="pw1")

    async def test_same_password_rejected_before_store_access(self, hasher, auth_config):
        class ExplodingRepo:
            def __getattr__(self, name):
                raise AssertionError(f"store touched: {name}")

        manager = SessionManager(ExplodingRepo(), hasher, auth_config)
        with pytest.raises(errors.ValidationError):
            await manager.change_password(ObjectId(), "pw1", "pw1")

    @pytest.mark.parametrize("old,new", [(None, "x"), ("x", None), ("", "")])
    async def test_both_passwords_required(self, sessions, account, old, new):
        with pytest.raises(errors.ValidationError):
            await sessions.change_password(account["_id"], old, new)

    async def test_wrong_old_password(self, sessions, account):
        with pytest.raises(errors.Unauthorized):
            await sessions.change_password(account["_id"], "nope", "pw2")
