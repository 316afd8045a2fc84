"""
Ciclo de vida de la sesión: login, logout, refresh (rotación) y cambio de contraseña.

Fuente única de verdad sobre "¿sigue vivo este refresh token?": el valor guardado
en la cuenta. Un refresh token válido por firma pero distinto del guardado
(rotado o tras logout) se rechaza siempre.
"""
import logging
from typing import Any, Dict, Optional

from app.core import errors
from app.core.config import AuthConfig
from app.infrastructure.security import token_codec
from app.infrastructure.security.passwords import Argon2PasswordHasher, hash_if_changed
from app.repositories.user_repo import UserRepository, public_account

_log = logging.getLogger("vidtube.auth")


class SessionManager:
    def __init__(self, users: UserRepository, hasher: Argon2PasswordHasher, config: AuthConfig) -> None:
        self.users = users
        self.hasher = hasher
        self.config = config

    def _mint_pair(self, account: Dict[str, Any]) -> Dict[str, str]:
        try:
            access = token_codec.issue_access_token(
                account, self.config.access_secret, self.config.access_ttl, self.config.algorithm
            )
            refresh = token_codec.issue_refresh_token(
                account["_id"], self.config.refresh_secret, self.config.refresh_ttl, self.config.algorithm
            )
        except token_codec.TokenConfigError as e:
            _log.error("No se pueden firmar tokens: %s", e)
            raise errors.InternalError("Something went wrong while generating tokens") from e
        return {"access_token": access, "refresh_token": refresh}

    async def _issue_tokens(self, account: Dict[str, Any]) -> Dict[str, str]:
        """Emite el par y persiste el refresh (sobrescribe el anterior)."""
        pair = self._mint_pair(account)
        stored = await self.users.set_refresh_token(account["_id"], pair["refresh_token"])
        if not stored:
            raise errors.InternalError("Something went wrong while generating tokens")
        return pair

    async def login(self, *, username: Optional[str] = None, email: Optional[str] = None, password: Optional[str] = None) -> Dict[str, Any]:
        username = (username or "").strip()
        email = (email or "").strip()
        if (not username and not email) or not password:
            raise errors.ValidationError("Username or email and password are required")

        account = await self.users.find_by_username_or_email(username=username or None, email=email or None)
        if not account:
            raise errors.NotFound("User does not exist")

        if not await self.hasher.compare(password, account.get("password_hash")):
            _log.info("Login rechazado (password) user_id=%s", account["_id"])
            raise errors.Unauthorized("Incorrect password")

        pair = await self._issue_tokens(account)
        _log.info("Login ok user_id=%s", account["_id"])
        return {**pair, "user": public_account(account)}

    async def logout(self, account_id: Any) -> None:
        # Una sesión autenticada implica que la cuenta existe: si no, es inconsistencia interna
        if not await self.users.clear_refresh_token(account_id):
            raise errors.InternalError("Something went wrong while logging out")
        _log.info("Logout user_id=%s", account_id)

    async def refresh(self, presented: Optional[str]) -> Dict[str, str]:
        if not presented:
            raise errors.Unauthorized("Unauthorized request")

        try:
            payload = token_codec.verify(presented, self.config.refresh_secret, self.config.algorithm)
        except token_codec.TokenExpired as e:
            raise errors.Unauthorized("Refresh token expired") from e
        except token_codec.TokenError as e:
            raise errors.Unauthorized(f"Invalid refresh token: {e}") from e
        except token_codec.TokenConfigError as e:
            raise errors.InternalError("Something went wrong while verifying tokens") from e

        account = await self.users.find_by_id(payload.get("_id"))
        if not account:
            raise errors.Unauthorized("User not found")

        if presented != account.get("refresh_token"):
            _log.warning("Refresh token reutilizado o revocado user_id=%s", account["_id"])
            raise errors.Unauthorized("Refresh token is expired or used")

        pair = self._mint_pair(account)
        # Rotación atómica: solo gana quien todavía presenta el valor guardado
        if not await self.users.swap_refresh_token(account["_id"], presented, pair["refresh_token"]):
            _log.warning("Rotación perdida (carrera) user_id=%s", account["_id"])
            raise errors.Unauthorized("Refresh token is expired or used")
        return pair

    async def change_password(self, account_id: Any, old_password: Optional[str], new_password: Optional[str]) -> None:
        if not old_password or not new_password:
            raise errors.ValidationError("Old and new password are required")
        if old_password == new_password:
            raise errors.ValidationError("New password must be different from the old password")

        account = await self.users.find_by_id(account_id)
        if not account:
            raise errors.NotFound("User does not exist")
        if not await self.hasher.compare(old_password, account.get("password_hash")):
            raise errors.Unauthorized("Invalid old password")

        new_hash = await hash_if_changed(self.hasher, account.get("password_hash"), new_password)
        if not await self.users.set_password_hash(account["_id"], new_hash):
            raise errors.InternalError("Something went wrong while changing the password")
        _log.info("Password actualizado user_id=%s", account["_id"])
