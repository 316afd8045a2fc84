"""
Creación y verificación de JWTs de acceso y de refresh.

- Access: snapshot de identidad (`_id`, email, username, full_name), vida corta.
- Refresh: solo `_id`, vida larga y secreto propio.
Cada token lleva `jti` aleatorio, así dos emisiones en el mismo segundo difieren.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping
from uuid import uuid4

import jwt as pyjwt


class TokenError(ValueError):
    """Token presente pero no válido."""


class TokenExpired(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class TokenConfigError(RuntimeError):
    """Falta el secreto de firma (error de configuración, no del cliente)."""


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: Dict[str, Any], secret: str | None, ttl: timedelta, algorithm: str) -> str:
    if not secret:
        raise TokenConfigError("Token secret is not configured")
    now = _now_utc()
    payload = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "jti": uuid4().hex,
    }
    return pyjwt.encode(payload, secret, algorithm=algorithm)


def issue_access_token(snapshot: Mapping[str, Any], secret: str | None, ttl: timedelta, algorithm: str = "HS256") -> str:
    """Firma `{_id, email, username, full_name}` con expiración `ttl`."""
    claims = {
        "_id": str(snapshot["_id"]),
        "email": snapshot.get("email"),
        "username": snapshot.get("username"),
        "full_name": snapshot.get("full_name"),
    }
    return _encode(claims, secret, ttl, algorithm)


def issue_refresh_token(account_id: Any, secret: str | None, ttl: timedelta, algorithm: str = "HS256") -> str:
    """Firma `{_id}` con el secreto de refresh (independiente del de acceso)."""
    return _encode({"_id": str(account_id)}, secret, ttl, algorithm)


def verify(token: str, secret: str | None, algorithm: str = "HS256") -> Dict[str, Any]:
    """Decodifica y valida firma/expiración. Devuelve payload.

    Lanza `TokenExpired` o `InvalidSignature`; `TokenConfigError` si no hay secreto.
    """
    if not secret:
        raise TokenConfigError("Token secret is not configured")
    try:
        return pyjwt.decode(token, key=secret, algorithms=[algorithm], options={"require": ["exp", "_id"]})
    except pyjwt.ExpiredSignatureError as e:
        raise TokenExpired(str(e)) from e
    except pyjwt.InvalidTokenError as e:
        raise InvalidSignature(str(e)) from e
