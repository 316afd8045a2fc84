"""
Hash de contraseñas con Argon2id.

El hash es CPU-bound: se ejecuta en el executor por defecto para no bloquear
el event loop mientras se atienden otras peticiones.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type


class Argon2PasswordHasher:
    def __init__(self, *, time_cost: int = 2, memory_cost: int = 51200, parallelism: int = 2) -> None:
        self._ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
            type=Type.ID,
        )

    async def hash(self, password: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._ph.hash, password)

    async def compare(self, password: str, password_hash: Optional[str]) -> bool:
        """True si `password` corresponde a `password_hash`; nunca lanza por mismatch."""
        if not password or not password_hash:
            return False

        def _verify() -> bool:
            try:
                return self._ph.verify(password_hash, password)
            except (VerifyMismatchError, VerificationError, InvalidHashError):
                return False

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _verify)


async def hash_if_changed(hasher: Argon2PasswordHasher, existing_hash: Optional[str], incoming_password: Optional[str]) -> Optional[str]:
    """Hash explícito para los dos puntos donde se fija contraseña (registro y cambio).

    Sin contraseña nueva se conserva el hash existente; nunca se guarda texto plano.
    """
    if not incoming_password:
        return existing_hash
    return await hasher.hash(incoming_password)
