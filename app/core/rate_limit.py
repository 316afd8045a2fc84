"""
Rate limit muy simple en memoria (por identificador + ruta).

Uso típico:
- Login por IP: allow((ip, "/users/login"), limit=settings.login_rate_per_min, window_seconds=60)
"""
from time import time
from typing import Dict, Tuple

BUCKET: Dict[Tuple[str, str], list[float]] = {}


def allow(key: Tuple[str, str], limit: int = 5, window_seconds: int = 60) -> bool:
    """Devuelve True si se permite la acción y registra el intento.

    key: (identificador, ruta)
    limit: máximo de intentos dentro de la ventana
    window_seconds: ventana de tiempo en segundos
    """
    now = time()
    # descarta identificadores sin intentos dentro de la ventana
    for stale in [k for k, ts in BUCKET.items() if not ts or now - ts[-1] >= window_seconds]:
        del BUCKET[stale]
    q = BUCKET.setdefault(key, [])
    # elimina timestamps fuera de ventana
    q[:] = [t for t in q if now - t < window_seconds]
    if len(q) >= limit:
        return False
    q.append(now)
    return True


def reset() -> None:
    """Limpia el bucket (útil en tests o reinicios)."""
    BUCKET.clear()
