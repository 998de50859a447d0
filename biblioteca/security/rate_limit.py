import threading
import time
from collections import deque

# key ("ip:endpoint") -> deque[timestamps]; sin entradas vacías
_BUCKETS: dict[str, deque[float]] = {}
_LOCK = threading.Lock()

# a partir de aquí cada hit barre las claves caducadas
SWEEP_THRESHOLD = 1024

# endpoint -> (limit, window_sec)
AUTH_LIMITS = {
    "auth.login": (10, 60),
}
DEFAULT_AUTH_LIMIT = (20, 60)


def limits_for(endpoint: str) -> tuple[int, int]:
    return AUTH_LIMITS.get(endpoint, DEFAULT_AUTH_LIMIT)


def _prune(q: deque, cutoff: float) -> None:
    while q and q[0] < cutoff:
        q.popleft()


def _sweep(cutoff: float) -> None:
    for key in [k for k, q in _BUCKETS.items() if not q or q[-1] < cutoff]:
        del _BUCKETS[key]


def hit(key: str, limit: int, window_sec: int, now: float | None = None) -> bool:
    """
    Returns True if allowed, False if rate-limited.
    """
    now = time.time() if now is None else now
    cutoff = now - window_sec

    with _LOCK:
        if len(_BUCKETS) >= SWEEP_THRESHOLD:
            _sweep(cutoff)

        q = _BUCKETS.get(key)
        if q is not None:
            _prune(q, cutoff)

        if len(q or ()) >= limit:
            return False

        if not q:
            q = _BUCKETS[key] = deque()
        q.append(now)
        return True


def sweep(window_sec: int, now: float | None = None) -> int:
    """Borra las claves sin hits dentro de la ventana. Devuelve cuántas quedan."""
    now = time.time() if now is None else now
    with _LOCK:
        _sweep(now - window_sec)
        return len(_BUCKETS)


def reset() -> None:
    with _LOCK:
        _BUCKETS.clear()
