"""pynonmatching.config
Process-wide numerical settings, read from the environment.
"""
import os
from dataclasses import dataclass, replace


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in {"1", "true", "yes"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a float, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """
    Tolerances used by point location and inverse mapping.

    Attributes
    ----------
    locator_tol : float
        Slack on the reference-cell inclusion test, and relative slack on the
        bounding-box pre-check. Points on a shared face are accepted by every
        adjacent cell; the locator then keeps the lowest cell index.
    newton_tol : float
        Step-size tolerance of the Newton inverse mapping.
    newton_maxiter : int
        Iteration cap of the Newton inverse mapping.
    debug : bool
        Extra consistency checks in the coupling core.
    """
    locator_tol: float = 1e-10
    newton_tol: float = 1e-12
    newton_maxiter: int = 50
    debug: bool = False


def get_settings(**overrides) -> Settings:
    """Settings from ``PYNONMATCHING_*`` environment variables, then *overrides*."""
    settings = Settings(
        locator_tol=_env_float("PYNONMATCHING_LOCATOR_TOL", Settings.locator_tol),
        newton_tol=_env_float("PYNONMATCHING_NEWTON_TOL", Settings.newton_tol),
        newton_maxiter=_env_int("PYNONMATCHING_NEWTON_MAXITER", Settings.newton_maxiter),
        debug=_env_flag("PYNONMATCHING_DEBUG"),
    )
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return replace(settings, **overrides) if overrides else settings
