import pytest

from pynonmatching.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("PYNONMATCHING_LOCATOR_TOL", "PYNONMATCHING_NEWTON_TOL",
                 "PYNONMATCHING_NEWTON_MAXITER", "PYNONMATCHING_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    assert get_settings() == Settings()


def test_environment_and_overrides(monkeypatch):
    monkeypatch.setenv("PYNONMATCHING_LOCATOR_TOL", "1e-6")
    monkeypatch.setenv("PYNONMATCHING_NEWTON_MAXITER", "7")
    monkeypatch.setenv("PYNONMATCHING_DEBUG", "yes")
    s = get_settings()
    assert s.locator_tol == 1e-6 and s.newton_maxiter == 7 and s.debug
    assert get_settings(locator_tol=1e-3, newton_tol=None).locator_tol == 1e-3


def test_invalid_environment(monkeypatch):
    monkeypatch.setenv("PYNONMATCHING_NEWTON_MAXITER", "many")
    with pytest.raises(ValueError):
        get_settings()
