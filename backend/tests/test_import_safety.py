"""
test_import_safety.py — Import and layering checks.

Verifies that:
  1. Every service, model and route module imports without circular import
     failures (only the module itself is imported, no server is started).
  2. The calculation core stays independent of the HTTP layer.
  3. Configuration constants keep their documented defaults when no
     environment overrides are set.

No database, network, or external services are required.
"""

import sys
import os
import importlib
import inspect
import pytest

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


_SERVICE_MODULES = [
    "site_labour.config",
    "site_labour.services.safe_math",
    "site_labour.services.labour_calculator",
    "site_labour.services.labour_logic",
    "site_labour.services.progress_updates",
    "site_labour.services.labour_analysis",
    "site_labour.services.perf_monitor",
    "site_labour.services.logging_config",
    "site_labour.services.middleware",
]

_MODEL_AND_ROUTE_MODULES = [
    "site_labour.models.labour_schema",
    "site_labour.api.labour_routes",
    "site_labour.api.quote_routes",
    "site_labour.api.progress_routes",
    "site_labour.main",
]


class TestModuleImports:
    """All modules must import without circular import errors."""

    @pytest.mark.parametrize("module_path", _SERVICE_MODULES)
    def test_service_module_imports(self, module_path):
        try:
            mod = importlib.import_module(module_path)
            assert mod is not None, f"Module {module_path} is None after import"
        except Exception as e:
            pytest.fail(f"{module_path} raised on import: {type(e).__name__}: {e}")

    @pytest.mark.parametrize("module_path", _MODEL_AND_ROUTE_MODULES)
    def test_model_and_route_modules_import(self, module_path):
        try:
            mod = importlib.import_module(module_path)
            assert mod is not None
        except Exception as e:
            pytest.fail(f"{module_path} raised on import: {type(e).__name__}: {e}")


class TestLayering:
    """The calculation core must not reach into the web layer."""

    @pytest.mark.parametrize("module_path", [
        "site_labour.services.safe_math",
        "site_labour.services.labour_calculator",
        "site_labour.services.labour_logic",
        "site_labour.services.progress_updates",
    ])
    def test_core_has_no_web_imports(self, module_path):
        src = inspect.getsource(importlib.import_module(module_path))
        assert "fastapi" not in src, f"{module_path} must not depend on FastAPI"
        assert "starlette" not in src, f"{module_path} must not depend on Starlette"

    def test_calculator_holds_no_mutable_state(self):
        """Every attribute of the shared instance is a plain number."""
        from site_labour.services.labour_calculator import labour_calculator
        assert all(isinstance(v, (int, float)) for v in vars(labour_calculator).values())


class TestConfigDefaults:

    def test_documented_defaults(self):
        from site_labour import config
        if any(k.startswith("LABOUR_") for k in os.environ):
            pytest.skip("LABOUR_* overrides present in environment")
        assert config.HOURS_PER_DAY == 8
        assert config.STANDARD_CREW_SIZE == 4
        assert config.MAX_CREW_SIZE == 12
        assert config.TARGET_EFFICIENCY_PCT == 85
        assert config.MEDIUM_TIER_COST_PER_WORKER == 500
        assert config.HIGH_TIER_COST_PER_WORKER == 800
        assert config.DEFAULT_HOURLY_RATE == 45
        assert config.MAX_PROJECTION_DAYS == 3650

    def test_env_helper_ignores_garbage(self, monkeypatch):
        from site_labour import config
        monkeypatch.setenv("LABOUR_TEST_VALUE", "not-a-number")
        assert config._env_float("LABOUR_TEST_VALUE", 8.0) == 8.0
        monkeypatch.setenv("LABOUR_TEST_VALUE", "10")
        assert config._env_int("LABOUR_TEST_VALUE", 8) == 10
