"""
Root test conftest — every test starts from a clean settings state: no
Gemini key, no LIFEORCH_CONFIG override, no .env file and no cached
get_settings() singleton.
"""
import pytest

import lifeorch.config.settings as settings_module

_ISOLATED_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "LIFEORCH_CONFIG")


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for var in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    # a developer's .env must not leak a real key into tests
    no_dotenv = {**settings_module.Settings.model_config, "env_file": None}
    monkeypatch.setattr(settings_module.Settings, "model_config", no_dotenv)
    monkeypatch.setattr(settings_module, "_singleton", None)
