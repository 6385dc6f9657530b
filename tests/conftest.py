from __future__ import annotations

import pytest

RELAY_ENV_VARS = (
    "OLLAMA_URL",
    "OLLAMA_MODEL",
    "OLLAMA_TIMEOUT_SECONDS",
    "OLLACHAT_RELAY_URL",
)


@pytest.fixture(autouse=True)
def clear_relay_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
