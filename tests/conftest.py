from __future__ import annotations

import sqlite3

import pytest

from hisab_daily import config as config_module
from hisab_daily.config import AppConfig, load_config
from hisab_daily.session import sign_up
from hisab_daily.storage import connect


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the developer's secrets.toml and shell environment out of config resolution."""
    monkeypatch.setattr(config_module, "read_streamlit_secrets", lambda: {})
    for name in AppConfig.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def conn() -> sqlite3.Connection:
    connection = connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def user(conn):
    return sign_up(conn, "amina@example.com", "secret123")


@pytest.fixture
def config():
    return load_config(cross_verify=False)
