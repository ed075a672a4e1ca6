from pathlib import Path

import pytest
from pydantic import ValidationError

from repaso.application.config import AppConfig, config_files, resolve_config
from repaso.application.factory import get_card_repository, get_card_service
from repaso.infrastructure.adapters.memory_store import InMemoryCardRepository
from repaso.infrastructure.adapters.sqlite_store import SqliteCardRepository


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "sqlite"
    assert config.db_path == mock_home / ".config/repaso/repaso.db"
    assert config.default_session_limit == 10
    assert config.max_session_limit == 50
    assert config.update_retries == 3
    assert config.port == 8787


def test_config_files_follow_home(mock_home):
    assert config_files() == [
        mock_home / ".config/repaso/config.toml",
        mock_home / ".repaso.toml",
    ]


def test_env_overrides(mock_home, monkeypatch):
    monkeypatch.setenv("REPASO_BACKEND", "memory")
    monkeypatch.setenv("REPASO_DEFAULT_SESSION_LIMIT", "20")

    config = resolve_config()

    assert config.backend == "memory"
    assert config.default_session_limit == 20


def test_toml_file(mock_home):
    cfg_dir = mock_home / ".config/repaso"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text('backend = "memory"\nport = 9000\n')

    config = resolve_config()

    assert config.backend == "memory"
    assert config.port == 9000


def test_env_beats_toml(mock_home, monkeypatch):
    (mock_home / ".repaso.toml").write_text("port = 9000\n")
    monkeypatch.setenv("REPASO_PORT", "9100")

    assert resolve_config().port == 9100


def test_cli_overrides_ignore_none(mock_home, tmp_path):
    config = resolve_config({"port": None, "db_path": str(tmp_path / "x.db")})

    assert config.port == 8787
    assert config.db_path == (tmp_path / "x.db").resolve()


def test_db_path_expands_user(mock_home):
    config = resolve_config({"db_path": "~/cards.db"})
    assert config.db_path == (mock_home / "cards.db").resolve()


def test_default_limit_capped(mock_home):
    assert resolve_config({"default_session_limit": 80}).default_session_limit == 50


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_session_limit": 51},
        {"update_retries": 0},
        {"backend": "postgres"},
    ],
)
def test_invalid_values_rejected(mock_home, overrides):
    with pytest.raises(ValidationError):
        AppConfig(**overrides)


def test_factory_selects_backend(mock_home, tmp_path):
    memory = get_card_repository(resolve_config({"backend": "memory"}))
    assert isinstance(memory, InMemoryCardRepository)

    sqlite = get_card_repository(resolve_config({"db_path": str(tmp_path / "c.db")}))
    assert isinstance(sqlite, SqliteCardRepository)
    assert sqlite.db_path == Path(tmp_path / "c.db").resolve()


def test_factory_card_service_uses_retries(mock_home):
    config = resolve_config({"backend": "memory", "update_retries": 7})
    service = get_card_service(config, get_card_repository(config))
    assert service._retries == 7
