from __future__ import annotations

from pathlib import Path

import pytest

from carcover_app.core import config as app_config


def write_config(tmp_path: Path, db_key_env: str = "CARCOVER_DB_KEY") -> Path:
    config_path = tmp_path / "carcover.yaml"
    config_path.write_text(
        "db:\n"
        "  path: carcover_secure.db\n"
        f"  key_env: {db_key_env}\n"
        "encryption:\n"
        "  key_env: CARCOVER_ENCRYPTION_KEY\n"
        "owner:\n"
        "  identity: owner\n",
        encoding="utf-8",
    )
    return config_path


@pytest.fixture
def isolated_env(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("CARCOVER_DB_KEY", "CARCOVER_ENCRYPTION_KEY", "SHOP_DB_KEY"):
        # setenv first so the loader's own writes are undone after the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setattr(app_config, "_RUNTIME_ENV_LOADED", False)
    monkeypatch.setattr(app_config, "_project_root", lambda: tmp_path)
    return tmp_path


def test_parse_env_line_formats() -> None:
    assert app_config.parse_env_line("CARCOVER_DB_KEY='abc'") == ("CARCOVER_DB_KEY", "abc")
    assert app_config.parse_env_line('export K="x=y"') == ("K", "x=y")
    assert app_config.parse_env_line("# comment") is None
    assert app_config.parse_env_line("no-assignment") is None


def test_get_required_env_loads_from_local_env_file(isolated_env: Path) -> None:
    (isolated_env / ".env.local").write_text(
        "CARCOVER_DB_KEY='db-from-file'\nexport CARCOVER_ENCRYPTION_KEY=\"enc-from-file\"\n",
        encoding="utf-8",
    )

    assert app_config.get_required_env("CARCOVER_DB_KEY") == "db-from-file"
    assert app_config.get_required_env("CARCOVER_ENCRYPTION_KEY") == "enc-from-file"


def test_get_required_env_without_source_fails(isolated_env: Path) -> None:
    with pytest.raises(RuntimeError):
        app_config.get_required_env("CARCOVER_DB_KEY")


def test_ensure_runtime_keys_bootstraps_configured_names(isolated_env: Path) -> None:
    config = app_config.load_config(write_config(isolated_env, db_key_env="SHOP_DB_KEY"))

    app_config.ensure_runtime_keys(config)

    content = (isolated_env / "config" / "runtime.env").read_text(encoding="utf-8")
    assert "SHOP_DB_KEY='" in content
    assert "CARCOVER_ENCRYPTION_KEY='" in content
    assert "CARCOVER_DB_KEY" not in content
    assert app_config.get_required_env("SHOP_DB_KEY")
    assert app_config.get_required_env("CARCOVER_ENCRYPTION_KEY")


def test_ensure_runtime_keys_keeps_existing_values(monkeypatch, isolated_env: Path) -> None:
    monkeypatch.setenv("CARCOVER_DB_KEY", "already-set")
    config = app_config.load_config(write_config(isolated_env))

    app_config.ensure_runtime_keys(config)

    content = (isolated_env / "config" / "runtime.env").read_text(encoding="utf-8")
    assert "CARCOVER_DB_KEY='already-set'" in content


def test_bootstrap_refuses_when_database_exists_without_keys(isolated_env: Path) -> None:
    (isolated_env / "carcover_secure.db").write_bytes(b"")
    config = app_config.load_config(write_config(isolated_env))

    with pytest.raises(RuntimeError):
        app_config.ensure_runtime_keys(config)
    assert not (isolated_env / "config" / "runtime.env").exists()


def test_load_config_reads_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "carcover.yaml"
    config_path.write_text(
        "db:\n"
        "  path: data/test.db\n"
        "  allow_sqlite_fallback: true\n"
        "encryption:\n"
        "  key_env: MY_KEY\n"
        "owner:\n"
        "  identity: ' admin '\n",
        encoding="utf-8",
    )

    config = app_config.load_config(config_path)

    assert config.database.path == "data/test.db"
    assert config.database.key_env == "CARCOVER_DB_KEY"
    assert config.database.allow_sqlite_fallback is True
    assert config.encryption.key_env == "MY_KEY"
    assert config.logging.retention_days == 1095
    assert config.owner.identity == "admin"


def test_load_config_without_owner_fails(tmp_path: Path) -> None:
    config_path = tmp_path / "carcover.yaml"
    config_path.write_text("db:\n  path: x.db\nencryption:\n  key_env: K\n", encoding="utf-8")

    with pytest.raises(RuntimeError):
        app_config.load_config(config_path)
