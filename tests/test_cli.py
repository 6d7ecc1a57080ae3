"""
Tests for the command line entry point.
"""

import asyncio

import pytest

from antighost import cli
from antighost.config import CONFIG_TEMPLATE
from antighost.mentions import MentionCache
from antighost.db import SQLiteStore
from antighost.models import Author, PendingMention


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_dir):
    monkeypatch.delenv('ANTIGHOST_CLIENT_ID', raising=False)
    monkeypatch.delenv('ANTIGHOST_CLIENT_SECRET', raising=False)
    monkeypatch.chdir(tmp_dir)


def test_init_config_writes_template(tmp_dir, display, output):
    path = tmp_dir / "config.yaml"
    assert cli.main(["--config", str(path), "init-config"], display=display) == 0
    assert path.read_text(encoding='utf-8') == CONFIG_TEMPLATE
    assert "Created" in output.getvalue()


def test_run_without_config_exits_with_error(tmp_dir, display, output):
    path = tmp_dir / "config.yaml"
    assert cli.main(["--config", str(path)], display=display) == 1
    assert path.exists()
    assert "Please fill it out" in output.getvalue()


def test_sweep_evicts_stale_mentions(tmp_dir, display, output):
    db_path = tmp_dir / "db.sqlite"
    config_path = tmp_dir / "config.yaml"
    config_path.write_text('client_id: "1"\nclient_secret: "2"\n', encoding='utf-8')

    async def seed():
        store = SQLiteStore(str(db_path))
        await store.initialize()
        cache = MentionCache(store)
        author = Author(id="200", username="someone")
        await cache.set("old", PendingMention("old", "c1", "hi", author, captured_at=0.0))
        await store.close()

    asyncio.run(seed())

    code = cli.main(["--config", str(config_path), "--db-path", str(db_path), "sweep"], display=display)
    assert code == 0
    assert "Evicted 1 pending mentions, 0 still pending." in output.getvalue()


def test_parser_defaults_to_run():
    args = cli.build_parser().parse_args([])
    assert args.command is None
    assert args.debug is False


def test_sweep_rejects_non_positive_ttl(tmp_dir, display, output):
    config_path = tmp_dir / "config.yaml"
    config_path.write_text('client_id: "1"\nclient_secret: "2"\n', encoding='utf-8')

    code = cli.main(["--config", str(config_path), "sweep", "--ttl-hours", "0"], display=display)
    assert code == 1
    assert "--ttl-hours must be positive" in output.getvalue()
