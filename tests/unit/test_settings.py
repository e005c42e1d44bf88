"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from couchstore.config.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COUCHSTORE_COUCH__URL", raising=False)
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.couch.url == "http://localhost:5984"
        assert s.store.id_property == "id"
        assert s.store.view is None
        assert s.observability.log_format == "json"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COUCHSTORE_COUCH__URL", "http://couch.internal:5984/")
        monkeypatch.setenv("COUCHSTORE_STORE__ID_PROPERTY", "_id")
        monkeypatch.setenv("COUCHSTORE_STORE__VIEW_OPTIONS", '{"include_docs": true}')
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.couch.url == "http://couch.internal:5984"
        assert s.store.id_property == "_id"
        assert s.store.view_options == {"include_docs": True}

    def test_from_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("COUCHSTORE_COUCH__URL", raising=False)
        config = tmp_path / "couchstore.yaml"
        config.write_text(
            "couch:\n"
            "  url: http://yaml.test:5984\n"
            "  timeout: 5\n"
            "store:\n"
            "  database: articles\n"
            "  view: articles/by_year\n"
            "  view_options:\n"
            "    descending: true\n"
        )
        s = Settings.from_yaml(config)
        assert s.couch.url == "http://yaml.test:5984"
        assert s.couch.timeout == 5.0
        assert s.store.database == "articles"
        assert s.store.view_options == {"descending": True}

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("COUCHSTORE_COUCH__URL", "http://env.test:5984")
        config = tmp_path / "couchstore.yaml"
        config.write_text("couch:\n  url: http://yaml.test:5984\n  timeout: 5\n")

        s = Settings.from_yaml(config)

        assert s.couch.url == "http://env.test:5984"
        assert s.couch.timeout == 5.0
        assert isinstance(s, Settings)

    def test_empty_yaml_uses_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("COUCHSTORE_COUCH__URL", raising=False)
        config = tmp_path / "empty.yaml"
        config.write_text("")

        s = Settings.from_yaml(config)

        assert s.couch.url == "http://localhost:5984"
        assert s.store.database is None
