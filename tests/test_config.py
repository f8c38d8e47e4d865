"""
tests/test_config.py — YAML Configuration Loader Tests
=======================================================
"""

from __future__ import annotations

import pytest

from clubhouse.config import ClubhouseConfig, load_config
from clubhouse.constants import DEFAULT_CREATION_FEE


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        path = _write(tmp_path, """
community_name: "Test Clubhouse"
api_port: 9000
owner_index: true
guard_deleted_channels: true
deployer_address: "0xdep10yer"
fee:
  required: true
  amount: 5000
  receiver: "0xfee5"
""")
        cfg = load_config(path)
        assert cfg == ClubhouseConfig(
            community_name="Test Clubhouse",
            api_port=9000,
            fee_required=True,
            fee_amount=5000,
            fee_receiver="0xfee5",
            owner_index=True,
            guard_deleted_channels=True,
            deployer_address="0xdep10yer",
        )

    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, "community_name: c\napi_port: 8000\n"))
        assert cfg.fee_required is False
        assert cfg.fee_amount == DEFAULT_CREATION_FEE
        assert cfg.fee_receiver is None
        assert cfg.owner_index is False
        assert cfg.guard_deleted_channels is False
        assert cfg.deployer_address is None

    def test_blank_receiver_means_initializer(self, tmp_path):
        cfg = load_config(_write(tmp_path, """
community_name: c
api_port: 8000
fee:
  required: true
  receiver: ""
"""))
        assert cfg.fee_receiver is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "api_port: 8000\n"))

    def test_config_is_frozen(self, tmp_path):
        cfg = load_config(_write(tmp_path, "community_name: c\napi_port: 8000\n"))
        with pytest.raises(AttributeError):
            cfg.fee_required = True


class TestEntryPoint:
    def test_serves_on_configured_port(self, tmp_path, monkeypatch):
        import uvicorn

        from clubhouse import __main__ as entry

        path = _write(tmp_path, "community_name: c\napi_port: 9123\n")
        monkeypatch.setenv("CLUBHOUSE_CONFIG", str(path))
        calls = []
        monkeypatch.setattr(uvicorn, "run", lambda app, **kw: calls.append((app, kw)))

        entry.main()

        assert calls == [("clubhouse.api.main:app", {"host": "0.0.0.0", "port": 9123})]
