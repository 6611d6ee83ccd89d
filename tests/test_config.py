"""Tests for configuration loading and secret resolution."""

from __future__ import annotations

import pytest

from clinic_ids.codec import IdentifierCodec
from clinic_ids.config import (
    DEFAULT_SECRET,
    GatewayConfig,
    build_codec,
    load_config,
    parse_bool,
)

_ENV_KEYS = (
    "CLINIC_IDS_OBFUSCATION_SECRET",
    "CLINIC_IDS_AUTH_SECRET",
    "CLINIC_IDS_ACCEPT_LEGACY_IDS",
    "CLINIC_IDS_STRICT_ENCODE",
    "CLINIC_IDS_API_KEY",
    "CLINIC_IDS_HOST",
    "CLINIC_IDS_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def missing(tmp_path):
    return tmp_path / "absent.ini"


def _write_ini(tmp_path, text: str):
    path = tmp_path / "clinic_ids.ini"
    path.write_text(text)
    return path


class TestDefaults:
    def test_no_file_no_env(self, missing):
        config = load_config(missing)
        assert config == GatewayConfig()
        assert config.obfuscation_secret == DEFAULT_SECRET
        assert config.accept_legacy_ids is True
        assert config.strict_encode is False


class TestSecretResolution:
    def test_ini_codec_secret(self, tmp_path):
        path = _write_ini(tmp_path, "[codec]\nsecret = from-ini\n")
        assert load_config(path).obfuscation_secret == "from-ini"

    def test_ini_gateway_auth_secret_is_last_resort(self, tmp_path):
        path = _write_ini(tmp_path, "[gateway]\nauth_secret = auth-ini\n")
        assert load_config(path).obfuscation_secret == "auth-ini"

    def test_codec_secret_beats_auth_secret_in_ini(self, tmp_path):
        path = _write_ini(
            tmp_path,
            "[codec]\nsecret = codec-ini\n[gateway]\nauth_secret = auth-ini\n",
        )
        assert load_config(path).obfuscation_secret == "codec-ini"

    def test_auth_env_beats_ini(self, tmp_path, monkeypatch):
        path = _write_ini(tmp_path, "[codec]\nsecret = from-ini\n")
        monkeypatch.setenv("CLINIC_IDS_AUTH_SECRET", "auth-env")
        assert load_config(path).obfuscation_secret == "auth-env"

    def test_obfuscation_env_wins(self, tmp_path, monkeypatch):
        path = _write_ini(tmp_path, "[codec]\nsecret = from-ini\n")
        monkeypatch.setenv("CLINIC_IDS_AUTH_SECRET", "auth-env")
        monkeypatch.setenv("CLINIC_IDS_OBFUSCATION_SECRET", "obf-env")
        assert load_config(path).obfuscation_secret == "obf-env"

    def test_empty_env_is_skipped(self, missing, monkeypatch):
        monkeypatch.setenv("CLINIC_IDS_OBFUSCATION_SECRET", "")
        monkeypatch.setenv("CLINIC_IDS_AUTH_SECRET", "auth-env")
        assert load_config(missing).obfuscation_secret == "auth-env"


class TestOverrides:
    def test_ini_values(self, tmp_path):
        path = _write_ini(
            tmp_path,
            "[codec]\naccept_legacy_ids = no\nstrict_encode = yes\n"
            "[gateway]\nhost = 0.0.0.0\nport = 9100\n",
        )
        config = load_config(path)
        assert config.accept_legacy_ids is False
        assert config.strict_encode is True
        assert config.host == "0.0.0.0"
        assert config.port == 9100

    def test_env_overrides_ini(self, tmp_path, monkeypatch):
        path = _write_ini(tmp_path, "[gateway]\nport = 9100\n")
        monkeypatch.setenv("CLINIC_IDS_PORT", "9200")
        monkeypatch.setenv("CLINIC_IDS_STRICT_ENCODE", "true")
        config = load_config(path)
        assert config.port == 9200
        assert config.strict_encode is True

    def test_api_key_from_ini_and_env(self, tmp_path, monkeypatch):
        path = _write_ini(tmp_path, "[gateway]\napi_key = ini-key\n")
        assert load_config(path).api_key == "ini-key"
        monkeypatch.setenv("CLINIC_IDS_API_KEY", "env-key")
        assert load_config(path).api_key == "env-key"

    def test_api_key_defaults_to_open(self, missing):
        assert load_config(missing).api_key == ""

    def test_bad_boolean_raises(self, missing, monkeypatch):
        monkeypatch.setenv("CLINIC_IDS_ACCEPT_LEGACY_IDS", "maybe")
        with pytest.raises(ValueError):
            load_config(missing)

    @pytest.mark.parametrize("raw, expected", [("1", True), ("On", True), ("0", False), (" FALSE ", False)])
    def test_parse_bool(self, raw, expected):
        assert parse_bool(raw) is expected


class TestBuildCodec:
    def test_codec_follows_config(self):
        config = GatewayConfig(obfuscation_secret="s", accept_legacy_ids=False, strict_encode=True)
        codec = build_codec(config)
        assert isinstance(codec, IdentifierCodec)
        assert codec.accept_legacy is False
        assert codec.strict is True

    def test_secret_determines_key(self):
        token = build_codec(GatewayConfig(obfuscation_secret="one")).encode("abc")
        assert build_codec(GatewayConfig(obfuscation_secret="one")).decode(token) == "abc"
        assert build_codec(GatewayConfig(obfuscation_secret="two")).decode(token) != "abc"
