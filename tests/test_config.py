from __future__ import annotations

from pathlib import Path

import pytest

from tess.config import API_KEY_ENV, KEYRING_SERVICE, KEYRING_USERNAME, Config, mask_token


def test_load_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = Config.load(tmp_path / "missing.toml")

    assert config.api.base_url == "https://api.latticehq.com/"
    assert config.api.timeout == 15
    assert config.api.review_limit == 100
    assert config.export.rclone_remote == "drive"
    assert config.export.upload_format == "docx"


def test_dump_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    config = Config()
    config.api.timeout = 30
    config.export.rclone_remote = "work-drive"
    config.templates.hub_id = "hub123"

    config.dump(path)
    loaded = Config.load(path)

    assert loaded.api.timeout == 30
    assert loaded.export.rclone_remote == "work-drive"
    assert loaded.templates.hub_id == "hub123"


def test_dump_keeps_a_backup(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    Config().dump(path)
    Config().dump(path)

    assert list(tmp_path.glob("config.*.bak"))


def test_load_rejects_invalid_files(tmp_path: Path) -> None:
    broken = tmp_path / "broken.toml"
    broken.write_text("[api\ntimeout = ", encoding="utf-8")
    invalid = tmp_path / "invalid.toml"
    invalid.write_text("[api]\ntimeout = -1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Failed to parse"):
        Config.load(broken)
    with pytest.raises(ValueError, match="Invalid configuration"):
        Config.load(invalid)


def test_unknown_upload_format_falls_back_to_docx(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[export]\nupload_format = "ODT"\n', encoding="utf-8")

    assert Config.load(path).export.upload_format == "docx"


def test_set_and_get_value() -> None:
    config = Config()

    config.set_value("api.timeout", "45")
    config.set_value("export.upload_format", "PDF")

    assert config.get_value("api.timeout") == 45
    assert config.get_value("export.upload_format") == "pdf"


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("timeout", "1", "Invalid key format"),
        ("llm.model", "x", "Invalid section"),
        ("api.retries", "1", "Invalid field"),
        ("api.timeout", "soon", "Cannot convert"),
        ("api.timeout", "0", "Validation error"),
        ("api.base_url", "ftp://x", "Validation error"),
    ],
)
def test_set_value_rejects_bad_input(key: str, value: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        Config().set_value(key, value)


def test_api_key_prefers_environment(monkeypatch, memory_keyring) -> None:
    memory_keyring[(KEYRING_SERVICE, KEYRING_USERNAME)] = "from-keyring"
    config = Config()

    assert config.get_api_key() == "from-keyring"

    monkeypatch.setenv(API_KEY_ENV, " from-env ")
    assert config.get_api_key() == "from-env"


def test_update_auth_stores_in_keyring(memory_keyring) -> None:
    config = Config()

    config.update_auth("secret-key")

    assert memory_keyring[(KEYRING_SERVICE, KEYRING_USERNAME)] == "secret-key"
    assert config.has_api_key()


def test_validate_required_fields() -> None:
    config = Config()

    with pytest.raises(ValueError, match="API key is not set"):
        config.validate_required_fields()

    config.update_auth("secret-key")
    config.validate_required_fields()


def test_display_dict_masks_key() -> None:
    config = Config()
    config.update_auth("Bearer abcdefghijkl")

    display = config.to_display_dict()

    assert display["auth"]["api_key"] == "Bearer abcd****ijkl"
    assert display["export"]["rclone_remote"] == "drive"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "(empty)"),
        ("  ", "(empty)"),
        ("short", "*****"),
        ("abcdefghijkl", "abcd****ijkl"),
        ("Bearer abcdefghijkl", "Bearer abcd****ijkl"),
    ],
)
def test_mask_token(value, expected: str) -> None:
    assert mask_token(value) == expected


def test_load_reads_flat_keys_from_older_files(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('api_key = "abc123"\nrclone_remote = "work"\ntemplate_hub_id = "H"\n', encoding="utf-8")

    config = Config.load(path)

    assert config.has_api_key()
    assert config.get_api_key() == "abc123"
    assert config.export.rclone_remote == "work"
    assert config.templates.hub_id == "H"
    assert config.templates.cover_id == Config().templates.cover_id


def test_sections_win_over_flat_keys(tmp_path: Path, memory_keyring) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'api_key = "flat-key"\nrclone_remote = "flat"\n\n'
        '[export]\nrclone_remote = "sectioned"\n\n[templates]\nhub_id = "hub-from-section"\n',
        encoding="utf-8",
    )
    memory_keyring[(KEYRING_SERVICE, KEYRING_USERNAME)] = "from-keyring"

    config = Config.load(path)

    assert config.export.rclone_remote == "sectioned"
    assert config.templates.hub_id == "hub-from-section"
    assert config.get_api_key() == "from-keyring"


def test_flat_api_key_used_when_keyring_unreachable(tmp_path: Path, monkeypatch) -> None:
    def broken(*args):
        raise RuntimeError("no backend")

    monkeypatch.setattr("tess.config.keyring.get_password", broken)
    monkeypatch.setattr("tess.config._setup_keyring_fallback", lambda: False)
    path = tmp_path / "config.toml"
    path.write_text('api_key = "abc123"\n', encoding="utf-8")

    assert Config.load(path).get_api_key() == "abc123"
    with pytest.raises(RuntimeError, match="Failed to retrieve credentials"):
        Config().get_api_key()


def test_dump_keeps_flat_api_key(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('api_key = "abc123"\nrclone_remote = "work"\n', encoding="utf-8")

    config = Config.load(path)
    config.set_value("api.timeout", "30")
    config.dump(path, backup=False)
    reloaded = Config.load(path)

    assert reloaded.legacy_api_key == "abc123"
    assert reloaded.export.rclone_remote == "work"
    assert reloaded.api.timeout == 30
