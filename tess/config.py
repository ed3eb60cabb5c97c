"""Configuration utilities for the review export CLI."""

from __future__ import annotations

import os
import shutil
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli  # type: ignore[no-redef]
from pydantic import BaseModel, ValidationError, field_validator
from tomli_w import dump as toml_dump
import keyring

from .constants import API_DEFAULTS, AUTH_SCHEMES, ERROR_MESSAGES, EXPORT_DEFAULTS, TEMPLATE_DEFAULTS

CONFIG_DIR = Path.home() / ".tess"
CONFIG_FILE = CONFIG_DIR / "config.toml"
CONFIG_VERSION = "1.0.0"
KEYRING_SERVICE = "tess"
KEYRING_USERNAME = "lattice-api-key"
API_KEY_ENV = "TESS_API_KEY"

# (flat key, section, field) for files written before the sectioned layout
LEGACY_KEYS = (
    ("rclone_remote", "export", "rclone_remote"),
    ("template_hub_id", "templates", "hub_id"),
    ("template_cover_id", "templates", "cover_id"),
    ("template_review_id", "templates", "review_id"),
)

# Lock for thread-safe keyring fallback setup
_keyring_lock = threading.Lock()
_keyring_fallback_attempted = False


def _setup_keyring_fallback() -> bool:
    """Set up a fallback keyring backend if the default backend fails.

    Useful on Linux systems where the D-Bus secrets service has no 'login'
    collection or is not reachable at all.

    Returns:
        True if a working keyring backend was set up, False otherwise.
    """
    import warnings

    global _keyring_fallback_attempted

    if _keyring_fallback_attempted:
        return False

    with _keyring_lock:
        # Another thread might have set it up while we waited
        if _keyring_fallback_attempted:
            return False

        _keyring_fallback_attempted = True

        try:
            try:
                from keyrings.alt.file import EncryptedKeyring
            except ImportError:
                pass
            else:
                # Encrypted file keyring initialises itself on first write
                keyring.set_keyring(EncryptedKeyring())
                return True

            from keyring.backends import fail

            viable = [
                backend for backend in keyring.backend.get_all_keyring()
                if not isinstance(backend, fail.Keyring) and backend.priority > 0
            ]
            viable.sort(key=lambda backend: backend.priority, reverse=True)

            for backend in viable:
                # SecretService is the backend that most likely already failed
                if "SecretService" in backend.__class__.__name__:
                    continue
                try:
                    keyring.set_keyring(backend)
                    keyring.get_password(KEYRING_SERVICE, "test")
                    return True
                except Exception:
                    continue

            warnings.warn(
                "System keyring is not accessible. "
                "Install 'keyrings.alt' for secure storage: pip install keyrings.alt",
                UserWarning,
            )
            return False

        except Exception as e:
            warnings.warn(
                f"Failed to set up keyring fallback: {e}. "
                "Install 'keyrings.alt' for secure storage: pip install keyrings.alt",
                UserWarning,
            )
            return False


def mask_token(value: Optional[str]) -> str:
    """Mask an API key for display, keeping a recognised auth scheme prefix.

    >>> mask_token("Bearer abcdefghijkl")
    'Bearer abcd****ijkl'
    """
    value = (value or "").strip()
    if not value:
        return "(empty)"

    prefix = ""
    lowered = value.lower()
    for scheme in AUTH_SCHEMES:
        if lowered.startswith(scheme):
            prefix, value = value[:len(scheme)], value[len(scheme):]
            break

    if len(value) <= 8:
        return prefix + "*" * len(value)
    return prefix + value[:4] + "*" * (len(value) - 8) + value[-4:]


class APIConfig(BaseModel):
    """Connection settings for the Lattice API."""

    base_url: str = API_DEFAULTS['base_url']
    timeout: int = API_DEFAULTS['timeout']
    review_limit: int = API_DEFAULTS['review_limit']

    @field_validator("timeout", "review_limit")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Validate that numeric fields are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got {v}")
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the base URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be a valid HTTP(S) URL, got: {v}")
        return v


class ExportConfig(BaseModel):
    """Settings for writing, converting and uploading the document."""

    output_dir: str = "."
    rclone_remote: str = EXPORT_DEFAULTS['rclone_remote']
    upload_format: str = EXPORT_DEFAULTS['upload_format']
    pdf_engine: str = ""

    @field_validator("rclone_remote", "pdf_engine", "output_dir")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @field_validator("upload_format")
    @classmethod
    def normalise_format(cls, v: str) -> str:
        """Unknown upload formats fall back to docx."""
        v = v.strip().lower()
        return v if v in EXPORT_DEFAULTS['upload_formats'] else EXPORT_DEFAULTS['upload_format']


class TemplatesConfig(BaseModel):
    """Drive file IDs of the template documents copied with ``--copy-templates``."""

    hub_id: str = TEMPLATE_DEFAULTS['hub_id']
    cover_id: str = TEMPLATE_DEFAULTS['cover_id']
    review_id: str = TEMPLATE_DEFAULTS['review_id']

    @field_validator("hub_id", "cover_id", "review_id")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


@dataclass(slots=True)
class Config:
    """Top-level configuration container."""

    version: str = CONFIG_VERSION
    api: APIConfig = field(default_factory=APIConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    # Plain-text key from a flat config file; kept until moved into the keyring
    legacy_api_key: Optional[str] = None

    @classmethod
    def load(cls, path: Path = CONFIG_FILE) -> "Config":
        """Load configuration data from disk.

        Args:
            path: Optional override for the configuration file path.

        Returns:
            Config: The loaded configuration object, or defaults if the file is absent.

        Raises:
            ValueError: If configuration file is corrupted or invalid.
        """

        if not path.exists():
            return cls()

        try:
            with path.open("rb") as handle:
                raw: Dict[str, Any] = tomli.load(handle)
        except (OSError, tomli.TOMLDecodeError) as exc:
            raise ValueError(f"Failed to parse configuration file {path}: {exc}") from exc

        version = raw.get("version", CONFIG_VERSION)

        try:
            export_data = dict(raw.get("export", {}))
            templates_data = dict(raw.get("templates", {}))
            # Flat keys of the earlier single-table format; sections take precedence
            for flat_key, section, field_name in LEGACY_KEYS:
                if flat_key in raw:
                    target = export_data if section == "export" else templates_data
                    target.setdefault(field_name, raw[flat_key])

            api = APIConfig(**raw.get("api", {}))
            export = ExportConfig(**export_data)
            templates = TemplatesConfig(**templates_data)
        except (ValidationError, TypeError) as exc:
            raise ValueError(f"Invalid configuration in {path}: {exc}") from exc

        legacy_api_key = str(raw.get("api_key") or "").strip() or None

        return cls(
            version=version,
            api=api,
            export=export,
            templates=templates,
            legacy_api_key=legacy_api_key,
        )

    def dump(self, path: Path = CONFIG_FILE, backup: bool = True) -> None:
        """Persist the configuration to disk.

        Args:
            path: Path to save the configuration file.
            backup: If True and config file exists, create a backup before overwriting.
        """

        path.parent.mkdir(parents=True, exist_ok=True)

        if backup and path.exists():
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_path = path.parent / f"{path.stem}.{timestamp}.bak"
            shutil.copy2(path, backup_path)

        payload: Dict[str, Any] = {"version": self.version}
        if self.legacy_api_key:
            payload["api_key"] = self.legacy_api_key
        payload.update({
            "api": self.api.model_dump(),
            "export": self.export.model_dump(),
            "templates": self.templates.model_dump(),
        })

        with path.open("wb") as handle:
            toml_dump(payload, handle)

    def update_auth(self, api_key: str) -> None:
        """Store the API key in the system keyring.

        Raises:
            RuntimeError: If unable to store credentials in any keyring backend.
        """
        last_error = None

        try:
            keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, api_key)
            return
        except Exception as e:
            last_error = e

        if _setup_keyring_fallback():
            try:
                keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, api_key)
                return
            except Exception as fallback_error:
                last_error = fallback_error

        raise RuntimeError(
            f"Failed to store credentials securely. Error: {last_error}.\n\n"
            "To fix this issue:\n"
            "1. Install keyrings.alt for file-based secure storage:\n"
            "   pip install keyrings.alt\n"
            f"2. Or export the key as {API_KEY_ENV} instead"
        ) from last_error

    def get_api_key(self) -> Optional[str]:
        """Return the API key from ``TESS_API_KEY``, the system keyring or a flat ``api_key``.

        Raises:
            RuntimeError: If the keyring backend is unreachable and no flat key is set.
        """
        env_key = os.getenv(API_KEY_ENV, "").strip()
        if env_key:
            return env_key

        last_error = None

        try:
            return self._stored_or_legacy(keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME))
        except Exception as e:
            last_error = e

        if _setup_keyring_fallback():
            try:
                return self._stored_or_legacy(keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME))
            except Exception as fallback_error:
                last_error = fallback_error

        if self.legacy_api_key:
            return self.legacy_api_key

        raise RuntimeError(
            f"Failed to retrieve credentials from keyring. Error: {last_error}.\n\n"
            "To fix this issue:\n"
            "1. Install keyrings.alt for file-based secure storage:\n"
            "   pip install keyrings.alt\n"
            f"2. Or export the key as {API_KEY_ENV} instead"
        ) from last_error

    def _stored_or_legacy(self, stored: Optional[str]) -> Optional[str]:
        if stored and stored.strip():
            return stored
        return self.legacy_api_key or stored

    def has_api_key(self) -> bool:
        """Check whether a non-blank API key is available."""
        try:
            key = self.get_api_key()
        except RuntimeError:
            return False
        return bool(key and key.strip())

    def validate_required_fields(self) -> None:
        """Validate that all required configuration fields are set.

        Raises:
            ValueError: If any required field is missing or invalid.
        """
        errors = []

        if not self.has_api_key():
            errors.append(ERROR_MESSAGES['api_key_missing'])

        if errors:
            raise ValueError("Configuration is incomplete:\n  - " + "\n  - ".join(errors))

    def _sections(self) -> Dict[str, BaseModel]:
        return {
            "api": self.api,
            "export": self.export,
            "templates": self.templates,
        }

    def to_display_dict(self) -> Dict[str, Any]:
        """Return a serialisable representation for display purposes."""

        try:
            api_key = self.get_api_key()
        except RuntimeError:
            api_key = None
        payload: Dict[str, Any] = {"auth": {"api_key": mask_token(api_key)}}
        for name, section in self._sections().items():
            payload[name] = section.model_dump()
        return payload

    def _resolve(self, key: str) -> tuple[BaseModel, str]:
        parts = key.split(".")
        if len(parts) != 2:
            raise ValueError(f"Invalid key format '{key}'. Expected format: section.field")

        section, field_name = parts
        sections = self._sections()

        if section not in sections:
            valid_sections = ", ".join(sections.keys())
            raise ValueError(f"Invalid section '{section}'. Valid sections: {valid_sections}")

        config_obj = sections[section]
        if field_name not in type(config_obj).model_fields:
            valid_fields = ", ".join(type(config_obj).model_fields.keys())
            raise ValueError(f"Invalid field '{field_name}' for section '{section}'. Valid fields: {valid_fields}")

        return config_obj, field_name

    def set_value(self, key: str, value: str) -> None:
        """Set a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'api.timeout', 'export.upload_format')
            value: Value to set (converted to the field's type)

        Raises:
            ValueError: If key is invalid or value cannot be converted
        """
        config_obj, field_name = self._resolve(key)
        field_type = type(config_obj).model_fields[field_name].annotation

        try:
            if field_type is int:
                converted_value: Any = int(value)
            elif field_type is bool:
                converted_value = value.lower() in ("true", "1", "yes", "on")
            else:
                converted_value = value

            # Re-validate the whole section so field validators run
            current_data = config_obj.model_dump()
            current_data[field_name] = converted_value
            validated_model = type(config_obj).model_validate(current_data)
        except ValidationError as exc:
            error_msg = "; ".join(f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors())
            raise ValueError(f"Validation error for {key}: {error_msg}") from exc
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Cannot convert '{value}' to {field_type} for {key}") from exc

        for name in type(validated_model).model_fields:
            setattr(config_obj, name, getattr(validated_model, name))

    def get_value(self, key: str) -> Any:
        """Get a configuration value using dot notation.

        Raises:
            ValueError: If key is invalid
        """
        config_obj, field_name = self._resolve(key)
        return getattr(config_obj, field_name)
