from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dicom_watcher.notify import DEFAULT_MODEL
from dicom_watcher.utils.logging_utils import resolve_level
from dicom_watcher.watcher.classify import DEFAULT_EXTENSIONS, normalize_extensions


class ConfigError(ValueError):
    pass


@dataclass
class WatchConfig:
    directory_path: Path
    api_url: str
    timeout: int = 60
    poll_interval: int = 10
    batch_size: int = 100
    model: str = DEFAULT_MODEL
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    workers: int = 0
    notify_timeout: float = 10.0
    log_level: str = "INFO"
    log_file: Path | None = None

    def validate(self) -> None:
        if not self.api_url:
            raise ConfigError("api_url must not be empty")
        if self.timeout < 0:
            raise ConfigError(f"timeout must be >= 0, got {self.timeout}")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be > 0, got {self.poll_interval}")
        if self.batch_size <= 0:
            raise ConfigError(f"batch_size must be > 0, got {self.batch_size}")
        if self.workers < 0:
            raise ConfigError(f"workers must be >= 0, got {self.workers}")
        if self.notify_timeout <= 0:
            raise ConfigError(f"notify_timeout must be > 0, got {self.notify_timeout}")
        if not self.extensions:
            raise ConfigError("extensions must list at least one suffix")
        try:
            resolve_level(self.log_level)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


def _expand_path(value: str | None, base: Path) -> Path | None:
    if value in (None, ""):
        return None
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigError(f"missing required config key: {key}")
    return data[key]


def _as_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"{key} must be a whole number, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def _as_float(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc


def config_from_mapping(raw: dict[str, Any], base: Path) -> WatchConfig:
    extensions_raw = raw.get("extensions", list(DEFAULT_EXTENSIONS))
    if isinstance(extensions_raw, str):
        extensions_raw = [extensions_raw]

    cfg = WatchConfig(
        directory_path=_expand_path(_require(raw, "directory_path"), base) or Path("."),
        api_url=str(_require(raw, "api_url")),
        timeout=_as_int(raw, "timeout", 60),
        poll_interval=_as_int(raw, "poll_interval", 10),
        batch_size=_as_int(raw, "batch_size", 100),
        model=str(raw.get("model", DEFAULT_MODEL)),
        extensions=normalize_extensions(extensions_raw),
        workers=_as_int(raw, "workers", 0),
        notify_timeout=_as_float(raw, "notify_timeout", 10.0),
        log_level=str(raw.get("log_level", "INFO")),
        log_file=_expand_path(raw.get("log_file"), base),
    )
    cfg.validate()
    return cfg


def load_config(path: str | Path) -> WatchConfig:
    try:
        import yaml  # type: ignore
    except Exception as exc:
        raise RuntimeError("PyYAML is required for config loading. Install with: pip install PyYAML") from exc

    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"config root must be a mapping: {cfg_path}")

    return config_from_mapping(raw, cfg_path.parent)
