from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from blueprintkit.config_io import DEFAULT_ENV_VAR, load_config
from blueprintkit.engine.recorder import DefaultInvocationRecorder

SECTION = "blueprintkit"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_float(value: Any, path: str) -> float:
    if value is None:
        raise ValueError(f"Invalid config value for {path}: None")
    if isinstance(value, bool):
        raise ValueError(f"Invalid config type for {path}: expected float, got bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid config value for {path}: must be a float") from exc
    raise ValueError(f"Invalid config type for {path}: expected float")


def parse_int(value: Any, path: str) -> int:
    if value is None:
        raise ValueError(f"Invalid config value for {path}: None")
    if isinstance(value, bool):
        raise ValueError(f"Invalid config type for {path}: expected int, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid config value for {path}: must be an int") from exc
    raise ValueError(f"Invalid config type for {path}: expected int")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "WARNING"
    log_file: str | None = None
    preview_depth: int = 4
    preview_items: int = 25
    propagate: bool = True

    @property
    def level_number(self) -> int:
        return getattr(logging, self.level)


@dataclass(frozen=True)
class RequestSettings:
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BlueprintSettings:
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    request: RequestSettings = field(default_factory=RequestSettings)

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["BlueprintSettings", list[str]]:
        """
        Parse the `blueprintkit` section of a config mapping, returning (settings, warnings).

        Missing keys fall back to defaults; unknown keys produce warnings.

        Raises:
            ValueError: if a key holds a value of the wrong type or range.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        section = cfg.get(SECTION, {})
        if section is None:
            section = {}
        if not isinstance(section, Mapping):
            raise ValueError(f"Invalid config type for {SECTION}: expected mapping")

        def sub(name: str, known: tuple[str, ...]) -> Mapping[str, Any]:
            path = f"{SECTION}.{name}"
            value = section.get(name, {})
            if value is None:
                return {}
            if not isinstance(value, Mapping):
                raise ValueError(f"Invalid config type for {path}: expected mapping")
            for key in value:
                if key not in known:
                    warnings.append(f"Unknown config key: {path}.{key}")
            return value

        for key in section:
            if key not in ("logging", "request"):
                warnings.append(f"Unknown config key: {SECTION}.{key}")

        log_cfg = sub("logging", ("level", "file", "preview_depth", "preview_items", "propagate"))
        defaults = LoggingSettings()

        level = log_cfg.get("level", defaults.level)
        if not isinstance(level, str) or level.strip().upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid config value for {SECTION}.logging.level: {level!r} "
                f"(expected one of: {', '.join(_LOG_LEVELS)})"
            )

        log_file = log_cfg.get("file")
        if log_file is not None:
            if not isinstance(log_file, str):
                raise ValueError(f"Invalid config type for {SECTION}.logging.file: expected string")
            if log_file.strip():
                log_file = os.path.abspath(os.path.expandvars(os.path.expanduser(log_file.strip())))
            else:
                log_file = None

        preview_depth = parse_int(
            log_cfg.get("preview_depth", defaults.preview_depth), f"{SECTION}.logging.preview_depth"
        )
        preview_items = parse_int(
            log_cfg.get("preview_items", defaults.preview_items), f"{SECTION}.logging.preview_items"
        )
        if preview_depth < 1:
            raise ValueError(f"Invalid config value for {SECTION}.logging.preview_depth: must be >= 1")
        if preview_items < 1:
            raise ValueError(f"Invalid config value for {SECTION}.logging.preview_items: must be >= 1")
        propagate = parse_bool(log_cfg.get("propagate", defaults.propagate), f"{SECTION}.logging.propagate")

        req_cfg = sub("request", ("timeout", "headers"))
        timeout = parse_float(
            req_cfg.get("timeout", RequestSettings.timeout), f"{SECTION}.request.timeout"
        )
        if timeout <= 0:
            raise ValueError(f"Invalid config value for {SECTION}.request.timeout: must be > 0")

        raw_headers = req_cfg.get("headers") or {}
        if not isinstance(raw_headers, Mapping):
            raise ValueError(f"Invalid config type for {SECTION}.request.headers: expected mapping")
        headers: dict[str, str] = {}
        for name, value in raw_headers.items():
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid header name under {SECTION}.request.headers: {name!r}")
            if value is None or isinstance(value, (Mapping, list, tuple)):
                raise ValueError(f"Invalid config value for {SECTION}.request.headers.{name}")
            headers[name.strip()] = str(value)

        settings = BlueprintSettings(
            logging=LoggingSettings(
                level=level.strip().upper(),
                log_file=log_file,
                preview_depth=preview_depth,
                preview_items=preview_items,
                propagate=propagate,
            ),
            request=RequestSettings(timeout=timeout, headers=headers),
        )
        return settings, warnings

    def make_recorder(self, log: logging.Logger | None = None) -> DefaultInvocationRecorder:
        return DefaultInvocationRecorder(
            log=log,
            max_depth=self.logging.preview_depth,
            max_items=self.logging.preview_items,
        )


def load_settings(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = DEFAULT_ENV_VAR,
    **kwargs: Any,
) -> tuple[BlueprintSettings, list[str]]:
    cfg, _meta = load_config(config_path=config_path, env_var=env_var, **kwargs)
    return BlueprintSettings.from_dict(cfg)
