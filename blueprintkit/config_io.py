"""YAML configuration loading for blueprintkit.

A library cannot know where its host application keeps configuration, so a
relative `config_dir` is resolved against `start_dir` (or the working
directory) and never searched for upwards.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ENV_VAR = "BLUEPRINTKIT_CONFIG"


def resolve_config_dir(
    config_dir: str | os.PathLike[str],
    start_dir: str | os.PathLike[str] | None = None,
) -> Path:
    directory = Path(config_dir).expanduser()
    if not directory.is_absolute():
        directory = Path(start_dir or os.getcwd()) / directory
    return directory.resolve()


def read_yaml_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return "scalar"


def merge_overlay(base: Mapping[str, Any], overlay: Mapping[str, Any], *, prefix: str = "") -> dict[str, Any]:
    """Merge `overlay` into a copy of `base`.

    Nested sections merge key by key; lists and scalars are replaced. An overlay
    value of a different kind than the base value (a list where the base has a
    section, say) is rejected, and so is a null overlay for a whole section.
    """

    merged = dict(base)
    for key, value in overlay.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        current = merged.get(key)
        if key not in merged or current is None:
            merged[key] = value
            continue

        base_kind = _kind(current)
        overlay_kind = "null" if value is None else _kind(value)
        if base_kind == "mapping" and overlay_kind == "mapping":
            merged[key] = merge_overlay(current, value, prefix=dotted)
        elif overlay_kind == "null" and base_kind == "scalar":
            merged[key] = None
        elif base_kind != overlay_kind:
            raise ValueError(
                f"Invalid config overlay merge at {dotted}: base is {base_kind} but overlay is {overlay_kind}"
            )
        else:
            merged[key] = list(value) if overlay_kind == "list" else value
    return merged


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = DEFAULT_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    config_name: str = "blueprintkit",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load YAML configuration, returning (config, meta).

    An explicit `config_path` (or the file named by `env_var`) is loaded on its own.
    Otherwise `<config_dir>/<config_name>.yaml` is loaded and, when present,
    `<config_dir>/<config_name>.local.yaml` is merged over it.
    """

    explicit = str(config_path).strip() if config_path is not None else ""
    mode = "explicit"
    if not explicit and config_path is None and env_var:
        explicit = os.environ.get(str(env_var), "").strip()
        mode = "env"

    if explicit:
        path = Path(os.path.expandvars(explicit)).expanduser().resolve()
        return read_yaml_file(path), {"mode": mode, "paths": [str(path)], "env_var": env_var, "config_dir": None}

    directory = resolve_config_dir(config_dir, start_dir)
    base_path = directory / f"{config_name}.yaml"
    local_path = directory / f"{config_name}.local.yaml"
    if not base_path.is_file():
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = read_yaml_file(base_path)
    paths = [str(base_path)]
    if local_path.is_file():
        cfg = merge_overlay(cfg, read_yaml_file(local_path))
        paths.append(str(local_path))

    meta = {
        "mode": "base+local" if len(paths) > 1 else "base",
        "paths": paths,
        "env_var": env_var,
        "config_dir": str(directory),
    }
    return cfg, meta
