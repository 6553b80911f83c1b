# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import NodeConfigFile

log = logging.getLogger("nodeconfig")

# settings keys holding filesystem paths, resolved relative to the config file
_SETTINGS_PATHS = ("cni_template_path", "kubeconfig")


def _merge_instances(base: list, override: list) -> list:
    """
    Instances are matched on instance_id; a secrets entry for an unknown
    instance is appended as-is.
    """
    by_id = {i.get("instance_id"): i for i in base if isinstance(i, dict)}
    for item in override:
        target = by_id.get(item.get("instance_id")) if isinstance(item, dict) else None
        if target is None:
            base.append(item)
        else:
            _deep_merge(target, item)
    return base


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Merge *override* into *base* in place. Empty override values never
    clobber a configured one.
    """
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        elif key == "instances" and isinstance(current, list) and isinstance(value, list):
            _merge_instances(current, value)
        elif value not in (None, ""):
            base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    NODECONFIG_SECRETS_FILE wins; otherwise secrets.yaml next to the config.
    """
    env = os.environ.get("NODECONFIG_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("NODECONFIG_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    return p if p.is_file() else None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    return yaml.safe_load(os.path.expandvars(path.read_text())) or {}


def _resolve(value, base_dir: Path):
    if not isinstance(value, str) or not value:
        return value
    p = Path(value).expanduser()
    return str(p if p.is_absolute() else base_dir / p)


def _resolve_paths(data: dict, base_dir: Path) -> dict:
    settings = data.get("settings")
    if isinstance(settings, dict):
        for key in _SETTINGS_PATHS:
            if key in settings:
                settings[key] = _resolve(settings[key], base_dir)
    for inst in data.get("instances") or []:
        if isinstance(inst, dict) and "private_key_path" in inst:
            inst["private_key_path"] = _resolve(inst["private_key_path"], base_dir)
    return data


def load_config(path: str | Path) -> NodeConfigFile:
    """
    Load and validate a nodeconfig YAML file.

    Private keys and other per-site values can live in a ``secrets.yaml``
    that mirrors the config; ``instances`` entries there are merged into the
    instance with the same ``instance_id``. ``${ENV_VAR}`` placeholders are
    expanded in both files, and relative key, template and kubeconfig paths
    are taken relative to the config file.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))

    return NodeConfigFile.model_validate(_resolve_paths(data, path.parent.resolve()))
