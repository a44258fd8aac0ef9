# Lightweight YAML settings loader.

from __future__ import annotations

import pathlib
from typing import Any, Dict

import yaml

SETTINGS_KEYS = ("model", "base_url", "max_iterations", "max_retries", "diff_context", "system_prompt", "verbose")


def load_settings(repo_root: pathlib.Path) -> Dict[str, Any]:
    """
    Load settings from <repo>/.sahayak/settings.yaml or settings.yml.

    Returns an empty dict {} when the settings file is missing, unreadable, or
    does not contain a mapping. Unknown keys are dropped. The function never raises.
    """
    try:
        base = pathlib.Path(repo_root) / ".sahayak"
        for p in (base / "settings.yaml", base / "settings.yml"):
            try:
                if p.exists() and p.is_file():
                    data = yaml.safe_load(p.read_text(encoding="utf-8"))
                    if isinstance(data, dict):
                        return {k: v for k, v in data.items() if k in SETTINGS_KEYS}
                    # Non-mapping YAML is treated as empty settings.
                    return {}
            except (OSError, yaml.YAMLError):
                continue
        return {}
    except OSError:
        return {}
