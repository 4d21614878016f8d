"""
Configuration Loader - YAML Loading with Validation.

Builds a BudgetCacheConfig from up to three layers, later layers winning:

    1. the base YAML file (e.g. config/default.yaml)
    2. an optional profile, looked up as profiles/<name>.yaml next to the
       base file (e.g. config/profiles/low_memory.yaml)
    3. optional runtime overrides passed as a dict

Nested sections are deep-merged, so a profile only lists what it changes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from budget_cache.config.models import BudgetCacheConfig

PROFILE_DIR = "profiles"


class ConfigLoader:
    """Loads and validates cache configuration from YAML files."""

    def __init__(self, base_path: Optional[Path] = None) -> None:
        """
        Initialize config loader.

        Args:
            base_path: Directory that relative config paths are resolved from
        """
        self._base_path = base_path or Path(".")

    def load(
        self,
        config_path: Union[str, Path],
        profile: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> BudgetCacheConfig:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Base YAML file
            profile: Profile name, resolved to profiles/<name>.yaml beside
                the base file
            overrides: Values applied last, e.g. {"cache": {"max_size": 10}}

        Returns:
            Validated BudgetCacheConfig object

        Raises:
            FileNotFoundError: If the base file or the profile doesn't exist
            ValidationError: If the merged values are invalid
        """
        path = self._resolve_path(config_path)
        layers = [self._load_yaml(path)]

        if profile:
            layers.append(self._load_yaml(self.profile_path(path, profile)))
        if overrides:
            layers.append(overrides)

        merged: Dict[str, Any] = {}
        for layer in layers:
            merged = self._merge_configs(merged, layer)
        return BudgetCacheConfig.model_validate(merged)

    def load_from_dict(self, config_dict: Dict[str, Any]) -> BudgetCacheConfig:
        return BudgetCacheConfig.model_validate(config_dict)

    @staticmethod
    def profile_path(config_path: Path, profile: str) -> Path:
        """
        Locate a profile file for a base config file.

        Raises:
            FileNotFoundError: If no such profile exists
        """
        path = config_path.parent / PROFILE_DIR / f"{profile}.yaml"
        if not path.is_file():
            raise FileNotFoundError(f"Profile not found: {profile} ({path})")
        return path

    def _resolve_path(self, path: Union[str, Path]) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self._base_path / p

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _merge_configs(
        self,
        base: Dict[str, Any],
        overlay: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Deep merge overlay into a copy of base."""
        result = dict(base)
        for key, value in overlay.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result


def load_config(
    config_path: Union[str, Path],
    profile: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    base_path: Optional[Path] = None,
) -> BudgetCacheConfig:
    """Convenience wrapper around ConfigLoader.load."""
    return ConfigLoader(base_path=base_path).load(config_path, profile, overrides)
