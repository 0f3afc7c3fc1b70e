"""Configuration loading helpers for refscrape."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

from .models import GlobalConfig, SiteProfile

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
GLOBAL_CONFIG_FILENAME = "global_config.yaml"
PROFILE_SUFFIX = ".yaml"
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _slugify(name: str) -> str:
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in name).strip("-")


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    outputs_dir: Path | None = None
    profiles_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("REFSCRAPE_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.outputs_dir = (self.data_dir / "outputs").resolve()
        self.profiles_dir = (self.data_dir / "profiles").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.outputs_dir, self.profiles_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    # ------------------------------------------------------------------
    # Global configuration helpers
    # ------------------------------------------------------------------
    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            global_cfg = GlobalConfig.model_validate(_read_file(path))
        else:
            global_cfg = GlobalConfig(
                outputs_dir=self.locator.outputs_dir,
                profiles_dir=self.locator.profiles_dir,
            )
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        _write_file(self.locator.global_config_path(), config.model_dump(mode="json"))
        self._global_cache = config

    def outputs_dir(self) -> Path:
        configured = Path(self.load_global_config().outputs_dir)
        if not configured.is_absolute():
            configured = self.locator.project_root / configured
        configured.mkdir(parents=True, exist_ok=True)
        return configured

    # ------------------------------------------------------------------
    # Profile helpers
    # ------------------------------------------------------------------
    def profile_path(self, profile_name: str) -> Path:
        return self.locator.profiles_dir / f"{_slugify(profile_name)}{PROFILE_SUFFIX}"

    def list_profile_files(self) -> Iterable[Path]:
        for path in sorted(self.locator.profiles_dir.glob("*")):
            if path.is_file() and path.suffix in CONFIG_EXTENSIONS:
                yield path

    def list_profiles(self) -> list[SiteProfile]:
        return [self.load_profile(path) for path in self.list_profile_files()]

    def load_profile(self, identifier: str | Path) -> SiteProfile:
        path = identifier if isinstance(identifier, Path) else self.profile_path(identifier)
        if not path.exists():
            raise FileNotFoundError(f"Profile configuration not found: {identifier}")
        return SiteProfile.model_validate(_read_file(path))

    def save_profile(self, profile: SiteProfile) -> Path:
        path = self.profile_path(profile.profile_name)
        _write_file(path, profile.model_dump(mode="json", exclude_none=True))
        return path

    def delete_profile(self, profile_name: str) -> None:
        path = self.profile_path(profile_name)
        if path.exists():
            path.unlink()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def template_path(self, template_name: str) -> Path:
        """Return a built-in template path; templates are read in place."""

        path = TEMPLATES_DIR / template_name
        if not path.exists():
            raise FileNotFoundError(f"Template not found: {path}")
        return path

    def list_templates(self) -> list[str]:
        return sorted(path.name for path in TEMPLATES_DIR.glob("*.yaml"))

    def profile_from_template(self, profile_name: str, template_name: str) -> SiteProfile:
        data = _read_file(self.template_path(template_name))
        data["profile_name"] = profile_name
        profile = SiteProfile.model_validate(data)
        self.save_profile(profile)
        return profile


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "TEMPLATES_DIR"]
