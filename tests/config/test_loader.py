from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from refscrape.config import ConfigLocator, ConfigRepository, ProfileMode


def test_locator_creates_directories(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REFSCRAPE_HOME", raising=False)
    locator = ConfigLocator(project_root=tmp_path)

    assert locator.outputs_dir == (tmp_path / "data" / "outputs").resolve()
    assert locator.profiles_dir.is_dir()
    assert locator.logs_dir.is_dir()


def test_locator_prefers_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    monkeypatch.setenv("REFSCRAPE_HOME", str(home))

    locator = ConfigLocator(project_root=tmp_path / "ignored")

    assert locator.project_root == home.resolve()
    assert (home / "data" / "profiles").is_dir()


def test_global_config_created_on_first_load(temp_config_repository: ConfigRepository) -> None:
    config = temp_config_repository.load_global_config()

    path = temp_config_repository.locator.global_config_path()
    assert path.exists()
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["max_workers"] == config.max_workers
    assert temp_config_repository.outputs_dir() == temp_config_repository.locator.outputs_dir


def test_profile_roundtrip(temp_config_repository: ConfigRepository, sample_profile) -> None:
    profile = sample_profile(profile_name="My Site")

    path = temp_config_repository.save_profile(profile)

    assert path.name == "my-site.yaml"
    assert "request_timeout" not in path.read_text(encoding="utf-8")
    loaded = temp_config_repository.load_profile("My Site")
    assert loaded == profile
    assert [p.profile_name for p in temp_config_repository.list_profiles()] == ["My Site"]

    temp_config_repository.delete_profile("My Site")
    assert not path.exists()
    with pytest.raises(FileNotFoundError):
        temp_config_repository.load_profile("My Site")


def test_templates_are_listed_and_loadable(temp_config_repository: ConfigRepository) -> None:
    assert temp_config_repository.list_templates() == ["jvm.yaml", "x86.yaml"]

    x86 = temp_config_repository.profile_from_template("x86", "x86.yaml")
    jvm = temp_config_repository.profile_from_template("jvm", "jvm.yaml")

    assert x86.mode is ProfileMode.PAGES
    assert x86.index_url == "https://www.felixcloutier.com/x86/"
    assert x86.request_timeout == 15
    assert "Xeon Phi™ Instructions" in x86.index.section_names
    assert jvm.mode is ProfileMode.CATALOG
    assert jvm.request_timeout == 30
    assert temp_config_repository.profile_path("jvm").exists()


def test_unknown_template(temp_config_repository: ConfigRepository) -> None:
    with pytest.raises(FileNotFoundError):
        temp_config_repository.profile_from_template("x", "missing.yaml")


def test_non_mapping_profile_is_rejected(temp_config_repository: ConfigRepository) -> None:
    path = temp_config_repository.profile_path("broken")
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        temp_config_repository.load_profile("broken")
