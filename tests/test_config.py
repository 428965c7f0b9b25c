"""Tests for user config persistence and orchestrator options."""

import json
from pathlib import Path

import pytest

from renovate_merger.check_status import DEFAULT_IGNORED_PENDING_CHECKS
from renovate_merger.config import (
    CONFIG_DIR_ENV,
    MAX_RECENT_REPOS,
    UserConfig,
    add_recent_repo,
    get_config_path,
    get_recent_repos,
    load_config,
    save_config,
)
from renovate_merger.exceptions import ErrorCode, MergerError
from renovate_merger.options import OrchestratorOptions, resolve_options
from renovate_merger.types.pulls import MergeMethod


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "gh-renovate"
    monkeypatch.setenv(CONFIG_DIR_ENV, str(directory))
    return directory


class TestUserConfig:
    def test_missing_file_gives_defaults(self, config_dir: Path) -> None:
        assert load_config() == UserConfig()
        assert get_recent_repos() == []

    def test_default_location(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_path() == tmp_path / ".config" / "gh-renovate" / "config.json"

    def test_save_creates_directory(self, config_dir: Path) -> None:
        save_config(UserConfig(recent_repos=["octo/app"]))
        data = json.loads((config_dir / "config.json").read_text())
        assert data == {"recent_repos": ["octo/app"]}

    def test_add_recent_moves_to_front(self, config_dir: Path) -> None:
        add_recent_repo("octo/a")
        add_recent_repo("octo/b")
        add_recent_repo("octo/a")
        assert get_recent_repos() == ["octo/a", "octo/b"]

    def test_recent_list_is_capped(self, config_dir: Path) -> None:
        for i in range(MAX_RECENT_REPOS + 5):
            add_recent_repo(f"octo/repo-{i}")
        recent = get_recent_repos()
        assert len(recent) == MAX_RECENT_REPOS
        assert recent[0] == f"octo/repo-{MAX_RECENT_REPOS + 4}"

    def test_corrupt_file_gives_defaults(self, config_dir: Path) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("{not json")
        assert load_config() == UserConfig()

    def test_unexpected_shape_gives_defaults(self, config_dir: Path) -> None:
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(json.dumps(["octo/app"]))
        assert load_config() == UserConfig()
        (config_dir / "config.json").write_text(json.dumps({"recent_repos": "octo/app"}))
        assert load_config() == UserConfig()


class TestOrchestratorOptions:
    def test_defaults(self) -> None:
        options = OrchestratorOptions()
        assert options.check_timeout == 600
        assert options.rebase_timeout == 300
        assert options.merge_method is MergeMethod.SQUASH
        assert options.continue_on_error
        assert not options.dry_run
        assert options.ignored_pending_checks == DEFAULT_IGNORED_PENDING_CHECKS

    def test_overrides_ignore_none(self) -> None:
        options = OrchestratorOptions().with_overrides({"check_timeout": 30, "dry_run": None})
        assert options.check_timeout == 30
        assert not options.dry_run

    def test_keyword_overrides(self) -> None:
        options = OrchestratorOptions().with_overrides(merge_method="rebase", ignored_pending_checks=["gate"])
        assert options.merge_method is MergeMethod.REBASE
        assert options.ignored_pending_checks == ("gate",)

    def test_unknown_option(self) -> None:
        with pytest.raises(MergerError) as excinfo:
            OrchestratorOptions().with_overrides({"merge_strategy": "squash"})
        assert excinfo.value.code is ErrorCode.INVALID_OPTIONS
        assert "merge_strategy" in excinfo.value.message

    def test_invalid_merge_method(self) -> None:
        with pytest.raises(MergerError) as excinfo:
            OrchestratorOptions().with_overrides(merge_method="octopus")
        assert excinfo.value.code is ErrorCode.INVALID_OPTIONS

    @pytest.mark.parametrize("name", ["check_timeout", "rebase_timeout"])
    def test_timeouts_must_be_positive(self, name: str) -> None:
        with pytest.raises(MergerError):
            OrchestratorOptions().with_overrides({name: 0})

    def test_resolve(self) -> None:
        explicit = OrchestratorOptions(dry_run=True)
        assert resolve_options(None) == OrchestratorOptions()
        assert resolve_options(explicit) is explicit
        assert resolve_options({"continue_on_error": False}).continue_on_error is False
