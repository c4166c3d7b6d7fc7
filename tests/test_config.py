"""Tests for configuration loading, validation and editing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from atomic_deploy.api.exceptions import ConfigError
from atomic_deploy.models import DeployConfig
from atomic_deploy.services import ConfigService


def document(**environment):
    env = {"Root": "/var/www/app"}
    env.update(environment)
    return {"Deploy": {"Environment": env}}


class TestDeployConfig:
    """Test DeployConfig.from_dict."""

    def test_defaults(self) -> None:
        config = DeployConfig.from_dict(document())

        assert config.root == Path("/var/www/app")
        assert config.releases == Path("/var/www/app/releases")
        assert config.shared_root == Path("/var/www/app/shared")
        assert config.current_link == Path("/var/www/app/current")
        assert config.process_timeout == 300
        assert config.use_sudo is False
        assert config.keep_releases == 5
        assert config.shared == ()
        assert config.permissions_process is None
        assert config.rollback_chown_paths == ("var/cache", "var/logs", "var/sessions")

    def test_full_document(self) -> None:
        data = document(Releases="/srv/releases", ProcessTimeout=60, UseSudo=True,
                        PermissionsProcess="www-data", KeepReleases=3)
        data["Deploy"].update({
            "Shared": ["var/logs", " .env "],
            "Remove": ["tests"],
            "GitHub": {"Repo": "acme/app", "Branch": "main"},
            "Chown": {"Pre": {"Group": "www-data:www-data", "Paths": ["var"]}},
            "Chmod": {"Post": {"Permission": "775", "Paths": ["var", "public"]}},
        })

        config = DeployConfig.from_dict(data)

        assert config.releases == Path("/srv/releases")
        assert config.shared == ("var/logs", ".env")
        assert config.remove == ("tests",)
        assert config.repository_url == "https://github.com/acme/app.git"
        assert config.pre.chown.group == "www-data:www-data"
        assert config.pre.chown.is_active
        assert not config.pre.chmod.is_active
        assert config.post.chmod.paths == ("var", "public")
        assert config.permissions("Post") is config.post
        assert config.use_sudo is True
        assert config.keep_releases == 3

    def test_integer_permission(self) -> None:
        data = document()
        data["Deploy"]["Chmod"] = {"Pre": {"Permission": 775, "Paths": ["var"]}}

        assert DeployConfig.from_dict(data).pre.chmod.permission == "775"

    @pytest.mark.parametrize("data", [
        {},
        {"Deploy": None},
        {"Deploy": {"Environment": {}}},
        document(ProcessTimeout=0),
        document(ProcessTimeout="fast"),
        document(UseSudo="yes"),
        document(KeepReleases=1),
    ])
    def test_invalid(self, data) -> None:
        with pytest.raises(ConfigError):
            DeployConfig.from_dict(data)

    @pytest.mark.parametrize("key", ["Shared", "Remove"])
    def test_paths_must_stay_in_release(self, key: str) -> None:
        for bad in (["/etc"], ["../outside"], ["."], ["./"], ["./."], "var"):
            data = document()
            data["Deploy"][key] = bad
            with pytest.raises(ConfigError):
                DeployConfig.from_dict(data)

    def test_chown_must_be_mapping(self) -> None:
        data = document()
        data["Deploy"]["Chown"] = ["var"]

        with pytest.raises(ConfigError):
            DeployConfig.from_dict(data)


class TestConfigServiceLoad:
    """Test reading configuration files."""

    def test_load(self, config_file: Path, deploy_root: Path) -> None:
        config = ConfigService(config_file).load()

        assert config.root == deploy_root
        assert config.keep_releases == 3
        assert config.process_timeout == 30

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="config init"):
            ConfigService(tmp_path / "config.yml").load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("Deploy: [unclosed")

        with pytest.raises(ConfigError, match="Unable to parse"):
            ConfigService(path).load()

    def test_missing_deploy_key(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("Other: {}\n")

        with pytest.raises(ConfigError, match="not be valid"):
            ConfigService(path).load()

    def test_environment_variables_expanded(self, tmp_path: Path,
                                            monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ROOT", str(tmp_path / "app"))
        path = tmp_path / "config.yml"
        path.write_text("Deploy:\n  Environment:\n    Root: ${APP_ROOT}\n")

        assert ConfigService(path).load().root == tmp_path / "app"

    def test_default_path_from_environment(self, config_file: Path,
                                           monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ATOMIC_DEPLOY_CONFIG", str(config_file))

        assert ConfigService().config_path == config_file


class TestConfigServiceEdit:
    """Test editing and saving configuration files."""

    def test_init_writes_skeleton(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"

        ConfigService(path).init("/srv/app")

        data = yaml.safe_load(path.read_text())
        assert data["Deploy"]["Environment"]["Root"] == "/srv/app"
        assert data["Deploy"]["Shared"] == []
        assert ConfigService(path).load().root == Path("/srv/app")

    def test_init_refuses_overwrite(self, config_file: Path) -> None:
        with pytest.raises(ConfigError):
            ConfigService(config_file).init("/srv/app")

        ConfigService(config_file).init("/srv/app", force=True)
        assert ConfigService(config_file).load().root == Path("/srv/app")

    def test_push_pop_shared(self, config_file: Path) -> None:
        service = ConfigService(config_file)

        assert service.push_shared(" var/logs ")
        assert not service.push_shared("var/logs")
        assert service.push_shared(".env")
        assert service.get_shared() == ["var/logs", ".env"]

        assert service.pop_shared("var/logs")
        assert not service.pop_shared("var/logs")
        assert service.get_shared() == [".env"]

    def test_push_pop_remove(self, config_file: Path) -> None:
        service = ConfigService(config_file)

        assert service.push_remove("tests")
        assert not service.push_remove("tests")
        assert service.pop_remove("tests")
        assert service.get_remove() == []

    def test_permission_rules(self, config_file: Path) -> None:
        service = ConfigService(config_file)

        service.set_chown_group("pre", "www-data")
        service.push_chown_path("pre", "var")
        service.set_chmod_permission("Post", "775")
        service.push_chmod_path("post", "var")
        service.push_chmod_path("post", "public")
        service.pop_chmod_path("post", "public")
        config = service.snapshot()

        assert config.pre.chown.group == "www-data"
        assert config.pre.chown.paths == ("var",)
        assert config.post.chmod.permission == "775"
        assert config.post.chmod.paths == ("var",)

    def test_unknown_stage(self, config_file: Path) -> None:
        with pytest.raises(ConfigError):
            ConfigService(config_file).set_chown_group("during", "www-data")

    def test_set_github(self, config_file: Path) -> None:
        service = ConfigService(config_file)

        service.set_github("acme/app", "main")

        assert service.snapshot().github_branch == "main"
        assert service.snapshot().repository_url == "https://github.com/acme/app.git"

    def test_set_environment(self, config_file: Path) -> None:
        service = ConfigService(config_file)

        service.set_environment("KeepReleases", 10)
        assert service.get_environment()["KeepReleases"] == 10

        with pytest.raises(ConfigError):
            service.set_environment("Nope", 1)

    def test_save_round_trip(self, config_file: Path) -> None:
        service = ConfigService(config_file)
        service.push_shared("var/logs")
        service.push_remove("tests")
        service.pop_remove("tests")
        service.save()

        reloaded = ConfigService(config_file)
        assert reloaded.get_shared() == ["var/logs"]
        assert reloaded.load().keep_releases == 3

    def test_save_writes_empty_lists(self, config_file: Path) -> None:
        service = ConfigService(config_file)
        service.push_remove("tests")
        service.pop_remove("tests")
        service.save()

        text = config_file.read_text()
        data = yaml.safe_load(text)
        assert data["Deploy"]["Remove"] == []
        assert data["Deploy"]["Chown"]["Post"]["Paths"] == []
        assert "Remove: []" in text
