"""Configuration management service"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..api.exceptions import ConfigError
from ..constants import CONFIG_ROOT_KEY, DEFAULT_CONFIG_FILE, ENV_CONFIG_PATH
from ..models.config import STAGES, DeployConfig, default_document, normalize_document

logger = logging.getLogger(__name__)

ENVIRONMENT_KEYS = (
    "Root",
    "Releases",
    "ProcessTimeout",
    "UseSudo",
    "PermissionsProcess",
    "KeepReleases",
    "RollbackChownPaths",
)


def default_config_path() -> Path:
    """Config path from ATOMIC_DEPLOY_CONFIG, else ./config.yml"""
    return Path(os.environ.get(ENV_CONFIG_PATH, DEFAULT_CONFIG_FILE))


class ConfigService:
    """Loads, edits and saves the YAML configuration document

    The lifecycle only ever sees the immutable DeployConfig returned by
    ``load()``; the mutation methods edit the raw document and persist it
    with ``save()``.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config service

        Args:
            config_path: YAML file (defaults to default_config_path())
        """
        self.config_path = Path(config_path) if config_path else default_config_path()
        self._data: Optional[Dict[str, Any]] = None

    @property
    def data(self) -> Dict[str, Any]:
        """Raw document (lazy load)"""
        if self._data is None:
            self._data = self._read()
        return self._data

    @property
    def exists(self) -> bool:
        return self.config_path.exists()

    def _read(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {self.config_path}. "
                f"Create one with 'atomic-deploy config init'"
            )

        try:
            content = self.config_path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {self.config_path}: {e}") from e

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Unable to parse the config YAML string: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get(CONFIG_ROOT_KEY), dict):
            raise ConfigError("The config file appears to not be valid")

        return data

    def load(self) -> DeployConfig:
        """Read the file and return a validated, immutable snapshot

        Raises:
            ConfigError: Missing file, bad YAML or invalid values
        """
        self._data = self._read()
        config = DeployConfig.from_dict(self._data)
        logger.debug(f"Loaded configuration from {self.config_path}")
        return config

    def snapshot(self) -> DeployConfig:
        """Validated snapshot of the in-memory document, including unsaved edits"""
        return DeployConfig.from_dict(self.data)

    def init(self, root: str, force: bool = False) -> Path:
        """Write a skeleton configuration file

        Raises:
            ConfigError: If the file exists and force is not set
        """
        if self.config_path.exists() and not force:
            raise ConfigError(f"Configuration file already exists: {self.config_path}")
        self._data = default_document(root)
        self.save()
        return self.config_path

    def save(self) -> None:
        """Write the document back, empty collections as ``[]``"""
        data = normalize_document(self.data)
        self._data = data

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=4)
        except OSError as e:
            raise ConfigError(f"The configuration file could not be saved: {e}") from e

        logger.info(f"Configuration saved to {self.config_path}")

    # Document access helpers

    @property
    def _deploy(self) -> Dict[str, Any]:
        return self.data[CONFIG_ROOT_KEY]

    def _list(self, *keys: str) -> List[str]:
        node = self._deploy
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        if not isinstance(node.get(keys[-1]), list):
            node[keys[-1]] = []
        return node[keys[-1]]

    def _section(self, *keys: str) -> Dict[str, Any]:
        node = self._deploy
        for key in keys:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        return node

    @staticmethod
    def _check_stage(stage: str) -> str:
        stage = stage.capitalize()
        if stage not in STAGES:
            raise ConfigError(f"Stage must be one of {', '.join(STAGES)}: {stage}")
        return stage

    @staticmethod
    def _push_unique(items: List[str], path: str) -> bool:
        path = path.strip()
        if not path or path in items:
            return False
        items.append(path)
        return True

    @staticmethod
    def _pop(items: List[str], path: str) -> bool:
        path = path.strip()
        if path not in items:
            return False
        items[:] = [item for item in items if item != path]
        return True

    # Getters

    def get_namespace(self) -> str:
        return self._deploy.get("Namespace") or ""

    def get_shared(self) -> List[str]:
        return list(self._list("Shared"))

    def get_remove(self) -> List[str]:
        return list(self._list("Remove"))

    def get_environment(self) -> Dict[str, Any]:
        return copy.deepcopy(self._section("Environment"))

    # Mutations

    def set_namespace(self, namespace: str) -> None:
        self._deploy["Namespace"] = namespace.strip()

    def push_shared(self, path: str) -> bool:
        """Add a shared path, returns False if already present"""
        return self._push_unique(self._list("Shared"), path)

    def pop_shared(self, path: str) -> bool:
        return self._pop(self._list("Shared"), path)

    def push_remove(self, path: str) -> bool:
        """Add a path removed after deploy, returns False if already present"""
        return self._push_unique(self._list("Remove"), path)

    def pop_remove(self, path: str) -> bool:
        return self._pop(self._list("Remove"), path)

    def set_github(self, repo: Optional[str], branch: Optional[str] = None) -> None:
        github = self._section("GitHub")
        github["Repo"] = repo.strip() if repo else None
        if branch is not None:
            github["Branch"] = branch.strip() or None

    def set_chown_group(self, stage: str, group: Optional[str]) -> None:
        stage = self._check_stage(stage)
        self._section("Chown", stage)["Group"] = group.strip() if group else None

    def push_chown_path(self, stage: str, path: str) -> bool:
        stage = self._check_stage(stage)
        return self._push_unique(self._list("Chown", stage, "Paths"), path)

    def pop_chown_path(self, stage: str, path: str) -> bool:
        stage = self._check_stage(stage)
        return self._pop(self._list("Chown", stage, "Paths"), path)

    def set_chmod_permission(self, stage: str, permission: Optional[str]) -> None:
        stage = self._check_stage(stage)
        value = str(permission).strip() if permission not in (None, "") else None
        self._section("Chmod", stage)["Permission"] = value

    def push_chmod_path(self, stage: str, path: str) -> bool:
        stage = self._check_stage(stage)
        return self._push_unique(self._list("Chmod", stage, "Paths"), path)

    def pop_chmod_path(self, stage: str, path: str) -> bool:
        stage = self._check_stage(stage)
        return self._pop(self._list("Chmod", stage, "Paths"), path)

    def set_environment(self, key: str, value: Any) -> None:
        if key not in ENVIRONMENT_KEYS:
            raise ConfigError(f"Unknown environment key: {key}")
        self._section("Environment")[key] = value
