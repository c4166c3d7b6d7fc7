"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

from ..api.exceptions import ConfigError
from ..constants import (
    CONFIG_ROOT_KEY,
    CURRENT_LINK_NAME,
    DEFAULT_KEEP_RELEASES,
    DEFAULT_PROCESS_TIMEOUT,
    GITHUB_URL_TEMPLATE,
    MIN_KEEP_RELEASES,
    RELEASES_DIR,
    ROLLBACK_CHOWN_PATHS,
    SHARED_DIR,
)

STAGES = ("Pre", "Post")


def _string_list(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of paths")
    paths = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(f"'{key}' contains an invalid path: {item!r}")
        paths.append(item.strip())
    return tuple(paths)


def _relative_paths(value: Any, key: str) -> Tuple[str, ...]:
    """Paths that must stay inside a release directory"""
    paths = _string_list(value, key)
    for path in paths:
        pure = PurePosixPath(path)
        # PurePosixPath drops "." parts, so "." and "./" come out empty
        if pure.is_absolute() or not pure.parts or ".." in pure.parts:
            raise ConfigError(f"'{key}' paths must be relative to the release: {path}")
    return paths


def _optional_str(value: Any, key: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value).strip()
    raise ConfigError(f"'{key}' must be a string")


@dataclass(frozen=True)
class ChownRule:
    """Group ownership applied recursively to release-relative paths"""
    group: Optional[str] = None
    paths: Tuple[str, ...] = ()

    @property
    def is_active(self) -> bool:
        return bool(self.group) and bool(self.paths)


@dataclass(frozen=True)
class ChmodRule:
    """Permission applied recursively to release-relative paths"""
    permission: Optional[str] = None
    paths: Tuple[str, ...] = ()

    @property
    def is_active(self) -> bool:
        return bool(self.permission) and bool(self.paths)


@dataclass(frozen=True)
class PermissionRules:
    """Chown and chmod rules for one stage (pre or post switch)"""
    chown: ChownRule = field(default_factory=ChownRule)
    chmod: ChmodRule = field(default_factory=ChmodRule)

    @property
    def is_active(self) -> bool:
        return self.chown.is_active or self.chmod.is_active


@dataclass(frozen=True)
class DeployConfig:
    """Read-only snapshot of the deployment configuration"""

    root: Path
    releases: Path
    shared_root: Path
    namespace: str = ""
    shared: Tuple[str, ...] = ()
    remove: Tuple[str, ...] = ()
    github_repo: Optional[str] = None
    github_branch: Optional[str] = None
    pre: PermissionRules = field(default_factory=PermissionRules)
    post: PermissionRules = field(default_factory=PermissionRules)
    process_timeout: float = DEFAULT_PROCESS_TIMEOUT
    use_sudo: bool = False
    permissions_process: Optional[str] = None
    keep_releases: int = DEFAULT_KEEP_RELEASES
    rollback_chown_paths: Tuple[str, ...] = ROLLBACK_CHOWN_PATHS

    @classmethod
    def for_root(cls, root: Path, **kwargs) -> 'DeployConfig':
        """Build a config with the standard layout under ``root``"""
        root = Path(root).expanduser().absolute()
        kwargs.setdefault("releases", root / RELEASES_DIR)
        kwargs.setdefault("shared_root", root / SHARED_DIR)
        return cls(root=root, **kwargs)

    @property
    def current_link(self) -> Path:
        return self.root / CURRENT_LINK_NAME

    @property
    def repository_url(self) -> Optional[str]:
        """Clone URL for GitHub.Repo; ``owner/name`` expands to github.com"""
        if not self.github_repo:
            return None
        repo = self.github_repo
        if "://" in repo or repo.startswith("git@") or Path(repo).is_absolute():
            return repo
        return GITHUB_URL_TEMPLATE.format(repo=repo.strip("/"))

    def permissions(self, stage: str) -> PermissionRules:
        return self.pre if stage == "Pre" else self.post

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeployConfig':
        """Create from the parsed YAML document (with the ``Deploy`` key)"""
        if not isinstance(data, dict) or not isinstance(data.get(CONFIG_ROOT_KEY), dict):
            raise ConfigError("The config file appears to not be valid")

        deploy = data[CONFIG_ROOT_KEY]
        env = deploy.get("Environment") or {}
        if not isinstance(env, dict):
            raise ConfigError("'Environment' must be a mapping")

        root = env.get("Root")
        if not root or not isinstance(root, str):
            raise ConfigError("'Environment.Root' is required")
        root_path = Path(root).expanduser().absolute()

        releases = env.get("Releases")
        releases_path = Path(releases).expanduser().absolute() if releases else root_path / RELEASES_DIR

        timeout = env.get("ProcessTimeout", DEFAULT_PROCESS_TIMEOUT)
        if timeout is None:
            timeout = DEFAULT_PROCESS_TIMEOUT
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError("'Environment.ProcessTimeout' must be a positive number of seconds")

        use_sudo = env.get("UseSudo", False)
        if not isinstance(use_sudo, bool):
            raise ConfigError("'Environment.UseSudo' must be true or false")

        keep = env.get("KeepReleases", DEFAULT_KEEP_RELEASES)
        if isinstance(keep, bool) or not isinstance(keep, int) or keep < MIN_KEEP_RELEASES:
            raise ConfigError(
                f"'Environment.KeepReleases' must be an integer >= {MIN_KEEP_RELEASES}"
            )

        rollback_paths = env.get("RollbackChownPaths")
        if rollback_paths is None:
            rollback_paths = ROLLBACK_CHOWN_PATHS
        else:
            rollback_paths = _relative_paths(rollback_paths, "Environment.RollbackChownPaths")

        github = deploy.get("GitHub") or {}
        if not isinstance(github, dict):
            raise ConfigError("'GitHub' must be a mapping")

        namespace = deploy.get("Namespace") or ""
        if not isinstance(namespace, str):
            raise ConfigError("'Namespace' must be a string")

        return cls(
            root=root_path,
            releases=releases_path,
            shared_root=root_path / SHARED_DIR,
            namespace=namespace,
            shared=_relative_paths(deploy.get("Shared"), "Shared"),
            remove=_relative_paths(deploy.get("Remove"), "Remove"),
            github_repo=_optional_str(github.get("Repo"), "GitHub.Repo"),
            github_branch=_optional_str(github.get("Branch"), "GitHub.Branch"),
            pre=_stage_rules(deploy, "Pre"),
            post=_stage_rules(deploy, "Post"),
            process_timeout=float(timeout),
            use_sudo=use_sudo,
            permissions_process=_optional_str(env.get("PermissionsProcess"),
                                              "Environment.PermissionsProcess"),
            keep_releases=keep,
            rollback_chown_paths=tuple(rollback_paths),
        )


def _stage_rules(deploy: Dict[str, Any], stage: str) -> PermissionRules:
    chown_all = deploy.get("Chown") or {}
    chmod_all = deploy.get("Chmod") or {}
    if not isinstance(chown_all, dict) or not isinstance(chmod_all, dict):
        raise ConfigError("'Chown' and 'Chmod' must be mappings")

    chown = chown_all.get(stage) or {}
    chmod = chmod_all.get(stage) or {}
    if not isinstance(chown, dict) or not isinstance(chmod, dict):
        raise ConfigError(f"'Chown.{stage}' and 'Chmod.{stage}' must be mappings")

    return PermissionRules(
        chown=ChownRule(
            group=_optional_str(chown.get("Group"), f"Chown.{stage}.Group"),
            paths=_relative_paths(chown.get("Paths"), f"Chown.{stage}.Paths"),
        ),
        chmod=ChmodRule(
            permission=_optional_str(chmod.get("Permission"), f"Chmod.{stage}.Permission"),
            paths=_relative_paths(chmod.get("Paths"), f"Chmod.{stage}.Paths"),
        ),
    )


def default_document(root: str = "/var/www/app") -> Dict[str, Any]:
    """Skeleton configuration document, empty collections as sequences"""
    return {
        CONFIG_ROOT_KEY: {
            "Namespace": "",
            "Shared": [],
            "Remove": [],
            "GitHub": {"Repo": None, "Branch": None},
            "Chown": {stage: {"Group": None, "Paths": []} for stage in STAGES},
            "Chmod": {stage: {"Permission": None, "Paths": []} for stage in STAGES},
            "Environment": {
                "Root": root,
                "Releases": None,
                "ProcessTimeout": DEFAULT_PROCESS_TIMEOUT,
                "UseSudo": False,
                "PermissionsProcess": "",
                "KeepReleases": DEFAULT_KEEP_RELEASES,
            },
        }
    }


def normalize_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in every key of the document so saving never omits a collection"""
    deploy = dict(data.get(CONFIG_ROOT_KEY) or {})
    skeleton = default_document()[CONFIG_ROOT_KEY]

    def paths(value: Any) -> List[str]:
        return list(value) if isinstance(value, list) else []

    github = deploy.get("GitHub") or {}
    chown = deploy.get("Chown") or {}
    chmod = deploy.get("Chmod") or {}
    env = dict(skeleton["Environment"])
    env.update(deploy.get("Environment") or {})

    return {
        CONFIG_ROOT_KEY: {
            "Namespace": deploy.get("Namespace") or "",
            "Shared": paths(deploy.get("Shared")),
            "Remove": paths(deploy.get("Remove")),
            "GitHub": {
                "Repo": github.get("Repo"),
                "Branch": github.get("Branch"),
            },
            "Chown": {
                stage: {
                    "Group": (chown.get(stage) or {}).get("Group"),
                    "Paths": paths((chown.get(stage) or {}).get("Paths")),
                }
                for stage in STAGES
            },
            "Chmod": {
                stage: {
                    "Permission": (chmod.get(stage) or {}).get("Permission"),
                    "Paths": paths((chmod.get(stage) or {}).get("Paths")),
                }
                for stage in STAGES
            },
            "Environment": env,
        }
    }
