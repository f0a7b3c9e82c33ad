"""Configuration loading: CLI flags → env vars → TOML file.

Two layers live here. ``GitlabConfigItem`` is the per-item setting attached
to every group and project the pipeline resolves; ``PluginConfig`` is the
top-level run configuration (token, configured roots, cache location).
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from gitlab_nodes.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "CACHE_SUBDIR",
    "DEFAULT_TOKEN_FILE",
    "GL_DEFAULT_HOST",
    "GitlabId",
    "GitlabConfigItem",
    "PluginConfig",
    "resolve_token",
]

GL_DEFAULT_HOST = "https://gitlab.com/"
CACHE_SUBDIR = Path(".cache") / "gitlab-nodes"
DEFAULT_TOKEN_FILE = "token.txt"
TOKEN_ENV_VAR = "GITLAB_TOKEN"

GitlabId = int | str
ConfigValue = str | Path | Sequence["GitlabConfigItem"] | None


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present value among *keys* (camelCase or snake_case)."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


@dataclass(frozen=True)
class GitlabConfigItem:
    """Settings for one configured group or project.

    ``clone_depth`` switches on file materialization for every project
    reached through this item; ``meta`` is passed through untouched.
    """

    id_or_path: GitlabId
    host: str = GL_DEFAULT_HOST
    clone_depth: int | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.id_or_path, bool) or self.id_or_path in ("", None):
            msg = f"Invalid idOrPath {self.id_or_path!r}: expected a numeric id or path"
            raise ConfigurationError(msg)
        if self.clone_depth is not None and (
            isinstance(self.clone_depth, bool)
            or not isinstance(self.clone_depth, int)
            or self.clone_depth <= 0
        ):
            msg = f"cloneDepth must be a positive integer, got {self.clone_depth!r}"
            raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> GitlabConfigItem:
        """Build an item from ``{host, idOrPath, cloneDepth?, meta?}``."""
        id_or_path = _pick(raw, "idOrPath", "id_or_path")
        if id_or_path is None:
            raise ConfigurationError(f"Configured item is missing idOrPath: {raw!r}")
        meta = _pick(raw, "meta") or {}
        if not isinstance(meta, Mapping):
            raise ConfigurationError("meta must be a table/mapping")
        return cls(
            id_or_path=id_or_path,
            host=_pick(raw, "host") or GL_DEFAULT_HOST,
            clone_depth=_pick(raw, "cloneDepth", "clone_depth"),
            meta=dict(meta),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, used in node payloads and digests."""
        return {
            "host": self.host,
            "id_or_path": self.id_or_path,
            "clone_depth": self.clone_depth,
            "meta": dict(self.meta),
        }


def _load_env_files() -> None:
    """Load a ``.env`` file from the working directory, if any."""
    load_dotenv(Path.cwd() / ".env", override=False)


def _items(raw: Any, *, key: str) -> tuple[GitlabConfigItem, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError(f"{key} must be a list of tables")
    items: list[GitlabConfigItem] = []
    for entry in raw:
        if isinstance(entry, (int, str)):
            items.append(GitlabConfigItem(id_or_path=entry))
        elif isinstance(entry, Mapping):
            items.append(GitlabConfigItem.from_mapping(entry))
        else:
            raise ConfigurationError(f"{key} entries must be tables, ids or paths")
    return tuple(items)


@dataclass(frozen=True)
class PluginConfig:
    """Immutable top-level run configuration."""

    token: str | None = None
    groups: tuple[GitlabConfigItem, ...] = ()
    projects: tuple[GitlabConfigItem, ...] = ()
    cache_root: Path = Path(".")
    token_file: Path = Path(DEFAULT_TOKEN_FILE)

    @property
    def cache_dir(self) -> Path:
        """Directory holding every materialized working copy."""
        return self.cache_root / CACHE_SUBDIR

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PluginConfig:
        """Build config from a parsed ``{token?, groups, projects}`` mapping."""
        cache_root = _pick(raw, "cacheRoot", "cache_root")
        token_file = _pick(raw, "tokenFile", "token_file")
        return cls(
            token=_pick(raw, "token"),
            groups=_items(raw.get("groups"), key="groups"),
            projects=_items(raw.get("projects"), key="projects"),
            cache_root=Path(cache_root) if cache_root else cls.cache_root,
            token_file=Path(token_file) if token_file else cls.token_file,
        )

    @classmethod
    def from_toml(cls, path: Path) -> PluginConfig:
        """Load config from a TOML file with ``[[groups]]``/``[[projects]]`` tables."""
        try:
            with path.open("rb") as fh:
                raw = tomllib.load(fh)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Config file not found: {path}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
        return cls.from_mapping(raw)

    @classmethod
    def from_env(
        cls,
        overrides: dict[str, ConfigValue] | None = None,
    ) -> PluginConfig:
        """Build config from TOML, environment, then apply overrides.

        Priority: overrides (CLI flags) > env vars > TOML file > defaults.
        ``groups``/``projects`` overrides are appended to the file's items.
        """
        _load_env_files()
        overrides = overrides or {}

        config_path = overrides.get("config_path") or os.environ.get(
            "GITLAB_NODES_CONFIG"
        )
        base = cls.from_toml(Path(str(config_path))) if config_path else cls()

        cache_root = overrides.get("cache_root") or os.environ.get(
            "GITLAB_NODES_CACHE_ROOT"
        )
        token = overrides.get("token")
        extra_groups = overrides.get("groups") or ()
        extra_projects = overrides.get("projects") or ()

        config = replace(
            base,
            token=str(token) if token else base.token,
            groups=base.groups + tuple(extra_groups),  # type: ignore[arg-type]
            projects=base.projects + tuple(extra_projects),  # type: ignore[arg-type]
            cache_root=Path(str(cache_root)) if cache_root else base.cache_root,
        )
        logger.debug(
            "Loaded config: %d group(s), %d project(s), cache_dir=%s",
            len(config.groups),
            len(config.projects),
            config.cache_dir,
        )
        return config


def resolve_token(config: PluginConfig) -> str:
    """Return the GitLab access token.

    Priority: ``GITLAB_TOKEN`` env var, the ``token`` config field, then the
    trimmed contents of ``config.token_file``.

    Raises:
        ConfigurationError: If no source yields a non-empty token.
    """
    token = os.environ.get(TOKEN_ENV_VAR) or config.token
    if not token and config.token_file.is_file():
        token = config.token_file.read_text(encoding="utf-8")
    token = (token or "").strip()
    if not token:
        msg = (
            f"GitLab token not found in {TOKEN_ENV_VAR} environment variable, "
            f"`token` configuration, or in {config.token_file}"
        )
        raise ConfigurationError(msg)
    return token
