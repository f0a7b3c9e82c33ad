"""Domain objects resolved from the GitLab API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gitlab_nodes.lib.config import GitlabConfigItem

__all__ = ["Group", "Project"]

_GROUP_KEYS = frozenset(
    {"id", "name", "path", "full_path", "parent_id", "projects", "subgroups"}
)
_PROJECT_KEYS = frozenset(
    {
        "id",
        "name",
        "path_with_namespace",
        "ssh_url_to_repo",
        "default_branch",
        "shared_with_groups",
    }
)


def _extra(raw: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in raw.items() if k not in known}


@dataclass
class Project:
    """A GitLab project plus the configured item it was reached through."""

    id: int
    config: GitlabConfigItem
    name: str = ""
    path_with_namespace: str = ""
    ssh_url_to_repo: str = ""
    default_branch: str | None = None
    shared_with_groups: list[dict[str, Any]] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any], config: GitlabConfigItem) -> Project:
        """Build from a GitLab project payload."""
        return cls(
            id=int(raw["id"]),
            config=config,
            name=str(raw.get("name") or ""),
            path_with_namespace=str(raw.get("path_with_namespace") or ""),
            ssh_url_to_repo=str(raw.get("ssh_url_to_repo") or ""),
            default_branch=raw.get("default_branch") or None,
            shared_with_groups=list(raw.get("shared_with_groups") or []),
            attributes=_extra(raw, _PROJECT_KEYS),
        )

    def first_shared_group_id(self) -> int | str | None:
        """Id of the first group this project is shared with, if any."""
        if not self.shared_with_groups:
            return None
        first = self.shared_with_groups[0]
        return first.get("group_id", first.get("id"))

    def to_dict(self) -> dict[str, Any]:
        """Serializable field set of the project."""
        return {
            **self.attributes,
            "id": self.id,
            "name": self.name,
            "path_with_namespace": self.path_with_namespace,
            "ssh_url_to_repo": self.ssh_url_to_repo,
            "default_branch": self.default_branch,
            "shared_with_groups": self.shared_with_groups,
            "config": self.config.to_dict(),
        }


@dataclass
class Group:
    """A GitLab group; ``subgroups`` is ``None`` until resolved."""

    id: int
    config: GitlabConfigItem
    name: str = ""
    path: str = ""
    full_path: str = ""
    parent_id: int | None = None
    projects: list[Project] = field(default_factory=list)
    subgroups: list[Group] | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any], config: GitlabConfigItem) -> Group:
        """Build from a group payload; embedded ``projects`` are converted too."""
        return cls(
            id=int(raw["id"]),
            config=config,
            name=str(raw.get("name") or ""),
            path=str(raw.get("path") or ""),
            full_path=str(raw.get("full_path") or raw.get("path") or ""),
            parent_id=raw.get("parent_id") or None,
            projects=[
                Project.from_api(project, config)
                for project in raw.get("projects") or []
            ],
            attributes=_extra(raw, _GROUP_KEYS),
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> dict[str, Any]:
        """Serializable field set, without the raw ``subgroups`` list."""
        return {
            **self.attributes,
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "full_path": self.full_path,
            "parent_id": self.parent_id,
            "projects": [project.to_dict() for project in self.projects],
            "config": self.config.to_dict(),
        }
