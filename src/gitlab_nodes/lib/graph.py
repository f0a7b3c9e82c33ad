"""Graph node types plus the identity and content-digest primitives.

Node IDs for groups and projects are ``{type}-{remote id}``; file records
get a deterministic UUID derived from their owner and path. Digests are a
SHA-256 over the canonical JSON of a node's field set, so an unchanged
remote state always reproduces the same digests.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar

from gitlab_nodes.lib.config import GitlabConfigItem

__all__ = [
    "FILE_TYPE",
    "GL_GROUP_TYPE",
    "GL_PROJECT_TYPE",
    "FileRecord",
    "GraphNode",
    "GroupNode",
    "ProjectNode",
    "content_digest",
    "create_node_id",
    "group_node_id",
    "project_node_id",
]

GL_GROUP_TYPE = "GitlabGroup"
GL_PROJECT_TYPE = "GitlabProject"
FILE_TYPE = "File"

_NODE_ID_NAMESPACE = uuid.UUID("5b1f4e0a-3c1d-4c2e-9a57-6f1f0c2d9e41")


def content_digest(payload: Any) -> str:
    """Hash *payload* deterministically (key order and whitespace independent)."""
    canonical = json.dumps(
        payload, sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def create_node_id(seed: str) -> str:
    """Return a stable node id for an arbitrary seed string."""
    return str(uuid.uuid5(_NODE_ID_NAMESPACE, seed))


def group_node_id(group_id: int | str | None) -> str:
    return f"{GL_GROUP_TYPE}-{group_id}"


def project_node_id(project_id: int | str) -> str:
    return f"{GL_PROJECT_TYPE}-{project_id}"


@dataclass(frozen=True)
class GraphNode:
    """An emitted record; never mutated once handed to a sink."""

    id: str
    parent: str | None
    fields: dict[str, Any]
    content_digest: str
    children: tuple[str, ...] = ()

    type: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.fields,
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "internal": {"type": self.type, "content_digest": self.content_digest},
        }


@dataclass(frozen=True)
class GroupNode(GraphNode):
    type: ClassVar[str] = GL_GROUP_TYPE


@dataclass(frozen=True)
class ProjectNode(GraphNode):
    config: GitlabConfigItem | None = field(default=None, compare=False)

    type: ClassVar[str] = GL_PROJECT_TYPE

    @property
    def default_branch(self) -> str | None:
        return self.fields.get("default_branch")

    @property
    def path_with_namespace(self) -> str:
        return str(self.fields.get("path_with_namespace") or "")

    @property
    def ssh_url_to_repo(self) -> str:
        return str(self.fields.get("ssh_url_to_repo") or "")


@dataclass(frozen=True)
class FileRecord(GraphNode):
    type: ClassVar[str] = FILE_TYPE

    @property
    def absolute_path(self) -> str:
        return str(self.fields["absolute_path"])
