"""Node graph construction: resolved groups/projects and their files → sink.

Groups are converted post-order so every subgroup node exists before its
parent lists it in ``children``. Projects are emitted after the group node
that owns them and, when their configured item sets ``clone_depth``, their
repository is materialized and every file becomes a ``FileRecord`` child.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from gitlab_nodes.lib.git_utils import RepoMaterializer
from gitlab_nodes.lib.graph import (
    FileRecord,
    GroupNode,
    ProjectNode,
    content_digest,
    group_node_id,
    project_node_id,
)
from gitlab_nodes.lib.host import NodeSink, create_file_record
from gitlab_nodes.lib.models import Group, Project
from gitlab_nodes.lib.repo import RepoIndex

logger = logging.getLogger(__name__)

__all__ = ["FILE_SOURCE_LABEL", "NodeBuilder"]

FILE_SOURCE_LABEL = "filesystem"


class NodeBuilder:
    """Emit graph nodes for resolved GitLab objects into a ``NodeSink``."""

    def __init__(
        self,
        sink: NodeSink,
        *,
        cache_dir: Path,
        materializer: RepoMaterializer | None = None,
    ) -> None:
        self.sink = sink
        self.cache_dir = cache_dir
        self.materializer = materializer or RepoMaterializer()

    async def create_group_nodes(self, group: Group) -> GroupNode:
        """Emit *group*, its subgroups (first) and its projects (after)."""
        node_id = group_node_id(group.id)
        parent_id = group_node_id(group.parent_id or "root")
        logger.debug("Creating group node %s (parent %s)", node_id, parent_id)

        subgroup_nodes = await asyncio.gather(
            *(self.create_group_nodes(subgroup) for subgroup in group.subgroups or [])
        )

        fields = group.to_dict()
        node = GroupNode(
            id=node_id,
            parent=parent_id,
            fields=fields,
            content_digest=content_digest(fields),
            children=tuple(child.id for child in subgroup_nodes),
        )
        self.sink.create_node(node)

        await asyncio.gather(
            *(self.create_project_node(project, node.id) for project in group.projects)
        )
        return node

    async def create_project_node(
        self,
        project: Project,
        parent_id: str | None = None,
    ) -> ProjectNode:
        """Emit *project* under *parent_id*.

        Without an owning group the parent falls back to the first group the
        project is shared with, or ``GitlabGroup-unknown``.
        """
        fields = project.to_dict()
        shared = project.first_shared_group_id()
        parent = parent_id or group_node_id(shared or "unknown")
        node = ProjectNode(
            id=project_node_id(project.id),
            parent=parent,
            fields=fields,
            content_digest=content_digest(fields),
            config=project.config,
        )
        self.sink.create_node(node)
        if parent_id:
            self.sink.create_parent_child_link(parent_id, node.id)

        if project.config.clone_depth and project.default_branch:
            await self.create_file_nodes(node)
        return node

    def repo_path(self, node: ProjectNode) -> Path:
        """Working copy location of *node* inside the cache directory."""
        return self.cache_dir / (node.path_with_namespace or str(node.fields["id"]))

    async def create_file_nodes(self, node: ProjectNode) -> list[FileRecord]:
        """Materialize the project's repository and emit one node per file.

        A failed clone/pull is not fatal: whatever is on disk afterwards is
        ingested, and nothing at all when the working copy does not exist.
        """
        if node.config is None or node.config.clone_depth is None:
            return []
        repo_path = self.repo_path(node)
        code = await self.materializer.materialize(
            repo_path,
            node.ssh_url_to_repo,
            node.default_branch or "master",
            node.config.clone_depth,
        )
        if code != 0:
            logger.warning(
                "Materializing %s exited with %d; ingesting existing files only",
                node.id,
                code,
            )
        if not await asyncio.to_thread(repo_path.is_dir):
            logger.warning("No working copy for %s at %s", node.id, repo_path)
            return []

        index = await RepoIndex.from_path(repo_path)
        source_name = f"gitlab-nodes-{node.id}"
        records = await asyncio.gather(
            *(
                asyncio.to_thread(
                    create_file_record,
                    path,
                    root=self.cache_dir,
                    parent=node.id,
                    source_name=source_name,
                )
                for path in index.files
            )
        )
        for record in records:
            self.sink.create_node(record, FILE_SOURCE_LABEL)
            self.sink.create_parent_child_link(node.id, record.id)
        logger.info("Emitted %d file node(s) for %s", len(records), node.id)
        return list(records)
