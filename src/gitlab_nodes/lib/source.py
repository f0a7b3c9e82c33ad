"""Run orchestration: resolve every configured root, then emit the graph."""

from __future__ import annotations

import asyncio
import logging

from gitlab_nodes.lib.config import PluginConfig, resolve_token
from gitlab_nodes.lib.git_utils import RepoMaterializer
from gitlab_nodes.lib.gitlab import GitlabClient
from gitlab_nodes.lib.graph import GroupNode, ProjectNode
from gitlab_nodes.lib.host import NodeSink
from gitlab_nodes.lib.nodes import NodeBuilder
from gitlab_nodes.lib.resolver import (
    gather_settled,
    resolve_group,
    resolve_project,
)

logger = logging.getLogger(__name__)

__all__ = ["source_nodes"]


async def source_nodes(
    config: PluginConfig,
    sink: NodeSink,
    *,
    client: GitlabClient | None = None,
    materializer: RepoMaterializer | None = None,
) -> list[GroupNode | ProjectNode]:
    """Mirror the configured groups and projects into *sink*.

    Resolution of every root completes before the first node is emitted, so
    a ``RemoteFetchError`` anywhere leaves the sink untouched for this run.
    An owned client is closed only after every outstanding call has returned.
    When *client* is omitted, the token is resolved (and may raise
    ``ConfigurationError``) before any remote call is made.

    Returns:
        The root nodes: one per configured group, then one per project.
    """
    owns_client = client is None
    if client is None:
        client = GitlabClient(resolve_token(config))

    try:
        groups, projects = await gather_settled(
            gather_settled(*(resolve_group(client, item) for item in config.groups)),
            gather_settled(
                *(resolve_project(client, item) for item in config.projects)
            ),
        )
    finally:
        if owns_client:
            client.close()

    builder = NodeBuilder(sink, cache_dir=config.cache_dir, materializer=materializer)
    group_nodes = await asyncio.gather(
        *(builder.create_group_nodes(group) for group in groups)
    )
    project_nodes = await asyncio.gather(
        *(builder.create_project_node(project) for project in projects)
    )
    logger.info(
        "Sourced %d group root(s) and %d standalone project(s)",
        len(group_nodes),
        len(project_nodes),
    )
    return [*group_nodes, *project_nodes]
