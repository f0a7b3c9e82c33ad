"""Hierarchy resolution: turn a configured group into a fully populated tree.

Every level fans out with ``gather_settled``. A failure in any branch fails
the join at each ancestor, so a root either resolves completely or raises.
Siblings of a failed call still run to completion first, so no API call is
left in flight when the error reaches the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

from gitlab_nodes.lib.config import GitlabConfigItem
from gitlab_nodes.lib.gitlab import GitlabClient
from gitlab_nodes.lib.models import Group, Project

logger = logging.getLogger(__name__)

__all__ = [
    "gather_settled",
    "resolve_group",
    "resolve_project",
    "resolve_subgroups",
]


async def gather_settled(*aws: Awaitable[Any]) -> list[Any]:
    """Await *aws* concurrently; once all have finished, raise the first error.

    Unlike a bare ``asyncio.gather``, the join never returns while a sibling
    is still running, so the caller may release shared resources right after.
    Errors are re-raised in argument order.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


async def resolve_group(client: GitlabClient, config: GitlabConfigItem) -> Group:
    """Resolve the group *config* points at, with all descendants.

    The group's own details already embed its direct projects; only its
    subgroups need a separate listing.
    """
    group, subgroups = await gather_settled(
        client.group_details(config),
        resolve_subgroups(client, config, config.id_or_path),
    )
    group.subgroups = subgroups
    logger.info(
        "Resolved group %s (%d project(s), %d subgroup(s))",
        group.full_path or group.id,
        len(group.projects),
        len(subgroups),
    )
    return group


async def resolve_subgroups(
    client: GitlabClient,
    config: GitlabConfigItem,
    id_or_path: int | str,
) -> list[Group]:
    """List and fully resolve the direct subgroups of *id_or_path*.

    Listed subgroups carry neither projects nor subgroups, so both are fetched
    per subgroup (addressed by ``full_path``) and recursed into concurrently.
    """
    subgroups = await client.group_subgroups(config, id_or_path)
    return list(
        await gather_settled(*(_fill(client, config, sub) for sub in subgroups))
    )


async def _fill(client: GitlabClient, config: GitlabConfigItem, group: Group) -> Group:
    address = group.full_path or group.id
    projects, subgroups = await gather_settled(
        client.group_projects(config, address),
        resolve_subgroups(client, config, address),
    )
    group.projects = projects
    group.subgroups = subgroups
    logger.debug(
        "Resolved subgroup %s (%d project(s), %d subgroup(s))",
        address,
        len(projects),
        len(subgroups),
    )
    return group


async def resolve_project(client: GitlabClient, config: GitlabConfigItem) -> Project:
    """Resolve a project configured on its own, outside any group."""
    return await client.project_details(config)
