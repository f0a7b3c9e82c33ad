"""GitLab API access: typed group/project lookups over python-gitlab.

The SDK is blocking, so every call is pushed onto a worker thread with
``asyncio.to_thread``; callers see plain coroutines and can fan out freely.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import gitlab
import requests
from gitlab.exceptions import GitlabError

from gitlab_nodes.lib.config import GitlabConfigItem, GitlabId
from gitlab_nodes.lib.errors import RemoteFetchError
from gitlab_nodes.lib.models import Group, Project

logger = logging.getLogger(__name__)

__all__ = ["GitlabClient"]

T = TypeVar("T")


def _gitlab_error_message(action: str, exc: Exception) -> str:
    """Build a clear error message from a python-gitlab or transport exception.

    Args:
        action: Human-readable description of what was attempted.
        exc: The caught exception.

    Returns:
        An actionable error string including the HTTP status and detail.
    """
    status = getattr(exc, "response_code", None)
    message = getattr(exc, "error_message", None) or str(exc)
    hints: dict[int, str] = {
        401: "check GITLAB_TOKEN is valid and not expired",
        403: "check the token has read_api scope for this namespace",
        404: "resource not found, verify the id/path and token permissions",
    }
    hint = hints.get(status, "") if status else ""
    text = f"GitLab API error: failed to {action}"
    if status:
        text += f" (HTTP {status})"
    if message:
        text += f": {message}"
    if hint:
        text += f" [hint: {hint}]"
    return text


@dataclass
class GitlabClient:
    """Authenticated GitLab client, one SDK connection per configured host."""

    token: str
    _connections: dict[str, gitlab.Gitlab] = field(
        init=False, default_factory=dict, repr=False
    )

    def connection(self, host: str) -> gitlab.Gitlab:
        """Return (and cache) the SDK connection for *host*."""
        key = host.rstrip("/")
        if key not in self._connections:
            self._connections[key] = gitlab.Gitlab(key, private_token=self.token)
        return self._connections[key]

    async def _fetch(
        self,
        config: GitlabConfigItem,
        target: GitlabId,
        action: str,
        call: Callable[[gitlab.Gitlab], T],
    ) -> T:
        gl = self.connection(config.host)
        logger.debug("GitLab %s '%s'", action, target)
        try:
            return await asyncio.to_thread(call, gl)
        except (GitlabError, requests.RequestException) as exc:
            msg = _gitlab_error_message(f"{action} '{target}'", exc)
            logger.error(msg)
            raise RemoteFetchError(target, msg) from exc

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    #
    # ``id_or_path`` addresses a different resource on the same host while
    # the results still carry ``config``, the item that drove the lookup.

    async def group_details(
        self, config: GitlabConfigItem, id_or_path: GitlabId | None = None
    ) -> Group:
        """Fetch one group with its direct projects; subgroups stay unset."""
        target = config.id_or_path if id_or_path is None else id_or_path
        raw: dict[str, Any] = await self._fetch(
            config,
            target,
            "fetch group",
            lambda gl: dict(gl.groups.get(target).attributes),
        )
        return Group.from_api(raw, config)

    async def group_subgroups(
        self, config: GitlabConfigItem, id_or_path: GitlabId | None = None
    ) -> list[Group]:
        """List a group's direct subgroups (their projects are not embedded)."""
        target = config.id_or_path if id_or_path is None else id_or_path
        raws: list[dict[str, Any]] = await self._fetch(
            config,
            target,
            "list subgroups of",
            lambda gl: [
                dict(subgroup.attributes)
                for subgroup in gl.groups.get(target, lazy=True).subgroups.list(
                    get_all=True
                )
            ],
        )
        return [Group.from_api(raw, config) for raw in raws]

    async def group_projects(
        self, config: GitlabConfigItem, id_or_path: GitlabId | None = None
    ) -> list[Project]:
        """List every direct project of a group."""
        target = config.id_or_path if id_or_path is None else id_or_path
        raws: list[dict[str, Any]] = await self._fetch(
            config,
            target,
            "list projects of",
            lambda gl: [
                dict(project.attributes)
                for project in gl.groups.get(target, lazy=True).projects.list(
                    get_all=True
                )
            ],
        )
        return [Project.from_api(raw, config) for raw in raws]

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def project_details(
        self, config: GitlabConfigItem, id_or_path: GitlabId | None = None
    ) -> Project:
        """Fetch one project."""
        target = config.id_or_path if id_or_path is None else id_or_path
        raw: dict[str, Any] = await self._fetch(
            config,
            target,
            "fetch project",
            lambda gl: dict(gl.projects.get(target).attributes),
        )
        return Project.from_api(raw, config)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close every underlying HTTP session."""
        for gl in self._connections.values():
            gl.session.close()
        self._connections.clear()

    def __enter__(self) -> GitlabClient:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
