"""Repository ingestion: walk a materialized working copy into file paths."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path

__all__ = ["RepoIndex", "is_vcs_path", "list_files"]

_VCS_SEGMENTS = ("/.git/", "\\.git\\")


def is_vcs_path(path: Path | str) -> bool:
    """True when *path* lies inside a ``.git`` directory (either slash form)."""
    text = str(path)
    return any(segment in text for segment in _VCS_SEGMENTS)


async def list_files(*sources: Path) -> list[Path]:
    """Recursively list every non-directory entry under *sources*.

    Sibling directories are walked concurrently, so the result order is not
    deterministic across branches.
    """
    result: list[Path] = []
    work = []
    for source in sources:
        if await asyncio.to_thread(source.is_dir):
            work.append(_walk(source, result))
        else:
            result.append(source)
    await asyncio.gather(*work)
    return result


async def _walk(directory: Path, result: list[Path]) -> None:
    names = await asyncio.to_thread(os.listdir, directory)
    result.extend(await list_files(*(directory / name for name in names)))


@dataclass
class RepoIndex:
    """Flat list of the files in one working copy, ``.git`` excluded."""

    root: Path
    files: list[Path] = field(default_factory=list)

    @classmethod
    async def from_path(cls, path: Path) -> RepoIndex:
        """Walk a local repo and build an index of its files."""
        if not await asyncio.to_thread(path.is_dir):
            msg = f"Not a directory: {path}"
            raise FileNotFoundError(msg)

        files = [p for p in await list_files(path) if not is_vcs_path(p)]
        return cls(root=path, files=files)
