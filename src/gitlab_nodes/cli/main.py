"""CLI entry point: parse args, load config, mirror GitLab into a node file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from gitlab_nodes.lib.config import GL_DEFAULT_HOST, GitlabConfigItem, PluginConfig
from gitlab_nodes.lib.errors import GitlabNodesError
from gitlab_nodes.lib.graph import FILE_TYPE, GL_GROUP_TYPE, GL_PROJECT_TYPE
from gitlab_nodes.lib.host import JsonLinesNodeSink, MemoryNodeSink
from gitlab_nodes.lib.source import source_nodes


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for CLI mode."""
    parser = argparse.ArgumentParser(
        prog="gitlab-nodes",
        description="Mirror GitLab groups and projects into a content node graph.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="TOML file with [[groups]]/[[projects]] tables (or GITLAB_NODES_CONFIG).",
    )
    parser.add_argument(
        "--group",
        action="append",
        default=[],
        metavar="ID_OR_PATH",
        help="Group to resolve; may be repeated.",
    )
    parser.add_argument(
        "--project",
        action="append",
        default=[],
        metavar="ID_OR_PATH",
        help="Standalone project to resolve; may be repeated.",
    )
    parser.add_argument(
        "--host",
        default=GL_DEFAULT_HOST,
        help="GitLab host for --group/--project items.",
    )
    parser.add_argument(
        "--clone-depth",
        type=int,
        default=None,
        help="Clone --group/--project repositories at this depth and emit file nodes.",
    )
    parser.add_argument(
        "--cache-root",
        default=None,
        help="Directory under which .cache/gitlab-nodes holds working copies.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write nodes and links as JSON Lines to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output.",
    )
    return parser


def _item(raw: str, *, host: str, clone_depth: int | None) -> GitlabConfigItem:
    id_or_path: int | str = int(raw) if raw.isdigit() else raw
    return GitlabConfigItem(id_or_path=id_or_path, host=host, clone_depth=clone_depth)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PluginConfig.from_env(
            overrides={
                "config_path": args.config,
                "cache_root": args.cache_root,
                "groups": [
                    _item(g, host=args.host, clone_depth=args.clone_depth)
                    for g in args.group
                ],
                "projects": [
                    _item(p, host=args.host, clone_depth=args.clone_depth)
                    for p in args.project
                ],
            }
        )
        if not config.groups and not config.projects:
            print("Error: no groups or projects configured.", file=sys.stderr)
            sys.exit(1)

        if args.output:
            with Path(args.output).open("w", encoding="utf-8") as fh:
                stream_sink = JsonLinesNodeSink(fh)
                asyncio.run(source_nodes(config, stream_sink))
            print(f"Emitted {stream_sink.count} nodes to {args.output}.")
            return

        sink = MemoryNodeSink()
        asyncio.run(source_nodes(config, sink))
    except GitlabNodesError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    groups = len(sink.of_type(GL_GROUP_TYPE))
    projects = len(sink.of_type(GL_PROJECT_TYPE))
    files = len(sink.of_type(FILE_TYPE))
    print(
        f"Emitted {len(sink.nodes)} nodes: {groups} group(s), "
        f"{projects} project(s), {files} file(s)."
    )


if __name__ == "__main__":
    main()
