"""Core library: configuration, GitLab access, resolution, and graph building.

Primary modules:
- ``gitlab_nodes.lib.resolver`` walks a group hierarchy via ``lib.gitlab``.
- ``gitlab_nodes.lib.nodes`` turns resolved objects into graph nodes.
- ``gitlab_nodes.lib.git_utils`` and ``lib.repo`` materialize and walk repos.
"""
