"""Derive host/owner/repository defaults from a git remote URL."""

from __future__ import annotations

import re
from typing import NamedTuple
from urllib.parse import urlsplit

from changebump.exceptions import ConfigError

_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?P<path>(?!//).+)$")


class HostInfo(NamedTuple):
    host: str | None
    owner: str | None
    repository: str | None
    scheme: str


def _to_url(remote_url: str) -> str:
    """
    >>> _to_url('git@github.com:convco/convco.git')
    'scheme://git@github.com/convco/convco.git'
    >>> _to_url('git@example.com:2222/owner/repo.git')
    'scheme://git@example.com:2222/owner/repo.git'
    """
    if "://" in remote_url:
        return remote_url
    match = _SCP_LIKE.match(remote_url)
    if not match:
        raise ConfigError(f"Unsupported remote URL: {remote_url!r}")
    user = f"{match['user']}@" if match["user"] else ""
    path = match["path"]
    if path[:1].isdigit():
        return f"scheme://{user}{match['host']}:{path}"
    return f"scheme://{user}{match['host']}/{path}"


def host_info_from_url(remote_url: str) -> HostInfo:
    """Split a remote URL into web host, owner and repository.

    Everything between the host and the last path segment is the owner, so
    GitLab subgroups come out as ``group/subgroup``.

    >>> host_info_from_url('https://gitlab.com/group/subgroup/repo.git')
    HostInfo(host='gitlab.com', owner='group/subgroup', repository='repo', scheme='https')
    >>> host_info_from_url('git@github.com:convco/convco.git')
    HostInfo(host='github.com', owner='convco', repository='convco', scheme='https')
    """
    remote_url = remote_url.strip()
    if not remote_url:
        raise ConfigError("Remote URL is empty")
    parts = urlsplit(_to_url(remote_url))
    if parts.scheme in ("http", "https"):
        scheme = parts.scheme
        host = parts.hostname
        if host and parts.port:
            host = f"{host}:{parts.port}"
    else:
        # ssh, git and scp-like remotes are browsed over https without the ssh port
        scheme = "https"
        host = parts.hostname
    path = parts.path.strip("/").removesuffix(".git")
    if "/" not in path:
        return HostInfo(host, None, path or None, scheme)
    owner, repository = path.rsplit("/", 1)
    return HostInfo(host, owner or None, repository or None, scheme)
