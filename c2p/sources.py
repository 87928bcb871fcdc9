"""Loading of JSON documents from local paths, web URLs and git repositories."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import urllib.error
import urllib.request
from typing import Any, Callable, Optional, Tuple
from urllib.parse import SplitResult, urlsplit

logger = logging.getLogger("c2p.sources")

Auth = Optional[Tuple[str, str]]
Cloner = Callable[[str, str, Auth], None]

_LOCAL_SCHEMES = ("", "local")


class SourceError(Exception):
    """A document or repository could not be loaded."""


def _parse(url: str) -> SplitResult:
    try:
        return urlsplit(url)
    except ValueError as exc:
        raise SourceError(f"invalid url {url!r}: {exc}") from exc


def _host(parts: SplitResult) -> str:
    return parts.netloc.rpartition("@")[2]


def split_git_url(url: str) -> tuple[str, str]:
    """Split a repository URL into the repository root and the path inside it.

    URLs without a scheme give two empty strings.
    """
    parts = _parse(url)
    if not parts.scheme:
        return "", ""
    tokens = parts.path.split("/")
    if len(tokens) < 3:
        raise SourceError(f"url path should have at least 3 tokens. url: {url}")
    repo_url = f"{parts.scheme}://{_host(parts)}/{tokens[1]}/{tokens[2]}"
    return repo_url, "/".join(tokens[3:])


def to_local_path(url: str) -> str:
    """The file system path named by a local or scheme-less URL."""
    parts = _parse(url)
    return _host(parts) + parts.path


def load_json_file(path: str) -> Any:
    """Read and decode a JSON file."""
    try:
        with open(path, encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        raise SourceError(f"cannot load {path}: {exc}") from exc


def _load_local(url: str) -> Any:
    path = to_local_path(url)
    try:
        return load_json_file(path)
    except SourceError as exc:
        raise SourceError(f"Failed to marshal {path} in local directory") from exc


class GitUtils:
    """Fetches documents, cloning each remote repository at most once.

    Remote repositories are fetched by ``cloner(url, directory, auth)``, where
    ``auth`` is ``(username, token)`` taken from the environment variables
    ``username`` and ``token`` when both are set.
    """

    def __init__(self, temp_dir: str | None = None, cloner: Cloner | None = None) -> None:
        self.temp_dir = temp_dir
        self._cloner = cloner
        self._repo_cache: dict[str, str] = {}

    def load_from_web(self, url: str) -> Any:
        """Load a JSON document from a local path or over HTTP."""
        parts = _parse(url)
        if parts.scheme in _LOCAL_SCHEMES:
            return _load_local(url)
        request = urllib.request.Request(url, method="GET")
        try:
            with urllib.request.urlopen(request) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            body = exc.read()
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise SourceError(f"Failed to get {url}") from exc
        try:
            return json.loads(body)
        except ValueError as exc:
            raise SourceError(f"Failed to unmarshal {url}") from exc

    def load_from_git(self, url: str) -> Any:
        """Load a JSON document from a local path or from a file in a repository."""
        parts = _parse(url)
        repo_url, path = split_git_url(url)
        if parts.scheme in _LOCAL_SCHEMES:
            return _load_local(url)
        try:
            repo_dir, _ = self.git_clone(repo_url)
        except SourceError as exc:
            raise SourceError(f"Failed to clone {repo_url}") from exc
        target = f"{repo_dir}/{path}"
        try:
            return load_json_file(target)
        except SourceError as exc:
            raise SourceError(f"Failed to marshal {target}") from exc

    def git_clone(self, url: str) -> tuple[str, str]:
        """Return the local root of the repository and the path inside it."""
        parts = _parse(url)
        repo_url, path = split_git_url(url)
        if parts.scheme in _LOCAL_SCHEMES:
            return to_local_path(url), ""
        return self._clone(repo_url), path

    def _clone(self, url: str) -> str:
        cached = self._repo_cache.get(url)
        if cached is not None:
            return cached
        if self._cloner is None:
            raise SourceError(f"no cloner is configured to fetch {url}")
        try:
            directory = tempfile.mkdtemp(prefix="tmp-", dir=self.temp_dir)
        except OSError as exc:
            raise SourceError(f"cannot create a directory for {url}: {exc}") from exc
        username = os.environ.get("username", "")
        token = os.environ.get("token", "")
        auth: Auth = None
        if username and token:
            logger.info(
                "Git Clone with Auth given by 'username' and 'token' in environment variables"
            )
            auth = (username, token)
        try:
            self._cloner(url, directory, auth)
        except OSError as exc:
            raise SourceError(f"cannot clone {url}: {exc}") from exc
        self._repo_cache[url] = directory
        return directory