"""
Log Sources — Where raw job log text comes from

The cache only needs one capability from the CI platform: "give me the
raw log text for this job". Sources implement exactly that.

- BuildkiteLogSource: Buildkite REST API (token from BUILDKITE_API_TOKEN)
- DirectoryLogSource: <root>/<org>/<pipeline>/<build>/<job>.log on disk

API tokens are NEVER stored in config files. They must be provided via
environment variables.
"""

import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..core.entry import JobKey
from ..errors import LogSourceError


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.buildkite.com"
TOKEN_ENV = "BUILDKITE_API_TOKEN"


class LogSource(ABC):
    """Fetches the raw log text of one job."""

    name = "abstract"

    @abstractmethod
    def fetch_log(self, key: JobKey) -> str:
        """
        Return the job's raw log text.

        Raises:
            LogSourceError: When the log cannot be fetched
        """


class BuildkiteLogSource(LogSource):
    """
    Buildkite REST API source.

    Uses urllib (stdlib) to avoid external dependencies.
    """

    name = "buildkite"

    def __init__(self, api_url: str = DEFAULT_API_URL, token: Optional[str] = None, timeout: float = 60.0):
        self.api_url = api_url.rstrip("/")
        self._token = token
        self.timeout = timeout

    @property
    def token(self) -> Optional[str]:
        """API token from constructor or environment. Never stored."""
        return self._token or os.environ.get(TOKEN_ENV)

    def log_url(self, key: JobKey) -> str:
        parts = [urllib.parse.quote(p, safe="") for p in (key.org, key.pipeline, key.build, key.job)]
        return (
            f"{self.api_url}/v2/organizations/{parts[0]}/pipelines/{parts[1]}"
            f"/builds/{parts[2]}/jobs/{parts[3]}/log"
        )

    def fetch_log(self, key: JobKey) -> str:
        if not self.token:
            raise LogSourceError(f"Buildkite API token missing (set {TOKEN_ENV} environment variable)")

        url = self.log_url(key)
        headers = {
            "Accept": "text/plain",
            "Authorization": f"Bearer {self.token}",
        }
        req = urllib.request.Request(url, headers=headers, method="GET")
        logger.debug("Fetching job log from %s", url)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise LogSourceError(f"Job log not found: {key.as_path()}", e)
            raise LogSourceError(f"Buildkite API error: {e.code} {e.reason}", e)
        except urllib.error.URLError as e:
            raise LogSourceError(f"Cannot connect to Buildkite at {self.api_url}: {e.reason}", e)
        except OSError as e:
            raise LogSourceError(f"Failed to read job log: {e}", e)


class DirectoryLogSource(LogSource):
    """Reads logs saved as <root>/<org>/<pipeline>/<build>/<job>.log."""

    name = "directory"

    def __init__(self, root: Path):
        self.root = Path(root)

    def log_path(self, key: JobKey) -> Path:
        for part in (key.org, key.pipeline, key.build, key.job):
            if part in ("", ".", "..") or "/" in part or "\\" in part:
                raise LogSourceError(f"Invalid path segment in job key: {part!r}")
        return self.root / key.org / key.pipeline / key.build / f"{key.job}.log"

    def fetch_log(self, key: JobKey) -> str:
        path = self.log_path(key)
        if not path.is_file():
            raise LogSourceError(f"Job log not found: {path}")
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise LogSourceError(f"Failed to read job log {path}: {e}", e)


def get_source(config) -> LogSource:
    """
    Build the log source named by configuration.

    Args:
        config: Loaded Config (uses config.source)

    Returns:
        LogSource instance
    """
    source = config.source
    if source.kind == "directory":
        return DirectoryLogSource(Path(source.directory).expanduser())
    return BuildkiteLogSource(api_url=source.api_url)
