import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from splicer.core.config.settings import settings
from splicer.core.errors import SourceUnavailable
from splicer.core.jobs.models import SourceReference
from splicer.features.workspace.domain.models import Workspace
from ..domain.interfaces import ISourceProvider

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}


class RemoteSourceProvider(ISourceProvider):
    """
    Downloads a remote video into the workspace before extraction starts.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout_seconds: Optional[float] = None,
                 max_bytes: Optional[int] = None, chunk_size: int = 1024 * 1024):
        self._client = client
        self.timeout_seconds = timeout_seconds or settings.FETCH_TIMEOUT_SECONDS
        self.max_bytes = max_bytes or settings.MAX_SOURCE_BYTES
        self.chunk_size = chunk_size

    def materialize(self, source: SourceReference, workspace: Workspace) -> Path:
        url = source.location.strip()
        parsed = urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.netloc:
            raise SourceUnavailable(f"Unsupported source URL: {url!r}")

        destination = workspace.input_path(Path(parsed.path).suffix.lower())
        logger.info(f"Fetching remote source {url} -> {destination.name}")

        client = self._client or httpx.Client(follow_redirects=True, timeout=self.timeout_seconds)
        try:
            self._download(client, url, destination)
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(
                f"Remote source returned HTTP {e.response.status_code}: {url}", status_code=502
            ) from e
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Remote source fetch failed: {url}: {e}", status_code=502) from e
        finally:
            if self._client is None:
                client.close()

        return destination

    def _download(self, client: httpx.Client, url: str, destination: Path) -> None:
        total = 0
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(destination, "wb") as dst:
                for chunk in response.iter_bytes(self.chunk_size):
                    total += len(chunk)
                    if total > self.max_bytes:
                        raise SourceUnavailable(
                            f"Remote source exceeds {self.max_bytes} bytes: {url}", status_code=413
                        )
                    dst.write(chunk)

        if total == 0:
            raise SourceUnavailable(f"Remote source is empty: {url}", status_code=502)
        logger.info(f"Fetched {total / 1024 / 1024:.1f}MB from {url}")
