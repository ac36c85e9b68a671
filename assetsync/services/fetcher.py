"""
Direct authenticated downloads of individual repository files.
"""

import base64
import os
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from ..models import BasicAuth, Credentials, SourceLocator, TokenAuth
from ..infrastructure.error_handler import FetchError, handle_fetch_error
from ..infrastructure.logger import logger


TEMP_SUFFIX = ".temp"


class DirectFileFetcher:
    """
    Downloads single files from the raw-content endpoint of a source.

    The destination is only ever replaced by a fully written sibling
    temp file, so an interrupted transfer never leaves a truncated file.
    """

    def __init__(
        self,
        user_agent: str = "AssetSync-SetupTool",
        timeout: float = 60.0,
        chunk_size: int = 8192,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._transport = transport

    @staticmethod
    def build_raw_url(source: SourceLocator, remote_file_name: str) -> str:
        encoded = quote(remote_file_name.lstrip("/"), safe="/")
        return (
            f"https://{source.raw_host}/{source.owner}/{source.repo}/"
            f"{source.branch}/{encoded}"
        )

    def build_headers(self, credentials: Credentials) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if isinstance(credentials, TokenAuth):
            headers["Authorization"] = f"token {credentials.token}"
        elif isinstance(credentials, BasicAuth):
            pair = f"{credentials.username}:{credentials.password}".encode("utf-8")
            headers["Authorization"] = f"Basic {base64.b64encode(pair).decode('ascii')}"
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport
        )

    @handle_fetch_error
    def fetch_file(
        self,
        source: SourceLocator,
        credentials: Credentials,
        remote_file_name: str,
        dest_path: Path
    ) -> Path:
        """
        Download ``remote_file_name`` from ``source`` into ``dest_path``.

        Args:
            source: Repository to read from
            credentials: Resolved credentials of the source
            remote_file_name: Path of the file inside the repository
            dest_path: Local destination; parent directories are created

        Returns:
            The destination path

        Raises:
            FetchError: On a non-success status or a transfer failure
        """
        dest_path = Path(dest_path)
        url = self.build_raw_url(source, remote_file_name)
        logger.info(f"Downloading {remote_file_name} from {source.display_name}")

        with self._client() as client:
            with client.stream("GET", url, headers=self.build_headers(credentials)) as response:
                if not response.is_success:
                    logger.error(
                        f"Failed to download {remote_file_name}: "
                        f"HTTP {response.status_code} - {response.reason_phrase}"
                    )
                    raise FetchError(response.status_code, response.reason_phrase, url)

                dest_path.parent.mkdir(parents=True, exist_ok=True)
                temp_path = dest_path.with_name(dest_path.name + TEMP_SUFFIX)
                try:
                    with open(temp_path, "wb") as fh:
                        for chunk in response.iter_bytes(self.chunk_size):
                            fh.write(chunk)
                    os.replace(temp_path, dest_path)
                except BaseException:
                    if temp_path.exists():
                        temp_path.unlink()
                    raise

        logger.info(f"{remote_file_name} downloaded to {dest_path}")
        return dest_path


__all__ = [
    "DirectFileFetcher",
    "TEMP_SUFFIX",
]
