"""HTTP client for communicating with the share server."""

import time
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

import httpx

from common.exceptions import NotFoundError, RateLimitedError, UpstreamFailureError
from common.logging_config import get_logger
from common.types import FileRecord
from cli.config import Config

logger = get_logger(__name__)


class ShareServerClient:
    """HTTP client for the share server API with retry logic and error handling."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize server client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests inject a mock transport)
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized ShareServerClient [base_url={config.get_base_url()}]")

    def close(self) -> None:
        self.session.close()

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        size_mb = file_size / (1024 * 1024)
        return 30.0 + size_mb * 0.1

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path or absolute URL
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            UpstreamFailureError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise UpstreamFailureError("Request timed out. Server may be overloaded.")
        raise UpstreamFailureError("Cannot connect to share server. Is it running?")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get('detail') or body.get('error') or body)
        return str(body)

    def upload_file(self, file_path: Path, user_id: str, security_mode: bool = False) -> dict:
        """
        Upload one file.

        Args:
            file_path: Local file to send
            user_id: Session ID recorded as the file's owner
            security_mode: Whether extra verification was requested

        Returns:
            Response JSON (file record fields plus shareUrl)

        Raises:
            RateLimitedError: If the server rejected the upload with 429
            UpstreamFailureError: If the upload failed for any other reason
        """
        file_path = Path(file_path)
        file_size = file_path.stat().st_size
        logger.info(f"Uploading {file_path.name} ({file_size} bytes)")

        with open(file_path, 'rb') as f:
            response = self._request_with_retry(
                'POST',
                '/upload',
                max_retries=0,
                files={'file': (file_path.name, f)},
                data={'userId': user_id, 'securityMode': 'true' if security_mode else 'false'},
                timeout=self._calculate_upload_timeout(file_size),
            )

        if response.status_code == 429:
            retry_after = float(response.headers.get('Retry-After', 0) or 0)
            raise RateLimitedError(self._error_detail(response), retry_after=timedelta(seconds=retry_after))

        if response.status_code != 200:
            raise UpstreamFailureError(f"Upload failed: {self._error_detail(response)}")

        return response.json()

    def fetch_bytes(self, record: FileRecord) -> bytes:
        """
        Fetch the stored bytes behind a record from its public URL.

        Raises:
            NotFoundError: If the storage no longer has the file
            UpstreamFailureError: If the fetch fails
        """
        response = self._request_with_retry('GET', record.url)

        if response.status_code == 404:
            raise NotFoundError(f"File {record.id} is no longer stored")
        if response.status_code != 200:
            raise UpstreamFailureError(f"Failed to fetch file: {self._error_detail(response)}")

        return response.content

    def download(self, record: FileRecord, output_dir: Path, output_name: Optional[str] = None) -> Path:
        """
        Download a file to disk under its original name.

        Returns:
            Path the file was written to
        """
        data = self.fetch_bytes(record)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / Path(output_name or record.original_name).name
        output_file.write_bytes(data)

        logger.info(f"Downloaded {record.id} to {output_file} ({len(data)} bytes)")
        return output_file

    def delete_remote(self, file_id: str, session_id: str) -> bool:
        """
        Ask the server to delete its copy of a file.

        Returns:
            True if the server deleted it, False if it refused or no longer has it
        """
        response = self._request_with_retry('DELETE', f'/files/{file_id}', headers={'X-Session-ID': session_id})
        if response.status_code == 200:
            return bool(response.json().get('deleted'))
        if response.status_code in (403, 404):
            return False
        raise UpstreamFailureError(f"Delete failed: {self._error_detail(response)}")

    def share_url(self, file_id: str) -> str:
        """Public share link the server serves for a file ID."""
        return f"{self.config.get_base_url()}/share/{file_id}"
