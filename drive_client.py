"""Google Drive REST client with retry logic, implementing the RemoteStore interface."""

import json
import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import google.auth
import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from fetchers.base_fetcher import RemoteStore
from models import DOCUMENT_MIME_TYPE, FOLDER_MIME_TYPE, EntryKind, RemoteEntry

logger = logging.getLogger('drive_markdown_exporter.client')

DRIVE_API_URL = 'https://www.googleapis.com/drive/v3/'
DRIVE_READONLY_SCOPE = 'https://www.googleapis.com/auth/drive.readonly'
LIST_FIELDS = 'nextPageToken, files(id, name, mimeType, createdTime, modifiedTime)'


class DriveClient(RemoteStore):
    """Google Drive v3 client listing folders and exporting documents as HTML."""

    def __init__(
        self,
        session: requests.Session,
        base_url: str = DRIVE_API_URL,
        timeout: float = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0,
        page_size: int = 1000
    ):
        """
        Initialize Drive client on an authorized session.

        Args:
            session: Authorized requests session (e.g. google-auth AuthorizedSession)
            base_url: Drive API base URL
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
            page_size: Number of entries requested per listing page
        """
        self.base_url = base_url.rstrip('/') + '/'
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff_factor = retry_backoff_factor
        self.rate_limit = rate_limit
        self.page_size = page_size
        self.last_request_time = 0.0
        self._rate_limit_lock = threading.Lock()
        self.session = session

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            respect_retry_after_header=True
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'DriveClient':
        """
        Initialize Drive client from configuration dictionary.

        Credentials come from drive.credentials_file (service account JSON)
        or, when unset, from application default credentials.

        Args:
            config: Configuration dictionary with drive and advanced settings

        Returns:
            DriveClient instance
        """
        drive_config = config.get('drive', {})
        advanced_config = config.get('advanced', {})
        scopes = [DRIVE_READONLY_SCOPE]

        credentials_file = drive_config.get('credentials_file')
        if credentials_file:
            credentials = service_account.Credentials.from_service_account_file(
                credentials_file, scopes=scopes
            )
            logger.info(f"Using service account credentials from {credentials_file}")
        else:
            credentials, project = google.auth.default(scopes=scopes)
            logger.info(f"Using application default credentials (project={project})")

        return cls(
            session=AuthorizedSession(credentials),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            rate_limit=advanced_config.get('rate_limit', 0.0)
        )

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting if configured, reserving one request slot per caller."""
        if self.rate_limit <= 0:
            return

        with self._rate_limit_lock:
            now = time.time()
            slot = max(now, self.last_request_time + self.rate_limit)
            self.last_request_time = slot

        sleep_time = slot - now
        if sleep_time > 0:
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
            time.sleep(sleep_time)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make HTTP request to the Drive API with rate limiting and error handling.

        Args:
            method: HTTP method
            endpoint: API endpoint path relative to base_url (e.g., "files")
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            requests.exceptions.HTTPError: For HTTP errors
            requests.exceptions.Timeout: For timeout errors
            requests.exceptions.RequestException: For other request errors
        """
        self._enforce_rate_limit()

        url = urljoin(self.base_url, endpoint.lstrip('/'))
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            elapsed = time.time() - start_time
            logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")

            response.raise_for_status()
            return response

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: {method} {url}")
            raise

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"HTTP Error {status_code}: {method} {url}")

            if e.response is not None:
                try:
                    error_data = e.response.json()
                    logger.error(f"Error details: {json.dumps(error_data, indent=2)}")
                except ValueError:
                    logger.error(f"Error response: {e.response.text[:500]}")

            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {method} {url} - {str(e)}")
            raise

        finally:
            with self._rate_limit_lock:
                self.last_request_time = max(self.last_request_time, time.time())

    def list_children(self, folder_id: str) -> List[RemoteEntry]:
        """
        List documents and folders directly inside a folder, newest first.

        Follows nextPageToken until the listing is exhausted.

        Args:
            folder_id: Drive folder ID

        Returns:
            List of RemoteEntry objects
        """
        escaped_id = folder_id.replace('\\', '\\\\').replace("'", "\\'")
        query = (
            f"'{escaped_id}' in parents and trashed = false and "
            f"(mimeType = '{DOCUMENT_MIME_TYPE}' or mimeType = '{FOLDER_MIME_TYPE}')"
        )

        entries: List[RemoteEntry] = []
        page_token: Optional[str] = None

        while True:
            params = {
                'q': query,
                'fields': LIST_FIELDS,
                'orderBy': 'modifiedTime desc',
                'pageSize': self.page_size,
                'supportsAllDrives': 'true',
                'includeItemsFromAllDrives': 'true'
            }
            if page_token:
                params['pageToken'] = page_token

            data = self._make_request('GET', 'files', params=params).json()

            for api_file in data.get('files', []):
                entry = self._convert_api_file_to_entry(api_file)
                if entry is not None:
                    entries.append(entry)

            page_token = data.get('nextPageToken')
            if not page_token:
                break

        logger.debug(f"Listed {len(entries)} entries in folder {folder_id}")
        return entries

    def export_document_html(self, document_id: str) -> str:
        """
        Export a Google Docs document as HTML.

        Args:
            document_id: Drive file ID of the document

        Returns:
            Exported HTML decoded as UTF-8
        """
        response = self._make_request(
            'GET',
            f'files/{document_id}/export',
            params={'mimeType': 'text/html'}
        )
        response.encoding = 'utf-8'
        logger.debug(f"Exported document {document_id} ({len(response.content)} bytes)")
        return response.text

    @staticmethod
    def _convert_api_file_to_entry(api_file: Dict[str, Any]) -> Optional[RemoteEntry]:
        """Convert a Drive files resource to a RemoteEntry, or None for other kinds."""
        kind = EntryKind.from_mime_type(api_file.get('mimeType'))
        if kind is None:
            return None

        return RemoteEntry(
            id=api_file['id'],
            name=api_file.get('name', ''),
            kind=kind,
            created_time=_parse_time(api_file.get('createdTime')),
            modified_time=_parse_time(api_file.get('modifiedTime'))
        )


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (ValueError, TypeError) as e:
        logger.warning(f"Failed to parse timestamp '{value}': {str(e)}")
        return None


__all__ = ['DriveClient', 'DRIVE_API_URL', 'DRIVE_READONLY_SCOPE']
