"""
Spreadsheet values connector.

Reads value ranges from the spreadsheet values API over HTTP. Transport
errors and throttling/server responses are retried with exponential backoff;
anything still failing surfaces as SourceUnavailable.
"""

from typing import List, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    Retrying, RetryError, retry_if_exception, stop_after_attempt, wait_exponential
)

from .auth_handler import AuthHandler
from ..config import ConfigLoader, FeatureServiceSettings
from ..exceptions import GeoAPIAuthenticationError, SourceUnavailable
from ..utils import get_logger

logger = get_logger(__name__)


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


class SheetsConnector:
    """
    HTTP client for one spreadsheet's value ranges.
    
    The underlying ``httpx.Client`` is created lazily and can be injected for
    testing (e.g. with ``httpx.MockTransport``).
    """
    
    def __init__(self, config_loader: ConfigLoader, environment: str = 'development',
                 client: Optional[httpx.Client] = None, retry_wait_seconds: float = 1.0):
        """
        Initialize the connector.
        
        Args:
            config_loader: ConfigLoader instance for accessing configuration
            environment: Environment whose spreadsheet is read
            client: Optional pre-built HTTP client
            retry_wait_seconds: Backoff multiplier between retries
        """
        self.config_loader = config_loader
        self.environment = environment
        self.auth_handler = AuthHandler(config_loader)
        self.settings = FeatureServiceSettings.from_environment_config(
            environment, config_loader.load_environment_config(environment)
        )
        self.retry_wait_seconds = retry_wait_seconds
        self._client = client
        logger.debug("SheetsConnector initialized")
    
    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.request_timeout_seconds)
        return self._client
    
    def get_values(self, range_name: str) -> List[List[str]]:
        """
        Read one value range.
        
        Args:
            range_name: A1-notation range, e.g. ``natural_data!A2:E``
            
        Returns:
            Rows of cell values in sheet order (empty list when the range is empty)
            
        Raises:
            SourceUnavailable: If the range cannot be read
        """
        try:
            api_url, api_key = self.auth_handler.get_sheets_credentials(self.environment)
        except GeoAPIAuthenticationError as e:
            raise SourceUnavailable(f"Cannot authenticate to sheets API: {e.message}", range_name)
        
        url = (f"{api_url}/spreadsheets/{self.settings.spreadsheet_id}"
               f"/values/{quote(range_name, safe='')}")
        
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=10),
            retry=retry_if_exception(_is_retryable),
        )
        
        try:
            for attempt in retrying:
                with attempt:
                    response = self._get_client().get(
                        url, params={"key": api_key, "majorDimension": "ROWS"}
                    )
                    response.raise_for_status()
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(f"Giving up on range {range_name} after "
                         f"{self.settings.retry_attempts} attempts: {last_error}")
            raise SourceUnavailable(f"Sheets API unavailable: {last_error}", range_name)
        except httpx.HTTPStatusError as e:
            logger.error(f"Sheets API rejected range {range_name}: {e.response.status_code}")
            raise SourceUnavailable(
                f"Sheets API returned {e.response.status_code}", range_name,
                {"status_code": e.response.status_code}
            )
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Sheets API request failed: {str(e)}", range_name)
        
        try:
            payload = response.json()
        except ValueError:
            raise SourceUnavailable("Sheets API returned a non-JSON body", range_name)
        
        values = payload.get("values") or []
        logger.debug(f"Fetched {len(values)} rows from {range_name}")
        return values
    
    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Sheets connector closed")
