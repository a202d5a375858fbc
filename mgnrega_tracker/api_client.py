"""
MGNREGA API Client Module

This module fetches district-wise MGNREGA records from the data.gov.in
resource API, caches successful responses, and falls back to the last
unfiltered response when a live request fails.
"""

# Standard library imports
import time
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Any

# Third-party imports
import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException, Timeout, ConnectionError
from urllib3.util.retry import Retry

# Local imports
from .cache import ResponseCache, get_default_cache
from .config import Settings, load_settings, DEFAULT_LIMIT
from .data_processor import (
    District,
    extract_districts,
    financial_years,
    get_latest_record,
    records_for_district,
    unique_states,
    districts_in_state,
)
from .exceptions import (
    MGNREGAError,
    NetworkError,
    RequestTimeoutError,
    UpstreamFormatError,
)

# Constants
USER_AGENT = 'MGNREGA-Performance-Tracker/0.1.0'
RETRY_BACKOFF_FACTOR = 1
RETRY_STATUS_CODES = [429, 500, 502, 503, 504]
DEFAULT_LIMIT_PER_DISTRICT = 100
MAX_BATCH_WORKERS = 8
CACHE_KEY_PREFIX = 'mgnrega'
ALL_SENTINEL = 'all'

# Logger setup
logger = logging.getLogger(__name__)


def build_cache_key(
    district: Optional[str] = None,
    state: Optional[str] = None,
    financial_year: Optional[str] = None,
    limit: int = DEFAULT_LIMIT
) -> str:
    """
    Cache key for a query; absent filters are written as 'all'.

    Example:
        >>> build_cache_key(state='BIHAR')
        'mgnrega_all_BIHAR_all_1000'
    """
    parts = [district or ALL_SENTINEL, state or ALL_SENTINEL, financial_year or ALL_SENTINEL]
    return f"{CACHE_KEY_PREFIX}_{'_'.join(parts)}_{limit}"


FALLBACK_CACHE_KEY = build_cache_key()


class MGNREGAClient:
    """
    Client for the district-wise MGNREGA dataset on data.gov.in.

    Responses are cached for 30 minutes in a ResponseCache shared by every
    client in the process unless one is injected. The client never retries a
    failed request by itself; when a request fails it returns the cached
    unfiltered dataset if there is one, whatever its age, and otherwise
    raises.

    Attributes:
        api_key (str): data.gov.in API key
        base_url (str): Resource endpoint
        cache (ResponseCache): Response cache
        session (requests.Session): HTTP session
        timeout (float): Request timeout in seconds

    Example:
        >>> client = MGNREGAClient(api_key="your-api-key")
        >>> response = client.fetch_records(district="PATNA")
        >>> latest = client.get_latest_district_data("PATNA")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: API key. If None, read from MGNREGA_API_KEY.
            base_url: Resource URL. If None, read from MGNREGA_API_BASE_URL or
                      the default data.gov.in endpoint.
            cache: Cache to use. If None, the process-wide default cache.
            timeout: Request timeout in seconds. Default is 30.
            settings: Preloaded settings; loaded from the environment if None.

        Raises:
            ConfigurationError: If no API key is available
        """
        settings = settings or load_settings()
        if api_key is not None:
            settings = Settings(
                api_key=api_key,
                base_url=settings.base_url,
                max_retries=settings.max_retries,
                request_timeout=settings.request_timeout,
            )

        self.api_key = settings.require_api_key()
        self.base_url = (base_url or settings.base_url).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.cache = cache if cache is not None else get_default_cache()
        self.logger = logging.getLogger(__name__)

        self.session = requests.Session()
        retry_strategy = Retry(
            total=settings.max_retries,
            backoff_factor=RETRY_BACKOFF_FACTOR,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=["GET"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'application/json'
        })

        self.logger.info(
            f"Initialized MGNREGA client with base URL: {self.base_url}, "
            f"timeout: {self.timeout}s, retries: {settings.max_retries}"
        )

    def _build_params(
        self,
        district: Optional[str],
        state: Optional[str],
        financial_year: Optional[str],
        limit: int
    ) -> Dict[str, str]:
        params = {
            'api-key': self.api_key,
            'format': 'json',
            'limit': str(limit),
        }
        if district:
            params['filters[district_name]'] = district
        if state:
            params['filters[state_name]'] = state
        if financial_year:
            params['filters[fin_year]'] = financial_year
        return params

    def _request(self, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Issue one GET and validate the response body.

        Raises:
            RequestTimeoutError: If no response arrives within the timeout
            NetworkError: On connection or other transport failures
            UpstreamFormatError: On non-2xx status, non-JSON body or a
                                 missing 'records' list
        """
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except Timeout:
            self.logger.error(f"Request timeout for {self.base_url} after {self.timeout}s")
            raise RequestTimeoutError(
                f"Request timeout: the data source did not respond within {self.timeout}s"
            )
        except ConnectionError as e:
            self.logger.error(f"Connection error for {self.base_url}: {e}")
            raise NetworkError(f"Network error: unable to connect to data source: {e}")
        except RequestException as e:
            self.logger.error(f"Request to {self.base_url} failed: {e}")
            raise NetworkError(f"Network error: {e}")

        if not 200 <= response.status_code < 300:
            raise UpstreamFormatError(
                f"API responded with status: {response.status_code} - {response.reason}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            self.logger.debug(f"Response content: {response.text[:500]}")
            raise UpstreamFormatError(
                f"Invalid JSON response from API: {e}", status_code=response.status_code
            )

        if not isinstance(data, dict) or not isinstance(data.get('records'), list):
            raise UpstreamFormatError(
                "Invalid data format received from API - records array missing",
                status_code=response.status_code
            )

        return data

    def fetch_records(
        self,
        district: Optional[str] = None,
        state: Optional[str] = None,
        financial_year: Optional[str] = None,
        limit: int = DEFAULT_LIMIT
    ) -> Dict[str, Any]:
        """
        Fetch MGNREGA records with optional exact-match filters.

        A cached response for the same filters and limit is returned without
        a network call. Successful responses are cached; failures never are.
        If the request fails, the cached unfiltered response (all districts)
        is returned instead when one exists; callers wanting one district's
        records should pass them through records_for_district.

        The timeout applies to the connect and to each read of the response
        separately, as requests does, so a server that keeps trickling bytes
        can hold a request open for longer than the timeout in total.

        Args:
            district: Exact district name, e.g. 'PATNA'
            state: Exact state name, e.g. 'BIHAR'
            financial_year: Financial year, e.g. '2024-2025'
            limit: Maximum records to request. Default is 1000.

        Returns:
            The full API response; its 'records' key holds the record list.

        Raises:
            NetworkError, RequestTimeoutError, UpstreamFormatError: If the
                request fails and no unfiltered response has been cached
        """
        if not isinstance(limit, int) or limit <= 0:
            raise ValueError("limit must be a positive integer")

        cache_key = build_cache_key(district, state, financial_year, limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug(f"Returning cached data for {cache_key}")
            return cached

        try:
            self.logger.info(
                f"Fetching records: district={district or ALL_SENTINEL}, "
                f"state={state or ALL_SENTINEL}, year={financial_year or ALL_SENTINEL}, limit={limit}"
            )
            data = self._request(self._build_params(district, state, financial_year, limit))
        except MGNREGAError as e:
            self.logger.error(f"Error fetching MGNREGA data: {e}")
            fallback = self.cache.peek(FALLBACK_CACHE_KEY)
            if fallback is not None:
                self.logger.warning("Returning cached fallback data")
                return fallback
            raise

        self.logger.info(f"Successfully fetched {len(data['records'])} records")
        self.cache.put(cache_key, data)
        return data

    def fetch_multiple_districts(
        self,
        district_names: List[str],
        limit_per_district: int = DEFAULT_LIMIT_PER_DISTRICT
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Fetch records for several districts concurrently.

        Each district is fetched independently: a failure is logged and that
        district maps to an empty list, without affecting the others.

        Returns:
            Mapping of every requested district name to its records
        """
        results: Dict[str, List[Dict[str, Any]]] = {name: [] for name in district_names}
        if not district_names:
            return results

        def fetch_one(name: str) -> List[Dict[str, Any]]:
            records = self.fetch_records(district=name, limit=limit_per_district)['records']
            return records_for_district(records, name)

        workers = min(MAX_BATCH_WORKERS, len(district_names))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {name: executor.submit(fetch_one, name) for name in results}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as e:
                    self.logger.error(f"Failed to fetch data for district: {name}: {e}")
                    results[name] = []

        return results

    def get_available_states(self) -> List[str]:
        """State names in the unfiltered dataset, sorted."""
        return unique_states(self.fetch_records()['records'])

    def get_districts_by_state(self, state_name: str) -> List[str]:
        """District names reported for a state, sorted."""
        if not isinstance(state_name, str) or not state_name.strip():
            raise ValueError("state_name must be a non-empty string")
        return districts_in_state(self.fetch_records(state=state_name.strip())['records'])

    def get_available_financial_years(self) -> List[str]:
        """Financial years in the unfiltered dataset, most recent first."""
        return financial_years(self.fetch_records()['records'])

    def list_districts(self, state_name: Optional[str] = None) -> List[District]:
        """Distinct districts, in order of first appearance, optionally for one state."""
        return extract_districts(self.fetch_records(state=state_name)['records'])

    def get_latest_district_data(self, district_name: str) -> Optional[Dict[str, Any]]:
        """Most recent record for a district, or None if it has no records."""
        if not isinstance(district_name, str) or not district_name.strip():
            raise ValueError("district_name must be a non-empty string")
        name = district_name.strip()
        return get_latest_record(records_for_district(self.fetch_records(district=name)['records'], name))

    def clear_cache(self) -> None:
        """Clear all cached responses."""
        self.cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Number of cached responses and their keys."""
        return self.cache.stats()

    def check_api_health(self) -> Dict[str, Any]:
        """
        Probe the API with an uncached single-record request.

        Returns:
            Dictionary with 'healthy' (bool), 'response_time_ms' (float) and,
            when unhealthy, 'error' (str). Never raises.
        """
        start = time.perf_counter()
        try:
            self._request(self._build_params(None, None, None, 1))
        except MGNREGAError as e:
            return {
                "healthy": False,
                "response_time_ms": (time.perf_counter() - start) * 1000,
                "error": str(e),
            }
        return {
            "healthy": True,
            "response_time_ms": (time.perf_counter() - start) * 1000,
        }
