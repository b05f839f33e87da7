"""Client for the NOAA National Water Prediction Service reaches API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from rivr.clients.http_session import configure_session
from rivr.errors import NetworkTimeout, NetworkUnavailable, ParseError, ServerError
from rivr.utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="reach_client")

DEFAULT_BASE_URL = "https://api.water.noaa.gov/nwps/v1"
DEFAULT_USER_AGENT = "rivr/reach_client"
DEFAULT_TIMEOUT = 15  # seconds
DEFAULT_RETRIES = 0
DEFAULT_BACKOFF = 0.5  # seconds
DEFAULT_FORECAST_SERIES = "short_range"


@dataclass
class ReachApiClientConfig:
    """
    Configuration container for ReachApiClient.

    Attributes
    ----------
    base_url:
        Base URL for the NWPS API.
    user_agent:
        User-Agent header sent on every request.
    api_key:
        Optional key appended as ``key=`` for gateways that require one.
    timeout_seconds:
        Default HTTP timeout for requests.
    retries:
        Transport-level retries for 429/5xx. Zero by default; callers that
        want a retry do it themselves.
    retry_backoff_seconds:
        Backoff factor for the retry adapter.
    """

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    api_key: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_BACKOFF


class ReachApiClient:
    """
    Fetches raw reach metadata and streamflow forecasts.

    Every transport problem is raised as one of ``NetworkUnavailable``,
    ``NetworkTimeout``, ``ServerError`` or ``ParseError``.
    """

    def __init__(
        self,
        config: Optional[ReachApiClientConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config or ReachApiClientConfig()
        self._session = configure_session(
            session or requests.Session(),
            headers={
                "Accept": "application/json",
                "User-Agent": self._config.user_agent,
            },
            timeout_seconds=self._config.timeout_seconds,
            retries=self._config.retries,
            retry_backoff_seconds=self._config.retry_backoff_seconds,
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ReachApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def reach_url(self, reach_id: Any) -> str:
        return f"{self._config.base_url.rstrip('/')}/reaches/{reach_id}"

    def fetch_station(self, station_id: int) -> Dict[str, Any]:
        """Return the decoded ``/reaches/{id}`` object for a station."""
        url = self.reach_url(station_id)
        logger.info(f"Fetching reach data for station {station_id} from {url}")
        return self._get_json(url)

    def fetch_forecast(self, reach_id: Any, series: str = DEFAULT_FORECAST_SERIES) -> Dict[str, Any]:
        """Return the decoded streamflow forecast for one series of a reach."""
        url = f"{self.reach_url(reach_id)}/streamflow"
        logger.info(f"Fetching {series} forecast for reach {reach_id} from {url}")
        return self._get_json(url, params={"series": series})

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = dict(params or {})
        if self._config.api_key:
            params["key"] = self._config.api_key

        try:
            resp = self._session.get(url, params=params or None)
            resp.raise_for_status()
        except requests.exceptions.Timeout as exc:
            logger.warning(f"Timed out fetching {url}: {exc}")
            raise NetworkTimeout(self._config.timeout_seconds, original_error=exc) from exc
        except (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError) as exc:
            logger.warning(f"Connection to {url} dropped mid-response: {exc}")
            raise NetworkUnavailable(original_error=exc) from exc
        except requests.exceptions.ConnectionError as exc:
            logger.warning(f"Could not connect to {url}: {exc}")
            raise NetworkUnavailable(original_error=exc) from exc
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.error(f"Error fetching {url}: {exc}")
            raise ServerError(
                status_code=status,
                message=self._error_message(exc.response),
                original_error=exc,
            ) from exc
        except requests.exceptions.RequestException as exc:
            logger.error(f"Request to {url} failed: {exc}")
            raise ServerError(message=f"Request failed: {exc}", original_error=exc) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error(f"Response from {url} is not valid JSON: {exc}")
            raise ParseError(f"Failed to parse response: {exc}", original_error=exc) from exc

        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object from {url}, got {type(data).__name__}")
        return data

    @staticmethod
    def _error_message(response: Optional[requests.Response]) -> Optional[str]:
        """Pull a server-supplied message out of an error body, if there is one."""
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            return f"HTTP Error: {response.status_code}"
        if isinstance(body, dict):
            if isinstance(body.get("message"), str):
                return body["message"]
            err = body.get("error")
            if isinstance(err, str):
                return err
            if isinstance(err, dict) and isinstance(err.get("message"), str):
                return err["message"]
        return f"HTTP Error: {response.status_code}"


def make_reach_client_from_env(
    session: Optional[requests.Session] = None,
) -> ReachApiClient:
    """Convenient factory to construct a ReachApiClient using environment variables."""
    config = ReachApiClientConfig(
        base_url=os.getenv("RIVR_API_BASE_URL", DEFAULT_BASE_URL),
        user_agent=os.getenv("RIVR_API_USER_AGENT", DEFAULT_USER_AGENT),
        api_key=os.getenv("RIVR_API_KEY") or None,
        timeout_seconds=float(os.getenv("RIVR_API_TIMEOUT", DEFAULT_TIMEOUT)),
        retries=int(os.getenv("RIVR_API_RETRIES", DEFAULT_RETRIES)),
    )
    return ReachApiClient(config=config, session=session)


def main() -> None:
    """Manual test helper to print reach data for one station."""
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="reach_client")

    station_id = int(os.environ.get("RIVR_STATION_ID", "23021904"))
    with make_reach_client_from_env() as client:
        reach = client.fetch_station(station_id)
        logger.info(f"Reach: {reach!r}")

        forecast = client.fetch_forecast(station_id)
        logger.info(f"Forecast keys: {sorted(forecast)!r}")


if __name__ == "__main__":
    main()
