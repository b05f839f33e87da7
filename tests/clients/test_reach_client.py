import pytest
import requests

from rivr.clients import reach_client as rc
from rivr.errors import NetworkTimeout, NetworkUnavailable, ParseError, ServerError


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError(f"not json: {self._text}")
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Records requests and replays a canned response or exception."""

    def __init__(self, response=None, error=None):
        self.headers = {}
        self.mounted = {}
        self.requests = []
        self.response = response or FakeResponse(body={})
        self.error = error
        self.closed = False

    def mount(self, prefix, adapter):
        self.mounted[prefix] = adapter

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self):
        self.closed = True


def make_client(session, **config):
    return rc.ReachApiClient(config=rc.ReachApiClientConfig(**config), session=session)


def test_fetch_station_hits_reach_url_with_default_timeout():
    session = FakeSession(FakeResponse(body={"name": "Provo River", "reachId": "500"}))
    client = make_client(session, base_url="https://example.test/v1/", timeout_seconds=7)

    data = client.fetch_station(500)

    assert data["name"] == "Provo River"
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "https://example.test/v1/reaches/500")
    assert kwargs["timeout"] == 7
    assert session.headers["User-Agent"] == rc.DEFAULT_USER_AGENT


def test_fetch_forecast_passes_series_and_api_key():
    session = FakeSession(FakeResponse(body={"reach": {"id": "500"}}))
    client = make_client(session, api_key="secret")

    client.fetch_forecast(500, "medium_range")

    _, url, kwargs = session.requests[0]
    assert url.endswith("/reaches/500/streamflow")
    assert kwargs["params"] == {"series": "medium_range", "key": "secret"}


def test_timeout_maps_to_network_timeout():
    client = make_client(FakeSession(error=requests.exceptions.ReadTimeout("slow")), timeout_seconds=3)
    with pytest.raises(NetworkTimeout) as excinfo:
        client.fetch_station(1)
    assert excinfo.value.seconds == 3
    assert excinfo.value.is_connection_issue


def test_connection_error_maps_to_network_unavailable():
    client = make_client(FakeSession(error=requests.exceptions.ConnectionError("dns")))
    with pytest.raises(NetworkUnavailable):
        client.fetch_station(1)


@pytest.mark.parametrize(
    "error",
    [
        requests.exceptions.ChunkedEncodingError("connection broken"),
        requests.exceptions.ContentDecodingError("bad gzip"),
    ],
)
def test_interrupted_body_maps_to_network_unavailable(error):
    client = make_client(FakeSession(error=error))
    with pytest.raises(NetworkUnavailable) as excinfo:
        client.fetch_station(1)
    assert excinfo.value.original_error is error


def test_other_request_failures_map_to_server_error():
    error = requests.exceptions.TooManyRedirects("Exceeded 30 redirects.")
    client = make_client(FakeSession(error=error))
    with pytest.raises(ServerError) as excinfo:
        client.fetch_station(1)
    assert excinfo.value.status_code is None
    assert excinfo.value.original_error is error


def test_http_error_maps_to_server_error_with_body_message():
    session = FakeSession(FakeResponse(status_code=404, body={"message": "reach not found"}))
    with pytest.raises(ServerError) as excinfo:
        make_client(session).fetch_station(1)
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "reach not found"
    assert excinfo.value.code == "http_404"


def test_http_error_without_json_body_uses_status_message():
    session = FakeSession(FakeResponse(status_code=503, text="<html>down</html>"))
    with pytest.raises(ServerError) as excinfo:
        make_client(session).fetch_station(1)
    assert excinfo.value.message == "HTTP Error: 503"


def test_invalid_json_maps_to_parse_error():
    session = FakeSession(FakeResponse(text="not json"))
    with pytest.raises(ParseError):
        make_client(session).fetch_station(1)


def test_non_object_json_maps_to_parse_error():
    session = FakeSession(FakeResponse(body=["a", "b"]))
    with pytest.raises(ParseError):
        make_client(session).fetch_station(1)


def test_context_manager_closes_session():
    session = FakeSession()
    with make_client(session):
        pass
    assert session.closed


def test_make_reach_client_from_env(monkeypatch):
    monkeypatch.setenv("RIVR_API_BASE_URL", "https://mirror.test/nwps")
    monkeypatch.setenv("RIVR_API_TIMEOUT", "2.5")
    monkeypatch.setenv("RIVR_API_KEY", "abc")
    session = FakeSession(FakeResponse(body={}))

    client = rc.make_reach_client_from_env(session=session)
    client.fetch_station(9)

    _, url, kwargs = session.requests[0]
    assert url == "https://mirror.test/nwps/reaches/9"
    assert kwargs["timeout"] == 2.5
    assert kwargs["params"] == {"key": "abc"}
