"""
Tests for the registry client
"""

import pytest
import requests

from bwc.core.errors import RegistryError
from bwc.core.registry import RegistryClient


class StubResponse:
    def __init__(self, payload=None, text="", status=200):
        self.payload = payload
        self.text = text
        self.status_code = status

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class StubSession:
    """Answers GETs from a url -> response map and counts requests"""

    def __init__(self, responses):
        self.responses = responses
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.responses:
            raise requests.ConnectionError(f"cannot reach {url}")
        return self.responses[url]


URL = "https://registry.test/registry.json"


def test_fetch_is_cached(registry_data):
    """Test that the registry is downloaded once per client"""
    session = StubSession({URL: StubResponse(registry_data)})
    client = RegistryClient(URL, session=session)

    assert client.find_subagent("python-pro").tools == ["Read", "Write"]
    assert client.find_command("commit").prefix == "/"
    assert client.find_mcp_server("redis").sources.docker == "mcp/redis"
    assert client.find_mcp_server("nope") is None
    assert session.requested == [URL]


def test_search(registry_data):
    """Test matching on names, descriptions, tags and categories"""
    client = RegistryClient(URL, session=StubSession({URL: StubResponse(registry_data)}))

    assert [s.name for s in client.search_subagents("PYTHON")] == ["python-pro"]
    assert [c.name for c in client.search_commands("commit message")] == ["commit"]
    assert [m.name for m in client.search_mcp_servers("databases")] == ["redis", "postgres"]
    assert client.search_mcp_servers("postgresql")[0].name == "postgres"


def test_network_error():
    client = RegistryClient(URL, session=StubSession({}))

    with pytest.raises(RegistryError, match="Failed to fetch registry"):
        client.fetch_registry()


def test_http_error():
    client = RegistryClient(URL, session=StubSession({URL: StubResponse({}, status=503)}))

    with pytest.raises(RegistryError, match="503"):
        client.fetch_registry()


def test_invalid_documents():
    """Test that malformed registry documents raise RegistryError"""
    client = RegistryClient(URL, session=StubSession({URL: StubResponse(text="<html>")}))
    with pytest.raises(RegistryError, match="Failed to parse registry"):
        client.fetch_registry()

    client = RegistryClient(URL, session=StubSession({URL: StubResponse({"subagents": [{"category": "x"}]})}))
    with pytest.raises(RegistryError, match="unexpected format"):
        client.fetch_registry()


def test_fetch_file_content():
    """Test downloading item markdown"""
    base = "https://content.test/"
    session = StubSession({base + "subagents/python-pro.md": StubResponse(text="# Python Pro\n")})
    client = RegistryClient(URL, session=session, content_base_url=base)

    assert client.fetch_file_content("/subagents/python-pro.md") == "# Python Pro\n"

    with pytest.raises(RegistryError):
        client.fetch_file_content("commands/missing.md")
