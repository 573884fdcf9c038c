"""Shared test fixtures."""

from pathlib import Path
from urllib.parse import parse_qsl

import httpx
import pytest

from ebiotic.http_client import EbioticClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    """Load a raw response fixture."""
    return (FIXTURES_DIR / name).read_text()


def form_of(request: httpx.Request) -> list[tuple[str, str]]:
    """Decode the form body of a recorded request, preserving order."""
    return parse_qsl(request.content.decode(), keep_blank_values=True)


class MockRemote:
    """
    Scripted remote services for httpx.MockTransport.

    Responses are queued per (method, host, path) and served in order; the
    last queued response repeats. Every request is recorded.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str, str], list[tuple[int, str]]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, text: str = "", status: int = 200) -> None:
        parsed = httpx.URL(url)
        key = (method, parsed.host, parsed.path)
        self.routes.setdefault(key, []).append((status, text))

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        parsed = httpx.URL(url)
        return [
            r for r in self.requests
            if r.method == method and r.url.host == parsed.host and r.url.path == parsed.path
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.host, request.url.path))
        if not queue:
            return httpx.Response(404, text="no route")
        status, text = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, text=text)

    def client(self) -> EbioticClient:
        return EbioticClient(client=httpx.AsyncClient(transport=httpx.MockTransport(self)))


@pytest.fixture
def remote():
    return MockRemote()


@pytest.fixture
def blast_json():
    """BLAST JSON2_S report with two hits."""
    return load_fixture("blast_response.json")


@pytest.fixture
def pim_text():
    """Clustal Omega percent identity matrix for four sequences."""
    return load_fixture("clustalo_pim.txt")


@pytest.fixture
def aln_text():
    return load_fixture("clustalo_aln.txt")


@pytest.fixture
def tree_text():
    return load_fixture("clustalo_tree.txt")
