import re

import aiohttp
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer
from aioresponses import aioresponses

from graph_workloads import config
from graph_workloads.api.app import app_factory
from graph_workloads.core.client import ResourceClient

GRAPH_ENDPOINT = "https://graph.example.com/v1.0"
TOKEN = "eyJ0eXAiOiJKV1QiLCJhbGciOiJSUzI1NiJ9.test-token"
EVENT_ID = "AAMkAGI2TG93AAA="
EVENTS_URL = f"{GRAPH_ENDPOINT}/me/events"


def page_pattern(path: str, skiptoken: str) -> re.Pattern:
    """Match a continuation request on `path` carrying the given skiptoken."""
    return re.compile(rf"^{re.escape(GRAPH_ENDPOINT + path)}\?.*skiptoken={skiptoken}$")


def next_link(path: str, skiptoken: str) -> str:
    return f"{GRAPH_ENDPOINT}{path}?$skiptoken={skiptoken}"


def sent_requests(rmock) -> list[tuple[str, object, object]]:
    """Flatten aioresponses' record into (method, url, call) tuples."""
    return [
        (method, url, call)
        for (method, url), calls in rmock.requests.items()
        for call in calls
    ]


@pytest.fixture(autouse=True)
def setup():
    config.override(GRAPH_ENDPOINT=GRAPH_ENDPOINT, NEXT_LINK_KEY="@odata.nextLink")


@pytest.fixture
def rmock():
    # passthrough for local requests (aiohttp TestServer)
    with aioresponses(passthrough=["http://127.0.0.1"]) as m:
        yield m


@pytest_asyncio.fixture
async def client():
    async with aiohttp.ClientSession() as session:
        yield ResourceClient(TOKEN, session=session)


@pytest_asyncio.fixture
async def fake_client():
    app = await app_factory()
    async with TestClient(TestServer(app)) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOKEN}"}
