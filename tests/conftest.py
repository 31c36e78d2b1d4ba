import json
import os
from collections.abc import AsyncGenerator, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

from forgebot.config.settings import Settings
from forgebot.core.context import Context
from forgebot.core.registries import HandlerRegistry, JobRegistry
from forgebot.infra.database import Database
from forgebot.infra.github import GithubClient
from forgebot.infra.jobs.models import QueueEntry
from forgebot.main import create_app
from forgebot.repos.models import BranchHead, SyncedCommit
from forgebot.webhooks.dispatcher import Dispatcher, get_dispatcher
from forgebot.webhooks.signature import sign

WEBHOOK_SECRET = "test-webhook-secret"
ZULIP_TOKEN = "test-zulip-token"

# Newest first, as GitHub lists them
GITHUB_COMMITS = [
    {
        "sha": "c2",
        "commit": {
            "message": "Auto merge of #1234 - octo:fix-scheduler, r=ferris\n\nFix scheduler",
            "committer": {"date": "2026-06-01T10:00:00Z"},
        },
        "parents": [{"sha": "c1"}, {"sha": "f9"}],
    },
    {
        "sha": "c1",
        "commit": {
            "message": "Fix typo in README",
            "committer": {"date": "2026-06-01T09:00:00Z"},
        },
        "parents": [{"sha": "c0"}],
    },
]


@pytest.fixture
def database_url(tmp_path) -> str:
    """PostgreSQL from DATABASE_URL when available, else a throwaway SQLite file."""
    url = os.getenv("DATABASE_URL")
    if url and "postgresql" in url:
        return url
    return f"sqlite+aiosqlite:///{tmp_path / 'forgebot.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        environment="test",
        debug=True,
        github_webhook_secret=WEBHOOK_SECRET,
        zulip_token=ZULIP_TOKEN,
        database_url=database_url,
        enable_scheduler=False,
        job_scheduling_cadence_s=1800,
        job_processing_cadence_s=60,
    )


@pytest.fixture
def github_requests() -> list[httpx.Request]:
    """Requests the mocked GitHub API received."""
    return []


@pytest.fixture
def github_client(github_requests) -> GithubClient:
    """GitHub client answering from canned data instead of the network."""

    def handler(request: httpx.Request) -> httpx.Response:
        github_requests.append(request)
        path = request.url.path
        if path.startswith("/repos/octo/missing/"):
            return httpx.Response(404, json={"message": "Not Found"})
        if path.startswith("/repos/") and "/branches/" in path:
            branch = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"commit": {"sha": f"sha-of-{branch}"}})
        if path.endswith("/commits"):
            return httpx.Response(200, json=GITHUB_COMMITS)
        return httpx.Response(404, json={"message": "Not Found"})

    return GithubClient(
        base_url="https://api.github.test", transport=httpx.MockTransport(handler)
    )


@pytest.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    """Database with the schema created; rows are removed after each test."""
    db = Database(settings)
    await db.create_tables()
    yield db
    async with db.SessionLocal() as session:
        for model in (QueueEntry, SyncedCommit, BranchHead):
            await session.execute(delete(model))
        await session.commit()
    await db.close()


@pytest.fixture
async def context(settings, database, github_client) -> AsyncGenerator[Context, None]:
    ctx = Context(
        settings=settings,
        username="forgebot",
        database=database,
        github=github_client,
    )
    yield ctx
    await github_client.close()


@pytest.fixture
def offline_context(settings, github_client) -> Context:
    """Context whose database is never connected to."""
    return Context(
        settings=settings,
        username="forgebot",
        database=Database(settings),
        github=github_client,
    )


@pytest.fixture
def handler_registry() -> HandlerRegistry:
    """Empty handler registry tests fill in themselves."""
    return HandlerRegistry()


@pytest.fixture
def job_registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def app(settings, offline_context, handler_registry):
    """Application wired to the test settings and handler registry."""
    app = create_app(settings, offline_context)
    app.dependency_overrides[get_dispatcher] = lambda: Dispatcher(handler_registry)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(settings, context) -> AsyncGenerator[AsyncClient, None]:
    """Async client sharing the test's event loop and database."""
    app = create_app(settings, context)
    # ASGITransport does not run the lifespan
    app.state.context = context
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def signed_headers():
    """Build headers for a correctly signed GitHub delivery."""

    def build(event: str, body: bytes, secret: str = WEBHOOK_SECRET) -> dict:
        return {
            "X-GitHub-Event": event,
            "X-Hub-Signature": sign(body, secret),
            "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
            "Content-Type": "application/json",
        }

    return build


@pytest.fixture
def issue_payload() -> bytes:
    return json.dumps(
        {
            "action": "opened",
            "issue": {"number": 42, "title": "Scheduler skips a run"},
            "repository": {"full_name": "octo/forge"},
        }
    ).encode()
