"""Tests for the stored repository state and its endpoints."""

from datetime import UTC, datetime, timedelta

import pytest

from forgebot.repos.service import RepoStore, merged_pr_number, parse_commit


def github_commit(sha: str, when: datetime, message: str = "Tidy", parent: str = "p0"):
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "committer": {"date": when.strftime("%Y-%m-%dT%H:%M:%SZ")},
        },
        "parents": [{"sha": parent}],
    }


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Auto merge of #98765 - octo:branch, r=ferris", 98765),
        ("Merge pull request #12 from octo/feature", 12),
        ("Fix #12 in the parser", None),
        ("Revert \"Auto merge of #5\"", None),
    ],
)
def test_merged_pr_number(message, expected):
    assert merged_pr_number(message) == expected


def test_parse_commit_without_parents():
    """Test that a root commit has no parent sha."""
    data = github_commit("c0", datetime(2026, 6, 1, tzinfo=UTC))
    data["parents"] = []

    parsed = parse_commit(data)

    assert parsed["parent_sha"] is None
    assert parsed["committed_at"] == datetime(2026, 6, 1, tzinfo=UTC)


def test_parse_commit_rejects_malformed_objects():
    with pytest.raises(ValueError, match="Malformed commit object"):
        parse_commit({"sha": "c0"})


async def test_record_commits_skips_known_ones(database):
    """Test that recording the same commits again creates nothing."""
    store = RepoStore()
    now = datetime.now(UTC)
    commits = [github_commit("a2", now, parent="a1"), github_commit("a1", now)]

    async with database.SessionLocal() as session:
        assert await store.record_commits(session, "octo/forge", "master", commits) == 2
        assert await store.record_commits(session, "octo/forge", "master", commits) == 0
        # Same sha in another repository is a different commit
        assert await store.record_commits(session, "octo/fork", "master", commits[:1]) == 1


async def test_bors_commit_list(async_client, database):
    """Test that recent commits are listed newest first with their PR numbers."""
    now = datetime.now(UTC).replace(microsecond=0)
    commits = [
        github_commit("new", now - timedelta(hours=1), "Auto merge of #77 - a:b", "mid"),
        github_commit("mid", now - timedelta(days=3), parent="old"),
        github_commit("old", now - timedelta(days=200)),
    ]
    async with database.SessionLocal() as session:
        await RepoStore().record_commits(session, "octo/forge", "master", commits)

    response = await async_client.get("/bors-commit-list")

    assert response.status_code == 200
    data = response.json()
    assert [commit["sha"] for commit in data] == ["new", "mid"]
    assert data[0]["parent_sha"] == "mid"
    assert data[0]["pr"] == 77
    assert data[1]["pr"] is None
    assert data[0]["repo"] == "octo/forge"
    assert data[0]["time"].startswith((now - timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M:%S"))


async def test_bors_commit_list_filters(async_client, database):
    now = datetime.now(UTC)
    async with database.SessionLocal() as session:
        await RepoStore().record_commits(
            session, "octo/forge", "master", [github_commit("f1", now - timedelta(days=2))]
        )
        await RepoStore().record_commits(
            session, "octo/docs", "main", [github_commit("d1", now - timedelta(hours=2))]
        )

    by_repo = await async_client.get("/bors-commit-list", params={"repo": "octo/docs"})
    by_days = await async_client.get("/bors-commit-list", params={"days": 1})

    assert [c["sha"] for c in by_repo.json()] == ["d1"]
    assert [c["sha"] for c in by_days.json()] == ["d1"]


async def test_docs_index(async_client, database):
    now = datetime(2026, 6, 1, 12, tzinfo=UTC)
    async with database.SessionLocal() as session:
        await RepoStore().record_branch_heads(
            session,
            {"octo/reference": ("master", "r1"), "octo/book": ("main", "b1")},
            now,
        )

    response = await async_client.get("/docs-index")

    assert response.status_code == 200
    assert [(h["repo"], h["branch"], h["sha"]) for h in response.json()] == [
        ("octo/book", "main", "b1"),
        ("octo/reference", "master", "r1"),
    ]
