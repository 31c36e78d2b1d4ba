import pytest

from forgebot.core.registries import (
    HandlerRegistry,
    JobRegistry,
    Registry,
    chat_command_registry,
    handler_registry,
    job_registry,
)
from forgebot.infra.jobs.cron import InvalidSchedule, JobDefinition
from forgebot.infra.jobs.registry_init import default_jobs, register_jobs
from forgebot.webhooks.events import EventKind


class MockHandler:
    async def handle(self, ctx, event):
        return True


class MockJob:
    def __init__(self, name: str = "mock_job", schedule: str = "0 */5 * * * *"):
        self.name = name
        self.expression = schedule

    def schedule(self) -> JobDefinition:
        return JobDefinition.create(self.name, self.expression, {"key": "value"})

    async def run(self, ctx, name, metadata):
        return None


def test_registry_basic_operations():
    """Test basic registry register, get, list operations."""
    registry = Registry[str]("Test")

    # Test empty registry
    assert registry.list() == []

    # Test register and get
    registry.register("test_impl", "test_value")
    assert registry.get("test_impl") == "test_value"
    assert registry.list() == ["test_impl"]

    # Test KeyError for missing implementation
    with pytest.raises(KeyError, match="No test implementation registered"):
        registry.get("nonexistent")


def test_frozen_registry_rejects_registration():
    """Test that a frozen registry refuses new implementations."""
    registry = Registry[str]("Test")
    registry.freeze()

    assert registry.is_frozen()
    with pytest.raises(RuntimeError, match="registry is frozen"):
        registry.register("late", "value")


def test_handler_registry_keeps_several_handlers_in_order():
    """Test that a kind can have many handlers, returned in registration order."""
    registry = HandlerRegistry()
    first, second = MockHandler(), MockHandler()

    registry.register(EventKind.ISSUES, first)
    registry.register(EventKind.ISSUES, second)

    assert registry.handlers_for(EventKind.ISSUES) == [first, second]
    assert registry.handlers_for("issues") == [first, second]
    assert registry.handlers_for(EventKind.PUSH) == []
    assert registry.list() == ["issues"]


def test_handler_registry_returns_copies():
    """Test that callers cannot mutate the registry through returned lists."""
    registry = HandlerRegistry()
    registry.register(EventKind.PUSH, MockHandler())

    registry.handlers_for(EventKind.PUSH).clear()

    assert len(registry.handlers_for(EventKind.PUSH)) == 1


def test_job_registry_add_and_definitions():
    """Test that jobs are keyed by the name their definition declares."""
    registry = JobRegistry()
    job = MockJob()

    definition = registry.add(job)

    assert definition.name == "mock_job"
    assert registry.get("mock_job") is job
    assert [d.name for d in registry.definitions()] == ["mock_job"]
    assert registry.definitions()[0].metadata == {"key": "value"}


def test_job_registry_rejects_duplicates():
    """Test that two jobs cannot share a name."""
    registry = JobRegistry()
    registry.add(MockJob())

    with pytest.raises(ValueError, match="Duplicate job name"):
        registry.add(MockJob())


def test_job_registry_rejects_name_mismatch():
    """Test that registering under another name than the definition's fails."""
    registry = JobRegistry()

    with pytest.raises(ValueError, match="declares the name"):
        registry.register("other_name", MockJob())


def test_job_with_broken_schedule_fails_registration():
    """Test that an unparseable schedule is fatal at registration time."""
    registry = JobRegistry()

    with pytest.raises(InvalidSchedule):
        registry.add(MockJob(schedule="every tuesday"))

    assert registry.list() == []


def test_default_jobs_defined():
    """Test that the default catalog builds, mostly for the schedule parsing."""
    registry = JobRegistry()
    register_jobs(registry)

    names = registry.list()
    assert names == [job.schedule().name for job in default_jobs()]
    assert "docs_update" in names
    assert "commits_sync" in names


def test_all_registries_are_singletons():
    """Test that all registries are properly instantiated as singletons."""
    for registry in [handler_registry, job_registry, chat_command_registry]:
        assert registry is not None
        assert callable(registry.register)
        assert callable(registry.get)
        assert callable(registry.list)
