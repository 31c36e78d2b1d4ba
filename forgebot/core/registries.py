from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from forgebot.core.context import Context
    from forgebot.infra.jobs.cron import JobDefinition
    from forgebot.webhooks.events import EventKind, WebhookEvent

# Base registry implementation
T = TypeVar("T")


class Registry(Generic[T]):
    """Generic registry for pluggable implementations."""

    def __init__(self, name: str):
        self.name = name
        self._implementations: dict[str, T] = {}
        self._frozen = False

    def _check_not_frozen(self, name: str) -> None:
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{name}' in {self.name.lower()} registry: "
                "registry is frozen"
            )

    def register(self, name: str, implementation: T) -> None:
        """Register an implementation with a given name."""
        self._check_not_frozen(name)
        self._implementations[name] = implementation

    def get(self, name: str) -> T:
        """Get an implementation by name."""
        if name not in self._implementations:
            raise KeyError(
                f"No {self.name.lower()} implementation registered with name: {name}"
            )
        return self._implementations[name]

    def list(self) -> list[str]:
        """List all registered implementation names."""
        return list(self._implementations.keys())

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if the registry is frozen."""
        return self._frozen


# Handler Registry - webhook event handlers
class EventHandler(Protocol):
    """Protocol for handlers reacting to one webhook event kind."""

    async def handle(self, ctx: "Context", event: "WebhookEvent") -> bool:
        """
        Handle a verified webhook event.

        Returns:
            True if the handler performed a side-effecting action,
            False if it looked at the event and chose to ignore it.
        """
        ...


class HandlerRegistry(Registry[list[EventHandler]]):
    """
    Registry of webhook handlers keyed by event kind.

    A kind may have any number of handlers; they run in registration order.
    """

    def __init__(self):
        super().__init__("Handler")

    def register(self, name: str, implementation: EventHandler) -> None:
        """Append a handler for the event kind ``name``."""
        self._check_not_frozen(name)
        self._implementations.setdefault(str(name), []).append(implementation)

    def handlers_for(self, kind: "EventKind | str") -> list[EventHandler]:
        """Handlers registered for ``kind``; empty when there are none."""
        return list(self._implementations.get(str(kind), []))


# Job Registry - scheduled background jobs
class Job(Protocol):
    """Protocol for jobs executed on a cron schedule."""

    def schedule(self) -> "JobDefinition":
        """Describe the job: its unique name, cron schedule and metadata."""
        ...

    async def run(
        self, ctx: "Context", name: str, metadata: dict[str, Any]
    ) -> None:
        """
        Execute one scheduled instance of the job.

        Args:
            ctx: Process-wide context (settings, database, API clients)
            name: Name of the queue entry being executed
            metadata: Copy of the definition's metadata stored at enqueue time
        """
        ...


class JobRegistry(Registry[Job]):
    """Registry for scheduled jobs, keyed by definition name."""

    def __init__(self):
        super().__init__("Job")
        self._definitions: dict[str, "JobDefinition"] = {}

    def register(self, name: str, implementation: Job) -> None:
        """Register a job; ``name`` must match the name its definition declares."""
        self._check_not_frozen(name)
        definition = implementation.schedule()
        if definition.name != name:
            raise ValueError(
                f"Job registered as '{name}' declares the name '{definition.name}'"
            )
        if name in self._implementations:
            raise ValueError(f"Duplicate job name: {name}")
        self._implementations[name] = implementation
        self._definitions[name] = definition

    def add(self, job: Job) -> "JobDefinition":
        """Register a job under the name its definition declares."""
        definition = job.schedule()
        self.register(definition.name, job)
        return self._definitions[definition.name]

    def definitions(self) -> list["JobDefinition"]:
        """All job definitions in registration order."""
        return list(self._definitions.values())


# Chat Registry - commands received from the chat platform
class ChatCommand(Protocol):
    """Protocol for commands sent to the bot from chat."""

    async def respond(self, ctx: "Context", sender: str, args: list[str]) -> str:
        """Return the reply content for the command."""
        ...


class ChatCommandRegistry(Registry[ChatCommand]):
    """Registry for chat commands (help, ...)."""

    def __init__(self):
        super().__init__("ChatCommand")


# Global registry instances (singletons)
handler_registry = HandlerRegistry()
job_registry = JobRegistry()
chat_command_registry = ChatCommandRegistry()
