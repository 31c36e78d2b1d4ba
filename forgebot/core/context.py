from dataclasses import dataclass

from fastapi import Depends, Request

from forgebot.config.settings import Settings
from forgebot.infra.database import Database
from forgebot.infra.github import GithubClient


@dataclass(frozen=True)
class Context:
    """
    Process-wide state shared by request handlers and scheduled jobs.

    Built once at startup and never mutated afterwards.
    """

    settings: Settings
    username: str
    database: Database
    github: GithubClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "Context":
        """Build the context and the clients it owns."""
        return cls(
            settings=settings,
            username=settings.bot_username,
            database=Database(settings),
            github=GithubClient.from_settings(settings),
        )

    async def close(self) -> None:
        """Release network and database resources."""
        await self.github.close()
        await self.database.close()


def get_context(request: Request) -> Context:
    """Dependency injection for the context built by the application lifespan."""
    return request.app.state.context


# Convenience type alias for dependency injection
ContextDep = Depends(get_context)
