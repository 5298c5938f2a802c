"""Process-wide wiring: storage, session, the chosen goal repository and suggestion service.

Built by the app factory, started in the lifespan handler and closed on
shutdown. The repository is picked once, right after the remote database
initialization attempt, and is not re-evaluated while the process runs.
"""
import logging
import random

import httpx

from goaltracker.core.config import Settings
from goaltracker.db import Base, make_engine, make_session_factory
from goaltracker.models.local_entry import LocalEntry  # noqa: F401  (import ensures table is registered)
from goaltracker.persistence.local import LocalStore
from goaltracker.persistence.mode import PersistenceMode
from goaltracker.persistence.remote import RemoteDatabase
from goaltracker.repositories.base import GoalRepository
from goaltracker.repositories.local import LocalGoalRepository
from goaltracker.repositories.remote import RemoteGoalRepository
from goaltracker.services.goal_store import GoalStore
from goaltracker.services.prompt_client import PromptClient
from goaltracker.services.session import SessionManager
from goaltracker.services.suggestions import SuggestionService

logger = logging.getLogger(__name__)


class AppState:
    def __init__(
        self,
        settings: Settings,
        remote_transport: httpx.BaseTransport | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings
        self.engine = make_engine(settings.database_url)
        self.local = LocalStore(make_session_factory(self.engine), prefix=settings.storage_prefix)
        self.remote = RemoteDatabase.from_settings(settings, transport=remote_transport)
        self.session = SessionManager(self.remote, self.local, offline_demo_auth=settings.offline_demo_auth)
        self.prompts = PromptClient.from_settings(settings, transport=remote_transport)
        self.suggestions = SuggestionService(self.prompts, use_remote=settings.use_remote_suggestions, rng=rng)
        self.local_repository = LocalGoalRepository(self.local)
        self.repository: GoalRepository = self.local_repository
        self._store: GoalStore | None = None

    @property
    def mode(self) -> PersistenceMode:
        return self.repository.mode

    def startup(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        self.session.initialize()
        if self.session.mode is PersistenceMode.remote:
            self.repository = RemoteGoalRepository(self.remote, self.local_repository)
        else:
            self.repository = self.local_repository
        self.suggestions.initialize()
        logger.info("Goal tracker started in %s mode", self.mode.value)

    def goal_store(self) -> GoalStore | None:
        """Store for the logged-in user, loaded on first use; None without a session."""
        user = self.session.user
        if user is None:
            self._store = None
            return None
        if self._store is None or self._store.user_id != user["id"]:
            self._store = GoalStore(self.repository, user["id"])
            self._store.load_goals()
        return self._store

    def shutdown(self) -> None:
        self._store = None
        self.session.teardown()
        self.prompts.close()
        self.engine.dispose()
