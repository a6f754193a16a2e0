"""Process-local store of running mini-test sessions."""

from typing import List, Optional, Sequence, Tuple
import uuid

from aiocache import Cache
import structlog

from ortprep.adaptive.runner import AdaptiveTestRunner, RunnerStatus
from ortprep.core.config import settings
from ortprep.schemas.mini_tests import MiniTestQuestion

logger = structlog.get_logger()

FINISHED = {RunnerStatus.COMPLETE, RunnerStatus.NO_QUESTIONS}


class SessionStore:
    """Keeps runners in an in-memory cache; nothing survives a restart.

    Sessions expire after ``ttl`` seconds without access, or ``finished_ttl``
    once the runner has finished. Each user keeps at most
    ``max_per_user`` sessions; creating one more evicts the oldest.
    """

    def __init__(
        self,
        ttl: Optional[int] = None,
        finished_ttl: Optional[int] = None,
        max_per_user: Optional[int] = None
    ):
        self._cache = Cache(Cache.MEMORY)
        self.ttl = ttl or settings.MINI_TEST_SESSION_TTL_SECONDS
        self.finished_ttl = finished_ttl or settings.MINI_TEST_FINISHED_TTL_SECONDS
        self.max_per_user = max_per_user or settings.MINI_TEST_MAX_SESSIONS_PER_USER

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"session:{session_id}"

    @staticmethod
    def _user_key(user_id: str) -> str:
        return f"user:{user_id}"

    async def create(self, user_id: str, questions: Sequence[MiniTestQuestion]) -> Tuple[str, AdaptiveTestRunner]:
        session_id = str(uuid.uuid4())
        runner = AdaptiveTestRunner(questions)
        await self._cache.set(self._session_key(session_id), (user_id, runner), ttl=self._ttl_for(runner))

        session_ids: List[str] = await self._cache.get(self._user_key(user_id)) or []
        session_ids = [sid for sid in session_ids if await self._cache.exists(self._session_key(sid))]
        session_ids.append(session_id)
        while len(session_ids) > self.max_per_user:
            evicted = session_ids.pop(0)
            await self._cache.delete(self._session_key(evicted))
            logger.info("Mini-test session evicted", user_id=user_id, session_id=evicted)
        await self._cache.set(self._user_key(user_id), session_ids, ttl=self.ttl)

        return session_id, runner

    async def get(self, session_id: str, user_id: str) -> Optional[AdaptiveTestRunner]:
        """The user's runner; each access restarts its expiry."""
        key = self._session_key(session_id)
        entry = await self._cache.get(key)
        if entry is None or entry[0] != user_id:
            return None
        runner = entry[1]
        await self._cache.expire(key, self._ttl_for(runner))
        return runner

    async def touch(self, session_id: str, runner: AdaptiveTestRunner):
        """Re-apply the expiry after the runner's status changed."""
        await self._cache.expire(self._session_key(session_id), self._ttl_for(runner))

    async def discard(self, session_id: str, user_id: str) -> bool:
        if await self.get(session_id, user_id) is None:
            return False
        await self._cache.delete(self._session_key(session_id))
        return True

    def _ttl_for(self, runner: AdaptiveTestRunner) -> int:
        return self.finished_ttl if runner.status in FINISHED else self.ttl
