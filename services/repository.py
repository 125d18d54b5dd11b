"""
Swing session storage.

SessionRepository is the interface the analysis core reads baselines
from. InMemorySessionRepository keeps everything in process (tests and
local development); SupabaseSessionRepository persists sessions and
per-sport baselines in Supabase tables.
"""

import logging
from typing import Dict, List, Optional

from services.models import Sport, SwingSession
from services.storage import BASELINES_TABLE, SESSIONS_TABLE, get_client

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when the session store cannot be read or written."""


class SessionRepository:
    """
    Interface for swing session storage.

    At most one ideal baseline exists per sport; saving a new one replaces
    the previous baseline.
    """

    def get_ideal_baseline(self, sport: Sport) -> Optional[SwingSession]:
        raise NotImplementedError

    def save_as_ideal_baseline(self, session: SwingSession, sport: Sport) -> None:
        raise NotImplementedError

    def get_swing_sessions(self, sport: Sport) -> List[SwingSession]:
        """All sessions for a sport, newest first."""
        raise NotImplementedError

    def get_recent_swings(self, sport: Sport, limit: int = 10) -> List[SwingSession]:
        return self.get_swing_sessions(sport)[:limit]

    def save_session(self, session: SwingSession) -> None:
        raise NotImplementedError


class InMemorySessionRepository(SessionRepository):
    """Process-local repository backed by dictionaries."""

    def __init__(self):
        self._sessions: Dict[str, SwingSession] = {}
        self._baselines: Dict[Sport, SwingSession] = {}

    def get_ideal_baseline(self, sport: Sport) -> Optional[SwingSession]:
        return self._baselines.get(sport)

    def save_as_ideal_baseline(self, session: SwingSession, sport: Sport) -> None:
        self._baselines[sport] = session
        self._sessions.setdefault(session.id, session)

    def get_swing_sessions(self, sport: Sport) -> List[SwingSession]:
        sessions = [s for s in self._sessions.values() if s.sport == sport]
        return sorted(sessions, key=lambda s: s.recorded_at, reverse=True)

    def save_session(self, session: SwingSession) -> None:
        self._sessions[session.id] = session


class SupabaseSessionRepository(SessionRepository):
    """
    Supabase-backed repository.

    Sessions live in the swing_sessions table as (id, sport, recorded_at,
    payload) rows, where payload is SwingSession.to_dict(). The
    ideal_baselines table maps each sport to one session id.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    def get_ideal_baseline(self, sport: Sport) -> Optional[SwingSession]:
        try:
            response = (
                self.client.table(BASELINES_TABLE)
                .select("session_id")
                .eq("sport", sport.value)
                .execute()
            )
            if not response.data:
                return None

            session_id = response.data[0]["session_id"]
            response = (
                self.client.table(SESSIONS_TABLE)
                .select("*")
                .eq("id", session_id)
                .execute()
            )
        except Exception as e:
            raise RepositoryError(f"Failed to load {sport.value} baseline: {e}") from e

        if not response.data:
            logger.warning("Baseline session %s for %s no longer exists", session_id, sport.value)
            return None
        return self._from_row(response.data[0])

    def save_as_ideal_baseline(self, session: SwingSession, sport: Sport) -> None:
        self.save_session(session)
        try:
            self.client.table(BASELINES_TABLE).upsert(
                {"sport": sport.value, "session_id": session.id}
            ).execute()
        except Exception as e:
            raise RepositoryError(f"Failed to save {sport.value} baseline: {e}") from e

        logger.info("Saved session %s as %s baseline", session.id, sport.value)

    def get_swing_sessions(self, sport: Sport) -> List[SwingSession]:
        return self._query_sessions(sport)

    def get_recent_swings(self, sport: Sport, limit: int = 10) -> List[SwingSession]:
        return self._query_sessions(sport, limit=limit)

    def save_session(self, session: SwingSession) -> None:
        try:
            self.client.table(SESSIONS_TABLE).upsert(self._to_row(session)).execute()
        except Exception as e:
            raise RepositoryError(f"Failed to save session {session.id}: {e}") from e

    def _query_sessions(self, sport: Sport, limit: Optional[int] = None) -> List[SwingSession]:
        try:
            query = (
                self.client.table(SESSIONS_TABLE)
                .select("*")
                .eq("sport", sport.value)
                .order("recorded_at", desc=True)
            )
            if limit is not None:
                query = query.limit(limit)
            response = query.execute()
        except Exception as e:
            raise RepositoryError(f"Failed to load {sport.value} sessions: {e}") from e

        return [self._from_row(row) for row in response.data or []]

    @staticmethod
    def _to_row(session: SwingSession) -> dict:
        return {
            "id": session.id,
            "sport": session.sport.value,
            "recorded_at": session.recorded_at.isoformat(),
            "payload": session.to_dict(),
        }

    @staticmethod
    def _from_row(row: dict) -> SwingSession:
        try:
            return SwingSession.from_dict(row["payload"])
        except (KeyError, TypeError, ValueError) as e:
            raise RepositoryError(f"Malformed session row {row.get('id')}: {e}") from e
