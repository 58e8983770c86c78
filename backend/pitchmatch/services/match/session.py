import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import UnknownPlayer
from .store import PlayerStore, STATUS_OFFLINE, STATUS_PLAYING


@dataclass
class PlayerSession:
    """In-memory state for one live connection."""
    connection_id: str
    player_id: str
    name: str
    score: int = 0
    streak: int = 0
    current_frequency: float = 440.0
    is_matched: bool = False

    def to_public(self) -> Dict[str, Any]:
        return {
            'id': self.player_id,
            'name': self.name,
            'score': self.score,
            'streak': self.streak,
            'currentFrequency': self.current_frequency,
            'isMatched': self.is_matched,
        }


class SessionRegistry:
    """Who is connected right now, keyed by connection id.

    The player store stays the source of truth for durable scores; the two
    can disagree while a write is in flight.
    """

    def __init__(self, store: PlayerStore, default_frequency: float = 440.0,
                 single_session_per_player: bool = False, logger=None):
        self._store = store
        self._sessions: Dict[str, PlayerSession] = {}
        self.default_frequency = default_frequency
        self.single_session_per_player = single_session_per_player
        self._logger = logger or logging.getLogger(__name__)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id) -> bool:
        return connection_id in self._sessions

    def get(self, connection_id: str) -> Optional[PlayerSession]:
        return self._sessions.get(connection_id)

    def sessions(self) -> List[PlayerSession]:
        return list(self._sessions.values())

    def join(self, connection_id: str, player_id: str) -> PlayerSession:
        record = self._store.find_by_id(player_id)
        if record is None:
            raise UnknownPlayer(player_id)

        current = self._sessions.get(connection_id)
        if current is not None and current.player_id != record.id:
            # Switching players on one connection: flush the previous one
            self.leave(connection_id)

        score, streak = record.score, record.streak
        if self.single_session_per_player:
            # In-memory totals of the evicted session are newer than the store's
            for other_id, other in list(self._sessions.items()):
                if other.player_id == record.id and other_id != connection_id:
                    del self._sessions[other_id]
                    score, streak = other.score, other.streak
                    self._logger.info(f"[evict] sid={other_id} player={record.id} replaced_by={connection_id}")

        self._store.update_status(record.id, STATUS_PLAYING)
        session = PlayerSession(
            connection_id=connection_id,
            player_id=record.id,
            name=record.name,
            score=score,
            streak=streak,
            current_frequency=self.default_frequency,
            is_matched=False,
        )
        self._sessions[connection_id] = session
        self._logger.info(f"[join] sid={connection_id} player={record.id} name={record.name}")
        return session

    def leave(self, connection_id: str) -> Optional[PlayerSession]:
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return None
        self._store.update_score(session.player_id, session.score, session.streak, status=STATUS_OFFLINE)
        self._logger.info(f"[leave] sid={connection_id} player={session.player_id} score={session.score}")
        return session

    def update_frequency(self, connection_id: str, frequency: float) -> bool:
        # No bounds checking: sensor input is stored as reported
        session = self._sessions.get(connection_id)
        if session is None:
            return False
        session.current_frequency = frequency
        return True

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {sid: s.to_public() for sid, s in self._sessions.items()}
