import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from .errors import MalformedEvent, StaleEvent
from .rounds import RoundOutcome, RoundStateMachine
from .session import PlayerSession, SessionRegistry

GAME_STATE_EVENT = 'gameStateUpdate'


class BroadcastChannel(Protocol):
    def broadcast(self, event: str, payload: Dict[str, Any]) -> None: ...

    def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None: ...


class SessionCoordinator:
    """Entry point for inbound client events.

    Handler bodies run one at a time. Only round start and round settlement
    broadcast to everyone; frequency updates are never broadcast.
    """

    def __init__(self, registry: SessionRegistry, rounds: RoundStateMachine,
                 channel: BroadcastChannel, logger=None):
        self.registry = registry
        self.rounds = rounds
        self._channel = channel
        self._lock = threading.RLock()
        self._logger = logger or logging.getLogger(__name__)

    def game_state(self) -> Dict[str, Any]:
        with self._lock:
            state = self.rounds.state
            return {
                'phase': state.phase.value,
                'roundActive': state.active,
                'roundNumber': state.round_number,
                'targetFrequency': state.target_frequency,
                'tolerance': self.rounds.tolerance,
                'players': self.registry.snapshot(),
            }

    def on_connect(self, connection_id: str, player_id: str) -> PlayerSession:
        """Join and sync the new connection. Raises UnknownPlayer."""
        with self._lock:
            session = self.registry.join(connection_id, player_id)
            self._channel.send(connection_id, GAME_STATE_EVENT, self.game_state())
            return session

    def on_disconnect(self, connection_id: str) -> Optional[PlayerSession]:
        with self._lock:
            return self.registry.leave(connection_id)

    def _require_session(self, connection_id: str, event: str) -> None:
        if connection_id not in self.registry:
            raise StaleEvent(connection_id, event)

    def on_start_round(self, connection_id: str) -> Dict[str, Any]:
        """Raises StaleEvent for a connection without a session."""
        with self._lock:
            self._require_session(connection_id, 'startRound')
            self.rounds.start_round()
            payload = self.game_state()
            self._channel.broadcast(GAME_STATE_EVENT, payload)
            return payload

    def on_submit_round(self, connection_id: str) -> Dict[str, Any]:
        with self._lock:
            self._require_session(connection_id, 'submitRound')
            outcomes: Optional[List[RoundOutcome]] = self.rounds.settle_round()
            if outcomes is None:
                self._logger.debug("[submit] no active round; resending current state")
            payload = self.game_state()
            self._channel.broadcast(GAME_STATE_EVENT, payload)
            return payload

    def on_player_update(self, connection_id: str, frequency: Any) -> None:
        """Record a frequency reading. Raises MalformedEvent or StaleEvent."""
        if isinstance(frequency, bool) or not isinstance(frequency, (int, float)):
            raise MalformedEvent('playerUpdate', f"frequency must be a number, got {frequency!r}")
        with self._lock:
            if not self.registry.update_frequency(connection_id, float(frequency)):
                raise StaleEvent(connection_id, 'playerUpdate')
