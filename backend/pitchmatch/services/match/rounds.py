"""The shared round and its scoring pass.

Lifecycle: idle -> active (start_round) -> scoring -> idle (settle_round).
Both transitions are no-ops when called from the wrong phase, so duplicate
client requests are harmless.
"""

import enum
import logging
import random
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .session import SessionRegistry
from .store import PlayerStore


class RoundPhase(str, enum.Enum):
    IDLE = 'idle'
    ACTIVE = 'active'
    SCORING = 'scoring'


@dataclass
class RoundState:
    target_frequency: float = 440.0
    phase: RoundPhase = RoundPhase.IDLE
    round_number: int = 0

    @property
    def active(self) -> bool:
        return self.phase is RoundPhase.ACTIVE


@dataclass
class RoundOutcome:
    connection_id: str
    player_id: str
    matched: bool
    points: int
    score: int
    streak: int
    write: Optional[Future] = field(default=None, repr=False)


class RoundStateMachine:
    def __init__(self, registry: SessionRegistry, store: PlayerStore,
                 tolerance: float = 150.0, score_increment: int = 10,
                 band: Tuple[float, float] = (256.0, 2048.0),
                 rng: Optional[random.Random] = None, logger=None):
        low, high = band
        if low > high:
            raise ValueError(f"target band is inverted: {band}")
        self.registry = registry
        self.state = RoundState()
        self.tolerance = tolerance
        self.score_increment = score_increment
        self.band = (low, high)
        self._store = store
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)

    def is_match(self, frequency: float) -> bool:
        return abs(frequency - self.state.target_frequency) < self.tolerance

    def start_round(self) -> bool:
        """Open a new round. Returns False if one is already active."""
        if self.state.phase is not RoundPhase.IDLE:
            self._logger.debug(f"[round-start-skip] round={self.state.round_number} already {self.state.phase.value}")
            return False
        self.state.target_frequency = self._rng.uniform(*self.band)
        for session in self.registry.sessions():
            session.is_matched = False
        self.state.round_number += 1
        self.state.phase = RoundPhase.ACTIVE
        self._logger.info(
            f"[round-start] round={self.state.round_number} target={self.state.target_frequency:.1f}"
        )
        return True

    def settle_round(self) -> Optional[List[RoundOutcome]]:
        """Score every live session against the target and close the round.

        Returns None when no round is active. Store writes are issued, one
        per player, only after every session has been scored.
        """
        if self.state.phase is not RoundPhase.ACTIVE:
            self._logger.debug(f"[round-settle-skip] phase={self.state.phase.value}")
            return None
        self.state.phase = RoundPhase.SCORING

        outcomes: List[RoundOutcome] = []
        try:
            for session in self.registry.sessions():
                matched = self.is_match(session.current_frequency)
                session.is_matched = matched
                points = 0
                if matched:
                    session.streak += 1
                    points = self.score_increment + session.streak
                    session.score += points
                else:
                    session.streak = 0
                outcomes.append(RoundOutcome(
                    connection_id=session.connection_id,
                    player_id=session.player_id,
                    matched=matched,
                    points=points,
                    score=session.score,
                    streak=session.streak,
                ))

            for outcome in outcomes:
                outcome.write = self._store.update_score(outcome.player_id, outcome.score, outcome.streak)
        finally:
            # Always leave SCORING, even if issuing a write fails
            self.state.phase = RoundPhase.IDLE

        self._logger.info(
            f"[round-settle] round={self.state.round_number} target={self.state.target_frequency:.1f} "
            f"players={len(outcomes)} matched={sum(1 for o in outcomes if o.matched)}"
        )
        return outcomes
