"""Match session engine: live sessions, the shared round and scoring.

This package holds the game mechanics. Socket handlers and HTTP routes
import it, keeping transport concerns out of the round logic.
"""

from .coordinator import GAME_STATE_EVENT, BroadcastChannel, SessionCoordinator
from .errors import DurableWriteFailure, MalformedEvent, MatchError, StaleEvent, UnknownPlayer
from .rounds import RoundOutcome, RoundPhase, RoundState, RoundStateMachine
from .session import PlayerSession, SessionRegistry
from .store import (
    STATUS_OFFLINE,
    STATUS_PLAYING,
    DurableWriter,
    PlayerRecord,
    PlayerStore,
    SqlPlayerStore,
)


def init_match_engine(app, channel: BroadcastChannel) -> SessionCoordinator:
    """Build the engine from app config and attach it to ``app.extensions``."""
    cfg = app.config
    writer = DurableWriter(app, inline=bool(cfg.get('TESTING')), logger=app.logger)
    store = SqlPlayerStore(writer)
    registry = SessionRegistry(
        store,
        default_frequency=float(cfg.get('DEFAULT_FREQUENCY', 440.0)),
        single_session_per_player=bool(cfg.get('SINGLE_SESSION_PER_PLAYER', False)),
        logger=app.logger,
    )
    rounds = RoundStateMachine(
        registry,
        store,
        tolerance=float(cfg.get('FREQUENCY_TOLERANCE', 150.0)),
        score_increment=int(cfg.get('SCORE_INCREMENT', 10)),
        band=(float(cfg.get('TARGET_FREQUENCY_MIN', 256.0)), float(cfg.get('TARGET_FREQUENCY_MAX', 2048.0))),
        logger=app.logger,
    )
    coordinator = SessionCoordinator(registry, rounds, channel, logger=app.logger)
    app.extensions['pitchmatch'] = coordinator
    app.extensions['pitchmatch.writer'] = writer
    return coordinator


__all__ = [
    'GAME_STATE_EVENT',
    'STATUS_OFFLINE',
    'STATUS_PLAYING',
    'BroadcastChannel',
    'DurableWriteFailure',
    'DurableWriter',
    'MalformedEvent',
    'MatchError',
    'PlayerRecord',
    'PlayerSession',
    'PlayerStore',
    'RoundOutcome',
    'RoundPhase',
    'RoundState',
    'RoundStateMachine',
    'SessionCoordinator',
    'SessionRegistry',
    'SqlPlayerStore',
    'StaleEvent',
    'UnknownPlayer',
    'init_match_engine',
]
