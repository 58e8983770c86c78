"""Player store access for the session engine.

Reads are synchronous. Writes are fire-and-forget: each one returns a
``concurrent.futures.Future`` the caller may ignore, and a failed write is
logged and rolled back without touching in-memory state.
"""

import logging
import queue
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Set

from flask import has_app_context

from pitchmatch import db, socketio
from pitchmatch.models import Player
from .errors import DurableWriteFailure

STATUS_OFFLINE = 'offline'
STATUS_PLAYING = 'playing'


@dataclass(frozen=True)
class PlayerRecord:
    id: str
    name: str
    score: int
    streak: int
    status: str


class PlayerStore(Protocol):
    def find_by_id(self, player_id: str) -> Optional[PlayerRecord]: ...

    def update_status(self, player_id: str, status: str) -> Future: ...

    def update_score(self, player_id: str, score: int, streak: int,
                     status: Optional[str] = None) -> Future: ...


class DurableWriter:
    """Runs store writes outside the event path and tracks their futures.

    Writes are applied one at a time, in submit order, by a single background
    worker draining a queue. With ``inline=True`` (TESTING) the write runs
    before ``submit`` returns, so the future is already resolved.
    """

    def __init__(self, app, inline: bool = False, logger=None):
        self._app = app
        self._inline = inline
        self._logger = logger or logging.getLogger(__name__)
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._queue: queue.Queue = queue.Queue()
        self._worker = None
        self._worker_lock = threading.Lock()

    def submit(self, player_id: str, operation: str, fn: Callable, *args) -> Future:
        future: Future = Future()
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        if self._inline:
            self._run(future, player_id, operation, fn, args)
        else:
            self._queue.put((future, player_id, operation, fn, args))
            self._ensure_worker()
        return future

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Block until every write submitted so far has finished."""
        with self._pending_lock:
            outstanding = set(self._pending)
        if not outstanding:
            return True
        _, not_done = wait(outstanding, timeout=timeout)
        return not not_done

    def _ensure_worker(self) -> None:
        with self._worker_lock:
            if self._worker is None:
                self._worker = socketio.start_background_task(self._work)

    def _work(self) -> None:
        while True:
            future, player_id, operation, fn, args = self._queue.get()
            self._run(future, player_id, operation, fn, args)

    def _forget(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _run(self, future: Future, player_id: str, operation: str, fn: Callable, args) -> None:
        future.set_running_or_notify_cancel()
        if has_app_context():
            self._apply(future, player_id, operation, fn, args)
            return
        with self._app.app_context():
            self._apply(future, player_id, operation, fn, args)

    def _apply(self, future: Future, player_id: str, operation: str, fn: Callable, args) -> None:
        try:
            fn(*args)
            db.session.commit()
        except Exception as exc:
            db.session.rollback()
            self._logger.warning(f"[store-write-failed] player={player_id} op={operation} error={exc}")
            future.set_exception(DurableWriteFailure(player_id, operation, exc))
            return
        self._logger.debug(f"[store-write] player={player_id} op={operation}")
        future.set_result(True)


class SqlPlayerStore:
    """PlayerStore backed by the ``player`` table."""

    def __init__(self, writer: DurableWriter):
        self._writer = writer

    def find_by_id(self, player_id: str) -> Optional[PlayerRecord]:
        player = db.session.get(Player, player_id)
        if player is None:
            return None
        return PlayerRecord(
            id=player.id,
            name=player.name,
            score=player.score or 0,
            streak=player.streak or 0,
            status=player.status,
        )

    def update_status(self, player_id: str, status: str) -> Future:
        return self._writer.submit(player_id, 'update_status', _apply_status, player_id, status)

    def update_score(self, player_id: str, score: int, streak: int,
                     status: Optional[str] = None) -> Future:
        return self._writer.submit(player_id, 'update_score', _apply_score, player_id, score, streak, status)


def _load(player_id: str) -> Player:
    player = db.session.get(Player, player_id)
    if player is None:
        raise LookupError(f"player {player_id!r} vanished from the store")
    return player


def _apply_status(player_id: str, status: str) -> None:
    player = _load(player_id)
    player.status = status
    db.session.add(player)


def _apply_score(player_id: str, score: int, streak: int, status: Optional[str]) -> None:
    player = _load(player_id)
    player.score = score
    player.streak = streak
    if status is not None:
        player.status = status
    db.session.add(player)
