"""Failure modes of the match session engine.

None of these reach clients. The socket layer logs them and leaves the
game state untouched.
"""


class MatchError(Exception):
    """Base class for session engine errors."""


class UnknownPlayer(MatchError):
    def __init__(self, player_id):
        super().__init__(f"player {player_id!r} does not exist")
        self.player_id = player_id


class StaleEvent(MatchError):
    """An event arrived for a connection that holds no live session."""

    def __init__(self, connection_id, event):
        super().__init__(f"{event} from {connection_id} has no live session")
        self.connection_id = connection_id
        self.event = event


class MalformedEvent(MatchError):
    def __init__(self, event, reason):
        super().__init__(f"{event}: {reason}")
        self.event = event
        self.reason = reason


class DurableWriteFailure(MatchError):
    """A player store write was rejected. Carried by the write's future."""

    def __init__(self, player_id, operation, cause):
        super().__init__(f"{operation} for player {player_id!r} failed: {cause}")
        self.player_id = player_id
        self.operation = operation
        self.cause = cause
