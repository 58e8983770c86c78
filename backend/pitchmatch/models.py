import uuid
from datetime import datetime, timezone

from pitchmatch import db


def _new_player_id():
    return str(uuid.uuid4())


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(36), primary_key=True, default=_new_player_id)
    name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False, index=True)
    streak = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(16), default='offline', nullable=False)  # offline, playing
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'streak': self.streak,
            'status': self.status,
        }
