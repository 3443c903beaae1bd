from scoreboard import db


class Snapshot(db.Model):
    """One serialized engine state per key ('match', 'tournament', ...)."""
    __tablename__ = 'snapshot'
    key = db.Column(db.String(64), primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.Float, nullable=True)

    def to_dict(self):
        return {
            'key': self.key,
            'updated_at': self.updated_at,
            'size': len(self.payload or ''),
        }
