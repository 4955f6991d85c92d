from promptparty import db


class MatchRecord(db.Model):
    __tablename__ = 'match_state'
    key = db.Column(db.String(128), primary_key=True)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded match
    revision = db.Column(db.Integer, nullable=False, default=0)
    expires_at = db.Column(db.Float, nullable=False, index=True)
