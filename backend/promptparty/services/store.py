"""Match store backends.

A match is read and written as one JSON document. There is no field-level
locking: concurrent writers race and the last write wins. The SQL backend
also counts writes per key in ``revision`` for auditing.
"""

import json
import time
from typing import Optional

import redis

from promptparty import db
from promptparty.models import MatchRecord
from promptparty.services.games.match import Match


def match_key(contract_address: str, game_id: int) -> str:
    return f"cah:{contract_address}:{game_id}:state"


class RedisMatchStore:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_url(cls, url: str):
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[Match]:
        raw = self.client.get(key)
        if raw is None:
            return None
        return Match.from_dict(json.loads(raw))

    def set(self, key: str, match: Match, ttl: int) -> None:
        self.client.set(key, json.dumps(match.to_dict()), ex=ttl)

    def refresh_ttl(self, key: str, ttl: int) -> None:
        self.client.expire(key, ttl)


class SqlMatchStore:
    def get(self, key: str) -> Optional[Match]:
        record = self._live(key)
        if not record:
            return None
        return Match.from_dict(json.loads(record.payload))

    def set(self, key: str, match: Match, ttl: int) -> int:
        record = db.session.get(MatchRecord, key)
        if record and record.expires_at <= time.time():
            db.session.delete(record)
            db.session.flush()
            record = None
        if not record:
            record = MatchRecord(key=key, revision=0)
        record.payload = json.dumps(match.to_dict())
        record.revision = (record.revision or 0) + 1
        record.expires_at = time.time() + ttl
        try:
            db.session.add(record)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return record.revision

    def refresh_ttl(self, key: str, ttl: int) -> None:
        record = self._live(key)
        if not record:
            return
        record.expires_at = time.time() + ttl
        db.session.add(record)
        db.session.commit()

    def purge_expired(self) -> int:
        removed = MatchRecord.query.filter(MatchRecord.expires_at <= time.time()).delete()
        db.session.commit()
        return removed

    def _live(self, key: str) -> Optional[MatchRecord]:
        record = db.session.get(MatchRecord, key)
        if record and record.expires_at <= time.time():
            return None
        return record


def init_store(app) -> None:
    backend = (app.config.get('MATCH_STORE') or 'sql').lower()
    if backend == 'redis':
        url = app.config.get('REDIS_URL')
        if not url:
            raise RuntimeError('MATCH_STORE=redis requires REDIS_URL')
        app.extensions['match_store'] = RedisMatchStore.from_url(url)
    elif backend == 'sql':
        app.extensions['match_store'] = SqlMatchStore()
    else:
        raise RuntimeError(f'unknown MATCH_STORE {backend!r}')
    app.logger.info(f"[store] backend={backend}")
