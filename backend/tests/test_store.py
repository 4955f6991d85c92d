import json
import time

import pytest

from promptparty import db
from promptparty.models import MatchRecord
from promptparty.services.games.deck import new_match
from promptparty.services.store import RedisMatchStore, SqlMatchStore, match_key

KEY = match_key('0x' + '11' * 20, 7)


@pytest.fixture()
def match(engine, players):
    return new_match(engine, '0xfeed', players, list(range(1, 11)), list(range(100, 160)))


class FakeRedisClient:
    def __init__(self):
        self.data = {}
        self.ttl = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttl[key] = ex

    def expire(self, key, ttl):
        if key in self.data:
            self.ttl[key] = ttl


def test_match_key_namespaces_contract_and_game():
    assert KEY == 'cah:0x' + '11' * 20 + ':7:state'
    assert match_key('0xabc', 1) != match_key('0xabd', 1)


def test_sql_store_round_trip(flask_app, match):
    store = SqlMatchStore()
    assert store.get(KEY) is None
    store.set(KEY, match, 60)
    loaded = store.get(KEY)
    assert loaded.to_dict() == match.to_dict()


def test_sql_store_revision_counts_writes(flask_app, match):
    store = SqlMatchStore()
    assert store.set(KEY, match, 60) == 1
    assert store.set(KEY, match, 60) == 2
    assert db.session.get(MatchRecord, KEY).revision == 2


def test_sql_store_last_write_wins(flask_app, engine, clock, match):
    store = SqlMatchStore()
    store.set(KEY, match, 60)
    first = store.get(KEY)
    second = store.get(KEY)
    clock.advance(engine.rules.prestart_secs)
    engine.tick(second)
    store.set(KEY, second, 60)
    store.set(KEY, first, 60)
    assert store.get(KEY).to_dict() == first.to_dict()
    assert db.session.get(MatchRecord, KEY).revision == 3


def test_sql_store_restarts_count_after_expiry(flask_app, match):
    store = SqlMatchStore()
    store.set(KEY, match, 60)
    store.set(KEY, match, 60)
    db.session.get(MatchRecord, KEY).expires_at = time.time() - 1
    db.session.commit()
    assert store.set(KEY, match, 60) == 1


def test_sql_store_expired_record_is_absent(flask_app, match):
    store = SqlMatchStore()
    store.set(KEY, match, 60)
    record = db.session.get(MatchRecord, KEY)
    record.expires_at = time.time() - 1
    db.session.commit()
    assert store.get(KEY) is None
    assert store.purge_expired() == 1
    assert db.session.get(MatchRecord, KEY) is None


def test_sql_store_refresh_extends_expiry(flask_app, match):
    store = SqlMatchStore()
    store.set(KEY, match, 5)
    before = db.session.get(MatchRecord, KEY).expires_at
    store.refresh_ttl(KEY, 3600)
    assert db.session.get(MatchRecord, KEY).expires_at > before + 3000
    store.refresh_ttl('cah:missing:1:state', 3600)


def test_redis_store_writes_json_with_ttl(match):
    client = FakeRedisClient()
    store = RedisMatchStore(client)
    store.set(KEY, match, 86400)
    assert client.ttl[KEY] == 86400
    assert json.loads(client.data[KEY])['seed'] == '0xfeed'
    assert store.get(KEY).to_dict() == match.to_dict()
    store.refresh_ttl(KEY, 10)
    assert client.ttl[KEY] == 10
    assert store.get('cah:none:1:state') is None
