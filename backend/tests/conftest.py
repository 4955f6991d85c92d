import os
import sys
import pytest

# Ensure the backend root (containing the `promptparty` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from promptparty import create_app, db
from promptparty.services.chain import GameStatus
from promptparty.services.games.rounds import GameRules, RoundEngine


GAME_ADDRESS = '0x' + '11' * 20
PLAYERS = ['0x' + c * 40 for c in 'abcd']


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MATCH_STORE = 'sql'
    GAME_ADDRESS = GAME_ADDRESS
    API_KEY = None


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


class FakeRoster:
    def __init__(self):
        self.statuses = {}
        self.rosters = {}

    def start(self, game_id, players):
        self.statuses[game_id] = GameStatus.STARTED
        self.rosters[game_id] = list(players)

    def get_status(self, game_id):
        return self.statuses.get(game_id, GameStatus.NONE)

    def get_players(self, game_id):
        return list(self.rosters.get(game_id, []))


class FakeCatalog:
    def __init__(self, prompts, answers):
        self.ids = {'prompt': list(prompts), 'answer': list(answers)}
        self.calls = 0

    def load_active_ids(self, kind):
        self.calls += 1
        return list(self.ids[kind])


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rules():
    return GameRules()


@pytest.fixture()
def engine(rules, clock):
    return RoundEngine(rules, clock=clock)


@pytest.fixture()
def players():
    return list(PLAYERS)


@pytest.fixture()
def roster():
    return FakeRoster()


@pytest.fixture()
def catalog():
    return FakeCatalog(prompts=range(1, 21), answers=range(100, 160))


@pytest.fixture()
def flask_app(clock, roster, catalog):
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import promptparty.models  # noqa: F401
        db.create_all()
        application.extensions['roster'] = roster
        application.extensions['catalog'] = catalog
        application.extensions['round_engine'] = RoundEngine(GameRules.from_config(application.config), clock=clock)
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['match_store']
