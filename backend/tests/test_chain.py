from promptparty.services.chain import (
    ANSWER, PROMPT, CardCatalog, CatalogPage, GameRoster, GameStatus,
)


class PagedCatalog(CardCatalog):
    """Catalog over an in-memory list of (id, active) pairs."""

    def __init__(self, cards, **kwargs):
        super().__init__(contract=None, **kwargs)
        self.cards = cards
        self.requests = []

    def count(self, kind):
        return len(self.cards)

    def page(self, kind, start_id, max_items, only_active=True):
        self.requests.append((kind, start_id, max_items))
        chunk = [c for c in self.cards if start_id <= c[0] < start_id + max_items]
        return CatalogPage([c[0] for c in chunk], [''] * len(chunk), [0] * len(chunk), [c[1] for c in chunk])


class Call:
    def __init__(self, value):
        self.value = value

    def call(self):
        return self.value


class FakeFunctions:
    def __init__(self, status, players):
        self.status = status
        self.players = players

    def getGameStatus(self, game_id):
        return Call(self.status)

    def getPlayers(self, game_id):
        return Call(self.players)


class FakeContract:
    def __init__(self, status, players):
        self.functions = FakeFunctions(status, players)


def test_load_active_ids_walks_every_page():
    catalog = PagedCatalog([(i, True) for i in range(1, 451)], page_size=200)
    ids = catalog.load_active_ids(PROMPT)
    assert ids == list(range(1, 451))
    assert [r[1] for r in catalog.requests] == [1, 201, 401]


def test_load_active_ids_skips_inactive_cards():
    cards = [(i, i % 3 != 0) for i in range(1, 31)]
    catalog = PagedCatalog(cards, page_size=7)
    ids = catalog.load_active_ids(ANSWER)
    assert ids == [i for i in range(1, 31) if i % 3 != 0]


def test_load_active_ids_stops_at_cap():
    catalog = PagedCatalog([(i, True) for i in range(1, 1001)], page_size=100, max_ids=250)
    ids = catalog.load_active_ids(ANSWER)
    assert ids == list(range(1, 251))
    assert len(catalog.requests) == 3


def test_load_active_ids_empty_catalog():
    catalog = PagedCatalog([])
    assert catalog.load_active_ids(PROMPT) == []
    assert catalog.requests == []


def test_roster_lowercases_players():
    roster = GameRoster(FakeContract(2, ['0x' + 'AB' * 20]))
    assert roster.get_status(1) == GameStatus.STARTED
    assert roster.get_players(1) == ['0x' + 'ab' * 20]


def test_roster_unknown_status_reads_as_none():
    roster = GameRoster(FakeContract(9, []))
    assert roster.get_status(1) == GameStatus.NONE
