import logging
from typing import List, Optional

from promptparty.services.chain import ANSWER, PROMPT, CatalogEmpty, GameStatus
from promptparty.services.store import match_key
from .deck import match_seed, new_match, shell_match
from .match import Match, normalize_player
from .rounds import InvalidMove, NotAllowed, RoundEngine, RuleViolation

logger = logging.getLogger(__name__)

ACTIONS = ('submit', 'judge_pick', 'nudge')


class GameNotActive(RuleViolation):
    status_code = 409


class NotAPlayer(NotAllowed):
    pass


class MatchCoordinator:
    """Load, tick, mutate and persist one match per request."""

    def __init__(self, roster, catalog, store, engine: RoundEngine, contract_address: str,
                 ttl: int = 60 * 60 * 24, log=None):
        self.roster = roster
        self.catalog = catalog
        self.store = store
        self.engine = engine
        self.contract_address = contract_address
        self.ttl = ttl
        self.log = log or logger

    def key(self, game_id: int) -> str:
        return match_key(self.contract_address, game_id)

    # ---- observe ----

    def observe(self, game_id: int, me: Optional[str] = None) -> dict:
        status = self.roster.get_status(game_id)
        players = self.roster.get_players(game_id)
        key = self.key(game_id)

        match = self.store.get(key)
        if (match is None or match.is_shell) and status == GameStatus.STARTED and players:
            match = self.initialize(game_id, players)

        if match is not None:
            self.sync_roster(match, players)
            _, changed = self.engine.tick(match)
            if changed:
                self.store.set(key, match, self.ttl)
            else:
                self.store.refresh_ttl(key, self.ttl)

        view = {
            'ok': True,
            'status': int(status),
            'players': players,
            'state': match.public_view() if match is not None else None,
            'address': self.contract_address,
            'server_time': self.engine.clock(),
            'timer_config': self.engine.rules.timer_config(),
        }
        me = normalize_player(me)
        if me and match is not None and me in match.hands:
            view['hand'] = list(match.hands[me])
        return view

    def initialize(self, game_id: int, players: List[str]) -> Match:
        prompt_ids = self.catalog.load_active_ids(PROMPT)
        answer_ids = self.catalog.load_active_ids(ANSWER)
        if not prompt_ids or not answer_ids:
            raise CatalogEmpty('no active prompts/answers in Cards')
        seed = match_seed(self.contract_address, game_id)
        match = new_match(self.engine, seed, players, prompt_ids, answer_ids)
        self.store.set(self.key(game_id), match, self.ttl)
        self.log.info(
            f"[match-init] game={game_id} players={len(players)} prompts={len(prompt_ids)} "
            f"answers={len(answer_ids)} deck={len(match.answers_deck)}"
        )
        return match

    def sync_roster(self, match: Match, players: List[str]) -> None:
        """Adopt the roster's player list and zero-fill scores for newcomers."""
        if players and players != match.players:
            self.log.info(f"[roster-sync] players {len(match.players)} -> {len(players)}")
            match.players = list(players)
        match.ensure_scores()

    # ---- act ----

    def act(self, game_id: int, sender: str, action: str, payload: Optional[dict] = None) -> Match:
        sender = normalize_player(sender)
        payload = payload or {}

        status = self.roster.get_status(game_id)
        if status != GameStatus.STARTED:
            raise GameNotActive('game not active')
        players = self.roster.get_players(game_id)
        if sender not in players:
            raise NotAPlayer('not a player')
        if action not in ACTIONS:
            raise InvalidMove('bad action')

        key = self.key(game_id)
        match = self.store.get(key)
        if match is None:
            self.log.warning(f"[act-shell] game={game_id} no match record yet, creating shell")
            match = shell_match(self.engine, match_seed(self.contract_address, game_id), players)
        else:
            self.sync_roster(match, players)

        self.engine.tick(match)
        if action == 'submit':
            answer_id = payload.get('answerId', payload.get('answer_id'))
            self.engine.submit(match, sender, answer_id)
        elif action == 'judge_pick':
            self.engine.judge_pick(match, sender, payload.get('winner'))
        self.engine.tick(match)

        self.store.set(key, match, self.ttl)
        self.log.info(f"[act] game={game_id} player={sender} action={action} phase={match.phase} round={match.round}")
        return match


def coordinator_for(app) -> MatchCoordinator:
    ext = app.extensions
    return MatchCoordinator(
        roster=ext['roster'],
        catalog=ext.get('catalog'),
        store=ext['match_store'],
        engine=ext['round_engine'],
        contract_address=app.config['GAME_ADDRESS'],
        ttl=int(app.config.get('MATCH_TTL_SEC', 60 * 60 * 24)),
        log=app.logger,
    )
