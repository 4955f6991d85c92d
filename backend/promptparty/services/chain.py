"""Read and write access to the game and cards contracts.

These are thin wrappers over web3 contract calls. Request handlers reach
them through ``current_app.extensions`` so tests can install fakes.
"""

from enum import IntEnum
from typing import List, NamedTuple, Tuple

from eth_account import Account
from web3 import Web3

from .abi import CARDS_ABI, GAME_ABI

PROMPT = 'prompt'
ANSWER = 'answer'

SUBMITTER_ROLE = Web3.keccak(text='SUBMITTER_ROLE')
ZERO_HASH = b'\x00' * 32


class GameStatus(IntEnum):
    NONE = 0
    LOBBY = 1
    STARTED = 2
    FINISHED = 3
    CANCELLED = 4


class CatalogEmpty(Exception):
    """The card catalog has no active prompts or answers."""


class TransactionFailed(Exception):
    pass


class CatalogPage(NamedTuple):
    ids: List[int]
    texts: List[str]
    image_refs: List[int]
    actives: List[bool]


def make_web3(rpc_url: str) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url))


class GameRoster:
    """Authoritative player list and lifecycle status of a game."""

    def __init__(self, contract):
        self.contract = contract

    @classmethod
    def connect(cls, w3: Web3, address: str):
        return cls(w3.eth.contract(address=Web3.to_checksum_address(address), abi=GAME_ABI))

    def get_status(self, game_id: int) -> GameStatus:
        raw = int(self.contract.functions.getGameStatus(game_id).call())
        try:
            return GameStatus(raw)
        except ValueError:
            return GameStatus.NONE

    def get_players(self, game_id: int) -> List[str]:
        return [str(p).lower() for p in self.contract.functions.getPlayers(game_id).call()]


class CardCatalog:
    def __init__(self, contract, page_size: int = 200, max_ids: int = 4000):
        self.contract = contract
        self.page_size = page_size
        self.max_ids = max_ids

    @classmethod
    def connect(cls, w3: Web3, address: str, **kwargs):
        return cls(w3.eth.contract(address=Web3.to_checksum_address(address), abi=CARDS_ABI), **kwargs)

    def count(self, kind: str) -> int:
        fn = self.contract.functions.promptCount if kind == PROMPT else self.contract.functions.answerCount
        return int(fn().call())

    def page(self, kind: str, start_id: int, max_items: int, only_active: bool = True) -> CatalogPage:
        fn = self.contract.functions.pagePrompts if kind == PROMPT else self.contract.functions.pageAnswers
        ids, texts, image_refs, actives = fn(start_id, max_items, only_active).call()
        return CatalogPage([int(i) for i in ids], list(texts), [int(r) for r in image_refs], [bool(a) for a in actives])

    def load_active_ids(self, kind: str) -> List[int]:
        """Active ids in catalog order, stopping at ``max_ids``."""
        total = self.count(kind)
        ids: List[int] = []
        start = 1
        while start <= total and len(ids) < self.max_ids:
            page = self.page(kind, start, self.page_size, True)
            for card_id, active in zip(page.ids, page.actives):
                if active:
                    ids.append(card_id)
            start += self.page_size
        return ids[:self.max_ids]


class Ledger:
    """Relayer-signed access to the finalize and leaderboard calls."""

    def __init__(self, w3: Web3, address: str, relayer_pk: str):
        self.w3 = w3
        self.contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=GAME_ABI)
        self.account = Account.from_key(relayer_pk)

    @property
    def relayer(self) -> str:
        return self.account.address

    @property
    def address(self) -> str:
        return self.contract.address

    def chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

    def get_players(self, game_id: int) -> List[str]:
        return [Web3.to_checksum_address(p) for p in self.contract.functions.getPlayers(game_id).call()]

    def get_status(self, game_id: int) -> GameStatus:
        return GameStatus(int(self.contract.functions.getGameStatus(game_id).call()))

    def delegate_of(self, game_id: int, player: str) -> Tuple[str, int]:
        fns = self.contract.functions
        return fns.delegate(game_id, player).call(), int(fns.delegateExpiry(game_id, player).call())

    def finalize_nonce(self, game_id: int) -> int:
        return int(self.contract.functions.finalizeNonce(game_id).call())

    def has_submitter_role(self) -> bool:
        return bool(self.contract.functions.hasRole(SUBMITTER_ROLE, self.relayer).call())

    def finalize(self, game_id, players, scores, winners, round_count, nonce, deadline=0):
        payload = (game_id, players, scores, winners, round_count, nonce, deadline, ZERO_HASH)
        return self._send(self.contract.functions.finalizeByDelegate(payload))

    def push_scores(self, game_id, players, scores, request_id):
        return self._send(self.contract.functions.externalPushScores(game_id, players, scores, request_id))

    def _send(self, fn):
        tx = fn.build_transaction({
            'from': self.relayer,
            'nonce': self.w3.eth.get_transaction_count(self.relayer, 'pending'),
        })
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt['status'] != 1:
            raise TransactionFailed(f'transaction {Web3.to_hex(tx_hash)} reverted')
        return receipt


def init_chain(app) -> None:
    """Register chain collaborators on ``app.extensions`` when configured."""
    cfg = app.config
    rpc_url = cfg.get('RPC_URL')
    game_address = cfg.get('GAME_ADDRESS')
    if not (rpc_url and game_address):
        app.logger.warning("[chain] RPC_URL/GAME_ADDRESS not set; state endpoints will answer 500")
        return
    w3 = make_web3(rpc_url)
    app.extensions['roster'] = GameRoster.connect(w3, game_address)
    if cfg.get('CARDS_ADDRESS'):
        app.extensions['catalog'] = CardCatalog.connect(
            w3, cfg['CARDS_ADDRESS'],
            page_size=int(cfg.get('CATALOG_PAGE_SIZE', 200)),
            max_ids=int(cfg.get('CATALOG_MAX_IDS', 4000)),
        )
    if cfg.get('RELAYER_PK'):
        app.extensions['ledger'] = Ledger(w3, game_address, cfg['RELAYER_PK'])
