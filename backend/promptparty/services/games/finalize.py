"""Settle a finished match on the ledger.

Two independent transactions: ``finalizeByDelegate`` records the result on
the game contract, then ``externalPushScores`` forwards scores to the
leaderboard. A failed push after a successful finalize is a soft result
carrying ``warning`` so the caller can retry the push alone.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from eth_abi import encode
from web3 import Web3

from promptparty.services.chain import GameStatus
from .scoring import compute_winners

logger = logging.getLogger(__name__)


class FinalizeError(Exception):
    def __init__(self, reason: str, status_code: int = 400, **extra):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.extra = extra


@dataclass
class FinalizeResult:
    players: List[str]
    scores: List[int]
    winners: List[str]
    finalized: bool = False
    pushed: bool = False
    request_id: Optional[str] = None
    warning: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    def to_dict(self):
        data = {
            'ok': True,
            'finalized': self.finalized,
            'pushed': self.pushed,
            'players': self.players,
            'scores': self.scores,
            'winners': self.winners,
            'request_id': self.request_id,
        }
        if self.warning:
            data['warning'] = self.warning
        if self.notes:
            data['notes'] = self.notes
        return data


def describe_tx_error(exc: Exception) -> str:
    parts = [getattr(exc, 'message', None), getattr(exc, 'reason', None), str(exc)]
    msg = next((str(p) for p in parts if p), 'Transaction failed')
    low = msg.lower()
    if 'insufficient funds' in low:
        return 'Insufficient funds for fee/prize + gas'
    if 'execution reverted' in low and len(msg) <= len('execution reverted') + 2:
        return 'Execution reverted (check fee, prize, or parameters)'
    return msg


def make_request_id(chain_id: int, game_address: str, game_id: int, players: List[str], scores: List[int]) -> bytes:
    final_hash = Web3.keccak(encode(['address[]'], [players]) + encode(['uint32[]'], [scores]))
    return Web3.keccak(encode(
        ['uint256', 'address', 'uint256', 'bytes32'],
        [chain_id, game_address, game_id, final_hash],
    ))


class FinalizeOrchestrator:
    def __init__(self, ledger, log=None, clock=time.time):
        self.ledger = ledger
        self.log = log or logger
        self.clock = clock

    def run(self, game_id: int, req_players: List[str], req_scores: List[int], round_count: int = 10) -> FinalizeResult:
        ledger = self.ledger
        try:
            players = [Web3.to_checksum_address(p) for p in ledger.get_players(game_id)]
        except Exception as exc:
            raise FinalizeError('Could not read getPlayers', 500, detail=describe_tx_error(exc)) from exc
        if not players:
            raise FinalizeError('Game has no players on-chain?')

        # chain order is authoritative; unknown submitted players are ignored
        submitted = {Web3.to_checksum_address(p): int(s) for p, s in zip(req_players, req_scores)}
        scores = [submitted.get(p, 0) for p in players]
        winners = compute_winners(players, scores)
        result = FinalizeResult(players=players, scores=scores, winners=winners)

        missing = self._missing_delegates(game_id, players)
        if missing:
            raise FinalizeError('Missing delegate approvals for some players', 400,
                                missing_delegates=missing, relayer=ledger.relayer)

        try:
            nonce = ledger.finalize_nonce(game_id)
        except Exception:
            self.log.warning(f"[finalize] game={game_id} finalizeNonce unreadable, using 0")
            nonce = 0

        try:
            ledger.finalize(game_id, players, scores, winners, round_count, nonce)
            result.finalized = True
        except Exception as exc:
            if self._status(game_id) != GameStatus.FINISHED:
                raise FinalizeError('finalizeByDelegate failed', 500, reason=describe_tx_error(exc)) from exc
            result.notes.append('game already finished on-chain')
            self.log.info(f"[finalize] game={game_id} finalize reverted but game already finished; continuing to push")

        try:
            has_role = ledger.has_submitter_role()
        except Exception:
            has_role = None
        if has_role is False:
            raise FinalizeError('Relayer lacks SUBMITTER_ROLE on the game contract', 500, relayer=ledger.relayer)

        request_id = make_request_id(ledger.chain_id(), ledger.address, game_id, players, scores)
        result.request_id = Web3.to_hex(request_id)
        try:
            ledger.push_scores(game_id, players, scores, request_id)
            result.pushed = True
        except Exception as exc:
            result.warning = describe_tx_error(exc)
            self.log.warning(f"[finalize] game={game_id} score push failed: {result.warning}")

        self.log.info(f"[finalize] game={game_id} finalized={result.finalized} pushed={result.pushed} winners={len(winners)}")
        return result

    def _missing_delegates(self, game_id: int, players: List[str]):
        now = int(self.clock())
        relayer = self.ledger.relayer.lower()
        missing = []
        for p in players:
            try:
                delegate, expiry = self.ledger.delegate_of(game_id, p)
            except Exception:
                delegate, expiry = '0x' + '00' * 20, 0
            ok = str(delegate).lower() == relayer and (expiry == 0 or expiry >= now)
            if not ok:
                missing.append({'player': p, 'delegate': delegate, 'expiry': expiry})
        return missing

    def _status(self, game_id: int) -> GameStatus:
        try:
            return self.ledger.get_status(game_id)
        except Exception:
            return GameStatus.NONE
