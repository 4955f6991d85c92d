from typing import Dict, List, Tuple

from web3 import Web3

from .match import ENDED, Match


class ScoresPayloadError(ValueError):
    pass


def compute_winners(players: List[str], scores: List[int]) -> List[str]:
    """Every player tied for the top score."""
    top = max([0] + list(scores))
    return [p for p, s in zip(players, scores) if s == top]


def normalize_final_scores(players, scores) -> Tuple[List[str], List[int]]:
    """Accept ``players`` + ``scores`` arrays or a ``scores`` mapping.

    Addresses come back checksummed, scores as ints, in matching order.
    """
    if isinstance(scores, dict):
        if not players:
            players = list(scores.keys())
        lowered = {str(k).lower(): v for k, v in scores.items()}
        scores = [lowered.get(str(p).lower(), 0) for p in players]
    players = list(players) if isinstance(players, (list, tuple)) else []
    scores = list(scores) if isinstance(scores, (list, tuple)) else []
    try:
        players = [Web3.to_checksum_address(p) for p in players]
        scores = [int(s or 0) for s in scores]
    except (TypeError, ValueError) as exc:
        raise ScoresPayloadError(f'Bad payload: {exc}') from exc
    if not players or len(players) != len(scores):
        raise ScoresPayloadError('Bad payload: players/scores length mismatch')
    return players, scores


def final_scores(match: Match) -> Dict[str, int]:
    if match.phase != ENDED:
        raise ScoresPayloadError(f'match not ended (phase={match.phase})')
    return {p: match.scores.get(p, 0) for p in match.players}
