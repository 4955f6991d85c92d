import math
from typing import List

from web3 import Web3

from .match import Match
from .rng import rng_from_hex, shuffled


def match_seed(contract_address: str, game_id: int) -> str:
    """keccak256 of ``"{contract}:{gameId}"``; fixed for the life of the match."""
    return Web3.to_hex(Web3.keccak(text=f"{contract_address}:{game_id}"))


def answers_needed(player_count: int, rounds_total: int, hand_size: int) -> int:
    return player_count * hand_size + rounds_total * max(0, player_count - 1)


def build_decks(seed: str, prompt_ids: List[int], answer_ids: List[int], needed: int):
    """Return ``(prompt_order, answers_deck)`` from one seeded stream.

    The answer pool is repeated in whole catalog copies until it covers
    ``needed`` draws, then shuffled.
    """
    rand = rng_from_hex(seed)
    prompt_order = shuffled(prompt_ids, rand)
    copies = max(1, math.ceil(needed / len(answer_ids)))
    answers_deck = shuffled(list(answer_ids) * copies, rand)
    return prompt_order, answers_deck


def new_match(engine, seed: str, players: List[str], prompt_ids: List[int], answer_ids: List[int]) -> Match:
    """Build a fresh match in ``prestart`` with hands dealt."""
    rules = engine.rules
    needed = answers_needed(len(players), rules.rounds_total, rules.hand_size)
    prompt_order, answers_deck = build_decks(seed, prompt_ids, answer_ids, needed)
    match = Match(
        seed=seed,
        players=list(players),
        rounds_total=rules.rounds_total,
        state=engine.prestart_state(),
        round=1,
        prompt_order=prompt_order,
        prompt_id=prompt_order[0],
        answers_deck=answers_deck,
        scores={p: 0 for p in players},
        started_at=engine.clock(),
    )
    match.judge = match.judge_for(1)
    engine.deal_initial_hands(match)
    return match


def shell_match(engine, seed: str, players: List[str]) -> Match:
    """Placeholder record with no deck, used when an action arrives before any observe."""
    match = Match(
        seed=seed,
        players=list(players),
        rounds_total=engine.rules.rounds_total,
        state=engine.prestart_state(),
        scores={p: 0 for p in players},
        started_at=engine.clock(),
    )
    match.judge = match.judge_for(1)
    return match
