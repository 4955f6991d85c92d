"""Round state machine.

Every transition is a function of the stored record and the current time,
so any request may drive the match forward and two requests racing on the
same stale record compute the same result.

    prestart -> submit -> judge -> summary -> submit (next round) | ended
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .match import (
    Ended, Judging, Match, Prestart, RoundResult, Submitting, Summary,
    JUDGE, SUBMIT, normalize_player,
)
from .rng import derive_rng, pick

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class RuleViolation(Exception):
    """A player action that the current match state does not allow."""
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class WrongPhase(RuleViolation):
    status_code = 400


class NotAllowed(RuleViolation):
    status_code = 403


class AlreadySubmitted(RuleViolation):
    status_code = 409


class InvalidMove(RuleViolation):
    status_code = 400


@dataclass(frozen=True)
class GameRules:
    prestart_secs: int = 10
    submit_secs: int = 45
    judge_secs: int = 30
    summary_secs: int = 6
    rounds_total: int = 10
    hand_size: int = 7

    @classmethod
    def from_config(cls, config):
        return cls(
            prestart_secs=int(config.get('ROUND_PRESTART_SECS', 10)),
            submit_secs=int(config.get('ROUND_SUBMIT_SECS', 45)),
            judge_secs=int(config.get('ROUND_JUDGE_SECS', 30)),
            summary_secs=int(config.get('ROUND_SUMMARY_SECS', 6)),
            rounds_total=int(config.get('ROUNDS_TOTAL', 10)),
            hand_size=int(config.get('HAND_SIZE', 7)),
        )

    def timer_config(self):
        return {
            'prestart': self.prestart_secs,
            'submit': self.submit_secs,
            'judge': self.judge_secs,
            'summary': self.summary_secs,
        }


class RoundEngine:
    """Applies the game rules to a ``Match`` in place."""

    def __init__(self, rules: GameRules, clock: Callable[[], int] = now_ms):
        self.rules = rules
        self.clock = clock

    # ---- phase entry helpers ----

    def prestart_state(self) -> Prestart:
        return Prestart(until=self.clock() + self.rules.prestart_secs * 1000)

    def _enter_submit(self, match: Match, now: int) -> None:
        match.submissions = {}
        match.state = Submitting(deadline=now + self.rules.submit_secs * 1000)

    def _enter_judge(self, match: Match, now: int) -> None:
        match.state = Judging(deadline=now + self.rules.judge_secs * 1000)

    def _enter_summary(self, match: Match, now: int) -> None:
        match.state = Summary(until=now + self.rules.summary_secs * 1000)

    # ---- tick ----

    def tick(self, match: Match) -> Tuple[Match, bool]:
        """Advance ``match`` by at most one transition. Returns ``(match, changed)``."""
        now = self.clock()
        state = match.state

        if isinstance(state, Prestart):
            if now >= state.until:
                self._enter_submit(match, now)
                logger.info(f"[tick] round={match.round} prestart->submit")
                return match, True
            return match, False

        if isinstance(state, Submitting):
            missing = match.missing_submitters()
            expired = now >= state.deadline
            if missing and not expired:
                return match, False
            if missing:
                self._auto_submit(match, missing)
            self._enter_judge(match, now)
            logger.info(f"[tick] round={match.round} submit->judge auto_submitted={len(missing)}")
            return match, True

        if isinstance(state, Judging):
            if now < state.deadline:
                return match, False
            entries = list(match.submissions.items())
            if entries:
                rand = derive_rng(match.seed, match.round, 'auto-judge')
                winner, _ = entries[pick(rand, len(entries))]
                logger.info(f"[tick] round={match.round} judge timed out, auto-pick winner={winner}")
                self.apply_round_win(match, winner)
            else:
                match.last = RoundResult(round=match.round, winner=None, winning_answer_id=None, completed_at=now)
                self._enter_summary(match, now)
                logger.info(f"[tick] round={match.round} judge->summary no submissions")
            return match, True

        if isinstance(state, Summary):
            if now >= state.until:
                self.begin_next_or_end(match)
                return match, True
            return match, False

        return match, False

    def _auto_submit(self, match: Match, missing) -> None:
        for player in missing:
            hand = match.hands.get(player) or []
            if not hand:
                continue
            rand = derive_rng(match.seed, match.round, player, 'auto')
            match.submissions[player] = hand[pick(rand, len(hand))]

    # ---- round resolution ----

    def apply_round_win(self, match: Match, winner: str) -> None:
        now = self.clock()
        match.scores[winner] = match.scores.get(winner, 0) + 1
        match.last = RoundResult(
            round=match.round,
            winner=winner,
            winning_answer_id=match.submissions.get(winner),
            completed_at=now,
        )
        self.after_round_draw_up(match)
        self._enter_summary(match, now)

    def begin_next_or_end(self, match: Match) -> None:
        if match.round >= match.rounds_total:
            match.state = Ended()
            logger.info(f"[tick] round={match.round} summary->ended")
            return
        match.round += 1
        match.judge = match.judge_for(match.round)
        match.prompt_id = match.prompt_for(match.round)
        self._enter_submit(match, self.clock())
        logger.info(f"[tick] summary->submit round={match.round} judge={match.judge}")

    # ---- cards ----

    def draw_one(self, match: Match, player: str) -> int:
        """Next card from the deck the player has not seen yet.

        When the whole deck has been scanned without finding one, the next
        card is returned regardless so play never blocks.
        """
        deck = match.answers_deck
        seen = set(match.seen_answers.get(player) or [])
        for _ in range(len(deck)):
            card = deck[match.draw_ptr % len(deck)]
            match.draw_ptr += 1
            if card not in seen:
                return card
        card = deck[match.draw_ptr % len(deck)]
        match.draw_ptr += 1
        logger.warning(f"[deck-exhausted] player={player} repeating card={card}")
        return card

    def deal_initial_hands(self, match: Match) -> None:
        match.hands = {}
        match.seen_answers = {}
        for player in match.players:
            match.hands[player] = []
            match.seen_answers[player] = []
            for _ in range(self.rules.hand_size):
                card = self.draw_one(match, player)
                match.hands[player].append(card)
                match.seen_answers[player].append(card)

    def after_round_draw_up(self, match: Match) -> None:
        for player in match.players:
            if player == match.judge:
                continue
            used = match.submissions.get(player)
            if used is None:
                continue
            hand = match.hands.setdefault(player, [])
            if used in hand:
                hand.remove(used)
            card = self.draw_one(match, player)
            hand.append(card)
            match.seen_answers.setdefault(player, []).append(card)

    # ---- player actions ----

    def _ensure_phase(self, match: Match, phase: str) -> None:
        if match.phase != phase:
            raise WrongPhase(f'phase={match.phase}')

    def submit(self, match: Match, player: str, answer_id) -> None:
        self._ensure_phase(match, SUBMIT)
        if player == match.judge:
            raise NotAllowed('judge cannot submit')
        try:
            answer_id = int(answer_id or 0)
        except (TypeError, ValueError):
            answer_id = 0
        if not answer_id:
            raise InvalidMove('no answerId')
        if player in match.submissions:
            raise AlreadySubmitted('already submitted')
        if answer_id not in (match.hands.get(player) or []):
            raise InvalidMove('answer not in hand')
        match.submissions[player] = answer_id
        if not match.missing_submitters():
            self._enter_judge(match, self.clock())

    def judge_pick(self, match: Match, player: str, winner: Optional[str]) -> None:
        self._ensure_phase(match, JUDGE)
        if player != match.judge:
            raise NotAllowed('only judge')
        winner = normalize_player(winner)
        if winner not in match.players:
            raise InvalidMove('bad winner')
        if winner not in match.submissions:
            raise InvalidMove('winner has no submission')
        self.apply_round_win(match, winner)
