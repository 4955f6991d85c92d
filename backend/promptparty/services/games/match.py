"""Match record: the single per-game document kept in the match store.

Each phase carries only the timestamp that matters to it, so a record in
``judge`` has a ``judge_deadline`` and nothing else. On the wire the variant
is flattened to ``phase`` plus one deadline key.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

SCHEMA_VERSION = 3

PRESTART = 'prestart'
SUBMIT = 'submit'
JUDGE = 'judge'
SUMMARY = 'summary'
ENDED = 'ended'


class MatchSchemaError(ValueError):
    """Stored record does not match the schema this server understands."""


@dataclass(frozen=True)
class Prestart:
    until: int
    name = PRESTART
    deadline_key = 'prestart_until'


@dataclass(frozen=True)
class Submitting:
    deadline: int
    name = SUBMIT
    deadline_key = 'submit_deadline'


@dataclass(frozen=True)
class Judging:
    deadline: int
    name = JUDGE
    deadline_key = 'judge_deadline'


@dataclass(frozen=True)
class Summary:
    until: int
    name = SUMMARY
    deadline_key = 'summary_until'


@dataclass(frozen=True)
class Ended:
    name = ENDED
    deadline_key = None


PhaseState = Union[Prestart, Submitting, Judging, Summary, Ended]

_DEADLINE_KEYS = ('prestart_until', 'submit_deadline', 'judge_deadline', 'summary_until')


def phase_deadline(state: PhaseState) -> Optional[int]:
    if isinstance(state, (Prestart, Summary)):
        return state.until
    if isinstance(state, (Submitting, Judging)):
        return state.deadline
    return None


def phase_from_dict(data: dict) -> PhaseState:
    name = data.get('phase')
    if name == PRESTART:
        return Prestart(until=int(data.get('prestart_until') or 0))
    if name == SUBMIT:
        return Submitting(deadline=int(data.get('submit_deadline') or 0))
    if name == JUDGE:
        return Judging(deadline=int(data.get('judge_deadline') or 0))
    if name == SUMMARY:
        return Summary(until=int(data.get('summary_until') or 0))
    if name == ENDED:
        return Ended()
    raise MatchSchemaError(f'unknown phase {name!r}')


def normalize_player(player) -> str:
    return str(player or '').strip().lower()


@dataclass
class RoundResult:
    round: int
    winner: Optional[str]
    winning_answer_id: Optional[int]
    completed_at: int

    def to_dict(self):
        return {
            'round': self.round,
            'winner': self.winner,
            'winning_answer_id': self.winning_answer_id,
            'completed_at': self.completed_at,
        }

    @classmethod
    def from_dict(cls, data):
        if not data:
            return None
        return cls(
            round=int(data['round']),
            winner=data.get('winner'),
            winning_answer_id=data.get('winning_answer_id'),
            completed_at=int(data.get('completed_at') or 0),
        )


@dataclass
class Match:
    seed: str
    players: List[str]
    rounds_total: int
    state: PhaseState
    round: int = 1
    judge: Optional[str] = None
    prompt_order: List[int] = field(default_factory=list)
    prompt_id: Optional[int] = None
    answers_deck: List[int] = field(default_factory=list)
    draw_ptr: int = 0
    hands: Dict[str, List[int]] = field(default_factory=dict)
    seen_answers: Dict[str, List[int]] = field(default_factory=dict)
    submissions: Dict[str, int] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    last: Optional[RoundResult] = None
    started_at: int = 0
    version: int = SCHEMA_VERSION

    @property
    def phase(self) -> str:
        return self.state.name

    @property
    def is_shell(self) -> bool:
        """True for a placeholder record created before the deck was built."""
        return not self.answers_deck

    def judge_for(self, round_no: int) -> Optional[str]:
        if not self.players:
            return None
        return self.players[(round_no - 1) % len(self.players)]

    def prompt_for(self, round_no: int) -> Optional[int]:
        if not self.prompt_order:
            return None
        return self.prompt_order[(round_no - 1) % len(self.prompt_order)]

    def missing_submitters(self) -> List[str]:
        return [p for p in self.players if p != self.judge and p not in self.submissions]

    def ensure_scores(self) -> None:
        for p in self.players:
            self.scores.setdefault(p, 0)

    def _deadlines(self):
        out = {k: None for k in _DEADLINE_KEYS}
        if self.state.deadline_key:
            out[self.state.deadline_key] = phase_deadline(self.state)
        return out

    def to_dict(self):
        data = {
            'version': self.version,
            'seed': self.seed,
            'players': list(self.players),
            'round': self.round,
            'rounds_total': self.rounds_total,
            'judge': self.judge,
            'prompt_order': list(self.prompt_order),
            'prompt_id': self.prompt_id,
            'phase': self.phase,
            'answers_deck': list(self.answers_deck),
            'draw_ptr': self.draw_ptr,
            'hands': {p: list(h) for p, h in self.hands.items()},
            'seen_answers': {p: list(s) for p, s in self.seen_answers.items()},
            'submissions': dict(self.submissions),
            'scores': dict(self.scores),
            'last': self.last.to_dict() if self.last else None,
            'started_at': self.started_at,
        }
        data.update(self._deadlines())
        return data

    def public_view(self):
        """Projection safe to show every player: no hands, deck, or order."""
        data = {
            'version': self.version,
            'seed': self.seed,
            'players': list(self.players),
            'round': self.round,
            'rounds_total': self.rounds_total,
            'judge': self.judge,
            'prompt_id': self.prompt_id,
            'phase': self.phase,
            'submissions': dict(self.submissions),
            'scores': dict(self.scores),
            'last': self.last.to_dict() if self.last else None,
        }
        data.update(self._deadlines())
        return data

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise MatchSchemaError('match record must be an object')
        version = data.get('version')
        if version != SCHEMA_VERSION:
            raise MatchSchemaError(f'unsupported match version {version!r}, expected {SCHEMA_VERSION}')
        try:
            return cls(
                version=version,
                seed=str(data['seed']),
                players=[normalize_player(p) for p in data.get('players') or []],
                round=int(data.get('round') or 1),
                rounds_total=int(data['rounds_total']),
                judge=data.get('judge'),
                prompt_order=[int(x) for x in data.get('prompt_order') or []],
                prompt_id=data.get('prompt_id'),
                state=phase_from_dict(data),
                answers_deck=[int(x) for x in data.get('answers_deck') or []],
                draw_ptr=int(data.get('draw_ptr') or 0),
                hands={p: [int(c) for c in h] for p, h in (data.get('hands') or {}).items()},
                seen_answers={p: [int(c) for c in s] for p, s in (data.get('seen_answers') or {}).items()},
                submissions={p: int(c) for p, c in (data.get('submissions') or {}).items()},
                scores={p: int(s) for p, s in (data.get('scores') or {}).items()},
                last=RoundResult.from_dict(data.get('last')),
                started_at=int(data.get('started_at') or 0),
            )
        except MatchSchemaError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise MatchSchemaError(f'malformed match record: {exc}') from exc
