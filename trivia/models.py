from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class GameState(str, Enum):
    WAITING = 'waiting'
    ACTIVE = 'active'
    FINISHED = 'finished'


@dataclass(frozen=True)
class Question:
    prompt: str
    options: Tuple[str, ...]
    answer: str

    @classmethod
    def from_dict(cls, data):
        """Build a question from a catalog record.

        Raises ValueError when the record is malformed or its answer is not
        exactly one of its options.
        """
        if not isinstance(data, dict):
            raise ValueError('question record must be an object')
        prompt = data.get('question')
        options = data.get('options')
        answer = data.get('answer')
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError('question text is required')
        if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
            raise ValueError('options must be a list of strings')
        if options.count(answer) != 1:
            raise ValueError(f'answer {answer!r} must match exactly one option')
        return cls(prompt=prompt, options=tuple(options), answer=answer)


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    streak: int = 0
    is_host: bool = False
    has_answered: bool = False

    def reset_for_game(self) -> None:
        self.score = 0
        self.streak = 0
        self.has_answered = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'streak': self.streak,
            'isHost': self.is_host,
            'hasAnswered': self.has_answered,
        }

    def score_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'streak': self.streak,
        }


@dataclass(frozen=True)
class AnswerRecord:
    answer: str
    is_correct: bool
    points_earned: int
    time_taken: float


@dataclass(frozen=True)
class GameSettings:
    """Per-lobby rules, read from the Flask config at app construction."""

    time_limit: int = 15
    reveal_duration: int = 4
    max_players: int = 4
    lobby_id_length: int = 6
    allow_late_join: bool = True
    keep_category_on_play_again: bool = False

    @classmethod
    def from_config(cls, config):
        return cls(
            time_limit=int(config.get('QUESTION_TIME_LIMIT_SEC', 15)),
            reveal_duration=int(config.get('REVEAL_DURATION_SEC', 4)),
            max_players=int(config.get('MAX_PLAYERS_PER_LOBBY', 4)),
            lobby_id_length=int(config.get('LOBBY_ID_LENGTH', 6)),
            allow_late_join=bool(config.get('ALLOW_LATE_JOIN', True)),
            keep_category_on_play_again=bool(config.get('KEEP_CATEGORY_ON_PLAY_AGAIN', False)),
        )


@dataclass
class LeaderboardEntry:
    name: str
    score: int
    original_id: str

    def to_dict(self):
        return {'name': self.name, 'score': self.score, 'originalId': self.original_id}


def build_leaderboard(players: List[Player]) -> List[LeaderboardEntry]:
    # sorted() is stable, so equal scores keep join order
    ranked = sorted(players, key=lambda p: -p.score)
    return [LeaderboardEntry(name=p.name, score=p.score, original_id=p.id) for p in ranked]


@dataclass
class AnswerLedger:
    """questionIndex -> playerId -> AnswerRecord, write-once per player."""

    entries: dict = field(default_factory=dict)

    def has(self, question_index: int, player_id: str) -> bool:
        return player_id in self.entries.get(question_index, {})

    def record(self, question_index: int, player_id: str, record: AnswerRecord) -> None:
        answers = self.entries.setdefault(question_index, {})
        if player_id in answers:
            raise KeyError(f'{player_id} already answered question {question_index}')
        answers[player_id] = record

    def get(self, question_index: int, player_id: str) -> Optional[AnswerRecord]:
        return self.entries.get(question_index, {}).get(player_id)

    def for_question(self, question_index: int) -> dict:
        return dict(self.entries.get(question_index, {}))

    def clear(self) -> None:
        self.entries.clear()
