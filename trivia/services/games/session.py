import logging
import random
from typing import Callable, Iterable, List, Optional

from trivia.errors import (
    EmptyCategory,
    GameAlreadyActiveOrFinished,
    GameInProgress,
    GameNotActive,
    GamePaused,
    InvalidCategory,
    LobbyFull,
    NotHost,
    NotPausable,
    NotResumable,
    PlayerNotInLobby,
    StaleOrDuplicateAnswer,
)
from trivia.events import (
    AnswerResult,
    CategoryUpdatedByHost,
    Emission,
    GameOver,
    GamePausedEvent,
    GameResumed,
    GameStarted,
    HostChanged,
    JoinedLobby,
    LobbyResetForPlayAgain,
    NewQuestion,
    OutboundEvent,
    PlayerJoined,
    PlayerLeft,
    QuestionOver,
    TimerUpdate,
    UpdateScores,
)
from trivia.models import (
    AnswerLedger,
    AnswerRecord,
    GameSettings,
    GameState,
    Player,
    Question,
    build_leaderboard,
)
from .question_timer import QuestionTimer
from .scoring import ScoringPolicy, apply_points


logger = logging.getLogger(__name__)

Publish = Callable[[List[Emission]], None]


class LobbySession:
    """State machine for one lobby: roster, category, questions and timers.

    Operations triggered by a player return the emissions they produce.
    Timer-driven transitions (ticks, deadline, end of the reveal pause) have no
    caller to return to and hand their emissions to ``publish`` instead.
    """

    def __init__(self, lobby_id: str, catalog, settings: GameSettings, scoring: ScoringPolicy,
                 scheduler, publish: Publish, rng: Optional[random.Random] = None):
        self.id = lobby_id
        self.players: List[Player] = []
        self.selected_category: Optional[str] = None
        self.questions: List[Question] = []
        self.current_question_index = -1
        self.game_state = GameState.WAITING
        self.is_paused = False
        self.remaining_time_on_pause: Optional[float] = None
        self.question_start_time: Optional[float] = None
        self.question_open = False
        self.time_limit = settings.time_limit
        self.answers = AnswerLedger()

        self._catalog = catalog
        self._settings = settings
        self._scoring = scoring
        self._scheduler = scheduler
        self._publish = publish
        self._rng = rng or random.Random()
        self._timer = QuestionTimer(scheduler, self._on_tick, self._on_deadline, lambda: self.is_paused)
        self._reveal_handle = None

    # ---- helpers ----

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    def find_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def _player(self, player_id: str) -> Player:
        player = self.find_player(player_id)
        if player is None:
            raise PlayerNotInLobby()
        return player

    def _require_host(self, player_id: str) -> Player:
        player = self._player(player_id)
        if not player.is_host:
            raise NotHost()
        return player

    def _players_payload(self):
        return [p.to_dict() for p in self.players]

    def _scores_payload(self):
        return [p.score_dict() for p in self.players]

    def _broadcast(self, event: OutboundEvent, exclude: Iterable[str] = ()) -> Emission:
        skip = set(exclude)
        return Emission(to=tuple(p.id for p in self.players if p.id not in skip), event=event)

    @staticmethod
    def _unicast(player_id: str, event: OutboundEvent) -> Emission:
        return Emission(to=(player_id,), event=event)

    def _emit_later(self, emissions: List[Emission]) -> None:
        if emissions:
            self._publish(emissions)

    def _current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def _cancel_timers(self) -> None:
        self._timer.cancel()
        if self._reveal_handle is not None:
            self._reveal_handle.cancel()
            self._reveal_handle = None

    def _all_answered(self) -> bool:
        return (
            self.game_state is GameState.ACTIVE
            and self.question_open
            and not self.is_paused
            and bool(self.players)
            and all(p.has_answered for p in self.players)
        )

    def remaining_time(self) -> Optional[float]:
        """Seconds left to answer the current question, None between questions."""
        if self.is_paused:
            return self.remaining_time_on_pause
        if not self.question_open or self.question_start_time is None:
            return None
        elapsed = self._scheduler.now() - self.question_start_time
        return max(0.0, self.time_limit - elapsed)

    def _question_event(self, question: Question, time_limit: float) -> NewQuestion:
        return NewQuestion(
            question=question.prompt,
            options=list(question.options),
            question_index=self.current_question_index,
            total_questions=len(self.questions),
            time_limit=time_limit,
            category=self.selected_category,
        )

    # ---- roster ----

    def add_host(self, player_id: str, name: Optional[str]) -> Player:
        player = Player(id=player_id, name=name or f'Player {player_id[:4]}', is_host=True)
        self.players.append(player)
        return player

    def ensure_joinable(self) -> None:
        if self.game_state is GameState.FINISHED:
            raise GameAlreadyActiveOrFinished('The game in this lobby has already finished.')
        if self.game_state is GameState.ACTIVE and not self._settings.allow_late_join:
            raise GameAlreadyActiveOrFinished()
        if len(self.players) >= self._settings.max_players:
            raise LobbyFull()

    def join(self, player_id: str, name: Optional[str]) -> List[Emission]:
        self.ensure_joinable()
        player = Player(id=player_id, name=name or f'Player {player_id[:4]}')
        self.players.append(player)
        logger.info(f"[join] lobby={self.id} player={player.name} sid={player_id} state={self.game_state.value}")

        remaining = self.remaining_time() if self.game_state is GameState.ACTIVE else None
        emissions = [
            self._unicast(player_id, JoinedLobby(
                lobby_id=self.id,
                player_id=player_id,
                players=self._players_payload(),
                game_state=self.game_state.value,
                selected_category=self.selected_category,
                is_paused=self.is_paused,
                available_categories=self._catalog.categories(),
                remaining_time=remaining,
            )),
        ]
        others = self._broadcast(PlayerJoined(
            players=self._players_payload(),
            joined_player_id=player_id,
            joined_player_name=player.name,
            selected_category=self.selected_category,
        ), exclude=[player_id])
        if others.to:
            emissions.append(others)

        question = self._current_question()
        if self.question_open and question is not None:
            # Late joiner: show the running question with the time actually left
            emissions.append(self._unicast(player_id, self._question_event(question, remaining or 0)))
            emissions.append(self._unicast(player_id, UpdateScores(players=self._scores_payload())))
        return emissions

    def remove_player(self, player_id: str) -> List[Emission]:
        player = self.find_player(player_id)
        if player is None:
            return []
        self.players.remove(player)
        logger.info(f"[leave] lobby={self.id} player={player.name} sid={player_id} remaining={len(self.players)}")
        if not self.players:
            self.close()
            return []

        emissions = [self._broadcast(PlayerLeft(
            players=self._players_payload(),
            disconnected_player_name=player.name,
            selected_category=self.selected_category,
        ))]
        if player.is_host:
            new_host = self.players[0]
            new_host.is_host = True
            logger.info(f"[host-changed] lobby={self.id} new_host={new_host.name} sid={new_host.id}")
            emissions.append(self._broadcast(HostChanged(
                new_host_id=new_host.id,
                players=self._players_payload(),
                available_categories=self._catalog.categories(),
                selected_category=self.selected_category,
            )))
        if self._all_answered():
            emissions.extend(self._end_question())
        return emissions

    # ---- host controls ----

    def select_category(self, requester_id: str, category_key: Optional[str]) -> List[Emission]:
        self._require_host(requester_id)
        if self.game_state is GameState.ACTIVE:
            raise GameAlreadyActiveOrFinished('The category cannot change while a game is running.')
        if category_key and category_key not in self._catalog:
            raise InvalidCategory(f'Unknown question category "{category_key}".')
        self.selected_category = category_key or None
        logger.info(f"[category] lobby={self.id} category={self.selected_category}")
        return [self._broadcast(CategoryUpdatedByHost(category_key=self.selected_category))]

    def start(self, requester_id: str, category_key: Optional[str]) -> List[Emission]:
        self._require_host(requester_id)
        if self.game_state is not GameState.WAITING:
            raise GameAlreadyActiveOrFinished('The game has already started or is finished.')

        category = self.selected_category
        if not category:
            if not category_key or category_key not in self._catalog:
                raise InvalidCategory()
            category = self.selected_category = category_key
        elif category_key and category_key != category:
            logger.warning(f"[start-mismatch] lobby={self.id} client={category_key} server={category}")
        if category not in self._catalog:
            raise InvalidCategory('Invalid question category selected.')

        questions = list(self._catalog.questions_for(category))
        if not questions:
            self.selected_category = None
            raise EmptyCategory(
                f'No questions found in category "{category}".',
                followups=[self._broadcast(CategoryUpdatedByHost(category_key=None))],
            )

        self._cancel_timers()
        self._rng.shuffle(questions)
        self.questions = questions
        for player in self.players:
            player.reset_for_game()
        self.answers.clear()
        self.game_state = GameState.ACTIVE
        self.current_question_index = -1
        self.is_paused = False
        self.remaining_time_on_pause = None
        self.question_open = False
        logger.info(f"[start] lobby={self.id} category={category} questions={len(questions)}")

        emissions = [self._broadcast(GameStarted(
            lobby_id=self.id, category=category, players=self._players_payload(),
        ))]
        emissions.extend(self.advance())
        return emissions

    def toggle_pause(self, requester_id: str) -> List[Emission]:
        self._require_host(requester_id)
        if self.game_state is not GameState.ACTIVE:
            raise NotResumable() if self.is_paused else NotPausable()
        if self.is_paused:
            return self._resume()
        if not self.question_open:
            raise NotPausable('The game can only be paused while a question is open.')
        return self._pause()

    def _pause(self) -> List[Emission]:
        elapsed = self._scheduler.now() - self.question_start_time
        remaining = max(0.0, self.time_limit - elapsed)
        self._timer.cancel()
        self.is_paused = True
        self.remaining_time_on_pause = remaining
        logger.info(f"[pause] lobby={self.id} question={self.current_question_index} remaining={remaining:.2f}s")
        return [self._broadcast(GamePausedEvent(remaining_time=remaining))]

    def _resume(self) -> List[Emission]:
        remaining = self.remaining_time_on_pause
        self.is_paused = False
        self.remaining_time_on_pause = None
        # Shift the start so elapsed time excludes the pause
        self.question_start_time = self._scheduler.now() - (self.time_limit - remaining)
        seconds = self._timer.start(remaining)
        logger.info(f"[resume] lobby={self.id} question={self.current_question_index} remaining={remaining:.2f}s")
        emissions = [
            self._broadcast(GameResumed()),
            self._broadcast(TimerUpdate(seconds_left=seconds)),
        ]
        if self._all_answered():
            emissions.extend(self._end_question())
        return emissions

    def skip_to_end(self, requester_id: str) -> List[Emission]:
        self._require_host(requester_id)
        if self.game_state is not GameState.ACTIVE:
            raise GameNotActive()
        if self.is_paused:
            raise GamePaused('Resume the game before skipping to the end.')
        logger.info(f"[skip] lobby={self.id} at question={self.current_question_index}")
        return self._finish()

    def play_again(self, requester_id: str) -> List[Emission]:
        self._require_host(requester_id)
        if self.game_state is GameState.ACTIVE:
            raise GameInProgress()
        self._cancel_timers()
        for player in self.players:
            player.reset_for_game()
        self.questions = []
        self.current_question_index = -1
        self.answers.clear()
        self.question_open = False
        self.question_start_time = None
        self.is_paused = False
        self.remaining_time_on_pause = None
        self.game_state = GameState.WAITING
        if not self._settings.keep_category_on_play_again:
            self.selected_category = None
        logger.info(f"[play-again] lobby={self.id} category={self.selected_category}")
        return [self._broadcast(LobbyResetForPlayAgain(
            lobby_id=self.id,
            players=self._players_payload(),
            game_state=self.game_state.value,
            available_categories=self._catalog.categories(),
            selected_category=self.selected_category,
        ))]

    # ---- answers ----

    def submit_answer(self, player_id: str, question_index: int, answer: str) -> List[Emission]:
        player = self._player(player_id)
        if self.game_state is not GameState.ACTIVE:
            raise GameNotActive()
        if self.is_paused:
            raise GamePaused()
        if question_index != self.current_question_index or not self.question_open:
            raise StaleOrDuplicateAnswer('This question is no longer open.')
        if player.has_answered or self.answers.has(question_index, player_id):
            raise StaleOrDuplicateAnswer('You have already answered this question.')

        question = self._current_question()
        if question is None:
            logger.error(f"[missing-question] lobby={self.id} index={self.current_question_index}")
            return self._finish()

        elapsed = max(0.0, self._scheduler.now() - self.question_start_time)
        is_correct = answer == question.answer
        points, streak = self._scoring.score(is_correct, elapsed, self.time_limit, player.streak)
        player.streak = streak
        player.score = apply_points(player.score, points)
        player.has_answered = True
        self.answers.record(question_index, player_id, AnswerRecord(
            answer=answer, is_correct=is_correct, points_earned=points, time_taken=elapsed,
        ))

        emissions = [self._unicast(player_id, AnswerResult(
            is_correct=is_correct,
            correct_answer=question.answer,
            score=player.score,
            streak=player.streak,
            points_earned=points,
        ))]
        if self._all_answered():
            emissions.extend(self._end_question())
        return emissions

    # ---- question lifecycle ----

    def advance(self) -> List[Emission]:
        """Move to the next question, or finish after the last one."""
        if self.game_state is not GameState.ACTIVE:
            return []
        self._cancel_timers()
        for player in self.players:
            player.has_answered = False
        self.current_question_index += 1
        self.is_paused = False
        self.remaining_time_on_pause = None

        if self.current_question_index >= len(self.questions):
            return self._finish()
        question = self._current_question()
        if question is None:
            logger.error(f"[missing-question] lobby={self.id} index={self.current_question_index}")
            return self._finish()

        self.time_limit = self._settings.time_limit
        self.question_start_time = self._scheduler.now()
        self.question_open = True
        seconds = self._timer.start(self.time_limit)
        logger.info(f"[question] lobby={self.id} index={self.current_question_index}/{len(self.questions)}")
        return [
            self._broadcast(self._question_event(question, self.time_limit)),
            self._broadcast(UpdateScores(players=self._scores_payload())),
            self._broadcast(TimerUpdate(seconds_left=seconds)),
        ]

    def _end_question(self) -> List[Emission]:
        # The answer window closes once, whichever trigger gets here first
        if self.game_state is not GameState.ACTIVE or not self.question_open:
            return []
        self.question_open = False
        self._timer.cancel()

        question = self._current_question()
        if question is None:
            logger.error(f"[missing-question] lobby={self.id} index={self.current_question_index}")
            return self._finish()

        logger.info(f"[question-over] lobby={self.id} index={self.current_question_index}")
        self._reveal_handle = self._scheduler.call_later(self._settings.reveal_duration, self._on_reveal_done)
        return [self._broadcast(QuestionOver(correct_answer=question.answer, scores=self._scores_payload()))]

    def _finish(self) -> List[Emission]:
        self._cancel_timers()
        self.game_state = GameState.FINISHED
        self.question_open = False
        self.is_paused = False
        self.remaining_time_on_pause = None
        final_scores = [entry.to_dict() for entry in build_leaderboard(self.players)]
        logger.info(f"[game-over] lobby={self.id} scores={[(e['name'], e['score']) for e in final_scores]}")
        return [self._broadcast(GameOver(final_scores=final_scores))]

    def _on_tick(self, seconds_left: int) -> None:
        self._emit_later([self._broadcast(TimerUpdate(seconds_left=seconds_left))])

    def _on_deadline(self) -> None:
        logger.info(f"[time-up] lobby={self.id} index={self.current_question_index}")
        self._emit_later(self._end_question())

    def _on_reveal_done(self) -> None:
        self._reveal_handle = None
        self._emit_later(self.advance())

    def close(self) -> None:
        self._cancel_timers()

    def snapshot(self):
        return {
            'id': self.id,
            'gameState': self.game_state.value,
            'players': self._players_payload(),
            'selectedCategory': self.selected_category,
            'currentQuestionIndex': self.current_question_index,
            'totalQuestions': len(self.questions),
            'isPaused': self.is_paused,
            'remainingTime': self.remaining_time(),
        }
