from dataclasses import dataclass, field
from typing import Dict, List

from .records import QuestionUserChoice, QuestionUserGuess

MULTIPLE_ANSWER_MAX_SCORE = 3


@dataclass(frozen=True)
class UserGuessResult:
    guessing_user_id: int
    choice_user_id: int
    score: int
    should_have_been_selected: List[str]
    should_not_have_been_selected: List[str]

    def to_dict(self):
        return {
            'guessing_user_id': self.guessing_user_id,
            'choice_user_id': self.choice_user_id,
            'score': self.score,
            'should_have_been_selected': list(self.should_have_been_selected),
            'should_not_have_been_selected': list(self.should_not_have_been_selected),
        }


@dataclass(frozen=True)
class UserResult:
    user_id: int
    total_score: int
    guess_results: List[UserGuessResult] = field(default_factory=list)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'total_score': self.total_score,
            'guess_results': [r.to_dict() for r in self.guess_results],
        }


def multiple_answer_score(incorrect_count: int) -> int:
    # one point off per wrongly (un)selected variant
    return max(0, MULTIPLE_ANSWER_MAX_SCORE - incorrect_count)


def single_answer_score(incorrect_count: int) -> int:
    return 1 if incorrect_count == 0 else 0


def score_guess(guess: QuestionUserGuess, choice: QuestionUserChoice,
                is_multiple_answer: bool) -> UserGuessResult:
    """Score one guess against the choice it targets.

    ``should_not_have_been_selected`` are the false positives of the guess,
    ``should_have_been_selected`` the variants it missed. Every one of them
    counts as one incorrect answer.
    """
    extra = sorted(guess.selected_variant_ids - choice.selected_variant_ids)
    missing = sorted(choice.selected_variant_ids - guess.selected_variant_ids)
    incorrect = len(extra) + len(missing)
    if is_multiple_answer:
        score = multiple_answer_score(incorrect)
    else:
        score = single_answer_score(incorrect)
    return UserGuessResult(
        guessing_user_id=guess.guessing_user_id,
        choice_user_id=guess.choice_user_id,
        score=score,
        should_have_been_selected=missing,
        should_not_have_been_selected=extra,
    )


def total_standings(results_per_question: List[List[UserResult]], player_ids) -> List[Dict]:
    """Sum per-question totals into a leaderboard, best score first.

    Ties keep roster order.
    """
    totals = {pid: 0 for pid in player_ids}
    for results in results_per_question:
        for r in results:
            totals[r.user_id] = totals.get(r.user_id, 0) + r.total_score
    order = {pid: idx for idx, pid in enumerate(player_ids)}
    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], order.get(kv[0], len(order))))
    return [{'user_id': uid, 'total_score': score} for uid, score in ranked]
