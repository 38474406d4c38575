import pytest

from knowme.services.sessions.game_session import GameSession
from knowme.services.sessions.question import Question
from knowme.services.sessions.records import QuestionUserChoice, QuestionUserGuess, UserRef
from knowme.services.sessions.scoring import (
    UserResult,
    multiple_answer_score,
    score_guess,
    single_answer_score,
    total_standings,
)

ALICE, BOB = UserRef(1), UserRef(2)


def _choice(*ids):
    return QuestionUserChoice(user_id=BOB.id, selected_variant_ids=frozenset(ids))


def _guess(*ids):
    return QuestionUserGuess(guessing_user_id=ALICE.id, choice_user_id=BOB.id,
                             selected_variant_ids=frozenset(ids))


@pytest.mark.parametrize('guessed, expected', [
    (('A',), 1),
    (('B',), 0),
    (('A', 'B'), 0),
])
def test_single_answer_scores(guessed, expected):
    result = score_guess(_guess(*guessed), _choice('A'), is_multiple_answer=False)
    assert result.score == expected


@pytest.mark.parametrize('guessed, expected, missing, extra', [
    (('A', 'B'), 3, [], []),
    (('A',), 2, ['B'], []),
    (('A', 'B', 'C'), 2, [], ['C']),
    (('C',), 0, ['A', 'B'], ['C']),
])
def test_multiple_answer_scores(guessed, expected, missing, extra):
    result = score_guess(_guess(*guessed), _choice('A', 'B'), is_multiple_answer=True)
    assert result.score == expected
    assert result.should_have_been_selected == missing
    assert result.should_not_have_been_selected == extra


def test_score_helpers_floor_at_zero():
    assert multiple_answer_score(0) == 3
    assert multiple_answer_score(5) == 0
    assert single_answer_score(0) == 1
    assert single_answer_score(2) == 0


def test_guess_result_names_both_users():
    result = score_guess(_guess('B'), _choice('A'), is_multiple_answer=False)
    assert result.guessing_user_id == ALICE.id
    assert result.choice_user_id == BOB.id
    assert result.to_dict() == {
        'guessing_user_id': ALICE.id,
        'choice_user_id': BOB.id,
        'score': 0,
        'should_have_been_selected': ['A'],
        'should_not_have_been_selected': ['B'],
    }


def test_question_results_sum_guess_scores():
    session = GameSession.create('Scores', ALICE).value
    session.add_player(BOB)
    question = Question.create('Hobbies?', True,
                               {'A': 'Reading', 'B': 'Running', 'C': 'Cooking'}, ALICE, session).value
    session.add_question(question)
    session.add_question(Question.create('Pets?', False, {'A': 'Cat', 'B': 'Dog'}, ALICE, session).value)
    session.start_game()
    ids = {v.label: v.id for v in question.variants}

    session.record_choice(ALICE, [ids['A'], ids['B']])
    session.record_choice(BOB, [ids['C']])
    session.record_guess(ALICE, BOB, [ids['C']])
    session.record_guess(BOB, ALICE, [ids['A'], ids['C']])

    results = session.get_results(question.id).value
    by_user = {r.user_id: r for r in results}
    assert by_user[ALICE.id].total_score == 3
    assert by_user[BOB.id].total_score == 1
    bob_guess = by_user[BOB.id].guess_results[0]
    assert bob_guess.should_have_been_selected == [ids['B']]
    assert bob_guess.should_not_have_been_selected == [ids['C']]


def test_total_standings_orders_by_score_then_roster():
    per_question = [
        [UserResult(1, 2), UserResult(2, 3), UserResult(3, 0)],
        [UserResult(1, 1), UserResult(2, 0), UserResult(3, 3)],
    ]
    assert total_standings(per_question, [1, 2, 3]) == [
        {'user_id': 1, 'total_score': 3},
        {'user_id': 2, 'total_score': 3},
        {'user_id': 3, 'total_score': 3},
    ]
    assert total_standings([], [1, 2]) == [
        {'user_id': 1, 'total_score': 0},
        {'user_id': 2, 'total_score': 0},
    ]
