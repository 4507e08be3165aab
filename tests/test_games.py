import pytest

from app.services.quiz_service import score_answers

QUESTIONS = [
    {"question": "Where did we meet?", "correctAnswer": "Paris"},
    {"question": "Favourite colour?", "correctAnswer": "Blue"},
    {"question": "First movie?", "correctAnswer": "Up"},
]

REWARDS = [{"id": "r1", "name": "Dinner date"}, {"id": "r2", "name": "Movie night"}]


def _notifications(client, uid):
    return client.get(f"/api/notifications/{uid}").json()["notifications"]


def test_score_answers_list_and_dict():
    score, correct, results = score_answers(QUESTIONS, [" paris", "red", "UP"])
    assert (score, correct) == (67, 2)
    assert [r["isCorrect"] for r in results] == [True, False, True]

    score, correct, _ = score_answers(QUESTIONS, {"0": "Paris", "1": "Blue"})
    assert (score, correct) == (67, 2)

    assert score_answers([], ["x"]) == (0, 0, [])


def test_score_answers_accepts_zero_as_an_answer():
    questions = [{"question": "How many arguments have we had?", "correctAnswer": 0}]

    score, correct, results = score_answers(questions, [0])
    assert (score, correct) == (100, 1)
    assert results[0]["userAnswer"] == 0

    assert score_answers(questions, [""])[1] == 0
    assert score_answers(questions, [None])[0] == 0


@pytest.fixture
def reward_game(client, user_id):
    response = client.post(f"/api/games/{user_id}", json={
        "title": "Our story",
        "type": "quiz",
        "questions": QUESTIONS,
        "rewards": REWARDS,
        "hasReward": True,
    })
    assert response.status_code == 201
    return response.json()["game"]


def test_create_and_list_games(client, user_id, reward_game):
    assert reward_game["createdBy"] == user_id
    assert reward_game["hasReward"] is True
    assert reward_game["isCompleted"] is False

    games = client.get(f"/api/games/{user_id}").json()["games"]
    assert [g["id"] for g in games] == [reward_game["id"]]


def test_game_validation(client, user_id):
    assert client.post(f"/api/games/{user_id}", json={"title": "x"}).status_code == 400
    no_questions = client.post(f"/api/games/{user_id}", json={"title": "x", "type": "quiz"})
    assert no_questions.status_code == 400
    assert no_questions.json()["detail"] == "Quiz games require at least one question"


def test_memory_match_keeps_pairs_only(client, user_id):
    response = client.post(f"/api/games/{user_id}", json={
        "title": "Match us",
        "type": "memory-match",
        "questions": QUESTIONS,
        "pairs": [{"a": "1", "b": "1"}],
    })
    game = response.json()["game"]
    assert game["questions"] is None
    assert game["pairs"] == [{"a": "1", "b": "1"}]


def test_update_and_delete_game(client, user_id, reward_game):
    url = f"/api/games/{user_id}/{reward_game['id']}"
    updated = client.put(url, json={"title": "Our story, part two"})
    assert updated.json()["game"]["title"] == "Our story, part two"

    assert client.delete(url).status_code == 200
    assert client.get(url).status_code == 404


def test_completing_a_reward_game_notifies_the_sender(client, user_id, reward_game):
    client.post(f"/api/receiver-data/{user_id}", json={"name": "Sam", "email": "sam@example.com"})

    response = client.post(
        f"/api/games/{user_id}/{reward_game['id']}/complete",
        json={"rewardId": "r2", "message": "Can't wait!"},
    )

    assert response.status_code == 200
    game = response.json()["game"]
    assert game["isCompleted"] is True
    assert game["passed"] is True
    assert game["claimedRewardId"] == "r2"

    notifications = _notifications(client, user_id)
    assert len(notifications) == 1
    assert notifications[0]["type"] == "game_completion"
    assert notifications[0]["message"] == 'Sam passed the Quiz Game and selected reward: "Movie night" 🎁'


def test_failed_completion_does_not_notify(client, user_id, reward_game):
    client.post(f"/api/games/{user_id}/{reward_game['id']}/complete", json={"passed": False})
    assert _notifications(client, user_id) == []

    completion = client.get(f"/api/games/{user_id}/{reward_game['id']}/completion").json()
    assert completion["completed"] is True
    assert completion["passed"] is False


def test_reward_fulfilment_sends_email(client, user_id, reward_game, mailer):
    game_url = f"/api/games/{user_id}/{reward_game['id']}"
    client.post(f"{game_url}/complete", json={"rewardId": "r1"})

    response = client.put(f"{game_url}/complete", json={
        "rewardFulfilled": True,
        "emailToReceiver": True,
        "receiverEmail": "sam@example.com",
        "emailMessage": "Booked for Friday!",
    })

    assert response.status_code == 200
    assert response.json()["game"]["rewardFulfilled"] is True
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "sam@example.com"


def test_viewed_rewards_are_replaced_and_deduplicated(client, user_id):
    url = f"/api/games/{user_id}/viewed-rewards"
    assert client.get(url).json()["viewedRewardIds"] == []

    client.put(url, json={"viewedRewardIds": ["r1", "r2", "r1"]})
    assert sorted(client.get(url).json()["viewedRewardIds"]) == ["r1", "r2"]

    assert client.put(url, json={"viewedRewardIds": "r1"}).status_code == 400


def test_quiz_submission_scores_and_awards_prize(client, user_id):
    created = client.post(f"/api/quizzes/{user_id}", json={"title": "About us", "questions": QUESTIONS})
    assert created.status_code == 201
    quiz = created.json()["quiz"]
    assert quiz["settings"]["passingScore"] == 70

    submitted = client.post(
        f"/api/quizzes/{user_id}/{quiz['id']}/submit",
        json={"answers": ["Paris", "Blue", "Up"], "timeTaken": 42},
    )
    assert submitted.status_code == 201
    result = submitted.json()["quizResult"]
    assert result["score"] == 100
    assert result["passed"] is True
    assert result["timeTaken"] == 42

    prize = _notifications(client, user_id)[0]
    assert prize["type"] == "quiz_prize_won"
    assert prize["quizId"] == quiz["id"]


def test_failed_quiz_has_no_prize(client, user_id):
    quiz = client.post(f"/api/quizzes/{user_id}", json={"title": "About us", "questions": QUESTIONS}).json()["quiz"]
    result = client.post(f"/api/quizzes/{user_id}/{quiz['id']}/submit", json={"answers": ["Paris"]}).json()

    assert result["quizResult"]["passed"] is False
    assert _notifications(client, user_id) == []


def test_quiz_validation(client, user_id):
    response = client.post(f"/api/quizzes/{user_id}", json={"title": "Empty", "questions": []})
    assert response.status_code == 400
    assert client.get(f"/api/quizzes/{user_id}/missing").status_code == 404


def test_game_prizes(client, user_id):
    won = client.post(f"/api/game-prizes/{user_id}", json={"gameType": "memory", "score": "90", "prizeWon": True})
    assert won.status_code == 201
    assert won.json()["notificationCreated"] is True
    client.post(f"/api/game-prizes/{user_id}", json={"gameType": "memory", "score": 20})

    assert len(client.get(f"/api/game-prizes/{user_id}").json()["gameResults"]) == 2
    prizes = client.get(f"/api/game-prizes/{user_id}/prizes").json()["prizes"]
    assert [p["score"] for p in prizes] == [90]

    types = sorted(n["type"] for n in _notifications(client, user_id))
    assert types == ["game_completion", "game_prize"]

    assert client.post(f"/api/game-prizes/{user_id}", json={"gameType": "memory"}).status_code == 400


def test_quiz_passing_score_of_zero_is_respected(client, user_id):
    quiz = client.post(f"/api/quizzes/{user_id}", json={
        "title": "Just for fun",
        "questions": QUESTIONS,
        "settings": {"timeLimitPerQuestion": 30, "passingScore": 0, "numWrongAnswers": 3},
    }).json()["quiz"]

    result = client.post(f"/api/quizzes/{user_id}/{quiz['id']}/submit", json={"answers": []}).json()

    assert result["quizResult"]["score"] == 0
    assert result["quizResult"]["passed"] is True
