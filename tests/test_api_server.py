from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from quiz_master.constants.network_constants import USER_ID_HEADER
from quiz_master.core.quiz_manager import QuizManager
from quiz_master.server.api_server import create_api_app

API = "/api/v1"


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_api_app(QuizManager()))


def _register(client: TestClient, username: str) -> dict[str, str]:
    response = client.post(f"{API}/users", json={"username": username})
    assert response.status_code == 201
    return {USER_ID_HEADER: response.json()["user"]["id"]}


def _quiz_payload(category_id: str, correct: list[int]) -> dict[str, object]:
    return {
        "title": "Solar System",
        "description": "Planets and moons",
        "categoryId": category_id,
        "difficulty": "EASY",
        "questions": [
            {
                "text": f"Question {position}",
                "options": ["Mercury", "Venus", "Earth", "Mars"],
                "correctOptionIndex": index,
                "timeLimitSeconds": 30,
                "order": position,
            }
            for position, index in enumerate(correct, start=1)
        ],
    }


@pytest.fixture
def seeded(client: TestClient):
    author = _register(client, "author")
    category = client.post(
        f"{API}/categories",
        json={"name": "Astronomy", "color": "#6366f1"},
        headers=author,
    ).json()
    quiz = client.post(
        f"{API}/quizzes",
        json=_quiz_payload(category["id"], [1, 0, 2, 3]),
        headers=author,
    ).json()
    return author, category, quiz


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_quiz_returns_answer_key_but_public_view_hides_it(client, seeded):
    author, _, quiz = seeded

    assert quiz["totalQuestions"] == 4
    assert quiz["questions"][0]["correctOptionIndex"] == 1

    public = client.get(f"{API}/quizzes/{quiz['id']}").json()
    assert "correctOptionIndex" not in public["questions"][0]

    profile = client.get(f"{API}/users/me", headers=author).json()["user"]
    assert profile["xp"] == 50


def test_submit_attempts_and_quiz_ranking(client, seeded):
    _, _, quiz = seeded
    player = _register(client, "player")
    question_ids = [q["id"] for q in quiz["questions"]]
    url = f"{API}/quizzes/{quiz['id']}/attempt"

    first = client.post(
        url,
        json={"answers": [{"questionId": qid, "selectedOption": opt} for qid, opt in zip(question_ids, [1, 0, 1, 3])]},
        headers=player,
    )
    second = client.post(
        url,
        json={"answers": [{"questionId": qid, "selectedOption": opt} for qid, opt in zip(question_ids, [1, 0, 2, 3])]},
        headers=player,
    )

    assert first.status_code == 201
    assert {k: first.json()[k] for k in ("score", "totalQuestions", "xpGained", "isFirstAttempt")} == {
        "score": 3,
        "totalQuestions": 4,
        "xpGained": 30,
        "isFirstAttempt": True,
    }
    assert (second.json()["score"], second.json()["xpGained"], second.json()["isFirstAttempt"]) == (4, 0, False)

    ranking = client.get(f"{API}/quizzes/{quiz['id']}/ranking").json()
    assert ranking["quiz"]["totalQuestions"] == 4
    assert ranking["totalParticipants"] == 1
    assert ranking["ranking"][0]["score"] == 3
    assert ranking["ranking"][0]["percentage"] == 75
    assert ranking["ranking"][0]["maxScore"] == 4

    count = client.get(f"{API}/users/me/attempts/count", headers=player).json()
    assert count == {"count": 2}


def test_category_listing_and_ranking(client, seeded):
    _, category, quiz = seeded
    player = _register(client, "player")
    answers = [{"questionId": q["id"], "selectedOption": 0} for q in quiz["questions"]]
    client.post(f"{API}/quizzes/{quiz['id']}/attempt", json={"answers": answers}, headers=player)

    listing = client.get(f"{API}/categories").json()
    assert listing[0]["quizzes"][0]["totalQuestions"] == 4

    ranking = client.get(f"{API}/categories/{category['id']}/ranking").json()
    assert ranking["category"]["totalQuizzes"] == 1
    entry = ranking["ranking"][0]
    assert (entry["totalScore"], entry["totalQuestions"], entry["averagePercentage"], entry["quizCount"]) == (1, 4, 25, 1)
    assert entry["quizAttempts"][0]["quizId"] == quiz["id"]

    main = client.get(f"{API}/users/me/main-category", headers=player).json()["mainCategory"]
    assert main["id"] == category["id"]


def test_missing_identity_is_unauthorized(client, seeded):
    _, _, quiz = seeded

    response = client.post(f"{API}/quizzes/{quiz['id']}/attempt", json={"answers": []})

    assert response.status_code == 401


def test_unknown_records_are_not_found(client):
    player = _register(client, "player")

    assert client.get(f"{API}/quizzes/missing").status_code == 404
    assert client.get(f"{API}/quizzes/missing/ranking").status_code == 404
    assert client.get(f"{API}/categories/missing/ranking").status_code == 404
    assert client.post(f"{API}/quizzes/missing/attempt", json={"answers": []}, headers=player).status_code == 404
    assert client.get(f"{API}/users/me", headers={USER_ID_HEADER: "ghost"}).status_code == 404


def test_negative_option_index_is_rejected(client, seeded):
    _, _, quiz = seeded
    player = _register(client, "player")

    response = client.post(
        f"{API}/quizzes/{quiz['id']}/attempt",
        json={"answers": [{"questionId": quiz["questions"][0]["id"], "selectedOption": -1}]},
        headers=player,
    )

    assert response.status_code == 422


def test_duplicate_answers_are_rejected(client, seeded):
    _, _, quiz = seeded
    player = _register(client, "player")
    question_id = quiz["questions"][0]["id"]

    response = client.post(
        f"{API}/quizzes/{quiz['id']}/attempt",
        json={"answers": [{"questionId": question_id, "selectedOption": 1}] * 2},
        headers=player,
    )

    assert response.status_code == 422
    assert client.get(f"{API}/users/me/attempts/count", headers=player).json() == {"count": 0}


def test_invalid_quiz_is_rejected(client, seeded):
    author, category, _ = seeded
    payload = _quiz_payload(category["id"], [0])
    payload["questions"][0]["options"] = ["only", "three", "options"]

    response = client.post(f"{API}/quizzes", json=payload, headers=author)

    assert response.status_code == 422


def test_duplicate_username_conflicts(client):
    _register(client, "player")

    response = client.post(f"{API}/users", json={"username": "player"})

    assert response.status_code == 409


def test_client_supplied_start_time_is_ignored(client, seeded):
    _, _, quiz = seeded
    player = _register(client, "player")
    url = f"{API}/quizzes/{quiz['id']}/attempt"
    question_ids = [q["id"] for q in quiz["questions"]]

    first = client.post(
        url,
        json={"answers": [{"questionId": qid, "selectedOption": opt} for qid, opt in zip(question_ids, [1, 0, 1, 3])]},
        headers=player,
    ).json()
    retake = client.post(
        url,
        json={
            "answers": [{"questionId": qid, "selectedOption": opt} for qid, opt in zip(question_ids, [1, 0, 2, 3])],
            "startedAt": "2000-01-01T00:00:00+00:00",
        },
        headers=player,
    ).json()

    assert retake["attempt"]["startedAt"] > first["attempt"]["startedAt"]
    assert client.get(f"{API}/quizzes/{quiz['id']}/ranking").json()["ranking"][0]["score"] == 3


def test_update_profile(client):
    player = _register(client, "player")
    client.post(f"{API}/users", json={"username": "rival", "email": "rival@example.com"})

    updated = client.put(f"{API}/users/me", json={"username": "player-one", "email": "one@example.com"}, headers=player)
    taken = client.put(f"{API}/users/me", json={"username": "player-one", "email": "rival@example.com"}, headers=player)
    invalid = client.put(f"{API}/users/me", json={"username": "player-one", "email": "not-an-email"}, headers=player)
    too_long = client.put(
        f"{API}/users/me",
        json={"username": "player-one", "email": f"{'x' * 60}@example.com"},
        headers=player,
    )

    assert updated.status_code == 200
    assert (updated.json()["user"]["username"], updated.json()["user"]["email"]) == ("player-one", "one@example.com")
    assert taken.status_code == 409
    assert invalid.status_code == 422
    assert too_long.status_code == 422
    assert client.put(f"{API}/users/me", json={"username": "p", "email": "p@example.com"}, headers=player).status_code == 422


def test_global_ranking_lists_users_by_xp(client, seeded):
    _, _, quiz = seeded
    player = _register(client, "player")
    answers = [{"questionId": q["id"], "selectedOption": 0} for q in quiz["questions"]]
    client.post(f"{API}/quizzes/{quiz['id']}/attempt", json={"answers": answers}, headers=player)

    ranking = client.get(f"{API}/ranking").json()

    assert [(entry["username"], entry["level"], entry["xp"]) for entry in ranking] == [
        ("author", 1, 50),
        ("player", 1, 10),
    ]
    assert ranking[1]["id"] == player[USER_ID_HEADER]


def test_openapi_advertises_license(client):
    assert client.get("/openapi.json").json()["info"]["license"]["name"] == "MIT License"
