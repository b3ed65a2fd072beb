import pytest
from fastapi.testclient import TestClient

from deckoracle.application.progress import ProgressService
from deckoracle.application.study import StudyService
from deckoracle.consts import VERSION
from deckoracle.infrastructure.adapters import InMemoryStudyRepository
from deckoracle.server import app, get_progress_service, get_study_service


@pytest.fixture
def client(clock):
    repo = InMemoryStudyRepository()
    study = StudyService(repo, clock=clock)
    progress = ProgressService(repo, clock=clock)
    app.dependency_overrides[get_study_service] = lambda: study
    app.dependency_overrides[get_progress_service] = lambda: progress
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    response = client.post(
        "/study/sessions",
        json={
            "user_id": "u1",
            "deck_id": "d1",
            "deck_name": "Numbers",
            "cards": [
                {"card_id": "a", "front": "uno", "back": "one"},
                {"card_id": "b", "front": "dos", "back": "two"},
                {"card_id": "c", "front": "tres", "back": "three"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_statuses(client):
    assert client.get("/study/statuses").json() == ["easy", "medium", "hard", "forgot"]


def test_create_and_fetch_session(client, session_id):
    data = client.get(f"/study/sessions/{session_id}").json()
    assert data["user_id"] == "u1"
    assert data["total_cards"] == 3
    assert data["completed_at"] is None

    listed = client.get("/study/sessions", params={"user_id": "u1"}).json()
    assert [s["session_id"] for s in listed] == [session_id]


def test_full_session_flow(client, session_id):
    for card_id, status in [("a", "easy"), ("b", "medium"), ("c", "forgot")]:
        response = client.post(
            f"/study/sessions/{session_id}/progress",
            json={"card_id": card_id, "status": status, "response_time_ms": 1500},
        )
        assert response.status_code == 201
        assert response.json()["status"] == status

    summary = client.get(f"/study/sessions/{session_id}/summary").json()
    assert summary == {"easy": 1, "medium": 1, "hard": 0, "forgot": 1, "total": 3}

    first = client.post(f"/study/sessions/{session_id}/complete").json()
    second = client.post(f"/study/sessions/{session_id}/complete").json()
    assert first["completed_at"] is not None
    assert second["completed_at"] == first["completed_at"]

    overview = client.get("/progress/overview", params={"user_id": "u1"}).json()
    assert overview["total_cards_studied"] == 3
    assert overview["average_accuracy"] == 66.67
    assert overview["total_sessions"] == 1

    deck = client.get("/progress/decks/d1", params={"user_id": "u1"}).json()
    assert deck["cards_learned"] == 1
    assert deck["mastery_percentage"] == 33.33

    cards = client.get("/progress/cards/performance", params={"user_id": "u1"}).json()
    assert cards[0]["card_id"] == "c"
    assert cards[0]["front"] == "tres"

    curve = client.get("/progress/learning-curve", params={"user_id": "u1"}).json()
    assert curve[0]["date"] == "2026-03-02"

    streaks = client.get("/progress/streaks", params={"user_id": "u1"}).json()
    assert streaks["current_streak"] == 1

    weekly = client.get("/progress/weekly", params={"user_id": "u1"}).json()
    assert weekly[0]["week_start"] == "2026-03-02"
    assert weekly[0]["sessions_completed"] == 1


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"card_id": "a", "status": "perfect"}, 400),
        ({"card_id": "zzz", "status": "easy"}, 400),
        ({"card_id": "a", "status": "easy", "response_time_ms": -10}, 400),
    ],
)
def test_rejected_answers(client, session_id, payload, expected):
    response = client.post(f"/study/sessions/{session_id}/progress", json=payload)
    assert response.status_code == expected
    assert response.json()["detail"]
    assert client.get(f"/study/sessions/{session_id}/progress").json() == []


def test_unknown_resources(client):
    assert client.get("/study/sessions/ses_missing").status_code == 404
    assert client.post("/study/sessions/ses_missing/complete").status_code == 404
    response = client.get("/progress/decks/d404", params={"user_id": "u1"})
    assert response.status_code == 404


def test_empty_history_overview(client):
    overview = client.get("/progress/overview", params={"user_id": "nobody"}).json()
    assert overview["total_cards_studied"] == 0
    assert overview["average_accuracy"] == 0
    assert overview["total_sessions"] == 0


def test_date_filters(client, session_id):
    client.post(
        f"/study/sessions/{session_id}/progress", json={"card_id": "a", "status": "easy"}
    )
    params = {"user_id": "u1", "start_date": "2026-03-03"}
    assert client.get("/progress/overview", params=params).json()["total_cards_studied"] == 0
    params["start_date"] = "2026-03-02"
    assert client.get("/progress/overview", params=params).json()["total_cards_studied"] == 1


def test_answer_with_both_timing_inputs(client, session_id):
    response = client.post(
        f"/study/sessions/{session_id}/progress",
        json={
            "card_id": "a",
            "status": "easy",
            "answer_started_at": "2026-03-02T11:59:58+00:00",
            "response_time_ms": 2000,
        },
    )
    assert response.status_code == 400
    assert "response_time_ms" in response.json()["detail"]
    assert client.get(f"/study/sessions/{session_id}/progress").json() == []


@pytest.mark.parametrize(
    "path, params",
    [
        ("/study/sessions", {"user_id": "u1", "limit": -1}),
        ("/study/sessions", {"user_id": "u1", "limit": 0}),
        ("/progress/cards/performance", {"user_id": "u1", "limit": 0}),
    ],
)
def test_non_positive_limits_are_rejected(client, session_id, path, params):
    assert client.get(path, params=params).status_code == 422


def test_dense_curve_up_to_last_representable_day(client):
    params = {
        "user_id": "u1",
        "start_date": "9999-12-30",
        "end_date": "9999-12-31",
        "dense": "true",
    }
    response = client.get("/progress/learning-curve", params=params)
    assert response.status_code == 200
    assert [p["date"] for p in response.json()] == ["9999-12-30", "9999-12-31"]

    params["start_date"] = "0001-01-01"
    response = client.get("/progress/learning-curve", params=params)
    assert response.status_code == 200
    assert response.json() == []


def test_second_session_on_same_deck_keeps_the_first_usable(client, session_id):
    response = client.post(
        "/study/sessions", json={"user_id": "u2", "deck_id": "d1", "cards": []}
    )
    assert response.status_code == 201

    response = client.post(
        f"/study/sessions/{session_id}/progress", json={"card_id": "c", "status": "easy"}
    )
    assert response.status_code == 201

    deck = client.get("/progress/decks/d1", params={"user_id": "u1"}).json()
    assert deck["total_cards"] == 3
    assert deck["cards_learned"] == 1
