"""
HTTP boundary tests using FastAPI TestClient
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from progress_service.codeforces_client import CodeforcesClient
from progress_service.config import Settings
from progress_service.dependencies import get_codeforces_client, get_daily_challenge_cache, get_db
from progress_service.main import app
from progress_service.schemas import DailyChallenge
from progress_service.services.daily_challenge_cache import DailyChallengeCache

HEADERS = {"X-User-ID": "user-1"}

DAILY = [
    DailyChallenge(
        id=1,
        problemId="CF-6-C",
        contestId=6,
        problemIndex="C",
        title="Hard One",
        difficulty="Hard",
        problemUrl="https://codeforces.com/problemset/problem/6/C",
        xpReward=150,
        rating=1500,
    )
]


def submissions_handler(request):
    if request.url.params["handle"] == "missing":
        return httpx.Response(400, json={"status": "FAILED", "comment": "handle: User not found"})
    return httpx.Response(200, json={
        "status": "OK",
        "result": [{"id": 777, "verdict": "OK", "problem": {"contestId": 6, "index": "C"}}],
    })


@pytest.fixture
def client(db):
    async def load():
        return list(DAILY)

    cache = DailyChallengeCache(load, today=lambda: "2025-11-18")
    codeforces = CodeforcesClient(
        Settings(CODEFORCES_API_URL="https://codeforces.test/api"),
        transport=httpx.MockTransport(submissions_handler)
    )

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_daily_challenge_cache] = lambda: cache
    app.dependency_overrides[get_codeforces_client] = lambda: codeforces
    yield TestClient(app)
    app.dependency_overrides.clear()


def complete(client, problem_id="two-sum", difficulty="Easy"):
    return client.post(
        f"/api/v1/progress/{problem_id}/complete",
        json={"problemTitle": "Two Sum", "difficulty": difficulty},
        headers=HEADERS,
    )


def test_root(client):
    assert client.get("/").json()["service"] == "progress-service"


def test_missing_user_header(client):
    response = client.post(
        "/api/v1/progress/two-sum/complete",
        json={"problemTitle": "Two Sum", "difficulty": "Easy"}
    )
    assert response.status_code == 401


def test_complete_then_duplicate(client):
    first = complete(client)
    assert first.status_code == 201
    assert first.json()["xpEarned"] == 50
    assert first.json()["currentStreak"] == 1

    second = complete(client)
    assert second.status_code == 200
    assert second.json()["alreadyCompleted"] is True
    assert second.json()["xpEarned"] == 0

    progress = client.get("/api/v1/progress", headers=HEADERS).json()
    assert progress["xp"] == 50
    assert progress["totalProblemsSolved"] == 1


def test_complete_invalid_difficulty(client):
    response = complete(client, difficulty="legendary")
    assert response.status_code == 400


def test_progress_history(client):
    complete(client, "a")
    complete(client, "b", "Hard")

    history = client.get("/api/v1/progress/history", headers=HEADERS).json()
    assert {h["problemId"] for h in history} == {"a", "b"}


def test_resume_with_nothing_pending(client):
    response = client.post("/api/v1/progress/resume", headers=HEADERS)
    assert response.status_code == 200
    assert response.json() == {"resumed": 0, "results": []}


def test_solved_problems_endpoints(client):
    body = {"problemId": "p1", "problemTitle": "P1", "difficulty": "Medium", "xpEarned": 100}

    created = client.post("/api/v1/solved-problems", json=body, headers=HEADERS)
    assert created.status_code == 201
    assert created.json()["problem"]["difficulty"] == "moderate"

    duplicate = client.post("/api/v1/solved-problems", json=body, headers=HEADERS)
    assert duplicate.status_code == 409

    bad = client.post("/api/v1/solved-problems", json={**body, "problemId": "p2", "difficulty": "x"}, headers=HEADERS)
    assert bad.status_code == 400

    listing = client.get("/api/v1/solved-problems", params={"difficulty": "Medium"}, headers=HEADERS).json()
    assert listing["count"] == 1

    stats = client.get("/api/v1/solved-problems/stats", headers=HEADERS).json()
    assert stats["stats"]["moderate"] == 1
    assert stats["stats"]["totalXp"] == 100


def test_streak_endpoints(client):
    assert client.get("/api/v1/streaks/me", headers=HEADERS).json()["currentStreak"] == 0

    complete(client)

    me = client.get("/api/v1/streaks/me", headers=HEADERS).json()
    assert me["currentStreak"] == 1
    assert me["bestStreak"] == 1

    history = client.get("/api/v1/streaks/history", params={"days": 7}, headers=HEADERS).json()
    assert history[0]["problemsCompleted"] == 1
    assert history[0]["xpEarned"] == 50

    board = client.get("/api/v1/streaks/leaderboard", headers=HEADERS).json()
    assert board[0]["userId"] == "user-1"
    assert board[0]["rank"] == 1


def test_difficulty_progress(client):
    complete(client, "a", "Easy")
    complete(client, "b", "Hard")

    days = client.get("/api/v1/analytics/difficulty-progress", headers=HEADERS).json()
    assert days[0]["easy"] == 1
    assert days[0]["hard"] == 1


def test_leaderboards(client, db):
    complete(client, "a", "Hard")
    db.users_table.put_item(Item={"userId": "user-2", "name": "Ada", "xp": 1000, "college": "MIT"})

    for path in ["/api/v1/leaderboard/alltime", "/api/v1/leaderboard/weekly"]:
        board = client.get(path, headers=HEADERS).json()
        assert [entry["userId"] for entry in board] == ["user-2", "user-1"]
        assert board[0]["level"] == "Bronze III"
        assert board[1]["college"] == "Unknown"


def test_daily_problems_with_completion(client):
    daily = client.get("/api/v1/codeforces/daily", headers=HEADERS).json()
    assert daily[0]["problemId"] == "CF-6-C"
    assert daily[0]["completed"] is False

    client.post("/api/v1/codeforces/verify/CF-6-C", json={"codeforcesHandle": "tourist"}, headers=HEADERS)

    daily = client.get("/api/v1/codeforces/daily", headers=HEADERS).json()
    assert daily[0]["completed"] is True


def test_verify_problem(client):
    response = client.post("/api/v1/codeforces/verify/CF-6-C", json={"codeforcesHandle": "tourist"}, headers=HEADERS)
    body = response.json()
    assert response.status_code == 200
    assert body["verified"] is True
    assert body["xpEarned"] == 150
    assert body["submissionId"] == 777

    again = client.post("/api/v1/codeforces/verify/CF-6-C", json={"codeforcesHandle": "tourist"}, headers=HEADERS)
    assert again.json()["alreadyCompleted"] is True
    assert again.json()["xpEarned"] == 0

    solved = client.get("/api/v1/solved-problems", headers=HEADERS).json()
    assert solved["problems"][0]["platform"] == "Codeforces"
    assert solved["problems"][0]["submissionUrl"] == "https://codeforces.com/contest/6/submission/777"


def test_verify_errors(client):
    missing_handle = client.post("/api/v1/codeforces/verify/CF-6-C", json={}, headers=HEADERS)
    assert missing_handle.status_code == 400

    bad_id = client.post("/api/v1/codeforces/verify/not-an-id", json={"codeforcesHandle": "tourist"}, headers=HEADERS)
    assert bad_id.status_code == 400

    unknown = client.post("/api/v1/codeforces/verify/CF-1-A", json={"codeforcesHandle": "tourist"}, headers=HEADERS)
    assert unknown.status_code == 404

    upstream = client.post("/api/v1/codeforces/verify/CF-6-C", json={"codeforcesHandle": "missing"}, headers=HEADERS)
    assert upstream.status_code == 502


def test_solve_dated_before_last_activity(client, db):
    db.streaks_table.put_item(Item={
        "userId": "user-1",
        "currentStreak": 3,
        "bestStreak": 3,
        "lastActivityDate": "2999-01-01",
        "totalSolved": 3,
        "version": 3,
    })

    response = complete(client)
    assert response.status_code == 409

    verify = client.post("/api/v1/codeforces/verify/CF-6-C", json={"codeforcesHandle": "tourist"}, headers=HEADERS)
    assert verify.status_code == 409

    assert client.get("/api/v1/progress/history", headers=HEADERS).json() == []
