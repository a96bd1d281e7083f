from __future__ import annotations

import pytest

from learnpath.agents.generation import QUESTIONS_FAILED, generation_service
from learnpath.core.llm_errors import NotJson
from learnpath.core.llm_provider import BaseLLMProvider

WEEKS = [
    {
        "title": "Week 1: Foundation",
        "topics": [
            {"title": "Syntax", "lessonObjective": "Read code", "estimatedTime": "2 hours"},
            {"title": "Types", "lessonObjective": "Know the types", "estimatedTime": "1 hour"},
        ],
    },
    {
        "title": "Week 2: Practice",
        "topics": [{"title": "Ownership", "lessonObjective": "Move values", "estimatedTime": "3 hours"}],
    },
]

ALTERED_WEEKS = [
    {"title": f"Week {n}: Slower", "topics": [{"title": f"Topic {n}", "lessonObjective": "o", "estimatedTime": "1h"}]}
    for n in (1, 2, 3)
]


class ScriptedLLM(BaseLLMProvider):
    """Answers each prompt kind with a canned payload and counts calls."""

    provider_name = "scripted"

    def __init__(self):
        self.calls: dict[str, int] = {}

    def _hit(self, kind: str) -> None:
        self.calls[kind] = self.calls.get(kind, 0) + 1

    async def execute(self, prompt: str, timeout_ms: int):
        if prompt.startswith("Create lesson content"):
            self._hit("lesson")
            title = prompt.split("Title: ", 1)[1].split("\n", 1)[0]
            return {
                "title": title,
                "lessonObjective": "objective",
                "estimatedTime": "1 hour",
                "lessonContent": f"All about {title}.",
                "keyConcepts": ["a", "b", "c"],
                "exampleCode": [{"description": "demo", "code": "print(1)", "output": "1"}],
                "assessmentQuestions": [
                    {"question": f"Pick A for {title}", "options": ["Option A", "Option B"], "answer": "Option A"}
                ],
            }
        if prompt.startswith("Original goal"):
            self._hit("alter")
            return ALTERED_WEEKS
        if "learning roadmap" in prompt:
            self._hit("roadmap")
            return WEEKS
        self._hit("questions")
        return [{"question": "What is your level?", "options": ["Beginner", "Intermediate", "Advanced"]}]


class BrokenLLM(BaseLLMProvider):
    provider_name = "broken"

    async def execute(self, prompt: str, timeout_ms: int):
        raise NotJson("I am not JSON")


@pytest.fixture
def llm(monkeypatch):
    scripted = ScriptedLLM()
    monkeypatch.setattr(generation_service, "_provider", scripted)
    return scripted


def _lesson_ids(roadmap_body: dict) -> list[str]:
    return [lesson["id"] for week in roadmap_body["weeks"] for lesson in week["lessons"]]


def _onboard(client, headers) -> dict:
    questions = client.post("/onboarding/questions", json={"goal": "Learn Rust"}, headers=headers)
    assert questions.status_code == 200
    q = questions.json()["questions"]
    resp = client.post(
        "/onboarding/roadmap",
        json={
            "goal": "Learn Rust",
            "questions": q,
            "answers": {q[0]["question"]: q[0]["options"][0]},
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["llm_configured"] is True


def test_signup_login_and_duplicates(client, signup):
    body, _ = signup(email="dup@learnpath.test", full_name="Dup")
    assert body["is_new_user"] is True
    assert body["is_admin"] is False

    again = client.post(
        "/auth/signup",
        json={"email": "DUP@learnpath.test", "password": "secret-pass", "full_name": "Dup"},
    )
    assert again.status_code == 409

    bad = client.post("/auth/login", json={"email": "dup@learnpath.test", "password": "nope-nope"})
    assert bad.status_code == 401
    assert bad.json()["success"] is False

    ok = client.post("/auth/login", json={"email": "dup@learnpath.test", "password": "secret-pass"})
    assert ok.status_code == 200
    assert ok.json()["is_new_user"] is False
    assert ok.json()["user_id"] == body["user_id"]


def test_validation_errors_use_envelope(client):
    resp = client.post("/auth/signup", json={"email": "x@y.test", "password": "123", "full_name": "X"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["details"]


def test_protected_routes_require_token(client):
    assert client.get("/roadmap").status_code == 401
    assert client.get("/dashboard", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_generation_failure_is_a_502_with_request_id(client, signup, monkeypatch):
    _, headers = signup()
    monkeypatch.setattr(generation_service, "_provider", BrokenLLM())
    resp = client.post(
        "/onboarding/questions",
        json={"goal": "Learn Rust"},
        headers={**headers, "x-request-id": "req-42"},
    )
    assert resp.status_code == 502
    error = resp.json()["error"]
    assert error["code"] == "generation_failed"
    assert error["message"] == QUESTIONS_FAILED
    assert error["request_id"] == "req-42"
    assert resp.headers["x-request-id"] == "req-42"


def test_learning_flow_gating_and_progress(client, signup, llm):
    _, headers = signup()
    roadmap = _onboard(client, headers)
    assert roadmap["title"] == "Learning Roadmap: Learn Rust"
    assert roadmap["total_count"] == 3
    assert [w["progress_percent"] for w in roadmap["weeks"]] == [0, 0]
    assert roadmap["weeks"][0]["topics"][0]["lessonObjective"] == "Read code"
    l1, l2, l3 = _lesson_ids(roadmap)
    assert [l["unlocked"] for w in roadmap["weeks"] for l in w["lessons"]] == [True, False, False]

    locked = client.get(f"/lessons/{l2}", headers=headers)
    assert locked.status_code == 403
    assert locked.json()["error"]["code"] == "http_error"

    first = client.get(f"/lessons/{l1}", headers=headers)
    assert first.status_code == 200
    detail = first.json()
    assert detail["content"]["lessonContent"] == "All about Syntax."
    assert detail["previous_lesson_id"] is None
    assert detail["next_lesson_id"] == l2
    # Cached after the first view
    client.get(f"/lessons/{l1}", headers=headers)
    assert llm.calls["lesson"] == 1

    done = client.post(f"/lessons/{l1}/complete", json={"answers": ["option a"], "time_spent": 20}, headers=headers)
    assert done.status_code == 200
    assert done.json()["score"] == 100
    assert done.json()["passed"] is True
    assert done.json()["first_completion"] is True
    assert done.json()["next_lesson_id"] == l2

    assert client.get(f"/lessons/{l2}", headers=headers).status_code == 200
    wrong = client.post(f"/lessons/{l2}/complete", json={"answers": ["Option B"]}, headers=headers)
    assert wrong.json()["score"] == 0
    assert wrong.json()["passed"] is False
    assert wrong.json()["average_accuracy"] == 50.0

    # Retakes replace the lesson score but leave the running average alone.
    retake = client.post(f"/lessons/{l2}/complete", json={"answers": ["Option A"]}, headers=headers)
    assert retake.json()["first_completion"] is False
    assert retake.json()["completed_lessons"] == 2
    assert retake.json()["average_accuracy"] == 50.0

    unopened = client.post(f"/lessons/{l3}/complete", json={"answers": ["Option A"]}, headers=headers)
    assert unopened.status_code == 409

    lessons = client.get("/lessons", headers=headers).json()
    summaries = [l for w in lessons["weeks"] for l in w["lessons"]]
    assert [l["score"] for l in summaries] == [100, 100, 0]
    assert [l["completed"] for l in summaries] == [True, True, False]
    assert lessons["weeks"][0]["progress_percent"] == 100

    dash = client.get("/dashboard", headers=headers).json()
    assert dash["has_roadmap"] is True
    assert dash["completed_count"] == 2
    assert dash["total_count"] == 3
    assert dash["overall_percent"] == 67
    assert dash["average_accuracy"] == 50.0
    assert dash["total_time_spent"] == 50
    assert dash["current_week"] == 2
    assert dash["total_weeks"] == 2
    assert dash["current_week_percent"] == 0
    assert dash["current_week_plan"]["title"] == "Week 2: Practice"


def test_alter_roadmap_restarts_progress(client, signup, llm):
    _, headers = signup()
    roadmap = _onboard(client, headers)
    l1 = _lesson_ids(roadmap)[0]
    client.get(f"/lessons/{l1}", headers=headers)
    client.post(f"/lessons/{l1}/complete", json={"answers": ["Option A"]}, headers=headers)

    altered = client.post("/roadmap/alter", json={"request": "go slower"}, headers=headers)
    assert altered.status_code == 200
    body = altered.json()
    assert body["id"] == roadmap["id"]
    assert [w["title"] for w in body["weeks"]] == ["Week 1: Slower", "Week 2: Slower", "Week 3: Slower"]
    assert body["completed_count"] == 0
    assert l1 not in _lesson_ids(body)

    dash = client.get("/dashboard", headers=headers).json()
    assert dash["average_accuracy"] == 0.0
    assert dash["total_time_spent"] == 0
    assert dash["current_week"] == 1


def test_delete_roadmap_removes_everything(client, signup, llm):
    _, headers = signup()
    roadmap = _onboard(client, headers)
    l1 = _lesson_ids(roadmap)[0]

    deleted = client.delete("/roadmap", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"roadmap_id": roadmap["id"], "deleted": True}

    assert client.get("/roadmap", headers=headers).status_code == 404
    assert client.get(f"/lessons/{l1}", headers=headers).status_code == 404
    assert client.get("/lessons", headers=headers).json() == {"roadmap_id": None, "weeks": []}
    assert client.get("/dashboard", headers=headers).json()["has_roadmap"] is False
    assert client.delete("/roadmap", headers=headers).status_code == 404


def test_profile_read_and_update(client, signup, llm):
    body, headers = signup(full_name="Before")
    _onboard(client, headers)
    profile = client.get("/profile", headers=headers).json()
    assert profile["id"] == body["user_id"]
    assert profile["full_name"] == "Before"
    assert profile["goal"] == "Learn Rust"

    updated = client.patch(
        "/profile",
        json={"full_name": "After", "preferences": {"theme": "dark"}},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["full_name"] == "After"
    assert updated.json()["preferences"] == {"theme": "dark"}
    assert updated.json()["goal"] == "Learn Rust"


def test_admin_panel(client, signup, admin_headers, llm):
    learner, headers = signup()
    roadmap = _onboard(client, headers)
    l1 = _lesson_ids(roadmap)[0]
    client.get(f"/lessons/{l1}", headers=headers)
    client.post(f"/lessons/{l1}/complete", json={"answers": ["Option A"], "time_spent": 15}, headers=headers)

    assert client.get("/admin/users", headers=headers).status_code == 403

    listing = client.get("/admin/users", headers=admin_headers)
    assert listing.status_code == 200
    users = {u["id"]: u for u in listing.json()["users"]}
    assert all(u["email"] != "admin@learnpath.test" for u in users.values())
    row = users[learner["user_id"]]
    assert row["completed_lessons"] == 1
    assert row["total_lessons"] == 3
    assert row["total_time_spent"] == 15
    assert row["average_accuracy"] == 100.0
    assert row["overall_percent"] == 33
    assert listing.json()["stats"]["total_users"] >= 1

    removed = client.delete(f"/admin/users/{learner['user_id']}", headers=admin_headers)
    assert removed.status_code == 200
    assert client.get("/profile", headers=headers).status_code == 401
    assert client.delete(f"/admin/users/{learner['user_id']}", headers=admin_headers).status_code == 404


def test_generation_is_attributed_to_the_signed_in_user(client, signup, llm, monkeypatch):
    body, headers = signup()
    seen = []
    original_questions = generation_service.generate_questions
    original_roadmap = generation_service.generate_roadmap

    async def questions(goal, *, user_id=None):
        seen.append(("questions", user_id))
        return await original_questions(goal, user_id=user_id)

    async def roadmap(goal, answers, *, user_id=None):
        seen.append(("roadmap", user_id))
        return await original_roadmap(goal, answers, user_id=user_id)

    monkeypatch.setattr(generation_service, "generate_questions", questions)
    monkeypatch.setattr(generation_service, "generate_roadmap", roadmap)

    _onboard(client, headers)
    assert seen == [("questions", body["user_id"]), ("roadmap", body["user_id"])]
