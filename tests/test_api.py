import pytest
from httpx import ASGITransport, AsyncClient

from authentic.apps.api.deps import get_registry
from authentic.apps.api.main import app
from authentic.apps.api.registry import SessionRegistry
from authentic.libs.reflection.store import REFLECTION_SESSIONS_TABLE
from authentic.libs.store import JOURNAL_ENTRIES_TABLE
from authentic.libs.insights import SAVED_INSIGHTS_TABLE

HEADERS = {"X-User-Id": "api-user"}


@pytest.fixture
def registry(row_store, gateway, settings):
    registry = SessionRegistry(row_store, gateway, settings)
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    app.dependency_overrides.clear()


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health():
    async with _client() as ac:
        resp = await ac.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_missing_user_is_unauthenticated(registry):
    async with _client() as ac:
        resp = await ac.get("/reflection/sessions/current")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_reflection_flow(registry, provider, row_store):
    async with _client() as ac:
        themes = await ac.get("/reflection/themes")
        assert len(themes.json()) == 10

        assert (await ac.post("/reflection/sessions", json={"theme_id": "nope"}, headers=HEADERS)).status_code == 404

        provider.push("What do you value most?")
        started = await ac.post("/reflection/sessions", json={"theme_id": "life-purpose"}, headers=HEADERS)
        assert started.status_code == 200
        state = started.json()
        assert state["current_question"]["question"] == "What do you value most?"
        session_id = state["session"]["id"]

        provider.push("Where do you feel that value most?")
        answered = await ac.post("/reflection/sessions/answer", json={"answer": "Honesty"}, headers=HEADERS)
        assert answered.json()["session"]["current_question_index"] == 1

        current = await ac.get("/reflection/sessions/current", headers=HEADERS)
        assert current.json()["current_question"]["order"] == 2

        history = await ac.get("/reflection/sessions/history", headers=HEADERS)
        assert [s["id"] for s in history.json()] == [session_id]

        loaded = await ac.post(f"/reflection/sessions/{session_id}/load", headers=HEADERS)
        assert loaded.status_code == 200
        missing = await ac.post("/reflection/sessions/unknown/load", headers=HEADERS)
        assert missing.status_code == 404

    assert len(row_store.rows(REFLECTION_SESSIONS_TABLE)) == 1


@pytest.mark.asyncio
async def test_chat_flow(registry, provider, row_store):
    row_store.rows(JOURNAL_ENTRIES_TABLE).append(
        {"id": "e1", "user_id": "api-user", "content": "Slept well.", "mood": "rested",
         "created_at": "2026-04-01T07:00:00+00:00"}
    )
    async with _client() as ac:
        assert (await ac.post("/chat/entry", json={"entry_id": "zzz"}, headers=HEADERS)).status_code == 404

        selected = await ac.post("/chat/all", headers=HEADERS)
        conversation_id = selected.json()["conversation_id"]
        assert selected.json()["is_all_entries"] is True

        provider.push("Rest seems to matter to you.")
        sent = await ac.post("/chat/messages", json={"text": "What do you notice?"}, headers=HEADERS)
        messages = sent.json()["messages"]
        assert [m["sender"] for m in messages] == ["ai", "user", "ai"]
        reply_id = messages[-1]["id"]

        saved = await ac.post(f"/chat/messages/{reply_id}/save", json={"tags": ["sleep"]}, headers=HEADERS)
        assert saved.status_code == 200
        assert saved.json()["message"] == "Rest seems to matter to you."

        bookmark = await ac.post(
            "/chat/bookmark", json={"conversation_id": conversation_id, "is_bookmarked": True}, headers=HEADERS
        )
        assert bookmark.status_code == 200
        bookmarks = await ac.get("/chat/bookmarks", headers=HEADERS)
        assert bookmarks.json()[0]["id"] == conversation_id
        assert bookmarks.json()[0]["title"].startswith("Chat from ")

        entry = await ac.post("/chat/entry", json={"entry_id": "e1"}, headers=HEADERS)
        assert entry.json()["selected_entry"]["id"] == "e1"

        cleared = await ac.post("/chat/clear", headers=HEADERS)
        assert cleared.json()["messages"] == []

        recent = await ac.post("/chat/recent", headers=HEADERS)
        assert recent.json()["conversation_id"] == conversation_id


@pytest.mark.asyncio
async def test_saved_insights_endpoints(registry, row_store):
    async with _client() as ac:
        created = await ac.post("/insights/saved", json={"message": "Be kind to yourself."}, headers=HEADERS)
        assert created.status_code == 201
        insight_id = created.json()["id"]

        patched = await ac.patch(f"/insights/saved/{insight_id}", json={"tags": ["kindness"]}, headers=HEADERS)
        assert patched.json()["tags"] == ["kindness"]

        listed = await ac.get("/insights/saved", headers=HEADERS)
        assert [i["id"] for i in listed.json()] == [insight_id]

        assert (await ac.delete(f"/insights/saved/{insight_id}", headers=HEADERS)).status_code == 204
        assert (await ac.delete(f"/insights/saved/{insight_id}", headers=HEADERS)).status_code == 404


@pytest.mark.asyncio
async def test_store_failure_maps_to_bad_gateway(registry, row_store):
    row_store.fail.add((SAVED_INSIGHTS_TABLE, "select"))
    async with _client() as ac:
        resp = await ac.get("/insights/saved", headers=HEADERS)
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_milestone_generation_needs_ten_entries(registry, row_store, provider):
    async with _client() as ac:
        resp = await ac.post("/insights/milestones/generate", headers=HEADERS)
        assert resp.status_code == 422

        for n in range(10):
            row_store.rows(JOURNAL_ENTRIES_TABLE).append(
                {"id": f"e{n}", "user_id": "api-user", "content": f"day {n}",
                 "created_at": f"2026-04-{n + 10}T07:00:00+00:00"}
            )
        provider.push("Strengths:\n- Consistency\n\nKeep going.")
        generated = await ac.post("/insights/milestones/generate", headers=HEADERS)
        assert generated.status_code == 201
        insight_id = generated.json()["id"]

        bookmarked = await ac.post(
            f"/insights/milestones/{insight_id}/bookmark", json={"is_bookmarked": True}, headers=HEADERS
        )
        assert bookmarked.status_code == 200
        listed = await ac.get("/insights/milestones", headers=HEADERS)
        assert listed.json()[0]["is_bookmarked"] is True


@pytest.mark.asyncio
async def test_patch_with_null_message_keeps_message(registry):
    async with _client() as ac:
        created = await ac.post("/insights/saved", json={"message": "Stay curious."}, headers=HEADERS)
        insight_id = created.json()["id"]

        patched = await ac.patch(
            f"/insights/saved/{insight_id}", json={"message": None, "tags": ["growth"]}, headers=HEADERS
        )

    assert patched.status_code == 200
    assert patched.json()["message"] == "Stay curious."
    assert patched.json()["tags"] == ["growth"]


@pytest.mark.asyncio
async def test_milestone_check_generates_on_tenth_entry(registry, row_store, provider):
    entries = row_store.rows(JOURNAL_ENTRIES_TABLE)
    for n in range(9):
        entries.append({"id": f"m{n}", "user_id": "api-user", "content": f"day {n}",
                        "created_at": f"2026-05-{n + 10}T07:00:00+00:00"})
    async with _client() as ac:
        early = await ac.post("/insights/milestones/check", headers=HEADERS)
        assert early.json() == {"entry_count": 9, "insight": None}
        assert provider.requests == []

        entries.append({"id": "m9", "user_id": "api-user", "content": "day 9",
                        "created_at": "2026-05-19T07:00:00+00:00"})
        provider.push("Affirmations:\n- I keep going.\n\nWell done.")
        reached = await ac.post("/insights/milestones/check", headers=HEADERS)

    body = reached.json()
    assert body["entry_count"] == 10
    assert body["insight"]["affirmation"] == "I keep going."
    assert body["insight"]["entry_ids"][0] == "m9"
