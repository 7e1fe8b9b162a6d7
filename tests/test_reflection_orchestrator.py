import asyncio

import pytest

from authentic.libs.reflection import (
    TOTAL_QUESTIONS,
    ReflectionSessionOrchestrator,
    ReflectionSessionStore,
    get_theme,
)
from authentic.libs.reflection.orchestrator import (
    ANSWER_ERROR,
    BUSY_ERROR,
    LOAD_ERROR,
    NO_ACTIVE_QUESTION_ERROR,
    SESSION_NOT_FOUND_ERROR,
    START_ERROR,
)
from authentic.libs.reflection.parser import SECTION_FALLBACKS
from authentic.libs.reflection.store import REFLECTION_SESSIONS_TABLE
from authentic.libs.schemas import ReflectionSession

from conftest import openrouter_gateway, provider_down

ANALYSIS = (
    "Negative patterns:\n- Saying yes too quickly\n\n"
    "Positive patterns:\n- Honest with yourself\n\n"
    "Affirmations:\n- My needs matter.\n\n"
    "Actionable steps:\n- Pause before agreeing.\n\n"
    "You are learning to listen to yourself."
)


@pytest.fixture
def theme():
    return get_theme("authentic-self")


def _orchestrator(gateway, **kwargs):
    return ReflectionSessionOrchestrator(gateway, user_id="user-1", **kwargs)


@pytest.mark.asyncio
async def test_start_creates_single_question(gateway, provider, theme):
    provider.push('  "What does being yourself feel like?"  ')
    orchestrator = _orchestrator(gateway)

    session = await orchestrator.start(theme)

    assert session is not None
    assert session.status == "in_progress"
    assert session.current_question_index == 0
    assert [q.question for q in session.questions] == ["What does being yourself feel like?"]
    assert session.questions[0].order == 1
    assert session.theme_name == "Authentic Self"
    assert orchestrator.current_question == session.questions[0]
    assert orchestrator.error is None
    assert not orchestrator.is_loading


@pytest.mark.asyncio
async def test_full_interview_completes_with_analysis(gateway, provider, theme):
    completed = []
    orchestrator = _orchestrator(gateway, on_session_complete=completed.append)
    provider.push("Question 1?")
    await orchestrator.start(theme)

    for n in range(1, TOTAL_QUESTIONS + 1):
        provider.push(ANALYSIS if n == TOTAL_QUESTIONS else f"Question {n + 1}?")
        session = await orchestrator.answer(f"answer {n}")
        if n < TOTAL_QUESTIONS:
            assert session.current_question_index == n
            assert session.questions[-1].order == n + 1

    assert session.status == "completed"
    assert session.completed_at is not None
    assert session.current_question_index == TOTAL_QUESTIONS
    assert len(session.questions) == TOTAL_QUESTIONS
    assert [q.answer for q in session.questions] == [f"answer {n}" for n in range(1, 11)]
    assert session.analysis.negative_patterns == ["Saying yes too quickly"]
    assert session.analysis.encouragement == "You are learning to listen to yourself."
    assert orchestrator.has_completed_all_questions
    assert orchestrator.current_question is None
    assert completed == [session]

    final_prompt = provider.requests[-1][-1]["content"][0]["text"]
    assert "Q10: Question 10?" in final_prompt
    assert "A10: answer 10" in final_prompt


@pytest.mark.asyncio
async def test_analysis_fields_are_never_empty(gateway, provider, theme):
    orchestrator = _orchestrator(gateway)
    provider.push("Q1?")
    await orchestrator.start(theme)
    for n in range(1, TOTAL_QUESTIONS):
        provider.push(f"Q{n + 1}?")
        await orchestrator.answer("fine")
    provider.push("Thanks for sharing.")
    session = await orchestrator.answer("done")

    analysis = session.analysis
    assert analysis.affirmations == [SECTION_FALLBACKS["affirmations"]]
    assert analysis.encouragement == "Thanks for sharing."
    assert all(analysis.model_dump().values())


@pytest.mark.asyncio
async def test_async_completion_callback_is_awaited(gateway, provider, theme):
    seen = []

    async def on_complete(session):
        seen.append(session.id)

    orchestrator = _orchestrator(gateway, on_session_complete=on_complete)
    provider.push("Q1?")
    await orchestrator.start(theme)
    for n in range(1, TOTAL_QUESTIONS):
        provider.push(f"Q{n + 1}?")
        await orchestrator.answer("ok")
    provider.push(ANALYSIS)
    session = await orchestrator.answer("ok")

    assert seen == [session.id]


@pytest.mark.asyncio
async def test_start_failure_sets_error(gateway, provider, theme):
    provider.push(provider_down())
    orchestrator = _orchestrator(gateway)

    assert await orchestrator.start(theme) is None
    assert orchestrator.session is None
    assert orchestrator.error == START_ERROR
    assert not orchestrator.is_loading


@pytest.mark.asyncio
async def test_answer_failure_leaves_session_unchanged(gateway, provider, theme):
    orchestrator = _orchestrator(gateway)
    provider.push("Q1?")
    before = await orchestrator.start(theme)

    provider.push(provider_down())
    after = await orchestrator.answer("my answer")

    assert after == before
    assert orchestrator.session.questions[0].answer is None
    assert orchestrator.error == ANSWER_ERROR

    provider.push("Q2?")
    retried = await orchestrator.answer("my answer")
    assert retried.current_question_index == 1
    assert orchestrator.error is None


@pytest.mark.asyncio
async def test_blank_answer_is_a_no_op(gateway, provider, theme):
    orchestrator = _orchestrator(gateway)
    provider.push("Q1?")
    session = await orchestrator.start(theme)

    assert await orchestrator.answer("   ") == session
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_answer_without_session(gateway):
    orchestrator = _orchestrator(gateway)
    assert await orchestrator.answer("hello") is None
    assert orchestrator.error == NO_ACTIVE_QUESTION_ERROR


@pytest.mark.asyncio
async def test_overlapping_answer_is_rejected(gateway, provider, theme):
    orchestrator = _orchestrator(gateway)
    provider.push("Q1?")
    await orchestrator.start(theme)

    release = asyncio.Event()
    original_complete = gateway.complete

    async def slow_complete(messages, *, task):
        await release.wait()
        return await original_complete(messages, task=task)

    gateway.complete = slow_complete
    provider.push("Q2?")

    first = asyncio.create_task(orchestrator.answer("first"))
    await asyncio.sleep(0)
    assert orchestrator.is_loading

    rejected = await orchestrator.answer("second")
    assert orchestrator.error == BUSY_ERROR
    assert rejected.current_question_index == 0

    release.set()
    session = await first
    assert session.questions[0].answer == "first"
    assert session.current_question_index == 1


@pytest.mark.asyncio
async def test_sessions_are_persisted_and_reloaded(gateway, provider, row_store, theme):
    store = ReflectionSessionStore(row_store)
    orchestrator = _orchestrator(gateway, session_store=store)
    provider.push("Q1?")
    session = await orchestrator.start(theme)
    provider.push("Q2?")
    await orchestrator.answer("a1")

    rows = row_store.rows(REFLECTION_SESSIONS_TABLE)
    assert len(rows) == 1
    assert rows[0]["current_question_index"] == 1

    resumed = _orchestrator(gateway, session_store=store)
    loaded = await resumed.load_saved_session(session.id)
    assert isinstance(loaded, ReflectionSession)
    assert loaded.current_question.question == "Q2?"
    assert loaded.questions[0].answer == "a1"

    recent = await store.list_recent("user-1")
    assert [s.id for s in recent] == [session.id]


@pytest.mark.asyncio
async def test_store_failure_does_not_break_interview(gateway, provider, row_store, theme):
    row_store.fail.add((REFLECTION_SESSIONS_TABLE, "upsert"))
    orchestrator = _orchestrator(gateway, session_store=ReflectionSessionStore(row_store))
    provider.push("Q1?")

    session = await orchestrator.start(theme)

    assert session is not None
    assert orchestrator.error is None


@pytest.mark.asyncio
async def test_load_missing_session(gateway, row_store):
    orchestrator = _orchestrator(gateway, session_store=ReflectionSessionStore(row_store))
    assert await orchestrator.load_saved_session("nope") is None
    assert orchestrator.error == SESSION_NOT_FOUND_ERROR


@pytest.mark.asyncio
async def test_load_store_failure(gateway, row_store):
    row_store.fail.add((REFLECTION_SESSIONS_TABLE, "select"))
    orchestrator = _orchestrator(gateway, session_store=ReflectionSessionStore(row_store))
    assert await orchestrator.load_saved_session("any") is None
    assert orchestrator.error == LOAD_ERROR


@pytest.mark.asyncio
async def test_load_reads_serialized_columns(gateway, row_store):
    row_store.rows(REFLECTION_SESSIONS_TABLE).append(
        {
            "id": "s1",
            "user_id": "user-1",
            "theme_id": "gratitude",
            "theme_name": "Gratitude & Abundance",
            "questions": '[{"id": "q1", "question": "What are you thankful for?", "theme_id": "gratitude", "order": 1}]',
            "current_question_index": 0,
            "status": "in_progress",
            "started_at": "2026-01-02T10:00:00+00:00",
            "analysis": None,
        }
    )
    orchestrator = _orchestrator(gateway, session_store=ReflectionSessionStore(row_store))

    loaded = await orchestrator.load_saved_session("s1")

    assert loaded.current_question.question == "What are you thankful for?"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"choices": ["oops"]}, {"choices": [{"message": "oops"}]}])
async def test_malformed_completion_body_sets_start_error(body, theme):
    orchestrator = _orchestrator(openrouter_gateway(body))

    assert await orchestrator.start(theme) is None
    assert orchestrator.error == START_ERROR
    assert not orchestrator.is_loading
