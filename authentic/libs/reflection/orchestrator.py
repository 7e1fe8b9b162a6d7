"""Ten-question guided reflection interview driven by the completion gateway."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Iterable, Optional, Union

from pydantic import BaseModel

from authentic.libs.llm_router import CompletionGateway, GatewayError, Task
from authentic.libs.schemas.chat import RoleMessage
from authentic.libs.schemas.journal import (
    Analysis,
    ReflectionQuestion,
    ReflectionSession,
    ReflectionTheme,
    utcnow,
)
from authentic.libs.store.base import StoreError
from authentic.prompts.reflection import (
    REFLECTION_ANALYSIS_PROMPT,
    REFLECTION_ANALYSIS_SYSTEM_PROMPT,
    REFLECTION_FIRST_QUESTION_PROMPT,
    REFLECTION_NEXT_QUESTION_PROMPT,
    REFLECTION_QUESTION_SYSTEM_PROMPT,
)

from .parser import parse_analysis
from .store import ReflectionSessionStore

logger = logging.getLogger(__name__)

TOTAL_QUESTIONS = 10

START_ERROR = "Failed to start reflection session. Please try again."
ANSWER_ERROR = "Failed to process your answer. Please try again."
LOAD_ERROR = "Failed to load the session. Please try again."
NO_ACTIVE_QUESTION_ERROR = "No active question to answer"
SESSION_NOT_FOUND_ERROR = "We couldn't find that reflection session."
BUSY_ERROR = "Still working on your last step. Please wait a moment."

SessionCallback = Callable[[ReflectionSession], Union[None, Awaitable[None]]]


class ReflectionState(BaseModel):
    """Render-ready view of the orchestrator."""

    session: Optional[ReflectionSession] = None
    current_question: Optional[ReflectionQuestion] = None
    has_completed_all_questions: bool = False
    analysis: Optional[Analysis] = None
    is_loading: bool = False
    error: Optional[str] = None


def _clean_question(raw: str) -> str:
    text = raw.strip()
    if len(text) > 1 and text[0] == text[-1] and text[0] in {'"', "'"}:
        text = text[1:-1].strip()
    return text


def _format_transcript(questions: Iterable[ReflectionQuestion]) -> str:
    blocks = [
        f"Q{question.order}: {question.question}\nA{question.order}: {question.answer or ''}"
        for question in questions
    ]
    return "\n\n".join(blocks)


class ReflectionSessionOrchestrator:
    """
    One in-flight reflection interview.

    ``start`` seeds the first question; each ``answer`` either fetches the next
    question or, on the tenth answer, the final analysis. Gateway failures
    never raise: they set :attr:`error` and leave the session exactly as it was
    so the same step can be retried.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        *,
        user_id: str,
        session_store: Optional[ReflectionSessionStore] = None,
        on_session_complete: Optional[SessionCallback] = None,
    ) -> None:
        self._gateway = gateway
        self._user_id = user_id
        self._session_store = session_store
        self._on_session_complete = on_session_complete
        self._session: Optional[ReflectionSession] = None
        self._is_loading = False
        self._error: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Optional[ReflectionSession]:
        return self._session

    @property
    def current_question(self) -> Optional[ReflectionQuestion]:
        return self._session.current_question if self._session else None

    @property
    def has_completed_all_questions(self) -> bool:
        return self._session is not None and self._session.status == "completed"

    @property
    def analysis(self) -> Optional[Analysis]:
        return self._session.analysis if self._session else None

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> ReflectionState:
        return ReflectionState(
            session=self._session,
            current_question=self.current_question,
            has_completed_all_questions=self.has_completed_all_questions,
            analysis=self.analysis,
            is_loading=self._is_loading,
            error=self._error,
        )

    def _reject_if_busy(self) -> bool:
        if self._lock.locked():
            logger.info("reflection step rejected while another is in flight user_id=%s", self._user_id)
            self._error = BUSY_ERROR
            return True
        return False

    async def start(self, theme: ReflectionTheme) -> Optional[ReflectionSession]:
        """Begin a new interview for ``theme`` with its first question."""

        if self._reject_if_busy():
            return self._session

        async with self._lock:
            self._is_loading = True
            self._error = None
            messages = [
                RoleMessage.system(REFLECTION_QUESTION_SYSTEM_PROMPT.format(theme=theme.name)),
                RoleMessage.user(REFLECTION_FIRST_QUESTION_PROMPT.format(theme=theme.name)),
            ]
            try:
                raw = await self._gateway.complete(messages, task=Task.REFLECTION_QUESTION)
            except GatewayError as exc:
                logger.warning("reflection start failed theme=%s error=%s", theme.id, exc)
                self._error = START_ERROR
                return self._session
            finally:
                self._is_loading = False

            first = ReflectionQuestion(question=_clean_question(raw), theme_id=theme.id, order=1)
            session = ReflectionSession(
                user_id=self._user_id,
                theme_id=theme.id,
                theme_name=theme.name,
                questions=[first],
                current_question_index=0,
                status="in_progress",
            )
            self._session = session
            logger.info("reflection session started session_id=%s theme=%s", session.id, theme.id)
            await self._persist(session)
            return session

    async def answer(self, text: str) -> Optional[ReflectionSession]:
        """Record ``text`` on the current question and advance the interview."""

        answer_text = (text or "").strip()
        if not answer_text:
            return self._session

        session = self._session
        question = self.current_question
        if session is None or question is None or session.status == "completed":
            self._error = NO_ACTIVE_QUESTION_ERROR
            return session

        if self._reject_if_busy():
            return session

        async with self._lock:
            self._is_loading = True
            self._error = None
            index = session.current_question_index
            questions = list(session.questions)
            questions[index] = question.model_copy(update={"answer": answer_text})
            transcript = _format_transcript(q for q in questions if q.answer is not None)
            is_last = index == TOTAL_QUESTIONS - 1

            try:
                if is_last:
                    next_session = await self._complete_session(session, questions, transcript)
                else:
                    next_session = await self._next_question(session, questions, transcript)
            except GatewayError as exc:
                logger.warning(
                    "reflection answer failed session_id=%s index=%s error=%s", session.id, index, exc
                )
                self._error = ANSWER_ERROR
                return session
            finally:
                self._is_loading = False

            self._session = next_session
            await self._persist(next_session)
            if is_last:
                logger.info("reflection session completed session_id=%s", next_session.id)
                await self._notify_complete(next_session)
            return next_session

    async def _next_question(
        self,
        session: ReflectionSession,
        questions: list[ReflectionQuestion],
        transcript: str,
    ) -> ReflectionSession:
        index = session.current_question_index
        messages = [
            RoleMessage.system(REFLECTION_QUESTION_SYSTEM_PROMPT.format(theme=session.theme_name)),
            RoleMessage.user(
                REFLECTION_NEXT_QUESTION_PROMPT.format(
                    answered=index + 1,
                    total=TOTAL_QUESTIONS,
                    transcript=transcript,
                    next_order=index + 2,
                )
            ),
        ]
        raw = await self._gateway.complete(messages, task=Task.REFLECTION_QUESTION)
        next_question = ReflectionQuestion(
            question=_clean_question(raw),
            theme_id=session.theme_id,
            order=index + 2,
        )
        return session.model_copy(
            update={
                "questions": [*questions, next_question],
                "current_question_index": index + 1,
            }
        )

    async def _complete_session(
        self,
        session: ReflectionSession,
        questions: list[ReflectionQuestion],
        transcript: str,
    ) -> ReflectionSession:
        messages = [
            RoleMessage.system(REFLECTION_ANALYSIS_SYSTEM_PROMPT.format(theme=session.theme_name)),
            RoleMessage.user(REFLECTION_ANALYSIS_PROMPT.format(total=TOTAL_QUESTIONS, transcript=transcript)),
        ]
        raw = await self._gateway.complete(messages, task=Task.REFLECTION_ANALYSIS)
        return session.model_copy(
            update={
                "questions": questions,
                "current_question_index": session.current_question_index + 1,
                "status": "completed",
                "completed_at": utcnow(),
                "analysis": parse_analysis(raw),
            }
        )

    async def load_saved_session(self, session_id: str) -> Optional[ReflectionSession]:
        """Resume a stored session (completed sessions come back read-only)."""

        if self._session_store is None:
            self._error = LOAD_ERROR
            return self._session
        if self._reject_if_busy():
            return self._session

        async with self._lock:
            self._is_loading = True
            self._error = None
            try:
                loaded = await self._session_store.load(session_id, user_id=self._user_id)
            except StoreError as exc:
                logger.warning("reflection session load failed session_id=%s error=%s", session_id, exc)
                self._error = LOAD_ERROR
                return self._session
            finally:
                self._is_loading = False

            if loaded is None:
                self._error = SESSION_NOT_FOUND_ERROR
                return self._session
            self._session = loaded
            return loaded

    async def _persist(self, session: ReflectionSession) -> None:
        if self._session_store is not None:
            await self._session_store.save(session)

    async def _notify_complete(self, session: ReflectionSession) -> None:
        if self._on_session_complete is None:
            return
        try:
            result = self._on_session_complete(session)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("session completion callback failed session_id=%s", session.id)


__all__ = [
    "ANSWER_ERROR",
    "BUSY_ERROR",
    "LOAD_ERROR",
    "NO_ACTIVE_QUESTION_ERROR",
    "ReflectionSessionOrchestrator",
    "ReflectionState",
    "SESSION_NOT_FOUND_ERROR",
    "START_ERROR",
    "TOTAL_QUESTIONS",
]
