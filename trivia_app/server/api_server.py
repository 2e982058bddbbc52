"""FastAPI server exposing participant and admin endpoints.

Every route is ``async def`` so request handling, countdown ticks and the
result display delay all run on the one event loop; sessions need no locks.
"""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
import logging
import secrets
from typing import Iterator

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel, Field
import uvicorn

from trivia_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from trivia_app.constants.network_constants import ADMIN_PASSWORD_HEADER, PARTICIPANT_COOKIE
from trivia_app.constants.quiz_constants import (
    DEFAULT_POINTS,
    DEFAULT_SPEED_BONUS_PCT,
    DEFAULT_TIME_LIMIT_SECONDS,
    LEADERBOARD_DEFAULT_LIMIT,
)
from trivia_app.core.markdown_renderer import renderer
from trivia_app.core.models import Participant, Question, QuestionOption, Quiz
from trivia_app.core.quiz_importer import QuizImportError
from trivia_app.core.services.quiz_session import QuestionPhase, QuizConfigurationError, SessionView
from trivia_app.core.trivia_manager import TriviaManager
from trivia_app.server.participant_page import PARTICIPANT_PAGE_HTML
from trivia_app.server.server_config import ServerConfig

logger = logging.getLogger(__name__)


class RegisterPayload(BaseModel):
    """Payload schema for participant registration."""

    full_name: str
    employee_id: str
    department: str


class AnswerPayload(BaseModel):
    """Payload schema for a selected option."""

    option: str


class QuizPayload(BaseModel):
    name: str
    description: str = ""
    speed_bonus: int = Field(default=DEFAULT_SPEED_BONUS_PCT, ge=0, le=100)
    show_correct_answer: bool = True


class QuizUpdatePayload(BaseModel):
    name: str | None = None
    description: str | None = None
    speed_bonus: int | None = Field(default=None, ge=0, le=100)
    show_correct_answer: bool | None = None


class OptionPayload(BaseModel):
    key: str
    text: str


class QuestionPayload(BaseModel):
    text: str
    options: list[OptionPayload]
    correct_option: str
    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS
    points: int = DEFAULT_POINTS
    speed_bonus: int | None = None  # None = use the quiz default

    def to_question(self) -> Question:
        return Question(
            id=0,
            text=self.text,
            options=tuple(QuestionOption(key=o.key, text=o.text) for o in self.options),
            correct_option=self.correct_option,
            time_limit_seconds=self.time_limit_seconds,
            points=self.points,
            speed_bonus=self.speed_bonus,
        )


class MovePayload(BaseModel):
    """Move a question up (-1) or down (1)."""

    direction: int


class ImportPayload(BaseModel):
    text: str


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except QuizConfigurationError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (KeyError, IndexError) as exc:
        detail = exc.args[0] if exc.args else "Not found"
        raise HTTPException(status_code=404, detail=str(detail)) from exc
    except (ValueError, QuizImportError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


def _question_payload(question: Question, include_answer: bool) -> dict[str, object]:
    return {
        "id": question.id,
        "text": question.text,
        "text_html": renderer.render_fragment(question.text),
        "options": [
            {"key": option.key, "text": option.text, "text_html": renderer.render_inline(option.text)}
            for option in question.options
        ],
        "correct_option": question.correct_option if include_answer else None,
        "time_limit_seconds": question.time_limit_seconds,
    }


def _admin_question_payload(question: Question) -> dict[str, object]:
    return {
        "id": question.id,
        "text": question.text,
        "options": [{"key": option.key, "text": option.text} for option in question.options],
        "correct_option": question.correct_option,
        "time_limit_seconds": question.time_limit_seconds,
        "points": question.points,
        "speed_bonus": question.speed_bonus,
    }


def _quiz_payload(quiz: Quiz, include_questions: bool = False) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": quiz.id,
        "name": quiz.name,
        "description": quiz.description,
        "speed_bonus": quiz.speed_bonus,
        "show_correct_answer": quiz.show_correct_answer,
        "is_active": quiz.is_active,
        "question_count": len(quiz.questions),
        "created_at": quiz.created_at.isoformat(),
    }
    if include_questions:
        payload["questions"] = [_admin_question_payload(q) for q in quiz.questions]
    return payload


def _participant_payload(participant: Participant) -> dict[str, object]:
    return {
        "id": participant.id,
        "full_name": participant.full_name,
        "employee_id": participant.employee_id,
        "department": participant.department,
        "created_at": participant.created_at.isoformat(),
        "total_score": participant.total_score,
        "correct_count": participant.correct_count,
        "answers_count": participant.answers_count,
        "completed": participant.completed,
    }


def _view_payload(view: SessionView) -> dict[str, object]:
    question = None
    if view.question is not None:
        # Only reveal the correct option once the question has been answered.
        answered = view.phase is not QuestionPhase.UNANSWERED
        question = _question_payload(view.question, include_answer=answered and view.reveal_correct_answer)
    return {
        "status": view.status.value,
        "phase": view.phase.value if view.phase is not None else None,
        "question_index": view.question_index,
        "total_questions": view.total_questions,
        "remaining_seconds": view.remaining_seconds,
        "time_limit_seconds": view.time_limit_seconds,
        "total_score": view.total_score,
        "correct_count": view.correct_count,
        "question": question,
        "last_answer": view.last_answer.to_dict() if view.last_answer is not None else None,
    }


def _get_manager_dependency(manager: TriviaManager):
    def dependency() -> TriviaManager:
        return manager

    return dependency


def _admin_dependency(admin_password: str):
    def dependency(admin_header: str | None = Header(default=None, alias=ADMIN_PASSWORD_HEADER)) -> None:
        if admin_header is None or not secrets.compare_digest(admin_header, admin_password):
            raise HTTPException(status_code=401, detail="Invalid admin password.")

    return dependency


def _current_participant_id(request: Request, manager: TriviaManager) -> str:
    participant_id = request.cookies.get(PARTICIPANT_COOKIE)
    if not participant_id or not manager.registry.has_participant(participant_id):
        raise HTTPException(status_code=401, detail="Register before playing.")
    return participant_id


def create_api_app(manager: TriviaManager, config: ServerConfig | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided trivia manager."""
    config = config or ServerConfig()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        # Stop every countdown before the loop goes away.
        manager.shutdown()

    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
        lifespan=lifespan,
    )
    manager_dep = _get_manager_dependency(manager)
    require_admin = _admin_dependency(config.admin_password)

    # --- Participant endpoints ---

    @app.get("/", response_class=HTMLResponse)
    async def serve_participant_page() -> str:
        return PARTICIPANT_PAGE_HTML

    @app.get("/quiz")
    async def get_active_quiz(m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        return _quiz_payload(m.get_active_quiz())

    @app.post("/participants", status_code=201)
    async def register_participant(
        payload: RegisterPayload,
        response: Response,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            participant = m.register_participant(payload.full_name, payload.employee_id, payload.department)
        response.set_cookie(
            key=PARTICIPANT_COOKIE,
            value=participant.id,
            max_age=60 * 60 * 24,
            samesite="lax",
            httponly=True,
        )
        return _participant_payload(participant)

    @app.post("/session", status_code=201)
    async def start_session(request: Request, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        participant_id = _current_participant_id(request, m)
        with _domain_errors():
            view = m.start_session(participant_id)
        return _view_payload(view)

    @app.get("/session")
    async def get_session(request: Request, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        participant_id = _current_participant_id(request, m)
        with _domain_errors():
            view = m.get_session_view(participant_id)
        return _view_payload(view)

    @app.post("/session/answer")
    async def submit_answer(
        payload: AnswerPayload,
        request: Request,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        participant_id = _current_participant_id(request, m)
        with _domain_errors():
            _, view = m.submit_answer(participant_id, payload.option)
        return _view_payload(view)

    @app.delete("/session", status_code=204)
    async def abandon_session(request: Request, m: TriviaManager = Depends(manager_dep)) -> Response:
        participant_id = _current_participant_id(request, m)
        m.abandon_session(participant_id)
        return Response(status_code=204)

    @app.get("/result")
    async def get_result(request: Request, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        participant_id = _current_participant_id(request, m)
        with _domain_errors():
            result = m.get_result(participant_id)
        payload = result.summary.to_dict()
        payload["position"] = result.position
        payload["full_name"] = result.participant.full_name
        return payload

    @app.get("/leaderboard")
    async def get_leaderboard(
        limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT, ge=1, le=800),
        department: str = "",
        search: str = "",
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        rows = m.get_leaderboard(limit=limit, department=department, search=search)
        return {
            "total_count": m.get_leaderboard_size(department),
            "departments": m.get_departments(completed_only=True),
            "rows": [
                {
                    "position": row.position,
                    "full_name": row.full_name,
                    "employee_id": row.employee_id,
                    "department": row.department,
                    "total_score": row.total_score,
                }
                for row in rows
            ],
        }

    # --- Admin endpoints ---

    @app.get("/admin/stats", dependencies=[Depends(require_admin)])
    async def admin_stats(m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        stats = m.get_stats()
        return {
            "total": stats.total,
            "completed": stats.completed,
            "average_score": stats.average_score,
            "departments": m.get_departments(),
        }

    @app.get("/admin/participants", dependencies=[Depends(require_admin)])
    async def admin_participants(
        page: int = Query(default=1, ge=1),
        search: str = "",
        status: str = "",
        department: str = "",
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        result = m.list_participants(page=page, search=search, status=status, department=department)
        return {
            "total_count": result.total_count,
            "page": result.page,
            "page_size": result.page_size,
            "items": [_participant_payload(p) for p in result.items],
        }

    @app.get("/admin/participants/export", dependencies=[Depends(require_admin)])
    async def admin_export_participants(
        status: str = "",
        department: str = "",
        m: TriviaManager = Depends(manager_dep),
    ) -> Response:
        filename, content = m.export_participants_csv(status=status, department=department)
        return Response(
            content=content.encode("utf-8"),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/admin/reset", status_code=204, dependencies=[Depends(require_admin)])
    async def admin_reset(m: TriviaManager = Depends(manager_dep)) -> Response:
        m.reset_participants()
        return Response(status_code=204)

    @app.get("/admin/quizzes", dependencies=[Depends(require_admin)])
    async def admin_list_quizzes(m: TriviaManager = Depends(manager_dep)) -> list[dict[str, object]]:
        return [_quiz_payload(quiz) for quiz in m.list_quizzes()]

    @app.post("/admin/quizzes", status_code=201, dependencies=[Depends(require_admin)])
    async def admin_create_quiz(payload: QuizPayload, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.create_quiz(**payload.model_dump())
        return _quiz_payload(quiz, include_questions=True)

    @app.post("/admin/quizzes/import", status_code=201, dependencies=[Depends(require_admin)])
    async def admin_import_quiz(payload: ImportPayload, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.import_quiz_text(payload.text)
        return _quiz_payload(quiz, include_questions=True)

    @app.get("/admin/quizzes/{quiz_id}", dependencies=[Depends(require_admin)])
    async def admin_get_quiz(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.get_quiz(quiz_id)
        return _quiz_payload(quiz, include_questions=True)

    @app.get("/admin/quizzes/{quiz_id}/export", response_class=PlainTextResponse, dependencies=[Depends(require_admin)])
    async def admin_export_quiz(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> str:
        with _domain_errors():
            return m.export_quiz_text(quiz_id)

    @app.patch("/admin/quizzes/{quiz_id}", dependencies=[Depends(require_admin)])
    async def admin_update_quiz(
        quiz_id: str,
        payload: QuizUpdatePayload,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            quiz = m.update_quiz(quiz_id, **payload.model_dump(exclude_none=True))
        return _quiz_payload(quiz, include_questions=True)

    @app.delete("/admin/quizzes/{quiz_id}", dependencies=[Depends(require_admin)])
    async def admin_delete_quiz(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> list[dict[str, object]]:
        with _domain_errors():
            remaining = m.delete_quiz(quiz_id)
        return [_quiz_payload(quiz) for quiz in remaining]

    @app.post("/admin/quizzes/{quiz_id}/activate", dependencies=[Depends(require_admin)])
    async def admin_activate_quiz(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.set_active_quiz(quiz_id)
        return _quiz_payload(quiz)

    @app.post("/admin/quizzes/{quiz_id}/duplicate", status_code=201, dependencies=[Depends(require_admin)])
    async def admin_duplicate_quiz(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.duplicate_quiz(quiz_id)
        return _quiz_payload(quiz, include_questions=True)

    @app.post("/admin/quizzes/{quiz_id}/questions", status_code=201, dependencies=[Depends(require_admin)])
    async def admin_add_question(
        quiz_id: str,
        payload: QuestionPayload,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            quiz = m.add_question(quiz_id, payload.to_question())
        return _quiz_payload(quiz, include_questions=True)

    @app.put("/admin/quizzes/{quiz_id}/questions/{index}", dependencies=[Depends(require_admin)])
    async def admin_update_question(
        quiz_id: str,
        index: int,
        payload: QuestionPayload,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            quiz = m.update_question(quiz_id, index, payload.to_question())
        return _quiz_payload(quiz, include_questions=True)

    @app.delete("/admin/quizzes/{quiz_id}/questions/{index}", dependencies=[Depends(require_admin)])
    async def admin_delete_question(
        quiz_id: str,
        index: int,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            quiz = m.delete_question(quiz_id, index)
        return _quiz_payload(quiz, include_questions=True)

    @app.post("/admin/quizzes/{quiz_id}/questions/reset", dependencies=[Depends(require_admin)])
    async def admin_reset_questions(quiz_id: str, m: TriviaManager = Depends(manager_dep)) -> dict[str, object]:
        with _domain_errors():
            quiz = m.reset_questions(quiz_id)
        return _quiz_payload(quiz, include_questions=True)

    @app.post("/admin/quizzes/{quiz_id}/questions/{index}/move", dependencies=[Depends(require_admin)])
    async def admin_move_question(
        quiz_id: str,
        index: int,
        payload: MovePayload,
        m: TriviaManager = Depends(manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            quiz = m.move_question(quiz_id, index, payload.direction)
        return _quiz_payload(quiz, include_questions=True)

    return app


def run_api_server(manager: TriviaManager, config: ServerConfig) -> None:
    """Serve the API on the current thread until interrupted."""
    app = create_api_app(manager, config)
    logger.info("Serving trivia API on %s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")
