"""
api/routes.py — FastAPI endpoints
"""

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel, Field

import config
import api.session as session
from exam_prep.models.question_model import Question, TestMetadata, option_label
from exam_prep.models.session_state import AttemptPhase, ScoreResult
from exam_prep.services import attempt_engine as engine
from exam_prep.services.attempt_session import MockTestSession
from exam_prep.services.errors import EmptyTestError, ImportFormatError, UnknownTestError
from exam_prep.services.exam_service import is_passed, performance_band
from exam_prep.services.question_import import parse_csv_questions, parse_json_questions

router = APIRouter()

USER_HEADER = "X-User-Id"


# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartAttemptBody(BaseModel):
    test_id: str

class SaveAnswerBody(BaseModel):
    position: int
    option_index: int | None = Field(default=None, ge=0)

class NavigateBody(BaseModel):
    position: int = 0


# ── Helpers ──────────────────────────────────────────────────────────────────

def _sid(request: Request) -> str:
    return request.state.session_id


def _user_id(request: Request) -> str | None:
    # set by the upstream identity provider; absent for anonymous users
    user_id = request.headers.get(USER_HEADER, "").strip()
    return user_id or None


def _attempt(request: Request) -> MockTestSession:
    attempt: MockTestSession | None = session.get(_sid(request), "attempt")
    if attempt is None or attempt.state is None:
        raise HTTPException(status_code=404, detail="No mock test attempt in this session.")
    return attempt


def _require_in_progress(attempt: MockTestSession) -> None:
    phase = attempt.state.phase
    if phase == AttemptPhase.SUBMITTED:
        raise HTTPException(status_code=400, detail="The test has already been submitted.")
    if phase != AttemptPhase.IN_PROGRESS:
        raise HTTPException(status_code=400, detail="The test has not been started.")


def _test_to_dict(t: TestMetadata, question_count: int | None = None) -> dict:
    d = {
        "id": t.id,
        "title": t.title,
        "subject": t.subject,
        "chapter": t.chapter,
        "description": t.description,
        "difficulty": t.difficulty,
        "duration_minutes": t.duration_minutes,
    }
    if question_count is not None:
        d["question_count"] = question_count
    return d


def _question_to_dict(q: Question) -> dict:
    # correct answer and explanation stay hidden until submission
    return {
        "id": q.id,
        "text": q.text,
        "options": [
            {"index": i, "label": option_label(i), "text": opt}
            for i, opt in enumerate(q.options)
        ],
    }


def _score_to_dict(score: ScoreResult) -> dict:
    return {
        "correct_count": score.correct_count,
        "wrong_count": score.wrong_count,
        "unanswered_count": score.unanswered_count,
        "total_questions": score.total_questions,
        "percentage": score.percentage,
    }


def _attempt_status(attempt: MockTestSession) -> dict:
    state = attempt.state
    return {
        "test_id": state.test_id,
        "title": attempt.metadata.title if attempt.metadata else None,
        "phase": state.phase.value,
        "current_position": state.current_position,
        "remaining_seconds": state.remaining_seconds,
        "total_seconds": state.total_seconds,
        "total": state.total_questions,
        "answered_count": state.answered_count,
        "answered": [a is not None for a in state.selected_answers],
        "timed_out": state.timed_out,
    }


# ── Catalog ──────────────────────────────────────────────────────────────────

@router.get("/api/tests")
async def list_tests(request: Request):
    catalog = request.app.state.catalog
    return {
        "tests": [
            _test_to_dict(t, catalog.question_count(t.id))
            for t in catalog.list_tests()
        ]
    }


@router.get("/api/tests/{test_id}")
async def get_test(test_id: str, request: Request):
    try:
        metadata, questions = await engine.load(request.app.state.catalog, test_id)
    except UnknownTestError:
        raise HTTPException(status_code=404, detail="Test not found.")
    except EmptyTestError:
        raise HTTPException(status_code=422, detail="No questions available for this test.")
    return _test_to_dict(metadata, len(questions))


def _import_questions(request: Request, test_id: str, questions: list[Question]) -> dict:
    try:
        added = request.app.state.catalog.add_questions(test_id, questions)
    except KeyError:
        raise HTTPException(status_code=404, detail="Test not found.")
    return {"imported": len(added), "ok": True}


@router.post("/api/tests/{test_id}/questions/import")
async def import_questions_json(test_id: str, request: Request):
    raw = await request.body()
    if len(raw) > config.MAX_IMPORT_SIZE:
        raise HTTPException(status_code=413, detail="Import payload is too large.")
    try:
        questions = parse_json_questions(raw.decode("utf-8"))
    except (ImportFormatError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _import_questions(request, test_id, questions)


@router.post("/api/tests/{test_id}/questions/import-csv")
async def import_questions_csv(test_id: str, request: Request, file: UploadFile = File(...)):
    raw = await file.read()
    if len(raw) > config.MAX_IMPORT_SIZE:
        raise HTTPException(status_code=413, detail="CSV file is too large.")
    try:
        questions = parse_csv_questions(raw.decode("utf-8"))
    except (ImportFormatError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _import_questions(request, test_id, questions)


# ── Attempt ──────────────────────────────────────────────────────────────────

@router.post("/api/attempt/start")
async def start_attempt(body: StartAttemptBody, request: Request):
    sid = _sid(request)
    attempt = MockTestSession(
        catalog=request.app.state.catalog,
        recorder=request.app.state.recorder,
        user_id=_user_id(request),
        tick_interval=request.app.state.tick_interval,
    )
    try:
        await attempt.load(body.test_id)
    except UnknownTestError:
        raise HTTPException(status_code=404, detail="Test not found.")
    except EmptyTestError:
        raise HTTPException(status_code=422, detail="No questions available for this test.")

    # the previous attempt keeps running until the new one is ready to replace it
    previous: MockTestSession | None = session.get(sid, "attempt")
    if previous is not None:
        previous.cancel_countdown()

    attempt.start()
    attempt.start_countdown()
    session.put(sid, "attempt", attempt)
    return {**_attempt_status(attempt), "ok": True}


@router.post("/api/attempt/begin")
async def begin_attempt(request: Request):
    attempt = _attempt(request)
    if attempt.state.phase != AttemptPhase.NOT_STARTED:
        raise HTTPException(status_code=400, detail="The test has already been started.")
    attempt.start()
    attempt.start_countdown()
    return {**_attempt_status(attempt), "ok": True}


@router.get("/api/attempt")
async def get_attempt(request: Request):
    return _attempt_status(_attempt(request))


@router.get("/api/attempt/question/{position}")
async def get_question(position: int, request: Request):
    attempt = _attempt(request)
    state = attempt.state
    if not (0 <= position < state.total_questions):
        raise HTTPException(status_code=404, detail="Question not found.")

    d = _question_to_dict(state.questions[position])
    d.update({
        "position": position,
        "total": state.total_questions,
        "saved_answer": state.selected_answers[position],
    })
    return d


@router.post("/api/attempt/answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    attempt = _attempt(request)
    _require_in_progress(attempt)

    state = attempt.state
    if not (0 <= body.position < state.total_questions):
        raise HTTPException(status_code=404, detail="Question not found.")

    if body.option_index is None:
        attempt.clear_answer(body.position)
    else:
        if not state.questions[body.position].has_option(body.option_index):
            raise HTTPException(status_code=400, detail="Option out of range.")
        attempt.select_answer(body.position, body.option_index)
    return {"ok": True, "answered_count": attempt.state.answered_count}


@router.post("/api/attempt/navigate")
async def navigate(body: NavigateBody, request: Request):
    attempt = _attempt(request)
    _require_in_progress(attempt)
    if not attempt.navigate(body.position):
        raise HTTPException(status_code=400, detail="Question position out of range.")
    return {"position": attempt.state.current_position, "ok": True}


@router.post("/api/attempt/next")
async def next_question(request: Request):
    attempt = _attempt(request)
    _require_in_progress(attempt)
    attempt.next()
    return {"position": attempt.state.current_position, "ok": True}


@router.post("/api/attempt/previous")
async def previous_question(request: Request):
    attempt = _attempt(request)
    _require_in_progress(attempt)
    attempt.previous()
    return {"position": attempt.state.current_position, "ok": True}


@router.post("/api/attempt/submit")
async def submit_attempt(request: Request):
    attempt = _attempt(request)
    score = attempt.submit()
    if score is None:
        raise HTTPException(status_code=400, detail="The test has not been started.")
    return {
        "score": _score_to_dict(score),
        "elapsed_seconds": attempt.elapsed_seconds,
        "timed_out": attempt.state.timed_out,
        "ok": True,
    }


@router.get("/api/attempt/results")
async def get_results(request: Request):
    attempt = _attempt(request)
    if not attempt.state.is_submitted:
        raise HTTPException(status_code=400, detail="The test has not been submitted yet.")

    score = engine.score(attempt.state)
    return {
        "test_id": attempt.state.test_id,
        "title": attempt.metadata.title if attempt.metadata else None,
        "score": _score_to_dict(score),
        "band": performance_band(score.percentage),
        "passed": is_passed(score.percentage, config.PASS_PERCENTAGE),
        "elapsed_seconds": attempt.elapsed_seconds,
        "timed_out": attempt.state.timed_out,
        "persisted": attempt.persisted,
        "review": [r.model_dump() for r in attempt.review()],
    }


@router.post("/api/attempt/retake")
async def retake_attempt(request: Request):
    attempt = _attempt(request)
    attempt.retake()
    return {**_attempt_status(attempt), "ok": True}


# ── History / session ────────────────────────────────────────────────────────

@router.get("/api/attempts")
async def list_attempts(request: Request):
    user_id = _user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Sign in to see your attempts.")
    records = request.app.state.recorder.list_attempts(user_id)
    return {"attempts": [r.model_dump(mode="json") for r in records]}


@router.post("/api/reset")
async def reset_session(request: Request):
    previous = session.reset(_sid(request))
    if previous is not None:
        previous.cancel_countdown()
    return {"ok": True}
