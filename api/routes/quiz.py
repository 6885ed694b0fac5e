from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

import logging
from typing import List, Optional

from schemas.quiz import (
    QuizResultCreate, QuizResultRead,
    QuizStatisticsResponse, BestScoreResponse
)

import crud.quiz
from core.db import SessionDep
from core.personas import quiz_title
from api.deps import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["Quiz"])


def _to_read(result) -> QuizResultRead:
    return QuizResultRead(
        id=result.id,
        quiz_type=result.quiz_type,
        quiz_title=result.quiz_title,
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage,
        time_taken_seconds=result.time_taken_seconds,
        answers=result.answers or [],
        completed_at=result.completed_at,
        feedback=crud.quiz.quiz_feedback(result.percentage)
    )

def _db_error(operation: str, e: Exception) -> HTTPException:
    logger.error("DB error in %s: %s", operation, e)
    return HTTPException(
        status_code=500,
        detail="Internal Server Error: DB operation failed"
    )

@router.post("/results", response_model=QuizResultRead, status_code=201)
async def save_quiz_result(req: QuizResultCreate, user: CurrentUser, db: SessionDep):
    """ Record one completed quiz; the percentage is derived server-side. """
    if req.score > req.total_questions:
        raise HTTPException(status_code=422, detail="score cannot exceed total_questions")

    try:
        result = await crud.quiz.create_quiz_result(
            db, user.id, req, req.quiz_title or quiz_title(req.quiz_type)
        )
        logger.info("Saved quiz result %s (%s) for user %s", result.id, result.quiz_type, user.id)
        return _to_read(result)
    except SQLAlchemyError as e:
        raise _db_error("POST /quiz/results", e)

@router.get("/results", response_model=List[QuizResultRead])
async def get_quiz_history(
    user: CurrentUser,
    db: SessionDep,
    quiz_type: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200)
):
    try:
        results = await crud.quiz.get_quiz_history(db, user.id, quiz_type, limit)
        return [_to_read(r) for r in results]
    except SQLAlchemyError as e:
        raise _db_error("GET /quiz/results", e)

@router.get("/best/{quiz_type}", response_model=BestScoreResponse)
async def get_best_score(quiz_type: str, user: CurrentUser, db: SessionDep):
    try:
        best = await crud.quiz.get_best_score(db, user.id, quiz_type)
        return BestScoreResponse(quiz_type=quiz_type, best_score=best)
    except SQLAlchemyError as e:
        raise _db_error(f"GET /quiz/best/{quiz_type}", e)

@router.get("/statistics", response_model=QuizStatisticsResponse)
async def get_quiz_statistics(user: CurrentUser, db: SessionDep):
    try:
        return {"statistics": await crud.quiz.get_quiz_statistics(db, user.id)}
    except SQLAlchemyError as e:
        raise _db_error("GET /quiz/statistics", e)
