from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional

from models import QuizResult
from schemas.quiz import QuizResultCreate


def calculate_percentage(score: int, total_questions: int) -> int:
    """ round(score / total * 100) with halves rounded up """
    if total_questions <= 0:
        return 0
    return int(score / total_questions * 100 + 0.5)

def quiz_feedback(percentage: int) -> str:
    """ Banner text shown after a quiz completes """
    if percentage >= 90:
        return "Excellent! You're a sustainability expert!"
    if percentage >= 70:
        return "Great job! You know your stuff!"
    if percentage >= 50:
        return "Good effort! There's always more to learn."
    return "Keep learning! Sustainability is a journey."

async def create_quiz_result(
    db: AsyncSession,
    user_id: str,
    req: QuizResultCreate,
    quiz_title: str
) -> QuizResult:
    """
    Store one completed quiz; results are immutable afterwards.
    """
    new_result = QuizResult(
        user_id=str(user_id),
        quiz_type=req.quiz_type,
        quiz_title=quiz_title,
        score=req.score,
        total_questions=req.total_questions,
        percentage=calculate_percentage(req.score, req.total_questions),
        time_taken_seconds=req.time_taken_seconds,
        answers=[answer.model_dump() for answer in req.answers]
    )
    db.add(new_result)
    await db.commit()
    await db.refresh(new_result)

    return new_result

async def get_quiz_history(
    db: AsyncSession,
    user_id: str,
    quiz_type: Optional[str] = None,
    limit: int = 50
) -> List[QuizResult]:
    """
    The user's quiz results, newest first, optionally for one quiz type.
    """
    statement = (
        select(QuizResult)
        .where(QuizResult.user_id == str(user_id))
    )
    if quiz_type:
        statement = statement.where(QuizResult.quiz_type == quiz_type)
    statement = statement.order_by(QuizResult.completed_at.desc()).limit(limit)

    result = await db.execute(statement)

    return result.scalars().all()

async def get_best_score(db: AsyncSession, user_id: str, quiz_type: str) -> Optional[int]:
    statement = (
        select(QuizResult.percentage)
        .where(
            QuizResult.user_id == str(user_id),
            QuizResult.quiz_type == quiz_type
        )
        .order_by(QuizResult.percentage.desc())
        .limit(1)
    )
    result = await db.execute(statement)

    return result.scalar_one_or_none()

async def get_quiz_statistics(db: AsyncSession, user_id: str) -> Dict[str, dict]:
    """
    Attempts, best and average percentage per quiz type.
    """
    statement = (
        select(QuizResult)
        .where(QuizResult.user_id == str(user_id))
    )
    result = await db.execute(statement)

    stats: Dict[str, dict] = {}
    for row in result.scalars().all():
        entry = stats.setdefault(row.quiz_type, {
            "attempts": 0,
            "best_score": 0,
            "average_score": 0.0,
            "total_questions": row.total_questions,
        })
        entry["attempts"] += 1
        entry["best_score"] = max(entry["best_score"], row.percentage)
        entry["average_score"] += row.percentage

    for entry in stats.values():
        entry["average_score"] = entry["average_score"] / entry["attempts"]

    return stats
