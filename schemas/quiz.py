from sqlmodel import SQLModel, Field

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID


class QuizAnswer(SQLModel):
    question_id: str
    selected_answer: int
    correct_answer: int
    is_correct: bool
    time_spent: Optional[int] = None

class QuizResultCreate(SQLModel):
    quiz_type: str = Field(min_length=1, max_length=50)
    quiz_title: Optional[str] = None
    score: int = Field(ge=0)
    total_questions: int = Field(gt=0)
    time_taken_seconds: Optional[int] = Field(default=None, ge=0)
    answers: List[QuizAnswer] = []

class QuizResultRead(SQLModel):
    id: UUID
    quiz_type: str
    quiz_title: str
    score: int
    total_questions: int
    percentage: int
    time_taken_seconds: Optional[int] = None
    answers: List[QuizAnswer] = []
    completed_at: datetime
    feedback: str

class QuizTypeStatistics(SQLModel):
    attempts: int
    best_score: int
    average_score: float
    total_questions: int

class QuizStatisticsResponse(SQLModel):
    statistics: Dict[str, QuizTypeStatistics]

class BestScoreResponse(SQLModel):
    quiz_type: str
    best_score: Optional[int] = None
