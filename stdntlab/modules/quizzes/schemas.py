from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime


class GeneratedQuestion(BaseModel):
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=2)
    correct_answer: str = Field(min_length=1)


class GeneratedQuiz(BaseModel):
    questions: List[GeneratedQuestion] = Field(min_length=1)


class QuizCreateRequest(BaseModel):
    """Body of POST /api/quiz/create; fields are checked by hand to return the exact error messages"""
    materialId: Optional[int] = None
    groupId: Optional[int] = None
    userId: Optional[int] = None


class QuizCreateResponse(BaseModel):
    success: bool = True
    quizId: int
    questionsCount: int


class QuizQuestionResponse(BaseModel):
    id: int
    quiz_id: int
    question: str
    options: List[str]
    correct_answer: Optional[str] = None


class QuizSummary(BaseModel):
    id: int
    group_id: int
    user_id: int
    title: str
    created_at: Optional[datetime] = None
    questions_count: int = 0
    creator_name: Optional[str] = None
    # Caller's submission, if any
    submitted: bool = False
    score: Optional[int] = None
    percentage: Optional[int] = None


class QuizDetail(BaseModel):
    id: int
    group_id: int
    user_id: int
    title: str
    created_at: Optional[datetime] = None
    questions: List[QuizQuestionResponse] = []


class QuizSubmitRequest(BaseModel):
    # question id -> chosen option
    answers: Dict[int, str]


class QuizSubmissionResponse(BaseModel):
    id: int
    quiz_id: int
    user_id: int
    score: int
    percentage: int
    total_questions: int
    completed_at: Optional[datetime] = None


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    score: int
    percentage: int
    total_questions: int
    completed_at: Optional[datetime] = None
