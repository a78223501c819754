from supabase import Client
from stdntlab.core import cache as cache_keys
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.modules.quizzes.generator import QuizGenerator, QuizGenerationError
from stdntlab.modules.quizzes.schemas import (
    QuizCreateResponse, QuizSummary, QuizDetail, QuizQuestionResponse,
    QuizSubmissionResponse, LeaderboardEntry
)
from stdntlab.modules.todos.service import TodoService
from stdntlab.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

QUIZ_TITLE_PREFIX = "Quiz: "
TODO_TITLE_PREFIX = "Complete Quiz: "


def quiz_todo_title(quiz_title: str) -> str:
    material_title = quiz_title[len(QUIZ_TITLE_PREFIX):] if quiz_title.startswith(QUIZ_TITLE_PREFIX) else quiz_title
    return f"{TODO_TITLE_PREFIX}{material_title}"


def grade(questions: List[Dict[str, Any]], answers: Dict[int, str]) -> Dict[str, int]:
    score = sum(1 for q in questions if answers.get(q["id"]) == q["correct_answer"])
    total = len(questions)
    return {
        "score": score,
        "total_questions": total,
        "percentage": round(score / total * 100) if total else 0,
    }


class QuizService:
    def __init__(self, supabase: Client, cache: Optional[ResourceCache] = None):
        self.supabase = supabase
        self.cache = cache if cache is not None else get_resource_cache()

    def _get_material(self, material_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("material")\
                .select("*")\
                .eq("id", material_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching material {material_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Material not found")
        return result.data

    async def create_quiz_from_material(
        self,
        material_id: int,
        group_id: int,
        user_id: int,
        generator: QuizGenerator
    ) -> QuizCreateResponse:
        """
        Generate a quiz from a material and store it with its questions.

        The quiz row is deleted again if the questions cannot be stored. A
        group todo for taking the quiz is created best-effort.
        """
        material = self._get_material(material_id)
        if material["group_id"] != group_id:
            raise HTTPException(status_code=400, detail="Group ID mismatch with material")

        try:
            quiz_data = await generator.generate(material["title"], material["content"])
        except QuizGenerationError as e:
            raise HTTPException(status_code=500, detail=str(e))

        try:
            quiz_result = self.supabase.table("quizzes").insert({
                "group_id": group_id,
                "user_id": user_id,
                "title": f"{QUIZ_TITLE_PREFIX}{material['title']}",
            }).execute()
            if not quiz_result.data:
                raise ValueError("insert returned no rows")
        except Exception as e:
            logger.error(f"Error creating quiz: {e}")
            raise HTTPException(status_code=500, detail="Failed to create quiz")

        quiz = quiz_result.data[0]

        try:
            self.supabase.table("quiz_questions").insert([
                {
                    "quiz_id": quiz["id"],
                    "question": q.question,
                    "options": q.options,
                    "correct_answer": q.correct_answer,
                }
                for q in quiz_data.questions
            ]).execute()
        except Exception as e:
            logger.error(f"Error creating quiz questions: {e}")
            try:
                self.supabase.table("quizzes").delete().eq("id", quiz["id"]).execute()
            except Exception as rollback_error:
                logger.error(f"Rollback of quiz {quiz['id']} failed: {rollback_error}")
            raise HTTPException(status_code=500, detail="Failed to create quiz questions")

        try:
            self.supabase.table("Todos").insert({
                "user_id": user_id,
                "title": f"{TODO_TITLE_PREFIX}{material['title']}",
                "description": f'Quiz created from material "{material["title"]}"',
                "status": "pending",
                "type": "group",
                "group_id": group_id,
            }).execute()
            self.cache.invalidate_resource(cache_keys.TODOS)
        except Exception as e:
            logger.error(f"Error creating todo for quiz {quiz['id']}: {e}")

        return QuizCreateResponse(success=True, quizId=quiz["id"], questionsCount=len(quiz_data.questions))

    def get_quiz_row(self, quiz_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("quizzes")\
                .select("*")\
                .eq("id", quiz_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Quiz not found")
        return result.data

    def _questions(self, quiz_id: int) -> List[Dict[str, Any]]:
        result = self.supabase.table("quiz_questions")\
            .select("*")\
            .eq("quiz_id", quiz_id)\
            .order("id")\
            .execute()
        return result.data or []

    def _submission(self, quiz_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("quiz_submission")\
            .select("*")\
            .eq("quiz_id", quiz_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def list_group_quizzes(self, group_id: int, user_id: int) -> List[QuizSummary]:
        """Quizzes of a group, newest first, with the caller's result where submitted"""
        try:
            result = self.supabase.table("quizzes")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .execute()
            quizzes = result.data or []
            if not quizzes:
                return []

            quiz_ids = [q["id"] for q in quizzes]
            questions_result = self.supabase.table("quiz_questions")\
                .select("quiz_id")\
                .in_("quiz_id", quiz_ids)\
                .execute()
            counts: Dict[int, int] = {}
            for row in questions_result.data or []:
                counts[row["quiz_id"]] = counts.get(row["quiz_id"], 0) + 1

            submissions_result = self.supabase.table("quiz_submission")\
                .select("*")\
                .eq("user_id", user_id)\
                .in_("quiz_id", quiz_ids)\
                .execute()
            submissions = {s["quiz_id"]: s for s in (submissions_result.data or [])}
            names = UserService(self.supabase).get_names([q["user_id"] for q in quizzes])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        summaries = []
        for quiz in quizzes:
            submission = submissions.get(quiz["id"])
            summaries.append(QuizSummary(
                **quiz,
                questions_count=counts.get(quiz["id"], 0),
                creator_name=names.get(quiz["user_id"], "Unknown"),
                submitted=submission is not None,
                score=submission["score"] if submission else None,
                percentage=submission["percentage"] if submission else None,
            ))
        return summaries

    def get_quiz(self, quiz_id: int, include_answers: bool = False) -> QuizDetail:
        quiz = self.get_quiz_row(quiz_id)
        try:
            questions = self._questions(quiz_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return QuizDetail(
            **quiz,
            questions=[
                QuizQuestionResponse(
                    id=q["id"],
                    quiz_id=q["quiz_id"],
                    question=q["question"],
                    options=q.get("options") or [],
                    correct_answer=q["correct_answer"] if include_answers else None,
                )
                for q in questions
            ],
        )

    def has_submitted(self, quiz_id: int, user_id: int) -> bool:
        try:
            return self._submission(quiz_id, user_id) is not None
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def submit_quiz(self, quiz_id: int, user_id: int, answers: Dict[int, str]) -> QuizSubmissionResponse:
        """Grade and store one attempt, then mark the quiz's group todo completed for the user"""
        quiz = self.get_quiz_row(quiz_id)
        try:
            if self._submission(quiz_id, user_id) is not None:
                raise HTTPException(status_code=409, detail="You have already attempted this quiz")
            questions = self._questions(quiz_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not questions:
            raise HTTPException(status_code=400, detail="This quiz has no questions")
        if any(q["id"] not in answers for q in questions):
            raise HTTPException(status_code=400, detail="Please answer all questions before submitting")

        result = grade(questions, answers)
        try:
            submission_result = self.supabase.table("quiz_submission").insert({
                "quiz_id": quiz_id,
                "user_id": user_id,
                "score": result["score"],
                "percentage": result["percentage"],
                "total_questions": result["total_questions"],
                "completed_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            if not submission_result.data:
                raise ValueError("insert returned no rows")
        except Exception as e:
            logger.error(f"Error submitting quiz {quiz_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit quiz")

        self._complete_quiz_todo(quiz, user_id)
        return QuizSubmissionResponse(**submission_result.data[0])

    def _complete_quiz_todo(self, quiz: Dict[str, Any], user_id: int):
        try:
            todos_result = self.supabase.table("Todos")\
                .select("id")\
                .eq("group_id", quiz["group_id"])\
                .eq("title", quiz_todo_title(quiz["title"]))\
                .limit(1)\
                .execute()
            if not todos_result.data:
                return
            TodoService(self.supabase, self.cache).record_completion(todos_result.data[0]["id"], user_id)
            self.cache.invalidate(user_id, cache_keys.TODOS)
        except Exception as e:
            logger.error(f"Error completing quiz todo for quiz {quiz['id']}: {e}")

    def get_leaderboard(self, quiz_id: int) -> List[LeaderboardEntry]:
        """Submissions ranked by score, earlier completion first on ties"""
        self.get_quiz_row(quiz_id)
        try:
            result = self.supabase.table("quiz_submission")\
                .select("*")\
                .eq("quiz_id", quiz_id)\
                .order("score", desc=True)\
                .order("completed_at")\
                .execute()
            submissions = result.data or []
            names = UserService(self.supabase).get_names([s["user_id"] for s in submissions])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            LeaderboardEntry(
                rank=index,
                user_id=s["user_id"],
                name=names.get(s["user_id"], "Unknown"),
                score=s["score"],
                percentage=s["percentage"],
                total_questions=s["total_questions"],
                completed_at=s.get("completed_at"),
            )
            for index, s in enumerate(submissions, start=1)
        ]
