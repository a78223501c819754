"""
Quiz database models (handled by Supabase)

quizzes:
    id, group_id, user_id (creator, Users.id), title, created_at

quiz_questions:
    id, quiz_id, question, options (jsonb list of strings), correct_answer

quiz_submission:
    id, quiz_id, user_id, score, percentage, total_questions, completed_at
"""
