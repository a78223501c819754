"""
Todo database models (handled by Supabase)

Todos:
    id, user_id (creator, Users.id), title, description, due_date,
    status ('pending' | 'in_progress' | 'completed'),
    type ('personal' | 'group'), priority ('low' | 'medium' | 'high' | null),
    group_id (nullable), created_at, updated_at

todo_completions:
    id, todo_id, user_id, completed (bool), completed_at

A todo with a group_id keeps its own status untouched; each member's
completion lives in todo_completions.
"""
