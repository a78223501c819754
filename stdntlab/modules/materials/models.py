"""
Material database model (handled by Supabase)

material:
    id, group_id, user_id (author, Users.id), title, content,
    created_at, updated_at
"""
