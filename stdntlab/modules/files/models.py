"""
File database model (handled by Supabase)

files:
    id, group_id, user_id (uploader, Users.id), file_id (uuid),
    path (object key in the storage bucket), file_name, mimetype, size,
    created_at

Object keys look like {group_id}/{user_id}/{timestamp_ms}-{sanitized_name}.
"""
