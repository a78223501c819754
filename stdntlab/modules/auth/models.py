# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Supabase Auth owns credentials, sessions and JWTs (auth.users).
# The application profile lives in the public "Users" table, linked by
# Users.user_id = auth.users.id; the numeric Users.id is the id every other
# table references.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

On registration a "Users" row is created with email and name so that the
account has a numeric id before its first request.
"""
