# Supabase table: Users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: bigint (primary key) - numeric id referenced by every other table
- user_id: uuid (foreign key to auth.users.id, unique)
- email: text (not null)
- name: text (nullable)
- timezone: text (nullable)
- days_of_week: text[] (nullable)
- study_times: text[] (nullable)
- education_level: text (nullable)
- subjects: text[] (nullable)
- study_style: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
