# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: bigint (primary key)
- name: text (not null)
- description: text (nullable)
- tags: text[] (nullable)
- is_public: boolean (default: true)
- max_members: integer (default: 4)
- owner_id: bigint (foreign key to Users.id, not null) - creator
- created_from_match: boolean (default: false)
- created_at: timestamp (default: now())

group_members:
- id: bigint (primary key)
- group_id: bigint (foreign key to groups.id, not null)
- user_id: bigint (foreign key to Users.id, not null)
- role: text (not null, default: 'member') - values: owner, admin, member
- joined_at: timestamp (default: now())

Exactly one row per group has role 'owner' (the creator). The owner cannot
leave; there is no ownership transfer.
"""
