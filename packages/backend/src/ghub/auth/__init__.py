"""Authentication and authorization (backend side).

Learn: Users sign up and sign in with email/password and receive JWT
access/refresh tokens. Every request resolves to a RequestIdentity —
possibly anonymous — which the scoped gateway uses for row-level scoping.
"""
