# Dependencies package init
"""
Rollbook Backend — Shared FastAPI Dependencies
================================================

    - auth.require_token: bearer-token gate for the record routes
"""
