# Routes package init
"""
Rollbook Backend — API Routes Package
=======================================

Route Inventory:
    - students.py: /api/students CRUD (bearer token required)
    - health.py:   GET /health (open)

Routes stay thin: they read the request, call StudentService, and return
the schema. Status codes for failures come from the exception handlers.
"""
