# Services package init
"""
Rollbook Backend — Services Layer
===================================

Service Inventory:
    - AttachmentStore:   upload validation, storage, replacement, deletion
    - StudentRepository: CRUD queries on the students table
    - StudentService:    record lifecycle; orders file and row writes

Services never build HTTP responses; they return schemas or raise the
exceptions in rollbook.exceptions.
"""
