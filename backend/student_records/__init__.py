"""Application package for the student records backend.

This package exposes the validation, repository, service and model
modules used by the FastAPI application. It is intentionally
lightweight; individual modules contain the concrete implementations
and documentation.
"""
