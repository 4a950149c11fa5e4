"""Nano Banana relay - FastAPI REST API layer.

Modules
-------
main
    FastAPI application with the route handlers, CORS and error-envelope
    handling, and the ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
"""
