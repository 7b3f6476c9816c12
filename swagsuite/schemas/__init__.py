"""
schemas/ — Pydantic request models for the SwagSuite API

Provides input validation, auto-generated OpenAPI docs, and
consistent error messages across all endpoints.
"""
