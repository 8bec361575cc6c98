"""
Pydantic schemas for API request/response validation.

Provides data models for all API endpoints including authentication,
company settings, customer/project CRUD, documents, messaging and billing.
"""
