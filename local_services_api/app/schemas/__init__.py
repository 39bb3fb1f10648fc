"""
Pydantic schemas for request payloads and response shapes.

Each module covers one domain (users, services, service requests,
feedback).  ``common`` holds the response envelope and pagination
wrapper shared by every endpoint.
"""
