"""
Service layer.

Each service encapsulates the business logic for one domain and works
on the SQLite connection handed to it by the endpoint, so the same
methods can be driven from the API, the CLI or tests.  Failures are
raised as ``core.errors.AppError`` subclasses.
"""
