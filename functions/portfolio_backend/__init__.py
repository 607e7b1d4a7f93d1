"""
Backend package for the portfolio site.

This package provides a FastAPI application for the contact-form inbox
and certificate/project media uploads, with key-value and object storage
abstractions so the same services run against Redis, a SQL database,
S3-compatible storage or in-memory test doubles.
"""
