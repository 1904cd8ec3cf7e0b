"""Core gameplay engines (2048 merge grid, minefield) and their event records.

Kept free of FastAPI concerns so it can be reused by API routes, terminal front ends, and tests.
"""
