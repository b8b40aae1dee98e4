"""Core composition engine (definitions, branch state, the monoid engine and its registry).

Kept free of FastAPI and Redis concerns so it can be driven by any runtime binding layer.
"""
