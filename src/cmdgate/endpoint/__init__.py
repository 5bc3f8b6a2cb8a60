"""HTTP endpoint module for cmdgate.

Provides the FastAPI application, the registry of permitted commands,
and the bounded subprocess runner used to execute them.
"""
