"""Application package for the PMB (new student admission) backend.

This package exposes the models, repositories and services used by the
FastAPI application. Controllers live in `controllers`, the app factory
in `main`; individual modules contain the concrete implementations and
documentation.
"""

__version__ = "1.0.0"
