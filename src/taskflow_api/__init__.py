"""
TaskFlow AI backend package.

The FastAPI application lives in `taskflow_api.main:app`; it is not imported
here so that importing the package has no side effects (logging setup,
settings resolution).
"""

__version__ = "0.1.0"
