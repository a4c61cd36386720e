"""FastAPI application for compliance review projects."""
