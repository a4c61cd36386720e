"""Top-level package for the fair-competition compliance review service."""

# Lazy imports keep `fair_review.app.core` importable without building the app.

__all__ = ["create_app", "app"]


def __getattr__(name):
    """Lazy import to prevent circular dependencies."""
    if name == "app" or name == "create_app":
        from fair_review.app.main import app as _app, create_app as _create_app
        if name == "app":
            return _app
        return _create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
