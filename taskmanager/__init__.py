"""
Task Manager - authenticated task list backed by a hosted Supabase project.

The package serves a small browser client and keeps the UI state of every
connected tab on the server: sign-in when there is no session, and a live
task list (add / toggle / delete) when there is one.

Example usage:
    from taskmanager import AppFactory

    factory = AppFactory()
    shell = factory.create_shell(connection)

CLI (after pip install):
    taskmanager-server --port 8000
"""

from taskmanager.version import VERSION

__version__ = VERSION
__all__ = [
    "AppFactory",
    "VERSION",
    "__version__",
]


def __getattr__(name: str):
    """Lazy import to avoid building the app factory at package import time."""
    if name == "AppFactory":
        from taskmanager.infrastructure.app_factory import AppFactory
        globals()["AppFactory"] = AppFactory
        return AppFactory
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
