"""
Ordering Core

Client-side core of the ordering app:
- auth: credential store and session manager
- cart: write-through cart synchronizer
- location: location cache and delivery eligibility
- api: backend REST client and wire schemas

Note: Imports are lazy so `ordercore.config` and `ordercore.logging`
can be used without building the whole service graph.
"""

__version__ = "0.1.0"

__all__ = [
    "AppServices",
    "create_app_services",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "AppServices":
        from ordercore.app import AppServices
        return AppServices
    if name == "create_app_services":
        from ordercore.app import create_app_services
        return create_app_services
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
