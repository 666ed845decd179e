"""Backend REST client and wire schemas.

Import from the submodules (`ordercore.api.client`, `ordercore.api.schemas`).
"""
