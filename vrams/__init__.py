"""FastAPI application package for the voter application service.

Exposes the application factory. Business logic lives in `vrams/logic/`,
record and request models in `vrams/models/` and route handlers in
`vrams/routes/`.
"""

from __future__ import annotations

from vrams.main import create_app

__all__ = ["create_app"]
