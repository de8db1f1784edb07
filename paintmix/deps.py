"""FastAPI dependencies.

Provides:
- Database session dependency
- Workspace (palette owner) resolution (header -> env -> fallback)
- Paint store, provider cache and mix service wiring
"""

import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .ai.factory import ProviderCache, provider_cache
from .db import get_db
from .models import Workspace
from .services.mix_service import MixService
from .services.paint_store import PaintStore
from .settings import settings


def get_workspace(
    db: Session = Depends(get_db),
    x_workspace_id: Optional[str] = Header(None, alias="X-Workspace-Id"),
) -> Workspace:
    """Resolve the owning workspace.

    Resolution order:
    1. X-Workspace-Id header (UUID or slug); unknown values are a 404,
       never a silent fallback
    2. settings.default_workspace_slug
    3. First workspace in DB
    """
    workspace: Optional[Workspace] = None

    if x_workspace_id:
        try:
            workspace = db.get(Workspace, str(uuid.UUID(x_workspace_id)))
        except ValueError:
            workspace = db.query(Workspace).filter(Workspace.slug == x_workspace_id).first()

        if workspace:
            return workspace

        raise HTTPException(
            status_code=404,
            detail=f"Workspace '{x_workspace_id}' not found"
        )

    if settings.default_workspace_slug:
        workspace = db.query(Workspace).filter(
            Workspace.slug == settings.default_workspace_slug
        ).first()
        if workspace:
            return workspace

    workspace = db.query(Workspace).order_by(Workspace.created_at).first()
    if workspace:
        return workspace

    raise HTTPException(status_code=404, detail="No workspace found")


def get_paint_store(db: Session = Depends(get_db)) -> PaintStore:
    return PaintStore(db)


def get_provider_cache() -> ProviderCache:
    return provider_cache


def get_mix_service(
    store: PaintStore = Depends(get_paint_store),
    providers: ProviderCache = Depends(get_provider_cache),
) -> MixService:
    return MixService(store, providers)
