import re
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Workspace
from ..schemas import WorkspaceCreate, WorkspaceOut

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def generate_slug(name: str) -> str:
    slug = name.lower()
    slug = re.sub(r'[^a-z0-9]+', '-', slug)
    slug = slug.strip('-')
    return slug or "workspace"


@router.get("/", response_model=List[WorkspaceOut])
def list_workspaces(db: Session = Depends(get_db)):
    """List all workspaces sorted by creation date."""
    return db.query(Workspace).order_by(Workspace.created_at).all()


@router.post("/", response_model=WorkspaceOut, status_code=status.HTTP_201_CREATED)
def create_workspace(data: WorkspaceCreate, db: Session = Depends(get_db)):
    """Create a workspace (palette owner) with an auto-generated slug."""
    slug_base = generate_slug(data.name)
    slug = slug_base

    counter = 1
    while db.query(Workspace).filter(Workspace.slug == slug).first():
        slug = f"{slug_base}-{counter}"
        counter += 1

    workspace = Workspace(name=data.name, slug=slug)
    try:
        db.add(workspace)
        db.commit()
        db.refresh(workspace)
        return workspace
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Could not create workspace")
