from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import models, schemas
from ..deps import get_paint_store, get_workspace
from ..services.paint_store import PaintStore, paint_to_dict
from ..services.recipe_format import RecipeFormatError

router = APIRouter(prefix="/paints", tags=["paints"])


@router.get("/", response_model=list[schemas.PaintOut])
def list_paints(
    brand: Optional[str] = None,
    is_mix: Optional[bool] = None,
    in_stock: Optional[bool] = None,
    search: Optional[str] = None,
    workspace: models.Workspace = Depends(get_workspace),
    store: PaintStore = Depends(get_paint_store),
):
    """List the workspace palette with optional filters."""
    paints = store.list_by_owner(
        workspace.id, brand=brand, is_mix=is_mix, in_stock=in_stock, search=search
    )
    return [paint_to_dict(p) for p in paints]


@router.post("/", response_model=schemas.PaintOut, status_code=status.HTTP_201_CREATED)
def create_paint(
    payload: schemas.PaintCreate,
    workspace: models.Workspace = Depends(get_workspace),
    store: PaintStore = Depends(get_paint_store),
):
    try:
        paint = store.create_owned(workspace.id, payload.model_dump())
    except RecipeFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return paint_to_dict(paint)


@router.get("/{paint_id}", response_model=schemas.PaintOut)
def get_paint(
    paint_id: str,
    workspace: models.Workspace = Depends(get_workspace),
    store: PaintStore = Depends(get_paint_store),
):
    paint = store.get_owned(workspace.id, paint_id)
    if not paint:
        raise HTTPException(status_code=404, detail="Paint not found")
    return paint_to_dict(paint)


@router.patch("/{paint_id}", response_model=schemas.PaintOut)
def update_paint(
    paint_id: str,
    payload: schemas.PaintUpdate,
    workspace: models.Workspace = Depends(get_workspace),
    store: PaintStore = Depends(get_paint_store),
):
    try:
        paint = store.update_owned(workspace.id, paint_id, payload.model_dump(exclude_unset=True))
    except RecipeFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not paint:
        raise HTTPException(status_code=404, detail="Paint not found")
    return paint_to_dict(paint)


@router.delete("/{paint_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_paint(
    paint_id: str,
    workspace: models.Workspace = Depends(get_workspace),
    store: PaintStore = Depends(get_paint_store),
):
    if not store.delete_owned(workspace.id, paint_id):
        raise HTTPException(status_code=404, detail="Paint not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
