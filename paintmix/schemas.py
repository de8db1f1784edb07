"""Pydantic schemas for the paint mixing API.

Wire format is camelCase (``isMix``, ``totalDrops``, ``aiMetadata``);
snake_case names are accepted on input as well.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Workspace ---

class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class WorkspaceOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    slug: str
    name: str
    created_at: Optional[datetime] = None


# --- Recipe ---

class RecipeComponentOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    paint_id: Optional[Any] = None
    paint_name: Optional[str] = None
    brand: Optional[str] = None
    drops: Optional[Any] = None
    color: Optional[str] = None
    percentage: Optional[Any] = None


class RecipeOut(CamelModel):
    components: list[RecipeComponentOut]
    total_drops: int


# --- Paint ---

class PaintCreate(CamelModel):
    brand: str = Field(..., min_length=1, max_length=120)
    name: str = Field(..., min_length=1, max_length=200)
    reference: Optional[str] = Field(None, max_length=80)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_mix: bool = False
    notes: Optional[str] = None
    in_stock: bool = True
    # Any historical recipe shape is accepted and normalized on save.
    recipe: Optional[Union[list, dict]] = None

    @model_validator(mode="after")
    def _recipe_only_on_mixes(self):
        if self.recipe is not None and not self.is_mix:
            raise ValueError("Only mix paints can carry a recipe")
        return self


class PaintUpdate(CamelModel):
    brand: Optional[str] = Field(None, min_length=1, max_length=120)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    reference: Optional[str] = Field(None, max_length=80)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_mix: Optional[bool] = None
    notes: Optional[str] = None
    in_stock: Optional[bool] = None
    recipe: Optional[Union[list, dict]] = None


class PaintOut(CamelModel):
    id: str
    workspace_id: str
    brand: str
    name: str
    reference: Optional[str] = None
    color: Optional[str] = None
    is_mix: bool
    notes: str = ""
    in_stock: bool
    recipe: Optional[RecipeOut] = None
    ai_metadata: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Mixes ---

class MixGenerateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    target_brand: str = Field(..., min_length=1)
    target_name: str = Field(..., min_length=1)
    target_reference: Optional[str] = None
    target_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    # Persist the generated mix instead of returning a preview
    save: Union[bool, str, None] = None

    @property
    def should_save(self) -> bool:
        return self.save is True or self.save == "true"


class MixGenerateResponse(BaseModel):
    success: bool = True
    data: dict


class PromptPreviewOut(CamelModel):
    target_brand: str
    target_name: str
    target_color: Optional[str] = None
    prompt: str
    palette_size: int
    prompt_length: int
    provider: str
    model: str


class RawMixOut(CamelModel):
    target_brand: str
    target_name: str
    target_reference: Optional[str] = None
    target_color: Optional[str] = None
    prompt: str
    raw_response: str
    response_time: str
    prompt_length: int
    response_length: int
    palette_size: int
    provider: str
    model: str
    base_url: Optional[str] = None
    timestamp: str
