"""
Response schemas for the conflict API.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActorDTO(WireModel):
    name: str
    country_code: str
    type: str
    label: str


class ConflictEventDTO(WireModel):
    id: str
    lat: float
    lon: float
    name: str
    url: str
    domain: str
    sharing_image: str
    date_added: str
    tone: float
    goldstein_scale: Optional[float] = None
    num_articles: int
    category: str

    actor1: Optional[ActorDTO] = None
    actor2: Optional[ActorDTO] = None
    cameo_code: Optional[str] = None
    cameo_root_code: Optional[str] = None
    cameo_description: Optional[str] = None
    quad_class: Optional[str] = None
    geo_precision: str = "unknown"
    event_date: Optional[str] = None
    num_sources: int = 0
    num_mentions: int = 0
    is_enriched: bool = False


class ConflictResponseDTO(WireModel):
    events: List[ConflictEventDTO]
    total: int
    timestamp: str
    partial: bool


class CategoryDTO(WireModel):
    value: str
    label: str
    color: str
