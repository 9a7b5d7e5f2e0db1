from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class ClassifyIn(BaseModel):
    symptoms: List[str] = Field(default_factory=list)


class RecommendationOut(BaseModel):
    title: str
    description: str
    action_label: str
    severity_class: str


class ClassifyOut(BaseModel):
    urgency: Optional[str] = None
    recommendation: Optional[RecommendationOut] = None
    # free-text symptoms the rule tables do not cover
    unclassified: List[str] = Field(default_factory=list)


class CatalogOut(BaseModel):
    buckets: Dict[str, List[str]]
