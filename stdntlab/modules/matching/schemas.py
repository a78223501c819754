from pydantic import BaseModel
from typing import Optional, List


class GroupRecommendation(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    tags: List[str] = []
    max_members: int
    member_count: int
    match_score: float
