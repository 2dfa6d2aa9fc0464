from pydantic import BaseModel, Field


class NewsIn(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class NewsArticle(NewsIn):
    id: int
    created_at: str
