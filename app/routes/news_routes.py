from fastapi import APIRouter
from typing import List

from app import storage
from app.models.news_model import NewsArticle, NewsIn

router = APIRouter(prefix="/api/news", tags=["News"])


@router.get("", response_model=List[NewsArticle])
def get_news():
    return storage.list_news()


@router.post("", response_model=NewsArticle, status_code=201)
def create_news(article: NewsIn):
    return storage.create_news(article.title, article.content)
