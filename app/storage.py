# app/storage.py
# News board: an append-only list of articles kept under one key in a JSON file
import json
import os
import threading
import time
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from app.config import NEWS_DB_PATH
from app.errors import StoreFailure, ValidationError

logger = logging.getLogger(__name__)

NEWS_KEY = "news"
_lock = threading.Lock()


def _read_db() -> Dict[str, Any]:
    """
    Read the news file.
    If the file is missing, empty or corrupted, the board reads as empty.
    """
    try:
        with open(NEWS_DB_PATH, "r") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {NEWS_KEY: []}
    except json.JSONDecodeError:
        logger.warning("News file %s is corrupted, starting with an empty board", NEWS_DB_PATH)
        return {NEWS_KEY: []}
    if not isinstance(data, dict):
        logger.warning("News file %s does not hold an object, starting with an empty board", NEWS_DB_PATH)
        return {NEWS_KEY: []}
    if not isinstance(data.get(NEWS_KEY), list):
        data[NEWS_KEY] = []
    return data


def _write_db(data: Dict[str, Any]):
    directory = os.path.dirname(NEWS_DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(NEWS_DB_PATH, "w") as f:
        json.dump(data, f, indent=2)


def list_news() -> List[Dict[str, Any]]:
    with _lock:
        try:
            return _read_db()[NEWS_KEY]
        except OSError as e:
            logger.exception("Failed to read news")
            raise StoreFailure("Failed to read news") from e


def create_news(title: str, content: str) -> Dict[str, Any]:
    if not title or not content:
        raise ValidationError("Title and content are required")

    with _lock:
        try:
            db = _read_db()
            articles = db[NEWS_KEY]
            article_id = int(time.time() * 1000)
            if articles and article_id <= articles[-1]["id"]:
                article_id = articles[-1]["id"] + 1
            article = {
                "id": article_id,
                "title": title,
                "content": content,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            articles.append(article)
            _write_db(db)
        except OSError as e:
            logger.exception("Failed to save news")
            raise StoreFailure("Failed to save news") from e

    logger.info("Published news article %s", article_id)
    return article
