"""
MongoDB access for the catalog.

Connection settings come from the environment (or a .env file):
- DATABASE_URL: MongoDB connection string
- DATABASE_NAME: database holding the movies, series and reviews collections
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import InternalServerError

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "cinema-catalog-db")

MOVIES = "movies"
SERIES = "series"
REVIEWS = "reviews"
IMDB_IDS = "imdbIds"

_client: Optional[MongoClient] = None
db: Optional[Database] = None

if DATABASE_URL:
    try:
        _client = MongoClient(DATABASE_URL)
        db = _client[DATABASE_NAME]
        logger.info("Connected to MongoDB database '%s'", DATABASE_NAME)
    except PyMongoError as e:
        logger.error("Failed to connect to MongoDB: %s", e)
        db = None


def get_db() -> Database:
    if db is None:
        raise InternalServerError("Database not available")
    return db


def ensure_indexes(database: Database) -> None:
    # imdbId is unique per collection; the union is guarded by the imdbIds registry
    for name in (MOVIES, SERIES):
        database[name].create_index([("imdbId", ASCENDING)], unique=True)
        database[name].create_index([("reviewIds", ASCENDING)])
    database[REVIEWS].create_index([("ownerId", ASCENDING)])


@contextmanager
def storage_errors(action: str):
    """Turn driver failures raised inside the block into InternalServerError."""
    try:
        yield
    except PyMongoError as e:
        logger.error("Error in %s [%s] (%s)", action, InternalServerError.message, e)
        raise InternalServerError() from e


def _as_document(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    return dict(data)


def create_document(collection: Collection, data: Union[BaseModel, Dict[str, Any]]) -> Any:
    result = collection.insert_one(_as_document(data))
    return result.inserted_id


def get_documents(
    collection: Collection,
    filter_dict: Optional[Dict[str, Any]] = None,
    skip: int = 0,
    limit: int = 0,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    cursor = collection.find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
