"""
imdbId registry shared by movies and series.

Every movie or series claims its imdbId in the "imdbIds" collection, keyed
by `_id`, so two concurrent creators with the same imdbId cannot both win
even though the per-collection existence checks run first.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import IMDB_IDS, storage_errors
from errors import AlreadyExists

logger = logging.getLogger(__name__)


class ImdbIdRegistry:
    def __init__(self, db: Database):
        self.collection = db[IMDB_IDS]

    def claim(self, imdb_id: str, owner_type: str, owner_id: ObjectId) -> None:
        # DuplicateKeyError is a PyMongoError, so it is handled inside the guard
        with storage_errors(f"imdbIds /claim with imdbId: '{imdb_id}'"):
            try:
                self.collection.insert_one({"_id": imdb_id, "ownerType": owner_type, "ownerId": owner_id})
            except DuplicateKeyError:
                logger.warning("Warn in imdbIds /claim with imdbId: '%s' [%s]", imdb_id, AlreadyExists.message)
                raise AlreadyExists()

    def release(self, imdb_id: str, owner_id: ObjectId) -> None:
        with storage_errors(f"imdbIds /release with imdbId: '{imdb_id}'"):
            self.collection.delete_one({"_id": imdb_id, "ownerId": owner_id})

    def take_over(self, imdb_id: str, stale_owner_id: ObjectId, owner_type: str, owner_id: ObjectId) -> bool:
        """Hand a claim whose owner document is gone to a new owner.

        Only replaces the claim while it still names `stale_owner_id`, so two
        callers repairing the same claim cannot both win.
        """
        with storage_errors(f"imdbIds /takeOver with imdbId: '{imdb_id}'"):
            result = self.collection.replace_one(
                {"_id": imdb_id, "ownerId": stale_owner_id},
                {"_id": imdb_id, "ownerType": owner_type, "ownerId": owner_id},
            )
        if result.matched_count == 0:
            return False
        logger.warning(
            "Warn in imdbIds /takeOver with imdbId: '%s' [stale claim of '%s' replaced]", imdb_id, stale_owner_id
        )
        return True

    def owner_of(self, imdb_id: str) -> Optional[Dict[str, Any]]:
        with storage_errors(f"imdbIds /ownerOf with imdbId: '{imdb_id}'"):
            return self.collection.find_one({"_id": imdb_id})
