"""
Reviews and their attachment to movies and series.

The owning movie or series lists the review in its `reviewIds` array; the
review keeps `ownerType`/`ownerId` as the back-reference. Reviews created
before the back-reference existed are resolved by scanning the movies and
then the series collection for their id.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database

from database import REVIEWS, create_document, get_documents, storage_errors
from errors import AppError, Empty, FieldNotAllowed, NotExists, NotFound, WrongImdbId
from formats import is_imdb_id
from repository import (
    PATCH_NO_OP,
    UPDATE_NO_OP,
    mutation_result,
    normalize_paging,
    page_envelope,
    page_offset,
    parse_id,
    unchanged,
)
from schemas import REVIEW_PATCH_FIELDS, Review, ReviewResponse, ReviewUpdate, coerce_patch_value, utc_now

logger = logging.getLogger(__name__)


class ReviewRepository:
    route = "reviews"
    patch_fields = REVIEW_PATCH_FIELDS

    def __init__(self, db: Database, catalog):
        self.db = db
        self.catalog = catalog
        self.collection = db[REVIEWS]

    # ---------------------- Queries ----------------------

    def find_all(self, page: Optional[int] = None, size: Optional[int] = None) -> Dict[str, Any]:
        logger.info("GET reviews /findAll executed")
        page_num, page_size = normalize_paging(page, size)

        with storage_errors("reviews /findAll"):
            total_items = self.collection.count_documents({})
            docs = get_documents(
                self.collection,
                skip=page_offset(page_num, page_size),
                limit=page_size,
                sort=[("_id", ASCENDING)],
            )

        if not docs:
            logger.warning("Warn in reviews /findAll [%s]", Empty.message)
            raise Empty()

        items = [ReviewResponse.from_mongo(doc).model_dump(by_alias=True) for doc in docs]
        return page_envelope("reviews", items, page_num, total_items, page_size)

    def find_all_by_imdb_id(self, imdb_id: str) -> List[Dict[str, Any]]:
        logger.info("GET reviews /findAllByImdbId with imdbId: '%s' executed", imdb_id)
        if not is_imdb_id(imdb_id):
            logger.error("Error in reviews /findAllByImdbId with imdbId: '%s' [%s]", imdb_id, WrongImdbId.message)
            raise WrongImdbId()

        _, _, owner = self._resolve_owner(imdb_id, "findAllByImdbId")
        review_ids = owner.get("reviewIds", [])

        with storage_errors(f"reviews /findAllByImdbId with imdbId: '{imdb_id}'"):
            docs = get_documents(self.collection, {"_id": {"$in": review_ids}})

        if not docs:
            logger.warning("Warn in reviews /findAllByImdbId [%s]", Empty.message)
            raise Empty()

        # keep the owner's ordering
        position = {rid: index for index, rid in enumerate(review_ids)}
        docs.sort(key=lambda doc: position.get(doc["_id"], len(position)))
        return [ReviewResponse.from_mongo(doc).model_dump(by_alias=True) for doc in docs]

    def find_by_id(self, id: str) -> ReviewResponse:
        logger.info("GET reviews /findById with id: '%s' executed", id)
        obj_id = parse_id(id, self.route, "findById")
        with storage_errors(f"reviews /findById with id: '{id}'"):
            doc = self.collection.find_one({"_id": obj_id})
        if doc is None:
            logger.warning("Warn in reviews /findById with id: '%s' [%s]", id, NotFound.message)
            raise NotFound()
        return ReviewResponse.from_mongo(doc)

    def movie_exists_by_review_id(self, review_id: ObjectId) -> Tuple[bool, Optional[ObjectId]]:
        return self.catalog.movies.find_owner_by_review_id(review_id)

    def series_exists_by_review_id(self, review_id: ObjectId) -> Tuple[bool, Optional[ObjectId]]:
        return self.catalog.series.find_owner_by_review_id(review_id)

    # ---------------------- Mutations ----------------------

    def create(self, review: Review, imdb_id: str) -> Dict[str, Any]:
        logger.info("POST reviews /new executed")
        if not is_imdb_id(imdb_id):
            logger.error("Error in reviews /new with imdbId: '%s' [%s]", imdb_id, WrongImdbId.message)
            raise WrongImdbId()

        owner_type, owner_repo, owner = self._resolve_owner(imdb_id, "new")

        data = review.to_mongo()
        data["ownerType"] = owner_type
        data["ownerId"] = owner["_id"]
        with storage_errors(f"reviews /new with imdbId: '{imdb_id}'"):
            review_id = create_document(self.collection, data)

        # the insert and the push are two writes; undo the insert if the push fails
        try:
            attached = owner_repo.push_review_id(owner["_id"], review_id)
        except AppError:
            self._discard(review_id)
            raise
        if not attached:
            logger.error(
                "Error attaching review to %s with imdbId: '%s' [%s]", owner_type, imdb_id, NotExists.message
            )
            self._discard(review_id)
            raise NotExists()

        return mutation_result(f"Review was successfully created. (id: '{review_id}')", id=str(review_id))

    def delete(self, id: str) -> Dict[str, Any]:
        logger.info("DELETE reviews /delete with id: '%s' executed", id)
        obj_id = parse_id(id, self.route, "delete")
        review = self._load(obj_id, "delete")

        owner_repo, owner_id = self._owner_of(review)
        if not owner_repo.pull_review_id(owner_id, obj_id):
            logger.warning(
                "Warn in reviews /delete with id: '%s' [review id not listed by %s '%s']",
                id,
                owner_repo.owner_type,
                owner_id,
            )

        with storage_errors(f"reviews /delete with id: '{id}'"):
            result = self.collection.delete_one({"_id": obj_id})
        if result.deleted_count == 0:
            logger.warning("Warn in reviews /delete with id: '%s' [%s]", id, NotExists.message)
            raise NotExists()
        return mutation_result(f"Review with id: '{id}' was successfully deleted")

    def update(self, id: str, review: ReviewUpdate) -> Dict[str, Any]:
        logger.info("PUT reviews /update with id: '%s' executed", id)
        obj_id = parse_id(id, self.route, "update")
        current = self._load(obj_id, "update")
        changes = {"title": review.title, "rating": review.rating, "body": review.body}
        if not self._apply(obj_id, current, changes, "update"):
            return mutation_result(UPDATE_NO_OP, modified=False)
        return mutation_result(f"Review with id: '{id}' was successfully updated")

    def patch(self, id: str, field: str, value: Any) -> Dict[str, Any]:
        logger.info("PATCH reviews /patch with id: '%s' executed", id)
        obj_id = parse_id(id, self.route, "patch")
        if field not in self.patch_fields:
            logger.warning("Warn in reviews /patch with id: '%s' [%s]", id, FieldNotAllowed.message)
            raise FieldNotAllowed()
        current = self._load(obj_id, "patch")
        new_value = coerce_patch_value(self.patch_fields, field, value)
        if not self._apply(obj_id, current, {field: new_value}, "patch"):
            return mutation_result(PATCH_NO_OP, modified=False)
        return mutation_result(f"Review {field} with id: '{id}' was successfully patched")

    # ---------------------- Internals ----------------------

    def _resolve_owner(self, imdb_id: str, action: str):
        """Find the movie, then the series, holding `imdb_id`."""
        for owner_repo in (self.catalog.movies, self.catalog.series):
            owner = owner_repo.find_document_by_imdb_id(imdb_id)
            if owner is not None:
                return owner_repo.owner_type, owner_repo, owner
        logger.error(
            "Error finding movie and series in reviews /%s with imdbId: '%s' [%s]",
            action,
            imdb_id,
            NotExists.message,
        )
        raise NotExists()

    def _owner_of(self, review: Dict[str, Any]):
        owner_type = review.get("ownerType")
        owner_id = review.get("ownerId")
        if owner_type == "movie" and owner_id is not None:
            return self.catalog.movies, owner_id
        if owner_type == "series" and owner_id is not None:
            return self.catalog.series, owner_id

        found, owner_id = self.movie_exists_by_review_id(review["_id"])
        if found:
            return self.catalog.movies, owner_id
        found, owner_id = self.series_exists_by_review_id(review["_id"])
        if found:
            return self.catalog.series, owner_id

        logger.error(
            "Error finding movie and series in reviews /delete with id: '%s' [%s]", review["_id"], NotExists.message
        )
        raise NotExists()

    def _load(self, obj_id: ObjectId, action: str) -> Dict[str, Any]:
        with storage_errors(f"reviews /{action} with id: '{obj_id}'"):
            doc = self.collection.find_one({"_id": obj_id})
        if doc is None:
            logger.warning("Warn in reviews /%s with id: '%s' [%s]", action, obj_id, NotExists.message)
            raise NotExists()
        return doc

    def _apply(self, obj_id: ObjectId, current: Dict[str, Any], changes: Dict[str, Any], action: str) -> bool:
        if unchanged(current, changes):
            return False
        with storage_errors(f"reviews /{action} with id: '{obj_id}'"):
            result = self.collection.update_one(
                {"_id": obj_id},
                {"$set": {**changes, "updatedAt": utc_now()}},
            )
        return result.modified_count > 0

    def _discard(self, review_id: ObjectId) -> None:
        with storage_errors(f"reviews /new rolling back review with id: '{review_id}'"):
            self.collection.delete_one({"_id": review_id})
