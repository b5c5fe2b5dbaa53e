"""
Shared behaviour of the movie and series repositories.

Movies and series live in separate collections but share one imdbId
namespace, the same paging envelope and the same update/patch rules, so
both repositories are thin subclasses of TitleRepository.
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, get_documents, storage_errors
from errors import (
    AlreadyExists,
    AppError,
    CannotParseObjId,
    Empty,
    FieldNotAllowed,
    ImdbIdInUse,
    InternalServerError,
    NotExists,
    NotFound,
    WrongImdbId,
)
from formats import is_imdb_id, parse_object_id
from schemas import coerce_patch_value

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 10

UPDATE_NO_OP = "Fields have the same value, no update was performed"
PATCH_NO_OP = "Field has the same value, no patch was performed"


# ---------------------- Helpers ----------------------

def normalize_paging(page: Optional[int], size: Optional[int]) -> Tuple[int, int]:
    page_num = page if page is not None and page > 0 else DEFAULT_PAGE
    page_size = size if size is not None and size > 0 else DEFAULT_PAGE_SIZE
    return page_num, page_size


def page_offset(page_num: int, page_size: int) -> int:
    # pages 0 and 1 both address the first page
    return max(page_num - 1, 0) * page_size


def title_filter(title: Optional[str]) -> Dict[str, Any]:
    if not title:
        return {}
    return {"title": {"$regex": re.escape(title), "$options": "i"}}


def page_envelope(key: str, items: List[Any], page_num: int, total_items: int, page_size: int) -> Dict[str, Any]:
    return {
        key: items,
        "currentPage": page_num,
        "totalItems": total_items,
        "totalPages": math.ceil(total_items / page_size),
    }


def mutation_result(message: str, modified: bool = True, **extra) -> Dict[str, Any]:
    result = {"message": message, "status": "ok" if modified else "no-op"}
    result.update(extra)
    return result


def parse_id(id: str, route: str, action: str) -> ObjectId:
    try:
        return parse_object_id(id)
    except CannotParseObjId:
        logger.error("Error in %s /%s with id: '%s' [%s]", route, action, id, CannotParseObjId.message)
        raise


def unchanged(current: Dict[str, Any], changes: Dict[str, Any]) -> bool:
    return all(key in current and current[key] == value for key, value in changes.items())


# ---------------------- Repository ----------------------

class TitleRepository(ABC):
    """Movie/series operations parameterized by the subclass attributes."""

    collection_name: str = ""
    owner_type: str = ""
    entity: str = ""
    route: str = ""
    document_model: Any = None
    doc_model: Any = None
    response_model: Any = None
    patch_fields: Dict[str, Any] = {}

    def __init__(self, db: Database, catalog):
        self.db = db
        self.catalog = catalog
        self.collection = db[self.collection_name]

    @abstractmethod
    def imdb_id_checks(self) -> List[Callable[[str], bool]]:
        """Existence checks over the shared imdbId namespace, own collection first."""

    def imdb_id_taken(self, imdb_id: str) -> bool:
        return any(check(imdb_id) for check in self.imdb_id_checks())

    # ---------------------- Queries ----------------------

    def find_all(self, title: Optional[str] = None, page: Optional[int] = None, size: Optional[int] = None):
        logger.info("GET %s /findAll executed", self.route)
        page_num, page_size = normalize_paging(page, size)
        filter_dict = title_filter(title)

        with storage_errors(f"{self.route} /findAll"):
            total_items = self.collection.count_documents(filter_dict)
            docs = get_documents(
                self.collection,
                filter_dict,
                skip=page_offset(page_num, page_size),
                limit=page_size,
                sort=[("_id", ASCENDING)],
            )

        if not docs:
            logger.warning("Warn in %s /findAll [%s]", self.route, Empty.message)
            raise Empty()

        items = [self.response_model.model_validate(doc).model_dump(by_alias=True) for doc in docs]
        return page_envelope(self.route, items, page_num, total_items, page_size)

    def find_by_id(self, id: str):
        logger.info("GET %s /findById with id: '%s' executed", self.route, id)
        obj_id = parse_id(id, self.route, "findById")
        with storage_errors(f"{self.route} /findById with id: '{id}'"):
            doc = self.collection.find_one({"_id": obj_id})
        if doc is None:
            logger.warning("Warn in %s /findById with id: '%s' [%s]", self.route, id, NotFound.message)
            raise NotFound()
        return self.doc_model.from_mongo(doc)

    def find_by_imdb_id(self, imdb_id: str):
        logger.info("GET %s /findByImdbId with imdbId: '%s' executed", self.route, imdb_id)
        if not is_imdb_id(imdb_id):
            logger.error("Error in %s /findByImdbId with imdbId: '%s' [%s]", self.route, imdb_id, WrongImdbId.message)
            raise WrongImdbId()
        doc = self.find_document_by_imdb_id(imdb_id)
        if doc is None:
            logger.warning("Warn in %s /findByImdbId with imdbId: '%s' [%s]", self.route, imdb_id, NotFound.message)
            raise NotFound()
        return self.doc_model.from_mongo(doc)

    def find_document_by_imdb_id(self, imdb_id: str) -> Optional[Dict[str, Any]]:
        with storage_errors(f"checking if {self.owner_type} exists with imdbId: '{imdb_id}'"):
            return self.collection.find_one({"imdbId": imdb_id})

    def exists_by_imdb_id(self, imdb_id: str) -> bool:
        return self.find_document_by_imdb_id(imdb_id) is not None

    # ---------------------- Mutations ----------------------

    def create(self, document) -> Dict[str, Any]:
        logger.info("POST %s /new executed", self.route)
        if self.imdb_id_taken(document.imdb_id):
            logger.warning("Warn in %s /new [%s]", self.route, AlreadyExists.message)
            raise AlreadyExists()

        data = document.to_mongo()
        data["reviewIds"] = []
        self._claim(document.imdb_id, document.id)
        try:
            with storage_errors(f"{self.route} /new with imdbId: '{document.imdb_id}'"):
                try:
                    inserted_id = create_document(self.collection, data)
                except DuplicateKeyError:
                    logger.warning("Warn in %s /new [%s]", self.route, AlreadyExists.message)
                    raise AlreadyExists()
        except AppError:
            self._release(document.imdb_id, document.id, "new")
            raise

        return mutation_result(
            f"{self.entity} was successfully created. (id: '{inserted_id}')",
            id=str(inserted_id),
        )

    def update(self, id: str, request) -> Dict[str, Any]:
        logger.info("PUT %s /update with id: '%s' executed", self.route, id)
        obj_id = parse_id(id, self.route, "update")
        current = self._load(obj_id, "update")
        if not is_imdb_id(request.imdb_id):
            logger.error("Error in %s /update with id: '%s' [%s]", self.route, id, WrongImdbId.message)
            raise WrongImdbId()
        modified = self._apply(obj_id, current, request.to_mongo(), "update")
        if not modified:
            return mutation_result(UPDATE_NO_OP, modified=False)
        return mutation_result(f"{self.entity} with id: '{id}' was successfully updated")

    def patch(self, id: str, field: str, value: Any) -> Dict[str, Any]:
        logger.info("PATCH %s /patch with id: '%s' executed", self.route, id)
        obj_id = parse_id(id, self.route, "patch")
        if field not in self.patch_fields:
            logger.warning("Warn in %s /patch with id: '%s' [%s]", self.route, id, FieldNotAllowed.message)
            raise FieldNotAllowed()
        current = self._load(obj_id, "patch")
        if field == "imdbId" and not is_imdb_id(value):
            logger.error("Error in %s /patch with id: '%s' [%s]", self.route, id, WrongImdbId.message)
            raise WrongImdbId()
        new_value = coerce_patch_value(self.patch_fields, field, value)
        modified = self._apply(obj_id, current, {field: new_value}, "patch")
        if not modified:
            return mutation_result(PATCH_NO_OP, modified=False)
        return mutation_result(f"{self.entity} {field} with id: '{id}' was successfully patched")

    def delete(self, id: str) -> Dict[str, Any]:
        logger.info("DELETE %s /delete with id: '%s' executed", self.route, id)
        obj_id = parse_id(id, self.route, "delete")
        with storage_errors(f"{self.route} /delete with id: '{id}'"):
            deleted = self.collection.find_one_and_delete({"_id": obj_id})
        if deleted is None:
            logger.warning("Warn in %s /delete with id: '%s' [%s]", self.route, id, NotExists.message)
            raise NotExists()
        # reviews are not cascaded; they keep their back-reference
        self._release(deleted.get("imdbId"), obj_id, "delete")
        return mutation_result(f"{self.entity} with id: '{id}' was successfully deleted")

    # ---------------------- Review references ----------------------

    def push_review_id(self, owner_id: ObjectId, review_id: ObjectId) -> bool:
        with storage_errors(f"updating {self.owner_type} reviewIds field with id: '{owner_id}'"):
            result = self.collection.update_one({"_id": owner_id}, {"$push": {"reviewIds": review_id}})
        return result.matched_count > 0

    def pull_review_id(self, owner_id: ObjectId, review_id: ObjectId) -> bool:
        with storage_errors(f"removing review id from {self.owner_type} reviewIds field with id: '{owner_id}'"):
            result = self.collection.update_one({"_id": owner_id}, {"$pull": {"reviewIds": review_id}})
        return result.modified_count > 0

    def find_owner_by_review_id(self, review_id: ObjectId) -> Tuple[bool, Optional[ObjectId]]:
        with storage_errors(f"checking if {self.owner_type} exists with review id: '{review_id}'"):
            doc = self.collection.find_one({"reviewIds": review_id}, {"_id": 1})
        if doc is None:
            return False, None
        return True, doc["_id"]

    def holds(self, owner_id: Optional[ObjectId], imdb_id: str) -> bool:
        """True when the document `owner_id` exists and still carries `imdb_id`."""
        with storage_errors(f"checking if {self.owner_type} '{owner_id}' holds imdbId: '{imdb_id}'"):
            return self.collection.find_one({"_id": owner_id, "imdbId": imdb_id}, {"_id": 1}) is not None

    # ---------------------- Internals ----------------------

    def _claim(self, imdb_id: str, owner_id: ObjectId) -> None:
        """Claim `imdb_id`, taking over a claim whose owner no longer holds it."""
        registry = self.catalog.registry
        try:
            registry.claim(imdb_id, self.owner_type, owner_id)
            return
        except AlreadyExists:
            claim = registry.owner_of(imdb_id)

        if claim is None:
            # released between the failed insert and the read
            registry.claim(imdb_id, self.owner_type, owner_id)
            return
        holder = self.catalog.titles(claim.get("ownerType"))
        if holder.holds(claim.get("ownerId"), imdb_id):
            raise AlreadyExists()
        if not registry.take_over(imdb_id, claim.get("ownerId"), self.owner_type, owner_id):
            raise AlreadyExists()

    def _release(self, imdb_id: str, owner_id: ObjectId, action: str) -> None:
        # runs after the primary write; a claim left behind is taken over by the next _claim
        try:
            self.catalog.registry.release(imdb_id, owner_id)
        except InternalServerError:
            logger.error(
                "Error in %s /%s with id: '%s' [imdbId '%s' left claimed until its next claim]",
                self.route,
                action,
                owner_id,
                imdb_id,
            )

    def _load(self, obj_id: ObjectId, action: str) -> Dict[str, Any]:
        with storage_errors(f"{self.route} /{action} with id: '{obj_id}'"):
            doc = self.collection.find_one({"_id": obj_id})
        if doc is None:
            logger.warning("Warn in %s /%s with id: '%s' [%s]", self.route, action, obj_id, NotExists.message)
            raise NotExists()
        return doc

    def _apply(self, obj_id: ObjectId, current: Dict[str, Any], changes: Dict[str, Any], action: str) -> bool:
        """Write `changes` onto the loaded document; False when nothing changed."""
        old_imdb_id = current.get("imdbId")
        new_imdb_id = changes.get("imdbId", old_imdb_id)
        renaming = new_imdb_id != old_imdb_id

        if renaming:
            if self.imdb_id_taken(new_imdb_id):
                logger.error("Error in %s /%s with id: '%s' [%s]", self.route, action, obj_id, ImdbIdInUse.message)
                raise ImdbIdInUse()
            try:
                self._claim(new_imdb_id, obj_id)
            except AlreadyExists:
                logger.error("Error in %s /%s with id: '%s' [%s]", self.route, action, obj_id, ImdbIdInUse.message)
                raise ImdbIdInUse()
        elif unchanged(current, changes):
            return False

        try:
            with storage_errors(f"{self.route} /{action} with id: '{obj_id}'"):
                try:
                    result = self.collection.update_one({"_id": obj_id}, {"$set": changes})
                except DuplicateKeyError:
                    logger.error("Error in %s /%s with id: '%s' [%s]", self.route, action, obj_id, ImdbIdInUse.message)
                    raise ImdbIdInUse()
        except AppError:
            if renaming:
                self._release(new_imdb_id, obj_id, action)
            raise

        if renaming:
            self._release(old_imdb_id, obj_id, action)
        return result.modified_count > 0
