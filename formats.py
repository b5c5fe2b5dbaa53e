"""
Format predicates shared by the request models and the repositories.
"""

import re
from typing import Any, Sequence

from bson import ObjectId

from errors import CannotParseObjId

RE_IMDB_ID = re.compile(r"^tt\d+$")
RE_DURATION = re.compile(r"^(\d{1,2})h\s(\d{1,2})m$")
RE_EPISODE_DURATION = re.compile(r"^(?:(\d{1,2})h(?: (\d{1,2})m)?|(\d{1,2})m)$")
RE_PERSON_NAME = re.compile(r"^([a-zA-Z]+\.?)\s([a-zA-Z]+\.?)(?:\s([a-zA-Z]+))?$")
RE_RELEASE_DATE = re.compile(r"^(\d{4})-([1-9]|0[1-9]|1[0-2])-([1-9]|0[1-9]|[12]\d|3[01])$")
RE_TRAILER_LINK = re.compile(
    r"^((?:https?:)?//)?((?:www|m)\.)?((?:youtube(-nocookie)?\.com|youtu.be))"
    r"(/(?:[\w\-]+\?v=|embed/|live/|v/)?)([\w\-]+)(\S+)?$"
)
RE_REMOTE_IMAGE = re.compile(r"(https?://\S+(?:png|jpe?g|webp)\S*)")

MIN_RATING = 0
MAX_RATING = 5


def _matches(pattern: re.Pattern, value: Any) -> bool:
    return isinstance(value, str) and pattern.match(value) is not None


def is_imdb_id(value: Any) -> bool:
    return _matches(RE_IMDB_ID, value)


def is_duration(value: Any) -> bool:
    return _matches(RE_DURATION, value)


def is_episode_duration(value: Any) -> bool:
    return _matches(RE_EPISODE_DURATION, value)


def is_person_name(value: Any) -> bool:
    return _matches(RE_PERSON_NAME, value)


def is_release_date(value: Any) -> bool:
    return _matches(RE_RELEASE_DATE, value)


def is_trailer_link(value: Any) -> bool:
    return _matches(RE_TRAILER_LINK, value)


def is_remote_image(value: Any) -> bool:
    # search, not match: the URL may be embedded in a longer string
    return isinstance(value, str) and RE_REMOTE_IMAGE.search(value) is not None


def is_non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_non_empty_list(value: Sequence) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def is_rating(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_RATING <= value <= MAX_RATING


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value)


def parse_object_id(value: Any) -> ObjectId:
    """Return the ObjectId for a 24 hex character id, or raise CannotParseObjId."""
    if isinstance(value, ObjectId):
        return value
    if not is_object_id(value):
        raise CannotParseObjId()
    return ObjectId(value)
