"""
Database Schemas

Pydantic models for the three catalog collections and their request and
response shapes. Documents are persisted with camelCase field names
(imdbId, releaseDate, reviewIds, ...) and the MongoDB `_id`.

Collections:
- Movie -> "movies"
- Series -> "series"
- Review -> "reviews"
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from errors import InvalidFieldValue
import formats


def _checked(predicate, message):
    def check(value):
        if not predicate(value):
            raise ValueError(message)
        return value

    return AfterValidator(check)


ImdbId = Annotated[str, _checked(formats.is_imdb_id, "The imdbId must match the following format: 'tt0000'")]
Duration = Annotated[str, _checked(formats.is_duration, "The duration must match the following format: '00h 00m'")]
EpisodeDuration = Annotated[
    str,
    _checked(
        formats.is_episode_duration,
        "The duration must match the following formats: '00h 00m', '00h' or '00m'",
    ),
]
PersonName = Annotated[str, _checked(formats.is_person_name, "The name must match the following format: 'Name Surname'")]
ReleaseDate = Annotated[
    str, _checked(formats.is_release_date, "The release date must match the following format: 'YYYY-MM-DD'")
]
TrailerLink = Annotated[str, _checked(formats.is_trailer_link, "The trailer link has to be a valid YouTube URL")]
RemoteImage = Annotated[
    str,
    _checked(
        formats.is_remote_image,
        "The image must be a valid URL with one of these extensions: (.jpg, .jpeg, .png or .webp)",
    ),
]
NonEmptyStr = Annotated[str, _checked(formats.is_non_empty_text, "The field cannot be empty")]
Genres = Annotated[List[str], _checked(formats.is_non_empty_list, "At least one genre is required")]
Rating = Annotated[
    int,
    _checked(
        formats.is_rating,
        f"The rating must be between {formats.MIN_RATING} and {formats.MAX_RATING}",
    ),
]
OwnerType = Literal["movie", "series"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_mongo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---------------------- Movies ----------------------

class MovieRequest(CatalogModel):
    imdb_id: ImdbId
    title: NonEmptyStr
    overview: NonEmptyStr
    duration: Duration
    director: PersonName
    release_date: ReleaseDate
    trailer_link: TrailerLink
    genres: Genres
    poster: RemoteImage
    backdrop: RemoteImage


class Movie(MovieRequest):
    """
    Movies collection document.
    Collection name: "movies"
    """
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    review_ids: List[ObjectId] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: MovieRequest) -> "Movie":
        return cls(**request.model_dump())


class MovieUpdate(MovieRequest):
    # checked by the repository so a bad imdbId answers WrongImdbId
    imdb_id: str


class MovieResponse(CatalogModel):
    imdb_id: str
    title: str
    duration: str
    release_date: str
    poster: str


class MovieDoc(CatalogModel):
    id: str = Field(alias="_id")
    imdb_id: str
    title: str
    overview: str
    duration: str
    director: str
    release_date: str
    trailer_link: str
    genres: List[str]
    poster: str
    backdrop: str
    review_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "MovieDoc":
        data = dict(doc)
        data["_id"] = str(data["_id"])
        data["reviewIds"] = [str(rid) for rid in data.get("reviewIds", [])]
        return cls.model_validate(data)


# ---------------------- Series ----------------------

class Episode(CatalogModel):
    title: NonEmptyStr
    release_date: ReleaseDate
    duration: EpisodeDuration
    description: NonEmptyStr


class Season(CatalogModel):
    overview: NonEmptyStr
    episode_list: List[Episode] = Field(..., min_length=1, description="A season has at least one episode")
    poster: RemoteImage


class SeriesRequest(CatalogModel):
    imdb_id: ImdbId
    title: NonEmptyStr
    overview: NonEmptyStr
    number_of_seasons: int = Field(..., ge=0)
    creator: PersonName
    release_date: ReleaseDate
    trailer_link: TrailerLink
    genres: Genres
    season_list: List[Season] = Field(..., min_length=1)
    poster: RemoteImage
    backdrop: RemoteImage


class Series(SeriesRequest):
    """
    Series collection document. Seasons and episodes are embedded.
    Collection name: "series"
    """
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    review_ids: List[ObjectId] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: SeriesRequest) -> "Series":
        return cls(**request.model_dump())


class SeriesUpdate(SeriesRequest):
    imdb_id: str


class SeriesResponse(CatalogModel):
    imdb_id: str
    title: str
    number_of_seasons: int
    release_date: str
    poster: str


class EpisodeDoc(CatalogModel):
    title: str
    release_date: str
    duration: str
    description: str


class SeasonDoc(CatalogModel):
    """Stored season as read back; formats were checked when it was written."""
    overview: str
    episode_list: List[EpisodeDoc] = Field(default_factory=list)
    poster: str


class SeriesDoc(CatalogModel):
    id: str = Field(alias="_id")
    imdb_id: str
    title: str
    overview: str
    number_of_seasons: int
    creator: str
    release_date: str
    trailer_link: str
    genres: List[str]
    season_list: List[SeasonDoc]
    poster: str
    backdrop: str
    review_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "SeriesDoc":
        data = dict(doc)
        data["_id"] = str(data["_id"])
        data["reviewIds"] = [str(rid) for rid in data.get("reviewIds", [])]
        return cls.model_validate(data)


# ---------------------- Reviews ----------------------

class ReviewUpdate(CatalogModel):
    title: NonEmptyStr
    rating: Rating
    body: NonEmptyStr


class ReviewRequest(ReviewUpdate):
    imdb_id: ImdbId


class Review(ReviewUpdate):
    """
    Reviews collection document. ownerType/ownerId point back at the movie
    or series whose reviewIds list holds this review.
    Collection name: "reviews"
    """
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    owner_type: Optional[OwnerType] = None
    owner_id: Optional[ObjectId] = None

    @classmethod
    def from_request(cls, request: ReviewUpdate) -> "Review":
        now = utc_now()
        return cls(
            title=request.title,
            rating=request.rating,
            body=request.body,
            created_at=now,
            updated_at=now,
        )


class ReviewResponse(CatalogModel):
    id: str = Field(alias="_id")
    title: str
    rating: int
    body: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "ReviewResponse":
        data = dict(doc)
        data["_id"] = str(data["_id"])
        return cls.model_validate(data)


# ---------------------- Patching ----------------------

class PatchParams(BaseModel):
    field: str
    value: Any


# Closed allow-lists: field name -> type the new value must satisfy
MOVIE_PATCH_FIELDS: Dict[str, Any] = {
    "imdbId": ImdbId,
    "title": NonEmptyStr,
    "overview": NonEmptyStr,
    "duration": Duration,
    "director": PersonName,
    "releaseDate": ReleaseDate,
    "trailerLink": TrailerLink,
    "genres": Genres,
    "poster": RemoteImage,
    "backdrop": RemoteImage,
}

SERIES_PATCH_FIELDS: Dict[str, Any] = {
    "imdbId": ImdbId,
    "title": NonEmptyStr,
    "overview": NonEmptyStr,
    "numberOfSeasons": Annotated[int, Field(ge=0)],
    "creator": PersonName,
    "releaseDate": ReleaseDate,
    "trailerLink": TrailerLink,
    "genres": Genres,
    "seasonList": Annotated[List[Season], Field(min_length=1)],
    "poster": RemoteImage,
    "backdrop": RemoteImage,
}

REVIEW_PATCH_FIELDS: Dict[str, Any] = {
    "title": NonEmptyStr,
    "rating": Rating,
    "body": NonEmptyStr,
}

_adapters: Dict[int, TypeAdapter] = {}


def coerce_patch_value(fields: Dict[str, Any], field: str, value: Any) -> Any:
    """Validate `value` against the type registered for `field` and return it in storage form."""
    field_type = fields[field]
    adapter = _adapters.get(id(field_type))
    if adapter is None:
        adapter = _adapters[id(field_type)] = TypeAdapter(field_type)
    try:
        checked = adapter.validate_python(value)
    except ValidationError as e:
        raise InvalidFieldValue(f"Value for field '{field}' not valid") from e
    return adapter.dump_python(checked, by_alias=True)
