from pymongo.database import Database

from movie_repository import MovieRepository
from registry import ImdbIdRegistry
from review_repository import ReviewRepository
from series_repository import SeriesRepository


class Catalog:
    """The three repositories over one database; each reaches its siblings through here."""

    def __init__(self, db: Database):
        self.db = db
        self.registry = ImdbIdRegistry(db)
        self.movies = MovieRepository(db, self)
        self.series = SeriesRepository(db, self)
        self.reviews = ReviewRepository(db, self)

    def titles(self, owner_type: str):
        """Repository for an imdbId claim's ownerType."""
        return self.movies if owner_type == self.movies.owner_type else self.series
