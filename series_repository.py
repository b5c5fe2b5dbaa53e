from database import SERIES
from repository import TitleRepository
from schemas import SERIES_PATCH_FIELDS, Series, SeriesDoc, SeriesResponse


class SeriesRepository(TitleRepository):
    """Series share the movies' imdbId namespace; seasons and episodes are
    embedded in the series document and have no identity of their own."""

    collection_name = SERIES
    owner_type = "series"
    entity = "Series"
    route = "series"
    document_model = Series
    doc_model = SeriesDoc
    response_model = SeriesResponse
    patch_fields = SERIES_PATCH_FIELDS

    def imdb_id_checks(self):
        return [self.series_exists_by_imdb_id, self.catalog.movies.movie_exists_by_imdb_id]

    def series_exists_by_imdb_id(self, imdb_id: str) -> bool:
        return self.exists_by_imdb_id(imdb_id)
