from database import MOVIES
from repository import TitleRepository
from schemas import MOVIE_PATCH_FIELDS, Movie, MovieDoc, MovieResponse


class MovieRepository(TitleRepository):
    collection_name = MOVIES
    owner_type = "movie"
    entity = "Movie"
    route = "movies"
    document_model = Movie
    doc_model = MovieDoc
    response_model = MovieResponse
    patch_fields = MOVIE_PATCH_FIELDS

    def imdb_id_checks(self):
        return [self.movie_exists_by_imdb_id, self.catalog.series.series_exists_by_imdb_id]

    def movie_exists_by_imdb_id(self, imdb_id: str) -> bool:
        return self.exists_by_imdb_id(imdb_id)
