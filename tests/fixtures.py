"""
Payload builders shared by the test modules.

Payloads use the external camelCase field names; keyword overrides do too.
"""

from schemas import Movie, MovieRequest, Review, ReviewUpdate, Series, SeriesRequest


def movie_payload(**overrides):
    payload = {
        "imdbId": "tt12345",
        "title": "El lobo de Wall Street",
        "overview": "La nueva pelicula de Martin Scorsese: la biografia de Jordan Belfort.",
        "duration": "2h 54m",
        "director": "Martin Scorsese",
        "releaseDate": "2013-12-25",
        "trailerLink": "https://youtu.be/iszwuX1AK6A",
        "genres": ["Crimen", "Drama"],
        "poster": "https://image.tmdb.org/t/p/original/lobo_poster.jpg",
        "backdrop": "https://image.tmdb.org/t/p/original/lobo_backdrop.jpg",
    }
    payload.update(overrides)
    return payload


def episode_payload(**overrides):
    payload = {
        "title": "Los herederos del dragon",
        "releaseDate": "2022-08-21",
        "duration": "1h 6m",
        "description": "El rey Viserys celebra un torneo por el nacimiento de su heredero.",
    }
    payload.update(overrides)
    return payload


def season_payload(**overrides):
    payload = {
        "overview": "Primera temporada",
        "episodeList": [episode_payload()],
        "poster": "https://image.tmdb.org/t/p/original/season_1.jpg",
    }
    payload.update(overrides)
    return payload


def series_payload(**overrides):
    payload = {
        "imdbId": "tt67890",
        "title": "La Casa del Dragon",
        "overview": "Basada en el libro 'Fuego y Sangre' de George R.R. Martin.",
        "numberOfSeasons": 1,
        "creator": "Ryan Condal",
        "releaseDate": "2022-08-21",
        "trailerLink": "https://youtu.be/oBFtJUWuGFI",
        "genres": ["Drama", "Fantasia"],
        "seasonList": [season_payload()],
        "poster": "https://image.tmdb.org/t/p/original/dragon_poster.jpg",
        "backdrop": "https://image.tmdb.org/t/p/original/dragon_backdrop.jpg",
    }
    payload.update(overrides)
    return payload


def review_payload(**overrides):
    payload = {
        "title": "Obra maestra",
        "rating": 5,
        "body": "Tres horas que se pasan volando.",
        "imdbId": "tt12345",
    }
    payload.update(overrides)
    return payload


def movie_request(**overrides) -> MovieRequest:
    return MovieRequest.model_validate(movie_payload(**overrides))


def new_movie(**overrides) -> Movie:
    return Movie.from_request(movie_request(**overrides))


def series_request(**overrides) -> SeriesRequest:
    return SeriesRequest.model_validate(series_payload(**overrides))


def new_series(**overrides) -> Series:
    return Series.from_request(series_request(**overrides))


def review_update(**overrides) -> ReviewUpdate:
    payload = review_payload(**overrides)
    payload.pop("imdbId")
    return ReviewUpdate.model_validate(payload)


def new_review(**overrides) -> Review:
    return Review.from_request(review_update(**overrides))
