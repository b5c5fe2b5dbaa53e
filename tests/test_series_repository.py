import pytest
from bson import ObjectId
from pydantic import ValidationError

from errors import AlreadyExists, Empty, FieldNotAllowed, ImdbIdInUse, InvalidFieldValue, NotExists, NotFound
from schemas import SeriesRequest

from .fixtures import episode_payload, new_movie, new_series, season_payload, series_payload, series_request


class TestSeriesDocument:
    def test_season_without_episodes_is_rejected(self):
        with pytest.raises(ValidationError):
            SeriesRequest.model_validate(series_payload(seasonList=[season_payload(episodeList=[])]))

    def test_series_without_seasons_is_rejected(self):
        with pytest.raises(ValidationError):
            SeriesRequest.model_validate(series_payload(seasonList=[]))

    def test_episode_duration_accepts_short_forms(self):
        request = series_request(seasonList=[season_payload(episodeList=[episode_payload(duration="58m")])])

        assert request.season_list[0].episode_list[0].duration == "58m"

    def test_seasons_are_embedded(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]

        stored = db["series"].find_one({"_id": ObjectId(series_id)})

        assert stored["seasonList"][0]["episodeList"][0]["title"] == "Los herederos del dragon"
        assert stored["seasonList"][0]["episodeList"][0]["releaseDate"] == "2022-08-21"
        assert stored["reviewIds"] == []


class TestQueries:
    def test_find_all_empty(self, catalog):
        with pytest.raises(Empty):
            catalog.series.find_all()

    def test_find_all_public_shape(self, catalog):
        catalog.series.create(new_series())

        page = catalog.series.find_all(title="dragon")

        assert page["series"] == [
            {
                "imdbId": "tt67890",
                "title": "La Casa del Dragon",
                "numberOfSeasons": 1,
                "releaseDate": "2022-08-21",
                "poster": "https://image.tmdb.org/t/p/original/dragon_poster.jpg",
            }
        ]
        assert page["totalPages"] == 1

    def test_find_by_imdb_id(self, catalog):
        catalog.series.create(new_series())

        series = catalog.series.find_by_imdb_id("tt67890")

        assert series.creator == "Ryan Condal"
        assert series.season_list[0].episode_list[0].duration == "1h 6m"

    def test_find_by_id_missing(self, catalog):
        with pytest.raises(NotFound):
            catalog.series.find_by_id(str(ObjectId()))


class TestSharedImdbIdNamespace:
    def test_create_with_movie_imdb_id(self, catalog, db):
        catalog.movies.create(new_movie(imdbId="tt67890"))

        with pytest.raises(AlreadyExists):
            catalog.series.create(new_series(imdbId="tt67890"))
        assert db["series"].count_documents({}) == 0

    def test_create_twice(self, catalog):
        catalog.series.create(new_series())

        with pytest.raises(AlreadyExists):
            catalog.series.create(new_series())

    def test_series_exists_by_imdb_id(self, catalog):
        catalog.series.create(new_series())

        assert catalog.series.series_exists_by_imdb_id("tt67890")
        assert not catalog.movies.movie_exists_by_imdb_id("tt67890")


class TestMutations:
    def test_update_replaces_seasons(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]
        seasons = [season_payload(), season_payload(overview="Segunda temporada")]

        result = catalog.series.update(series_id, series_request(numberOfSeasons=2, seasonList=seasons))

        assert result["status"] == "ok"
        stored = db["series"].find_one({"_id": ObjectId(series_id)})
        assert stored["numberOfSeasons"] == 2
        assert [s["overview"] for s in stored["seasonList"]] == ["Primera temporada", "Segunda temporada"]

    def test_update_same_values(self, catalog):
        series_id = catalog.series.create(new_series())["id"]

        assert catalog.series.update(series_id, series_request())["status"] == "no-op"

    def test_update_to_movie_imdb_id(self, catalog):
        catalog.movies.create(new_movie(imdbId="tt1"))
        series_id = catalog.series.create(new_series())["id"]

        with pytest.raises(ImdbIdInUse):
            catalog.series.update(series_id, series_request(imdbId="tt1"))

    def test_patch_season_list(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]
        seasons = [season_payload(overview="Temporada unica")]

        result = catalog.series.patch(series_id, "seasonList", seasons)

        assert result["message"] == f"Series seasonList with id: '{series_id}' was successfully patched"
        stored = db["series"].find_one({"_id": ObjectId(series_id)})
        assert stored["seasonList"][0]["overview"] == "Temporada unica"
        assert stored["seasonList"][0]["episodeList"][0]["duration"] == "1h 6m"

    def test_patch_season_without_episodes(self, catalog):
        series_id = catalog.series.create(new_series())["id"]

        with pytest.raises(InvalidFieldValue):
            catalog.series.patch(series_id, "seasonList", [season_payload(episodeList=[])])

    def test_patch_number_of_seasons(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]

        catalog.series.patch(series_id, "numberOfSeasons", 3)

        assert db["series"].find_one({"_id": ObjectId(series_id)})["numberOfSeasons"] == 3

    @pytest.mark.parametrize("value", [-1, "three"])
    def test_patch_number_of_seasons_invalid(self, catalog, value):
        series_id = catalog.series.create(new_series())["id"]

        with pytest.raises(InvalidFieldValue):
            catalog.series.patch(series_id, "numberOfSeasons", value)

    def test_patch_movie_only_field(self, catalog):
        series_id = catalog.series.create(new_series())["id"]

        with pytest.raises(FieldNotAllowed):
            catalog.series.patch(series_id, "director", "Martin Scorsese")

    def test_delete_releases_imdb_id_for_movies(self, catalog):
        series_id = catalog.series.create(new_series())["id"]

        catalog.series.delete(series_id)

        assert catalog.movies.create(new_movie(imdbId="tt67890"))["status"] == "ok"

    def test_delete_missing(self, catalog):
        with pytest.raises(NotExists):
            catalog.series.delete(str(ObjectId()))


class TestReadBack:
    def test_round_trip_keeps_every_field(self, catalog):
        request = series_request()
        catalog.series.create(new_series())

        series = catalog.series.find_by_imdb_id("tt67890")

        assert series.model_dump(exclude={"id", "review_ids"}) == request.model_dump()
        assert series.review_ids == []

    def test_stored_season_without_episodes_is_still_readable(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]
        db["series"].update_one({"_id": ObjectId(series_id)}, {"$set": {"seasonList.0.episodeList": []}})

        series = catalog.series.find_by_imdb_id("tt67890")

        assert series.season_list[0].episode_list == []
        assert catalog.series.find_by_id(series_id).season_list[0].overview == "Primera temporada"

    def test_stored_formats_are_not_rechecked(self, catalog, db):
        series_id = catalog.series.create(new_series())["id"]
        db["series"].update_one(
            {"_id": ObjectId(series_id)},
            {"$set": {"seasonList.0.episodeList.0.duration": "66 minutes", "seasonList.0.poster": "none"}},
        )

        series = catalog.series.find_by_id(series_id)

        assert series.season_list[0].episode_list[0].duration == "66 minutes"


class TestPatchAllowList:
    @pytest.mark.parametrize("field", ["reviewIds", "_id", "duration", "seasonListt"])
    def test_rejected_field_leaves_document_unchanged(self, catalog, db, field):
        series_id = catalog.series.create(new_series())["id"]
        before = db["series"].find_one({"_id": ObjectId(series_id)})

        with pytest.raises(FieldNotAllowed):
            catalog.series.patch(series_id, field, "x")

        assert db["series"].find_one({"_id": ObjectId(series_id)}) == before
