import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

import database
from catalog import Catalog
from database import ensure_indexes, get_db
from errors import AppError
from responses import failure, success, to_response
from schemas import (
    MovieRequest,
    MovieUpdate,
    PatchParams,
    Review,
    ReviewRequest,
    ReviewUpdate,
    SeriesRequest,
    SeriesUpdate,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        ensure_indexes(database.db)
        logger.info("Catalog indexes ensured on database '%s'", database.DATABASE_NAME)
    else:
        logger.warning("DATABASE_URL not set, catalog endpoints will answer 500")
    yield


app = FastAPI(
    title="Cinema Catalog API",
    description="REST API related to movies, series and its reviews.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return to_response(failure(exc))


# ---------------------- Helpers ----------------------

def get_catalog(db=Depends(get_db)) -> Catalog:
    return Catalog(db)


# ---------------------- Base Endpoints ----------------------

@app.get("/api/v1/")
def hello():
    return "Hello there, the Cinema Catalog API is running!!"


@app.get("/api/v1/health", status_code=207)
def health():
    return {"status": "UP", "message": "All systems working correctly."}


@app.get("/test")
def test_database():
    """Report database configuration and the catalog collections with their sizes."""
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if database.DATABASE_URL else "❌ Not Set",
        "database_name": database.DATABASE_NAME,
        "connection_status": "Not Connected",
        "collections": {},
    }
    if database.db is None:
        return response

    try:
        names = set(database.db.list_collection_names())
        response["collections"] = {
            name: database.db[name].estimated_document_count()
            for name in (database.MOVIES, database.SERIES, database.REVIEWS, database.IMDB_IDS)
            if name in names
        }
    except PyMongoError as e:
        logger.error("Error in /test [%s]", e)
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
        return response

    response["database"] = "✅ Connected & Working"
    response["connection_status"] = "Connected"
    return response


# ---------------------- Movie Endpoints ----------------------

@app.get("/api/v1/movies/findAll")
def get_movies(
    title: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
    catalog: Catalog = Depends(get_catalog),
):
    return catalog.movies.find_all(title, page, size)


@app.get("/api/v1/movies/findById/{id}")
def get_movie_by_id(id: str, catalog: Catalog = Depends(get_catalog)):
    return to_response(success(catalog.movies.find_by_id(id)))


@app.get("/api/v1/movies/findByImdbId/{imdb_id}")
def get_movie_by_imdb_id(imdb_id: str, catalog: Catalog = Depends(get_catalog)):
    return to_response(success(catalog.movies.find_by_imdb_id(imdb_id)))


@app.post("/api/v1/movies/new", status_code=201)
def create_movie(request: MovieRequest, catalog: Catalog = Depends(get_catalog)):
    return catalog.movies.create(catalog.movies.document_model.from_request(request))


@app.put("/api/v1/movies/update/{id}")
def update_movie(id: str, request: MovieUpdate, catalog: Catalog = Depends(get_catalog)):
    return catalog.movies.update(id, request)


@app.patch("/api/v1/movies/patch/{id}")
def patch_movie(id: str, payload: PatchParams, catalog: Catalog = Depends(get_catalog)):
    return catalog.movies.patch(id, payload.field, payload.value)


@app.delete("/api/v1/movies/delete/{id}")
def delete_movie(id: str, catalog: Catalog = Depends(get_catalog)):
    return catalog.movies.delete(id)


# ---------------------- Series Endpoints ----------------------

@app.get("/api/v1/series/findAll")
def get_series(
    title: Optional[str] = None,
    page: Optional[int] = None,
    size: Optional[int] = None,
    catalog: Catalog = Depends(get_catalog),
):
    return catalog.series.find_all(title, page, size)


@app.get("/api/v1/series/findById/{id}")
def get_series_by_id(id: str, catalog: Catalog = Depends(get_catalog)):
    return to_response(success(catalog.series.find_by_id(id)))


@app.get("/api/v1/series/findByImdbId/{imdb_id}")
def get_series_by_imdb_id(imdb_id: str, catalog: Catalog = Depends(get_catalog)):
    return to_response(success(catalog.series.find_by_imdb_id(imdb_id)))


@app.post("/api/v1/series/new", status_code=201)
def create_series(request: SeriesRequest, catalog: Catalog = Depends(get_catalog)):
    return catalog.series.create(catalog.series.document_model.from_request(request))


@app.put("/api/v1/series/update/{id}")
def update_series(id: str, request: SeriesUpdate, catalog: Catalog = Depends(get_catalog)):
    return catalog.series.update(id, request)


@app.patch("/api/v1/series/patch/{id}")
def patch_series(id: str, payload: PatchParams, catalog: Catalog = Depends(get_catalog)):
    return catalog.series.patch(id, payload.field, payload.value)


@app.delete("/api/v1/series/delete/{id}")
def delete_series(id: str, catalog: Catalog = Depends(get_catalog)):
    return catalog.series.delete(id)


# ---------------------- Review Endpoints ----------------------

@app.get("/api/v1/reviews/findAll")
def get_reviews(
    page: Optional[int] = None,
    size: Optional[int] = None,
    catalog: Catalog = Depends(get_catalog),
):
    return catalog.reviews.find_all(page, size)


@app.get("/api/v1/reviews/findAllByImdbId/{imdb_id}")
def get_reviews_by_imdb_id(imdb_id: str, catalog: Catalog = Depends(get_catalog)):
    return catalog.reviews.find_all_by_imdb_id(imdb_id)


@app.get("/api/v1/reviews/findById/{id}")
def get_review_by_id(id: str, catalog: Catalog = Depends(get_catalog)):
    return to_response(success(catalog.reviews.find_by_id(id)))


@app.post("/api/v1/reviews/new", status_code=201)
def create_review(request: ReviewRequest, catalog: Catalog = Depends(get_catalog)):
    return catalog.reviews.create(Review.from_request(request), request.imdb_id)


@app.put("/api/v1/reviews/update/{id}")
def update_review(id: str, request: ReviewUpdate, catalog: Catalog = Depends(get_catalog)):
    return catalog.reviews.update(id, request)


@app.patch("/api/v1/reviews/patch/{id}")
def patch_review(id: str, payload: PatchParams, catalog: Catalog = Depends(get_catalog)):
    return catalog.reviews.patch(id, payload.field, payload.value)


@app.delete("/api/v1/reviews/delete/{id}")
def delete_review(id: str, catalog: Catalog = Depends(get_catalog)):
    return catalog.reviews.delete(id)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
