"""
FastAPI server exposing the movie catalog and its weighted search.
Endpoints:
- GET  /health: basic health check
- POST /api/search: weighted multi-field search, returns ranked record ids
- GET  /api/search-db?query=...: keyword search over title, director, cast and overview
- GET  /api/movies?size=12: random sample of catalog movies
- GET  /api/movies/{movie_id}: one movie plus similar movies
- POST /api/movies: add a movie record

Startup builds the corpus from settings: a JSONL file loaded in memory (default)
or a MongoDB collection (CATALOG_BACKEND=mongo).
"""

# Import standard libraries for timing and dataclass conversion
import time  # measure startup and request latencies
from dataclasses import asdict  # Movie -> dict for response models
from pathlib import Path  # path-safe filesystem handling
from typing import Any, Dict, List, Optional, Union  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import Body, FastAPI, Query, Request  # FastAPI primitives
from fastapi.exceptions import RequestValidationError  # malformed bodies and query params
from fastapi.responses import JSONResponse  # custom error payloads
from pydantic import BaseModel  # response schema definitions

# Import our internal modules for configuration, storage and search
from moviecatalog.config import Settings  # environment-driven settings
from moviecatalog.corpus import CorpusAccessor, InMemoryCorpus  # corpus interface + memory backend
from moviecatalog.data_loader import DataLoader  # record normalization
from moviecatalog.errors import BackendUnavailableError, ValidationError  # error kinds
from moviecatalog.models import Movie  # catalog record
from moviecatalog.request_parser import RequestParser, keyword_request, similar_request  # request building
from moviecatalog.scorer import RelevanceScorer  # ranking engine

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Movie Catalog Search API", version="1.0.0")  # web app

# Globals that hold the runtime components and measured startup time
SETTINGS: Settings = Settings.from_env()  # environment settings
CORPUS: Optional[CorpusAccessor] = None  # document store accessor
SCORER: RelevanceScorer = RelevanceScorer(SETTINGS.match_mode)  # stateless ranker
PARSER = RequestParser()  # wire payload parser
LOADER = DataLoader()  # record normalizer
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic model that describes the shape of a single movie in responses
class MovieOut(BaseModel):
	id: str  # record id
	title: str  # series title
	overview: str  # synopsis
	genre: List[str]  # list of genres
	director: str  # director name
	cast: List[str]  # leading actors
	released_year: Union[int, str]  # year or 'Unknown'
	certificate: str  # rating certificate
	runtime: int  # minutes
	imdb_rating: float  # 0..10
	meta_score: float  # 0..100
	votes: int  # IMDB votes
	gross: Union[float, str]  # box office or 'N/A'
	poster_link: str  # poster URL


class RecordRef(BaseModel):
	recordId: str  # matched record id; score is intentionally not exposed


class SearchResponse(BaseModel):
	success: bool
	results: List[RecordRef]


class KeywordSearchResponse(BaseModel):
	success: bool
	query: str
	movies: List[MovieOut]


class MovieListResponse(BaseModel):
	success: bool
	movies: List[MovieOut]


class MovieDetailResponse(BaseModel):
	success: bool
	movie: MovieOut
	similarMovies: List[MovieOut]


class AddMovieResponse(BaseModel):
	success: bool
	movieId: str


def to_out(movie: Movie) -> MovieOut:
	"""Convert a catalog Movie into its response schema."""
	data = asdict(movie)
	data['director'] = data['director'] or DataLoader.DEFAULTS['director']  # display placeholder only
	return MovieOut(**data)


def build_corpus(settings: Settings) -> CorpusAccessor:
	"""Create the corpus accessor selected by settings."""
	if settings.backend == 'mongo':
		from moviecatalog.mongo_corpus import MongoCorpus  # driver only needed for this backend
		return MongoCorpus.connect(
			settings.mongo_uri,
			db_name=settings.mongo_db,
			collection_name=settings.mongo_collection,
			timeout_ms=settings.mongo_timeout_ms,
			match_mode=settings.match_mode,
		)
	if settings.backend != 'memory':
		raise ValueError(f"Unknown CATALOG_BACKEND '{settings.backend}', expected 'memory' or 'mongo'")

	data_path = Path(settings.data_path)  # JSONL catalog file
	if not data_path.exists():
		logger.warning(f"[API] Data file '{data_path}' not found; starting with an empty catalog")
		return InMemoryCorpus(match_mode=settings.match_mode)
	movies = LOADER.load_movies_from_jsonl(str(data_path))  # read dataset
	return InMemoryCorpus(movies, match_mode=settings.match_mode)


def get_corpus() -> CorpusAccessor:
	if CORPUS is None:  # startup has not run
		raise BackendUnavailableError("Catalog not initialized")
	return CORPUS


# Error kinds map onto HTTP statuses with the same {success, message} payload
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
	logger.warning(f"[API] Bad request on {request.url.path}: {exc}")
	return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	logger.warning(f"[API] Malformed request on {request.url.path}: {exc.errors()}")
	return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request payload."})


@app.exception_handler(BackendUnavailableError)
async def backend_error_handler(request: Request, exc: BackendUnavailableError):
	logger.error(f"[API] Backend unavailable on {request.url.path}: {exc}")
	return JSONResponse(status_code=503, content={"success": False, "message": "Backend unavailable."})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
	logger.exception(f"[API] Error in {request.url.path}: {exc}")
	return JSONResponse(status_code=500, content={"success": False, "message": "Internal Server Error"})


# FastAPI startup hook to initialize the corpus once
@app.on_event("startup")
async def startup_event():
	"""Initialize the corpus and log how it was initialized."""
	global CORPUS, STARTUP_TIME_S  # refer to module-level globals
	if CORPUS is not None:  # already injected (tests, embedding apps)
		return
	start = time.time()  # start timer for startup latency
	logger.info(f"[API] Startup: initializing '{SETTINGS.backend}' catalog (match mode {SETTINGS.match_mode})...")
	CORPUS = build_corpus(SETTINGS)
	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")


# Simple health endpoint for readiness checks
@app.get("/health")
def health():
	"""Return minimal health info for liveness/readiness probes."""
	size = None
	if CORPUS is not None:
		try:
			size = CORPUS.count()
		except BackendUnavailableError as e:
			logger.warning(f"[API] Health check could not count documents: {e}")
	return {
		"status": "ok",  # constant indicator
		"backend": SETTINGS.backend,  # which store is configured
		"catalog_ready": CORPUS is not None,  # True if corpus initialized
		"corpus_size": size,  # None when unknown
		"startup_seconds": round(STARTUP_TIME_S, 2),  # startup latency
	}


# Weighted search endpoint; sync so the blocking store access runs in the threadpool
@app.post("/api/search", response_model=SearchResponse)
def search(payload: Dict[str, Any] = Body(...)):
	"""Rank catalog records against weighted field criteria."""
	start = time.time()  # start timer
	request = PARSER.parse(payload)  # validate before touching the store
	results = SCORER.search(request, get_corpus())  # ranked (id, score) pairs
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /api/search served {len(results)} results in {elapsed_ms:.2f} ms")
	return SearchResponse(success=True, results=[RecordRef(recordId=r.id) for r in results])


@app.get("/api/search-db", response_model=KeywordSearchResponse)
def search_db(query: str = Query('', description="Free-text keywords"), limit: int = Query(12, gt=0)):
	"""Keyword search: any word found in title, director, cast or overview."""
	corpus = get_corpus()
	results = SCORER.search(keyword_request(query, limit=limit), corpus)
	movies = corpus.fetch_by_ids([r.id for r in results])  # materialize in ranked order
	logger.debug(f"[API] /api/search-db query='{query}' -> {len(movies)} movies")
	return KeywordSearchResponse(success=True, query=query, movies=[to_out(m) for m in movies])


@app.get("/api/movies", response_model=MovieListResponse)
def list_movies(size: Optional[int] = Query(None, gt=0)):
	"""Random selection of catalog movies for the landing page."""
	movies = get_corpus().sample(size or SETTINGS.sample_size)
	return MovieListResponse(success=True, movies=[to_out(m) for m in movies])


@app.get("/api/movies/{movie_id}", response_model=MovieDetailResponse)
def get_movie(movie_id: str):
	"""One movie and the movies most similar to it."""
	corpus = get_corpus()
	movie = corpus.get(movie_id)
	if movie is None:
		return JSONResponse(status_code=404, content={"success": False, "message": "Movie not found."})

	similar: List[Movie] = []
	try:
		request = similar_request(movie, limit=SETTINGS.similar_limit + 1)  # +1: the movie itself
		ranked = SCORER.search(request, corpus)
		ids = [r.id for r in ranked if r.id != movie.id][:SETTINGS.similar_limit]
		similar = corpus.fetch_by_ids(ids)
	except ValidationError as e:
		# Titles are not valid patterns in regex mode when they contain metacharacters
		logger.warning(f"[API] Similar movies skipped for {movie_id}: {e}")

	return MovieDetailResponse(success=True, movie=to_out(movie), similarMovies=[to_out(m) for m in similar])


@app.post("/api/movies", response_model=AddMovieResponse, status_code=201)
def add_movie(payload: Dict[str, Any] = Body(...)):
	"""Add a movie record; seriesTitle and overview are required."""
	movie = LOADER.parse_movie_data(payload, require_text=True)
	movie_id = get_corpus().add(movie)
	logger.info(f"[API] Added movie '{movie.title}' as {movie_id}")
	return AddMovieResponse(success=True, movieId=movie_id)
