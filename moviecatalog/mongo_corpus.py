"""
MongoDB-backed corpus.
Candidate filtering is pushed down to the server as an $or of case-insensitive $regex clauses;
scoring stays in RelevanceScorer so both backends rank identically.
"""

from typing import Dict, Iterator, List, Optional, Tuple

from bson import ObjectId  # document ids
from pymongo import MongoClient  # database driver
from pymongo.errors import DuplicateKeyError, PyMongoError  # PyMongoError is the base of every driver failure

from loguru import logger  # console logging

from .corpus import CorpusAccessor
from .data_loader import DataLoader
from .errors import BackendUnavailableError, ValidationError
from .models import Criterion, FieldTag, Movie
from .scorer import pattern_source

# Collection field(s) each criterion field is matched against
MONGO_FIELDS: Dict[FieldTag, Tuple[str, ...]] = {
	FieldTag.TITLE: ('seriesTitle',),
	FieldTag.GENRE: ('genre',),
	FieldTag.DIRECTOR: ('director',),
	FieldTag.CAST: ('stars',),
	FieldTag.KEYWORD: ('seriesTitle', 'director', 'stars', 'overview'),
}


def build_candidate_filter(criteria: List[Criterion], match_mode: str = 'substring') -> Dict:
	"""Build the {"$or": [...]} filter selecting documents that match any criterion."""
	clauses = []
	for criterion in criteria:
		regex = {'$regex': pattern_source(criterion.value, match_mode), '$options': 'i'}
		for mongo_field in MONGO_FIELDS[criterion.field]:
			clauses.append({mongo_field: dict(regex)})
	return {'$or': clauses}


def _to_key(movie_id: str):
	# Ids minted by MongoDB are ObjectIds; anything else was stored as a plain string
	return ObjectId(movie_id) if ObjectId.is_valid(movie_id) else movie_id


class MongoCorpus(CorpusAccessor):
	"""CorpusAccessor over a pymongo collection holding catalog records."""

	def __init__(self, collection, match_mode: str = 'substring', loader: Optional[DataLoader] = None):
		self.collection = collection
		self.match_mode = match_mode
		self.loader = loader or DataLoader()

	@classmethod
	def connect(cls, uri: str, db_name: str = 'movies', collection_name: str = 'movies',
				timeout_ms: int = 5000, match_mode: str = 'substring') -> 'MongoCorpus':
		"""Open a client and bind to the movies collection."""
		client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
		logger.info(f"[MongoCorpus] Using collection '{db_name}.{collection_name}'")
		return cls(client[db_name][collection_name], match_mode=match_mode)

	def _to_movie(self, document: Dict) -> Movie:
		return self.loader.parse_movie_data(document)

	def match_candidates(self, criteria: List[Criterion]) -> Iterator[Movie]:
		if not criteria:
			return
		query = build_candidate_filter(criteria, self.match_mode)
		logger.debug(f"[MongoCorpus] Candidate filter with {len(query['$or'])} clauses")
		try:
			for document in self.collection.find(query):
				yield self._to_movie(document)
		except PyMongoError as e:
			logger.error(f"[MongoCorpus] Candidate query failed: {e}")
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e

	def fetch_by_ids(self, ids: List[str]) -> List[Movie]:
		if not ids:
			return []
		try:
			documents = list(self.collection.find({'_id': {'$in': [_to_key(i) for i in ids]}}))
		except PyMongoError as e:
			logger.error(f"[MongoCorpus] Fetch by ids failed: {e}")
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e
		by_id = {str(d['_id']): self._to_movie(d) for d in documents}
		return [by_id[i] for i in ids if i in by_id]

	def get(self, movie_id: str) -> Optional[Movie]:
		try:
			document = self.collection.find_one({'_id': _to_key(movie_id)})
		except PyMongoError as e:
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e
		return self._to_movie(document) if document else None

	def add(self, movie: Movie) -> str:
		record = self.loader.to_record(movie)
		if movie.id:
			record['_id'] = _to_key(movie.id)
		try:
			result = self.collection.insert_one(record)
		except DuplicateKeyError as e:
			raise ValidationError(f"Duplicate movie id '{movie.id}'") from e
		except PyMongoError as e:
			logger.error(f"[MongoCorpus] Insert failed: {e}")
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e
		movie.id = str(result.inserted_id)
		logger.info(f"[MongoCorpus] Inserted movie {movie.id}")
		return movie.id

	def sample(self, size: int) -> List[Movie]:
		try:
			documents = list(self.collection.aggregate([{'$sample': {'size': size}}]))
		except PyMongoError as e:
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e
		return [self._to_movie(d) for d in documents]

	def count(self) -> int:
		try:
			return self.collection.count_documents({})
		except PyMongoError as e:
			raise BackendUnavailableError(f"Movie store unavailable: {e}") from e
