"""
Tests for MongoCorpus against an in-process stand-in for a pymongo collection.
Run: pytest tests/test_mongo_corpus.py
"""

from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from moviecatalog.errors import BackendUnavailableError, ValidationError
from moviecatalog.models import Criterion, FieldTag, SearchRequest
from moviecatalog.mongo_corpus import MongoCorpus, build_candidate_filter
from moviecatalog.scorer import RelevanceScorer


class FakeCollection:
	"""Holds documents in a list; understands just the queries MongoCorpus issues."""

	def __init__(self, documents=()):
		self.documents = [dict(d) for d in documents]
		self.queries = []

	def find(self, query):
		self.queries.append(query)
		if '_id' in query:
			wanted = query['_id']['$in']
			return [d for d in self.documents if d['_id'] in wanted]
		return list(self.documents)

	def find_one(self, query):
		return next((d for d in self.documents if d['_id'] == query['_id']), None)

	def insert_one(self, record):
		record = dict(record)
		record.setdefault('_id', ObjectId())
		if any(d['_id'] == record['_id'] for d in self.documents):
			raise DuplicateKeyError('duplicate key')
		self.documents.append(record)
		return SimpleNamespace(inserted_id=record['_id'])

	def aggregate(self, pipeline):
		size = pipeline[0]['$sample']['size']
		return self.documents[:size]

	def count_documents(self, query):
		return len(self.documents)


class DownCollection:
	"""Every call fails the way an unreachable server does."""

	def __getattr__(self, name):
		def fail(*args, **kwargs):
			raise ServerSelectionTimeoutError('localhost:27017: connection refused')
		return fail


MATRIX_ID = ObjectId()
RELOADED_ID = ObjectId()


def matrix_collection():
	return FakeCollection([
		{'_id': MATRIX_ID, 'seriesTitle': 'The Matrix', 'genre': ['Sci-Fi'], 'overview': 'Neo.', 'stars': ['Keanu Reeves']},
		{'_id': RELOADED_ID, 'seriesTitle': 'Matrix Reloaded', 'genre': ['Action'], 'overview': 'Neo again.'},
	])


def test_candidate_filter_is_or_of_case_insensitive_regexes():
	query = build_candidate_filter([
		Criterion(FieldTag.TITLE, 'Matrix', 3),
		Criterion(FieldTag.GENRE, 'Sci-Fi', 1),
	])
	assert query == {'$or': [
		{'seriesTitle': {'$regex': 'Matrix', '$options': 'i'}},
		{'genre': {'$regex': r'Sci\-Fi', '$options': 'i'}},
	]}


def test_keyword_criterion_spans_several_fields():
	query = build_candidate_filter([Criterion(FieldTag.KEYWORD, 'neo', 1)])
	assert [list(clause) for clause in query['$or']] == [['seriesTitle'], ['director'], ['stars'], ['overview']]


def test_regex_mode_passes_pattern_through():
	query = build_candidate_filter([Criterion(FieldTag.TITLE, '^The', 1)], match_mode='regex')
	assert query['$or'][0]['seriesTitle']['$regex'] == '^The'


def test_scorer_ranks_mongo_documents():
	corpus = MongoCorpus(matrix_collection())
	request = SearchRequest(
		criteria=[Criterion(FieldTag.TITLE, 'Matrix', 3), Criterion(FieldTag.GENRE, 'Sci-Fi', 1)],
		score_threshold=3,
		limit=10,
	)
	results = RelevanceScorer().search(request, corpus)
	assert [(r.id, r.score) for r in results] == [(str(MATRIX_ID), 4), (str(RELOADED_ID), 3)]
	assert corpus.collection.queries[0]['$or'][0] == {'seriesTitle': {'$regex': 'Matrix', '$options': 'i'}}


def test_fetch_by_ids_keeps_requested_order():
	corpus = MongoCorpus(matrix_collection())
	movies = corpus.fetch_by_ids([str(RELOADED_ID), 'missing', str(MATRIX_ID)])
	assert [m.title for m in movies] == ['Matrix Reloaded', 'The Matrix']


def test_get_returns_movie_or_none():
	corpus = MongoCorpus(matrix_collection())
	assert corpus.get(str(MATRIX_ID)).cast == ['Keanu Reeves']
	assert corpus.get(str(ObjectId())) is None


def test_add_inserts_collection_shaped_record():
	collection = FakeCollection()
	corpus = MongoCorpus(collection)
	movie = corpus.loader.parse_movie_data({'seriesTitle': 'Heat', 'overview': 'Heist.'}, require_text=True)
	movie_id = corpus.add(movie)
	assert ObjectId.is_valid(movie_id)
	assert collection.documents[0]['seriesTitle'] == 'Heat'
	assert collection.documents[0]['posterLink'] == '/default-poster.jpg'
	assert corpus.count() == 1


def test_add_with_existing_id_is_a_validation_error():
	corpus = MongoCorpus(matrix_collection())
	movie = corpus.loader.parse_movie_data({'_id': str(MATRIX_ID), 'seriesTitle': 'Copy', 'overview': 'Dup.'})
	with pytest.raises(ValidationError):
		corpus.add(movie)


def test_sample_limits_size():
	assert len(MongoCorpus(matrix_collection()).sample(1)) == 1


@pytest.mark.parametrize('call', [
	lambda c: list(c.match_candidates([Criterion(FieldTag.TITLE, 'x', 1)])),
	lambda c: c.fetch_by_ids(['a']),
	lambda c: c.get('a'),
	lambda c: c.sample(3),
	lambda c: c.count(),
])
def test_driver_failures_become_backend_unavailable(call):
	with pytest.raises(BackendUnavailableError):
		call(MongoCorpus(DownCollection()))


def test_search_against_unreachable_store_raises_backend_unavailable():
	request = SearchRequest(criteria=[Criterion(FieldTag.TITLE, 'Matrix', 1)], score_threshold=1, limit=5)
	with pytest.raises(BackendUnavailableError):
		RelevanceScorer().search(request, MongoCorpus(DownCollection()))


def test_search_tolerates_nan_year_from_import():
	apollo_id = ObjectId()
	corpus = MongoCorpus(FakeCollection([
		{'_id': apollo_id, 'seriesTitle': 'Apollo 13', 'releasedYear': float('nan'), 'runtime': float('inf'), 'overview': 'Houston.'},
	]))
	request = SearchRequest(criteria=[Criterion(FieldTag.TITLE, 'apollo', 1)], score_threshold=1, limit=5)
	assert [(r.id, r.score) for r in RelevanceScorer().search(request, corpus)] == [(str(apollo_id), 1)]
	assert corpus.get(str(apollo_id)).released_year == 'Unknown'


def test_missing_director_is_stored_as_unknown_but_not_searchable():
	collection = FakeCollection()
	corpus = MongoCorpus(collection)
	movie = corpus.loader.parse_movie_data({'seriesTitle': 'Heat', 'overview': 'Heist.'}, require_text=True)
	assert movie.director == ''
	corpus.add(movie)
	assert collection.documents[0]['director'] == 'Unknown'
