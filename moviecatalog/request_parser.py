"""
Request parsing module.
Turns search payloads from the HTTP boundary into validated SearchRequest objects,
and builds the canned requests used by the catalog pages (keyword search, similar movies).
"""

import numbers  # numeric type checks
import re  # whitespace tokenization of keyword queries
from typing import Any, Dict, List

from loguru import logger  # console logging

from .data_loader import DataLoader
from .errors import ValidationError
from .models import Criterion, FieldTag, Movie, SearchRequest

# Wire keys accepted on each criterion object, mapped to the field they target
FIELD_KEYS: Dict[str, FieldTag] = {
	'movie_name': FieldTag.TITLE,
	'title': FieldTag.TITLE,
	'genre': FieldTag.GENRE,
	'director': FieldTag.DIRECTOR,
	'cast': FieldTag.CAST,
	'keyword': FieldTag.KEYWORD,
}

# Similar-movie weights: a shared title counts most, then the director
SIMILAR_WEIGHTS = {
	FieldTag.TITLE: 3,
	FieldTag.GENRE: 1,
	FieldTag.DIRECTOR: 2,
	FieldTag.CAST: 1,
}
SIMILAR_THRESHOLD = 0.5

RE_WORDS = re.compile(r'\S+')


class RequestParser:
	"""
	Parses search payloads of the form
	{dataset, data: [{<fieldKey>: value, weight}], requestedCountOfMatches, thresholdMatchScore, pageNumber, pageSize}.
	Paging keys are accepted and ignored.
	"""

	def parse(self, payload: Dict[str, Any]) -> SearchRequest:
		"""Main entry: produce a SearchRequest from a decoded JSON body."""
		if not isinstance(payload, dict):
			raise ValidationError("Invalid request payload.")

		dataset = payload.get('dataset')
		data = payload.get('data')
		if not dataset or not isinstance(dataset, str):
			raise ValidationError("Invalid request payload: 'dataset' must be a non-empty string.")
		if data is None or not isinstance(data, list):
			raise ValidationError("Invalid request payload: 'data' must be a list of criteria.")

		criteria = [self.parse_criterion(item, i) for i, item in enumerate(data)]
		limit = self._require_number(payload, 'requestedCountOfMatches', integral=True)
		threshold = self._require_number(payload, 'thresholdMatchScore')

		request = SearchRequest(criteria=criteria, score_threshold=threshold, limit=limit, dataset=dataset)
		logger.debug(
			f"[Parser] Parsed search | dataset={dataset} | criteria={len(criteria)} | threshold={threshold} | limit={limit}"
		)
		return request

	def parse_criterion(self, item: Any, index: int = 0) -> Criterion:
		"""Convert one {<fieldKey>: value, weight} object; exactly one field key is allowed."""
		if not isinstance(item, dict):
			raise ValidationError(f"Criterion #{index} must be an object")

		unknown = [k for k in item if k != 'weight' and k not in FIELD_KEYS]
		if unknown:
			raise ValidationError(f"Criterion #{index} has unknown field key(s): {', '.join(sorted(unknown))}")
		keys = [k for k in item if k in FIELD_KEYS]
		if len(keys) != 1:
			raise ValidationError(f"Criterion #{index} must name exactly one field, got {len(keys)}")

		key = keys[0]
		value = item[key]
		if not isinstance(value, str) or not value.strip():
			raise ValidationError(f"Criterion #{index} value for '{key}' must be a non-empty string")
		weight = item.get('weight')
		if isinstance(weight, bool) or not isinstance(weight, numbers.Real) or not weight > 0:
			raise ValidationError(f"Criterion #{index} weight must be a positive number, got {weight!r}")
		return Criterion(field=FIELD_KEYS[key], value=value.strip(), weight=weight)

	def _require_number(self, payload: Dict[str, Any], key: str, integral: bool = False):
		value = payload.get(key)
		kind = numbers.Integral if integral else numbers.Real
		if isinstance(value, bool) or not isinstance(value, kind):
			raise ValidationError(f"Invalid request payload: '{key}' must be {'an integer' if integral else 'a number'}.")
		if value <= 0:
			raise ValidationError(f"Invalid request payload: '{key}' must be positive.")
		return value


def keyword_request(query: str, limit: int = 12) -> SearchRequest:
	"""One keyword criterion per whitespace-separated word; any single word is enough to match."""
	words = RE_WORDS.findall(query or '')
	criteria = [Criterion(field=FieldTag.KEYWORD, value=w, weight=1) for w in words]
	return SearchRequest(criteria=criteria, score_threshold=1, limit=limit)


def similar_request(movie: Movie, limit: int = 12) -> SearchRequest:
	"""Criteria describing `movie`: its title, each genre, its director and each cast member."""
	criteria: List[Criterion] = []
	if movie.title:
		criteria.append(Criterion(FieldTag.TITLE, movie.title, SIMILAR_WEIGHTS[FieldTag.TITLE]))
	for genre in movie.genre:
		criteria.append(Criterion(FieldTag.GENRE, genre, SIMILAR_WEIGHTS[FieldTag.GENRE]))
	if movie.director and movie.director != DataLoader.DEFAULTS['director']:
		criteria.append(Criterion(FieldTag.DIRECTOR, movie.director, SIMILAR_WEIGHTS[FieldTag.DIRECTOR]))
	for actor in movie.cast:
		criteria.append(Criterion(FieldTag.CAST, actor, SIMILAR_WEIGHTS[FieldTag.CAST]))
	return SearchRequest(criteria=criteria, score_threshold=SIMILAR_THRESHOLD, limit=limit)
