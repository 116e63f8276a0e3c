"""
Relevance scoring module.
Finds movies matching any weighted criterion, scores them by the weights they satisfy,
and returns the best-scoring identifiers.
"""

import numbers  # numeric type checks for request validation
import re  # case-insensitive pattern matching
from typing import TYPE_CHECKING, List, Pattern

from loguru import logger  # console logging

from .errors import BackendUnavailableError, ValidationError
from .models import Criterion, FieldTag, Movie, ScoredResult, SearchRequest

if TYPE_CHECKING:
	from .corpus import CorpusAccessor  # corpus imports this module

MATCH_MODES = ('substring', 'regex')

# Movie attributes consulted by a keyword criterion
KEYWORD_FIELDS = (FieldTag.TITLE, FieldTag.DIRECTOR, FieldTag.CAST)


def pattern_source(value: str, match_mode: str = 'substring') -> str:
	"""Return the regex source for a criterion value under the given match mode."""
	if match_mode == 'regex':
		return value
	return re.escape(value)


def compile_pattern(value: str, match_mode: str = 'substring') -> Pattern:
	"""Compile a criterion value into a case-insensitive pattern."""
	try:
		return re.compile(pattern_source(value, match_mode), re.IGNORECASE)
	except re.error as e:
		raise ValidationError(f"Invalid pattern '{value}': {e}") from e


def field_values(movie: Movie, tag: FieldTag) -> List[str]:
	"""Return the string values of a movie that a criterion on `tag` is matched against."""
	if tag == FieldTag.TITLE:
		return [movie.title or '']
	if tag == FieldTag.GENRE:
		return list(movie.genre or [])
	if tag == FieldTag.DIRECTOR:
		return [movie.director or '']
	if tag == FieldTag.CAST:
		return list(movie.cast or [])
	if tag == FieldTag.KEYWORD:
		values = []
		for sub in KEYWORD_FIELDS:
			values.extend(field_values(movie, sub))
		values.append(movie.overview or '')
		return values
	raise ValidationError(f"Unknown field tag: {tag!r}")


def matches(movie: Movie, tag: FieldTag, pattern: Pattern) -> bool:
	"""True when any value of the designated field contains the pattern."""
	return any(pattern.search(v) for v in field_values(movie, tag) if v)


def validate_request(request: SearchRequest, match_mode: str = 'substring') -> List[Pattern]:
	"""
	Check a request before any corpus access and return one compiled pattern per criterion.
	Raises ValidationError on the first problem found.
	"""
	if match_mode not in MATCH_MODES:
		raise ValidationError(f"Unknown match mode '{match_mode}', expected one of {MATCH_MODES}")
	if request.criteria is None:
		raise ValidationError("Criteria list is required")

	threshold = request.score_threshold
	if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real) or threshold != threshold:
		raise ValidationError(f"Score threshold must be a number, got {threshold!r}")
	if threshold <= 0:
		raise ValidationError(f"Score threshold must be positive, got {threshold}")

	limit = request.limit
	if isinstance(limit, bool) or not isinstance(limit, numbers.Integral):
		raise ValidationError(f"Limit must be an integer, got {limit!r}")
	if limit <= 0:
		raise ValidationError(f"Limit must be positive, got {limit}")

	patterns = []
	for i, criterion in enumerate(request.criteria):
		if not isinstance(criterion, Criterion):
			raise ValidationError(f"Criterion #{i} is not a Criterion: {criterion!r}")
		if not isinstance(criterion.field, FieldTag):
			raise ValidationError(f"Criterion #{i} has unknown field tag {criterion.field!r}")
		if not isinstance(criterion.value, str) or not criterion.value.strip():
			raise ValidationError(f"Criterion #{i} needs a non-empty string value")
		weight = criterion.weight
		if isinstance(weight, bool) or not isinstance(weight, numbers.Real) or not weight > 0:
			raise ValidationError(f"Criterion #{i} weight must be a positive number, got {weight!r}")
		patterns.append(compile_pattern(criterion.value, match_mode))
	return patterns


class RelevanceScorer:
	"""
	Weighted multi-field match-and-rank engine.
	Stateless: the corpus is passed to every call and nothing is cached between calls.
	Ties on score are broken by document id ascending so output is reproducible.
	"""

	def __init__(self, match_mode: str = 'substring'):
		if match_mode not in MATCH_MODES:
			raise ValueError(f"Unknown match mode '{match_mode}', expected one of {MATCH_MODES}")
		self.match_mode = match_mode

	def score(self, movie: Movie, criteria: List[Criterion], patterns: List[Pattern]):
		"""Sum of weights of the criteria the movie satisfies; each criterion counts once."""
		total = 0
		for criterion, pattern in zip(criteria, patterns):
			if matches(movie, criterion.field, pattern):
				total += criterion.weight
		return total

	def search(self, request: SearchRequest, corpus: 'CorpusAccessor') -> List[ScoredResult]:
		"""Run the weighted search against `corpus` and return ranked (id, score) pairs."""
		patterns = validate_request(request, self.match_mode)
		criteria = list(request.criteria)
		if not criteria:
			logger.debug("[Scorer] No criteria given, nothing can match")
			return []

		candidates = self._collect_candidates(corpus, criteria)
		logger.debug(f"[Scorer] Corpus returned {len(candidates)} candidates for {len(criteria)} criteria")

		scored: List[ScoredResult] = []
		seen = set()
		for movie in candidates:
			if movie.id in seen:
				continue
			seen.add(movie.id)
			score = self.score(movie, criteria, patterns)
			if score < request.score_threshold:
				logger.debug(f"[Scorer] Below threshold | id={movie.id} | score={score} | threshold={request.score_threshold}")
				continue
			scored.append(ScoredResult(id=movie.id, score=score))

		# Sort by id first, then by score; the stable sort keeps id order within equal scores
		scored.sort(key=lambda r: r.id)
		scored.sort(key=lambda r: r.score, reverse=True)
		logger.info(f"[Scorer] Returning top {min(request.limit, len(scored))} of {len(scored)} ranked results")
		return scored[:request.limit]

	def _collect_candidates(self, corpus: 'CorpusAccessor', criteria: List[Criterion]) -> List[Movie]:
		# Materialize the whole candidate set so a failure never yields a partial ranking
		try:
			return list(corpus.match_candidates(criteria))
		except BackendUnavailableError:
			raise
		except OSError as e:
			logger.error(f"[Scorer] Corpus access failed: {e}")
			raise BackendUnavailableError(f"Corpus access failed: {e}") from e
