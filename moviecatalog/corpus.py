"""
Corpus access module.
Defines the interface the scorer reads documents through, plus an in-memory implementation
used for tests and for the JSONL-backed default backend.
"""

import random  # random sampling for the catalog landing page
import uuid  # ids for records added without one
from typing import Dict, Iterable, Iterator, List, Optional

from loguru import logger  # console logging

from .errors import ValidationError
from .models import Criterion, Movie
from .scorer import compile_pattern, matches


class CorpusAccessor:
	"""
	Read/write access to the movie collection.
	Implementations must return a consistent view for the duration of one search call.
	"""

	def match_candidates(self, criteria: List[Criterion]) -> Iterable[Movie]:
		"""Yield every movie matching at least one criterion."""
		raise NotImplementedError

	def fetch_by_ids(self, ids: List[str]) -> List[Movie]:
		"""Return movies in the order of `ids`, skipping unknown ids."""
		raise NotImplementedError

	def get(self, movie_id: str) -> Optional[Movie]:
		raise NotImplementedError

	def add(self, movie: Movie) -> str:
		raise NotImplementedError

	def sample(self, size: int) -> List[Movie]:
		raise NotImplementedError

	def count(self) -> int:
		raise NotImplementedError


class InMemoryCorpus(CorpusAccessor):
	"""Dictionary-backed corpus; iteration follows insertion order."""

	def __init__(self, movies: Optional[Iterable[Movie]] = None, match_mode: str = 'substring'):
		self.match_mode = match_mode
		self.movies_map: Dict[str, Movie] = {}  # id -> Movie
		for movie in movies or []:
			self.add(movie)
		logger.info(f"[Corpus] In-memory corpus ready with {len(self.movies_map)} movies | mode={match_mode}")

	def match_candidates(self, criteria: List[Criterion]) -> Iterator[Movie]:
		if not criteria:
			return
		compiled = [(c.field, compile_pattern(c.value, self.match_mode)) for c in criteria]
		# Snapshot the values so concurrent adds do not disturb a running search
		for movie in list(self.movies_map.values()):
			if any(matches(movie, tag, pattern) for tag, pattern in compiled):
				yield movie

	def fetch_by_ids(self, ids: List[str]) -> List[Movie]:
		return [self.movies_map[i] for i in ids if i in self.movies_map]

	def get(self, movie_id: str) -> Optional[Movie]:
		return self.movies_map.get(movie_id)

	def add(self, movie: Movie) -> str:
		if not movie.id:
			movie.id = uuid.uuid4().hex
		if movie.id in self.movies_map:
			raise ValidationError(f"Duplicate movie id '{movie.id}'")
		self.movies_map[movie.id] = movie
		return movie.id

	def sample(self, size: int) -> List[Movie]:
		movies = list(self.movies_map.values())
		return random.sample(movies, min(size, len(movies)))

	def count(self) -> int:
		return len(self.movies_map)
