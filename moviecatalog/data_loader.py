"""
Data loading and normalization module.
Turns raw catalog records (as stored in the movies collection) into Movie objects
and back, and loads whole catalogs from JSON Lines files.
"""

# Standard libs for JSON parsing, regex, typing, and paths
import json  # read JSON lines
import math  # reject NaN and infinite numbers
import re  # pull the number out of strings like "142 min"
from typing import Any, Dict, List  # type hints
from pathlib import Path  # filesystem-safe paths

# Structured movie record and our error type
from .errors import ValidationError  # bad input records
from .models import Movie  # structured movie record

# Console logging
from loguru import logger  # console logger

RE_NUMBER = re.compile(r'(\d+)')  # first run of digits


class DataLoader:
	"""
	Handles loading and normalization of movie records.
	Raw records use the collection's field names (seriesTitle, stars, posterLink, ...).
	"""

	# Defaults applied to missing display fields, matching what the catalog pages expect
	DEFAULTS = {
		'releasedYear': 'Unknown',
		'certificate': 'Not Rated',
		'runtime': 0,
		'IMDB_Rating': 0.0,
		'metaScore': 0.0,
		'director': 'Unknown',
		'noOfVotes': 0,
		'gross': 'N/A',
		'posterLink': '/default-poster.jpg',
	}

	def load_movies_from_jsonl(self, filepath: str) -> List[Movie]:
		"""
		Load movies from a JSON Lines (JSONL) file where each line is one JSON object.
		Returns a list of Movie objects.
		"""
		movies = []  # accumulator for parsed Movie objects
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Movie data file not found: {filepath}")

		logger.info(f"[DataLoader] Loading movies from {filepath}...")  # log action

		# Read line-by-line to handle large datasets efficiently
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():  # blank lines are allowed
					continue
				try:
					data = json.loads(line.strip())  # parse JSON object per line
					movies.append(self.parse_movie_data(data))  # dict -> Movie
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
				except (ValidationError, TypeError, AttributeError, ValueError, OverflowError) as e:
					logger.warning(f"[DataLoader] Error parsing movie at line {line_num}: {e}")  # bad record

		logger.info(f"[DataLoader] Successfully loaded {len(movies)} movies.")  # summary
		return movies

	def parse_movie_data(self, data: Dict[str, Any], require_text: bool = False) -> Movie:
		"""
		Convert a raw record into a Movie, filling display defaults.
		With require_text, a record lacking title or overview is rejected (new records must have both).
		"""
		if not isinstance(data, dict):
			raise ValidationError(f"Movie record must be an object, got {type(data).__name__}")

		# Searchable fields are read under the collection names only, the same ones the Mongo filter queries
		title = self._first(data, 'seriesTitle')
		overview = self._first(data, 'overview')
		if require_text and (not title or not overview):
			raise ValidationError("Missing required fields: seriesTitle or overview.")

		record_id = self._first(data, '_id', 'id', 'movie_id')

		return Movie(
			id=str(record_id) if record_id is not None else '',
			title=str(title or '').strip(),
			overview=str(overview or '').strip(),
			genre=self._parse_list(self._first(data, 'genre')),
			director=str(self._first(data, 'director') or '').strip(),  # empty when absent; to_record writes the display default
			cast=self._parse_list(self._first(data, 'stars')),
			released_year=self._parse_int(self._first(data, 'releasedYear', 'Released_Year', 'year'), self.DEFAULTS['releasedYear']),
			certificate=str(self._first(data, 'certificate', 'Certificate') or self.DEFAULTS['certificate']),
			runtime=self._parse_int(self._first(data, 'runtime', 'Runtime'), self.DEFAULTS['runtime']),
			imdb_rating=self._parse_float(self._first(data, 'IMDB_Rating', 'imdbRating', 'rating'), self.DEFAULTS['IMDB_Rating']),
			meta_score=self._parse_float(self._first(data, 'metaScore', 'Meta_score'), self.DEFAULTS['metaScore']),
			votes=self._parse_int(self._first(data, 'noOfVotes', 'No_of_Votes', 'votes'), self.DEFAULTS['noOfVotes']),
			gross=self._parse_float(self._first(data, 'gross', 'Gross'), self.DEFAULTS['gross']),
			poster_link=str(self._first(data, 'posterLink', 'Poster_Link', 'poster_url') or self.DEFAULTS['posterLink']),
		)

	def to_record(self, movie: Movie) -> Dict[str, Any]:
		"""Inverse of parse_movie_data: the collection-shaped dict for a Movie (without _id)."""
		return {
			'seriesTitle': movie.title,
			'releasedYear': movie.released_year,
			'certificate': movie.certificate,
			'runtime': movie.runtime,
			'genre': list(movie.genre),
			'IMDB_Rating': movie.imdb_rating,
			'overview': movie.overview,
			'metaScore': movie.meta_score,
			'director': movie.director or self.DEFAULTS['director'],
			'stars': list(movie.cast),
			'noOfVotes': movie.votes,
			'gross': movie.gross,
			'posterLink': movie.poster_link,
		}

	@staticmethod
	def _first(data: Dict[str, Any], *keys: str) -> Any:
		"""Value of the first key present with a non-empty value."""
		for key in keys:
			value = data.get(key)
			if value not in (None, ''):
				return value
		return None

	def _parse_list(self, value) -> List[str]:
		"""
		Normalize a value that may be None, a list, or a comma-separated string
		into a list of clean strings.
		"""
		if value is None:  # missing field
			return []
		if isinstance(value, (list, tuple)):  # already a list
			return [str(item).strip() for item in value if item and str(item).strip()]
		if isinstance(value, str):  # comma-separated string
			return [item.strip() for item in value.split(',') if item.strip()]
		return [str(value)]  # scalar becomes a one-element list

	def _parse_int(self, value, default):
		# "1,234", "142 min", 1999 -> int; anything else -> default
		if value is None or isinstance(value, bool):
			return default
		if isinstance(value, float) and not math.isfinite(value):  # NaN years from the CSV import
			return default
		if isinstance(value, (int, float)):
			return int(value)
		m = RE_NUMBER.search(str(value).replace(',', ''))
		return int(m.group(1)) if m else default

	def _parse_float(self, value, default):
		if value is None or isinstance(value, bool):
			return default
		try:
			number = float(str(value).replace(',', ''))
		except ValueError:
			return default
		return number if math.isfinite(number) else default
