"""
Data models for the Movie Catalog search backend.
Defines the core data structures used throughout the system.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Enum gives us a closed set of searchable field tags
from enum import Enum  # closed enumerations
# Import typing helpers for precise and self-documenting types
from typing import List, Optional, Union  # lists, optional values, unions


class FieldTag(str, Enum):
	"""The closed set of movie attributes a criterion can target."""
	TITLE = 'title'
	GENRE = 'genre'
	DIRECTOR = 'director'
	CAST = 'cast'
	KEYWORD = 'keyword'  # any of title, director, cast, overview


@dataclass
class Movie:
	"""
	Represents a single catalog record.
	The searchable fields keep their original casing; matching is case-insensitive.
	"""
	id: str  # unique identifier of the record
	title: str  # movie title as stored
	overview: str  # short synopsis
	genre: List[str]  # list of genre names (e.g., ["Drama", "War"])
	director: str  # director's name, empty when unknown
	cast: List[str]  # leading actors
	released_year: Union[int, str] = 'Unknown'  # numeric year or 'Unknown'
	certificate: str = 'Not Rated'  # rating certificate (e.g., "PG-13")
	runtime: int = 0  # minutes
	imdb_rating: float = 0.0  # 0..10
	meta_score: float = 0.0  # critics score 0..100
	votes: int = 0  # number of IMDB votes
	gross: Union[float, str] = 'N/A'  # box office gross when known
	poster_link: str = '/default-poster.jpg'  # poster image URL for the UI


@dataclass(frozen=True)
class Criterion:
	"""One (field, value, weight) search clause."""
	field: FieldTag
	value: str
	weight: float


@dataclass(frozen=True)
class ScoredResult:
	id: str  # document identifier
	score: float  # sum of weights of matched criteria


@dataclass
class SearchRequest:
	"""
	A validated weighted search.
	An empty criteria list is allowed and simply matches nothing.
	"""
	criteria: List[Criterion] = field(default_factory=list)
	score_threshold: float = 1.0  # inclusive lower bound on score
	limit: int = 10  # maximum number of results
	dataset: Optional[str] = None  # accepted from the wire, not used for scoring
