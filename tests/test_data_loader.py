"""
Tests for DataLoader: record normalization, defaults for new records, and JSONL loading.
Run: pytest tests/test_data_loader.py
"""

import json
from pathlib import Path

import pytest

from moviecatalog.data_loader import DataLoader
from moviecatalog.errors import ValidationError

ROOT = Path(__file__).resolve().parents[1]


def test_parses_collection_record():
	movie = DataLoader().parse_movie_data({
		'id': 'tt0133093',
		'seriesTitle': ' The Matrix ',
		'releasedYear': '1999',
		'runtime': '136 min',
		'genre': 'Action, Sci-Fi',
		'IMDB_Rating': '8.7',
		'overview': 'Neo learns the truth.',
		'director': 'Lana Wachowski',
		'stars': ['Keanu Reeves', '', 'Carrie-Anne Moss'],
		'noOfVotes': '1,676,426',
		'gross': '171,479,930',
	})
	assert movie.id == 'tt0133093'
	assert movie.title == 'The Matrix'
	assert movie.released_year == 1999
	assert movie.runtime == 136
	assert movie.genre == ['Action', 'Sci-Fi']
	assert movie.imdb_rating == 8.7
	assert movie.cast == ['Keanu Reeves', 'Carrie-Anne Moss']
	assert movie.votes == 1676426
	assert movie.gross == 171479930.0


def test_missing_display_fields_get_defaults():
	movie = DataLoader().parse_movie_data({'seriesTitle': 'Heat', 'overview': 'Heist.', 'genre': 'Crime', 'stars': 'Al Pacino'})
	assert movie.id == ''
	assert movie.released_year == 'Unknown'
	assert movie.certificate == 'Not Rated'
	assert movie.runtime == 0
	assert movie.director == ''
	assert movie.gross == 'N/A'
	assert movie.poster_link == '/default-poster.jpg'
	assert movie.genre == ['Crime']
	assert movie.cast == ['Al Pacino']


@pytest.mark.parametrize('record', [
	{'overview': 'No title here.'},
	{'seriesTitle': 'No overview'},
	{'seriesTitle': '', 'overview': ''},
])
def test_new_records_require_title_and_overview(record):
	with pytest.raises(ValidationError):
		DataLoader().parse_movie_data(record, require_text=True)


def test_non_object_record_rejected():
	with pytest.raises(ValidationError):
		DataLoader().parse_movie_data(['The Matrix'])


def test_to_record_uses_collection_field_names():
	loader = DataLoader()
	movie = loader.parse_movie_data({'seriesTitle': 'Heat', 'overview': 'Heist.', 'stars': ['Al Pacino']})
	record = loader.to_record(movie)
	assert record['seriesTitle'] == 'Heat'
	assert record['stars'] == ['Al Pacino']
	assert record['director'] == 'Unknown'
	assert '_id' not in record


def test_loads_jsonl_and_skips_bad_lines(tmp_path):
	path = tmp_path / 'movies.jsonl'
	lines = [
		json.dumps({'id': '1', 'seriesTitle': 'Heat', 'overview': 'Heist.'}),
		'{not json',
		'',
		json.dumps(['not', 'an', 'object']),
		json.dumps({'id': '2', 'seriesTitle': 'Up', 'overview': 'Balloons.'}),
	]
	path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
	movies = DataLoader().load_movies_from_jsonl(str(path))
	assert [m.id for m in movies] == ['1', '2']


def test_missing_file_raises():
	with pytest.raises(FileNotFoundError):
		DataLoader().load_movies_from_jsonl('does/not/exist.jsonl')


def test_bundled_sample_catalog_loads():
	movies = DataLoader().load_movies_from_jsonl(str(ROOT / 'data' / 'movies.jsonl'))
	assert len(movies) == 8
	assert all(m.id and m.title for m in movies)


@pytest.mark.parametrize('key', ['releasedYear', 'runtime', 'noOfVotes'])
@pytest.mark.parametrize('value', [float('nan'), float('inf'), float('-inf'), 'NaN'])
def test_non_finite_numbers_fall_back_to_defaults(key, value):
	loader = DataLoader()
	movie = loader.parse_movie_data({'seriesTitle': 'Apollo 13', 'overview': 'Houston.', key: value})
	record = loader.to_record(movie)
	assert record[key] == loader.DEFAULTS[key]


@pytest.mark.parametrize('value', [float('nan'), float('inf'), 'Infinity'])
def test_non_finite_ratings_fall_back_to_defaults(value):
	movie = DataLoader().parse_movie_data({'seriesTitle': 'Apollo 13', 'IMDB_Rating': value, 'gross': value})
	assert movie.imdb_rating == 0.0
	assert movie.gross == 'N/A'


def test_jsonl_with_nan_literal_loads(tmp_path):
	path = tmp_path / 'movies.jsonl'
	lines = [
		'{"id": "1", "seriesTitle": "Apollo 13", "overview": "Houston.", "runtime": NaN, "releasedYear": Infinity}',
		json.dumps({'id': '2', 'seriesTitle': 'Up', 'overview': 'Balloons.'}),
	]
	path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
	movies = DataLoader().load_movies_from_jsonl(str(path))
	assert [m.id for m in movies] == ['1', '2']
	assert movies[0].runtime == 0
	assert movies[0].released_year == 'Unknown'


def test_searchable_fields_read_collection_names_only():
	# the Mongo filter only queries seriesTitle, genre, director, stars and overview
	movie = DataLoader().parse_movie_data({
		'Series_Title': 'Heat',
		'Overview': 'Heist.',
		'Genre': 'Crime',
		'Director': 'Michael Mann',
		'actors': ['Al Pacino'],
	})
	assert (movie.title, movie.overview, movie.genre, movie.director, movie.cast) == ('', '', [], '', [])
