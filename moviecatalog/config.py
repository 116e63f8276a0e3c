"""
Runtime settings read from environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
	backend: str = 'memory'  # 'memory' (JSONL file) or 'mongo'
	data_path: str = 'data/movies.jsonl'
	mongo_uri: str = 'mongodb://localhost:27017'
	mongo_db: str = 'movies'
	mongo_collection: str = 'movies'
	mongo_timeout_ms: int = 5000
	match_mode: str = 'substring'  # 'substring' or 'regex'
	sample_size: int = 12
	similar_limit: int = 12

	@classmethod
	def from_env(cls) -> 'Settings':
		return cls(
			backend=os.getenv('CATALOG_BACKEND', cls.backend).lower(),
			data_path=os.getenv('CATALOG_DATA_PATH', cls.data_path),
			mongo_uri=os.getenv('MONGO_URI', cls.mongo_uri),
			mongo_db=os.getenv('MONGO_DB', cls.mongo_db),
			mongo_collection=os.getenv('MONGO_COLLECTION', cls.mongo_collection),
			mongo_timeout_ms=int(os.getenv('MONGO_TIMEOUT_MS', cls.mongo_timeout_ms)),
			match_mode=os.getenv('CATALOG_MATCH_MODE', cls.match_mode).lower(),
			sample_size=int(os.getenv('SAMPLE_SIZE', cls.sample_size)),
			similar_limit=int(os.getenv('SIMILAR_LIMIT', cls.similar_limit)),
		)
