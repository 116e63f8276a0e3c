"""
Error types shared by the search engine, corpus accessors and the API.
"""


class ValidationError(ValueError):
	"""Malformed search request or record; maps to a bad request."""


class BackendUnavailableError(RuntimeError):
	"""The document store could not be reached or failed mid-query."""
