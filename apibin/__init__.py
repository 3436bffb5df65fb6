"""
apibin example REST API

A small demonstration HTTP service echoing requests and serving
examples, together with a mutable ``books`` collection that supports
conditional requests via ``ETag`` and ``Last-Modified``.
"""

__version__ = "1.0.0"
