"""
apibin REST API package

Use ``create_app`` to build a new application or the
``api`` wrapper to lazily get a default one.
"""

from .api import api, create_app
