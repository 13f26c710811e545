"""
trackstats - Spotify track metrics and the SQL practice query catalogue.

trackstats keeps the flat `spotify` table of track, album and artist facts in
SQLite and answers a fixed catalogue of easy, medium and advanced questions
about it, either as SQL or as pure functions over the loaded records.
"""

__version__ = "0.1.0"

from trackstats.core.dataset import SpotifyDataset
from trackstats.core.track_db import TrackDb

__all__ = ["SpotifyDataset", "TrackDb", "__version__"]
