"""Twitch streamer dashboard API: account linking and stream statistics."""

__version__ = "1.0.0"
