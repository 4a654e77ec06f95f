"""Playlist Swipe Server: Spotify PKCE login and cookie sessions."""

__version__ = "0.1.0"
