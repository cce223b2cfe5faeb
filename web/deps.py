"""FastAPI dependency providers, read from app.state, set by main.py."""

from fastapi import Request


def get_library_store(request: Request):
    """LibraryStore instance."""
    return request.app.state.library_store


def get_access_gate(request: Request):
    """AccessGate built from the auth config."""
    return request.app.state.access_gate


def get_search_client(request: Request):
    """YouTubeSearchClient sharing the app's httpx client."""
    return request.app.state.search_client


def get_audio_resolver(request: Request):
    """AudioResolver (yt-dlp) or a test double."""
    return request.app.state.audio_resolver


def get_audio_streamer(request: Request):
    """AudioStreamer piping media bytes through."""
    return request.app.state.audio_streamer


def get_auth_config(request: Request):
    """AuthConfig instance."""
    return request.app.state.auth_config
