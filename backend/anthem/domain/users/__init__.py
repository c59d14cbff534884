"""User profile records: attribute codec, patch compilation and the users service."""

from anthem.domain.users.models import Album, Artist, MusicProvider, Track, User, UserUpdate

__all__ = ["Album", "Artist", "MusicProvider", "Track", "User", "UserUpdate"]
