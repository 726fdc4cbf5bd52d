"""Contains all models commonly used across different modules."""
from enum import Enum


class TokenClass(str, Enum):
    """Enumeration of token classes. Each class has its own secret and lifetime."""
    ACCESS = "access"
    REFRESH = "refresh"


class ImageKind(str, Enum):
    """Enum for the profile images a user can upload."""

    AVATAR = "avatar"
    COVER_IMAGE = "cover_image"
