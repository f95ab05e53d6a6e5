"""ORM models; importing this package registers every table on the metadata."""

from token_service.models.user import User

__all__ = ["User"]
