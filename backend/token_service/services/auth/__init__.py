from token_service.services.auth.authority import TokenAuthority
from token_service.services.auth.dto import AuthTokenConfig, Principal, TokenPairOut

__all__ = ["AuthTokenConfig", "Principal", "TokenAuthority", "TokenPairOut"]
