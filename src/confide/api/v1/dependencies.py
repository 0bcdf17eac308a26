"""Shared API dependencies: repositories and the caller's identity."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from confide.core.errors import PermissionDeniedError
from confide.core.security import identity_from_token
from confide.repositories import Repositories
from confide.services.feed import SearchHistory
from confide.services.identity import Identity

# HTTP Bearer scheme; tokens are issued by the identity provider
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def get_repositories(request: Request) -> Repositories:
    """Return the repositories wired at startup."""
    return request.app.state.repositories


def get_search_history(request: Request) -> SearchHistory:
    return request.app.state.search_history


def _resolve(token: str) -> Identity:
    try:
        return identity_from_token(token)
    except PermissionDeniedError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
            headers={"WWW-Authenticate": "Bearer"},
        ) from err


def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> Identity:
    """Resolve the bearer token into the caller's identity."""
    return _resolve(credentials.credentials)


def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)],
) -> Identity | None:
    """Like :func:`get_identity`, but anonymous browsing is allowed."""
    if credentials is None:
        return None
    return _resolve(credentials.credentials)


RepositoriesDep = Annotated[Repositories, Depends(get_repositories)]
SearchHistoryDep = Annotated[SearchHistory, Depends(get_search_history)]
IdentityDep = Annotated[Identity, Depends(get_identity)]
OptionalIdentityDep = Annotated[Identity | None, Depends(get_optional_identity)]
