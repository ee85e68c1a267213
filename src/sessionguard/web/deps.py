from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sessionguard.app import App
from sessionguard.errors import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def require_api_token(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> None:
    """Reject callers that do not present the service API token."""
    if credentials and credentials.scheme == "Bearer" and app.is_api_token_valid(credentials.credentials):
        return
    raise AuthenticationError("Invalid or missing API token")


AppDep = Annotated[App, Depends(get_app)]
ApiTokenDep = Depends(require_api_token)
