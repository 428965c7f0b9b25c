"""Users resource client."""

from typing import TYPE_CHECKING, Any

from renovate_merger.exceptions import ErrorCode, ErrorKind, MergerError, auth_error

if TYPE_CHECKING:
    from renovate_merger.transport import HTTPTransport


class UsersClient:
    """Client for the authenticated user."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    async def get_authenticated(self) -> dict[str, Any]:
        """Return the user the token belongs to."""
        return await self.transport.request("GET", "/user") or {}

    async def validate_token(self) -> str:
        """
        Check that the token works.

        Returns:
            The login of the token's user

        Raises:
            MergerError: AUTHENTICATION when the token is invalid or lacks scope
        """
        try:
            user = await self.get_authenticated()
        except MergerError as e:
            if e.kind is ErrorKind.AUTHENTICATION or e.status_code == 401:
                raise auth_error(
                    ErrorCode.AUTH_TOKEN_INVALID,
                    "GitHub token is invalid or expired.",
                    cause=e,
                ) from e
            if e.status_code == 403:
                raise auth_error(
                    ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
                    "GitHub token does not have sufficient permissions.",
                    cause=e,
                ) from e
            raise
        return str(user.get("login", ""))
