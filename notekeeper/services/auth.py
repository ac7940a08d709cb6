"""
Auth Service.

Account registration, credential login and resolution of bearer tokens to
the users they were issued for.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.core.exceptions import AuthenticationError, ConflictError
from notekeeper.core.security import (
    extract_expiry,
    extract_subject,
    hash_password,
    issue_token,
    validate_token,
    verify_password,
)
from notekeeper.models.user import Role, User
from notekeeper.repositories.user import UserRepository
from notekeeper.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserInfo
from notekeeper.services.base import BaseService

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService(BaseService):
    """Service for authentication business logic."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)

    def _token_response(self, user: User) -> AuthResponse:
        token = issue_token(user)
        return AuthResponse(
            access_token=token,
            expires_at=extract_expiry(token),
            user=UserInfo.model_validate(user),
        )

    async def create_account(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """
        Create an enabled account.

        Raises:
            ConflictError: If the username or email is already registered
        """
        if await self.users.exists_by_username(username):
            raise ConflictError("Username is already taken")
        if await self.users.exists_by_email(email):
            raise ConflictError("Email is already in use")

        self._log_operation("Creating account", username=username, role=role.value)

        return await self._execute_db_operation(
            "create_account",
            self.users.create(
                username=username,
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=role,
                enabled=True,
            ),
        )

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """
        Register a USER account and issue its first token.

        Raises:
            ConflictError: If the username or email is already registered
        """
        user = await self.create_account(
            username=data.username,
            email=str(data.email),
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        return self._token_response(user)

    async def login(self, data: LoginRequest) -> AuthResponse:
        """
        Exchange credentials for a token.

        Raises:
            AuthenticationError: For an unknown user, a wrong password or a
                disabled account, all with the same message
        """
        user = await self.users.get_by_username(data.username)
        if user is None or not verify_password(data.password, user.password_hash):
            self._log_debug("Login rejected", username=data.username)
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.enabled:
            self._log_debug("Login rejected for disabled account", username=data.username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._log_operation("User logged in", username=user.username)
        return self._token_response(user)

    async def resolve_principal(self, token: str | None) -> User:
        """
        Load the user a bearer token belongs to.

        Role and enabled flag come from the database, not from the token.

        Raises:
            AuthenticationError: If the token is malformed, expired or names
                an unknown or disabled user
        """
        username = extract_subject(token)
        user = await self.users.get_by_username(username)
        if user is None or not validate_token(token, user):
            raise AuthenticationError("Invalid or expired token")
        if not user.enabled:
            raise AuthenticationError("Account is disabled")
        return user
