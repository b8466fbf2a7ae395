from typing import Optional

from peep.backend.base import Backend
from peep.core.context import AppContext
from peep.core.errors import Conflict, PeepError
from peep.schemas.user import AuthSession, SignUpRequest
from peep.utils.logger import log, log_error

USERNAME_TAKEN = "Username already taken"


class AuthService:
    def __init__(self, backend: Backend, context: AppContext):
        self.backend = backend
        self.context = context

    async def initialize(self) -> Optional[AuthSession]:
        """Pick up a cached session, refresh it and load the profile"""
        self.context.is_loading = True
        try:
            session = self.backend.get_session()
            if session is None:
                return None
            try:
                session = await self.backend.refresh_session() or session
            except PeepError as e:
                log_error("Auth", "Session refresh failed", e)
            self.context.session = session
            await self.fetch_profile()
            return session
        finally:
            self.context.is_loading = False

    async def sign_up(self, email: str, password: str, username: str) -> AuthSession:
        """
        Create an account.

        The username pre-check only gives a friendly early answer; two racing
        sign-ups are settled by the unique index on profiles.username.
        """
        request = SignUpRequest(email=email, password=password, username=username)
        existing = await self.backend.find_profiles_by_username(request.username)
        if existing:
            raise Conflict(USERNAME_TAKEN)
        try:
            session = await self.backend.sign_up(request.email, request.password, request.username)
        except Conflict:
            raise Conflict(USERNAME_TAKEN)
        self.context.session = session
        await self.fetch_profile()
        log("Auth", f"Signed up {request.username}")
        return session

    async def sign_in(self, email: str, password: str) -> AuthSession:
        session = await self.backend.sign_in(email, password)
        self.context.session = session
        await self.fetch_profile()
        return session

    async def sign_out(self):
        try:
            await self.backend.sign_out()
        except PeepError as e:
            log_error("Auth", "Sign out error", e)
        finally:
            self.context.session = None
            self.context.profile = None

    async def fetch_profile(self):
        if self.context.user_id is None:
            return None
        try:
            self.context.profile = await self.backend.get_profile(self.context.user_id)
        except PeepError as e:
            log_error("Auth", "Fetch profile error", e)
        return self.context.profile
