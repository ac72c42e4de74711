"""
Account sign-up and sign-in for the expense tracker.
"""

import sqlite3
import logging

from werkzeug.security import generate_password_hash, check_password_hash

from .database import DatabaseManager
from .models import User, UserCreate

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when sign-up or sign-in is refused."""


class AuthService:
    """Email/password authentication backed by the users table."""

    INVALID_CREDENTIALS = "Invalid email or password"

    def __init__(self, db_manager: DatabaseManager):
        """Initialize auth service.

        Args:
            db_manager: Database manager instance
        """
        self.db_manager = db_manager
        self.logger = logger

    def sign_up(self, user: UserCreate) -> User:
        """Register a new account.

        Args:
            user: Sign-up data

        Returns:
            The created User

        Raises:
            AuthError: If the email is already registered
        """
        if self.db_manager.get_user_by_email(user.email) is not None:
            self.logger.warning("Sign-up rejected: email already registered")
            raise AuthError("An account with this email already exists")

        try:
            created = self.db_manager.create_user(user, generate_password_hash(user.password))
        except sqlite3.IntegrityError as e:
            raise AuthError("An account with this email already exists") from e

        self.logger.info(f"User {created.id} signed up")
        return created

    def sign_in(self, email: str, password: str) -> User:
        """Check credentials and return the matching account.

        Args:
            email: Login email
            password: Plain-text password

        Returns:
            The signed-in User

        Raises:
            AuthError: If the email is unknown or the password is wrong
        """
        if not email or not password:
            raise AuthError("Email and password are required")

        found = self.db_manager.get_user_by_email(email)
        if found is None:
            self.logger.warning("Sign-in failed: unknown email")
            raise AuthError(self.INVALID_CREDENTIALS)

        user, password_hash = found
        if not check_password_hash(password_hash, password):
            self.logger.warning(f"Sign-in failed for user {user.id}: wrong password")
            raise AuthError(self.INVALID_CREDENTIALS)

        self.logger.info(f"User {user.id} signed in")
        return user
