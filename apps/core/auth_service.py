# apps/core/auth_service.py

"""
Authentication service - registration, login and bearer tokens

Tokens are signed with Django's signing framework and carry only the
user id; they expire after ``ORGAOS_TOKEN_MAX_AGE`` seconds.
"""

import logging
from typing import Dict, Optional

from django.conf import settings
from django.core import signing
from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import AuthenticationError, ConflictError, ValidationError
from .models import User
from .utils import parse_text

logger = logging.getLogger(__name__)


class AuthenticationService:
    """
    Encapsulates account creation and token handling

    Views only deal with request parsing; every rule about credentials
    lives here.
    """

    TOKEN_SALT = 'orgaos.auth.token'

    def __init__(self):
        self._min_password_length = 6

    def register(self, data: Dict) -> User:
        """
        Creates a new account

        Raises ValidationError for missing fields and ConflictError when the
        email is already taken.
        """
        email = self._clean_email(data.get('email'))
        password = data.get('password') or ''
        display_name = parse_text(data.get('displayName'), 'displayName')

        if not isinstance(password, str):
            raise ValidationError('Password must be a string')

        self._validate_registration(email, password)

        if User.objects.filter(email__iexact=email).exists():
            raise ConflictError('User already exists')

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    display_name=display_name,
                )
        except IntegrityError:
            # Lost the race against a concurrent registration of the same email
            raise ConflictError('User already exists')

        logger.info(f"👤 User registered: {user.pk}")
        return user

    def login(self, email: str, password: str) -> str:
        """Checks credentials and returns a fresh bearer token"""
        if not isinstance(password, str):
            password = ''
        user = self._authenticate(self._clean_email(email), password)
        if user is None:
            raise ValidationError('Invalid credentials')

        self._update_last_login(user)
        return self.issue_token(user)

    def issue_token(self, user: User) -> str:
        return signing.dumps({'user_id': user.pk}, salt=self.TOKEN_SALT)

    def resolve_token(self, token: str) -> User:
        """
        Returns the user a token belongs to

        Raises AuthenticationError (403) for tampered, expired or orphaned
        tokens.
        """
        try:
            data = signing.loads(
                token,
                salt=self.TOKEN_SALT,
                max_age=settings.ORGAOS_TOKEN_MAX_AGE,
            )
        except signing.SignatureExpired:
            raise AuthenticationError('Token expired', status_code=403)
        except signing.BadSignature:
            raise AuthenticationError('Invalid token', status_code=403)

        user = User.objects.filter(pk=data.get('user_id'), is_active=True).first()
        if user is None:
            raise AuthenticationError('Invalid token', status_code=403)
        return user

    # =================== PRIVATE METHODS ===================

    def _clean_email(self, email) -> str:
        if not isinstance(email, str):
            return ''
        return User.objects.normalize_email(email.strip()).lower()

    def _validate_registration(self, email: str, password: str):
        if not email or not password:
            raise ValidationError('Email and password are required')

        if '@' not in email or '.' not in email.split('@')[-1]:
            raise ValidationError('Invalid email')

        if len(password) < self._min_password_length:
            raise ValidationError(
                f'Password must be at least {self._min_password_length} characters'
            )

    def _authenticate(self, email: str, password: str) -> Optional[User]:
        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user is None or not user.check_password(password):
            logger.info("⚠️ Failed login attempt")
            return None
        return user

    def _update_last_login(self, user: User):
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])


# Module-level instance shared by views and middleware
auth_service = AuthenticationService()
