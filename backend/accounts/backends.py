"""
Authentication backend for officer and citizen login.

Users sign in with one *identifier* plus their password.  The identifier
may be a username, an officer id (``WTR-0042``) or an email address.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()

# Lookup order.  A username that happens to look like someone else's
# officer id still logs in as the username's owner.
IDENTIFIER_LOOKUPS = ("username", "officer_id", "email__iexact")


class MultiFieldAuthBackend(ModelBackend):
    """Resolve ``identifier`` against each lookup in turn, first hit wins."""

    def _find_user(self, identifier: str):
        for lookup in IDENTIFIER_LOOKUPS:
            matches = list(User.objects.filter(**{lookup: identifier})[:2])
            if len(matches) == 1:
                return matches[0]
            if matches:
                # Two accounts share a case-insensitive email.
                return None
        return None

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        if not identifier or password is None:
            return None

        user = self._find_user(identifier.strip())
        if user is None:
            # Hash anyway so unknown identifiers take as long as bad passwords.
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
