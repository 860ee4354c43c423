"""
Session / identity gate — credential check producing an authenticated Actor.

Lookup is case-insensitive on email.  When the actor has a stored secret the
supplied one must match it exactly (bcrypt verification).  An actor without a
stored secret can only log in when ``allow_passwordless`` is enabled, which
is a seed-data convenience (PORTAL_ALLOW_PASSWORDLESS_LOGIN) and off outside
development.

No session token or expiry is modeled: the caller keeps the returned Actor
for the rest of its interactive session.
"""

import logging

from portal.core.exceptions import AuthError
from portal.models.entities import Actor
from portal.utils.crypto import verify_password

logger = logging.getLogger(__name__)


class IdentityGate:
    def __init__(self, store, *, allow_passwordless: bool = False):
        self.store = store
        self.allow_passwordless = allow_passwordless

    def find_by_email(self, email: str) -> Actor | None:
        wanted = (email or "").strip().lower()
        if not wanted:
            return None
        for actor in self.store.actors.list():
            if actor.email.strip().lower() == wanted:
                return actor
        return None

    def authenticate(self, email: str, secret: str | None) -> Actor:
        """Return the Actor for *email* / *secret* or raise AuthError."""
        actor = self.find_by_email(email)
        if actor is None:
            logger.warning("Login failed: unknown email %s", email, extra={"event_type": "auth_failure"})
            raise AuthError()

        if actor.password_hash:
            if not verify_password(secret, actor.password_hash):
                logger.warning("Login failed: bad secret for %s", actor.email,
                               extra={"event_type": "auth_failure", "actor_id": actor.id})
                raise AuthError()
        elif self.allow_passwordless:
            logger.warning("Passwordless login accepted for %s (no stored secret)", actor.email,
                           extra={"event_type": "auth_passwordless", "actor_id": actor.id})
        else:
            logger.warning("Login failed: %s has no stored secret", actor.email,
                           extra={"event_type": "auth_failure", "actor_id": actor.id})
            raise AuthError()

        logger.info("Actor %s authenticated", actor.id, extra={"actor_id": actor.id})
        return actor
