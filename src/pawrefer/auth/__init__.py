"""Authentication for PawRefer - managed identity plus session cookies.

Request-level session dependencies live in ``pawrefer.auth.middleware``.
"""

from pawrefer.auth.identity import (
    FirebaseIdentityProvider,
    Identity,
    IdentityProvider,
    get_identity_provider,
)

__all__ = [
    "FirebaseIdentityProvider",
    "Identity",
    "IdentityProvider",
    "get_identity_provider",
]
