"""Resolution of the acting user id from an authenticated request.

Every module stores user references as opaque strings so that both local
Django users (SimpleJWT) and Auth0 subjects can act as retailers.
"""

from rest_framework.exceptions import NotAuthenticated


def resolve_caller_id(request) -> str:
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()

    sub = getattr(user, "sub", None)
    if sub:
        return str(sub)
    return str(user.pk)
