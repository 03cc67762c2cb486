"""Entity identity functionality: identity lookup and the is-new predicate."""

from modelcache.core.identity.operations import IdentityResolver

__all__ = [
    "IdentityResolver",
]
