"""Core functionalities: stateless primitives.

Architecture Note:
    core/ contains pure, stateless functions over entities (identity lookup,
    in-place replacement, structural matching). For stateful services, see
    storage/, queue/, events/ and model/.
"""

from modelcache.core.identity import IdentityResolver
from modelcache.core.merge import matches, replace_contents
from modelcache.core.types import Entity, Identity, Probe

__all__ = [
    # Types
    "Entity",
    "Identity",
    "Probe",
    # Identity
    "IdentityResolver",
    # Merge
    "replace_contents",
    "matches",
]
