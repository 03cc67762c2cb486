"""In-place replacement and structural matching of entities."""

from modelcache.core.merge.operations import matches, replace_contents

__all__ = [
    "replace_contents",
    "matches",
]
