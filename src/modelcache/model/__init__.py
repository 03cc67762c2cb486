"""Model orchestration and the registry owning models.

Architecture Note:
    model/ is the stateful service layer composing core/, storage/, queue/
    and events/ into the public model lifecycle (fetch, save, destroy,
    reset, sync, create, clone, set, add, remove).
"""

from modelcache.model.model import Model
from modelcache.model.registry import Registry

__all__ = [
    "Model",
    "Registry",
]
