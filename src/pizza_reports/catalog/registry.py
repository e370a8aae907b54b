"""
Catalog registry mapping report identifiers to query definitions.
"""
import logging
import threading

from pizza_reports.catalog.builtin import BUILTIN_QUERIES
from pizza_reports.catalog.definitions import TIERS
from pizza_reports.errors import UnknownQuery, DuplicateQueryId, CatalogFrozen

logger = logging.getLogger(__name__)


class CatalogView:
    """Re-iterable view over registered definitions, optionally one tier only."""

    def __init__(self, definitions, tier=None):
        self._definitions = definitions
        self._tier = tier

    def __iter__(self):
        for definition in self._definitions.values():
            if self._tier is None or definition.tier == self._tier:
                yield definition

    def ids(self):
        return [definition.id for definition in self]


class CatalogRegistry:
    """
    Registry of query definitions.

    Definitions are registered during initialization; after ``freeze()`` the
    registry is read-only, so concurrent lookups need no locking.
    """

    def __init__(self, definitions=()):
        self._definitions = {}
        self._frozen = False
        for definition in definitions:
            self.register(definition)

    def register(self, definition):
        if self._frozen:
            raise CatalogFrozen(f"Cannot register {definition.id!r}: catalog is read-only")
        if definition.id in self._definitions:
            raise DuplicateQueryId(definition.id)
        self._definitions[definition.id] = definition
        logger.debug(f"Registered query {definition.id} ({definition.tier})")

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self):
        return self._frozen

    def get(self, query_id):
        try:
            return self._definitions[query_id]
        except KeyError:
            raise UnknownQuery(query_id) from None

    def list(self, tier=None):
        if tier is not None and tier not in TIERS:
            raise ValueError(f"Unknown tier {tier!r}; expected one of {TIERS}")
        return CatalogView(self._definitions, tier)

    def describe(self, tier=None):
        """Catalog listing records: id, tier, description, parameter_schema."""
        return [definition.describe() for definition in self.list(tier)]

    def __contains__(self, query_id):
        return query_id in self._definitions

    def __len__(self):
        return len(self._definitions)


_registry = None
_registry_lock = threading.Lock()


def default_registry():
    """The process-wide registry holding the built-in catalog."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                registry = CatalogRegistry(BUILTIN_QUERIES)
                registry.freeze()
                logger.info(f"Report catalog initialized with {len(registry)} queries")
                _registry = registry
    return _registry
