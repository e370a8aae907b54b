"""
Schema descriptor for the pizza sales dataset.

The descriptor is derived from the SQLAlchemy table metadata in
``db/models.py`` and is only used to check that report definitions reference
fields that exist and can be reached from the report's base entity by
following foreign keys. It never touches the live data store.

Fields are addressed as ``entity.field`` (``pizzas.price``). A small set of
derived fields (``revenue``, ``order_hour``) are computed from base fields by
the data store adapters.
"""
import logging
from collections import deque
from dataclasses import dataclass
from functools import lru_cache

from pizza_reports.db.models import Base
from pizza_reports.errors import SchemaMismatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    name: str
    fields: tuple
    key: tuple = ()
    # field name -> (referenced entity, referenced field)
    foreign_keys: tuple = ()

    def references(self):
        return dict(self.foreign_keys)


@dataclass(frozen=True)
class DerivedField:
    """A field computed from base fields: 'product' multiplies, 'hour' extracts the hour."""
    name: str
    kind: str
    sources: tuple


@dataclass(frozen=True)
class JoinStep:
    """Join ``parent`` onto the frame via ``child.child_field = parent.parent_field``."""
    child: str
    child_field: str
    parent: str
    parent_field: str


DERIVED_FIELDS = {
    'revenue': DerivedField('revenue', 'product', ('order_details.quantity', 'pizzas.price')),
    'order_hour': DerivedField('order_hour', 'hour', ('orders.order_time',)),
}


def split_field(name):
    """Split ``entity.field`` into its two parts."""
    entity, _, field = name.partition('.')
    if not entity or not field:
        raise SchemaMismatch(f"Field {name!r} is not qualified as entity.field")
    return entity, field


class SchemaDescriptor:
    """Field lists and foreign keys of the dataset entities."""

    def __init__(self, entities, derived=None):
        self._entities = {entity.name: entity for entity in entities}
        self._derived = dict(DERIVED_FIELDS if derived is None else derived)

    @classmethod
    def from_metadata(cls, metadata, derived=None):
        entities = []
        for table in metadata.sorted_tables:
            foreign_keys = tuple(sorted(
                (fk.parent.name, (fk.column.table.name, fk.column.name))
                for fk in table.foreign_keys
            ))
            entities.append(Entity(
                name=table.name,
                fields=tuple(column.name for column in table.columns),
                key=tuple(column.name for column in table.primary_key.columns),
                foreign_keys=foreign_keys,
            ))
        return cls(entities, derived)

    def entities(self):
        return list(self._entities)

    def entity(self, name):
        try:
            return self._entities[name]
        except KeyError:
            raise SchemaMismatch(f"Unknown entity: {name!r}") from None

    def fields(self, entity):
        return self.entity(entity).fields

    def foreign_keys(self, entity):
        return self.entity(entity).references()

    def derived(self, name):
        return self._derived.get(name)

    def is_derived(self, name):
        return name in self._derived

    def join_path(self, entity):
        """
        Join steps that bring every entity reachable from ``entity`` into one
        frame, breadth first in foreign key order.
        """
        self.entity(entity)
        steps = []
        seen = {entity}
        queue = deque([entity])
        while queue:
            current = queue.popleft()
            for field, (parent, parent_field) in self.entity(current).foreign_keys:
                if parent in seen:
                    continue
                if parent not in self._entities:
                    raise SchemaMismatch(
                        f"Relationship {current}.{field} -> {parent}.{parent_field} "
                        f"references an unknown entity"
                    )
                seen.add(parent)
                steps.append(JoinStep(current, field, parent, parent_field))
                queue.append(parent)
        return steps

    def reachable(self, entity):
        return [entity] + [step.parent for step in self.join_path(entity)]

    def has_field(self, name):
        if name in self._derived:
            return True
        entity, _, field = name.partition('.')
        return entity in self._entities and field in self._entities[entity].fields

    def base_fields(self, name):
        """Base fields a (possibly derived) field is computed from."""
        if name in self._derived:
            return self._derived[name].sources
        return (name,)

    def check_field(self, entity, name, query_id=None):
        """Raise SchemaMismatch unless ``name`` is reachable from ``entity``."""
        where = f" in query {query_id!r}" if query_id else ""
        reachable = self.reachable(entity)
        for base in self.base_fields(name):
            if not self.has_field(base):
                raise SchemaMismatch(f"Unknown field {base!r}{where}")
            owner, _ = split_field(base)
            if owner not in reachable:
                raise SchemaMismatch(
                    f"Field {base!r}{where} is not reachable from entity {entity!r}"
                )

    def validate(self, definition):
        """Check every field a query definition references."""
        computation = definition.computation
        for name in computation.referenced_fields():
            self.check_field(computation.entity, name, definition.id)
        logger.debug(f"Query {definition.id} validated against schema")


@lru_cache(maxsize=None)
def default_schema():
    """Schema descriptor for the tables declared in db/models.py."""
    return SchemaDescriptor.from_metadata(Base.metadata)
