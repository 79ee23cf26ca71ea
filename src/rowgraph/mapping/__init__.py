"""Entity mapping: declare types, materialize rows into graphs, write them back."""

from rowgraph.mapping.associations import AssociationQueue, DrainStats, PendingAssociation
from rowgraph.mapping.engine import GraphEngine, PassStats
from rowgraph.mapping.metadata import (
    Collection,
    Column,
    EntityDescriptor,
    EntityRegistry,
    Identity,
    Reference,
    clear_registry,
    descriptor_of,
    entity,
    inheritance_chain,
)
from rowgraph.mapping.repository import EntityRepository
from rowgraph.mapping.restrictions import ListSettings, ObjectSettings, Restrictions
from rowgraph.mapping.session import Session
from rowgraph.mapping.statements import StatementBuilder
from rowgraph.mapping.translator import UNHANDLED, TypeTranslator
from rowgraph.mapping.types import EnumSet

__all__ = [
    "AssociationQueue",
    "DrainStats",
    "PendingAssociation",
    "GraphEngine",
    "PassStats",
    "Collection",
    "Column",
    "EntityDescriptor",
    "EntityRegistry",
    "Identity",
    "Reference",
    "clear_registry",
    "descriptor_of",
    "entity",
    "inheritance_chain",
    "EntityRepository",
    "ListSettings",
    "ObjectSettings",
    "Restrictions",
    "Session",
    "StatementBuilder",
    "UNHANDLED",
    "TypeTranslator",
    "EnumSet",
]
