"""Group roll-up of per-entity series."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import reduce

from finplan.repositories.records import AggregateEntity, EntityRecord, LeafEntity
from finplan.services.series import MonthSeries


def leaf_entities(entities: Sequence[EntityRecord]) -> list[LeafEntity]:
    return [entity for entity in entities if isinstance(entity, LeafEntity)]


def aggregate(per_entity: Mapping[str, MonthSeries], entities: Sequence[EntityRecord]) -> MonthSeries:
    """Element-wise sum over every leaf entity.

    Aggregate entities never contribute, and a leaf without a series contributes zero.
    """

    return reduce(
        lambda total, entity: total + per_entity.get(entity.code, MonthSeries.zeros()),
        leaf_entities(entities),
        MonthSeries.zeros(),
    )


def series_for_entity(
    entity: EntityRecord,
    per_entity: Mapping[str, MonthSeries],
    entities: Sequence[EntityRecord],
) -> MonthSeries:
    if isinstance(entity, AggregateEntity):
        return aggregate(per_entity, entities)
    return per_entity.get(entity.code, MonthSeries.zeros())
