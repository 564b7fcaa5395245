"""
Persistence gateway used by the ward services.

The services never touch the ORM directly: they read and write plain
dict records through a :class:`PersistenceGateway`.  Each call is a
single-record (or single-statement) operation; nothing here spans a
transaction.  :meth:`PersistenceGateway.update_if` is the conditional
write used to claim a bed without racing another admission.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.module_loading import import_string

from wards.models import (
    AuditEvent,
    Bed,
    CareUnit,
    Fluid,
    HospitalLogo,
    Medication,
    Patient,
    Role,
    User,
)

Record = Dict[str, Any]

COLLECTIONS: Dict[str, type[models.Model]] = {
    'care_units': CareUnit,
    'beds': Bed,
    'patients': Patient,
    'users': User,
    'roles': Role,
    'fluids': Fluid,
    'medications': Medication,
    'logos': HospitalLogo,
    'audit_events': AuditEvent,
}


class PersistenceGateway:
    """Record store interface.

    ``filter`` arguments are dicts of field name to value; a field name
    may carry an ORM-style lookup suffix (``name__iexact``).
    ``order_by`` takes field names, ``-`` prefixed for descending.
    """

    def find_by_id(self, collection: str, id: Any) -> Optional[Record]:
        raise NotImplementedError

    def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Record]:
        raise NotImplementedError

    def find_many(self, collection: str, filter: Optional[Dict[str, Any]] = None,
                  order_by: Optional[Iterable[str]] = None) -> List[Record]:
        raise NotImplementedError

    def create(self, collection: str, fields: Dict[str, Any]) -> Record:
        raise NotImplementedError

    def update_by_id(self, collection: str, id: Any, fields: Dict[str, Any]) -> Optional[Record]:
        raise NotImplementedError

    def update_if(self, collection: str, id: Any, expected: Dict[str, Any],
                  fields: Dict[str, Any]) -> Optional[Record]:
        """Apply ``fields`` only if the record still matches ``expected``.

        Returns the updated record, or ``None`` when the record is
        missing or no longer matches.
        """
        raise NotImplementedError

    def update_many(self, collection: str, filter: Dict[str, Any], fields: Dict[str, Any],
                    exclude: Optional[Dict[str, Any]] = None) -> int:
        raise NotImplementedError

    def delete_by_id(self, collection: str, id: Any) -> int:
        raise NotImplementedError

    def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        raise NotImplementedError


def _model(collection: str) -> type[models.Model]:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"unknown collection '{collection}'") from None


def _column(model: type[models.Model], name: str) -> str:
    # reference fields are addressed by name but hold the raw id
    field_name, sep, lookup = name.partition('__')
    field = model._meta.get_field(field_name)
    if isinstance(field, models.ForeignKey):
        field_name = field.attname
    return field_name + sep + lookup


def _columns(model: type[models.Model], fields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {_column(model, k): v for k, v in (fields or {}).items()}


def to_record(obj: models.Model) -> Record:
    record: Record = {}
    for field in obj._meta.concrete_fields:
        value = getattr(obj, field.attname)
        if isinstance(field, models.FileField):
            value = value.name if value else None
        record[field.name] = value
    return record


class DjangoGateway(PersistenceGateway):
    """Gateway backed by the Django ORM."""

    def _qs(self, collection, filter=None, exclude=None):
        model = _model(collection)
        qs = model._default_manager.filter(**_columns(model, filter))
        if exclude:
            qs = qs.exclude(**_columns(model, exclude))
        return qs

    def find_by_id(self, collection, id):
        obj = self._qs(collection, {'id': id}).first()
        return to_record(obj) if obj else None

    def find_one(self, collection, filter):
        obj = self._qs(collection, filter).first()
        return to_record(obj) if obj else None

    def find_many(self, collection, filter=None, order_by=None):
        qs = self._qs(collection, filter)
        if order_by:
            qs = qs.order_by(*order_by)
        return [to_record(obj) for obj in qs]

    def create(self, collection, fields):
        model = _model(collection)
        obj = model._default_manager.create(**_columns(model, fields))
        return to_record(obj)

    @staticmethod
    def _values(model, fields):
        values = _columns(model, fields)
        if any(f.name == 'updated_at' for f in model._meta.concrete_fields):
            values.setdefault('updated_at', timezone.now())
        return values

    def update_by_id(self, collection, id, fields):
        # writes only the given columns
        return self.update_if(collection, id, {}, fields)

    def update_if(self, collection, id, expected, fields):
        values = self._values(_model(collection), fields)
        # single UPDATE ... WHERE statement; the row either matches or not
        matched = self._qs(collection, {'id': id, **expected}).update(**values)
        if not matched:
            return None
        return self.find_by_id(collection, id)

    def update_many(self, collection, filter, fields, exclude=None):
        return self._qs(collection, filter, exclude).update(**self._values(_model(collection), fields))

    def delete_by_id(self, collection, id):
        return self.delete_many(collection, {'id': id})

    def delete_many(self, collection, filter):
        model = _model(collection)
        _, per_model = self._qs(collection, filter).delete()
        return per_model.get(model._meta.label, 0)


@lru_cache(maxsize=None)
def _gateway_class(path: str):
    return import_string(path)


def get_gateway() -> PersistenceGateway:
    return _gateway_class(settings.WARDS_GATEWAY)()
