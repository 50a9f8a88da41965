"""Adaptador entre los modelos de Django y los botones de relación has-one."""

import logging

from django.core.exceptions import FieldDoesNotExist
from django.db import transaction

from .exceptions import InvalidRelationError

logger = logging.getLogger(__name__)


class HasOneEntityMixin:
    """Mixin para ``models.Model`` que expone sus relaciones has-one.

    Una relación has-one es un ``ForeignKey`` o ``OneToOneField`` declarado en
    el propio modelo; el identificador se guarda en el ``attname`` del campo
    (``responsable_id`` para ``responsable``).
    """

    def _has_one_field(self, name):
        try:
            field = self._meta.get_field(name)
        except FieldDoesNotExist:
            return None
        if field.concrete and (field.many_to_one or field.one_to_one):
            return field
        return None

    def _has_one_field_or_raise(self, name):
        field = self._has_one_field(name)
        if field is None:
            raise InvalidRelationError(type(self), name)
        return field

    def has_relation(self, name) -> bool:
        return self._has_one_field(name) is not None

    def related_model(self, name):
        return self._has_one_field_or_raise(name).related_model

    def get_related(self, name):
        """Devuelve el registro relacionado o ``None`` si no hay uno válido."""
        field = self._has_one_field_or_raise(name)
        if getattr(self, field.attname) is None:
            return None
        try:
            return getattr(self, name)
        except field.related_model.DoesNotExist:
            return None

    def set_relation_id(self, name, pk):
        field = self._has_one_field_or_raise(name)
        setattr(self, field.attname, pk)

    def persist(self):
        self.save()

    def link_related(self, name, record):
        """Vincula ``record`` como el registro de la relación ``name`` y guarda.

        Si el guardado falla el identificador anterior se restaura en memoria,
        de modo que el padre no queda a medio actualizar.
        """
        field = self._has_one_field_or_raise(name)
        previous = getattr(self, field.attname)
        self.set_relation_id(name, record.pk)
        try:
            with transaction.atomic():
                self.persist()
        except Exception:
            setattr(self, field.attname, previous)
            raise
        logger.info(
            f"{type(self).__name__} {self.pk}: '{name}' vinculado a {type(record).__name__} {record.pk}"
        )
