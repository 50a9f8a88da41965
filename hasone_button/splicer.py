"""Inserta los campos de botones has-one junto a su campo identificador."""

from __future__ import annotations

import logging
import re

from . import conf
from .exceptions import FieldNameConflictError, InvalidRelationError, RelationFieldNotFoundError
from .fields import HasOneButtonField, HasOneStyleField, TabFieldList, is_readonly

logger = logging.getLogger(__name__)


def id_field_name(relation_name: str) -> str:
    return relation_name + conf.id_suffix()


def style_field_name(relation_name: str) -> str:
    return relation_name + conf.style_suffix()


def find_anchor(tab: TabFieldList, relation_name: str):
    """Devuelve ``(posición, nombre, campo)`` del identificador de la relación.

    Recorre la pestaña en orden y se queda con el primer campo ``<prefijo>ID``
    cuyo prefijo coincide con ``relation_name``.
    """
    pattern = re.compile(rf"^(.+?){re.escape(conf.id_suffix())}$")
    for position, (name, field) in enumerate(tab):
        match = pattern.match(name)
        if match and match.group(1) == relation_name:
            return position, name, field
    return None


def attach(tab_fields, relation_name: str, parent, user=None) -> HasOneButtonField:
    """Agrega el campo de botones de ``relation_name`` justo debajo de su ancla.

    ``tab_fields`` puede ser un ``TabFieldList`` o un mapeo ordenado como
    ``form.fields``; en ambos casos se modifica en el lugar. El orden final es
    ancla, bloque de estilos, campo de botones y el resto sin cambios.

    No es idempotente: llamarlo dos veces sobre el mismo ``TabFieldList``
    agrega un segundo par de campos. Sobre un mapeo, un campo que ya se llame
    como la relación o su bloque de estilos produce ``FieldNameConflictError``.
    """
    if not parent.has_relation(relation_name):
        raise InvalidRelationError(type(parent), relation_name)

    tab = tab_fields if isinstance(tab_fields, TabFieldList) else TabFieldList(tab_fields)
    found = find_anchor(tab, relation_name)
    if found is None:
        raise RelationFieldNotFoundError(relation_name, id_field_name(relation_name))
    position, anchor_name, anchor = found

    if tab is not tab_fields:
        # Un mapeo no admite nombres repetidos.
        for name in (style_field_name(relation_name), relation_name):
            if name in tab_fields:
                raise FieldNameConflictError(relation_name, name)

    style = HasOneStyleField(relation_name, anchor_name, readonly=is_readonly(anchor))
    button = HasOneButtonField(relation_name, parent, anchor=anchor, user=user)
    tab.insert(position + 1, style_field_name(relation_name), style)
    tab.insert(position + 2, relation_name, button)

    if tab is not tab_fields:
        tab_fields.clear()
        tab_fields.update(tab.as_dict())

    logger.debug(f"Campo has-one '{relation_name}' insertado después de '{anchor_name}'")
    return button
