"""Campos de formulario para gestionar una relación has-one con botones."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterator, Optional

from django import forms
from django.contrib.admin.widgets import ForeignKeyRawIdWidget
from django.core.exceptions import PermissionDenied
from django.utils.html import format_html
from django.utils.translation import gettext as _

from .utils.links import admin_change_url, create_and_link_url
from .utils.permissions import user_can
from .widgets import HasOneButtonWidget, HasOneStyleWidget


class TabFieldList:
    """Lista ordenada de campos ``(nombre, campo)`` de una pestaña.

    A diferencia de ``form.fields`` admite nombres repetidos; ``as_dict``
    devuelve el mapeo que esperan los formularios de Django.
    """

    def __init__(self, fields=()):
        if isinstance(fields, Mapping):
            fields = fields.items()
        self._entries = [(name, field) for name, field in fields]

    def __iter__(self) -> Iterator[tuple[str, forms.Field]]:
        return iter(list(self._entries))

    def __len__(self):
        return len(self._entries)

    def __contains__(self, name):
        return self.index_of(name) is not None

    def names(self) -> list[str]:
        return [name for name, _field in self._entries]

    def index_of(self, name) -> Optional[int]:
        for position, (entry_name, _field) in enumerate(self._entries):
            if entry_name == name:
                return position
        return None

    def field_named(self, name):
        position = self.index_of(name)
        return None if position is None else self._entries[position][1]

    def insert(self, position, name, field):
        self._entries.insert(position, (name, field))

    def insert_after(self, anchor_name, name, field):
        position = self.index_of(anchor_name)
        if position is None:
            raise KeyError(anchor_name)
        self.insert(position + 1, name, field)

    def append(self, name, field):
        self._entries.append((name, field))

    def as_dict(self) -> dict:
        return dict(self._entries)


class AnchorKind(enum.Enum):
    CHOICE = "choice"
    NUMERIC = "numeric"
    OTHER = "other"


def anchor_kind(field) -> AnchorKind:
    """Clasifica el campo ancla según cómo se elige el registro relacionado."""
    if field is None:
        return AnchorKind.OTHER
    # RelatedFieldWidgetWrapper envuelve el widget real.
    widget = getattr(field.widget, "widget", field.widget)
    if isinstance(widget, ForeignKeyRawIdWidget) or isinstance(field, forms.IntegerField):
        return AnchorKind.NUMERIC
    if isinstance(field, forms.ChoiceField) or isinstance(widget, forms.Select):
        return AnchorKind.CHOICE
    return AnchorKind.OTHER


def is_readonly(field) -> bool:
    if field is None:
        return False
    return bool(field.disabled or field.widget.attrs.get("readonly"))


@dataclass(frozen=True)
class HasOneAction:
    key: str
    label: str
    url: str
    links_record: bool = False


class HasOneStyleField(forms.Field):
    """Bloque de estilos que une visualmente el ancla con el campo de botones."""

    widget = HasOneStyleWidget

    def __init__(self, relation_name, anchor_name, readonly=False, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("disabled", True)
        kwargs.setdefault("label", "")
        super().__init__(**kwargs)
        self.relation_name = relation_name
        self.anchor_name = anchor_name
        self.readonly = readonly
        self.widget.css = self.css

    @property
    def css(self) -> str:
        rules = [
            f".field-{self.anchor_name} {{ border-bottom: none; }}",
            f".field-{self.relation_name} {{ border-top: none; margin-top: -10px; background: #f5f7f8; }}",
        ]
        if self.readonly:
            rules.append(f"#hasone-{self.relation_name} .hasone-actions {{ display: none; }}")
        return "\n".join(rules)


class HasOneButtonField(forms.Field):
    """Campo compuesto con los botones para crear, editar o reemplazar el registro.

    No envía datos: el valor de la relación vive en el campo ancla
    (``<relación>ID``) y este campo solo ofrece las acciones sobre él.
    """

    widget = HasOneButtonWidget

    def __init__(self, relation_name, parent, anchor=None, user=None, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("disabled", True)
        super().__init__(**kwargs)
        self.relation_name = relation_name
        self.parent = parent
        self.anchor = anchor
        self.user = user
        self.record = parent.get_related(relation_name)
        self.widget.button_field = self

    def __deepcopy__(self, memo):
        result = super().__deepcopy__(memo)
        result.widget.button_field = result
        return result

    @property
    def related_model(self):
        return self.parent.related_model(self.relation_name)

    @property
    def record_exists(self) -> bool:
        return self.record is not None and self.record.pk is not None and not self.record._state.adding

    @property
    def readonly(self) -> bool:
        return is_readonly(self.anchor)

    @property
    def kind(self) -> AnchorKind:
        return anchor_kind(self.anchor)

    @property
    def message(self):
        object_name = self.related_model._meta.verbose_name
        kind = self.kind
        if kind is AnchorKind.CHOICE:
            text = _("Elige un registro <em>{}</em> existente en la lista de arriba, o...")
        elif kind is AnchorKind.NUMERIC:
            text = _("Escribe el ID de un registro <em>{}</em> existente en el campo de arriba, o...")
        else:
            text = _("Asigna un registro <em>{}</em> en el campo de arriba, o...")
        return format_html(text, object_name)

    @property
    def actions(self) -> list[HasOneAction]:
        if self.readonly:
            return []

        model = self.related_model
        can_add = user_can(self.user, "add", model)
        actions = []
        if self.record_exists:
            if user_can(self.user, "view", model) or user_can(self.user, "change", model):
                actions.append(
                    HasOneAction("edit", _("Ver/editar existente"), admin_change_url(self.record))
                )
            if can_add:
                actions.append(
                    HasOneAction(
                        "replace",
                        _("Desvincular y crear nuevo"),
                        create_and_link_url(self.parent, self.relation_name),
                        links_record=True,
                    )
                )
        elif can_add:
            actions.append(
                HasOneAction(
                    "create",
                    _("Crear y vincular nuevo"),
                    create_and_link_url(self.parent, self.relation_name),
                    links_record=True,
                )
            )
        return actions

    def invoke(self, key, record):
        """Ejecuta la acción ``key`` vinculando ``record`` al registro padre."""
        action = next((action for action in self.actions if action.key == key), None)
        if action is None:
            raise PermissionDenied(
                f"La acción '{key}' no está disponible para la relación '{self.relation_name}'."
            )
        if not action.links_record:
            raise ValueError(f"La acción '{key}' es solo un enlace.")
        self.parent.link_related(self.relation_name, record)
        self.record = record
