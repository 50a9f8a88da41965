"""URLs usadas por los botones de relación has-one."""

from __future__ import annotations

import logging

from django.urls import NoReverseMatch, reverse

logger = logging.getLogger(__name__)


def admin_change_url(obj) -> str:
    """Devuelve la URL de edición de ``obj`` en el admin o ``""`` si no está registrado."""

    opts = obj._meta
    try:
        return reverse(f"admin:{opts.app_label}_{opts.model_name}_change", args=[obj.pk])
    except NoReverseMatch:
        logger.warning(f"{opts.label} no está registrado en el admin; no hay URL de edición.")
        return ""


def create_and_link_url(parent, relation_name: str) -> str:
    opts = parent._meta
    try:
        return reverse(
            "hasone_button:crear_y_vincular",
            kwargs={
                "app_label": opts.app_label,
                "model_name": opts.model_name,
                "pk": parent.pk,
                "relation": relation_name,
            },
        )
    except NoReverseMatch:
        logger.warning("Las URLs de hasone_button no están incluidas en ROOT_URLCONF.")
        return ""
