"""Lectura de la configuración del app desde ``settings``.

Los valores se leen en cada llamada para que ``override_settings`` funcione
en las pruebas.
"""

from django.conf import settings

DEFAULT_ID_SUFFIX = "ID"
DEFAULT_STYLE_SUFFIX = "_style"
DEFAULT_DROPDOWN_LIMIT = 100


def id_suffix() -> str:
    return getattr(settings, "HASONE_BUTTON_ID_SUFFIX", DEFAULT_ID_SUFFIX)


def style_suffix() -> str:
    return getattr(settings, "HASONE_BUTTON_STYLE_SUFFIX", DEFAULT_STYLE_SUFFIX)


def dropdown_limit() -> int:
    """Cantidad de registros a partir de la cual el ancla pasa a ser un ID numérico."""
    return getattr(settings, "HASONE_BUTTON_DROPDOWN_LIMIT", DEFAULT_DROPDOWN_LIMIT)
