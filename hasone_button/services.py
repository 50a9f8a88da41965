import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def create_and_link(parent, relation_name, form):
    """Guarda el registro de ``form`` y lo vincula a ``parent`` en una sola transacción.

    Sirve tanto para "Crear y vincular nuevo" como para "Desvincular y crear
    nuevo": el registro anterior, si existía, solo queda desvinculado.
    """
    with transaction.atomic():
        record = form.save()
        parent.link_related(relation_name, record)
    logger.info(
        f"Creado {type(record).__name__} {record.pk} y vinculado a "
        f"{type(parent).__name__} {parent.pk} ('{relation_name}')"
    )
    return record
