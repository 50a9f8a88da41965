from django.contrib.auth import get_permission_codename


def permission_name(action, model):
    opts = model._meta
    return f"{opts.app_label}.{get_permission_codename(action, opts)}"


def user_can(user, action, model):
    """Indica si ``user`` tiene el permiso ``action`` sobre ``model``.

    Sin usuario no se aplica ningún filtro: la comprobación queda en manos de
    la vista que procese la acción.
    """
    if user is None:
        return True
    return user.has_perm(permission_name(action, model))
