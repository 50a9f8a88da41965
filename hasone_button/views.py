import logging

from django.apps import apps
from django.contrib import admin, messages
from django.contrib.auth.decorators import login_required, user_passes_test
from django.forms import modelform_factory
from django.http import Http404, HttpResponseForbidden
from django.shortcuts import get_object_or_404, redirect, render

from .models import HasOneEntityMixin
from .services import create_and_link
from .utils.links import admin_change_url
from .utils.permissions import user_can

logger = logging.getLogger(__name__)


def es_staff(user):
    return user.is_staff


def _obtener_padre(app_label, model_name, pk, relation):
    try:
        model = apps.get_model(app_label, model_name)
    except LookupError:
        raise Http404(f"No existe el modelo {app_label}.{model_name}.")
    if not issubclass(model, HasOneEntityMixin):
        raise Http404(f"{model.__name__} no admite botones has-one.")
    parent = get_object_or_404(model, pk=pk)
    if not parent.has_relation(relation):
        raise Http404(f"{model.__name__} no tiene la relación '{relation}'.")
    return parent


def _relacion_con_botones(request, parent, relation):
    """El admin registrado debe ofrecer botones editables para la relación."""
    model_admin = admin.site._registry.get(type(parent))
    get_has_one_buttons = getattr(model_admin, "get_has_one_buttons", None)
    if get_has_one_buttons is None or relation not in get_has_one_buttons(request, parent):
        raise Http404(f"{type(parent).__name__} no ofrece botones para '{relation}'.")


@login_required
@user_passes_test(es_staff)
def crear_y_vincular(request, app_label, model_name, pk, relation):
    """Crea un registro relacionado y lo asigna a la relación has-one del padre."""
    parent = _obtener_padre(app_label, model_name, pk, relation)
    related_model = parent.related_model(relation)
    if not user_can(request.user, "add", related_model) or not user_can(request.user, "change", type(parent)):
        logger.warning(f"{request.user} sin permisos para vincular '{relation}' en {parent!r}")
        return HttpResponseForbidden("No tienes permisos para crear y vincular este registro.")
    _relacion_con_botones(request, parent, relation)

    RelatedForm = modelform_factory(related_model, fields="__all__")
    if request.method == "POST":
        form = RelatedForm(request.POST, request.FILES)
        if form.is_valid():
            record = create_and_link(parent, relation, form)
            messages.success(
                request,
                f"{related_model._meta.verbose_name.capitalize()} «{record}» creado y vinculado.",
            )
            return redirect(admin_change_url(parent) or "admin:index")
    else:
        form = RelatedForm()

    context = {
        **admin.site.each_context(request),
        "title": f"Nuevo {related_model._meta.verbose_name}",
        "form": form,
        "parent": parent,
        "relation": relation,
        "opts": related_model._meta,
        "parent_url": admin_change_url(parent),
    }
    return render(request, "hasone_button/crear_y_vincular.html", context)
