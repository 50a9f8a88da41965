from django.contrib.admin.utils import flatten_fieldsets

from .forms import HasOneButtonFormMixin
from .splicer import id_field_name, style_field_name


def splice_fieldsets(fieldsets, relations, with_buttons=True):
    """Reordena los fieldsets igual que ``attach`` reordena una pestaña.

    Cada relación se reemplaza por su ancla y, con ``with_buttons``, debajo se
    agregan el bloque de estilos y el campo de botones.
    """
    result = []
    for title, options in fieldsets:
        fields = []
        for entry in options.get("fields", ()):
            if isinstance(entry, (list, tuple)):
                row = [id_field_name(name) if name in relations else name for name in entry]
                fields.append(tuple(row))
                spliced = [name for name in entry if name in relations]
            else:
                fields.append(id_field_name(entry) if entry in relations else entry)
                spliced = [entry] if entry in relations else []
            if with_buttons:
                for relation in spliced:
                    fields.extend([style_field_name(relation), relation])
        result.append((title, {**options, "fields": fields}))
    return result


class HasOneButtonAdminMixin:
    """Mixin para ``ModelAdmin``: cada fieldset funciona como una pestaña."""

    has_one_buttons = ()

    def get_has_one_buttons(self, request, obj=None):
        if obj is not None and not self.has_change_permission(request, obj):
            return ()
        readonly = self.get_readonly_fields(request, obj)
        return tuple(relation for relation in self.has_one_buttons if relation not in readonly)

    def get_fieldsets(self, request, obj=None):
        fieldsets = super().get_fieldsets(request, obj)
        relations = self.get_has_one_buttons(request, obj)
        if not relations:
            return fieldsets
        return splice_fieldsets(fieldsets, relations, with_buttons=obj is not None)

    def _model_form_fields(self, fields, relations):
        names = []
        for name in fields:
            for relation in relations:
                if name == id_field_name(relation):
                    name = relation
                elif name == style_field_name(relation):
                    name = None
                    break
            if name is not None and name not in names:
                names.append(name)
        return names

    def get_form(self, request, obj=None, change=False, **kwargs):
        relations = self.get_has_one_buttons(request, obj)
        if "fields" not in kwargs:
            kwargs["fields"] = flatten_fieldsets(self.get_fieldsets(request, obj))
        if kwargs["fields"] is not None:
            kwargs["fields"] = self._model_form_fields(kwargs["fields"], relations)
        form = super().get_form(request, obj, change=change, **kwargs)

        bases = (form,) if issubclass(form, HasOneButtonFormMixin) else (HasOneButtonFormMixin, form)
        attrs = {
            "__module__": form.__module__,
            "has_one_buttons": relations,
            "hasone_user": request.user,
        }
        return type(form)(form.__name__, bases, attrs)
