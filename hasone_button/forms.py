from django import forms
from django.utils.text import capfirst
from django.utils.translation import gettext as _

from . import conf
from .splicer import attach, id_field_name, style_field_name


class HasOneButtonFormMixin:
    """Agrega botones has-one a un ``ModelForm``.

    Por cada relación de ``has_one_buttons`` el campo generado por el modelo
    se renombra a ``<relación>ID`` (el ancla) y, si la instancia ya existe, se
    inserta debajo el campo de botones. Las relaciones en ``hasone_readonly``
    se muestran deshabilitadas y sin acciones.
    """

    has_one_buttons = ()
    hasone_readonly = ()
    hasone_user = None

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        if user is not None:
            self.hasone_user = user
        for relation in self.has_one_buttons:
            self._scaffold_anchor(relation)
        if not self.instance._state.adding:
            for relation in self.has_one_buttons:
                attach(self.fields, relation, self.instance, user=self.hasone_user)

    def _build_anchor(self, related_model, **kwargs):
        if related_model._default_manager.count() >= conf.dropdown_limit():
            return forms.IntegerField(**kwargs)
        return forms.ModelChoiceField(queryset=related_model._default_manager.all(), **kwargs)

    def _scaffold_anchor(self, relation):
        related_model = self.instance.related_model(relation)
        name = id_field_name(relation)
        if name in self.fields:
            return

        model_field = self.instance._meta.get_field(relation)
        generated = self.fields.get(relation)
        if generated is None:
            anchor = self._build_anchor(
                related_model,
                required=False,
                disabled=relation in self.hasone_readonly,
                label=capfirst(model_field.verbose_name),
            )
            self.fields[name] = anchor
        else:
            # El campo generado conserva el widget del admin (agregar/editar relacionado).
            anchor = generated
            too_many = related_model._default_manager.count() >= conf.dropdown_limit()
            if too_many and not generated.widget.is_hidden:
                anchor = forms.IntegerField(
                    required=generated.required,
                    label=generated.label,
                    help_text=generated.help_text,
                )
            anchor.disabled = generated.disabled or relation in self.hasone_readonly
            self.fields = {
                (name if key == relation else key): (anchor if key == relation else field)
                for key, field in self.fields.items()
            }

        if name not in self.initial:
            self.initial[name] = self.initial.get(relation, getattr(self.instance, model_field.attname))

    def clean(self):
        cleaned_data = super().clean()
        for relation in self.has_one_buttons:
            cleaned_data.pop(relation, None)
            cleaned_data.pop(style_field_name(relation), None)

            name = id_field_name(relation)
            field = self.fields.get(name)
            if field is None or field.disabled or name not in cleaned_data:
                continue
            value = cleaned_data[name]
            pk = getattr(value, "pk", value)
            if pk is not None and isinstance(field, forms.IntegerField):
                related_model = self.instance.related_model(relation)
                if not related_model._default_manager.filter(pk=pk).exists():
                    self.add_error(
                        name,
                        _("No existe un registro %(modelo)s con ID %(pk)s.")
                        % {"modelo": related_model._meta.verbose_name, "pk": pk},
                    )
                    continue
            if pk is not None and self._relation_taken(relation, pk):
                model = type(self.instance)
                self.add_error(name, self.instance.unique_error_message(model, (relation,)))
                continue
            self.instance.set_relation_id(relation, pk)
        return cleaned_data

    def _relation_taken(self, relation, pk):
        # El ancla no es un campo del modelo: Django excluye la relación al validar unicidad.
        model_field = self.instance._meta.get_field(relation)
        if not model_field.unique:
            return False
        others = type(self.instance)._default_manager.filter(**{model_field.attname: pk})
        if not self.instance._state.adding:
            others = others.exclude(pk=self.instance.pk)
        return others.exists()


class HasOneButtonModelForm(HasOneButtonFormMixin, forms.ModelForm):
    pass
