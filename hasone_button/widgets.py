from typing import Any

from django import forms


class HasOneStyleWidget(forms.Widget):
    """Emite un bloque ``<style>``; el admin lo trata como campo oculto."""

    input_type = "hidden"
    template_name = "hasone_button/style.html"

    def __init__(self, css="", attrs=None):
        super().__init__(attrs)
        self.css = css

    def get_context(self, name, value, attrs) -> dict[str, Any]:
        context = super().get_context(name, value, attrs)
        context["widget"]["css"] = self.css
        return context

    def value_from_datadict(self, data, files, name):
        return None


class HasOneButtonWidget(forms.Widget):
    template_name = "hasone_button/has_one_button.html"

    def __init__(self, button_field=None, attrs=None):
        super().__init__(attrs)
        self.button_field = button_field

    def get_context(self, name, value, attrs) -> dict[str, Any]:
        context = super().get_context(name, value, attrs)
        field = self.button_field
        context["widget"].update(
            {
                "relation": field.relation_name,
                "record": field.record if field.record_exists else None,
                "message": field.message,
                "actions": field.actions,
                "readonly": field.readonly,
            }
        )
        return context

    def value_from_datadict(self, data, files, name):
        return None
