from django import forms

from hasone_button.forms import HasOneButtonFormMixin

from .models import Proyecto


class ProyectoForm(HasOneButtonFormMixin, forms.ModelForm):
    """Formulario de proyecto con botones para el responsable."""

    has_one_buttons = ('responsable',)

    class Meta:
        model = Proyecto
        fields = ['nombre', 'responsable', 'notas']
        widgets = {
            'notas': forms.Textarea(attrs={'rows': 4}),
        }
