from django.contrib import admin

from hasone_button.admin import HasOneButtonAdminMixin

from .models import Presupuesto, Proyecto, Responsable


@admin.register(Proyecto)
class ProyectoAdmin(HasOneButtonAdminMixin, admin.ModelAdmin):
    list_display = ('nombre', 'responsable', 'presupuesto')
    search_fields = ('nombre', 'responsable__nombre')
    has_one_buttons = ('responsable', 'presupuesto')
    fieldsets = (
        (None, {'fields': ('nombre', 'responsable')}),
        ('Finanzas', {'fields': ('presupuesto',)}),
        ('Notas', {'fields': ('notas',)}),
    )


@admin.register(Responsable)
class ResponsableAdmin(admin.ModelAdmin):
    list_display = ('nombre', 'email')
    search_fields = ('nombre', 'email')


@admin.register(Presupuesto)
class PresupuestoAdmin(admin.ModelAdmin):
    list_display = ('monto', 'moneda')
