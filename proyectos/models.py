"""Modelos de ejemplo para los botones de relación has-one."""
from django.db import models

from hasone_button.models import HasOneEntityMixin


class Responsable(models.Model):
    nombre = models.CharField(max_length=100, verbose_name="Nombre")
    email = models.EmailField(blank=True, verbose_name="Correo")

    class Meta:
        ordering = ["nombre"]
        verbose_name = "responsable"
        verbose_name_plural = "responsables"

    def __str__(self):
        return self.nombre


class Presupuesto(models.Model):
    monto = models.DecimalField(max_digits=12, decimal_places=2, verbose_name="Monto")
    moneda = models.CharField(max_length=3, default="CLP", verbose_name="Moneda")

    class Meta:
        verbose_name = "presupuesto"
        verbose_name_plural = "presupuestos"

    def __str__(self):
        return f"{self.monto} {self.moneda}"


class Proyecto(HasOneEntityMixin, models.Model):
    """Proyecto con un responsable y un presupuesto gestionados con botones."""

    nombre = models.CharField(max_length=200, verbose_name="Nombre")
    responsable = models.ForeignKey(
        Responsable,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proyectos",
        verbose_name="Responsable",
    )
    presupuesto = models.OneToOneField(
        Presupuesto,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proyecto",
        verbose_name="Presupuesto",
    )
    notas = models.TextField(blank=True, verbose_name="Notas")

    class Meta:
        ordering = ["nombre"]
        verbose_name = "proyecto"
        verbose_name_plural = "proyectos"

    def __str__(self):
        return self.nombre
