from unittest import mock

from django import forms
from django.contrib import admin
from django.contrib.admin.widgets import ForeignKeyRawIdWidget
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.test import RequestFactory, TestCase, override_settings
from django.urls import reverse

from hasone_button.admin import splice_fieldsets
from hasone_button.exceptions import InvalidRelationError
from hasone_button.fields import AnchorKind, HasOneButtonField, TabFieldList, anchor_kind
from hasone_button.splicer import attach

from .admin import ProyectoAdmin
from .forms import ProyectoForm
from .models import Presupuesto, Proyecto, Responsable

User = get_user_model()


def dar_permisos(user, *codenames):
    user.user_permissions.add(*Permission.objects.filter(codename__in=codenames))
    # Los permisos se cachean en el usuario.
    return User.objects.get(pk=user.pk)


class HasOneEntityMixinTests(TestCase):
    def setUp(self):
        self.responsable = Responsable.objects.create(nombre="Ana")
        self.proyecto = Proyecto.objects.create(nombre="Puente")

    def test_has_relation_only_for_forward_single_relations(self):
        self.assertTrue(self.proyecto.has_relation("responsable"))
        self.assertTrue(self.proyecto.has_relation("presupuesto"))
        self.assertFalse(self.proyecto.has_relation("nombre"))
        self.assertFalse(self.proyecto.has_relation("inexistente"))

    def test_related_model(self):
        self.assertIs(self.proyecto.related_model("responsable"), Responsable)
        with self.assertRaises(InvalidRelationError):
            self.proyecto.related_model("notas")

    def test_get_related(self):
        self.assertIsNone(self.proyecto.get_related("responsable"))
        self.proyecto.set_relation_id("responsable", self.responsable.pk)
        self.assertEqual(self.proyecto.get_related("responsable"), self.responsable)

    def test_get_related_with_dangling_id(self):
        self.proyecto.responsable_id = 9999
        self.assertIsNone(self.proyecto.get_related("responsable"))

    def test_link_related_persists(self):
        self.proyecto.link_related("responsable", self.responsable)

        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.responsable_id, self.responsable.pk)

    def test_link_related_restores_id_when_save_fails(self):
        with mock.patch.object(Proyecto, "persist", side_effect=DatabaseError("sin conexión")):
            with self.assertRaises(DatabaseError):
                self.proyecto.link_related("responsable", self.responsable)

        self.assertIsNone(self.proyecto.responsable_id)
        self.proyecto.refresh_from_db()
        self.assertIsNone(self.proyecto.responsable_id)


class HasOneButtonFieldTests(TestCase):
    def setUp(self):
        self.responsable = Responsable.objects.create(nombre="Ana")
        self.proyecto = Proyecto.objects.create(nombre="Puente")

    def boton(self, anchor=None, user=None):
        anchor = anchor or forms.ModelChoiceField(queryset=Responsable.objects.all())
        tab = TabFieldList([("nombre", forms.CharField()), ("responsable_id", anchor)])
        return attach(tab, "responsable", self.proyecto, user=user)

    def test_without_record_only_create_is_available(self):
        boton = self.boton()

        self.assertFalse(boton.record_exists)
        self.assertEqual([action.key for action in boton.actions], ["create"])
        self.assertEqual(
            boton.actions[0].url,
            reverse(
                "hasone_button:crear_y_vincular",
                kwargs={
                    "app_label": "proyectos",
                    "model_name": "proyecto",
                    "pk": self.proyecto.pk,
                    "relation": "responsable",
                },
            ),
        )

    def test_invoking_create_links_and_persists(self):
        boton = self.boton()
        nuevo = Responsable.objects.create(nombre="Beatriz")

        boton.invoke("create", nuevo)

        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.responsable_id, nuevo.pk)
        self.assertTrue(boton.record_exists)

    def test_with_record_edit_and_replace_are_available(self):
        self.proyecto.link_related("responsable", self.responsable)
        boton = self.boton()

        self.assertTrue(boton.record_exists)
        self.assertEqual([action.key for action in boton.actions], ["edit", "replace"])
        self.assertEqual(
            boton.actions[0].url,
            reverse("admin:proyectos_responsable_change", args=[self.responsable.pk]),
        )

    def test_replace_unlinks_previous_record(self):
        self.proyecto.link_related("responsable", self.responsable)
        nuevo = Responsable.objects.create(nombre="Carla")

        self.boton().invoke("replace", nuevo)

        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.responsable, nuevo)
        self.assertTrue(Responsable.objects.filter(pk=self.responsable.pk).exists())

    def test_edit_is_only_a_link(self):
        self.proyecto.link_related("responsable", self.responsable)
        with self.assertRaises(ValueError):
            self.boton().invoke("edit", self.responsable)

    def test_unavailable_action_is_denied(self):
        with self.assertRaises(PermissionDenied):
            self.boton().invoke("replace", self.responsable)

    def test_readonly_anchor_has_no_actions(self):
        self.proyecto.link_related("responsable", self.responsable)
        anchor = forms.ModelChoiceField(queryset=Responsable.objects.all(), disabled=True)
        boton = self.boton(anchor=anchor)

        self.assertTrue(boton.record_exists)
        self.assertEqual(boton.actions, [])
        self.assertIn("<em>responsable</em>", boton.message)

    def test_message_depends_on_anchor_kind(self):
        self.assertIn("lista de arriba", self.boton().message)
        self.assertIn("Escribe el ID", self.boton(anchor=forms.IntegerField()).message)
        self.assertIn("Asigna un registro", self.boton(anchor=forms.CharField()).message)

    def test_raw_id_widget_is_numeric(self):
        rel = Proyecto._meta.get_field("responsable").remote_field
        anchor = forms.ModelChoiceField(
            queryset=Responsable.objects.all(),
            widget=ForeignKeyRawIdWidget(rel, admin.site),
        )
        self.assertIs(anchor_kind(anchor), AnchorKind.NUMERIC)

    def test_user_without_permissions_gets_no_actions(self):
        user = User.objects.create_user(username="visita", password="segura123!", is_staff=True)
        self.assertEqual(self.boton(user=user).actions, [])

    def test_user_with_add_permission_can_create(self):
        user = User.objects.create_user(username="editor", password="segura123!", is_staff=True)
        user = dar_permisos(user, "add_responsable")

        self.assertEqual([action.key for action in self.boton(user=user).actions], ["create"])

    def test_rendered_widget(self):
        html = self.boton().widget.render("responsable", None)

        self.assertIn('id="hasone-responsable"', html)
        self.assertIn("Crear y vincular nuevo", html)


class ProyectoFormTests(TestCase):
    def setUp(self):
        self.responsable = Responsable.objects.create(nombre="Ana")
        self.proyecto = Proyecto.objects.create(nombre="Puente", responsable=self.responsable)

    def test_new_instance_only_renames_the_anchor(self):
        form = ProyectoForm()

        self.assertEqual(list(form.fields), ["nombre", "responsable_id", "notas"])
        self.assertIsInstance(form.fields["responsable_id"], forms.ModelChoiceField)

    def test_saved_instance_gets_the_buttons(self):
        form = ProyectoForm(instance=self.proyecto)

        self.assertEqual(
            list(form.fields),
            ["nombre", "responsable_id", "responsable_style", "responsable", "notas"],
        )
        self.assertIsInstance(form.fields["responsable"], HasOneButtonField)
        self.assertEqual(form["responsable_id"].value(), self.responsable.pk)

    def test_save_assigns_the_relation_from_the_anchor(self):
        otro = Responsable.objects.create(nombre="Beatriz")
        form = ProyectoForm(
            data={"nombre": "Puente", "responsable_id": str(otro.pk), "notas": ""},
            instance=self.proyecto,
        )

        self.assertTrue(form.is_valid(), form.errors)
        form.save()
        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.responsable, otro)

    def test_create_with_relation(self):
        form = ProyectoForm(data={"nombre": "Túnel", "responsable_id": str(self.responsable.pk)})

        self.assertTrue(form.is_valid(), form.errors)
        proyecto = form.save()
        self.assertEqual(proyecto.responsable, self.responsable)

    def test_clearing_the_anchor_unlinks(self):
        form = ProyectoForm(data={"nombre": "Puente", "responsable_id": ""}, instance=self.proyecto)

        self.assertTrue(form.is_valid(), form.errors)
        form.save()
        self.proyecto.refresh_from_db()
        self.assertIsNone(self.proyecto.responsable_id)

    @override_settings(HASONE_BUTTON_DROPDOWN_LIMIT=1)
    def test_many_records_use_a_numeric_anchor(self):
        form = ProyectoForm(instance=self.proyecto)

        self.assertIsInstance(form.fields["responsable_id"], forms.IntegerField)
        self.assertIs(form.fields["responsable"].kind, AnchorKind.NUMERIC)

    @override_settings(HASONE_BUTTON_DROPDOWN_LIMIT=1)
    def test_numeric_anchor_rejects_unknown_id(self):
        form = ProyectoForm(
            data={"nombre": "Puente", "responsable_id": "9999"},
            instance=self.proyecto,
        )

        self.assertFalse(form.is_valid())
        self.assertIn("responsable_id", form.errors)

    def test_readonly_relation_is_scaffolded_disabled(self):
        class SoloLecturaForm(ProyectoForm):
            hasone_readonly = ('responsable',)

            class Meta(ProyectoForm.Meta):
                fields = ['nombre', 'notas']

        form = SoloLecturaForm(instance=self.proyecto)

        self.assertTrue(form.fields["responsable_id"].disabled)
        self.assertEqual(form.fields["responsable"].actions, [])
        self.assertIn("display: none", form.fields["responsable_style"].css)

    def test_unknown_relation_fails_at_build_time(self):
        class MalForm(ProyectoForm):
            has_one_buttons = ('notas',)

        with self.assertRaises(InvalidRelationError):
            MalForm(instance=self.proyecto)

    def test_user_is_forwarded_to_the_buttons(self):
        user = User.objects.create_user(username="visita", password="segura123!")
        form = ProyectoForm(instance=self.proyecto, user=user)

        self.assertIs(form.fields["responsable"].user, user)
        self.assertEqual(form.fields["responsable"].actions, [])


class SpliceFieldsetsTests(TestCase):
    def test_relation_is_replaced_by_anchor_and_buttons(self):
        fieldsets = [
            (None, {"fields": ["nombre", "responsable"]}),
            ("Notas", {"fields": ["notas"], "classes": ["collapse"]}),
        ]
        result = splice_fieldsets(fieldsets, ("responsable",))

        self.assertEqual(
            result[0][1]["fields"],
            ["nombre", "responsable_id", "responsable_style", "responsable"],
        )
        self.assertEqual(result[1], ("Notas", {"fields": ["notas"], "classes": ["collapse"]}))
        self.assertEqual(fieldsets[0][1]["fields"], ["nombre", "responsable"])

    def test_rows_keep_the_anchor_in_place(self):
        result = splice_fieldsets([(None, {"fields": [("nombre", "responsable"), "notas"]})], ("responsable",))

        self.assertEqual(
            result[0][1]["fields"],
            [("nombre", "responsable_id"), "responsable_style", "responsable", "notas"],
        )

    def test_without_buttons_only_renames(self):
        result = splice_fieldsets([(None, {"fields": ["responsable"]})], ("responsable",), with_buttons=False)

        self.assertEqual(result[0][1]["fields"], ["responsable_id"])


class ProyectoAdminTests(TestCase):
    def setUp(self):
        self.admin_user = User.objects.create_superuser(
            username="admin", email="admin@example.com", password="segura123!"
        )
        self.responsable = Responsable.objects.create(nombre="Ana")
        self.proyecto = Proyecto.objects.create(nombre="Puente", responsable=self.responsable)
        self.change_url = reverse("admin:proyectos_proyecto_change", args=[self.proyecto.pk])

    def test_change_form_shows_the_buttons(self):
        self.client.force_login(self.admin_user)
        response = self.client.get(self.change_url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'id="hasone-responsable"')
        self.assertContains(response, 'id="hasone-presupuesto"')
        self.assertContains(response, "Ver/editar existente")
        self.assertContains(response, "Crear y vincular nuevo")
        self.assertContains(response, 'name="responsable_id"')

    def test_add_form_has_anchor_without_buttons(self):
        self.client.force_login(self.admin_user)
        response = self.client.get(reverse("admin:proyectos_proyecto_add"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'name="responsable_id"')
        self.assertNotContains(response, 'id="hasone-responsable"')

    def test_change_form_saves_the_anchor(self):
        otro = Responsable.objects.create(nombre="Beatriz")
        self.client.force_login(self.admin_user)
        response = self.client.post(
            self.change_url,
            {
                "nombre": "Puente nuevo",
                "responsable_id": str(otro.pk),
                "presupuesto_id": "",
                "notas": "",
                "_save": "Guardar",
            },
        )

        self.assertEqual(response.status_code, 302)
        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.nombre, "Puente nuevo")
        self.assertEqual(self.proyecto.responsable, otro)

    def test_add_form_rejects_a_budget_linked_to_another_project(self):
        presupuesto = Presupuesto.objects.create(monto="1000.00")
        self.proyecto.link_related("presupuesto", presupuesto)
        self.client.force_login(self.admin_user)
        response = self.client.post(
            reverse("admin:proyectos_proyecto_add"),
            {
                "nombre": "Dos",
                "responsable_id": "",
                "presupuesto_id": str(presupuesto.pk),
                "notas": "",
                "_save": "Guardar",
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("presupuesto_id", response.context["adminform"].form.errors)
        self.assertEqual(Proyecto.objects.count(), 1)

    def test_change_form_rejects_a_budget_linked_to_another_project(self):
        presupuesto = Presupuesto.objects.create(monto="1000.00")
        otro = Proyecto.objects.create(nombre="Otro", presupuesto=presupuesto)
        self.client.force_login(self.admin_user)
        response = self.client.post(
            self.change_url,
            {
                "nombre": "Puente",
                "responsable_id": str(self.responsable.pk),
                "presupuesto_id": str(presupuesto.pk),
                "notas": "",
                "_save": "Guardar",
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("presupuesto_id", response.context["adminform"].form.errors)
        self.proyecto.refresh_from_db()
        self.assertIsNone(self.proyecto.presupuesto_id)
        otro.refresh_from_db()
        self.assertEqual(otro.presupuesto, presupuesto)

    def test_change_form_keeps_its_own_budget(self):
        presupuesto = Presupuesto.objects.create(monto="1000.00")
        self.proyecto.link_related("presupuesto", presupuesto)
        self.client.force_login(self.admin_user)
        response = self.client.post(
            self.change_url,
            {
                "nombre": "Puente",
                "responsable_id": str(self.responsable.pk),
                "presupuesto_id": str(presupuesto.pk),
                "notas": "",
                "_save": "Guardar",
            },
        )

        self.assertEqual(response.status_code, 302)

    def test_view_only_user_sees_plain_relation(self):
        user = User.objects.create_user(username="lector", password="segura123!", is_staff=True)
        user = dar_permisos(user, "view_proyecto")
        self.client.force_login(user)
        response = self.client.get(self.change_url)

        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, 'id="hasone-responsable"')
        self.assertContains(response, "Ana")

    def test_readonly_relations_are_left_alone(self):
        request = RequestFactory().get(self.change_url)
        request.user = self.admin_user
        model_admin = ProyectoAdmin(Proyecto, admin.site)
        model_admin.readonly_fields = ('responsable',)

        fields = [name for _title, options in model_admin.get_fieldsets(request, self.proyecto) for name in options["fields"]]

        self.assertIn("responsable", fields)
        self.assertNotIn("responsable_id", fields)
        self.assertIn("presupuesto_id", fields)
        self.assertEqual(model_admin.get_has_one_buttons(request, self.proyecto), ("presupuesto",))


class CrearYVincularViewTests(TestCase):
    def setUp(self):
        self.admin_user = User.objects.create_superuser(
            username="admin", email="admin@example.com", password="segura123!"
        )
        self.proyecto = Proyecto.objects.create(nombre="Puente")
        self.url = self.url_para("responsable")

    def url_para(self, relation, model_name="proyecto", pk=None):
        return reverse(
            "hasone_button:crear_y_vincular",
            kwargs={
                "app_label": "proyectos",
                "model_name": model_name,
                "pk": pk or self.proyecto.pk,
                "relation": relation,
            },
        )

    def test_get_shows_the_related_form(self):
        self.client.force_login(self.admin_user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'name="nombre"')
        self.assertContains(response, "Crear y vincular")

    def test_post_creates_and_links(self):
        self.client.force_login(self.admin_user)
        response = self.client.post(self.url, {"nombre": "Daniela", "email": ""})

        self.assertRedirects(
            response,
            reverse("admin:proyectos_proyecto_change", args=[self.proyecto.pk]),
        )
        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.responsable.nombre, "Daniela")

    def test_one_to_one_relation(self):
        self.client.force_login(self.admin_user)
        self.client.post(self.url_para("presupuesto"), {"monto": "1500.00", "moneda": "CLP"})

        self.proyecto.refresh_from_db()
        self.assertEqual(self.proyecto.presupuesto, Presupuesto.objects.get())

    def test_invalid_post_does_not_link(self):
        self.client.force_login(self.admin_user)
        response = self.client.post(self.url, {"nombre": ""})

        self.assertEqual(response.status_code, 200)
        self.proyecto.refresh_from_db()
        self.assertIsNone(self.proyecto.responsable_id)
        self.assertFalse(Responsable.objects.exists())

    def test_non_staff_is_redirected_to_login(self):
        user = User.objects.create_user(username="cliente", password="segura123!")
        self.client.force_login(user)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 302)

    def test_staff_without_permissions_is_forbidden(self):
        user = User.objects.create_user(username="tecnico", password="segura123!", is_staff=True)
        user = dar_permisos(user, "change_proyecto")
        self.client.force_login(user)
        response = self.client.post(self.url, {"nombre": "Daniela"})

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Responsable.objects.exists())

    def test_unknown_relation_or_model_is_404(self):
        self.client.force_login(self.admin_user)

        self.assertEqual(self.client.get(self.url_para("notas")).status_code, 404)
        self.assertEqual(self.client.get(self.url_para("responsable", model_name="tarea")).status_code, 404)
        self.assertEqual(self.client.get(self.url_para("responsable", model_name="responsable")).status_code, 404)

    def test_relation_without_buttons_is_404(self):
        self.client.force_login(self.admin_user)
        with mock.patch.object(ProyectoAdmin, "has_one_buttons", ("presupuesto",)):
            response = self.client.post(self.url, {"nombre": "Daniela", "email": ""})

        self.assertEqual(response.status_code, 404)
        self.assertFalse(Responsable.objects.exists())

    def test_readonly_relation_is_404(self):
        self.client.force_login(self.admin_user)
        with mock.patch.object(ProyectoAdmin, "readonly_fields", ("responsable",)):
            response = self.client.post(self.url, {"nombre": "Daniela", "email": ""})

        self.assertEqual(response.status_code, 404)
        self.proyecto.refresh_from_db()
        self.assertIsNone(self.proyecto.responsable_id)
