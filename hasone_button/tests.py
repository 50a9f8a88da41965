import copy

from django import forms
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from .exceptions import FieldNameConflictError, InvalidRelationError, RelationFieldNotFoundError
from .fields import (
    AnchorKind,
    HasOneButtonField,
    HasOneStyleField,
    TabFieldList,
    anchor_kind,
    is_readonly,
)
from .splicer import attach, find_anchor, id_field_name, style_field_name


class EntidadFalsa:
    """Entidad mínima con la interfaz que usa ``attach``."""

    def __init__(self, relaciones=("Owner",)):
        self.relaciones = set(relaciones)

    def has_relation(self, name):
        return name in self.relaciones

    def get_related(self, name):
        return None


def pestana(*names):
    return TabFieldList((name, forms.CharField(required=False)) for name in names)


class TabFieldListTests(SimpleTestCase):
    def test_keeps_order_and_duplicates(self):
        tab = pestana("Name", "Notes")
        tab.append("Name", forms.CharField())

        self.assertEqual(tab.names(), ["Name", "Notes", "Name"])
        self.assertEqual(tab.index_of("Name"), 0)
        self.assertEqual(len(tab), 3)

    def test_insert_after(self):
        tab = pestana("Name", "Notes")
        field = forms.IntegerField()
        tab.insert_after("Name", "Age", field)

        self.assertEqual(tab.names(), ["Name", "Age", "Notes"])
        self.assertIs(tab.field_named("Age"), field)

    def test_insert_after_missing_anchor(self):
        tab = pestana("Name")
        with self.assertRaises(KeyError):
            tab.insert_after("Missing", "Age", forms.IntegerField())

    def test_field_named_missing(self):
        self.assertIsNone(pestana("Name").field_named("Other"))
        self.assertNotIn("Other", pestana("Name"))

    def test_from_mapping(self):
        fields = {"a": forms.CharField(), "b": forms.CharField()}
        tab = TabFieldList(fields)

        self.assertEqual(tab.names(), ["a", "b"])
        self.assertEqual(list(tab.as_dict()), ["a", "b"])


@override_settings(HASONE_BUTTON_ID_SUFFIX="ID", HASONE_BUTTON_STYLE_SUFFIX="_style")
class AttachTests(SimpleTestCase):
    def test_inserts_style_and_button_after_anchor(self):
        tab = pestana("Name", "OwnerID", "Notes")
        button = attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(tab.names(), ["Name", "OwnerID", "Owner_style", "Owner", "Notes"])
        self.assertIsInstance(tab.field_named("Owner_style"), HasOneStyleField)
        self.assertIs(tab.field_named("Owner"), button)
        self.assertIs(button.anchor, tab.field_named("OwnerID"))

    def test_anchor_as_last_field(self):
        tab = pestana("Name", "OwnerID")
        attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(tab.names(), ["Name", "OwnerID", "Owner_style", "Owner"])

    def test_other_fields_keep_relative_order(self):
        tab = pestana("A", "ManagerID", "B", "OwnerID", "C", "D")
        attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(
            tab.names(),
            ["A", "ManagerID", "B", "OwnerID", "Owner_style", "Owner", "C", "D"],
        )

    def test_prefix_must_match_relation_exactly(self):
        tab = pestana("CoOwnerID", "OwnerIDs", "OwnerID")
        attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(
            tab.names(),
            ["CoOwnerID", "OwnerIDs", "OwnerID", "Owner_style", "Owner"],
        )

    def test_missing_anchor_leaves_tab_untouched(self):
        tab = pestana("Name", "Owner", "Notes")
        with self.assertRaises(RelationFieldNotFoundError) as ctx:
            attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(tab.names(), ["Name", "Owner", "Notes"])
        self.assertEqual(ctx.exception.id_field_name, "OwnerID")

    def test_invalid_relation_is_checked_before_the_tab(self):
        with self.assertRaises(InvalidRelationError) as ctx:
            attach(None, "Owner", EntidadFalsa(relaciones=()))

        self.assertEqual(ctx.exception.relation_name, "Owner")

    def test_errors_are_configuration_errors(self):
        self.assertTrue(issubclass(InvalidRelationError, ImproperlyConfigured))
        self.assertTrue(issubclass(RelationFieldNotFoundError, ImproperlyConfigured))
        self.assertTrue(issubclass(FieldNameConflictError, ImproperlyConfigured))

    def test_attaching_twice_duplicates_the_button(self):
        tab = pestana("OwnerID", "Notes")
        first = attach(tab, "Owner", EntidadFalsa())
        second = attach(tab, "Owner", EntidadFalsa())

        self.assertEqual(
            tab.names(),
            ["OwnerID", "Owner_style", "Owner", "Owner_style", "Owner", "Notes"],
        )
        self.assertIsNot(first, second)

    def test_mutates_a_form_fields_mapping_in_place(self):
        fields = {name: forms.CharField() for name in ("Name", "OwnerID", "Notes")}
        same = fields
        attach(fields, "Owner", EntidadFalsa())

        self.assertIs(fields, same)
        self.assertEqual(list(fields), ["Name", "OwnerID", "Owner_style", "Owner", "Notes"])

    def test_mapping_with_a_field_named_like_the_relation_is_rejected(self):
        owner = forms.CharField()
        fields = {"Owner": owner, "OwnerID": forms.IntegerField(), "Notes": forms.CharField()}

        with self.assertRaises(FieldNameConflictError) as ctx:
            attach(fields, "Owner", EntidadFalsa())

        self.assertEqual(ctx.exception.field_name, "Owner")
        self.assertEqual(list(fields), ["Owner", "OwnerID", "Notes"])
        self.assertIs(fields["Owner"], owner)

    def test_mapping_with_a_style_field_is_rejected(self):
        fields = {"OwnerID": forms.IntegerField(), "Owner_style": forms.CharField()}

        with self.assertRaises(FieldNameConflictError):
            attach(fields, "Owner", EntidadFalsa())

        self.assertEqual(list(fields), ["OwnerID", "Owner_style"])

    def test_readonly_anchor_hides_actions_in_style(self):
        tab = TabFieldList([("OwnerID", forms.IntegerField(disabled=True))])
        attach(tab, "Owner", EntidadFalsa())

        style = tab.field_named("Owner_style")
        self.assertTrue(style.readonly)
        self.assertIn("#hasone-Owner .hasone-actions { display: none; }", style.css)

    def test_editable_anchor_only_merges_borders(self):
        tab = pestana("OwnerID")
        attach(tab, "Owner", EntidadFalsa())

        css = tab.field_named("Owner_style").css
        self.assertIn(".field-OwnerID { border-bottom: none; }", css)
        self.assertIn(".field-Owner {", css)
        self.assertNotIn("display: none", css)


class NamingTests(SimpleTestCase):
    @override_settings(HASONE_BUTTON_ID_SUFFIX="_id")
    def test_suffix_comes_from_settings(self):
        self.assertEqual(id_field_name("owner"), "owner_id")
        tab = pestana("name", "owner_id")

        position, name, _field = find_anchor(tab, "owner")
        self.assertEqual((position, name), (1, "owner_id"))

    @override_settings(HASONE_BUTTON_STYLE_SUFFIX="__css")
    def test_style_suffix(self):
        self.assertEqual(style_field_name("owner"), "owner__css")

    @override_settings(HASONE_BUTTON_ID_SUFFIX="ID")
    def test_find_anchor_without_match(self):
        self.assertIsNone(find_anchor(pestana("Name", "ID"), "Owner"))


class AnchorKindTests(SimpleTestCase):
    def test_choice_fields(self):
        self.assertIs(anchor_kind(forms.ChoiceField(choices=[(1, "uno")])), AnchorKind.CHOICE)
        self.assertIs(anchor_kind(forms.CharField(widget=forms.Select)), AnchorKind.CHOICE)

    def test_numeric_fields(self):
        self.assertIs(anchor_kind(forms.IntegerField()), AnchorKind.NUMERIC)

    def test_other_fields(self):
        self.assertIs(anchor_kind(forms.CharField()), AnchorKind.OTHER)
        self.assertIs(anchor_kind(None), AnchorKind.OTHER)

    def test_readonly_flag(self):
        self.assertTrue(is_readonly(forms.CharField(disabled=True)))
        self.assertTrue(is_readonly(forms.CharField(widget=forms.TextInput(attrs={"readonly": True}))))
        self.assertFalse(is_readonly(forms.CharField()))
        self.assertFalse(is_readonly(None))


class HasOneButtonFieldTests(SimpleTestCase):
    def test_deepcopy_rebinds_widget(self):
        field = HasOneButtonField("Owner", EntidadFalsa())
        clone = copy.deepcopy(field)

        self.assertIs(clone.widget.button_field, clone)
        self.assertIs(field.widget.button_field, field)

    def test_does_not_submit_data(self):
        field = HasOneButtonField("Owner", EntidadFalsa())

        self.assertFalse(field.required)
        self.assertTrue(field.disabled)
        self.assertIsNone(field.widget.value_from_datadict({"Owner": "1"}, {}, "Owner"))
        self.assertFalse(field.record_exists)
