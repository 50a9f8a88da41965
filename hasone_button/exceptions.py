from django.core.exceptions import ImproperlyConfigured


class HasOneButtonError(ImproperlyConfigured):
    """Error de configuración detectado al construir el formulario."""


class InvalidRelationError(HasOneButtonError):
    def __init__(self, model, relation_name):
        self.model = model
        self.relation_name = relation_name
        super().__init__(
            f"{model.__name__} no declara una relación has-one llamada '{relation_name}'."
        )


class RelationFieldNotFoundError(HasOneButtonError):
    def __init__(self, relation_name, id_field_name):
        self.relation_name = relation_name
        self.id_field_name = id_field_name
        super().__init__(
            f"No se encontró el campo '{id_field_name}' para la relación '{relation_name}'. "
            "Agrega el campo a la pestaña antes de adjuntar el botón."
        )


class FieldNameConflictError(HasOneButtonError):
    def __init__(self, relation_name, field_name):
        self.relation_name = relation_name
        self.field_name = field_name
        super().__init__(
            f"Ya existe un campo '{field_name}'; no se puede adjuntar el botón de '{relation_name}' "
            "sin reemplazarlo."
        )
