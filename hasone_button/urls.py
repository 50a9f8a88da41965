from django.urls import path

from . import views

app_name = "hasone_button"

urlpatterns = [
    path(
        "<str:app_label>/<str:model_name>/<str:pk>/<str:relation>/nuevo/",
        views.crear_y_vincular,
        name="crear_y_vincular",
    ),
]
