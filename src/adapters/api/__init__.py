"""Recursos tipados de la API del ERP.

Cada clase envuelve un `ApiTransport` (normalmente `adapters.http_client.ApiClient`)
y expone una operación por endpoint. No hay lógica de negocio: solo rutas,
parámetros y modelos.
"""

from adapters.api.auth import AuthApi
from adapters.api.comments import CommentsApi
from adapters.api.import_export import ImportExportApi, ImportExportKeys
from adapters.api.integrations import IntegrationsApi
from adapters.api.notifications import NotificationsApi
from adapters.api.products import ProductsApi
from adapters.api.roles import RolesApi
from adapters.api.tasks import TasksApi

__all__ = [
    "AuthApi",
    "CommentsApi",
    "ImportExportApi",
    "IntegrationsApi",
    "NotificationsApi",
    "ProductsApi",
    "RolesApi",
    "TasksApi",
    "ImportExportKeys",
]
