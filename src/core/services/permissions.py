"""Agrupación de permisos para la página de roles.

Solo presentación: la autorización la evalúa el servidor. Un permiso es un
string `modulo.accion` (p.ej. `tasks.manage`, `tasks.agenda.view`).
"""

from __future__ import annotations

from typing import Iterable

ROLE_INFO: dict[str, dict[str, str]] = {
    "owner": {
        "display_name": "Propietario",
        "description": "Acceso total al sistema. Control completo sobre la organización.",
    },
    "admin": {
        "display_name": "Administrador",
        "description": (
            "Administrador del sistema con acceso casi completo. "
            "Puede gestionar usuarios, roles y configuraciones."
        ),
    },
    "manager": {
        "display_name": "Gestor",
        "description": "Gestor con acceso a módulos asignados. Puede gestionar operaciones de negocio.",
    },
    "staff": {
        "display_name": "Personal",
        "description": "Personal operativo con acceso limitado a funciones específicas.",
    },
    "viewer": {
        "display_name": "Visualizador",
        "description": "Solo lectura. Puede ver información pero no realizar cambios.",
    },
}

# No se pueden modificar desde la consola.
SYSTEM_ROLES: frozenset[str] = frozenset({"owner", "admin"})


def group_permissions_by_module(permissions: Iterable[str]) -> dict[str, list[str]]:
    """Agrupa por el primer segmento antes del `.`, en orden de aparición.

    Permisos con primer segmento vacío (".view", "") se descartan.
    """

    grouped: dict[str, list[str]] = {}
    for perm in permissions:
        module = perm.split(".", 1)[0]
        if not module:
            continue
        grouped.setdefault(module, []).append(perm)
    return grouped


def is_system_role(role: str) -> bool:
    return role in SYSTEM_ROLES


def role_display_name(role: str) -> str:
    info = ROLE_INFO.get(role)
    return info["display_name"] if info else role


def role_description(role: str) -> str:
    info = ROLE_INFO.get(role)
    return info["description"] if info else ""
