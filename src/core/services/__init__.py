"""Lógica de presentación pura (sin I/O).

Por qué separado de adapters:
- Porcentajes, márgenes, agrupación de permisos y validación de archivos se
  prueban sin red.
- La CLI y cualquier otro entrypoint comparten las mismas reglas.
"""
