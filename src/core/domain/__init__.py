"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos que reflejan la API (Pydantic v2).
- El dominio no conoce HTTP, CLI, ni SDKs: solo conceptos del ERP.
"""
