"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: los recursos de la API dependen de un
  transporte abstracto, no de httpx.
"""

from core.interfaces.transport import ApiTransport

__all__ = ["ApiTransport"]
