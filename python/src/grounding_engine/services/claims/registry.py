"""
Role Registry.

Maps bot role names ("pm", "dev", ...) to their RoleMetadata
implementation. The registry is an explicit object built once at startup
and handed to the components that need it; it is guarded by a lock so
late registration is safe while readers are active, and can be frozen.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Type

from ...exceptions import RegistryFrozenError, RoleNotRegisteredError
from ...models.role_metadata import ExtractionPatterns, RoleMetadata
from .roles.dev import DevMetadata
from .roles.pm import PMMetadata

logger = logging.getLogger(__name__)


class RoleRegistry:
    """
    Registry of role metadata implementations.

    Each registered class must provide ``from_dict(data)`` and an
    ``EXTRACTION_PATTERNS`` attribute besides the RoleMetadata methods.

    Example:
        >>> registry = default_role_registry()
        >>> meta = registry.create("pm", {"priority": "high"})
        >>> meta.get_field_value("priority")
        ['high']
    """

    def __init__(self):
        self._roles: Dict[str, Type] = {}
        self._lock = threading.RLock()
        self._frozen = False

    def register(self, role: str, role_cls: Type) -> None:
        """
        Register an implementation under a role name.

        Raises:
            RegistryFrozenError: If the registry has been frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot register role '{role}': registry is frozen")
            self._roles[role.lower()] = role_cls
        logger.info(f"Registered role metadata: {role} -> {role_cls.__name__}")

    def freeze(self) -> None:
        """Reject further registrations."""
        with self._lock:
            self._frozen = True

    def get(self, role: str) -> Type:
        """
        Get the implementation class for a role.

        Raises:
            RoleNotRegisteredError: If no implementation is registered
        """
        with self._lock:
            role_cls = self._roles.get(role.lower())
        if role_cls is None:
            raise RoleNotRegisteredError(role)
        return role_cls

    def create(self, role: str, data: Optional[Dict[str, Any]]) -> Optional[RoleMetadata]:
        """Build role metadata from a plain dict (None when data is empty)."""
        if not data:
            return None
        return self.get(role).from_dict(data)

    def patterns(self, role: str) -> ExtractionPatterns:
        """Claim extraction patterns for a role."""
        return self.get(role).EXTRACTION_PATTERNS

    def list_roles(self) -> List[str]:
        with self._lock:
            return list(self._roles.keys())

    def __contains__(self, role: str) -> bool:
        with self._lock:
            return role.lower() in self._roles


def default_role_registry() -> RoleRegistry:
    """Registry with the built-in PM and Dev roles."""
    registry = RoleRegistry()
    registry.register("pm", PMMetadata)
    registry.register("dev", DevMetadata)
    return registry
