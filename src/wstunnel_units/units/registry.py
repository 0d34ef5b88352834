"""Name-keyed collection of generated services."""

from typing import Any

from pydantic import BaseModel, Field

from ..common.exceptions import DuplicateServiceNameError
from ..common.logging import get_logger
from .descriptor import ServiceDescriptor

logger = get_logger(__name__)


class ServiceRegistry(BaseModel):
    """Generated services by name, in insertion order."""

    services: dict[str, ServiceDescriptor] = Field(
        default_factory=dict, description="Services by name"
    )

    def add_service(self, entry: str, descriptor: ServiceDescriptor) -> None:
        """Add a service.

        Args:
            entry: Qualified entry the service was generated from
            descriptor: Service to add

        Raises:
            DuplicateServiceNameError: If the name is already registered
        """
        if descriptor.name in self.services:
            raise DuplicateServiceNameError(entry, descriptor.name)

        self.services[descriptor.name] = descriptor
        logger.debug("Registered service", service=descriptor.name, entry=entry)

    def get_service(self, name: str) -> ServiceDescriptor | None:
        return self.services.get(name)

    def names(self) -> list[str]:
        return list(self.services)

    def to_supervisor_dict(self) -> dict[str, dict[str, Any]]:
        """All services in their JSON-ready form."""
        return {
            name: descriptor.to_supervisor_dict()
            for name, descriptor in self.services.items()
        }

    def __len__(self) -> int:
        return len(self.services)

    def __contains__(self, name: object) -> bool:
        return name in self.services
