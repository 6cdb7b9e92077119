"""Storage backend factory for creating backend instances."""

from typing import Dict, List, Type

from ..config.schema import BackendType
from .base import FileSystemBackend
from .local import LocalFileSystem


class FileSystemFactory:
    """Factory for creating storage backend instances."""

    _backend_classes: Dict[BackendType, Type[FileSystemBackend]] = {
        BackendType.LOCAL: LocalFileSystem,
    }

    @classmethod
    def create_backend(cls, backend_type: BackendType, **kwargs) -> FileSystemBackend:
        """Create a backend instance.

        Args:
            backend_type: Type of backend (local, ...)
            **kwargs: Backend specific parameters

        Returns:
            Configured backend instance

        Raises:
            ValueError: If the backend type is not registered
        """
        if backend_type not in cls._backend_classes:
            raise ValueError(f"Unsupported backend type: {backend_type}")

        return cls._backend_classes[backend_type](**kwargs)

    @classmethod
    def get_supported_types(cls) -> List[BackendType]:
        """Get list of supported backend types."""
        return list(cls._backend_classes.keys())

    @classmethod
    def register_backend(cls, backend_type: BackendType, backend_class: Type[FileSystemBackend]):
        """Register a backend class for a backend type."""
        cls._backend_classes[backend_type] = backend_class
