"""Model layer: table metadata producing pre-configured query builders."""

from querykit.models.model import Model

__all__ = ["Model"]
