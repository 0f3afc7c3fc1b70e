"""Dataset writers."""

from .json_exporter import JsonExporter, dumps_document

__all__ = ["JsonExporter", "dumps_document"]
