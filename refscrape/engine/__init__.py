"""Engine components orchestrating discover → fetch → extract → persist."""

from .catalog import CatalogExtractor
from .discovery import LinkDiscoverer
from .dispatcher import Dispatcher
from .extractor import StructuralExtractor
from .fetcher import FetchResponse, Fetcher
from .records import ExtractedRecord, KeyedBlocks, Link, Scalar, Table
from .state import Dataset, StateStore

__all__ = [
    "CatalogExtractor",
    "Dataset",
    "Dispatcher",
    "ExtractedRecord",
    "FetchResponse",
    "Fetcher",
    "KeyedBlocks",
    "Link",
    "LinkDiscoverer",
    "Scalar",
    "StateStore",
    "StructuralExtractor",
    "Table",
]
