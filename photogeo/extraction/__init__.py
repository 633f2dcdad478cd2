"""PhotoGeo metadata extraction package."""

from photogeo.extraction.metadata_extractor import MetadataExtractor
from photogeo.extraction.metadata_source import MetadataSource, PillowExifSource

__all__ = ["MetadataExtractor", "MetadataSource", "PillowExifSource"]
