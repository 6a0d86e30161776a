"""Signboard image export."""

from src.export.image_exporter import DownloadStore, SignboardImageExporter

__all__ = [
    "DownloadStore",
    "SignboardImageExporter",
]
