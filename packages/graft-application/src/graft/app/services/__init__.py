from .manifest_merger import ManifestMerger

__all__ = ["ManifestMerger"]
