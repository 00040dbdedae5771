"""Document extensions authored by notso-lod."""

from notso_lod.extensions.lod import LOD, LODExtension

__all__ = ["LOD", "LODExtension"]
