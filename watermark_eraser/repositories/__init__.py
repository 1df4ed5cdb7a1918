from .image_repository import ImageRepository
from .region_repository import RegionRepository

__all__ = ["ImageRepository", "RegionRepository"]
