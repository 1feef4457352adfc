from .loader import load_geo_dir, load_polygons

__all__ = ["load_geo_dir", "load_polygons"]
