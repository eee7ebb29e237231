from .names import normalize_zone, relative_name

__all__ = ["normalize_zone", "relative_name"]
