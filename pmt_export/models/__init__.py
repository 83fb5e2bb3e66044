from .records import NormalizedRecord, ProjectRecord, ReleaseRecord

__all__ = ["NormalizedRecord", "ProjectRecord", "ReleaseRecord"]
