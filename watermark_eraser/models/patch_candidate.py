from dataclasses import dataclass


@dataclass(order=True)
class PatchCandidate:
    """Source patch centre found during content-aware fill, ranked by similarity."""
    similarity: float   # [0, 1], 1 = identical
    x: int
    y: int
