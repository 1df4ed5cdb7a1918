"""
Content-aware patch reconstruction.

Fills an unknown area from the outside in.  Every pass picks target
positions on a coarse grid along the fill front, searches a bounded
neighbourhood for the known patches most similar to the target's known
surroundings, and copies a blend of the best matches into the target.
Search radius and striding bound the work to
O(front targets × candidates × patch area) per pass.
"""
from __future__ import annotations

from typing import List, Optional, Tuple
import logging

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ..models.engine_config import InpaintingConfig
from ..models.patch_candidate import PatchCandidate

logger = logging.getLogger(__name__)

MAX_RGB_DISTANCE = 255.0 * np.sqrt(3.0)


class PatchMatchService:
    def __init__(self, config: Optional[InpaintingConfig] = None):
        self.config = config or InpaintingConfig()
        if self.config.patch_size < 1 or self.config.patch_size % 2 == 0:
            raise ValueError(f"patch_size must be a positive odd number, got {self.config.patch_size}")

    # ─── Similarity ───────────────────────────────────────────────
    @staticmethod
    def _similarities(
        target: np.ndarray, target_known: np.ndarray,
        sources: np.ndarray, sources_known: np.ndarray,
    ) -> np.ndarray:
        """
        target (3,p,p), target_known (p,p), sources (N,3,p,p), sources_known (N,p,p)
        → (N,) similarity in [0, 1]; 0 when the patches share no known pixel.
        """
        both = sources_known & target_known[None]
        per_pixel = np.sqrt(((sources - target[None]) ** 2).sum(axis=1))
        count = both.sum(axis=(1, 2))
        mean_dist = (per_pixel * both).sum(axis=(1, 2)) / np.maximum(count, 1)
        similarity = 1.0 - mean_dist / MAX_RGB_DISTANCE
        similarity[count == 0] = 0.0
        return np.clip(similarity, 0.0, 1.0)

    def _views(self, image: np.ndarray, known: np.ndarray):
        r = self.config.patch_size // 2
        padded_img = np.pad(image, ((r, r), (r, r), (0, 0)), mode="constant")
        padded_known = np.pad(known, ((r, r), (r, r)), mode="constant", constant_values=False)
        size = self.config.patch_size
        img_view = sliding_window_view(padded_img, (size, size), axis=(0, 1))   # (H, W, 3, p, p)
        known_view = sliding_window_view(padded_known, (size, size))           # (H, W, p, p)
        return img_view, known_view

    def patch_similarity(
        self,
        image: np.ndarray,
        known: np.ndarray,
        target: Tuple[int, int],
        source: Tuple[int, int],
    ) -> float:
        """
        Similarity of the patches centred at target=(x, y) and source=(x, y),
        measured over pixels known in both.  A patch against itself gives 1.
        """
        img_view, known_view = self._views(image.astype(np.float64), known.astype(bool))
        tx, ty = target
        sx, sy = source
        sim = self._similarities(
            img_view[ty, tx], known_view[ty, tx],
            img_view[sy, sx][None], known_view[sy, sx][None],
        )
        return float(sim[0])

    # ─── Search ───────────────────────────────────────────────────
    def _source_grid(self, ty: int, tx: int, source_ok: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        cfg = self.config
        h, w = source_ok.shape
        rad = cfg.search_radius
        step = max(1, cfg.search_stride)
        cys = np.arange(max(0, ty - rad), min(h, ty + rad + 1), step)
        cxs = np.arange(max(0, tx - rad), min(w, tx + rad + 1), step)
        gy, gx = np.meshgrid(cys, cxs, indexing="ij")
        gy, gx = gy.ravel(), gx.ravel()
        keep = source_ok[gy, gx]
        return gy[keep], gx[keep]

    def best_candidates(
        self, img_view, known_view, source_ok: np.ndarray, ty: int, tx: int
    ) -> List[PatchCandidate]:
        """Top-k source patches for the target centred at (tx, ty), best first."""
        cys, cxs = self._source_grid(ty, tx, source_ok)
        if cys.size == 0:
            return []
        sims = self._similarities(
            img_view[ty, tx], known_view[ty, tx],
            img_view[cys, cxs], known_view[cys, cxs],
        )
        order = np.argsort(-sims, kind="stable")[: max(1, self.config.top_k)]
        return [
            PatchCandidate(similarity=float(sims[i]), x=int(cxs[i]), y=int(cys[i]))
            for i in order
            if sims[i] > 0.0
        ]

    # ─── Fill ─────────────────────────────────────────────────────
    def fill(
        self,
        image: np.ndarray,
        known: np.ndarray,
        box: Tuple[int, int, int, int],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Args:
            image: (H, W, 3) float colors; unknown pixels may hold anything.
            known: (H, W) bool, False inside the area to rebuild.
            box: (x0, y0, x1, y1) clipped bounds of the area.

        Returns:
            (image, known) copies with every reachable pixel filled.
        """
        cfg = self.config
        image = image.astype(np.float64, copy=True)
        known = known.astype(bool, copy=True)
        source_ok = known.copy()          # only original content is copied from
        x0, y0, x1, y1 = box
        step = max(1, cfg.target_stride)

        grid_y, grid_x = np.meshgrid(np.arange(y0, y1, step), np.arange(x0, x1, step), indexing="ij")
        grid_y, grid_x = grid_y.ravel(), grid_x.ravel()

        for pass_no in range(cfg.max_passes):
            if known[y0:y1, x0:x1].all():
                break
            img_view, known_view = self._views(image, known)

            updates = []
            for ty, tx in zip(grid_y, grid_x):
                block_known = known[ty:ty + step, tx:tx + step]
                if block_known.all() or not known_view[ty, tx].any():
                    continue
                candidates = self.best_candidates(img_view, known_view, source_ok, ty, tx)
                if candidates:
                    updates.append((ty, tx, candidates))

            if not updates:
                logger.debug(f"patch fill stalled after {pass_no} pass(es)")
                break

            # writes land after the pass so every target saw the same state
            for ty, tx, candidates in updates:
                self._blend_block(image, known, source_ok, ty, tx, step, candidates, (x1, y1))

        return image, known

    @staticmethod
    def _blend_block(image, known, source_ok, ty, tx, step, candidates, limits):
        x1, y1 = limits
        h, w = known.shape
        bh = min(step, y1 - ty)
        bw = min(step, x1 - tx)
        acc = np.zeros((bh, bw, 3))
        weight = np.zeros((bh, bw))
        for cand in candidates:
            sy1 = min(cand.y + bh, h)
            sx1 = min(cand.x + bw, w)
            ok = source_ok[cand.y:sy1, cand.x:sx1]
            patch = image[cand.y:sy1, cand.x:sx1]
            ph, pw = ok.shape
            acc[:ph, :pw] += patch * (ok * cand.similarity)[..., None]
            weight[:ph, :pw] += ok * cand.similarity

        target_unknown = ~known[ty:ty + bh, tx:tx + bw]
        write = target_unknown & (weight > 0)
        block = image[ty:ty + bh, tx:tx + bw]
        block[write] = acc[write] / weight[write][:, None]
        known[ty:ty + bh, tx:tx + bw] |= write
