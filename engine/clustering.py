"""
engine/clustering.py
--------------------
Feature scaling and the small unsupervised model behind the reorder scorer.

Public API
----------
    min_max_normalize(matrix) -> np.ndarray
        Column-wise min-max scaling to [0, 1]. A constant column maps to 0.5.

    kmeans(data, k, max_iter, seed) -> (labels, centroids)
        Lloyd's algorithm with a fixed iteration budget.
        Centroids start at the first k rows (row i % n when n < k), so the
        same input always yields the same clusters. Passing `seed` switches
        to a seeded random choice of starting rows instead.
        Ties in assignment go to the lowest cluster index; a cluster that
        loses all its points keeps its previous centroid.

    cluster_risk(centroids, feature) -> np.ndarray
        Per-cluster risk in [0, 1] from one centroid coordinate, where a
        lower value means higher risk (1 - value, then min-max scaled).
"""

from __future__ import annotations

import numpy as np


def min_max_normalize(matrix: np.ndarray) -> np.ndarray:
    """Scale each column to [0, 1]; constant columns become 0.5."""
    data = np.asarray(matrix, dtype=float)
    if data.size == 0:
        return data.copy()
    lo   = data.min(axis=0)
    hi   = data.max(axis=0)
    span = hi - lo
    flat = span == 0
    scaled = (data - lo) / np.where(flat, 1.0, span)
    scaled[:, flat] = 0.5
    return scaled


def _initial_centroids(data: np.ndarray, k: int, seed: int | None) -> np.ndarray:
    n = len(data)
    if seed is None:
        rows = [i % n for i in range(k)]
    else:
        rng  = np.random.default_rng(seed)
        rows = rng.choice(n, size=k, replace=n < k)
    return data[rows].copy()


def kmeans(
    data:     np.ndarray,
    k:        int = 3,
    max_iter: int = 15,
    seed:     int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Cluster rows of `data` into k groups. Returns (labels, centroids)."""
    if k <= 0 or max_iter <= 0:
        raise ValueError("k and max_iter must be positive")

    points = np.asarray(data, dtype=float)
    if len(points) == 0:
        return np.zeros(0, dtype=np.int64), np.zeros((0, 0))

    centroids = _initial_centroids(points, k, seed)
    labels    = np.zeros(len(points), dtype=np.int64)

    for _ in range(max_iter):
        # assign: squared distance of every point to every centroid
        dists  = ((points[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
        labels = dists.argmin(axis=1)

        # update
        moved = centroids.copy()
        for c in range(k):
            members = points[labels == c]
            if len(members):
                moved[c] = members.mean(axis=0)
        if np.array_equal(moved, centroids):
            break
        centroids = moved

    return labels, centroids


def cluster_risk(centroids: np.ndarray, feature: int = 0) -> np.ndarray:
    """Lower centroid value on `feature` → higher cluster risk, scaled to [0, 1]."""
    if len(centroids) == 0:
        return np.zeros(0)
    raw  = 1.0 - np.asarray(centroids, dtype=float)[:, feature]
    lo, hi = raw.min(), raw.max()
    if hi == lo:
        return np.full(len(raw), 0.5)
    return (raw - lo) / (hi - lo)
