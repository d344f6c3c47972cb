"""Memory-based user-user collaborative filtering over a sparse rating matrix.

Core idea:
- Score every pair of users (pearson / cosine / euclidean) on co-rated items
- Keep a small neighborhood of the most similar users for each user
- Fill each unrated cell from the neighbors' ratings, users and items with the
  fewest missing ratings first
"""
from __future__ import annotations
