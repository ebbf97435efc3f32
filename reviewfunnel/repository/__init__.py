"""Repository layer: SQL per entity over a QueryGateway.

Keep functions thin and focused, so services/routes avoid SQL strings.
"""
from __future__ import annotations
