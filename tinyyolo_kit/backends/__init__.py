"""
Optional inference backends for tinyyolo_kit.

Backends are kept in a separate module so the post-processing core stays
lightweight and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
