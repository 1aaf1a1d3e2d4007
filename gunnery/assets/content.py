"""Asset loading entry point."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from gunnery.combat.cannons import CannonDatabase, MunitionDatabase

ASSET_ROOT = Path(__file__).resolve().parent


class ContentManager:
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root or ASSET_ROOT
        self.munitions = MunitionDatabase()
        self.cannons = CannonDatabase(self.munitions)

    def load(self) -> None:
        self.munitions.load_directory(self.root / "data" / "munitions")
        self.cannons.load_directory(self.root / "data" / "cannons")


__all__ = ["ContentManager", "ASSET_ROOT"]
