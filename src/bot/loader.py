"""
Dynamic Cog Loader

Purpose
-------
Discover and load every `cog.py` under `src/modules/` with timing, validation
and a loading summary.

Responsibilities
----------------
- Discover `src.modules.<module>.cog` extensions
- Validate each module exposes `setup()` before loading
- Load with timeout protection and per-cog timing
- Log a summary and actionable suggestions on failure

Non-Responsibilities
--------------------
- Cog implementation (handled by modules)
- Error handling inside commands (handled by BaseCog and the bot)
"""

from __future__ import annotations

import asyncio
import importlib
import pkgutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from discord.ext import commands

from src.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LoadResult:
    """Result of loading a single cog."""

    name: str
    success: bool
    duration_ms: float
    error: Optional[Exception] = None
    error_type: Optional[str] = None


class CogLoader:
    """
    Discovers `cog.py` modules one level below `src/modules/`.

    Modules load one after another so their command groups register in a
    stable order.
    """

    BASE_PATH: Path = Path(__file__).parent.parent / "modules"
    BASE_PACKAGE: str = "src.modules"
    COG_MODULE: str = "cog"

    def __init__(self, bot: commands.Bot, load_timeout_seconds: float = 30.0) -> None:
        self.bot = bot
        self.load_results: List[LoadResult] = []
        self.load_timeout_seconds = load_timeout_seconds

    async def load_all(self) -> Dict[str, Any]:
        start_time = time.perf_counter()
        cog_names = self.discover()

        if not cog_names:
            logger.warning("No cog modules discovered", extra={"base_path": str(self.BASE_PATH)})
            return self._build_stats(start_time)

        logger.info("Discovered cogs", extra={"count": len(cog_names), "cogs": cog_names})
        self.load_results = [await self._load_cog_with_timeout(name) for name in cog_names]

        stats = self._build_stats(start_time)
        self._log_summary(stats)
        return stats

    def discover(self) -> List[str]:
        cog_names: List[str] = []
        for module in pkgutil.iter_modules([str(self.BASE_PATH)]):
            if not module.ispkg:
                continue
            if (self.BASE_PATH / module.name / f"{self.COG_MODULE}.py").exists():
                cog_names.append(f"{self.BASE_PACKAGE}.{module.name}.{self.COG_MODULE}")
        return sorted(cog_names)

    async def _load_cog_with_timeout(self, extension_name: str) -> LoadResult:
        start_time = time.perf_counter()

        validation_error = self._validate_cog(extension_name)
        if validation_error:
            logger.error(
                "Cog validation failed",
                extra={
                    "cog_name": extension_name,
                    "error": str(validation_error),
                    "error_type": type(validation_error).__name__,
                },
            )
            return LoadResult(extension_name, False, 0.0, validation_error, "ValidationError")

        try:
            await asyncio.wait_for(
                self.bot.load_extension(extension_name),
                timeout=self.load_timeout_seconds,
            )
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Cog load timeout",
                extra={"cog_name": extension_name, "timeout_seconds": self.load_timeout_seconds},
            )
            return LoadResult(
                extension_name,
                False,
                duration_ms,
                TimeoutError(f"Cog loading exceeded {self.load_timeout_seconds}s timeout"),
                "TimeoutError",
            )
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Failed to load cog",
                extra={
                    "cog_name": extension_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "suggestion": self._get_error_suggestion(exc),
                },
                exc_info=True,
            )
            return LoadResult(extension_name, False, duration_ms, exc, type(exc).__name__)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Cog loaded successfully",
            extra={"cog_name": extension_name, "duration_ms": round(duration_ms, 2)},
        )
        return LoadResult(extension_name, True, duration_ms)

    def _validate_cog(self, extension_name: str) -> Optional[Exception]:
        try:
            module = importlib.import_module(extension_name)
        except ImportError as exc:
            return ImportError(f"Cannot import module: {exc}")

        if not callable(getattr(module, "setup", None)):
            return ValueError(
                "Missing required setup() function. "
                "Expected: async def setup(bot): await bot.add_cog(YourCog(bot))"
            )
        return None

    def _get_error_suggestion(self, error: Exception) -> str:
        suggestions = {
            "ImportError": "Check that all dependencies are installed and module paths are correct.",
            "AttributeError": "Verify all required attributes/methods exist in the cog.",
            "CommandRegistrationError": "Two cogs define the same command name.",
            "TypeError": "Verify function signatures and type usage.",
        }
        return suggestions.get(type(error).__name__, "Check cog implementation and logs for details.")

    def _build_stats(self, start_time: float) -> Dict[str, Any]:
        successful = [r for r in self.load_results if r.success]
        failed = [r for r in self.load_results if not r.success]
        return {
            "total_time_ms": (time.perf_counter() - start_time) * 1000,
            "discovered": len(self.load_results),
            "loaded": len(successful),
            "failed": len(failed),
            "failed_cogs": [r.name for r in failed],
        }

    def _log_summary(self, stats: Dict[str, Any]) -> None:
        logger.info("=" * 60)
        logger.info("COG LOADING SUMMARY")
        logger.info("=" * 60)
        logger.info("Total Time:     %.0fms", stats["total_time_ms"])
        logger.info("Discovered:     %d cogs", stats["discovered"])
        logger.info("Loaded:         %d cogs", stats["loaded"])
        logger.info("Failed:         %d cogs", stats["failed"])
        for name in stats["failed_cogs"]:
            logger.warning("  • %s", name)
        logger.info("=" * 60)


async def load_all_cogs(bot: commands.Bot) -> Dict[str, Any]:
    return await CogLoader(bot).load_all()
