"""Lazy-loading front end and the module-level entry points.

The engine is either unloaded or loaded. The first resolution (or an explicit
``ensure_loaded``) reads the config file once, merges the overrides given to
``setup`` and keeps the result for the rest of the process. Resolution never
raises: any unexpected failure is logged and answered with the fallback icon.
"""

import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from loguru import logger

from .config_loader import load_configuration
from .models import DEFAULT_FALLBACK_ICON, ColorHint, ResolvedConfiguration, TabObservation
from .resolver import IconResolver, Resolution

Loader = Callable[[Path | None, Mapping[str, Any] | None], ResolvedConfiguration]


def _default_loader(config_path, overrides):
    return load_configuration(config_path=config_path, overrides=overrides)


class TabIconEngine:
    """Holds the one resolved configuration of a process."""

    def __init__(
        self,
        config_path: Path | None = None,
        overrides: Mapping[str, Any] | None = None,
        loader: Loader = _default_loader,
    ):
        self._config_path = config_path
        self._overrides = overrides
        self._loader = loader
        self._lock = threading.Lock()
        self._resolver: IconResolver | None = None

    @property
    def is_loaded(self) -> bool:
        return self._resolver is not None

    def setup(self, overrides: Mapping[str, Any] | None = None, config_path: Path | None = None) -> bool:
        """Record overrides (and optionally a config path) before first use.

        Returns ``False`` when the configuration is already loaded; the call
        is then ignored, use ``reload`` to rebuild.
        """
        with self._lock:
            if self._resolver is not None:
                logger.warning(
                    "Setup after configuration load ignored",
                    operation="setup",
                    status="ignored"
                )
                return False
            if overrides is not None:
                self._overrides = overrides
            if config_path is not None:
                self._config_path = config_path
            return True

    def _build(self) -> IconResolver:
        return IconResolver(self._loader(self._config_path, self._overrides))

    def ensure_loaded(self) -> IconResolver:
        resolver = self._resolver
        if resolver is not None:
            return resolver
        with self._lock:
            if self._resolver is None:
                self._resolver = self._build()
                logger.debug(
                    "Configuration loaded",
                    operation="ensure_loaded",
                    status="loaded",
                    metrics=self._resolver.config.summary()
                )
            return self._resolver

    def reload(self) -> ResolvedConfiguration:
        """Build a fresh configuration and swap it in."""
        resolver = self._build()
        with self._lock:
            self._resolver = resolver
        logger.info(
            "Configuration reloaded",
            operation="reload",
            status="success",
            metrics=resolver.config.summary()
        )
        return resolver.config

    @property
    def config(self) -> ResolvedConfiguration:
        return self.ensure_loaded().config

    # =========================================================================
    # Resolution
    # =========================================================================

    def _safe_fallback(self) -> str:
        resolver = self._resolver
        return resolver.config.fallback_icon if resolver is not None else DEFAULT_FALLBACK_ICON

    def explain(self, observation: TabObservation | None) -> Resolution:
        if observation is None:
            return Resolution(icon=self.get_fallback_icon())
        try:
            return self.ensure_loaded().explain(observation)
        except Exception:
            logger.exception(
                "Tab resolution failed, using fallback icon",
                operation="explain",
                status="fallback"
            )
            return Resolution(icon=self._safe_fallback())

    def icon_and_colors_for_tab(self, observation: TabObservation | None) -> tuple[str, ColorHint]:
        resolution = self.explain(observation)
        return resolution.icon, resolution.colors

    def icon_for_title(self, title: str | None) -> str:
        try:
            return self.ensure_loaded().icon_for_title(title)
        except Exception:
            logger.exception(
                "Title lookup failed, using fallback icon",
                operation="icon_for_title",
                status="fallback"
            )
            return self._safe_fallback()

    def get_fallback_icon(self) -> str:
        try:
            return self.ensure_loaded().config.fallback_icon
        except Exception:
            logger.exception(
                "Configuration load failed",
                operation="get_fallback_icon",
                status="fallback"
            )
            return DEFAULT_FALLBACK_ICON

    def get_global_icon_color(self) -> str | None:
        try:
            return self.ensure_loaded().config.icon_color
        except Exception:
            logger.exception(
                "Configuration load failed",
                operation="get_global_icon_color",
                status="fallback"
            )
            return None


# =============================================================================
# Process-Wide Default Engine
# =============================================================================

default_engine = TabIconEngine()


def setup(overrides: Mapping[str, Any] | None = None, config_path: Path | None = None) -> bool:
    return default_engine.setup(overrides, config_path)


def icon_and_colors_for_tab(observation: TabObservation | None) -> tuple[str, ColorHint]:
    return default_engine.icon_and_colors_for_tab(observation)


def icon_for_title(title: str | None) -> str:
    return default_engine.icon_for_title(title)


def get_fallback_icon() -> str:
    return default_engine.get_fallback_icon()


def get_global_icon_color() -> str | None:
    return default_engine.get_global_icon_color()
