"""The layer manager the deployment host drives.

The host calls :meth:`LayerManager.run_hook` with its lifecycle events:

- ``package:initialize``: install every layer's dependencies
- ``before:deploy:deploy``: export layers and upgrade layer references in the
  generated template
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from layerkit.core.bundler import Compiler
from layerkit.core.config import ConfigManager, LayerConfig, TimeoutsConfig
from layerkit.core.installer import InstallReport, InstallRunner, LayerInstaller, SubprocessRunner
from layerkit.core.logs import level_from_name, resolve_level_name, verbose
from layerkit.core.models import TransformedLayerResources
from layerkit.core.modules import ExternalModuleAnalyzer
from layerkit.core.service import Service
from layerkit.core.transform import transform_layer_resources

logger = logging.getLogger(__name__)

PACKAGE_INITIALIZE = "package:initialize"
BEFORE_DEPLOY = "before:deploy:deploy"


class LayerManager:
    """Owns configuration, log level, and the lifecycle hook table.

    Args:
        service: The service being packaged/deployed
        options: Host CLI options (``v``/``verbose`` raise the log level)
        environ: Environment for ``LOG_LEVEL`` and ``LAYERKIT_*`` overrides
        compiler: Bundler adapter override
        runner: Install command runner override
    """

    def __init__(
        self,
        service: Service,
        options: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        compiler: Optional[Compiler] = None,
        runner: Optional[InstallRunner] = None,
    ) -> None:
        self.service = service
        self.environ = environ
        self.level = resolve_level_name(options, environ)
        logging.getLogger("layerkit").setLevel(level_from_name(self.level))
        logger.debug("Invoking layerkit layer manager")

        self.config: Optional[LayerConfig] = None
        self.timeouts: Optional[TimeoutsConfig] = None
        self.init()

        self._compiler = compiler
        self._runner = runner
        self.hooks: Dict[str, Callable[[], Awaitable[Any]]] = {
            PACKAGE_INITIALIZE: self.install_layers,
            BEFORE_DEPLOY: self.transform_layer_resources,
        }

    def init(self) -> None:
        """Load and validate configuration for this service."""
        merged = ConfigManager(self.service.layer_config, environ=self.environ).load_config()
        self.config = LayerConfig(merged)
        self.timeouts = TimeoutsConfig(merged)
        verbose(logger, "Config: %s", self.config.as_dict())

    def installer(self) -> LayerInstaller:
        assert self.config is not None and self.timeouts is not None
        analyzer = ExternalModuleAnalyzer(
            self.service,
            self.config.webpack,
            compiler=self._compiler,
            build_timeout=self.timeouts.build_seconds,
        )
        return LayerInstaller(
            self.service,
            self.config,
            analyzer=analyzer,
            runner=self._runner or SubprocessRunner(timeout=self.timeouts.install_seconds),
        )

    async def install_layers(self) -> InstallReport:
        return await self.installer().install_layers()

    async def transform_layer_resources(self) -> TransformedLayerResources:
        template = self.service.compiled_template
        if self.config is None or template is None:
            logger.info("Unable to add layers currently as config or template unavailable")
            return TransformedLayerResources()
        return transform_layer_resources(
            template,
            self.service.layers.keys(),
            export_layers=self.config.export_layers,
            export_prefix=self.config.export_prefix,
            upgrade_layer_references=self.config.upgrade_layer_references,
        )

    async def run_hook(self, event: str) -> Any:
        """Run the handler bound to ``event``.

        Raises:
            KeyError: If no handler is bound to ``event``.
        """
        try:
            handler = self.hooks[event]
        except KeyError:
            raise KeyError(f"No layerkit hook bound to {event!r}") from None
        return await handler()


__all__ = ["LayerManager", "PACKAGE_INITIALIZE", "BEFORE_DEPLOY"]
