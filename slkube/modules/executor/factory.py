"""
Executor Factory following Black Box Design principles.

This factory:
- Selects the execution strategy once, from configuration
- Wires dependencies together
- Returns only the executor interface (hiding implementation)
"""

import logging
import time
from typing import Callable

from slkube.config.provider import MODE_KUBERNETES, MODE_LOCAL, ConfigProvider
from slkube.errors import ConfigurationError
from slkube.modules.dispatcher import JobDispatcher
from slkube.modules.kubectl import KubectlClient

from .interfaces import CommandExecutor
from .kubernetes import KubernetesJobExecutor
from .local import LocalExecutor

logger = logging.getLogger("slkube.executor")


class ExecutorFactory:
    """
    Factory for building the execution strategy.

    The strategy is chosen from SL_DISPATCH_MODE, never inferred by probing
    the filesystem for launcher scripts.
    """

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CommandExecutor:
        """
        Build the configured executor.

        Args:
            config_provider: Configuration provider
            sleep: Blocking wait used by the Job dispatcher's polling loops

        Returns:
            CommandExecutor implementation

        Raises:
            ConfigurationError: On an unknown mode, or when kubectl or the
                ServiceAccount credentials are unavailable in kubernetes mode
        """
        dispatch_config = config_provider.get_dispatch_config()
        environ = config_provider.get_environ()

        if dispatch_config.mode == MODE_LOCAL:
            logger.info("Building local executor")
            return LocalExecutor(
                command=dispatch_config.local_command,
                environ=environ,
                env_prefix=dispatch_config.env_prefix,
            )

        if dispatch_config.mode == MODE_KUBERNETES:
            logger.info(f"Building Kubernetes Job executor (namespace: {dispatch_config.namespace})")
            kubectl = KubectlClient.from_config(
                config_provider.get_cluster_config(), dispatch_config.namespace
            )
            dispatcher = JobDispatcher(
                kubectl=kubectl,
                dispatch_config=dispatch_config,
                polling=config_provider.get_polling_config(),
                environ=environ,
                sleep=sleep,
            )
            return KubernetesJobExecutor(dispatcher)

        raise ConfigurationError(
            f"Unknown SL_DISPATCH_MODE '{dispatch_config.mode}' "
            f"(expected '{MODE_KUBERNETES}' or '{MODE_LOCAL}')"
        )
