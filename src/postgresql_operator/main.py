"""Main entry point for the PostgreSQL Operator.

Run with ``kopf run -m postgresql_operator.main`` or the ``postgresql-operator``
console script.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401  (registers kopf handlers)
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .credentials import create_credential_strategy
from .handlers.database import get_handler
from .reconciler import Reconciler
from .store import KubernetesObjectStore, load_kubernetes_config
from .tracing import initialize_tracing
from .utils.rate_limit import configure_rate_limit


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    config = OperatorConfig.from_env()

    structured_logging.setup_structured_logging(config.log_level)
    logger = logging.getLogger(__name__)
    logger.info(
        f"Operator configured: resync every {config.resync_interval_seconds}s, "
        f"requeue delay {config.requeue_delay_seconds}s, "
        f"error backoff {config.error_backoff_seconds}s, "
        f"{config.event_max_passes} passes per child event, "
        f"{config.credentials_strategy} credentials"
    )

    if config.tracing_enabled:
        initialize_tracing()

    # Status is owned by the reconciler; keep kopf's bookkeeping in annotations
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    configure_rate_limit(config.rate_limit_per_second)
    load_kubernetes_config()

    if config.credentials_strategy == "static":
        logger.warning(
            "Using static database credentials; set CREDENTIALS_STRATEGY=derived "
            "and CREDENTIALS_SEED for per-Database passwords"
        )
    credentials = create_credential_strategy(config.credentials_strategy, config.credentials_seed)

    get_handler().configure(Reconciler(KubernetesObjectStore(), credentials), config)

    health.start_metrics_server(config.metrics_port)
    health.mark_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    health.mark_not_ready()


def main() -> None:
    """Run the operator in all namespaces."""
    kopf.run(clusterwide=True)
