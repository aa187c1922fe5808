"""
Service wiring.

Builds the privacy core services once at process start and passes them
around explicitly. There are no module-level service instances.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from privacy_core.config.privacy_config import (
    HashComparisonConfig,
    DeduplicationConfig,
    AuditConfig,
    RetentionConfig,
    get_hash_comparison_config,
    get_deduplication_config,
    get_audit_config,
    get_retention_config
)
from privacy_core.compliance.audit_log import AuditLog
from privacy_core.compliance.background_tasks import PrivacyBackgroundTaskManager
from privacy_core.compliance.retention_manager import RetentionManager, utc_now
from privacy_core.database.database import create_db_engine, create_session_factory, init_db
from privacy_core.dedup.deduplication_cache import DeduplicationCache
from privacy_core.dedup.fingerprint import FingerprintEngine
from privacy_core.security.hash_comparison import SecureComparator
from privacy_core.security.hash_validation import HashValidator
from privacy_core.storage.retention_store import (
    RetentionStore,
    InMemoryRetentionStore,
    SQLAlchemyRetentionStore
)

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@dataclass
class PrivacyServices:
    """Container for the privacy core service instances."""
    validator: HashValidator
    comparator: SecureComparator
    fingerprint_engine: FingerprintEngine
    dedup_cache: DeduplicationCache
    audit_log: AuditLog
    retention_manager: RetentionManager
    background_tasks: PrivacyBackgroundTaskManager


def create_retention_store(config: RetentionConfig) -> RetentionStore:
    """Create the retention store selected by configuration."""
    if config.store_backend == "database":
        engine = create_db_engine(config.database_url)
        init_db(engine)
        logger.info("Using database retention store")
        return SQLAlchemyRetentionStore(create_session_factory(config.database_url, engine=engine))

    logger.info("Using in-memory retention store")
    return InMemoryRetentionStore()


def build_services(
    hash_config: Optional[HashComparisonConfig] = None,
    dedup_config: Optional[DeduplicationConfig] = None,
    audit_config: Optional[AuditConfig] = None,
    retention_config: Optional[RetentionConfig] = None,
    store: Optional[RetentionStore] = None,
    clock: Callable[[], datetime] = utc_now
) -> PrivacyServices:
    """
    Build all privacy core services.

    Args:
        hash_config: Hash comparison settings
        dedup_config: Deduplication settings
        audit_config: Audit log settings
        retention_config: Retention settings
        store: Retention store; created from retention_config when omitted
        clock: Shared time source

    Returns:
        Wired service container
    """
    hash_config = hash_config or get_hash_comparison_config()
    dedup_config = dedup_config or get_deduplication_config()
    audit_config = audit_config or get_audit_config()
    retention_config = retention_config or get_retention_config()

    validator = HashValidator()
    comparator = SecureComparator(config=hash_config, validator=validator)
    engine = FingerprintEngine()
    dedup_cache = DeduplicationCache(
        config=dedup_config,
        engine=engine,
        comparator=comparator,
        clock=clock
    )
    audit_log = AuditLog(config=audit_config, clock=clock)
    retention_manager = RetentionManager(
        store=store or create_retention_store(retention_config),
        config=retention_config,
        clock=clock
    )
    background_tasks = PrivacyBackgroundTaskManager(dedup_cache, retention_manager, audit_log=audit_log)

    return PrivacyServices(
        validator=validator,
        comparator=comparator,
        fingerprint_engine=engine,
        dedup_cache=dedup_cache,
        audit_log=audit_log,
        retention_manager=retention_manager,
        background_tasks=background_tasks
    )


@asynccontextmanager
async def privacy_services(**kwargs):
    """
    Build services and run their background tasks for the lifetime of the context.

    Usage:
        async with privacy_services() as services:
            await services.dedup_cache.check_duplication(fingerprint)
    """
    services = build_services(**kwargs)

    logger.info("Starting privacy core services...")
    try:
        await services.background_tasks.start()
        logger.info("Background tasks started successfully")
    except Exception as e:
        logger.error(f"Failed to start background tasks: {e}")

    try:
        yield services
    finally:
        logger.info("Shutting down privacy core services...")
        if services.background_tasks.running:
            try:
                await services.background_tasks.stop()
                logger.info("Background tasks stopped successfully")
            except Exception as e:
                logger.error(f"Error stopping background tasks: {e}")
