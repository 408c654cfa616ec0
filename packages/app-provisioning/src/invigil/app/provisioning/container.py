"""Composition root for the provisioning core.

Builds the identity directory, the per-kind profile stores, the
provisioning service and the bulk orchestrator once at process start from
explicit settings objects. Infrastructure packages are imported lazily so
that the ``memory`` backend needs neither Firebase nor MongoDB configured.

Usage:
    container = build_container()
    record = container.service.create("staff", payload)
    report = container.orchestrator.create_many("student", rows)
    container.close()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from invigil.domain.identity.bulk import BulkProvisioningOrchestrator
from invigil.domain.identity.provisioning import ProvisioningService
from invigil.domain.identity.records import UNIQUE_FIELDS
from invigil.foundation.domain.principal import PrincipalKind
from invigil.infra.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from invigil.app.provisioning.settings import ProvisioningSettings
    from invigil.foundation.domain.ports import IdentityDirectoryPort, ProfileStorePort
    from invigil.infra.firebase.settings import FirebaseSettings
    from invigil.infra.persistence.mongo_settings import MongoSettings

logger = get_logger(__name__)


@dataclass
class ProvisioningContainer:
    """Wired provisioning components.

    Attributes:
        settings: Settings the container was built from.
        directory: Identity directory adapter.
        stores: Profile store per principal kind.
        service: Single-principal provisioning service.
        orchestrator: Bulk orchestrator over the same service.
    """

    settings: ProvisioningSettings
    directory: IdentityDirectoryPort
    stores: dict[PrincipalKind, ProfileStorePort]
    service: ProvisioningService
    orchestrator: BulkProvisioningOrchestrator
    _closers: list[Callable[[], None]] = field(default_factory=list, repr=False)

    def close(self) -> None:
        """Release client connections. Safe to call multiple times."""
        while self._closers:
            self._closers.pop()()


def _memory_adapters() -> tuple[IdentityDirectoryPort, dict[PrincipalKind, ProfileStorePort]]:
    from invigil.domain.identity.infrastructure import (
        InMemoryIdentityDirectory,
        InMemoryProfileStore,
    )

    stores: dict[PrincipalKind, ProfileStorePort] = {
        kind: InMemoryProfileStore(UNIQUE_FIELDS[kind]) for kind in PrincipalKind
    }
    return InMemoryIdentityDirectory(), stores


def build_container(
    settings: ProvisioningSettings | None = None,
    *,
    firebase_settings: FirebaseSettings | None = None,
    mongo_settings: MongoSettings | None = None,
) -> ProvisioningContainer:
    """Build the provisioning components for the configured backend.

    Args:
        settings: Provisioning settings. If ``None``, loaded from environment.
        firebase_settings: Firebase settings for the ``live`` backend.
        mongo_settings: MongoDB settings for the ``live`` backend.

    Returns:
        ProvisioningContainer ready for use.

    Raises:
        ValueError: ``live`` backend without usable Firebase credentials.
    """
    if settings is None:
        from invigil.app.provisioning.settings import get_provisioning_settings

        settings = get_provisioning_settings()

    closers: list[Callable[[], None]] = []
    if settings.backend == "memory":
        directory, stores = _memory_adapters()
    else:
        from invigil.domain.identity.infrastructure.mongo_profile_store import MongoProfileStore
        from invigil.infra.firebase import (
            FirebaseIdentityDirectory,
            get_firebase_settings,
            initialize_firebase_app,
        )
        from invigil.infra.persistence import MongoManager, get_mongo_settings

        app = initialize_firebase_app(firebase_settings or get_firebase_settings())
        directory = FirebaseIdentityDirectory(app)

        manager = MongoManager(mongo_settings or get_mongo_settings())
        closers.append(manager.close)
        mongo_stores = {
            kind: MongoProfileStore(
                manager.get_collection(settings.collection_for(kind)),
                UNIQUE_FIELDS[kind],
            )
            for kind in PrincipalKind
        }
        if settings.ensure_indexes:
            for store in mongo_stores.values():
                store.ensure_indexes()
        stores = dict(mongo_stores)

    service = ProvisioningService(directory, stores)
    logger.info("provisioning_container_built", backend=settings.backend)
    return ProvisioningContainer(
        settings=settings,
        directory=directory,
        stores=stores,
        service=service,
        orchestrator=BulkProvisioningOrchestrator(service),
        _closers=closers,
    )
