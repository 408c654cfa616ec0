"""Bulk provisioning orchestrator.

Applies the single-principal protocol to a list of inputs, strictly
sequentially, collecting one outcome per input. Creation is all-or-nothing
at the identity-directory level only: if any item fails, every identity
account created during the batch is deleted after the pass, including
those whose profiles were committed. Those profile rows are left in place
and must be reconciled out of band.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from invigil.domain.identity.inputs import parse_kind
from invigil.domain.identity.outcomes import Outcome
from invigil.foundation.domain.exceptions import DomainError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from invigil.domain.identity.provisioning import DeletionResult, ProvisioningService
    from invigil.foundation.domain.ports import IdentityAccount
    from invigil.foundation.domain.principal import PrincipalKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkItemResult:
    """Outcome of one input in a bulk create.

    Attributes:
        email: Email as supplied (empty when missing from the input).
        success: Whether the principal was provisioned.
        external_id: Identity key assigned to the item, if one was created.
        error: Failed outcome describing the error, None on success.
    """

    email: str
    success: bool
    external_id: str | None = None
    error: Outcome[Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"email": self.email, "success": self.success}
        if self.error is not None:
            data["error"] = self.error.message
            data["error_code"] = self.error.error_code
        return data


@dataclass
class BulkProvisioningReport:
    """Per-item results of a bulk create, in input order.

    Attributes:
        kind: Principal kind of the batch.
        results: One entry per input.
        compensated_external_ids: Identity accounts deleted by group
            compensation.
        warnings: Compensation problems (accounts that could not be removed).
    """

    kind: PrincipalKind
    results: list[BulkItemResult] = field(default_factory=list)
    compensated_external_ids: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.success

    @property
    def compensated(self) -> bool:
        return bool(self.compensated_external_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class BulkDeletionItem:
    """Outcome of one key in a bulk delete."""

    lookup_key: str
    success: bool
    result: DeletionResult | None = None
    error: Outcome[Any] | None = None


@dataclass
class BulkDeletionReport:
    """Per-key results of a bulk delete, in input order."""

    kind: PrincipalKind
    results: list[BulkDeletionItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def deleted(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.deleted

    @property
    def warnings(self) -> list[str]:
        return [w for r in self.results if r.result is not None for w in r.result.warnings]


def _input_email(data: Mapping[str, Any] | Any) -> str:
    raw = data.get("email") if isinstance(data, Mapping) else getattr(data, "email", None)
    return str(raw).strip().lower() if raw is not None else ""


class BulkProvisioningOrchestrator:
    """Runs provisioning operations over lists of principals.

    Args:
        service: Single-principal provisioning service.
    """

    def __init__(self, service: ProvisioningService) -> None:
        self._service = service

    def create_many(
        self,
        kind: PrincipalKind | str,
        inputs: Sequence[Mapping[str, Any] | Any],
    ) -> BulkProvisioningReport:
        """Provision every input, then compensate if any item failed.

        Args:
            kind: Principal kind shared by all inputs.
            inputs: Raw payloads (or parsed input models), one per principal.

        Returns:
            BulkProvisioningReport with results in input order.

        Raises:
            ValidationError: Unknown kind or empty input list.
        """
        kind = parse_kind(kind)
        if not inputs:
            raise ValidationError("inputs", "At least one principal must be provided")

        report = BulkProvisioningReport(kind=kind)
        created: list[IdentityAccount] = []

        logger.info("bulk_create_started", extra={"principal_kind": str(kind), "total": len(inputs)})

        for data in inputs:
            email = _input_email(data)
            created_before = len(created)
            try:
                record = self._service.create(kind, data, on_identity_created=created.append)
            except Exception as exc:
                if not isinstance(exc, DomainError):
                    logger.exception("bulk_create_item_crashed", extra={"email": email})
                item_accounts = created[created_before:]
                report.results.append(
                    BulkItemResult(
                        email=email,
                        success=False,
                        external_id=item_accounts[0].external_id if item_accounts else None,
                        error=Outcome.from_exception(exc),
                    )
                )
                logger.info("bulk_create_item_failed", extra={"email": email, "error": str(exc)})
            else:
                report.results.append(
                    BulkItemResult(email=record.email, success=True, external_id=record.external_id)
                )

        if report.failed:
            self._compensate(report, created)

        logger.info(
            "bulk_create_completed",
            extra={
                "principal_kind": str(kind),
                "total": report.total,
                "success": report.success,
                "failed": report.failed,
                "compensated": len(report.compensated_external_ids),
            },
        )
        return report

    def _compensate(self, report: BulkProvisioningReport, created: list[IdentityAccount]) -> None:
        """Delete every identity account created during the batch."""
        directory = self._service.directory
        for account in created:
            try:
                directory.delete_account(account.external_id)
            except NotFoundError:
                # Already removed by the item's own compensation.
                report.compensated_external_ids.append(account.external_id)
            except Exception as exc:
                report.warnings.append(
                    f"Failed to delete identity account {account.external_id} "
                    f"({account.email}) during batch rollback: {exc}"
                )
                logger.exception(
                    "bulk_compensation_delete_failed",
                    extra={"external_id": account.external_id},
                )
            else:
                report.compensated_external_ids.append(account.external_id)

        logger.warning(
            "bulk_create_identities_rolled_back",
            extra={
                "principal_kind": str(report.kind),
                "count": len(report.compensated_external_ids),
                "profiles_left": report.success,
            },
        )

    def delete_many(
        self,
        kind: PrincipalKind | str,
        lookup_keys: Sequence[str],
    ) -> BulkDeletionReport:
        """Delete each principal independently; failures never stop the loop.

        Raises:
            ValidationError: Unknown kind or empty key list.
        """
        kind = parse_kind(kind)
        if not lookup_keys:
            raise ValidationError("lookup_keys", "At least one lookup key must be provided")

        report = BulkDeletionReport(kind=kind)
        for key in lookup_keys:
            try:
                result = self._service.delete(kind, key)
            except Exception as exc:
                logger.warning("bulk_delete_item_failed", extra={"lookup_key": str(key), "error": str(exc)})
                report.results.append(
                    BulkDeletionItem(lookup_key=str(key), success=False, error=Outcome.from_exception(exc))
                )
            else:
                report.results.append(BulkDeletionItem(lookup_key=str(key), success=True, result=result))

        logger.info(
            "bulk_delete_completed",
            extra={"principal_kind": str(kind), "total": report.total, "deleted": report.deleted},
        )
        return report
