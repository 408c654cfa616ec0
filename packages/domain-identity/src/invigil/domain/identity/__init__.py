"""Invigil Domain Identity -- paired identity + profile provisioning."""

from invigil.domain.identity.bulk import (
    BulkDeletionItem,
    BulkDeletionReport,
    BulkItemResult,
    BulkProvisioningOrchestrator,
    BulkProvisioningReport,
)
from invigil.domain.identity.inputs import (
    PrincipalInput,
    PrincipalPatch,
    StaffInput,
    StudentInput,
    UserInput,
    parse_kind,
    parse_principal_input,
    parse_principal_patch,
)
from invigil.domain.identity.outcomes import Outcome, capture
from invigil.domain.identity.provisioning import DeletionResult, ProvisioningService
from invigil.domain.identity.records import ProfileRecord

__all__ = [
    "BulkDeletionItem",
    "BulkDeletionReport",
    "BulkItemResult",
    "BulkProvisioningOrchestrator",
    "BulkProvisioningReport",
    "DeletionResult",
    "Outcome",
    "PrincipalInput",
    "PrincipalPatch",
    "ProfileRecord",
    "ProvisioningService",
    "StaffInput",
    "StudentInput",
    "UserInput",
    "capture",
    "parse_kind",
    "parse_principal_input",
    "parse_principal_patch",
]
