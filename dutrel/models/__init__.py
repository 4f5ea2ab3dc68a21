from dutrel.models.base import Base, BaseModel
from dutrel.models.user import User
from dutrel.models.household import Household, HouseholdMember, HouseholdRole
from dutrel.models.bucket import (
    Bucket,
    BucketMember,
    BucketResponsibility,
    BucketType,
    BucketCadence,
    BucketVariability,
    FundingMode,
    CreditReportingStatus,
    CreditReportingProvider,
    ResponsibilityRole,
)
from dutrel.models.obligation import Obligation, ObligationStatus, ReportingState
from dutrel.models.receipt import Receipt, ReceiptStatus
from dutrel.models.attachment import BucketAttachment, AttachmentKind, AttachmentType
from dutrel.models.identity import UserIdentity, IdentityStatus, VerificationMethod
from dutrel.models.credit import (
    CreditReportBatch,
    CreditReportItem,
    CreditReportBatchStatus,
    CreditReportItemStatus,
)
from dutrel.models.action_log import ActionLog

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # User
    "User",
    "UserIdentity",
    "IdentityStatus",
    "VerificationMethod",
    # Household
    "Household",
    "HouseholdMember",
    "HouseholdRole",
    # Bucket
    "Bucket",
    "BucketMember",
    "BucketResponsibility",
    "BucketType",
    "BucketCadence",
    "BucketVariability",
    "FundingMode",
    "CreditReportingStatus",
    "CreditReportingProvider",
    "ResponsibilityRole",
    "BucketAttachment",
    "AttachmentKind",
    "AttachmentType",
    # Obligation
    "Obligation",
    "ObligationStatus",
    "ReportingState",
    "Receipt",
    "ReceiptStatus",
    # Credit reporting
    "CreditReportBatch",
    "CreditReportItem",
    "CreditReportBatchStatus",
    "CreditReportItemStatus",
    # Audit
    "ActionLog",
]
