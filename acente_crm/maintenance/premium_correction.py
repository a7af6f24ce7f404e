"""Repair of gross premiums stored ten times too large.

Older spreadsheet imports rendered numeric cells to text and applied the
Turkish decimal rule, so 9394.4 was stored as 93944. The current parser
reads native numbers directly; this module cleans up rows already stored.

The heuristic is approximate and can misfire on legitimately large
policies, so the corrector:

- runs as a dry run unless asked to apply,
- logs every change with its old and new value,
- only divides when the result lands close to the net premium, which also
  makes a second run a no-op.
"""

import enum
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from acente_crm.config import Settings
from acente_crm.db.models import Customer
from acente_crm.profiles.service import ProfileService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# (gross column, net column) pairs checked on every policy row
PREMIUM_PAIRS: tuple[tuple[str, str], ...] = (
    ("brut", "net"),
    ("eski_police_brut_prim", "eski_police_net_prim"),
    ("yeni_police_brut_prim", "yeni_police_net_prim"),
)


class CorrectionAction(str, enum.Enum):
    """Outcome of evaluating one gross/net pair."""

    OK = "ok"
    CORRECT = "correct"  # Inflated, and gross / divisor is plausible
    IMPLAUSIBLE = "implausible"  # Ratio too high, but dividing does not fit the net premium
    REPORT_ONLY = "report_only"  # No net premium to compare with, gross above absolute limit


@dataclass(frozen=True)
class CorrectionThresholds:
    """Tuning of the inflation heuristic.

    Attributes:
        ratio: Gross/net ratio above which a premium is suspicious.
        absolute: Gross premium above which a row without net premium is reported.
        divisor: Inflation factor to remove.
        lower_bound: Corrected gross must be at least this multiple of net.
        upper_bound: Corrected gross must be at most this multiple of net.
    """

    ratio: Decimal = Decimal("5")
    absolute: Decimal = Decimal("10000")
    divisor: int = 10
    lower_bound: Decimal = Decimal("0.8")
    upper_bound: Decimal = Decimal("1.5")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CorrectionThresholds":
        """Build thresholds from application settings."""
        return cls(
            ratio=Decimal(str(settings.correction_ratio_threshold)),
            absolute=Decimal(str(settings.correction_absolute_threshold)),
            divisor=settings.correction_divisor,
        )


@dataclass(frozen=True)
class CorrectionDecision:
    """Evaluation result for one gross/net pair."""

    action: CorrectionAction
    reason: str = ""
    corrected: Decimal | None = None


def evaluate_premium(
    gross: Decimal | None,
    net: Decimal | None,
    thresholds: CorrectionThresholds = CorrectionThresholds(),
) -> CorrectionDecision:
    """Decide whether a gross premium looks inflated.

    With a positive net premium the pair is suspicious when gross/net
    exceeds ``thresholds.ratio``; it is corrected only if gross divided by
    ``thresholds.divisor`` falls within ``[lower_bound, upper_bound]`` times
    net. Without a net premium a gross above ``thresholds.absolute`` is
    reported but never corrected.

    Args:
        gross: Stored gross premium.
        net: Stored net premium.
        thresholds: Heuristic tuning.

    Returns:
        CorrectionDecision: Action, reason and corrected value.
    """
    if gross is None or gross <= 0:
        return CorrectionDecision(CorrectionAction.OK)

    if net is not None and net > 0:
        ratio = gross / net
        if ratio <= thresholds.ratio:
            return CorrectionDecision(CorrectionAction.OK)

        candidate = (gross / thresholds.divisor).quantize(CENTS, rounding=ROUND_HALF_UP)
        low = net * thresholds.lower_bound
        high = net * thresholds.upper_bound
        if low <= candidate <= high:
            return CorrectionDecision(
                CorrectionAction.CORRECT,
                reason=f"gross/net ratio {ratio:.2f}",
                corrected=candidate,
            )
        return CorrectionDecision(
            CorrectionAction.IMPLAUSIBLE,
            reason=(
                f"gross/net ratio {ratio:.2f}, but {candidate} is outside "
                f"[{low:.2f}, {high:.2f}]"
            ),
        )

    if gross > thresholds.absolute:
        return CorrectionDecision(
            CorrectionAction.REPORT_ONLY,
            reason=f"no net premium, gross above {thresholds.absolute}",
        )
    return CorrectionDecision(CorrectionAction.OK)


class PremiumChange(BaseModel):
    """One audited gross premium change or finding."""

    customer_id: str
    hesap_kodu: str | None = None
    police_numarasi: str | None = None
    column: str
    old_value: Decimal
    new_value: Decimal | None = None
    net_value: Decimal | None = None
    action: CorrectionAction
    reason: str = ""


class CorrectionReport(BaseModel):
    """Result of one correction run."""

    dry_run: bool = True
    scanned: int = 0
    suspicious: int = 0
    corrected: int = 0
    skipped: int = 0
    profiles_synced: int = 0
    changes: list[PremiumChange] = Field(default_factory=list)
    findings: list[PremiumChange] = Field(default_factory=list)


class PremiumCorrector:
    """Scans stored policy rows and repairs inflated gross premiums."""

    def __init__(
        self,
        db: Session,
        thresholds: CorrectionThresholds | None = None,
        pairs: tuple[tuple[str, str], ...] = PREMIUM_PAIRS,
    ):
        """Initialize the corrector.

        Args:
            db: Database session.
            thresholds: Heuristic tuning.
            pairs: (gross column, net column) pairs to check.
        """
        self.db = db
        self.thresholds = thresholds or CorrectionThresholds()
        self.pairs = pairs

    def run(self, dry_run: bool = True) -> CorrectionReport:
        """Scan every policy row and correct inflated gross premiums.

        Args:
            dry_run: Only report; nothing is written.

        Returns:
            CorrectionReport: Audit trail of changes and skipped findings.
        """
        report = CorrectionReport(dry_run=dry_run)
        prefix = "[DRY RUN] " if dry_run else ""
        accounts: set[str] = set()

        for customer in self.db.query(Customer).order_by(Customer.id).all():
            report.scanned += 1
            for gross_column, net_column in self.pairs:
                gross = getattr(customer, gross_column)
                net = getattr(customer, net_column)
                decision = evaluate_premium(gross, net, self.thresholds)
                if decision.action == CorrectionAction.OK:
                    continue

                report.suspicious += 1
                entry = PremiumChange(
                    customer_id=customer.id,
                    hesap_kodu=customer.hesap_kodu,
                    police_numarasi=customer.police_numarasi,
                    column=gross_column,
                    old_value=gross,
                    new_value=decision.corrected,
                    net_value=net,
                    action=decision.action,
                    reason=decision.reason,
                )

                if decision.action != CorrectionAction.CORRECT:
                    report.skipped += 1
                    report.findings.append(entry)
                    logger.warning(
                        f"{prefix}Skipping policy {customer.police_numarasi or customer.id} "
                        f"{gross_column}={gross}: {decision.reason}"
                    )
                    continue

                report.corrected += 1
                report.changes.append(entry)
                logger.info(
                    f"{prefix}Policy {customer.police_numarasi or customer.id} "
                    f"{gross_column}: {gross} -> {decision.corrected} "
                    f"(net {net}, {decision.reason})"
                )
                if not dry_run:
                    setattr(customer, gross_column, decision.corrected)
                    if customer.hesap_kodu:
                        accounts.add(customer.hesap_kodu)

        if dry_run:
            self.db.rollback()
        else:
            self.db.commit()
            if accounts:
                sync = ProfileService(self.db).sync(accounts)
                report.profiles_synced = sync.created + sync.updated

        logger.info(
            f"{prefix}Premium correction: scanned {report.scanned}, "
            f"suspicious {report.suspicious}, corrected {report.corrected}, "
            f"skipped {report.skipped}"
        )
        return report
