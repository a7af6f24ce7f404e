"""Tests for the inflated premium repair."""

import logging
from decimal import Decimal

from acente_crm.config import Settings
from acente_crm.db.models import Customer, CustomerProfile
from acente_crm.maintenance.premium_correction import (
    CorrectionAction,
    CorrectionThresholds,
    PremiumCorrector,
    evaluate_premium,
)


class TestEvaluatePremium:
    """Tests for the inflation heuristic."""

    def test_inflated_gross_corrected(self):
        """Test a gross ten times too large is divided back."""
        decision = evaluate_premium(Decimal("123400"), Decimal("12000"))
        assert decision.action == CorrectionAction.CORRECT
        assert decision.corrected == Decimal("12340.00")

    def test_plausible_pair_untouched(self):
        """Test a normal gross/net pair is left alone."""
        decision = evaluate_premium(Decimal("4000"), Decimal("3800"))
        assert decision.action == CorrectionAction.OK
        assert decision.corrected is None

    def test_implausible_correction_reported(self):
        """Test a high ratio that dividing cannot explain is only reported."""
        decision = evaluate_premium(Decimal("100000"), Decimal("1000"))
        assert decision.action == CorrectionAction.IMPLAUSIBLE
        assert decision.corrected is None

    def test_missing_net_reported_only(self):
        """Test a large gross without net premium is never corrected."""
        decision = evaluate_premium(Decimal("50000"), None)
        assert decision.action == CorrectionAction.REPORT_ONLY
        assert evaluate_premium(Decimal("5000"), None).action == CorrectionAction.OK

    def test_blank_gross(self):
        """Test missing or zero gross premiums are ignored."""
        assert evaluate_premium(None, Decimal("100")).action == CorrectionAction.OK
        assert evaluate_premium(Decimal("0"), Decimal("100")).action == CorrectionAction.OK

    def test_thresholds_from_settings(self):
        """Test thresholds follow the configured values."""
        thresholds = CorrectionThresholds.from_settings(
            Settings(correction_ratio_threshold=20.0, correction_absolute_threshold=500.0)
        )
        assert thresholds.ratio == Decimal("20.0")
        assert evaluate_premium(Decimal("123400"), Decimal("12000"), thresholds).action == (
            CorrectionAction.OK
        )
        assert evaluate_premium(Decimal("600"), None, thresholds).action == (
            CorrectionAction.REPORT_ONLY
        )


class TestPremiumCorrector:
    """Tests for the stored-row repair run."""

    def test_dry_run_changes_nothing(self, db, make_customer):
        """Test a dry run reports without writing."""
        customer = make_customer(brut=Decimal("123400.00"), net=Decimal("12000.00"))

        report = PremiumCorrector(db).run(dry_run=True)

        assert report.dry_run
        assert report.corrected == 1
        assert report.changes[0].new_value == Decimal("12340.00")
        db.refresh(customer)
        assert customer.brut == Decimal("123400.00")

    def test_apply_corrects_and_logs(self, db, make_customer, caplog):
        """Test applied corrections are written and logged with both values."""
        inflated = make_customer(
            police_numarasi="P-INFL", brut=Decimal("123400.00"), net=Decimal("12000.00")
        )
        normal = make_customer(brut=Decimal("4000.00"), net=Decimal("3800.00"))

        with caplog.at_level(logging.INFO, logger="acente_crm.maintenance.premium_correction"):
            report = PremiumCorrector(db).run(dry_run=False)

        assert report.scanned == 2
        assert report.corrected == 1
        db.refresh(inflated)
        db.refresh(normal)
        assert inflated.brut == Decimal("12340.00")
        assert normal.brut == Decimal("4000.00")
        assert "P-INFL brut: 123400.00 -> 12340.00" in caplog.text

    def test_second_run_is_noop(self, db, make_customer):
        """Test running the repair twice changes nothing the second time."""
        make_customer(brut=Decimal("123400.00"), net=Decimal("12000.00"))
        corrector = PremiumCorrector(db)

        assert corrector.run(dry_run=False).corrected == 1
        second = corrector.run(dry_run=False)

        assert second.corrected == 0
        assert second.suspicious == 0

    def test_renewal_premiums_checked(self, db, make_customer):
        """Test previous and renewal premium pairs are repaired too."""
        customer = make_customer(
            eski_police_brut_prim=Decimal("50000.00"),
            eski_police_net_prim=Decimal("4800.00"),
        )

        report = PremiumCorrector(db).run(dry_run=False)

        assert [c.column for c in report.changes] == ["eski_police_brut_prim"]
        db.refresh(customer)
        assert customer.eski_police_brut_prim == Decimal("5000.00")

    def test_report_only_rows_skipped(self, db, make_customer):
        """Test rows without net premium are listed but not changed."""
        customer = make_customer(brut=Decimal("50000.00"), net=None)

        report = PremiumCorrector(db).run(dry_run=False)

        assert report.corrected == 0
        assert report.skipped == 1
        assert report.findings[0].action == CorrectionAction.REPORT_ONLY
        db.refresh(customer)
        assert customer.brut == Decimal("50000.00")

    def test_profiles_resynced(self, db, make_customer):
        """Test affected profiles are rebuilt from corrected premiums."""
        make_customer(hesap_kodu="H-1", brut=Decimal("123400.00"), net=Decimal("12000.00"))

        report = PremiumCorrector(db).run(dry_run=False)

        assert report.profiles_synced == 1
        profile = db.query(CustomerProfile).filter_by(hesap_kodu="H-1").one()
        assert profile.toplam_brut_prim == Decimal("12340.00")
        assert db.query(Customer).one().brut == Decimal("12340.00")
