from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ..domain.models import GeneratedReport, Report
from ..errors import (
    EMPTY_FIELD,
    SUBMISSION_PENDING,
    GenerationFailed,
    InvalidCredentials,
    MissingCredential,
    ValidationError,
)
from ..generation.client import ImageUpload, generate_credit_report
from ..logging import get_logger
from ..storage.reports import ReportStore
from ..storage.users import CredentialStore
from .dashboard import filter_reports, format_analysis_date
from .progress import SimulatedProgress


LOG = get_logger("app-session")

VIEW_LOGIN = "login"
VIEW_DASHBOARD = "dashboard"
VIEW_NEW_REPORT = "new_report"
VIEW_LOADING = "loading"
VIEW_VIEW_REPORT = "view_report"

FORM_INCOMPLETE = "Please fill in all fields and upload both images."

GenerateFn = Callable[[str, ImageUpload, ImageUpload], GeneratedReport]


def new_report_id(now: datetime, existing: Iterable[str] = ()) -> str:
    """DF-<epoch ms>, bumped by a millisecond until it is unique among existing ids."""
    taken = set(existing)
    millis = int(now.timestamp() * 1000)
    while f"DF-{millis}" in taken:
        millis += 1
    return f"DF-{millis}"


class ReportSession:
    """One officer's view state: which screen is up, who is logged in, their reports.

    Every mutation of the report list is followed by a full save, so the
    in-memory list and the stored list stay identical.
    """

    def __init__(
        self,
        users: CredentialStore,
        reports: ReportStore,
        *,
        generate: Optional[GenerateFn] = None,
        clock: Callable[[], datetime] = datetime.now,
        progress: Optional[SimulatedProgress] = None,
    ) -> None:
        self.users = users
        self.report_store = reports
        self._generate = generate or generate_credit_report
        self._clock = clock
        self.progress = progress or SimulatedProgress()

        self.view = VIEW_LOGIN
        self.current_user: Optional[str] = None
        self.reports: List[Report] = []
        self.selected_report: Optional[Report] = None
        self.error: Optional[str] = None
        self.notice: Optional[str] = None

    # ---------- authentication ----------
    def login(self, username: str, password: str) -> str:
        self.error = None
        name = (username or "").strip()
        if not name or not (password or "").strip():
            self.error = "Please enter both username and password."
            raise ValidationError(EMPTY_FIELD, self.error)
        try:
            self.users.authenticate(name, password)
        except InvalidCredentials as exc:
            self.error = exc.message
            raise
        self.current_user = name
        self.reports = self.report_store.get_reports_for_user(name)
        self.notice = None
        self.view = VIEW_DASHBOARD
        LOG.info("%r logged in with %d saved report(s)", name, len(self.reports))
        return name

    def signup(self, username: str, password: str, confirm_password: str) -> str:
        self.error = None
        self.notice = None
        name = (username or "").strip()
        if not name or not (password or "").strip() or not (confirm_password or "").strip():
            self.error = "Please fill in all fields."
            raise ValidationError(EMPTY_FIELD, self.error)
        try:
            self.users.register(name, password, confirm_password)
        except ValidationError as exc:
            self.error = exc.message
            raise
        self.notice = f"Account for '{name}' created! Please login."
        self.view = VIEW_LOGIN
        return name

    def logout(self) -> None:
        if self.view == VIEW_LOADING:
            # the pending submission still has to save the full list
            raise ValidationError(SUBMISSION_PENDING, "Wait for the report to finish before logging out.")
        LOG.info("%r logged out", self.current_user)
        self.current_user = None
        self.reports = []
        self.selected_report = None
        self.progress.stop()
        self._reset_form()
        self.view = VIEW_LOGIN

    # ---------- navigation ----------
    def _require_user(self) -> str:
        if not self.current_user:
            raise InvalidCredentials("Please login first.")
        return self.current_user

    def open_new_report(self) -> None:
        self._require_user()
        self.view = VIEW_NEW_REPORT

    def back_to_dashboard(self) -> None:
        self._require_user()
        self.selected_report = None
        self.view = VIEW_DASHBOARD

    def get_report(self, report_id: str) -> Report:
        self._require_user()
        for report in self.reports:
            if report.id == report_id:
                return report
        raise KeyError(report_id)

    def view_report(self, report_id: str) -> Report:
        report = self.get_report(report_id)
        self.selected_report = report
        self.view = VIEW_VIEW_REPORT
        return report

    def dashboard(self, query: Optional[str] = None) -> List[Report]:
        self._require_user()
        return filter_reports(self.reports, query)

    # ---------- report submission ----------
    def _reset_form(self) -> None:
        self.error = None

    def begin_submission(
        self,
        shop_name: str,
        inventory: Optional[ImageUpload],
        ledger: Optional[ImageUpload],
    ) -> None:
        """Validate the form and enter the loading view. Rejects a second submission while one is pending."""
        if self.view == VIEW_LOADING:
            raise ValidationError(SUBMISSION_PENDING, "A report is already being generated.")
        if not (shop_name or "").strip() or inventory is None or ledger is None or not self.current_user:
            self.error = FORM_INCOMPLETE
            raise ValidationError(EMPTY_FIELD, FORM_INCOMPLETE)
        self.error = None
        self.view = VIEW_LOADING
        self.progress.start()

    def finish_submission(self, shop_name: str, inventory: ImageUpload, ledger: ImageUpload) -> Report:
        """Run the generation call for a begun submission and store the stamped report."""
        username = self._require_user()
        try:
            generated = self._generate(shop_name, inventory, ledger)
        except (GenerationFailed, MissingCredential) as exc:
            self.error = str(exc)
            self.view = VIEW_NEW_REPORT
            raise
        except Exception:
            LOG.exception("Unexpected failure while generating a report for %r", shop_name)
            self.error = GenerationFailed().message
            self.view = VIEW_NEW_REPORT
            raise
        finally:
            self.progress.stop()

        now = self._clock()
        report = Report.stamp(
            generated,
            report_id=new_report_id(now, (r.id for r in self.reports)),
            analysis_date=format_analysis_date(now),
        )
        updated = [*self.reports, report]
        self.reports = updated
        self.report_store.save_reports_for_user(username, updated)
        self.selected_report = report
        self.view = VIEW_VIEW_REPORT
        self._reset_form()
        LOG.info("Stored report %s for %r (%d total)", report.id, username, len(updated))
        return report

    def submit_report(
        self,
        shop_name: str,
        inventory: Optional[ImageUpload],
        ledger: Optional[ImageUpload],
    ) -> Report:
        self.begin_submission(shop_name, inventory, ledger)
        return self.finish_submission(shop_name, inventory, ledger)
