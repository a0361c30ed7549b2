"""Application code exercised by the runnable examples."""

from __future__ import annotations

import datetime as dt

from job_mox import Worker


class WelcomeMailer(Worker):
    """Sends a welcome email for a new account."""


class ReportBuilder(Worker):
    """Builds a nightly report."""


def sign_up(user_id: int, email: str) -> dict[str, object]:
    """Create an account and queue the welcome email."""
    WelcomeMailer.perform_async(user_id, email, locale="en")
    return {"id": user_id, "email": email}


def schedule_report(delay: dt.timedelta) -> None:
    """Queue a report build after *delay*."""
    ReportBuilder.perform_in(delay, "nightly")
