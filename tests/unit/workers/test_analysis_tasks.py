"""
Tests for the Celery analysis task.

The task body is called directly; run_analysis and Task.retry are patched so
no broker, worker or database is involved.
"""

import pytest

from core.config import settings
from core.errors import IntegrationFailure, NotFoundError
from workers.tasks import analyses as analysis_tasks
from workers.tasks.analyses import analyze_apply, retry_countdown


class RetryRequested(Exception):
    pass


@pytest.fixture
def fake_retry(monkeypatch):
    calls = []

    def retry(exc=None, countdown=None):
        calls.append({"exc": exc, "countdown": countdown})
        return RetryRequested()

    monkeypatch.setattr(analyze_apply, "retry", retry)
    return calls


def run_analysis_returning(monkeypatch, outcome):
    async def fake_run_analysis(apply_id):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(analysis_tasks, "run_analysis", fake_run_analysis)


class TestRetryCountdown:

    def test_backoff_doubles(self):
        base = settings.analysis_retry_backoff_seconds
        assert [retry_countdown(n) for n in range(3)] == [base, base * 2, base * 4]


class TestAnalyzeApplyTask:

    def test_success(self, monkeypatch):
        run_analysis_returning(monkeypatch, {"id": 5, "apply_id": 1, "score": 88})

        assert analyze_apply(1) == {
            "status": "success",
            "apply_id": 1,
            "analysis_id": 5,
            "score": 88,
        }

    def test_cancelled_apply_is_skipped(self, monkeypatch, fake_retry):
        run_analysis_returning(monkeypatch, NotFoundError("Apply", 1))

        assert analyze_apply(1) == {"status": "skipped", "apply_id": 1}
        assert fake_retry == []

    def test_transient_failure_is_retried(self, monkeypatch, fake_retry):
        failure = IntegrationFailure("Scoring service timed out", transient=True)
        run_analysis_returning(monkeypatch, failure)

        with pytest.raises(RetryRequested):
            analyze_apply(1)

        assert fake_retry == [
            {"exc": failure, "countdown": settings.analysis_retry_backoff_seconds}
        ]

    def test_permanent_failure_is_reported_not_retried(self, monkeypatch, fake_retry, caplog):
        run_analysis_returning(monkeypatch, IntegrationFailure("Malformed scoring response"))

        result = analyze_apply(1)

        assert result == {
            "status": "failed",
            "apply_id": 1,
            "error": "Malformed scoring response",
        }
        assert fake_retry == []
        assert any("Analysis failed for apply 1" in r.getMessage() for r in caplog.records)

    def test_exhausted_retries_reported(self, monkeypatch, fake_retry):
        monkeypatch.setattr(analyze_apply, "max_retries", 0)
        run_analysis_returning(monkeypatch, IntegrationFailure("HTTP 503", transient=True))

        result = analyze_apply(1)

        assert result["status"] == "failed"
        assert fake_retry == []
