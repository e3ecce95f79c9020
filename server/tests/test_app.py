from __future__ import annotations

from datetime import timedelta

import mealplanner.main as main_module
from mealplanner.core.config import settings
from mealplanner.core.time import now_utc
from mealplanner.main import scheduler


class RecordingScheduler:
    def __init__(self) -> None:
        self.running = False
        self.jobs: list[dict] = []

    def start(self) -> None:
        self.running = True

    def add_job(self, func, **kwargs) -> None:
        self.jobs.append({"func": func, **kwargs})


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_validation_errors_are_bad_requests(client, authorize, kitchen_user):
    authorize(kitchen_user)
    response = client.get("/api/kitchen/dashboard", params={"date": "not-a-date", "mealType": "lunch"})
    assert response.status_code == 400
    assert isinstance(response.json()["detail"], list)


def test_scheduler_is_disabled_in_tests(client):
    assert scheduler.running is False


def test_escalation_job_runs_at_startup(monkeypatch):
    recording = RecordingScheduler()
    monkeypatch.setattr(main_module, "scheduler", recording)
    monkeypatch.setattr(settings, "ENABLE_SCHEDULER", True)

    before = now_utc()
    main_module.start_scheduled_jobs()

    assert recording.running is True
    [job] = recording.jobs
    assert job["id"] == "alert_escalation"
    assert job["trigger"] == "interval"
    assert job["minutes"] == settings.ALERT_ESCALATION_INTERVAL_MINUTES
    assert before <= job["next_run_time"] <= now_utc() + timedelta(seconds=1)
