import json
import subprocess

from sparc_tools.report_tools import allure_utils


def write_result(directory, name, status, start=0, stop=100):
    payload = {"name": name, "status": status, "start": start, "stop": stop}
    (directory / f"{name}-result.json").write_text(json.dumps(payload), encoding="utf-8")


def test_summarize_counts_statuses(tmp_path):
    write_result(tmp_path, "a", "passed")
    write_result(tmp_path, "b", "passed", stop=300)
    write_result(tmp_path, "c", "failed")
    write_result(tmp_path, "d", "skipped")
    (tmp_path / "e-result.json").write_text("{not json", encoding="utf-8")

    summary = allure_utils.summarize_results(tmp_path)

    assert summary.total == 4
    assert (summary.passed, summary.failed, summary.skipped) == (2, 1, 1)
    assert summary.duration_ms == 600
    assert summary.pass_rate == 50.0


def test_generate_report_without_allure_cli(tmp_path, monkeypatch):
    def missing_cli(*args, **kwargs):
        raise FileNotFoundError("allure")

    monkeypatch.setattr(subprocess, "run", missing_cli)

    assert allure_utils.generate_allure_report(str(tmp_path)) is False


def test_page_state_attachments(monkeypatch):
    attached = []
    monkeypatch.setattr(
        allure_utils.allure, "attach", lambda body, name, attachment_type: attached.append(name)
    )

    allure_utils.attach_page_state(
        "https://voice.example.com/home",
        window_handle="window-2",
        page_source="<html></html>",
        screenshot=b"\x89PNG",
    )
    allure_utils.attach_engine_reports("locators ok", "✅ All interactions succeeded natively.")

    assert attached == [
        "🔗 Current URL",
        "📸 Screenshot",
        "📄 Page Source",
        "Locator Health",
        "Interaction Fallbacks",
    ]
