from types import SimpleNamespace

import pytest

import gemini_service
from api.pydantic_models import BillReading, Evidence, GreaseTrapEntry, HazardScanEntry, RecycleEntry, ScanResult


@pytest.mark.parametrize("text", [None, "", "   ", "undefined", "not json", "[1, 2]"])
def test_extract_json_unusable_text(text):
    assert gemini_service.extract_json(text) == {}


def test_extract_json_strips_code_fences():
    text = '```json\n{"category": "waste", "point_reward": 10}\n```'
    assert gemini_service.extract_json(text) == {"category": "waste", "point_reward": 10}


@pytest.mark.parametrize("category, entry_type", [
    ("waste", RecycleEntry), ("grease_trap", GreaseTrapEntry), ("hazard", HazardScanEntry),
])
def test_entry_for_scan(category, entry_type):
    scan = ScanResult(category=category, label="x", point_reward=20)
    evidence = Evidence(data="eA==")
    entry = gemini_service.entry_for_scan(scan, evidence)
    assert isinstance(entry, entry_type)
    assert entry.points == 20
    assert entry.evidence == evidence


@pytest.mark.parametrize("scan", [
    ScanResult(category="unknown", label="Cat"),
    ScanResult(category="waste", label="Crumpled paper", point_reward=0),
    ScanResult(category="cat photo", label="Cat", point_reward=10),
])
def test_worthless_scans_are_not_logged(scan):
    assert gemini_service.entry_for_scan(scan) is None


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def fake_models(monkeypatch):
    def install(**kwargs):
        models = FakeModels(**kwargs)
        monkeypatch.setattr(gemini_service, "get_client", lambda: SimpleNamespace(models=models))
        return models
    return install


def test_scan_uses_system_instruction(fake_models):
    models = fake_models(text='{"category": "waste", "label": "ขวดพลาสติก", "point_reward": 10}')
    scan = gemini_service.analyze_environment_image(b"\xff\xd8fake", "image/jpeg")
    assert scan.category == "waste"
    assert scan.point_reward == 10
    call = models.calls[0]
    assert call["config"].system_instruction
    assert len(call["contents"]) == 1


def test_bill_reading_appends_prompt(fake_models):
    models = fake_models(text='{"units": 245, "amount": 1102.5, "month": "January"}')
    bill = gemini_service.analyze_utility_bill(b"\xff\xd8fake")
    assert bill == BillReading(units=245, amount=1102.5, month="January")
    assert len(models.calls[0]["contents"]) == 2


@pytest.mark.parametrize("kwargs", [
    {"text": ""},
    {"text": '{"category": "waste"}'},
    {"error": RuntimeError("quota exceeded")},
])
def test_failures_raise_ai_analysis_error(fake_models, kwargs):
    fake_models(**kwargs)
    with pytest.raises(gemini_service.AIAnalysisError):
        gemini_service.analyze_environment_image(b"\xff\xd8fake")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(gemini_service, "_client", None)
    with pytest.raises(gemini_service.AIAnalysisError):
        gemini_service.get_client()
