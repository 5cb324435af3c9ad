import pytest

from app.schemas.state import UiState
from app.services.renderServices import (
    ADULT_INVALID_NOTICE,
    ANALYSIS_COMPLETE,
    UNEXPECTED_FORMAT_NOTICE,
    confidence_band,
    render,
    resolve_image_url,
)

BASE = "http://analysis.test"

SCENARIO_A = {
    "status": "child_autism_screened",
    "autism_prediction_data": {
        "results": [
            {"region": "eyes", "label": "typical", "confidence": 82},
            {"final_decision": "Non-Autistic"},
        ],
    },
    "age_check_summary": {
        "kids_count": 1,
        "adults_count": 0,
        "annotations": [{"age": 7, "box": [0, 0, 10, 10]}],
    },
}

@pytest.mark.parametrize("confidence, band", [
    (0, "low"),
    (39.9, "low"),
    (40, "medium"),
    (40.1, "medium"),
    (69.9, "medium"),
    (70, "high"),
    (70.1, "high"),
    (100, "high"),
])
def test_confidence_band_boundaries(confidence, band):
    assert confidence_band(confidence) == band

@pytest.mark.parametrize("path, expected", [
    ("/static/out.jpg", BASE + "/static/out.jpg"),
    ("results/out.jpg", BASE + "results/out.jpg"),
    ("http://cdn.test/out.jpg", "http://cdn.test/out.jpg"),
    ("https://cdn.test/out.jpg", "https://cdn.test/out.jpg"),
    (None, None),
    ("", None),
])
def test_resolve_image_url(path, expected):
    assert resolve_image_url(path, BASE) == expected

def test_child_screened_scenario():
    state = render(SCENARIO_A, UiState(is_processing=True), BASE)
    view = state.result

    assert view.kind == "child_autism_screened"
    assert [(r.region, r.label, r.band) for r in view.regions] == [("eyes", "typical", "high")]
    assert view.regions[0].confidence_text == "82.0%"
    assert view.final_decision == "Non-Autistic"
    assert view.age_summary.counts_text == "Kids: 1 | Adults: 0"
    assert view.age_summary.faces_detected == 1
    assert view.age_summary.annotations[0].box_text == "[0, 0, 10, 10]"
    assert state.is_processing is False
    assert state.notice.message == ANALYSIS_COMPLETE
    assert state.notice.severity == "success"

def test_child_screened_resolves_annotated_images():
    payload = dict(SCENARIO_A)
    payload["autism_prediction_data"] = dict(SCENARIO_A["autism_prediction_data"], annotated_image_path="/results/autism.jpg")
    payload["age_check_summary"] = dict(SCENARIO_A["age_check_summary"], annotated_image_url="http://cdn.test/age.jpg")

    view = render(payload, UiState(), BASE).result
    assert view.autism_image_url == BASE + "/results/autism.jpg"
    assert view.age_summary.image_url == "http://cdn.test/age.jpg"

def test_first_final_decision_wins():
    payload = {
        "status": "child_autism_screened",
        "autism_prediction_data": {"results": [{"final_decision": "Autistic"}, {"final_decision": "Non-Autistic"}]},
    }
    assert render(payload, UiState(), BASE).result.final_decision == "Autistic"

def test_adult_invalid_scenario():
    payload = {"status": "adult_invalid", "age_check_summary": {"adults_count": 2, "kids_count": 0}}
    state = render(payload, UiState(), BASE)
    view = state.result

    assert view.kind == "adult_invalid"
    assert view.notice == ADULT_INVALID_NOTICE
    assert view.age_summary.counts_text == "Kids: 0 | Adults: 2"
    assert not hasattr(view, "regions")
    assert not hasattr(view, "autism_image_url")
    assert state.notice.severity == "warning"

def test_adult_invalid_ignores_autism_payload():
    payload = {
        "status": "adult_invalid",
        "message": "Only adults detected",
        "age_check_summary": {"adults_count": 1, "annotated_image_url": "/results/age.jpg"},
        "autism_prediction_data": {
            "annotated_image_path": "/results/autism.jpg",
            "results": [{"region": "eyes", "label": "atypical", "confidence": 91}, {"final_decision": "Autistic"}],
        },
    }
    state = render(payload, UiState(), BASE)
    dumped = state.model_dump(mode="json")

    assert dumped["result"]["kind"] == "adult_invalid"
    assert "autism.jpg" not in str(dumped)
    assert "Autistic" not in str(dumped["result"])
    assert state.result.age_summary.image_url == BASE + "/results/age.jpg"
    assert state.result.message == "Only adults detected"
    assert state.notice.message == "Only adults detected"

def test_adult_invalid_top_level_image_fallback():
    payload = {"status": "adult_invalid", "annotated_image_url": "/results/age.jpg"}
    view = render(payload, UiState(), BASE).result
    assert view.age_summary.image_url == BASE + "/results/age.jpg"
    assert view.age_summary.has_counts is False

@pytest.mark.parametrize("payload", [
    {"status": "something_new"},
    {"message": "no status at all"},
    {"status": "child_autism_screened", "autism_prediction_data": {"results": [{"region": "eyes"}]}},
    {"status": "child_autism_screened", "age_check_summary": {"annotations": [{"age": 7, "box": [1, 2]}]}},
    ["not", "an", "object"],
    None,
])
def test_unexpected_payloads_never_raise(payload):
    state = render(payload, UiState(is_processing=True), BASE)
    assert state.result.kind == "unexpected"
    assert state.result.notice == UNEXPECTED_FORMAT_NOTICE
    assert state.is_processing is False

def test_unexpected_keeps_backend_message():
    state = render({"status": "queued", "message": "Try later"}, UiState(), BASE)
    assert state.result.message == "Try later"
    assert state.notice.message == "Try later"
    assert state.notice.severity == "info"

def test_no_faces_flag():
    payload = {"status": "child_autism_screened", "age_check_summary": {"has_faces": False}}
    view = render(payload, UiState(), BASE).result
    assert view.age_summary.no_faces is True
    assert view.regions == []
    assert view.final_decision is None
