"""End-to-end tests for the submit, result, export and reset flow."""

from unittest.mock import patch

import src.api.main as api_main
from src.chains.exhibit_generator import GenerationError
from src.export.image_exporter import SignboardImageExporter
from src.ui.state import Phase
from src.ui.utils import (
    EXPORT_ERROR_MESSAGE,
    EXPORT_LABEL,
    GENERATION_ERROR_MESSAGE,
    LOADING_MESSAGES,
    RESET_LABEL,
)
from tests.fakes import FakeGenerator, latin_fonts, running_app, wait_until_settled

FORM = {"name": "山田太郎", "hobby": "ゲーム", "worry": "朝起きられない"}


class TestLoadingStage:
    """Test the loading partial returned by a valid submission."""

    def test_submit_returns_loading_partial(self, exhibit_data):
        """A valid submission shows the first status message and opens SSE."""
        generator = FakeGenerator(result=exhibit_data).hold()
        with running_app(generator) as client:
            response = client.post("/ui/submit", data=FORM)
            phase = api_main.orchestrator.state.phase
            generator.gate.set()
            wait_until_settled()

        assert response.status_code == 200
        assert phase is Phase.LOADING
        html = response.text
        assert 'hx-ext="sse"' in html
        assert 'sse-connect="/ui/events"' in html
        assert 'sse-close="done"' in html
        assert 'sse-swap="status"' in html
        assert LOADING_MESSAGES[0] in html
        assert 'name="name"' not in html

    def test_second_submit_while_loading_is_ignored(self, exhibit_data):
        """Only one generation runs per submission window."""
        generator = FakeGenerator(result=exhibit_data).hold()
        with running_app(generator) as client:
            client.post("/ui/submit", data=FORM)
            second = client.post("/ui/submit", data={**FORM, "name": "別人"})
            generator.gate.set()
            wait_until_settled()
            draft_name = api_main.orchestrator.draft.name

        assert 'sse-connect="/ui/events"' in second.text
        assert len(generator.calls) == 1
        assert draft_name == "山田太郎"

    def test_generator_receives_form_input(self, exhibit_data):
        generator = FakeGenerator(result=exhibit_data)
        with running_app(generator) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()

        assert generator.calls[0].name == "山田太郎"
        assert generator.calls[0].worry == "朝起きられない"


class TestResultStage:
    """Test the rendered signboard."""

    def test_signboard_rendered_after_success(self, exhibit_data):
        """The signboard shows every field of the generated data."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            state = wait_until_settled()
            html = client.get("/").text

        assert state.phase is Phase.RESULT
        assert 'id="signboard"' in html
        assert "山田太郎" in html
        assert exhibit_data.classification in html
        assert f"危険度：{exhibit_data.danger_level}" in html
        assert "Homo procrastinatus" in html
        assert exhibit_data.fun_fact in html
        assert exhibit_data.description in html
        assert 'name="name"' not in html

    def test_stat_bars_target_values(self, exhibit_data):
        """Each stat bar animates to its value after the start delay."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            html = client.get("/").text

        for value in (35, 72, 100, 0):
            assert f"--target: {value}%" in html
        assert "animation-delay: 300ms" in html
        assert "animation-duration: 1000ms" in html

    def test_result_attaches_signboard(self, exhibit_data):
        """Rendering the result registers the view for export."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            client.get("/")
            signboard = api_main.orchestrator.signboard

        assert signboard is not None
        assert signboard.data is exhibit_data

    def test_export_and_reset_controls(self, exhibit_data):
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            html = client.get("/").text

        assert 'id="downloadBtn"' in html
        assert EXPORT_LABEL in html
        assert 'hx-post="/ui/reset"' in html
        assert RESET_LABEL in html


class TestFailedStage:
    """Test the error banner after a failed generation."""

    def test_failure_shows_banner_and_form(self):
        """The banner appears above the form, which keeps the user's input."""
        generator = FakeGenerator(error=GenerationError("bad payload"))
        with running_app(generator) as client:
            client.post("/ui/submit", data=FORM)
            state = wait_until_settled()
            html = client.get("/").text

        assert state.phase is Phase.FAILED
        assert GENERATION_ERROR_MESSAGE in html
        assert 'role="alert"' in html
        assert 'hx-post="/ui/submit"' in html
        assert 'value="山田太郎"' in html
        assert "朝起きられない" in html

    def test_resubmit_after_failure(self, exhibit_data):
        """A new submission from FAILED starts a fresh generation."""
        generator = FakeGenerator(error=GenerationError("bad payload"))
        with running_app(generator) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            generator.error = None
            generator.result = exhibit_data
            client.post("/ui/submit", data=FORM)
            state = wait_until_settled()

        assert state.phase is Phase.RESULT
        assert len(generator.calls) == 2


class TestExportEndpoint:
    """Test PNG export of the signboard on screen."""

    def test_export_without_signboard_returns_409(self, exhibit_data):
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            response = client.post("/ui/export")

        assert response.status_code == 409

    def test_export_returns_png_attachment(self, exhibit_data):
        """The PNG is delivered as a zoo_exhibit_<ms>.png attachment."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            client.get("/")
            with patch.object(SignboardImageExporter, "_load_fonts", latin_fonts):
                response = client.post("/ui/export")
            label = api_main.orchestrator.export_label
            phase = api_main.orchestrator.state.phase

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="zoo_exhibit_')
        assert disposition.endswith('.png"')
        assert response.content.startswith(b"\x89PNG")
        assert label == EXPORT_LABEL
        assert phase is Phase.RESULT
        assert len(api_main.download_store) == 0

    def test_export_failure_returns_422(self, exhibit_data):
        """A failed rasterization reports the export error and keeps the result."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            client.get("/")
            with patch.object(
                SignboardImageExporter, "render_png", side_effect=OSError("disk full")
            ):
                response = client.post("/ui/export")
            label = api_main.orchestrator.export_label
            phase = api_main.orchestrator.state.phase

        assert response.status_code == 422
        assert response.json() == {"error": "export_failed", "detail": EXPORT_ERROR_MESSAGE}
        assert label == EXPORT_LABEL
        assert phase is Phase.RESULT

    def test_export_without_japanese_font_returns_422(self, exhibit_data):
        """No image is delivered when no font can draw the Japanese text."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            client.get("/")
            with patch("src.export.image_exporter.JAPANESE_FONT_CANDIDATES", ()):
                response = client.post("/ui/export")

        assert response.status_code == 422
        assert response.json()["detail"] == EXPORT_ERROR_MESSAGE


class TestResetEndpoint:
    """Test returning to the form."""

    def test_reset_returns_form_with_draft(self, exhibit_data):
        """Reset discards the signboard and keeps the previous input."""
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            client.post("/ui/submit", data=FORM)
            wait_until_settled()
            client.get("/")
            response = client.post("/ui/reset")
            state = api_main.orchestrator.state
            signboard = api_main.orchestrator.signboard

        assert state.phase is Phase.IDLE
        assert state.result is None
        assert signboard is None
        assert 'hx-post="/ui/submit"' in response.text
        assert 'value="山田太郎"' in response.text

    def test_reset_while_idle_is_ignored(self, exhibit_data):
        with running_app(FakeGenerator(result=exhibit_data)) as client:
            response = client.post("/ui/reset")
            phase = api_main.orchestrator.state.phase

        assert response.status_code == 200
        assert phase is Phase.IDLE
        assert 'hx-post="/ui/submit"' in response.text
