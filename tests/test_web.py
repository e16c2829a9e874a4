"""Tests for the read-only web viewer."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from note_cli.models.schema import Note
from note_cli.web.viewer import create_app, serve


def _note(content, tags=()):
    return Note(id=f"id-{content}", owner_id="u1", content=content, tags=list(tags))


class TestViewer:
    """Tests for the viewer app."""

    def test_lists_notes_with_tags(self):
        client = TestClient(create_app([_note("Buy milk", ["shopping", "today"])], "alice"))

        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Notes for alice" in response.text
        assert "Buy milk" in response.text
        assert '<span class="tag">shopping</span>' in response.text
        assert '<span class="tag">today</span>' in response.text

    def test_empty_state(self):
        client = TestClient(create_app([], "alice"))
        assert "No notes yet." in client.get("/").text

    def test_content_is_escaped(self):
        client = TestClient(create_app([_note("<script>alert(1)</script>")], "alice"))
        body = client.get("/").text
        assert "<script>alert(1)</script>" not in body
        assert "&lt;script&gt;" in body

    def test_snapshot_is_fixed_at_startup(self):
        notes = [_note("first")]
        client = TestClient(create_app(notes, "alice"))
        notes.append(_note("added later"))
        assert "added later" not in client.get("/").text

    def test_serve_runs_uvicorn_without_browser(self):
        with patch("note_cli.web.viewer.uvicorn.run") as run, \
                patch("note_cli.web.viewer.webbrowser.open") as open_browser:
            serve([], "alice", host="127.0.0.1", port=5050, open_browser=False)

        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 5050
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        open_browser.assert_not_called()

    def test_serve_opens_browser(self):
        with patch("note_cli.web.viewer.uvicorn.run"), \
                patch("note_cli.web.viewer.threading.Timer") as timer:
            serve([], "alice", port=5051, open_browser=True)

        args = timer.call_args
        assert args.kwargs["args"] == ("http://localhost:5051",)
        timer.return_value.start.assert_called_once()
