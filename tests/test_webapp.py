"""
Tests for the HTTP trigger routes.
"""

from unittest.mock import Mock

import pytest

from webapp.app import create_app


@pytest.fixture
def orchestrator():
    orchestrator = Mock()
    orchestrator.request_check.return_value = {"message": "checked"}
    orchestrator.request_details.return_value = {"message": "details"}
    orchestrator.request_status_ping.return_value = {"message": "issubscribed"}
    orchestrator.registry.count.return_value = 3
    return orchestrator


@pytest.fixture
def files_dir(tmp_path):
    path = tmp_path / "files"
    path.mkdir()
    (path / "index.html").write_text("<html>latest</html>")
    return path


@pytest.fixture
def http(orchestrator, files_dir):
    app = create_app(orchestrator, files_dir=files_dir)
    app.config["TESTING"] = True
    return app.test_client()


class TestTriggers:

    def test_check_default_url(self, http, orchestrator):
        response = http.get("/api/check")

        assert response.status_code == 200
        assert response.get_json() == {"message": "checked"}
        orchestrator.request_check.assert_called_once_with(None)

    def test_check_indexed_url(self, http, orchestrator):
        http.get("/api/check/2")
        orchestrator.request_check.assert_called_once_with("2")

    def test_details(self, http, orchestrator):
        response = http.get("/api/details/1")

        assert response.get_json() == {"message": "details"}
        orchestrator.request_details.assert_called_once_with("1")

    def test_is_subscribed(self, http, orchestrator):
        response = http.get("/api/issubscribed")

        assert response.get_json() == {"message": "issubscribed"}
        orchestrator.request_status_ping.assert_called_once_with()


class TestOtherRoutes:

    def test_files_served(self, http):
        response = http.get("/files/index.html")

        assert response.status_code == 200
        assert response.data == b"<html>latest</html>"

    def test_missing_file(self, http):
        assert http.get("/files/screenshot.jpg").status_code == 404

    def test_status(self, http):
        data = http.get("/admin/monitoring/status").get_json()

        assert data["status"] == "ok"
        assert data["subscribers"] == 3

    def test_unknown_route(self, http):
        response = http.get("/nope")

        assert response.status_code == 404
        assert response.get_json() == {"message": "Not found"}
