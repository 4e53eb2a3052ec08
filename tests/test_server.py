import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from safepkt.file_system import hash_content
from safepkt.server import build_response, create_app


class FakeContainers:
    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {}
        self.error = error
        self.calls = []

    def format_container_name(self, plan):
        return f"{plan.step.name}-{plan.project_id}"

    async def _record(self, name, plan):
        self.calls.append((name, plan))
        if self.error is not None:
            raise self.error

    async def inspect_container_status(self, plan):
        await self._record("inspect", plan)
        return self.result

    async def tail_container_logs(self, plan):
        await self._record("tail", plan)
        return self.result

    async def remove_existing_container(self, plan):
        self.calls.append(("remove", plan))

    async def start_container(self, plan):
        await self._record("start", plan)

    async def stop_container(self, plan):
        await self._record("stop", plan)


def _client(fake):
    return TestClient(TestServer(create_app(lambda: fake)))


def test_build_response_sets_headers_and_status():
    response = build_response(b'{"a": "b"}', 400)
    assert response.status == 400
    assert response.headers["Content-Type"] == "application/json"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.body == b'{"a": "b"}'


@pytest.mark.asyncio
async def test_get_steps_lists_step_names():
    async with _client(FakeContainers()) as client:
        response = await client.get("/steps")
        assert response.status == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert json.loads(await response.text()) == {
            "steps": [
                "program_fuzzing",
                "program_verification",
                "uploaded_sources_listing",
                "source_restoration",
            ]
        }


@pytest.mark.asyncio
async def test_save_source_writes_file(tmp_path, monkeypatch):
    monkeypatch.setenv("SOURCE_DIRECTORY", str(tmp_path))
    async with _client(FakeContainers()) as client:
        response = await client.post("/source", data='{"source": "Zm4gbWFpbigpIHt9"}')
        assert response.status == 200
        payload = json.loads(await response.text())
    project_id = hash_content(b"Zm4gbWFpbigpIHt9")
    assert payload == {"project_id": project_id}
    saved = tmp_path / f"{project_id}.rs.b64"
    assert saved.read_text() == "Zm4gbWFpbigpIHt9"


@pytest.mark.asyncio
async def test_save_source_with_invalid_json_fails():
    async with _client(FakeContainers()) as client:
        response = await client.post("/source", data="not json")
        assert response.status == 500
        assert await response.text() == "Sorry, something went wrong."


@pytest.mark.asyncio
async def test_start_running_listing_step():
    fake = FakeContainers()
    async with _client(fake) as client:
        response = await client.post("/uploaded-sources-listing/abc")
        assert response.status == 200
        payload = json.loads(await response.text())
    assert payload == {
        "container_name": "uploaded_sources_listing-abc",
        "message": "Rust verification tools container started successfully.",
    }
    assert [name for name, _ in fake.calls] == ["remove", "start"]


@pytest.mark.asyncio
async def test_start_running_passes_flags(tmp_path, monkeypatch):
    monkeypatch.setenv("SOURCE_DIRECTORY", str(tmp_path))
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
    fake = FakeContainers()
    async with _client(fake) as client:
        response = await client.post(
            "/program-verification/abc", data='{"flags": "--help"}'
        )
        assert response.status == 200
    started = [plan for name, plan in fake.calls if name == "start"]
    assert started[0].step.name == "program_verification"
    assert started[0].step.flags == "--help"
    assert started[0].project_id == "abc"


@pytest.mark.asyncio
async def test_start_running_failure_reports_step_and_project():
    fake = FakeContainers(error=RuntimeError("boom"))
    async with _client(fake) as client:
        response = await client.post("/uploaded_sources_listing/abc")
        assert response.status == 400
        payload = json.loads(await response.text())
    assert payload == {
        "error": 'Could not run "uploaded_sources_listing" step for project having id "abc"'
    }


@pytest.mark.asyncio
async def test_stop_running_step():
    fake = FakeContainers()
    async with _client(fake) as client:
        response = await client.delete("/program-fuzzing/abc")
        assert response.status == 200
        payload = json.loads(await response.text())
    assert payload == {
        "message": 'Removed running container successfully for project with id "abc".'
    }
    assert fake.calls[0][1].step.name == "program_fuzzing"


@pytest.mark.asyncio
async def test_get_step_report_returns_logs():
    logs = {"container_name": "x", "raw_log": "all good"}
    async with _client(FakeContainers(result=logs)) as client:
        response = await client.get("/program-verification/abc/report")
        assert response.status == 200
        assert json.loads(await response.text()) == logs


@pytest.mark.asyncio
async def test_get_step_progress_error_is_bad_request():
    fake = FakeContainers(error=RuntimeError("boom"))
    async with _client(fake) as client:
        response = await client.get("/program-verification/abc/progress")
        assert response.status == 400
        assert json.loads(await response.text()) == {"error": "boom"}


@pytest.mark.asyncio
async def test_unknown_step_is_internal_error():
    async with _client(FakeContainers()) as client:
        response = await client.get("/no-such-step/abc/progress")
        assert response.status == 500
        assert await response.text() == "Sorry, something went wrong."


@pytest.mark.asyncio
async def test_preflight_request_allows_all_origins():
    async with _client(FakeContainers()) as client:
        response = await client.options("/steps")
        assert response.status == 204
        assert response.headers["Access-Control-Allow-Origin"] == "*"