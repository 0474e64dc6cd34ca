"""In-process tests for CLI command handlers against a fake backend."""

import argparse
import io
import json

import pytest

from flotiq_cli import cli


@pytest.fixture(autouse=True)
def pipe_mode(monkeypatch):
    monkeypatch.setattr(cli, "is_tty", lambda: False)


def output_json(capsys):
    return json.loads(capsys.readouterr().out)


def page(ids, total_pages, current=1):
    return {
        "total_pages": total_pages,
        "total_count": len(ids),
        "current_page": current,
        "data": [{"id": i, "title": i.upper()} for i in ids],
    }


class TestObjectsCommands:
    async def test_list_pipe_mode_auto_paginates(self, backend, client, capsys):
        pages = {"1": page(["a"], 2), "2": page(["b"], 2, current=2)}
        backend.route("GET", "/v1/content/blogpost", json=lambda r: pages[r.url.params["page"]])

        await cli.cmd_objects_list(client, argparse.Namespace(content_type="blogpost", page=None))
        data = output_json(capsys)
        assert [o["id"] for o in data["data"]] == ["a", "b"]
        assert data["total_count"] == 2

    async def test_list_single_page(self, backend, client, capsys):
        backend.route("GET", "/v1/content/blogpost", json=page(["a"], 3))
        await cli.cmd_objects_list(client, argparse.Namespace(content_type="blogpost", page=1))
        data = output_json(capsys)
        assert data["next_page"] == 2
        assert data["total_pages"] == 3

    async def test_get_field(self, backend, client, capsys):
        backend.route("GET", "/v1/content/blogpost/a", json={"id": "a", "title": "Hello"})
        await cli.cmd_objects_get(client, argparse.Namespace(content_type="blogpost", object_id="a", field="title"))
        assert capsys.readouterr().out.strip() == "Hello"

    async def test_get_missing_exits_with_error(self, backend, client, capsys):
        with pytest.raises(SystemExit) as exc_info:
            await cli.cmd_objects_get(client, argparse.Namespace(content_type="blogpost", object_id="x", field=None))
        assert exc_info.value.code == 1
        assert output_json(capsys)["error"] == "Missing data for x!"

    async def test_create_from_stdin(self, backend, client, capsys, monkeypatch):
        backend.route("POST", "/v1/content/blogpost", status=200)
        monkeypatch.setattr("sys.stdin", io.StringIO('{"id": "p1", "title": "Hi"}'))

        await cli.cmd_objects_create(client, argparse.Namespace(content_type="blogpost", data="-"))
        assert output_json(capsys)["success"] is True
        assert json.loads(backend.last.content) == {"id": "p1", "title": "Hi"}

    async def test_delete_error_includes_status(self, backend, client, capsys):
        backend.route("DELETE", "/v1/content/blogpost/a", status=403, json={"error": "Token invalid"})
        with pytest.raises(SystemExit):
            await cli.cmd_objects_delete(client, argparse.Namespace(content_type="blogpost", object_id="a"))
        assert output_json(capsys) == {
            "error": "Invalid API token",
            "details": {"message": "Token invalid"},
            "status": 403,
        }


class TestMediaCommands:
    def test_encode_media_form(self, tmp_path):
        path = tmp_path / "cat.png"
        path.write_bytes(b"\x89PNG fake")
        body, content_type = cli.encode_media_form(path, "image")

        assert content_type.startswith("multipart/form-data; boundary=")
        assert b'name="file"; filename="cat.png"' in body
        assert b"Content-Type: image/png" in body
        assert b"\x89PNG fake" in body
        assert b'name="type"' in body

    async def test_upload(self, backend, client, capsys, tmp_path):
        backend.route("POST", "/media", status=200)
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.4")

        await cli.cmd_media_upload(client, argparse.Namespace(file=str(path), type="file"))
        assert output_json(capsys)["success"] is True
        assert backend.last.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert b"%PDF-1.4" in backend.last.content


class TestSearchCommand:
    async def test_one_shot(self, backend, client, capsys):
        backend.route("GET", "/v1/content/blogpost", json=page(["hit"], 1))
        await cli.cmd_search(client, argparse.Namespace(content_type="blogpost", text="hello", interactive=False))
        assert output_json(capsys)["data"] == [{"id": "hit", "title": "HIT"}]

    async def test_short_text_never_reaches_backend(self, backend, client, capsys):
        with pytest.raises(SystemExit):
            await cli.cmd_search(client, argparse.Namespace(content_type="blogpost", text="abc", interactive=False))
        assert backend.requests == []

    async def test_interactive(self, backend, client, capsys, monkeypatch):
        backend.route("GET", "/v1/internal/contenttype", json={"data": [{"id": "blogpost", "name": "blogpost"}]})
        backend.route("GET", "/v1/content/blogpost", json=page(["hit"], 1))
        monkeypatch.setattr("sys.stdin", io.StringIO("he\nhello\n\n" + "x" * 60 + "\n:quit\nignored\n"))

        await cli.cmd_search(client, argparse.Namespace(content_type=None, text=None, interactive=True))
        out = capsys.readouterr().out

        assert "Searching 'blogpost'" in out
        assert out.count("found 1 results") == 3
        assert "Max 50 characters allowed." in out
        searches = [r for r in backend.requests if r.url.path.endswith("/content/blogpost")]
        assert len(searches) == 3
