import pytest

from core.errors import RangeNotSatisfiableError
from services.delivery_service import parse_range

PAYLOAD = bytes(i % 251 for i in range(1000))


@pytest.fixture
def stored(upload):
    resp = upload(file=("clip.mp4", PAYLOAD, "video/mp4"))
    assert resp.status_code == 201
    return resp.json()["videoFilename"]


def test_full_file_without_range(client, stored):
    resp = client.get(f"/uploads/{stored}")
    assert resp.status_code == 200
    assert resp.content == PAYLOAD
    assert resp.headers["accept-ranges"] == "bytes"
    assert resp.headers["content-length"] == "1000"
    assert resp.headers["content-type"] == "video/mp4"
    assert "content-range" not in resp.headers


def test_bounded_range(client, stored):
    resp = client.get(f"/uploads/{stored}", headers={"Range": "bytes=100-199"})
    assert resp.status_code == 206
    assert resp.content == PAYLOAD[100:200]
    assert len(resp.content) == 100
    assert resp.headers["content-range"] == "bytes 100-199/1000"
    assert resp.headers["content-length"] == "100"
    assert resp.headers["accept-ranges"] == "bytes"


def test_open_ended_range(client, stored):
    resp = client.get(f"/uploads/{stored}", headers={"Range": "bytes=0-"})
    assert resp.status_code == 206
    assert resp.headers["content-range"] == "bytes 0-999/1000"
    assert resp.content == PAYLOAD


def test_suffix_range(client, stored):
    resp = client.get(f"/uploads/{stored}", headers={"Range": "bytes=-10"})
    assert resp.status_code == 206
    assert resp.headers["content-range"] == "bytes 990-999/1000"
    assert resp.content == PAYLOAD[-10:]


def test_end_past_eof_is_clamped(client, stored):
    resp = client.get(f"/uploads/{stored}", headers={"Range": "bytes=900-5000"})
    assert resp.status_code == 206
    assert resp.headers["content-range"] == "bytes 900-999/1000"
    assert resp.content == PAYLOAD[900:]


@pytest.mark.parametrize(
    "header", ["bytes=1000-", "bytes=500-100", "items=0-1", "bytes=abc", "bytes=1_0-"]
)
def test_unsatisfiable_range(client, stored, header):
    resp = client.get(f"/uploads/{stored}", headers={"Range": header})
    assert resp.status_code == 416
    assert resp.headers["content-range"] == "bytes */1000"


def test_head_reports_size(client, stored):
    resp = client.head(f"/uploads/{stored}")
    assert resp.status_code == 200
    assert resp.headers["content-length"] == "1000"
    assert resp.headers["accept-ranges"] == "bytes"
    assert resp.content == b""


def test_missing_file_is_404(client):
    resp = client.get("/uploads/123-456.mp4")
    assert resp.status_code == 404


def test_traversal_is_404(client):
    resp = client.get("/uploads/..%2Fmovies.json")
    assert resp.status_code == 404


def test_thumbnail_content_type(client, upload):
    body = upload(thumbnail=("cover.jpg", b"\xff\xd8\xff", "image/jpeg")).json()
    resp = client.get(f"/uploads/{body['thumbnailFilename']}")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/jpeg"


@pytest.mark.parametrize(
    "header,expected",
    [
        ("bytes=0-0", (0, 0)),
        ("bytes=0-", (0, 9)),
        ("bytes=5-9", (5, 9)),
        ("bytes=5-20", (5, 9)),
        ("bytes=-3", (7, 9)),
        ("bytes=-20", (0, 9)),
        ("BYTES=1-2", (1, 2)),
    ],
)
def test_parse_range(header, expected):
    assert parse_range(header, 10) == expected


@pytest.mark.parametrize(
    "header",
    [
        "bytes=",
        "bytes=-",
        "bytes=-0",
        "bytes=10-",
        "bytes=0-1,3-4",
        "0-5",
        "bytes=1_0-",
        "bytes=+5-",
        "bytes=-+3",
        "bytes=0-1_0",
    ],
)
def test_parse_range_rejects(header):
    with pytest.raises(RangeNotSatisfiableError) as exc:
        parse_range(header, 10)
    assert exc.value.status_code == 416
    assert exc.value.headers == {"Content-Range": "bytes */10"}


def test_parse_range_on_empty_file():
    with pytest.raises(RangeNotSatisfiableError):
        parse_range("bytes=0-", 0)
