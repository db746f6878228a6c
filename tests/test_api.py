import boto3
from botocore.stub import Stubber

from app.main import app
from app.models import Share, Video
from app.services.blob_storage import S3BlobStorage, get_storage
from app.services.shares import SHARE_CODE_LENGTH, create_share

from conftest import VIDEO_BYTES


def _upload(client, headers, title="Trick shot", thumbnail: bytes | None = None):
    files = {"file": ("clip.mp4", VIDEO_BYTES, "video/mp4")}
    if thumbnail is not None:
        files["thumbnail"] = ("thumb.jpg", thumbnail, "image/jpeg")
    return client.post(
        "/api/videos",
        headers=headers,
        data={"title": title, "description": "first try", "duration_seconds": "9"},
        files=files,
    )


def test_root(client):
    assert client.get("/").json()["message"] == "ClipShare API"


def test_owner_endpoints_require_bearer_token(client):
    assert client.get("/api/videos").status_code == 401
    assert client.post("/api/videos/abc/shares").status_code == 401
    assert client.get("/api/videos", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_identity_event_materializes_profile(client, auth_headers):
    body = {"id": "idp-1", "email": "new.user@example.com"}

    assert client.post("/api/auth/identity-events", json=body).status_code == 401
    res = client.post("/api/auth/identity-events", json=body, headers={"X-Webhook-Secret": "hook-secret"})
    again = client.post("/api/auth/identity-events", json=body, headers={"X-Webhook-Secret": "hook-secret"})

    assert res.status_code == 200
    assert res.json()["display_name"] == "new.user"
    assert again.json()["id"] == "idp-1"

    from app.auth import Principal

    me = client.get("/api/auth/me", headers=auth_headers(Principal(user_id="idp-1", email="new.user@example.com")))
    assert me.json()["email"] == "new.user@example.com"


def test_upload_then_watch_through_share_link(client, owner, auth_headers):
    res = _upload(client, auth_headers(owner))
    assert res.status_code == 201
    payload = res.json()
    code = payload["share_code"]
    assert len(code) == SHARE_CODE_LENGTH
    assert payload["share_url"] == f"https://clips.example.com/v/{code}"

    public = client.get(f"/api/public/videos/{code}")
    assert public.status_code == 200
    assert public.json() == {
        "title": "Trick shot",
        "description": "first try",
        "storage_path": payload["storage_path"],
        "thumbnail_path": None,
        "view_count": 0,
    }

    assert client.post(f"/api/public/videos/{code}/views").status_code == 204
    assert client.get(f"/api/public/videos/{code}").json()["view_count"] == 1


def test_public_payload_hides_owner_and_file_details(client, owner, auth_headers):
    code = _upload(client, auth_headers(owner)).json()["share_code"]
    body = client.get(f"/api/public/videos/{code}").json()
    for hidden in ("user_id", "file_size", "mime_type", "id", "video_id", "duration_seconds"):
        assert hidden not in body


def test_stream_supports_range_requests(client, owner, auth_headers):
    code = _upload(client, auth_headers(owner)).json()["share_code"]

    full = client.get(f"/api/public/videos/{code}/stream")
    assert full.status_code == 200
    assert full.content == VIDEO_BYTES

    part = client.get(f"/api/public/videos/{code}/stream", headers={"Range": "bytes=4-11"})
    assert part.status_code == 206
    assert part.content == VIDEO_BYTES[4:12]
    assert part.headers["content-range"] == f"bytes 4-11/{len(VIDEO_BYTES)}"

    bad = client.get(f"/api/public/videos/{code}/stream", headers={"Range": f"bytes={len(VIDEO_BYTES) + 5}-"})
    assert bad.status_code == 416


def test_thumbnail_is_served_when_present(client, owner, auth_headers):
    code = _upload(client, auth_headers(owner), thumbnail=b"\xff\xd8jpeg").json()["share_code"]
    res = client.get(f"/api/public/videos/{code}/thumbnail")
    assert res.status_code == 200
    assert res.content == b"\xff\xd8jpeg"


def test_revoked_and_unknown_codes_answer_identically(client, owner, auth_headers):
    headers = auth_headers(owner)
    code = _upload(client, headers).json()["share_code"]
    share_id = client.get("/api/videos", headers=headers).json()[0]["shares"][0]["id"]

    res = client.patch(f"/api/shares/{share_id}", json={"is_active": False}, headers=headers)
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    revoked = client.get(f"/api/public/videos/{code}")
    unknown = client.get("/api/public/videos/zzzzzzzz")
    assert revoked.status_code == unknown.status_code == 404
    assert revoked.json() == unknown.json()
    assert client.get(f"/api/public/videos/{code}/stream").status_code == 404
    assert client.post(f"/api/public/videos/{code}/views").status_code == 204
    assert client.post("/api/public/videos/zzzzzzzz/views").status_code == 204

    client.patch(f"/api/shares/{share_id}", json={"is_active": True}, headers=headers)
    assert client.get(f"/api/public/videos/{code}").status_code == 200


def test_create_and_list_shares(client, owner, auth_headers):
    headers = auth_headers(owner)
    video_id = _upload(client, headers).json()["id"]

    res = client.post(f"/api/videos/{video_id}/shares", headers=headers)
    assert res.status_code == 201

    shares = client.get(f"/api/videos/{video_id}/shares", headers=headers).json()
    assert len(shares) == 2
    assert res.json()["share_code"] in {s["share_code"] for s in shares}


def test_strangers_get_the_same_denial_as_missing_videos(client, db, owner, stranger, auth_headers):
    video_id = _upload(client, auth_headers(owner)).json()["id"]
    before = db.query(Share).count()

    foreign = client.post(f"/api/videos/{video_id}/shares", headers=auth_headers(stranger))
    missing = client.post("/api/videos/does-not-exist/shares", headers=auth_headers(stranger))

    assert foreign.status_code == missing.status_code == 403
    assert foreign.json() == missing.json()
    assert db.query(Share).count() == before

    share_id = client.get("/api/videos", headers=auth_headers(owner)).json()[0]["shares"][0]["id"]
    toggle = client.patch(f"/api/shares/{share_id}", json={"is_active": False}, headers=auth_headers(stranger))
    assert toggle.status_code == 403
    assert client.delete(f"/api/videos/{video_id}", headers=auth_headers(stranger)).status_code == 403


def test_list_videos_is_scoped_to_caller(client, owner, stranger, auth_headers):
    _upload(client, auth_headers(owner), title="mine")
    _upload(client, auth_headers(stranger), title="theirs")

    titles = [v["title"] for v in client.get("/api/videos", headers=auth_headers(owner)).json()]
    assert titles == ["mine"]


def test_upload_rejects_non_video(client, owner, auth_headers):
    res = client.post(
        "/api/videos",
        headers=auth_headers(owner),
        data={"title": "notes"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert res.status_code == 400


def test_delete_video(client, db, storage, owner, auth_headers):
    headers = auth_headers(owner)
    payload = _upload(client, headers).json()
    code = payload["share_code"]

    assert client.delete(f"/api/videos/{payload['id']}", headers=headers).status_code == 204
    assert db.get(Video, payload["id"]) is None
    assert not storage.exists(payload["storage_path"])
    assert client.get(f"/api/public/videos/{code}").status_code == 404


def test_admin_stats_gate(client, make_profile, owner, auth_headers):
    admin = make_profile("admin@example.com", is_admin=True)
    _upload(client, auth_headers(owner))

    assert client.get("/api/admin/stats", headers=auth_headers(owner)).status_code == 403
    res = client.get("/api/admin/stats", headers=auth_headers(admin))
    assert res.status_code == 200
    stats = res.json()
    assert stats["total_users"] == 2
    assert stats["total_videos"] == 1
    assert stats["total_shares"] == 1
    assert stats["total_views"] == 0
    assert {u["email"] for u in stats["users"]} == {"admin@example.com", "owner@example.com"}


def test_stream_keeps_uploaded_mime_type(client, owner, auth_headers):
    res = client.post(
        "/api/videos",
        headers=auth_headers(owner),
        data={"title": "From my phone"},
        files={"file": ("clip.mov", VIDEO_BYTES, "video/quicktime")},
    )
    code = res.json()["share_code"]

    stream = client.get(f"/api/public/videos/{code}/stream")
    assert stream.status_code == 200
    assert stream.headers["content-type"].startswith("video/quicktime")
    assert "mime_type" not in client.get(f"/api/public/videos/{code}").json()


def test_stream_read_failure_answers_not_available(client, db, owner, make_video):
    video = make_video(owner)
    code = create_share(db, owner, video.id)
    key = video.storage_path
    s3_client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    app.dependency_overrides[get_storage] = lambda: S3BlobStorage(s3_client, "videos")

    with Stubber(s3_client) as stubber:
        for _ in range(2):
            stubber.add_response(
                "head_object",
                {"ContentLength": len(VIDEO_BYTES)},
                {"Bucket": "videos", "Key": key},
            )
        stubber.add_client_error("get_object", service_error_code="InternalError", http_status_code=500)
        res = client.get(f"/api/public/videos/{code}/stream", headers={"Range": "bytes=0-99"})

    assert res.status_code == 404
    assert res.json() == client.get("/api/public/videos/zzzzzzzz").json()
