import os
from datetime import datetime, timezone

import pytest
from google.api_core import exceptions as google_exceptions
from google.api_core.retry import Retry

from app.config import settings
from app.services.storage_service import (
    FirebaseBlobStore,
    StorageService,
    is_allowed,
    normalize_key,
    safe_name,
    storage_retry,
    storage_service,
)
from app.utils.errors import StorageError

MP3 = ("our song.mp3", b"ID3\x03\x00fake-mp3-bytes", "audio/mpeg")


class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.size = None
        self.updated = None
        self.cache_control = None
        self.metadata = None
        self.content_type = None

    def upload_from_string(self, data, content_type=None, timeout=None, retry=None):
        self.bucket.calls.append(("upload", timeout, retry))
        self.size = len(data)
        self.updated = datetime(2024, 2, 14, 12, 0, tzinfo=timezone.utc)
        self.content_type = content_type
        self.bucket.blobs[self.name] = (self, data)

    def download_as_bytes(self, timeout=None, retry=None):
        self.bucket.calls.append(("download", timeout, retry))
        if self.bucket.error:
            raise self.bucket.error
        return self.bucket.blobs[self.name][1]

    def delete(self, timeout=None, retry=None):
        self.bucket.calls.append(("delete", timeout, retry))
        if self.name not in self.bucket.blobs:
            raise google_exceptions.NotFound("no such object")
        del self.bucket.blobs[self.name]


class FakeBucket:
    """Stands in for a google.cloud.storage Bucket."""

    name = "dearly-test.appspot.com"

    def __init__(self):
        self.blobs = {}
        self.calls = []
        self.error = None

    def blob(self, name):
        return self.blobs[name][0] if name in self.blobs else FakeBlob(self, name)

    def get_blob(self, name, timeout=None, retry=None):
        self.calls.append(("get", timeout, retry))
        if self.error:
            raise self.error
        return self.blobs[name][0] if name in self.blobs else None

    def list_blobs(self, prefix=None, timeout=None, retry=None):
        self.calls.append(("list", timeout, retry))
        return [blob for name, (blob, _) in self.blobs.items() if name.startswith(prefix)]


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def bucket_storage(bucket):
    return StorageService(store=FirebaseBlobStore(bucket=bucket, timeout=30.0, retry=storage_retry()))


def test_storage_paths_cannot_escape_the_root(tmp_path):
    storage = StorageService(root=str(tmp_path))
    assert storage.resolve("../outside.mp3") is None
    assert storage.resolve("music/../../outside.mp3") is None
    assert storage.resolve("/music/song.mp3") == str(tmp_path / "music" / "song.mp3")
    assert normalize_key("music/./song.mp3") == "music/song.mp3"
    assert normalize_key("..") is None
    assert normalize_key("") is None


async def test_traversal_is_never_found(tmp_path):
    storage = StorageService(root=str(tmp_path))
    assert not await storage.exists("../outside.mp3")
    assert not await storage.delete("../../etc/passwd")


def test_upload_name_and_type_helpers():
    assert safe_name("our song (live).mp3") == "our_song__live_.mp3"
    assert is_allowed("a.m4a", None, (".m4a",), ())
    assert is_allowed("blob", "audio/mpeg", (".mp3",), ("audio/mpeg",))
    assert not is_allowed("notes.txt", "text/plain", (".mp3",), ("audio/mpeg",))


async def test_save_list_and_delete(tmp_path):
    storage = StorageService(root=str(tmp_path))
    stored = await storage.save("music", "user_1234567890abc", "song.mp3", b"abc")

    assert stored["storagePath"].startswith("music/user_1234567890abc-")
    assert stored["url"].endswith(f"/static/{stored['storagePath']}")
    assert await storage.exists(stored["storagePath"])

    files = await storage.list_user_files("music", "user_1234567890abc")
    assert [f["originalName"] for f in files] == ["song.mp3"]
    assert await storage.list_user_files("music", "someone_else_1234") == []

    assert await storage.delete(stored["storagePath"]) is True
    assert await storage.delete(stored["storagePath"]) is False


async def test_bucket_store_passes_timeout_and_retry(bucket, bucket_storage):
    stored = await bucket_storage.save("voice-messages", "user_1234567890abc", "hello.webm", b"webm", "audio/webm")
    key = stored["storagePath"]

    blob, data = bucket.blobs[key]
    assert data == b"webm"
    assert blob.content_type == "audio/webm"
    assert blob.cache_control == "public, max-age=31536000"
    assert blob.metadata["uploadedBy"] == "user_1234567890abc"
    assert stored["url"].endswith(f"/api/audio-proxy/{key}")

    assert await bucket_storage.exists(key)
    assert await bucket_storage.read(key) == b"webm"
    info = await bucket_storage.describe(key, "user_1234567890abc")
    assert info["originalName"] == "hello.webm"
    assert info["uploadedAt"] == "2024-02-14T12:00:00Z"

    files = await bucket_storage.list_user_files("voice-messages", "user_1234567890abc")
    assert [f["storagePath"] for f in files] == [key]

    assert await bucket_storage.delete(key) is True
    assert await bucket_storage.delete(key) is False

    for _, timeout, retry in bucket.calls:
        assert timeout == 30.0
        assert isinstance(retry, Retry)


async def test_bucket_errors_become_storage_errors(bucket, bucket_storage):
    bucket.error = google_exceptions.ServiceUnavailable("bucket down")
    with pytest.raises(StorageError):
        await bucket_storage.exists("music/anything.mp3")


def test_music_upload_lifecycle(client, user_id):
    uploaded = client.post(f"/api/music-upload/{user_id}", files={"music": MP3})

    assert uploaded.status_code == 200
    file = uploaded.json()["file"]
    assert file["originalName"] == "our song.mp3"
    assert file["mimetype"] == "audio/mpeg"
    assert file["size"] == len(MP3[1])
    filename = file["filename"]

    listed = client.get(f"/api/music-upload/list/{user_id}").json()
    assert listed["count"] == 1
    assert listed["files"][0]["filename"] == filename

    info = client.get(f"/api/music-upload/{user_id}/{filename}")
    assert info.status_code == 200
    assert info.json()["file"]["storagePath"] == f"music/{filename}"

    forbidden = client.delete(f"/api/music-upload/someone_else_1234/{filename}")
    assert forbidden.status_code == 403

    assert client.delete(f"/api/music-upload/{user_id}/{filename}").status_code == 200
    assert client.delete(f"/api/music-upload/{user_id}/{filename}").status_code == 404
    assert client.get(f"/api/music-upload/list/{user_id}").json()["count"] == 0


def test_music_upload_validation(client, user_id, monkeypatch):
    assert client.post(f"/api/music-upload/{user_id}").status_code == 400

    wrong_type = client.post(
        f"/api/music-upload/{user_id}", files={"music": ("notes.txt", b"hello", "text/plain")}
    )
    assert wrong_type.status_code == 400

    monkeypatch.setattr(settings, "music_max_bytes", 4)
    too_big = client.post(f"/api/music-upload/{user_id}", files={"music": MP3})
    assert too_big.status_code == 413


def test_voice_upload_attaches_to_letter(client, make_letter, user_id):
    letter_id = make_letter(user_id)["letter"]["id"]

    response = client.post(
        f"/api/voice-upload/{user_id}",
        files={"audio": ("recording.webm", b"webm-bytes", "audio/webm")},
        data={"letterId": letter_id, "receiverName": "Sam"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Voice message uploaded successfully"
    assert body["fileName"].startswith("voice-messages/")
    assert body["mimeType"] == "audio/webm"
    stored_file = storage_service.resolve(body["fileName"])
    assert os.path.isfile(stored_file)

    messages = client.get(f"/api/letters/{user_id}/{letter_id}/voice-messages").json()
    assert len(messages) == 1
    assert messages[0]["senderName"] == "Sam"

    notification = client.get(f"/api/notifications/{user_id}").json()["notifications"][0]
    assert notification["type"] == "voice_message"
    assert notification["message"] == "Sam sent you a voice message! 🎤"

    deleted = client.delete(f"/api/letters/{user_id}/{letter_id}/voice-messages/{messages[0]['id']}")
    assert deleted.status_code == 200
    assert not os.path.isfile(stored_file)
    assert client.get(f"/api/letters/{user_id}/{letter_id}/voice-messages").json() == []


def test_voice_upload_without_letter(client, user_id):
    response = client.post(
        f"/api/voice-upload/{user_id}",
        files={"audio": ("clip.wav", b"RIFF-bytes", "audio/wav")},
    )
    assert response.status_code == 200
    notification = client.get(f"/api/notifications/{user_id}").json()["notifications"][0]
    assert notification["message"] == "Your loved one sent you a voice message! 🎤"


def test_audio_proxy(client, user_id):
    stored = client.post(f"/api/music-upload/{user_id}", files={"music": MP3}).json()["file"]

    response = client.get(f"/api/audio-proxy/{stored['storagePath']}")

    assert response.status_code == 200
    assert response.content == MP3[1]
    assert response.headers["content-type"].startswith("audio/mpeg")
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["cache-control"] == "public, max-age=31536000"

    assert client.get("/api/audio-proxy/music/missing.mp3").status_code == 404


def test_audio_proxy_streams_from_bucket(client, bucket, monkeypatch):
    store = FirebaseBlobStore(bucket=bucket, timeout=30.0, retry=storage_retry())
    monkeypatch.setattr(storage_service, "_store", store)
    store.write("voice-messages/user_1-1-hi.webm", b"bucket-bytes", "audio/webm", {})

    response = client.get("/api/audio-proxy/voice-messages/user_1-1-hi.webm")
    assert response.status_code == 200
    assert response.content == b"bucket-bytes"
    assert response.headers["content-type"].startswith("audio/webm")
    assert response.headers["cache-control"] == "public, max-age=31536000"

    bucket.error = google_exceptions.ServiceUnavailable("bucket down")
    assert client.get("/api/audio-proxy/voice-messages/user_1-1-hi.webm").status_code == 500


def test_music_upload_reports_storage_failure(client, user_id, bucket, monkeypatch):
    class BrokenBlob(FakeBlob):
        def upload_from_string(self, data, content_type=None, timeout=None, retry=None):
            raise google_exceptions.ServiceUnavailable("bucket down")

    monkeypatch.setattr(bucket, "blob", lambda name: BrokenBlob(bucket, name))
    store = FirebaseBlobStore(bucket=bucket, timeout=30.0, retry=storage_retry())
    monkeypatch.setattr(storage_service, "_store", store)

    response = client.post(f"/api/music-upload/{user_id}", files={"music": MP3})
    assert response.status_code == 500
