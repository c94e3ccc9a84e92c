from sqlmodel import select

from podsite.models.comment import Comment
from podsite.models.episode import Episode
from podsite.models.slug import EpisodeSlug
from podsite.models.transcript import TranscriptSegment
from podsite.services.player.listeners import MAX_LISTENERS, MIN_LISTENERS


def _create(admin_client, wav_bytes, **form):
    data = {"title": "Hidden Dangers", "host": "Dr. Ada", "description": "About ears", "category": "Health"}
    data.update(form)
    files = {"audio": ("episode one.wav", wav_bytes(seconds=1.0), "audio/wav")}
    return admin_client.post("/api/episodes", data=data, files=files)


def test_create_uploads_audio_and_extracts_peaks(admin_client, wav_bytes, s3):
    r = _create(admin_client, wav_bytes, episode_number="7", references="1. First\n\n2. Second")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["audio_url"].startswith("https://cdn.test/episodes/audio/")
    assert body["audio_url"].endswith("-episode-one.wav")
    assert body["episode_number"] == 7
    assert len(body["peaks"]) == 100
    assert abs(body["duration"] - 1.0) < 0.01
    assert body["duration_label"] == "0:01"
    assert body["reference_items"] == ["First", "Second"]
    assert MIN_LISTENERS <= body["listening"] <= MAX_LISTENERS
    assert any(k.startswith("audio/") for k in s3.objects)


def test_create_with_undecodable_audio_leaves_peaks_empty(admin_client):
    files = {"audio": ("broken.wav", b"not really audio", "audio/wav")}
    r = admin_client.post("/api/episodes", data={"title": "T", "host": "H"}, files=files)
    assert r.status_code == 201, r.text
    assert r.json()["peaks"] is None
    assert r.json()["duration"] == 0.0


def test_create_with_cover_image(admin_client, wav_bytes, s3):
    files = {
        "audio": ("a.wav", wav_bytes(), "audio/wav"),
        "image": ("cover.png", b"\x89PNG", "image/png"),
    }
    r = admin_client.post("/api/episodes", data={"title": "T", "host": "H"}, files=files)
    assert r.status_code == 201
    assert "/images/" in r.json()["image_url"]
    assert s3.content_types[next(k for k in s3.objects if k.startswith("images/"))] == "image/png"


def test_create_requires_title_and_admin(client, admin_client, wav_bytes):
    files = {"audio": ("a.wav", wav_bytes(), "audio/wav")}
    assert admin_client.post("/api/episodes", data={"title": "  ", "host": "H"}, files=files).status_code == 400
    assert admin_client.post("/api/episodes", data={"title": "T", "host": "H", "episode_number": "x"}, files=files).status_code == 400

    client.cookies.clear()
    r = client.post("/api/episodes", data={"title": "T", "host": "H"}, files=files)
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "http_error"


def test_list_is_newest_first_and_detail_includes_transcript(admin_client, wav_bytes, db):
    first = _create(admin_client, wav_bytes, title="First").json()
    second = _create(admin_client, wav_bytes, title="Second").json()
    listing = admin_client.get("/api/episodes").json()
    assert [e["title"] for e in listing][:2] == ["Second", "First"]

    from uuid import UUID
    ep_id = UUID(first["id"])
    db.add(TranscriptSegment(episode_id=ep_id, start_time=65.0, end_time=70.0, text="later"))
    db.add(TranscriptSegment(episode_id=ep_id, start_time=0.0, end_time=5.0, text="intro"))
    db.commit()

    detail = admin_client.get(f"/api/episodes/{first['id']}").json()
    assert [s["text"] for s in detail["transcript"]] == ["intro", "later"]
    assert detail["transcript"][1]["timestamp"] == "1:05"
    assert second["id"] != first["id"]


def test_detail_404(client):
    r = client.get("/api/episodes/00000000-0000-4000-8000-000000000000")
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Episode not found"


def test_update_fields_presence_semantics(admin_client, wav_bytes):
    ep = _create(admin_client, wav_bytes, episode_number="3", references="1. Keep").json()
    url = f"/api/episodes/{ep['id']}"

    r = admin_client.put(url, data={"title": "Renamed", "host": "H2"})
    assert r.status_code == 200, r.text
    assert r.json()["title"] == "Renamed"
    assert r.json()["episode_number"] == 3
    assert r.json()["reference_items"] == ["Keep"]

    r = admin_client.put(url, data={"title": "Renamed", "host": "H2", "episode_number": "", "references": ""})
    assert r.json()["episode_number"] is None
    assert r.json()["references"] is None

    r = admin_client.put(url, data={"title": "Renamed", "host": "H2", "image_url": "https://elsewhere.example/c.png"})
    assert r.json()["image_url"] == "https://elsewhere.example/c.png"


def test_update_new_image_deletes_old_object(admin_client, wav_bytes, s3):
    files = {"audio": ("a.wav", wav_bytes(), "audio/wav"), "image": ("old.png", b"old", "image/png")}
    ep = admin_client.post("/api/episodes", data={"title": "T", "host": "H"}, files=files).json()
    old_keys = {k for k in s3.objects if k.startswith("images/")}

    r = admin_client.put(
        f"/api/episodes/{ep['id']}",
        data={"title": "T", "host": "H"},
        files={"image": ("new.png", b"new", "image/png")},
    )
    assert r.status_code == 200
    image_keys = {k for k in s3.objects if k.startswith("images/")}
    assert old_keys.isdisjoint(image_keys)
    assert len(image_keys) == 1


def test_delete_cascades_and_removes_objects(admin_client, wav_bytes, db, s3):
    ep = _create(admin_client, wav_bytes).json()
    from uuid import UUID
    ep_id = UUID(ep["id"])
    db.add(TranscriptSegment(episode_id=ep_id, start_time=0, end_time=1, text="x"))
    db.add(Comment(episode_id=ep_id, name="A", content="hi"))
    db.add(EpisodeSlug(episode_id=ep_id, slug="to-go"))
    db.commit()

    r = admin_client.delete(f"/api/episodes/{ep['id']}")
    assert r.status_code == 200
    assert r.json()["removed_objects"] == 1
    db.expire_all()
    assert db.exec(select(Episode)).all() == []
    assert db.exec(select(TranscriptSegment)).all() == []
    assert db.exec(select(Comment)).all() == []
    assert db.exec(select(EpisodeSlug)).all() == []
    assert not any(k.startswith("audio/") for k in s3.objects)


def test_waveform_svg_and_active_segment(admin_client, wav_bytes, db):
    ep = _create(admin_client, wav_bytes).json()
    r = admin_client.get(f"/api/episodes/{ep['id']}/waveform.svg", params={"progress": 0.5, "width": 300, "height": 40})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("image/svg+xml")
    assert r.text.count("<rect") == 100

    from uuid import UUID
    ep_id = UUID(ep["id"])
    db.add(TranscriptSegment(episode_id=ep_id, start_time=0, end_time=5, text="a"))
    db.add(TranscriptSegment(episode_id=ep_id, start_time=10, end_time=15, text="b"))
    db.commit()
    at = lambda t: admin_client.get(f"/api/episodes/{ep['id']}/transcript/at", params={"t": t}).json()
    assert at(7)["segment"] is None
    assert at(12)["segment"]["text"] == "b"
    assert at(12)["segment"]["timestamp"] == "0:10"


def test_waveform_without_peaks_is_empty_svg(client, db):
    ep = Episode(title="T", host="H", audio_url="https://cdn.test/episodes/audio/x.mp3")
    db.add(ep)
    db.commit()
    r = client.get(f"/api/episodes/{ep.id}/waveform.svg")
    assert r.status_code == 200
    assert "<rect" not in r.text


def test_create_decodes_audio_off_the_event_loop(admin_client, wav_bytes, monkeypatch):
    from starlette.concurrency import run_in_threadpool

    from podsite.routers.episodes import write

    offloaded = []

    async def recording_threadpool(func, *args, **kwargs):
        offloaded.append(func)
        return await run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr(write, "run_in_threadpool", recording_threadpool)
    r = _create(admin_client, wav_bytes)
    assert r.status_code == 201, r.text
    assert write._extract_peaks in offloaded
    assert len(r.json()["peaks"]) == 100


def test_payload_time_labels(client, db):
    ep = Episode(title="Long", host="H", audio_url="https://cdn.test/episodes/audio/long.mp3", duration=3725.0)
    pending = Episode(title="Pending", host="H", audio_url="https://cdn.test/episodes/audio/p.mp3")
    db.add(ep)
    db.add(pending)
    db.commit()

    body = client.get(f"/api/episodes/{ep.id}").json()
    assert body["duration_label"] == "1:02:05"
    assert body["duration_words"] == "1 hour, 2 minutes"
    assert body["remaining_label"] == "62m 5s left"
    assert client.get(f"/api/episodes/{pending.id}").json()["remaining_label"] == "Loading..."

    at = client.get(f"/api/episodes/{ep.id}/transcript/at", params={"t": 3600}).json()
    assert at["remaining"] == "2m 5s left"
    assert client.get(f"/api/episodes/{ep.id}/transcript/at", params={"t": 9999}).json()["remaining"] == "0s left"
