"""Tests for the HTTP API with in-memory stores behind the service container."""
import pytest
from fakes import FakeExtractor, InMemoryGalleryStore, InMemoryNotificationSink, InMemorySettingsStore, make_face
from httpx import ASGITransport, AsyncClient

from facewatch.core.container import ServiceContainer
from facewatch.core.exceptions import ServiceNotInitializedError
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.infrastructure.dependencies import get_container
from facewatch.main import app, create_app

API = "/api/v1"
ALICE = [0.0, 0.0, 0.0, 0.0]


@pytest.fixture
async def container():
    cont = ServiceContainer()
    await cont.initialize(
        gallery_store=InMemoryGalleryStore(),
        notification_sink=InMemoryNotificationSink(),
        settings_store=InMemorySettingsStore(),
        extractor=FakeExtractor(),
    )
    yield cont
    await cont.cleanup()


@pytest.fixture
async def client(container):
    """Client for the app; the lifespan does not run, the container is injected."""
    app.dependency_overrides[get_container] = lambda: container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def alice(container):
    return await container.gallery.create_identity_with_face(make_face(ALICE, name="Alice"))


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_reports_container_state(self, container):
        application = create_app(container)

        async with AsyncClient(transport=ASGITransport(app=application), base_url="http://test") as c:
            data = (await c.get("/health")).json()

        assert data["services_initialized"] is True
        assert data["version"]

    async def test_uninitialized_services_return_503(self, client):
        def unavailable():
            raise ServiceNotInitializedError("Service container could not be initialized")

        app.dependency_overrides[get_container] = unavailable

        response = await client.get(f"{API}/persons")

        assert response.status_code == 503


class TestPersonsAPI:
    """Tests for /api/v1/persons endpoints"""

    async def test_list_persons(self, client, alice):
        response = await client.get(f"{API}/persons")

        assert response.status_code == 200
        data = response.json()
        assert [person["name"] for person in data] == ["Alice"]
        assert data[0]["face_count"] == 1
        assert data[0]["faces"][0]["embedding_size"] == 4

    async def test_get_person(self, client, alice):
        identity_id, face_id = alice

        response = await client.get(f"{API}/persons/{identity_id}")

        assert response.status_code == 200
        assert response.json()["faces"][0]["id"] == face_id

    async def test_get_missing_person(self, client):
        response = await client.get(f"{API}/persons/missing")
        assert response.status_code == 404

    async def test_update_person(self, client, alice):
        identity_id, _ = alice

        response = await client.patch(
            f"{API}/persons/{identity_id}",
            json={"name": "Alicia", "notify_on_recognition": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Alicia"
        assert data["notify_on_recognition"] is False
        assert data["notes"] is None

    async def test_update_rejects_empty_name(self, client, alice):
        identity_id, _ = alice

        response = await client.patch(f"{API}/persons/{identity_id}", json={"name": ""})

        assert response.status_code == 422

    async def test_delete_person(self, client, container, alice):
        identity_id, face_id = alice

        response = await client.delete(f"{API}/persons/{identity_id}")

        assert response.status_code == 204
        assert await container.gallery.get_face(face_id) is None
        assert (await client.delete(f"{API}/persons/{identity_id}")).status_code == 404


class TestFacesAPI:
    """Tests for /api/v1/faces endpoints"""

    async def test_upload_creates_person_named_after_file(self, client, container):
        container.extractor.register(b"alice-bytes", ALICE)

        response = await client.post(
            f"{API}/faces/upload",
            files={"file": ("alice.jpg", b"alice-bytes", "image/jpeg")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "stored"
        assert (await container.gallery.get_identity(data["identity_id"])).name == "alice"

    async def test_upload_merges_into_known_person(self, client, container, alice):
        identity_id, _ = alice
        container.extractor.register(b"alice-again", [0.1, 0.0, 0.0, 0.0])

        response = await client.post(
            f"{API}/faces/upload",
            files={"file": ("photo.jpg", b"alice-again", "image/jpeg")},
            data={"name": "Alice"},
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "merged"
        assert response.json()["identity_id"] == identity_id

    async def test_upload_without_face(self, client):
        response = await client.post(
            f"{API}/faces/upload",
            files={"file": ("empty.jpg", b"no-face", "image/jpeg")},
        )
        assert response.status_code == 400

    async def test_upload_invalid_image(self, client):
        response = await client.post(
            f"{API}/faces/upload",
            files={"file": ("broken.jpg", b"broken", "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid image format"

    async def test_list_and_get_faces(self, client, container, alice):
        identity_id, face_id = alice
        standalone = await container.gallery.save_face(make_face([1.0, 0.0, 0.0, 0.0]))

        all_faces = (await client.get(f"{API}/faces")).json()
        owned = (await client.get(f"{API}/faces", params={"person_id": identity_id})).json()

        assert {face["id"] for face in all_faces} == {face_id, standalone}
        assert [face["id"] for face in owned] == [face_id]
        assert (await client.get(f"{API}/faces/{face_id}")).json()["identity_id"] == identity_id
        assert (await client.get(f"{API}/faces/missing")).status_code == 404

    async def test_update_face(self, client, alice):
        _, face_id = alice

        response = await client.patch(f"{API}/faces/{face_id}", json={"notes": "front door"})

        assert response.status_code == 200
        assert response.json()["notes"] == "front door"
        assert response.json()["name"] == "Alice"

    async def test_delete_last_face_removes_person(self, client, container, alice):
        identity_id, face_id = alice

        response = await client.delete(f"{API}/faces/{face_id}")

        assert response.status_code == 204
        assert await container.gallery.get_identity(identity_id) is None

    async def test_merge_faces(self, client, container, alice):
        identity_id, face_id = alice
        standalone = await container.gallery.save_face(make_face([0.3, 0.0, 0.0, 0.0]))

        response = await client.post(f"{API}/faces/{standalone}/merge", json={"target_face_id": face_id})

        assert response.status_code == 200
        assert response.json()["identity_id"] == identity_id

    async def test_merge_with_itself(self, client, alice):
        _, face_id = alice

        response = await client.post(f"{API}/faces/{face_id}/merge", json={"target_face_id": face_id})

        assert response.status_code == 400

    async def test_promote_face(self, client, container):
        face_id = await container.gallery.save_face(make_face(ALICE, name="Visitor"))

        response = await client.post(f"{API}/faces/{face_id}/person")

        assert response.status_code == 200
        identity = await container.gallery.get_identity(response.json()["identity_id"])
        assert identity.name == "Visitor"


class TestRecognitionAPI:
    async def test_recognize_frame(self, client, container, alice):
        identity_id, _ = alice
        container.extractor.register(b"frame", [0.2, 0.0, 0.0, 0.0], [5.0, 0.0, 0.0, 0.0])

        response = await client.post(
            f"{API}/recognition/frame",
            files={"file": ("frame.jpg", b"frame", "image/jpeg")},
        )

        assert response.status_code == 200
        faces = response.json()["faces"]
        assert [face["status"] for face in faces] == ["recognized", "unrecognized"]
        assert faces[0]["name"] == "Alice"
        assert faces[0]["identity_id"] == identity_id
        assert faces[0]["similarity"] == pytest.approx(0.8)

        unread = (await client.get(f"{API}/notifications")).json()
        assert [event["name"] for event in unread] == ["Alice"]

    async def test_face_with_notifications_off_is_recognized_silently(self, client, container, alice):
        _, face_id = alice
        container.extractor.register(b"frame", ALICE)
        await client.patch(f"{API}/faces/{face_id}", json={"notify_on_recognition": False})

        response = await client.post(
            f"{API}/recognition/frame",
            files={"file": ("frame.jpg", b"frame", "image/jpeg")},
        )

        assert response.json()["faces"][0]["name"] == "Alice"
        assert (await client.get(f"{API}/notifications")).json() == []

    async def test_invalid_frame(self, client):
        response = await client.post(
            f"{API}/recognition/frame",
            files={"file": ("frame.jpg", b"broken", "image/jpeg")},
        )
        assert response.status_code == 400


class TestNotificationsAPI:
    """Tests for /api/v1/notifications and /api/v1/settings endpoints"""

    async def _publish(self, container, face_id="face-1", name="Alice"):
        return await container.notification_sink.publish(RecognitionEvent(face_id=face_id, name=name))

    async def test_mark_read(self, client, container):
        event = await self._publish(container)

        response = await client.post(f"{API}/notifications/{event.id}/read")

        assert response.status_code == 204
        assert (await client.get(f"{API}/notifications")).json() == []
        assert (await client.post(f"{API}/notifications/missing/read")).status_code == 404

    async def test_mark_all_read(self, client, container):
        await self._publish(container)
        await self._publish(container, name="Bob")

        response = await client.post(f"{API}/notifications/read-all")

        assert response.json() == {"updated": 2}

    async def test_face_history(self, client, container, alice):
        _, face_id = alice
        await self._publish(container, face_id=face_id)
        await self._publish(container, face_id="other")

        response = await client.get(f"{API}/notifications/history/face/{face_id}")

        assert response.status_code == 200
        assert [event["face_id"] for event in response.json()] == [face_id]

    async def test_person_history(self, client, container, alice):
        identity_id, face_id = alice
        for _ in range(3):
            await self._publish(container, face_id=face_id)

        response = await client.get(f"{API}/notifications/history/person/{identity_id}", params={"limit": 2})

        assert len(response.json()) == 2

    async def test_unknown_history_kind(self, client):
        response = await client.get(f"{API}/notifications/history/camera/abc")
        assert response.status_code == 422

    async def test_notification_settings(self, client, container):
        assert (await client.get(f"{API}/settings/notifications")).json()["enabled"] is True

        response = await client.put(
            f"{API}/settings/notifications",
            json={"enabled": False, "cooldown_seconds": 15},
        )

        assert response.status_code == 200
        assert response.json() == {"enabled": False, "cooldown_seconds": 15.0}
        assert container.notification_throttle.enabled is False
        assert container.notification_throttle.cooldown_seconds == 15.0

    async def test_negative_cooldown_rejected(self, client):
        response = await client.put(
            f"{API}/settings/notifications",
            json={"enabled": True, "cooldown_seconds": -1},
        )
        assert response.status_code == 422
