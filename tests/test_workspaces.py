"""
Tests for workspace lifecycle, listings and sharing.
"""
import asyncio
import os

from sqlalchemy import select

from docspace.core.auth import CurrentUser
from docspace.core.db import Database
from docspace.core.locks import KeyedLock
from docspace.db.base import DocumentStoreBase
from docspace.db.models.workspace import Workspace, WorkspacePermission
from docspace.domains.documents.schemas import IncomingFile, UploadMetadata
from docspace.domains.documents.services import DocumentService
from docspace.domains.workspaces.schemas import ShareRequest, WorkspaceCreate
from docspace.domains.workspaces.services import WorkspaceService
from docspace.storage import LocalFileStorage
from tests.conftest import API


class TestWorkspaceCRUD:
    def test_create_workspace(self, client, alice):
        response = client.post(
            f"{API}/workspaces",
            json={"name": "Research", "description": "Papers", "is_public": True},
            headers=alice,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Research"
        assert data["description"] == "Papers"
        assert data["is_public"] is True
        assert data["deleted"] is False
        assert data["user_email"] == "alice@example.com"
        assert data["document_ids"] == []
        assert data["permissions"] == []

    def test_requires_authentication(self, client):
        assert client.get(f"{API}/workspaces").status_code == 401
        assert client.post(f"{API}/workspaces", json={"name": "x"}).status_code == 401

    def test_blank_name_is_rejected(self, client, alice):
        response = client.post(f"{API}/workspaces", json={"name": "   "}, headers=alice)
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_list_mine_includes_documents(self, client, alice, bob, create_workspace, upload):
        workspace = create_workspace(alice, name="Mine")
        create_workspace(bob, name="Not mine")
        upload(alice, workspace["id"], file_name="a.txt")

        response = client.get(f"{API}/workspaces", headers=alice)
        assert response.status_code == 200
        workspaces = response.json()
        assert [w["name"] for w in workspaces] == ["Mine"]
        assert [d["name"] for d in workspaces[0]["documents"]] == ["a.txt"]

    def test_get_workspace_reports_owner_role(self, client, alice, create_workspace):
        workspace = create_workspace(alice)
        response = client.get(f"{API}/workspaces/{workspace['id']}", headers=alice)
        assert response.status_code == 200
        assert response.json()["role"] == "owner"

    def test_private_workspace_is_forbidden_to_strangers(self, client, alice, bob, create_workspace):
        workspace = create_workspace(alice)
        response = client.get(f"{API}/workspaces/{workspace['id']}", headers=bob)
        assert response.status_code == 403

    def test_public_workspace_is_visible_without_role(self, client, alice, bob, create_workspace):
        workspace = create_workspace(alice, is_public=True)
        response = client.get(f"{API}/workspaces/{workspace['id']}", headers=bob)
        assert response.status_code == 200
        assert response.json()["role"] is None

    def test_unknown_workspace(self, client, alice):
        response = client.get(f"{API}/workspaces/does-not-exist", headers=alice)
        assert response.status_code == 404
        assert response.json() == {"error": "Workspace not found"}

    def test_owner_updates_metadata(self, client, alice, create_workspace):
        workspace = create_workspace(alice, name="Old", description="keep me")
        response = client.put(
            f"{API}/workspaces/{workspace['id']}",
            json={"name": "New", "is_public": True},
            headers=alice,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "New"
        assert data["is_public"] is True
        assert data["description"] == "keep me"
        assert data["updated_at"] >= workspace["updated_at"]

    def test_editor_cannot_update_metadata(self, client, alice, bob, create_workspace, share):
        workspace = create_workspace(alice)
        share(alice, workspace["id"], "bob@example.com", "editor")
        response = client.put(f"{API}/workspaces/{workspace['id']}", json={"name": "X"}, headers=bob)
        assert response.status_code == 403


class TestWorkspaceTrash:
    def test_soft_delete_and_restore(self, client, alice, create_workspace):
        workspace = create_workspace(alice, name="Trash me")
        ws_id = workspace["id"]

        response = client.delete(f"{API}/workspaces/{ws_id}", headers=alice)
        assert response.status_code == 200
        assert response.json()["deleted"] is True

        assert client.get(f"{API}/workspaces", headers=alice).json() == []
        deleted = client.get(f"{API}/workspaces/deleted", headers=alice).json()
        assert [w["id"] for w in deleted] == [ws_id]

        response = client.put(f"{API}/workspaces/{ws_id}/restore", headers=alice)
        assert response.status_code == 200
        restored = response.json()

        assert client.get(f"{API}/workspaces/deleted", headers=alice).json() == []
        ignored = {"updated_at"}
        assert {k: v for k, v in restored.items() if k not in ignored} == {
            k: v for k, v in workspace.items() if k not in ignored
        }

    def test_double_delete_and_double_restore_are_rejected(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        assert client.put(f"{API}/workspaces/{ws_id}/restore", headers=alice).status_code == 400
        client.delete(f"{API}/workspaces/{ws_id}", headers=alice)
        assert client.delete(f"{API}/workspaces/{ws_id}", headers=alice).status_code == 400

    def test_only_owner_can_trash(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "editor")
        assert client.delete(f"{API}/workspaces/{ws_id}", headers=bob).status_code == 403

    def test_deleted_workspace_detail_is_not_found(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        client.delete(f"{API}/workspaces/{ws_id}", headers=alice)
        assert client.get(f"{API}/workspaces/{ws_id}", headers=alice).status_code == 404


class TestPermanentDelete:
    def test_active_workspace_cannot_be_purged(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        response = client.delete(f"{API}/workspaces/{ws_id}/permanent-delete", headers=alice)
        assert response.status_code == 400
        assert client.get(f"{API}/workspaces/{ws_id}", headers=alice).status_code == 200

    def test_purge_removes_documents_files_and_favorites(
        self, client, alice, bob, create_workspace, upload, share, settings
    ):
        ws_id = create_workspace(alice, is_public=True)["id"]
        document = upload(alice, ws_id).json()
        share(alice, ws_id, "bob@example.com", "viewer")
        client.post(f"{API}/favorites/{ws_id}", headers=bob)
        stored_files = os.listdir(settings.upload_dir)
        assert len(stored_files) == 1

        client.delete(f"{API}/workspaces/{ws_id}", headers=alice)
        response = client.delete(f"{API}/workspaces/{ws_id}/permanent-delete", headers=alice)
        assert response.status_code == 200

        assert client.get(f"{API}/workspaces/{ws_id}", headers=alice).status_code == 404
        assert client.get(f"{API}/documents/{document['id']}", headers=alice).status_code == 404
        assert client.get(f"{API}/workspaces/deleted", headers=alice).json() == []
        assert client.get(f"{API}/workspaces/shared-workspaces", headers=bob).json() == []
        assert client.get(f"{API}/favorites/{ws_id}/check", headers=bob).json() == {
            "is_favorited": False
        }
        assert os.listdir(settings.upload_dir) == []

    def test_failed_object_deletion_keeps_workspace_for_retry(
        self, client, app, alice, create_workspace, upload
    ):
        ws_id = create_workspace(alice)["id"]
        kept = upload(alice, ws_id, file_name="kept.txt").json()
        gone = upload(alice, ws_id, file_name="gone.txt").json()
        client.delete(f"{API}/workspaces/{ws_id}", headers=alice)

        storage = app.state.storage
        real_delete = storage.delete

        async def flaky_delete(key):
            if key.endswith("kept.txt"):
                raise OSError("disk unavailable")
            await real_delete(key)

        storage.delete = flaky_delete
        response = client.delete(f"{API}/workspaces/{ws_id}/permanent-delete", headers=alice)
        assert response.status_code == 500
        body = response.json()
        assert len(body["failed_keys"]) == 1
        assert body["failed_keys"][0].endswith("kept.txt")

        deleted = client.get(f"{API}/workspaces/deleted", headers=alice).json()
        assert [w["id"] for w in deleted] == [ws_id]
        assert deleted[0]["document_ids"] == [kept["id"]]
        assert client.get(f"{API}/documents/{gone['id']}", headers=alice).status_code == 404

        storage.delete = real_delete
        response = client.delete(f"{API}/workspaces/{ws_id}/permanent-delete", headers=alice)
        assert response.status_code == 200
        assert client.get(f"{API}/workspaces/deleted", headers=alice).json() == []


class TestListings:
    def test_recent_orders_by_update_and_respects_limit(self, client, alice, create_workspace):
        ids = [create_workspace(alice, name=f"W{i}")["id"] for i in range(7)]
        client.put(f"{API}/workspaces/{ids[0]}", json={"name": "Touched"}, headers=alice)

        recent = client.get(f"{API}/workspaces/recent", headers=alice).json()
        assert len(recent) == 5
        assert recent[0]["id"] == ids[0]

        recent = client.get(f"{API}/workspaces/recent?limit=2", headers=alice).json()
        assert len(recent) == 2

        assert client.get(f"{API}/workspaces/recent?limit=51", headers=alice).status_code == 400

    def test_public_listing_ranks_by_favorites(self, client, alice, bob, carol, create_workspace):
        once = create_workspace(alice, name="Once", is_public=True)
        twice = create_workspace(alice, name="Twice", is_public=True)
        never = create_workspace(alice, name="Never", is_public=True)
        create_workspace(alice, name="Private")

        client.post(f"{API}/favorites/{once['id']}", headers=bob)
        client.post(f"{API}/favorites/{twice['id']}", headers=bob)
        client.post(f"{API}/favorites/{twice['id']}", headers=carol)

        public = client.get(f"{API}/workspaces/public", headers=alice).json()
        assert [w["name"] for w in public] == ["Twice", "Once", "Never"]
        assert [w["favorite_count"] for w in public] == [2, 1, 0]

    def test_public_listing_excludes_deleted(self, client, alice, create_workspace):
        ws_id = create_workspace(alice, is_public=True)["id"]
        client.delete(f"{API}/workspaces/{ws_id}", headers=alice)
        assert client.get(f"{API}/workspaces/public", headers=alice).json() == []

    def test_shared_with_me(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice, name="Team")["id"]
        create_workspace(alice, name="Solo")
        share(alice, ws_id, "bob@example.com", "viewer")

        shared = client.get(f"{API}/workspaces/shared-workspaces", headers=bob).json()
        assert [(w["name"], w["role"]) for w in shared] == [("Team", "viewer")]
        assert client.get(f"{API}/workspaces/shared-workspaces", headers=alice).json() == []


class TestWorkspaceDocuments:
    def test_detail_search_and_sort(self, client, alice, create_workspace, upload):
        ws_id = create_workspace(alice)["id"]
        upload(alice, ws_id, file_name="beta.txt", content=b"12345")
        upload(alice, ws_id, file_name="alpha.txt", content=b"123")
        upload(alice, ws_id, file_name="gamma.md", content=b"1")

        def names(**params):
            response = client.get(f"{API}/workspaces/{ws_id}", params=params, headers=alice)
            assert response.status_code == 200
            return [d["name"] for d in response.json()["documents"]]

        assert names() == ["beta.txt", "alpha.txt", "gamma.md"]
        assert names(sort_by="name") == ["alpha.txt", "beta.txt", "gamma.md"]
        assert names(sort_by="name", order="desc") == ["gamma.md", "beta.txt", "alpha.txt"]
        assert names(sort_by="file_size") == ["gamma.md", "alpha.txt", "beta.txt"]
        assert names(search="TXT") == ["beta.txt", "alpha.txt"]

    def test_unknown_sort_field(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        response = client.get(f"{API}/workspaces/{ws_id}?sort_by=owner", headers=alice)
        assert response.status_code == 400

    def test_add_document_through_workspace_route(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        response = client.post(
            f"{API}/workspaces/{ws_id}/documents",
            files={"file": ("plan.txt", b"the plan", "text/plain")},
            data={"tags": "a, b"},
            headers=alice,
        )
        assert response.status_code == 201
        document = response.json()
        assert document["workspace_id"] == ws_id
        assert document["tags"] == ["a", "b"]

        detail = client.get(f"{API}/workspaces/{ws_id}", headers=alice).json()
        assert detail["document_ids"] == [document["id"]]

    def test_remove_document(self, client, alice, bob, create_workspace, upload, share, settings):
        ws_id = create_workspace(alice)["id"]
        document = upload(alice, ws_id).json()
        share(alice, ws_id, "bob@example.com", "editor")

        response = client.delete(f"{API}/workspaces/{ws_id}/documents/{document['id']}", headers=bob)
        assert response.status_code == 200
        detail = client.get(f"{API}/workspaces/{ws_id}", headers=alice).json()
        assert detail["document_ids"] == []
        assert detail["documents"] == []
        assert os.listdir(settings.upload_dir) == []

        response = client.delete(f"{API}/workspaces/{ws_id}/documents/{document['id']}", headers=alice)
        assert response.status_code == 404

    def test_viewer_cannot_remove_document(self, client, alice, bob, create_workspace, upload, share):
        ws_id = create_workspace(alice)["id"]
        document = upload(alice, ws_id).json()
        share(alice, ws_id, "bob@example.com", "viewer")
        response = client.delete(f"{API}/workspaces/{ws_id}/documents/{document['id']}", headers=bob)
        assert response.status_code == 403


class TestSharing:
    def test_owner_shares_with_editor(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        response = share(alice, ws_id, "Bob@Example.com", "editor")
        assert response.status_code == 200
        assert response.json()["permissions"] == [
            {"user_email": "bob@example.com", "permission": "editor"}
        ]
        detail = client.get(f"{API}/workspaces/{ws_id}", headers=bob).json()
        assert detail["role"] == "editor"

    def test_duplicate_grant_is_rejected(self, client, alice, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "viewer")
        response = share(alice, ws_id, "bob@example.com", "editor")
        assert response.status_code == 400

        detail = client.get(f"{API}/workspaces/{ws_id}", headers=alice).json()
        assert detail["permissions"] == [{"user_email": "bob@example.com", "permission": "viewer"}]

    def test_owner_email_cannot_be_granted(self, client, alice, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        assert share(alice, ws_id, "alice@example.com", "viewer").status_code == 400

    def test_editor_can_share_viewer_cannot(self, client, alice, bob, carol, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "editor")
        assert share(bob, ws_id, "carol@example.com", "viewer").status_code == 200
        assert share(carol, ws_id, "dave@example.com", "viewer").status_code == 403

    def test_stranger_cannot_share(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        assert share(bob, ws_id, "bob@example.com", "editor").status_code == 403

    def test_invalid_permission_value(self, client, alice, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        response = share(alice, ws_id, "bob@example.com", "owner")
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"


class TestRevoke:
    def test_owner_revokes_editor(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "editor")

        response = client.delete(f"{API}/workspaces/{ws_id}/share/bob@example.com", headers=alice)
        assert response.status_code == 200
        assert response.json()["permissions"] == []
        assert client.get(f"{API}/workspaces/{ws_id}", headers=bob).status_code == 403
        assert client.get(f"{API}/workspaces/shared-workspaces", headers=bob).json() == []

    def test_revoke_then_regrant_upgrades(self, client, alice, bob, create_workspace, share):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "viewer")
        client.delete(f"{API}/workspaces/{ws_id}/share/bob@example.com", headers=alice)
        assert share(alice, ws_id, "bob@example.com", "editor").status_code == 200
        assert client.get(f"{API}/workspaces/{ws_id}", headers=bob).json()["role"] == "editor"

    def test_editor_may_revoke_viewer_but_not_editor(
        self, client, alice, bob, carol, create_workspace, share
    ):
        ws_id = create_workspace(alice)["id"]
        share(alice, ws_id, "bob@example.com", "editor")
        share(alice, ws_id, "carol@example.com", "viewer")
        share(alice, ws_id, "dave@example.com", "editor")

        url = f"{API}/workspaces/{ws_id}/share"
        assert client.delete(f"{url}/dave@example.com", headers=bob).status_code == 403
        assert client.delete(f"{url}/carol@example.com", headers=bob).status_code == 200

    def test_revoking_missing_grant(self, client, alice, create_workspace):
        ws_id = create_workspace(alice)["id"]
        response = client.delete(f"{API}/workspaces/{ws_id}/share/nobody@example.com", headers=alice)
        assert response.status_code == 404


class TestConcurrentMutations:
    """Workspace list mutations from parallel requests must not overwrite each other."""

    def test_services_use_the_shared_lock_registry(self, settings):
        locks = KeyedLock()
        storage = LocalFileStorage(settings.upload_dir)
        assert WorkspaceService(None, storage, locks).locks is locks
        assert DocumentService(None, settings, storage, locks).locks is locks

    def test_parallel_shares_and_uploads_keep_every_entry(self, settings):
        owner = CurrentUser(national_id="OWNER", email="owner@example.com")
        emails = [f"user{n}@example.com" for n in range(5)]

        async def scenario():
            database = Database(settings.document_database_url)
            await database.create_all(DocumentStoreBase.metadata)
            storage = LocalFileStorage(settings.upload_dir)
            locks = KeyedLock()
            try:
                async with database.session_factory() as session:
                    workspace = await WorkspaceService(session, storage, locks).create_workspace(
                        WorkspaceCreate(name="Team"), owner
                    )

                async def share(email):
                    async with database.session_factory() as session:
                        await WorkspaceService(session, storage, locks).share(
                            workspace.id, ShareRequest(email=email, permission="viewer"), owner
                        )

                async def upload(n):
                    incoming = IncomingFile(f"file{n}.txt", "text/plain", b"data")
                    async with database.session_factory() as session:
                        document = await DocumentService(session, settings, storage, locks).upload(
                            workspace.id, incoming, UploadMetadata(), owner
                        )
                        return document.id

                await asyncio.gather(*(share(email) for email in emails))
                uploaded = await asyncio.gather(*(upload(n) for n in range(5)))

                async with database.session_factory() as session:
                    stored = await session.get(Workspace, workspace.id)
                    rows = (await session.execute(select(WorkspacePermission))).scalars().all()
                    return stored, rows, uploaded
            finally:
                await database.dispose()

        stored, rows, uploaded = asyncio.run(scenario())
        assert sorted(grant["user_email"] for grant in stored.permissions) == emails
        assert sorted(row.user_email for row in rows) == emails
        assert sorted(stored.document_ids) == sorted(uploaded)
