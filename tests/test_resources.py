"""Tests for hearth.services.resources: visibility, ownership and download accounting."""

import tempfile
import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import SQLAlchemyError

from hearth.core.errors import Forbidden, InternalError, NotFound, ValidationError
from hearth.models import Resource
from hearth.schemas.auth import CurrentUser
from hearth.schemas.resources import ResourceUpdateRequest
from hearth.services import resources as svc
from hearth.storage import BlobStoreError, LocalBlobStore
from tests.support import DatabaseTestCase

MAX_BYTES = 1024


class ResourceTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self._tmp = tempfile.TemporaryDirectory()
        self.store = LocalBlobStore(self._tmp.name)
        self.admin = self.current(self.make_user("Admin", role="admin"))
        self.member = self.current(self.make_user("Mia"))
        self.other = self.current(self.make_user("Otto"))

    def tearDown(self) -> None:
        self._tmp.cleanup()
        super().tearDown()

    def upload(self, user: CurrentUser, access_level: str = "all", data: bytes = b"data", **kw):
        return svc.create_resource(
            self.db,
            self.store,
            user,
            title=kw.pop("title", "Handbook"),
            description=kw.pop("description", None),
            access_level=access_level,
            filename=kw.pop("filename", "handbook.pdf"),
            content_type=kw.pop("content_type", "application/pdf"),
            data=data,
            max_bytes=MAX_BYTES,
        )

    def download_count(self, resource_id: int) -> int:
        self.db.expire_all()
        return self.db.get(Resource, resource_id).download_count


class TestUpload(ResourceTestCase):
    def test_member_upload_visible_to_all(self) -> None:
        resource = self.upload(self.member)
        self.assertEqual(resource.uploaded_by, self.member.id)
        self.assertEqual(resource.size_bytes, 4)
        self.assertEqual(resource.download_count, 0)
        self.assertTrue(self.store.exists(resource.storage_key))
        self.assertEqual([r.id for r in svc.list_resources(self.db, self.other)], [resource.id])

    def test_member_cannot_upload_admin_only(self) -> None:
        with self.assertRaises(Forbidden):
            self.upload(self.member, access_level="admin")
        self.assertEqual(self.db.query(Resource).count(), 0)

    def test_validation(self) -> None:
        with self.assertRaises(ValidationError):
            self.upload(self.admin, title="  ")
        with self.assertRaises(ValidationError):
            self.upload(self.admin, data=b"")
        with self.assertRaises(ValidationError):
            self.upload(self.admin, data=b"x" * (MAX_BYTES + 1))
        with self.assertRaises(ValidationError):
            self.upload(self.admin, access_level="secret")
        self.assertEqual(list(self.store.root.iterdir()), [])

    def test_blob_removed_when_row_fails(self) -> None:
        store = MagicMock()
        store.save.return_value = "abc123"
        db = MagicMock()
        db.commit.side_effect = SQLAlchemyError("boom")
        with self.assertRaises(SQLAlchemyError):
            svc.create_resource(
                db, store, self.admin, "T", None, "all", "f.txt", "text/plain", b"x", MAX_BYTES
            )
        db.rollback.assert_called_once()
        store.delete.assert_called_once_with("abc123")

    def test_blob_save_failure_is_internal_error(self) -> None:
        store = MagicMock()
        store.save.side_effect = BlobStoreError("disk full")
        db = MagicMock()
        with self.assertRaises(InternalError):
            svc.create_resource(
                db, store, self.admin, "T", None, "all", "f.txt", None, b"x", MAX_BYTES
            )
        db.add.assert_not_called()


class TestVisibilityAndDownloads(ResourceTestCase):
    def test_admin_only_hidden_from_members(self) -> None:
        public = self.upload(self.admin)
        private = self.upload(self.admin, access_level="admin")
        self.assertEqual([r.id for r in svc.list_resources(self.db, self.member)], [public.id])
        self.assertEqual(svc.count_resources(self.db, self.member), 1)
        self.assertEqual(svc.count_resources(self.db, self.admin), 2)
        with self.assertRaises(Forbidden):
            svc.get_visible_resource(self.db, private.id, self.member)

    def test_forbidden_download_does_not_count(self) -> None:
        private = self.upload(self.admin, access_level="admin")
        with self.assertRaises(Forbidden):
            svc.record_download(self.db, self.store, private.id, self.member)
        self.assertEqual(self.download_count(private.id), 0)

    def test_download_increments_once_per_call(self) -> None:
        resource = self.upload(self.admin)
        svc.record_download(self.db, self.store, resource.id, self.member)
        updated = svc.record_download(self.db, self.store, resource.id, self.admin)
        self.assertEqual(updated.download_count, 2)
        self.assertEqual(self.download_count(resource.id), 2)

    def test_missing_resource(self) -> None:
        with self.assertRaises(NotFound):
            svc.record_download(self.db, self.store, 999, self.admin)

    def test_missing_file_is_not_counted(self) -> None:
        resource = self.upload(self.member)
        self.store.delete(resource.storage_key)
        with self.assertRaises(NotFound):
            svc.record_download(self.db, self.store, resource.id, self.member)
        self.assertEqual(self.download_count(resource.id), 0)


class TestOwnership(ResourceTestCase):
    def test_uploader_can_edit(self) -> None:
        resource = self.upload(self.member)
        updated = svc.update_resource(
            self.db, resource.id, self.member, ResourceUpdateRequest(title="New", description="")
        )
        self.assertEqual(updated.title, "New")
        self.assertIsNone(updated.description)

    def test_other_member_cannot_edit_or_delete(self) -> None:
        resource = self.upload(self.member)
        with self.assertRaises(Forbidden):
            svc.update_resource(self.db, resource.id, self.other, ResourceUpdateRequest(title="X"))
        with self.assertRaises(Forbidden):
            svc.delete_resource(self.db, self.store, resource.id, self.other)
        self.assertTrue(self.store.exists(resource.storage_key))

    def test_uploader_cannot_escalate_to_admin_only(self) -> None:
        resource = self.upload(self.member)
        with self.assertRaises(Forbidden):
            svc.update_resource(
                self.db, resource.id, self.member, ResourceUpdateRequest(access_level="admin")
            )

    def test_admin_can_delete_any(self) -> None:
        resource = self.upload(self.member)
        key = resource.storage_key
        svc.delete_resource(self.db, self.store, resource.id, self.admin)
        self.assertEqual(self.db.query(Resource).count(), 0)
        self.assertFalse(self.store.exists(key))

    def test_blob_delete_failure_still_removes_row(self) -> None:
        resource = self.upload(self.member)
        store = MagicMock()
        store.delete.side_effect = BlobStoreError("gone")
        svc.delete_resource(self.db, store, resource.id, self.member)
        self.assertEqual(self.db.query(Resource).count(), 0)

    def test_empty_update_rejected(self) -> None:
        resource = self.upload(self.member)
        with self.assertRaises(ValidationError):
            svc.update_resource(self.db, resource.id, self.member, ResourceUpdateRequest())


if __name__ == "__main__":
    unittest.main()
