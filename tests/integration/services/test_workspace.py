"""
Integration Tests for the Workspace Service
Scoped reads and authorized writes for each seeded role

Seed layout: the manager belongs to Finance and HR, the user to Finance,
the reader to HR. "Board" is shared with nobody.
"""

from datetime import timedelta

import pytest

from acdocs.core.exceptions import (
    AuthenticationException,
    AuthorizationException,
    NotFoundException,
    ValidationException,
)
from acdocs.core.permissions import DEFAULT_PERMISSIONS, PermissionMatrix, Role
from acdocs.models import (
    AuditAction,
    AuditResourceType,
    CategoryCreate,
    CategoryUpdate,
    DocumentCreate,
    DocumentUpdate,
    GroupCreate,
    GroupUpdate,
    NotificationType,
    UserCreate,
    UserUpdate,
)
from acdocs.services.session import SessionService
from acdocs.services.workspace import WorkspaceService

OWNER_EMAIL = "owner@acdocs.local"
ADMIN_EMAIL = "admin@acdocs.local"
MANAGER_EMAIL = "manager@acdocs.local"
USER_EMAIL = "user@acdocs.local"
READER_EMAIL = "reader@acdocs.local"

ALL_DOCUMENTS = {"doc-invoice-001", "doc-tax-2024", "doc-contract-rita", "doc-board-minutes"}


def _upload(**overrides) -> DocumentCreate:
    fields = dict(
        name="Electricity bill",
        file_name="power.pdf",
        file_size=4096,
        category_id="cat-finance",
        document_type_id="type-invoice",
    )
    fields.update(overrides)
    return DocumentCreate(**fields)


def _ids(records):
    return {r.id for r in records}


class TestVisibility:
    """Test what each role can list"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, expected", [
        (OWNER_EMAIL, ALL_DOCUMENTS),
        (ADMIN_EMAIL, ALL_DOCUMENTS),
        (MANAGER_EMAIL, {"doc-invoice-001", "doc-tax-2024", "doc-contract-rita"}),
        (USER_EMAIL, {"doc-invoice-001", "doc-tax-2024"}),
        (READER_EMAIL, {"doc-contract-rita"}),
    ])
    async def test_list_documents(self, login, email, expected):
        workspace = await login(email)
        assert _ids(await workspace.list_documents()) == expected

    @pytest.mark.asyncio
    async def test_list_documents_by_category(self, login):
        workspace = await login(MANAGER_EMAIL)
        assert _ids(await workspace.list_documents("cat-finance")) == {"doc-invoice-001", "doc-tax-2024"}
        assert await workspace.list_documents("cat-board") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, expected", [
        (ADMIN_EMAIL, {"cat-finance", "cat-hr", "cat-board"}),
        (MANAGER_EMAIL, {"cat-finance", "cat-hr"}),
        (USER_EMAIL, {"cat-finance"}),
        (READER_EMAIL, {"cat-hr"}),
    ])
    async def test_list_categories(self, login, email, expected):
        workspace = await login(email)
        assert _ids(await workspace.list_categories()) == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, expected", [
        (OWNER_EMAIL, {"group-finance", "group-hr"}),
        (MANAGER_EMAIL, {"group-finance", "group-hr"}),
        (USER_EMAIL, {"group-finance"}),
        (READER_EMAIL, {"group-hr"}),
    ])
    async def test_list_groups(self, login, email, expected):
        workspace = await login(email)
        assert _ids(await workspace.list_groups()) == expected

    @pytest.mark.asyncio
    async def test_hidden_document_looks_missing(self, login):
        workspace = await login(USER_EMAIL)

        assert (await workspace.get_document("doc-invoice-001")).id == "doc-invoice-001"
        with pytest.raises(NotFoundException):
            await workspace.get_document("doc-contract-rita")
        with pytest.raises(NotFoundException):
            await workspace.get_document("doc-does-not-exist")

    @pytest.mark.asyncio
    async def test_hidden_category_looks_missing(self, login):
        workspace = await login(READER_EMAIL)
        assert (await workspace.get_category("cat-hr")).name == "Human Resources"
        with pytest.raises(NotFoundException):
            await workspace.get_category("cat-finance")

    @pytest.mark.asyncio
    async def test_anonymous_session_is_rejected(self, queries):
        workspace = WorkspaceService(queries, SessionService(queries))
        with pytest.raises(AuthenticationException):
            await workspace.list_documents()

    @pytest.mark.asyncio
    async def test_users_need_users_read(self, login):
        admin = await login(ADMIN_EMAIL)
        assert len(await admin.list_users()) == 5

        for email in (MANAGER_EMAIL, USER_EMAIL, READER_EMAIL):
            workspace = await login(email)
            with pytest.raises(AuthorizationException):
                await workspace.list_users()

    @pytest.mark.asyncio
    async def test_audit_logs_need_audit_read(self, login):
        manager = await login(MANAGER_EMAIL)
        actions = {entry.action for entry in await manager.list_audit_logs()}
        assert AuditAction.LOGIN in actions

        user = await login(USER_EMAIL)
        with pytest.raises(AuthorizationException):
            await user.list_audit_logs()


class TestDocumentMutations:
    """Test upload, update and delete checks"""

    @pytest.mark.asyncio
    async def test_user_uploads_to_visible_category(self, login):
        workspace = await login(USER_EMAIL)

        document = await workspace.upload_document(_upload())

        assert document.uploaded_by_id == "user-user"
        assert document.id in _ids(await workspace.list_documents())

    @pytest.mark.asyncio
    async def test_upload_to_hidden_category(self, login):
        workspace = await login(USER_EMAIL)
        with pytest.raises(NotFoundException):
            await workspace.upload_document(_upload(category_id="cat-board", document_type_id="type-minutes"))

    @pytest.mark.asyncio
    async def test_upload_with_foreign_document_type(self, login):
        workspace = await login(USER_EMAIL)
        with pytest.raises(ValidationException):
            await workspace.upload_document(_upload(document_type_id="type-contract"))

    @pytest.mark.asyncio
    async def test_reader_cannot_upload(self, login):
        workspace = await login(READER_EMAIL)
        with pytest.raises(AuthorizationException):
            await workspace.upload_document(_upload(category_id="cat-hr", document_type_id="type-contract"))

    @pytest.mark.asyncio
    async def test_user_updates_only_own_documents(self, login):
        workspace = await login(USER_EMAIL)

        updated = await workspace.update_document("doc-invoice-001", DocumentUpdate(name="Invoice 001 (paid)"))
        assert updated.name == "Invoice 001 (paid)"

        with pytest.raises(AuthorizationException):
            await workspace.update_document("doc-tax-2024", DocumentUpdate(name="Mine now"))

    @pytest.mark.asyncio
    async def test_update_of_invisible_document_is_not_found(self, login):
        workspace = await login(USER_EMAIL)
        with pytest.raises(NotFoundException):
            await workspace.update_document("doc-contract-rita", DocumentUpdate(name="x"))

    @pytest.mark.asyncio
    async def test_reader_cannot_modify_visible_documents(self, login):
        workspace = await login(READER_EMAIL)
        with pytest.raises(AuthorizationException):
            await workspace.update_document("doc-contract-rita", DocumentUpdate(name="x"))
        with pytest.raises(AuthorizationException):
            await workspace.delete_document("doc-contract-rita")

    @pytest.mark.asyncio
    async def test_manager_modifies_documents_of_others(self, login):
        workspace = await login(MANAGER_EMAIL)

        await workspace.update_document("doc-invoice-001", DocumentUpdate(name="Checked"))
        await workspace.delete_document("doc-contract-rita")

        assert _ids(await workspace.list_documents()) == {"doc-invoice-001", "doc-tax-2024"}

    @pytest.mark.asyncio
    async def test_cannot_move_document_into_hidden_category(self, login):
        workspace = await login(MANAGER_EMAIL)
        with pytest.raises(NotFoundException):
            await workspace.update_document(
                "doc-tax-2024", DocumentUpdate(category_id="cat-board", document_type_id="type-minutes")
            )

    @pytest.mark.asyncio
    async def test_user_deletes_own_document(self, login):
        workspace = await login(USER_EMAIL)

        with pytest.raises(AuthorizationException):
            await workspace.delete_document("doc-tax-2024")
        await workspace.delete_document("doc-invoice-001")

        assert _ids(await workspace.list_documents()) == {"doc-tax-2024"}

    @pytest.mark.asyncio
    async def test_uploader_keeps_access_after_category_is_unshared(self, login):
        user = await login(USER_EMAIL)
        admin = await login(ADMIN_EMAIL)

        await admin.update_category("cat-finance", CategoryUpdate(shared_with_group_ids=[]))

        assert _ids(await user.list_documents()) == {"doc-invoice-001"}
        assert await user.list_categories() == []


class TestBulkDelete:
    """Test delete_documents"""

    @pytest.mark.asyncio
    async def test_user_lacks_unscoped_delete(self, login):
        workspace = await login(USER_EMAIL)
        with pytest.raises(AuthorizationException):
            await workspace.delete_documents(["doc-invoice-001"])
        assert "doc-invoice-001" in _ids(await workspace.list_documents())

    @pytest.mark.asyncio
    async def test_manager_bulk_delete(self, login):
        workspace = await login(MANAGER_EMAIL)
        assert await workspace.delete_documents(["doc-invoice-001", "doc-tax-2024", "doc-invoice-001"]) == 2
        assert _ids(await workspace.list_documents()) == {"doc-contract-rita"}

    @pytest.mark.asyncio
    async def test_invisible_id_aborts_batch(self, login):
        workspace = await login(MANAGER_EMAIL)
        with pytest.raises(NotFoundException):
            await workspace.delete_documents(["doc-invoice-001", "doc-board-minutes"])
        assert "doc-invoice-001" in _ids(await workspace.list_documents())

    @pytest.mark.asyncio
    async def test_ownership_checked_before_any_delete(self, queries):
        entries = {role: set(perms) for role, perms in DEFAULT_PERMISSIONS.items()}
        entries[Role.USER].add("documents:delete")
        session = SessionService(queries, PermissionMatrix(entries))
        await session.login(USER_EMAIL, "demo")
        workspace = WorkspaceService(queries, session)

        with pytest.raises(AuthorizationException) as exc_info:
            await workspace.delete_documents(["doc-invoice-001", "doc-tax-2024"])

        assert exc_info.value.details["document_ids"] == ["doc-tax-2024"]
        assert _ids(await workspace.list_documents()) == {"doc-invoice-001", "doc-tax-2024"}


class TestAdministration:
    """Test category, group and user management"""

    @pytest.mark.asyncio
    async def test_manager_manages_visible_categories(self, login):
        workspace = await login(MANAGER_EMAIL)

        category = await workspace.create_category(CategoryCreate(name="Travel", shared_with_group_ids=["group-finance"]))
        document_type = await workspace.add_document_type(category.id, "Receipt")
        assert _ids((await workspace.get_category(category.id)).document_types) == {document_type.id}

        with pytest.raises(NotFoundException):
            await workspace.update_category("cat-board", CategoryUpdate(name="Secret"))
        with pytest.raises(AuthorizationException):
            await workspace.delete_category(category.id)

    @pytest.mark.asyncio
    async def test_user_cannot_manage_categories(self, login):
        workspace = await login(USER_EMAIL)
        with pytest.raises(AuthorizationException):
            await workspace.create_category(CategoryCreate(name="Mine"))
        with pytest.raises(AuthorizationException):
            await workspace.add_document_type("cat-finance", "Receipt")

    @pytest.mark.asyncio
    async def test_deleted_category_leaves_documents_to_elevated_roles(self, login):
        admin = await login(ADMIN_EMAIL)
        manager = await login(MANAGER_EMAIL)

        await admin.delete_category("cat-hr")

        assert "doc-contract-rita" in _ids(await admin.list_documents())
        assert "doc-contract-rita" not in _ids(await manager.list_documents())

    @pytest.mark.asyncio
    async def test_remove_document_type(self, login):
        workspace = await login(ADMIN_EMAIL)
        await workspace.remove_document_type("cat-finance", "type-tax")
        assert _ids((await workspace.get_category("cat-finance")).document_types) == {"type-invoice"}

    @pytest.mark.asyncio
    async def test_group_management(self, login):
        admin = await login(ADMIN_EMAIL)
        manager = await login(MANAGER_EMAIL)

        legal = await admin.create_group(GroupCreate(name="Legal"))

        with pytest.raises(AuthorizationException):
            await manager.create_group(GroupCreate(name="Shadow"))
        with pytest.raises(NotFoundException):
            await manager.update_group(legal.id, GroupUpdate(description="not mine"))

        updated = await manager.update_group("group-finance", GroupUpdate(description="Money"))
        assert updated.description == "Money"

        with pytest.raises(AuthorizationException):
            await manager.delete_group("group-finance")
        await admin.delete_group(legal.id)

    @pytest.mark.asyncio
    async def test_user_management(self, login):
        admin = await login(ADMIN_EMAIL)
        owner = await login(OWNER_EMAIL)
        manager = await login(MANAGER_EMAIL)

        hire = await admin.create_user(UserCreate(name="New Hire", email="hire@acdocs.local"))
        with pytest.raises(AuthorizationException):
            await manager.create_user(UserCreate(name="Other", email="other@acdocs.local"))

        # Admins hold users:delete but removal stays with the owner
        with pytest.raises(AuthorizationException):
            await admin.delete_user(hire.id)
        await owner.delete_user(hire.id)

        assert hire.id not in _ids(await owner.list_users())

    @pytest.mark.asyncio
    async def test_updating_self_refreshes_session(self, login):
        admin = await login(ADMIN_EMAIL)
        await admin.update_user("user-admin", UserUpdate(name="Adam A."))
        assert admin.session.current_user.name == "Adam A."

    @pytest.mark.asyncio
    async def test_owner_deleting_self_ends_session(self, login):
        owner = await login(OWNER_EMAIL)
        await owner.delete_user("user-owner")

        assert owner.session.current_user is None
        with pytest.raises(AuthenticationException):
            await owner.list_documents()

    @pytest.mark.asyncio
    async def test_missing_group_is_not_found(self, login):
        admin = await login(ADMIN_EMAIL)
        with pytest.raises(NotFoundException):
            await admin.update_group("group-missing", GroupUpdate(description="gone"))


class TestDashboard:
    """Test counts and expiration buckets"""

    @pytest.mark.asyncio
    async def test_user_dashboard(self, login):
        workspace = await login(USER_EMAIL)

        summary = await workspace.dashboard()

        assert summary.document_count == 2
        assert summary.category_count is None
        assert summary.group_count == 1
        assert summary.user_count is None
        assert _ids(summary.critical) == {"doc-invoice-001"}
        assert _ids(summary.warning) == {"doc-tax-2024"}
        assert summary.expired == []
        assert summary.recent_audit_logs == []

    @pytest.mark.asyncio
    async def test_admin_dashboard(self, login):
        workspace = await login(ADMIN_EMAIL)

        summary = await workspace.dashboard()

        assert summary.document_count == 4
        assert summary.category_count == 3
        assert summary.group_count == 2
        assert summary.user_count == 5
        assert _ids(summary.expired) == {"doc-board-minutes"}
        assert _ids(summary.recent_documents) == ALL_DOCUMENTS

    @pytest.mark.asyncio
    async def test_recent_documents_newest_first(self, login):
        workspace = await login(ADMIN_EMAIL)
        for index in range(5):
            await workspace.upload_document(_upload(name=f"Bill {index}"))
        await workspace.update_document("doc-tax-2024", DocumentUpdate(name="Touched"))

        summary = await workspace.dashboard()

        assert len(summary.recent_documents) == 5
        assert summary.recent_documents[0].id == "doc-tax-2024"

    @pytest.mark.asyncio
    async def test_recent_activity_for_audit_readers(self, login):
        manager = await login(MANAGER_EMAIL)
        for index in range(7):
            await manager.create_category(CategoryCreate(name=f"Archive {index}"))

        summary = await manager.dashboard()

        assert summary.category_count == 2
        assert len(summary.recent_audit_logs) == 6
        assert {entry.action for entry in summary.recent_audit_logs} == {AuditAction.CREATE}
        assert {entry.resource_type for entry in summary.recent_audit_logs} == {AuditResourceType.CATEGORY}

    @pytest.mark.asyncio
    async def test_no_activity_without_audit_read(self, login):
        manager = await login(MANAGER_EMAIL)
        await manager.create_category(CategoryCreate(name="Archive"))
        user = await login(USER_EMAIL)

        summary = await user.dashboard()

        assert summary.recent_audit_logs == []
        assert summary.category_count is None


class TestExpirationAlerts:
    """Test alerts over the accessible documents"""

    @pytest.mark.asyncio
    async def test_user_alerted_on_matching_day(self, login, notifications):
        workspace = await login(USER_EMAIL)
        invoice = await workspace.get_document("doc-invoice-001")

        sent = await workspace.check_expiration_alerts(now=invoice.expires_at - timedelta(days=7))

        assert {n.type for n in sent} == {NotificationType.EMAIL, NotificationType.WHATSAPP}
        assert {n.document_id for n in sent} == {"doc-invoice-001"}
        assert len(notifications.get_notifications("user-user")) == 2

    @pytest.mark.asyncio
    async def test_manager_uses_browser_channel(self, login):
        workspace = await login(MANAGER_EMAIL)
        tax = await workspace.get_document("doc-tax-2024")

        sent = await workspace.check_expiration_alerts(now=tax.expires_at - timedelta(days=15))

        assert {n.type for n in sent} == {NotificationType.EMAIL, NotificationType.BROWSER}
        assert all(n.days_until_expiration == 15 for n in sent)

    @pytest.mark.asyncio
    async def test_only_accessible_documents_alert(self, login):
        manager = await login(MANAGER_EMAIL)
        admin = await login(ADMIN_EMAIL)
        minutes = await admin.get_document("doc-board-minutes")

        # Board minutes expire 7 days after this instant but are hidden from the manager
        sent = await manager.check_expiration_alerts(now=minutes.expires_at - timedelta(days=7))

        assert "doc-board-minutes" not in {n.document_id for n in sent}

    @pytest.mark.asyncio
    async def test_reader_without_preferences(self, login):
        workspace = await login(READER_EMAIL)
        assert await workspace.check_expiration_alerts() == []
