"""
Demo Dataset
Records loaded into an empty database on first start
"""

from datetime import timedelta
from typing import List

from acdocs.db.base import Base, utcnow
from acdocs.db.models import Category, Document, DocumentType, Group, User


def _version(document_id: str, file_name: str, file_size: int, uploaded_by_id: str, created_at) -> dict:
    return {
        "id": f"{document_id}-v1",
        "document_id": document_id,
        "version": 1,
        "file_name": file_name,
        "file_size": file_size,
        "uploaded_by_id": uploaded_by_id,
        "created_at": created_at.isoformat(),
    }


def build_seed_records() -> List[Base]:
    """
    Five users (one per role), two groups, three categories and a few documents

    The "Board" category is shared with nobody, so only owner and admin
    see it; "Finance" is shared with the finance group and "Human
    Resources" with the HR group.
    """
    now = utcnow()

    users = [
        User(id="user-owner", name="Olivia Owner", email="owner@acdocs.local", role="owner",
             group_ids=[], created_at=now),
        User(id="user-admin", name="Adam Admin", email="admin@acdocs.local", role="admin",
             group_ids=[], created_at=now),
        User(id="user-manager", name="Maria Manager", email="manager@acdocs.local", role="manager",
             group_ids=["group-finance", "group-hr"], created_at=now,
             notification_preferences={"email": True, "whatsapp": False, "browser": True,
                                       "alert_days_before": [7, 15, 30]}),
        User(id="user-user", name="Ulysses User", email="user@acdocs.local", role="user",
             group_ids=["group-finance"], created_at=now, phone="+5511999990000",
             notification_preferences={"email": True, "whatsapp": True, "browser": False,
                                       "alert_days_before": [7, 30]}),
        User(id="user-reader", name="Rita Reader", email="reader@acdocs.local", role="reader",
             group_ids=["group-hr"], created_at=now),
    ]

    groups = [
        Group(id="group-finance", name="Finance", description="Accounting and invoices",
              member_ids=["user-manager", "user-user"], category_ids=["cat-finance"], created_at=now),
        Group(id="group-hr", name="Human Resources", description="Personnel records",
              member_ids=["user-manager", "user-reader"], category_ids=["cat-hr"], created_at=now),
    ]

    categories = [
        Category(id="cat-finance", name="Finance", icon="wallet",
                 shared_with_group_ids=["group-finance"], created_at=now,
                 document_types=[
                     DocumentType(id="type-invoice", name="Invoice", category_id="cat-finance"),
                     DocumentType(id="type-tax", name="Tax certificate", category_id="cat-finance"),
                 ]),
        Category(id="cat-hr", name="Human Resources", icon="users",
                 shared_with_group_ids=["group-hr"], created_at=now,
                 document_types=[
                     DocumentType(id="type-contract", name="Employment contract", category_id="cat-hr"),
                 ]),
        Category(id="cat-board", name="Board", icon="lock",
                 shared_with_group_ids=[], created_at=now,
                 document_types=[
                     DocumentType(id="type-minutes", name="Minutes", category_id="cat-board"),
                 ]),
    ]

    seeded_documents = [
        ("doc-invoice-001", "Invoice 001", "invoice-001.pdf", 120_000, "cat-finance", "type-invoice",
         "user-user", 5),
        ("doc-tax-2024", "Tax certificate 2024", "tax-2024.pdf", 80_000, "cat-finance", "type-tax",
         "user-manager", 25),
        ("doc-contract-rita", "Employment contract", "contract.pdf", 240_000, "cat-hr", "type-contract",
         "user-admin", None),
        ("doc-board-minutes", "Board minutes", "minutes.pdf", 60_000, "cat-board", "type-minutes",
         "user-owner", -3),
    ]
    documents = []
    for doc_id, name, file_name, size, category_id, type_id, uploader, days in seeded_documents:
        documents.append(Document(
            id=doc_id,
            name=name,
            file_name=file_name,
            file_size=size,
            mime_type="application/pdf",
            category_id=category_id,
            document_type_id=type_id,
            uploaded_by_id=uploader,
            current_version=1,
            versions=[_version(doc_id, file_name, size, uploader, now)],
            expires_at=now + timedelta(days=days) if days is not None else None,
            alert_days_before=30,
            created_at=now,
            updated_at=now,
        ))

    return [*users, *groups, *categories, *documents]
