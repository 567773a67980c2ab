"""
Notification service and endpoint tests.
"""

import pytest
from sqlalchemy import select

from marketplace_backend.app.models.notification import Notification, NotificationType
from marketplace_backend.app.services.notification_service import NotificationService


async def _seed(session_factory, user_id, count):
    for i in range(count):
        delivered = await NotificationService.dispatch(
            session_factory, user_id, f"Notice {i}", "Hello", NotificationType.INFO
        )
        assert delivered is True


@pytest.mark.asyncio
async def test_dispatch_persists_notification(session_factory, admin):
    delivered = await NotificationService.dispatch(
        session_factory,
        admin.id,
        "New withdraw request",
        "merchant requested a withdrawal of Rp. 100.000",
        NotificationType.WITHDRAW_REQUEST,
        {"financeId": 1, "amount": "Rp. 100.000"},
    )

    assert delivered is True
    async with session_factory() as session:
        result = await session.execute(select(Notification).where(Notification.user_id == admin.id))
        notice = result.scalar_one()
    assert notice.is_read is False
    assert notice.metadata_payload["amount"] == "Rp. 100.000"


@pytest.mark.asyncio
async def test_dispatch_reports_failure(session_factory):
    # Unknown recipient breaks the foreign key
    delivered = await NotificationService.dispatch(session_factory, 9999, "Title", "Body")
    assert delivered is False


@pytest.mark.asyncio
async def test_list_and_mark_notifications(client, auth_headers, session_factory, admin):
    await _seed(session_factory, admin.id, 3)
    headers = auth_headers(admin)

    listed = await client.get("/v1/notifications", headers=headers)
    assert listed.status_code == 200
    notices = listed.json()
    assert len(notices) == 3

    first_id = notices[0]["id"]
    marked = await client.patch(f"/v1/notifications/{first_id}/read", headers=headers)
    assert marked.status_code == 200

    unread = await client.get("/v1/notifications", params={"unread_only": True}, headers=headers)
    assert len(unread.json()) == 2

    read_all = await client.patch("/v1/notifications/read-all", headers=headers)
    assert read_all.json()["count"] == 2

    unread = await client.get("/v1/notifications", params={"unread_only": True}, headers=headers)
    assert unread.json() == []


@pytest.mark.asyncio
async def test_cannot_mark_someone_elses_notification(client, auth_headers, session_factory, admin, merchant):
    await _seed(session_factory, admin.id, 1)
    async with session_factory() as session:
        notice_id = (await session.execute(select(Notification.id))).scalar_one()

    response = await client.patch(
        f"/v1/notifications/{notice_id}/read", headers=auth_headers(merchant)
    )
    assert response.status_code == 404
