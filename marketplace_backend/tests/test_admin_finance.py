"""
Integration tests for admin finance operations.

Withdraw request decisions and order settlement.
"""

import pytest
from sqlalchemy import select

from marketplace_backend.app.models.notification import Notification, NotificationType
from marketplace_backend.app.models.order import Order
from marketplace_backend.app.models.finance_enums import OrderStatus
from marketplace_backend.app.services.audit import get_audit_trail, AuditAction

WITHDRAW_BODY = {
    "name": "BCA",
    "bankAccountName": "Example Merchant",
    "bankAccountNumber": "1234567890",
    "amount": 100000,
}


async def _request_withdrawal(client, headers):
    response = await client.post("/v1/finance/withdraw-request", json=WITHDRAW_BODY, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.mark.asyncio
async def test_admin_approves_withdrawal(client, auth_headers, session_factory, admin, funded_merchant):
    finance_id = await _request_withdrawal(client, auth_headers(funded_merchant))

    response = await client.patch(
        f"/v1/admin/finances/{finance_id}/status",
        json={"status": "SUCCESS"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "SUCCESS"
    assert body["data"]["balance"] == "Rp. 200.000"
    assert body["refund"] is None

    async with session_factory() as session:
        result = await session.execute(
            select(Notification).where(Notification.user_id == funded_merchant.id)
        )
        notices = result.scalars().all()
    assert len(notices) == 1
    assert notices[0].type == NotificationType.WITHDRAW_UPDATE
    assert notices[0].metadata_payload == {"financeId": finance_id, "status": "SUCCESS"}


@pytest.mark.asyncio
async def test_admin_rejects_withdrawal_and_refunds(client, auth_headers, admin, funded_merchant):
    finance_id = await _request_withdrawal(client, auth_headers(funded_merchant))

    response = await client.patch(
        f"/v1/admin/finances/{finance_id}/status",
        json={"status": "FAILED"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "FAILED"
    assert body["refund"]["type"] == "DEBIT"
    assert body["refund"]["amount"] == "Rp. 100.000"
    assert body["refund"]["balance"] == "Rp. 300.000"

    resource = await client.get(
        "/v1/finance/withdraw-request-resource", headers=auth_headers(funded_merchant)
    )
    assert resource.json()["data"]["financeBalance"] == "Rp. 300.000"


@pytest.mark.asyncio
async def test_resolved_withdrawal_conflicts(client, auth_headers, admin, funded_merchant):
    finance_id = await _request_withdrawal(client, auth_headers(funded_merchant))
    url = f"/v1/admin/finances/{finance_id}/status"

    first = await client.patch(url, json={"status": "SUCCESS"}, headers=auth_headers(admin))
    second = await client.patch(url, json={"status": "FAILED"}, headers=auth_headers(admin))

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_STATE_001"


@pytest.mark.asyncio
async def test_withdraw_status_unknown_entry(client, auth_headers, admin):
    response = await client.patch(
        "/v1/admin/finances/999/status", json={"status": "SUCCESS"}, headers=auth_headers(admin)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_merchant_cannot_decide_withdrawal(client, auth_headers, admin, funded_merchant):
    finance_id = await _request_withdrawal(client, auth_headers(funded_merchant))

    response = await client.patch(
        f"/v1/admin/finances/{finance_id}/status",
        json={"status": "SUCCESS"},
        headers=auth_headers(funded_merchant),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_settle_order_posts_to_both_ledgers(
    client, auth_headers, session_factory, admin, merchant, merchant_account, paid_order
):
    response = await client.post("/v1/admin/orders/test-123/settle", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["invoiceNumber"] == "test-123"
    assert [e["amount"] for e in body["data"]] == ["Rp. 300.000", "Rp. 60.000", "Rp. 60.000"]

    merchant_view = await client.get("/v1/finances", headers=auth_headers(merchant))
    merchant_entries = merchant_view.json()["data"]
    assert [e["balance"] for e in merchant_entries] == ["Rp. 240.000", "Rp. 300.000"]
    assert merchant_entries[0]["description"] == "20% merchant tax from #OrderId-test-123"

    admin_view = await client.get("/v1/finances", headers=auth_headers(admin))
    admin_entries = admin_view.json()["data"]
    assert len(admin_entries) == 1
    assert admin_entries[0]["balance"] == "Rp. 60.000"
    assert admin_entries[0]["description"] == (
        "Revenue from merchant tax #Merchant-example-merchant #OrderId-test-123"
    )

    async with session_factory() as session:
        order = (await session.execute(select(Order).where(Order.invoice_number == "test-123"))).scalar_one()
        audit = await get_audit_trail(session, action=AuditAction.ORDER_SETTLED, resource_type="order")
    assert order.status == OrderStatus.SETTLED
    assert len(audit) == 1
    assert audit[0].resource_id == "test-123"


@pytest.mark.asyncio
async def test_settle_order_twice_conflicts(client, auth_headers, admin, merchant_account, paid_order):
    first = await client.post("/v1/admin/orders/test-123/settle", headers=auth_headers(admin))
    second = await client.post("/v1/admin/orders/test-123/settle", headers=auth_headers(admin))

    assert first.status_code == 200
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_settle_unknown_order(client, auth_headers, admin):
    response = await client.post("/v1/admin/orders/nope/settle", headers=auth_headers(admin))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_merchant_cannot_settle(client, auth_headers, merchant, paid_order):
    response = await client.post("/v1/admin/orders/test-123/settle", headers=auth_headers(merchant))
    assert response.status_code == 403
