"""
API tests for /api/contact: public submission and admin lead management.
"""
from io import BytesIO

from openpyxl import load_workbook

from app.utils.lead_export import LEAD_COLUMNS, XLSX_MEDIA_TYPE


def lead(**overrides) -> dict:
    data = {
        "name": "Dana Cohen",
        "email": "dana@example.com",
        "phone": "050-1234567",
        "eventDate": "2026-05-01",
        "designId": "FLORAL-003",
        "message": "Looking for a rose arch for a June wedding",
    }
    data.update(overrides)
    return data


class TestSubmitContact:
    """Public contact form."""

    async def test_submit_stores_lead(self, client):
        response = await client.post("/api/contact", json=lead())
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Dana Cohen"
        assert body["eventDate"] == "2026-05-01"
        assert body["designId"] == "FLORAL-003"
        assert body["id"]

    async def test_blank_optional_fields_become_null(self, client):
        response = await client.post("/api/contact", json=lead(phone="  ", designId="", eventDate=None))
        assert response.status_code == 201
        body = response.json()
        assert body["phone"] is None
        assert body["designId"] is None
        assert body["eventDate"] is None

    async def test_invalid_email(self, client):
        response = await client.post("/api/contact", json=lead(email="not-an-email"))
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    async def test_message_required(self, client):
        response = await client.post("/api/contact", json=lead(message="   "))
        assert response.status_code == 400


class TestLeadManagement:
    """Admin listing, export and closing of leads."""

    async def test_list_requires_admin(self, client):
        response = await client.get("/api/contact")
        assert response.status_code == 401

    async def test_list_newest_first_with_search(self, client, admin_headers):
        await client.post("/api/contact", json=lead(name="First Person", email="first@example.com"))
        await client.post("/api/contact", json=lead(name="Second Person", message="Balloons for a birthday"))

        leads = (await client.get("/api/contact", headers=admin_headers)).json()
        assert [l["name"] for l in leads] == ["Second Person", "First Person"]

        found = (await client.get("/api/contact", headers=admin_headers, params={"search": "BALLOONS"})).json()
        assert [l["name"] for l in found] == ["Second Person"]

        by_email = (await client.get("/api/contact", headers=admin_headers, params={"search": "first@"})).json()
        assert [l["name"] for l in by_email] == ["First Person"]

    async def test_search_treats_wildcards_literally(self, client, admin_headers):
        await client.post("/api/contact", json=lead(name="Percent", message="Budget is 50% of last year"))
        await client.post("/api/contact", json=lead(name="Underscore", email="event_planner@example.com"))
        await client.post("/api/contact", json=lead(name="Plain", email="plain@example.com"))

        by_percent = (await client.get("/api/contact", headers=admin_headers, params={"search": "%"})).json()
        assert [l["name"] for l in by_percent] == ["Percent"]

        by_underscore = (await client.get("/api/contact", headers=admin_headers, params={"search": "_"})).json()
        assert [l["name"] for l in by_underscore] == ["Underscore"]

    async def test_export_workbook(self, client, admin_headers):
        await client.post("/api/contact", json=lead())
        await client.post("/api/contact", json=lead(name="Avi", eventDate="sometime in spring"))

        response = await client.get("/api/contact/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert "leads.xlsx" in response.headers["content-disposition"]

        sheet = load_workbook(BytesIO(response.content))["Leads"]
        rows = list(sheet.iter_rows(values_only=True))
        assert list(rows[0]) == LEAD_COLUMNS
        assert len(rows) == 3
        event_dates = {row[0]: row[3] for row in rows[1:]}
        assert event_dates["Dana Cohen"] == "01/05/2026"
        assert event_dates["Avi"] == "sometime in spring"

    async def test_export_requires_admin(self, client):
        response = await client.get("/api/contact/export")
        assert response.status_code == 401

    async def test_close_lead_by_phone(self, client, admin_headers):
        await client.post("/api/contact", json=lead())
        await client.post("/api/contact", json=lead(name="Same phone again"))
        await client.post("/api/contact", json=lead(name="Other", phone="052-7654321"))

        response = await client.delete("/api/contact", headers=admin_headers, params={"phone": "050-1234567"})
        assert response.status_code == 200
        assert response.json() == {"message": "Lead closed", "phone": "050-1234567", "deletedCount": 2}

        remaining = (await client.get("/api/contact", headers=admin_headers)).json()
        assert [l["name"] for l in remaining] == ["Other"]

    async def test_close_unknown_phone(self, client, admin_headers):
        response = await client.delete("/api/contact", headers=admin_headers, params={"phone": "000"})
        assert response.status_code == 404
        assert response.json()["error"] == "Lead not found"

    async def test_close_requires_phone(self, client, admin_headers):
        response = await client.delete("/api/contact", headers=admin_headers)
        assert response.status_code == 400
