"""Tests for /v1/compliances definitions and overrides, and /v1/status/extensions."""

import pytest

from compliance_tracker.core.periods import Period
from compliance_tracker.store import ComplianceStore

pytestmark = pytest.mark.anyio


class TestDefinitions:
    async def test_list_active_definitions(self, api, world):
        resp = await api(world.member).get("/v1/compliances")
        assert resp.status_code == 200
        assert len(resp.json()) == 5

    async def test_list_filtered_by_law_group(self, api, world):
        resp = await api(world.member).get("/v1/compliances", params={"law_group_id": world.gst.id})
        assert [c["name"] for c in resp.json()] == ["GSTR-1", "GSTR-3B"]

    async def test_get_unknown_is_404(self, api, world):
        resp = await api(world.member).get("/v1/compliances/99999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    async def test_partner_creates_permanent_definition(self, api, world):
        resp = await api(world.partner).post(
            "/v1/compliances",
            json={
                "name": "PF Return",
                "frequency": "monthly",
                "deadline_day": 15,
                "law_group_id": world.income_tax.id,
            },
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["name"] == "PF Return"
        assert data["is_temporary"] is False
        assert data["is_active"] is True

    async def test_manager_cannot_create_permanent_definition(self, api, world):
        resp = await api(world.manager).post(
            "/v1/compliances", json={"name": "PF Return", "frequency": "monthly"}
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "Managers can only manage temporary compliances"

    async def test_manager_creates_temporary_definition(self, api, world):
        resp = await api(world.manager).post(
            "/v1/compliances",
            json={
                "name": "Special Audit",
                "frequency": "monthly",
                "is_temporary": True,
                "temp_month": 7,
                "temp_year": 2025,
            },
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["temp_month"] == 7

    async def test_member_cannot_create(self, api, world):
        resp = await api(world.member).post(
            "/v1/compliances",
            json={"name": "X", "frequency": "monthly", "is_temporary": True, "temp_month": 7, "temp_year": 2025},
        )
        assert resp.status_code == 403

    async def test_temporary_without_period_is_400(self, api, world):
        resp = await api(world.admin).post(
            "/v1/compliances", json={"name": "X", "frequency": "monthly", "is_temporary": True}
        )
        assert resp.status_code == 400

    async def test_invalid_frequency_is_422(self, api, world):
        resp = await api(world.admin).post(
            "/v1/compliances", json={"name": "X", "frequency": "weekly"}
        )
        assert resp.status_code == 422

    async def test_unknown_law_group_is_404(self, api, world):
        resp = await api(world.admin).post(
            "/v1/compliances", json={"name": "X", "frequency": "monthly", "law_group_id": 999}
        )
        assert resp.status_code == 404

    async def test_update_definition(self, api, world):
        resp = await api(world.partner).put(
            f"/v1/compliances/{world.gstr1.id}", json={"deadline_day": 13, "description": "Outward supplies"}
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["deadline_day"] == 13
        assert data["description"] == "Outward supplies"
        assert data["name"] == "GSTR-1"

    async def test_manager_cannot_update_permanent(self, api, world):
        resp = await api(world.manager).put(
            f"/v1/compliances/{world.gstr1.id}", json={"deadline_day": 13}
        )
        assert resp.status_code == 403

    async def test_clearing_name_is_400(self, api, world):
        resp = await api(world.admin).put(f"/v1/compliances/{world.gstr1.id}", json={"name": None})
        assert resp.status_code == 400

    async def test_delete_is_soft(self, api, world, db):
        resp = await api(world.admin).delete(f"/v1/compliances/{world.gstr1.id}")
        assert resp.status_code == 204

        listed = (await api(world.admin).get("/v1/compliances")).json()
        assert world.gstr1.id not in [c["id"] for c in listed]
        definition = await ComplianceStore(db).get_definition(world.gstr1.id)
        assert definition is not None and definition.is_active is False

    async def test_oversized_path_id_is_422(self, api, world):
        resp = await api(world.member).get(f"/v1/compliances/{10**20}")
        assert resp.status_code == 422


class TestYearlyDefinitions:
    async def test_yearly_without_month_is_400(self, api, world):
        resp = await api(world.partner).post(
            "/v1/compliances", json={"name": "Y", "frequency": "yearly", "deadline_day": 5}
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Yearly compliances require deadline_month"

    async def test_yearly_with_month_created(self, api, world):
        resp = await api(world.partner).post(
            "/v1/compliances",
            json={"name": "Y", "frequency": "yearly", "deadline_day": 5, "deadline_month": 9},
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["deadline_month"] == 9

    async def test_switching_to_yearly_needs_month(self, api, world):
        client = api(world.admin)
        resp = await client.put(f"/v1/compliances/{world.gstr1.id}", json={"frequency": "yearly"})
        assert resp.status_code == 400

        resp = await client.put(
            f"/v1/compliances/{world.gstr1.id}", json={"frequency": "yearly", "deadline_month": 3}
        )
        assert resp.status_code == 200, resp.text

    async def test_clearing_month_of_yearly_is_400(self, api, world):
        resp = await api(world.admin).put(
            f"/v1/compliances/{world.annual.id}", json={"deadline_month": None}
        )
        assert resp.status_code == 400

    async def test_leaving_yearly_allows_clearing_month(self, api, world):
        resp = await api(world.admin).put(
            f"/v1/compliances/{world.annual.id}",
            json={"frequency": "monthly", "deadline_month": None},
        )
        assert resp.status_code == 200, resp.text


class TestManagerLawGroupScope:
    """Managers reach a law group only through a client subscribed to it."""

    @staticmethod
    def _temporary(**kw) -> dict:
        body = {
            "name": "Special Audit",
            "frequency": "monthly",
            "is_temporary": True,
            "temp_month": 7,
            "temp_year": 2025,
        }
        body.update(kw)
        return body

    async def test_store_reports_reachable_groups(self, world, db):
        store = ComplianceStore(db)
        assert await store.has_law_group_access(world.manager.id, world.gst.id)
        assert not await store.has_law_group_access(world.manager.id, world.income_tax.id)

    async def test_create_in_reachable_group(self, api, world):
        resp = await api(world.manager).post(
            "/v1/compliances", json=self._temporary(law_group_id=world.gst.id)
        )
        assert resp.status_code == 201, resp.text

    async def test_create_in_unreachable_group_is_403(self, api, world):
        resp = await api(world.manager).post(
            "/v1/compliances", json=self._temporary(law_group_id=world.income_tax.id)
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "You do not have access to this law group"

    async def test_partner_not_restricted(self, api, world):
        resp = await api(world.partner).post(
            "/v1/compliances", json=self._temporary(law_group_id=world.income_tax.id)
        )
        assert resp.status_code == 201

    async def test_update_and_delete_in_unreachable_group_are_403(self, api, world, make):
        audit = await make.compliance(
            "IT Audit", law_group_id=world.income_tax.id, is_temporary=True, temp_year=2025, temp_month=7
        )
        client = api(world.manager)
        resp = await client.put(f"/v1/compliances/{audit.id}", json={"deadline_day": 9})
        assert resp.status_code == 403
        assert resp.json()["message"] == "You do not have access to this compliance"
        resp = await client.delete(f"/v1/compliances/{audit.id}")
        assert resp.status_code == 403

    async def test_cannot_move_into_unreachable_group(self, api, world, make):
        audit = await make.compliance(
            "GST Audit", law_group_id=world.gst.id, is_temporary=True, temp_year=2025, temp_month=7
        )
        client = api(world.manager)
        resp = await client.put(
            f"/v1/compliances/{audit.id}", json={"law_group_id": world.income_tax.id}
        )
        assert resp.status_code == 403
        resp = await client.put(f"/v1/compliances/{audit.id}", json={"deadline_day": 9})
        assert resp.status_code == 200, resp.text

class TestOverrides:
    async def test_manager_sets_and_lists_override(self, api, world):
        client = api(world.manager)
        resp = await client.post(
            "/v1/compliances/overrides",
            json={
                "compliance_id": world.gstr3b.id,
                "period_year": 2025,
                "period_month": 6,
                "custom_deadline_day": 24,
            },
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["message"] == "Override saved"

        listed = (await client.get("/v1/compliances/overrides/2025/6")).json()
        assert listed == [
            {
                "compliance_id": world.gstr3b.id,
                "compliance_name": "GSTR-3B",
                "law_group_name": "GST",
                "period_year": 2025,
                "period_month": 6,
                "custom_deadline_day": 24,
                "default_deadline_day": 20,
            }
        ]

    async def test_zero_day_removes_override(self, api, world, db):
        store = ComplianceStore(db)
        await store.set_override(world.gstr3b.id, Period(2025, 6), 24)
        resp = await api(world.manager).post(
            "/v1/compliances/overrides",
            json={
                "compliance_id": world.gstr3b.id,
                "period_year": 2025,
                "period_month": 6,
                "custom_deadline_day": 0,
            },
        )
        assert resp.json()["message"] == "Override removed"
        assert await store.get_overrides(Period(2025, 6)) == {}

    async def test_delete_override(self, api, world, db):
        await ComplianceStore(db).set_override(world.gstr1.id, Period(2025, 7), 14)
        client = api(world.admin)
        resp = await client.delete(f"/v1/compliances/overrides/{world.gstr1.id}/2025/7")
        assert resp.status_code == 204
        resp = await client.delete(f"/v1/compliances/overrides/{world.gstr1.id}/2025/7")
        assert resp.status_code == 404

    async def test_member_cannot_set_override(self, api, world):
        resp = await api(world.member).post(
            "/v1/compliances/overrides",
            json={
                "compliance_id": world.gstr1.id,
                "period_year": 2025,
                "period_month": 6,
                "custom_deadline_day": 12,
            },
        )
        assert resp.status_code == 403


class TestExtensions:
    async def test_admin_lists_definitions_with_extensions(self, api, world, db):
        await ComplianceStore(db).set_extension(world.gstr1.id, 15)
        resp = await api(world.admin).get("/v1/status/extensions")
        assert resp.status_code == 200, resp.text
        by_name = {c["name"]: c for c in resp.json()["compliances"]}
        assert by_name["GSTR-1"]["extension_day"] == 15
        assert by_name["GSTR-1"]["deadline_day"] == 11
        assert by_name["GSTR-3B"]["extension_day"] is None

    async def test_set_then_remove_extension(self, api, world, db):
        client = api(world.admin)
        resp = await client.post(
            "/v1/status/extensions", json={"compliance_id": world.gstr1.id, "extension_day": 18}
        )
        assert resp.json()["message"] == "Extension saved"
        assert await ComplianceStore(db).get_extensions() == {world.gstr1.id: 18}

        resp = await client.post(
            "/v1/status/extensions", json={"compliance_id": world.gstr1.id, "extension_day": 0}
        )
        assert resp.json()["message"] == "Extension removed"
        assert await ComplianceStore(db).get_extensions() == {}

    async def test_empty_extension_removes(self, api, world, db):
        await ComplianceStore(db).set_extension(world.gstr1.id, 15)
        resp = await api(world.admin).post(
            "/v1/status/extensions", json={"compliance_id": world.gstr1.id}
        )
        assert resp.status_code == 200
        assert await ComplianceStore(db).get_extensions() == {}

    async def test_unknown_task_is_404(self, api, world):
        resp = await api(world.admin).post(
            "/v1/status/extensions", json={"compliance_id": 99999, "extension_day": 15}
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("role_attr", ["partner", "manager", "member"])
    async def test_non_admin_forbidden(self, api, world, role_attr):
        user = getattr(world, role_attr)
        resp = await api(user).get("/v1/status/extensions")
        assert resp.status_code == 403
