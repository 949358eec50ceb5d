"""Tests for the deadline feed, the calendar and the period summary."""

import pytest

from compliance_tracker.core.periods import Period
from compliance_tracker.models.enums import ComplianceStatus
from compliance_tracker.store import ComplianceStore

pytestmark = pytest.mark.anyio


class TestDeadlineFeed:
    async def test_admin_feed_is_sorted_by_urgency(self, api, world):
        resp = await api(world.admin).get("/v1/status/deadlines")
        assert resp.status_code == 200, resp.text
        items = resp.json()

        # TDS Return is quarterly and never appears in the feed.
        assert {i["compliance_name"] for i in items} == {
            "GSTR-1",
            "GSTR-3B",
            "Annual Return",
            "Board Minutes",
        }
        assert len(items) == 12
        assert [(i["client_name"], i["compliance_name"]) for i in items[:4]] == [
            ("Acme Ltd", "GSTR-1"),
            ("Beta Corp", "GSTR-1"),
            ("Zeta LLC", "GSTR-1"),
            ("Acme Ltd", "GSTR-3B"),
        ]
        assert [i["urgency"] for i in items[:3]] == ["warning"] * 3
        assert all(i["urgency"] == "normal" for i in items[3:])

    async def test_item_fields(self, api, world):
        items = (await api(world.member).get("/v1/status/deadlines")).json()
        gstr1 = next(i for i in items if i["compliance_id"] == world.gstr1.id)
        assert gstr1 == {
            "client_id": world.beta.id,
            "client_name": "Beta Corp",
            "compliance_id": world.gstr1.id,
            "compliance_name": "GSTR-1",
            "law_group_name": "GST",
            "deadline_day": 11,
            "status": "pending",
            "days_until_deadline": 1,
            "urgency": "warning",
        }

    async def test_unset_deadline_is_normal(self, api, world):
        items = (await api(world.member).get("/v1/status/deadlines")).json()
        minutes = next(i for i in items if i["compliance_id"] == world.minutes.id)
        assert minutes["deadline_day"] is None
        assert minutes["days_until_deadline"] is None
        assert minutes["urgency"] == "normal"
        assert minutes["law_group_name"] is None

    async def test_member_feed_scoped_and_excludes_done(self, api, world, make):
        await make.status(world.beta, world.gstr1, 2025, 6, ComplianceStatus.DONE)
        await make.status(world.beta, world.gstr3b, 2025, 6, ComplianceStatus.NA)
        items = (await api(world.member).get("/v1/status/deadlines")).json()
        assert {i["client_id"] for i in items} == {world.beta.id}
        assert [i["compliance_name"] for i in items] == ["Annual Return", "Board Minutes"]

    async def test_override_drives_urgency(self, api, world, db):
        await ComplianceStore(db).set_override(world.gstr3b.id, Period(2025, 6), 8)
        items = (await api(world.member).get("/v1/status/deadlines")).json()
        assert items[0]["compliance_name"] == "GSTR-3B"
        assert items[0]["urgency"] == "overdue"
        assert items[0]["days_until_deadline"] == -2


class TestCalendar:
    async def test_groups_by_resolved_day(self, api, world):
        resp = await api(world.admin).get("/v1/status/calendar", params={"year": 2025, "month": 6})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        by_day = {day: [t["name"] for t in tasks] for day, tasks in data["tasksByDay"].items()}
        assert by_day == {
            "1": ["Board Minutes"],
            "11": ["GSTR-1"],
            "20": ["GSTR-3B"],
            "30": ["Annual Return"],
        }

    async def test_counts_pending_clients(self, api, world, make):
        await make.status(world.acme, world.gstr1, 2025, 6, ComplianceStatus.DONE)
        data = (await api(world.admin).get("/v1/status/calendar")).json()
        gstr1 = data["tasksByDay"]["11"][0]
        assert gstr1["pending_clients"] == 2
        assert gstr1["total_clients"] == 3
        assert gstr1["status"] == "pending"

    async def test_single_client_view(self, api, world, make):
        await make.status(world.beta, world.gstr1, 2025, 6, ComplianceStatus.DONE)
        data = (
            await api(world.member).get("/v1/status/calendar", params={"client_id": world.beta.id})
        ).json()
        gstr1 = data["tasksByDay"]["11"][0]
        assert data["client_id"] == world.beta.id
        assert (gstr1["pending_clients"], gstr1["total_clients"], gstr1["status"]) == (0, 1, "done")

    async def test_unassigned_client_is_403(self, api, world):
        resp = await api(world.member).get(
            "/v1/status/calendar", params={"client_id": world.acme.id}
        )
        assert resp.status_code == 403

    async def test_unknown_client_is_404(self, api, world):
        resp = await api(world.admin).get("/v1/status/calendar", params={"client_id": 99999})
        assert resp.status_code == 404

    async def test_oversized_client_id_is_422(self, api, world):
        resp = await api(world.admin).get("/v1/status/calendar", params={"client_id": 10**20})
        assert resp.status_code == 422

    async def test_inactive_client_is_404(self, api, world, make):
        await make.assign(world.member, world.dormant)
        for user in (world.admin, world.member):
            resp = await api(user).get(
                "/v1/status/calendar", params={"client_id": world.dormant.id}
            )
            assert resp.status_code == 404

    async def test_yearly_absent_outside_its_month(self, api, world):
        data = (
            await api(world.admin).get("/v1/status/calendar", params={"year": 2025, "month": 7})
        ).json()
        names = {t["name"] for tasks in data["tasksByDay"].values() for t in tasks}
        assert "Annual Return" not in names
        assert "TDS Return" not in names


class TestSummary:
    async def test_counts_over_full_matrix(self, api, world, make):
        await make.status(world.acme, world.gstr1, 2025, 6, ComplianceStatus.DONE)
        await make.status(world.zeta, world.tds, 2025, 6, ComplianceStatus.NA)
        data = (await api(world.admin).get("/v1/status/summary")).json()
        assert data == {
            "period": {"year": 2025, "month": 6},
            "total_clients": 3,
            "total_compliances": 5,
            "done_count": 1,
            "pending_count": 13,
            "na_count": 1,
        }

    async def test_member_summary_scoped(self, api, world, make):
        await make.status(world.acme, world.gstr1, 2025, 6, ComplianceStatus.DONE)
        data = (await api(world.member).get("/v1/status/summary")).json()
        assert data["total_clients"] == 1
        assert data["done_count"] == 0
        assert data["pending_count"] == 5
