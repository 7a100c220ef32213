import pytest
from decimal import Decimal

from conftest import login, signup


def shares(*pairs):
    return [{"user_id": uid, "amount": amount} for uid, amount in pairs]


async def add_expense(client, group_id, headers, amount, shared_by, **extra):
    payload = {
        "amount": amount,
        "description": extra.pop("description", "Dinner"),
        "split_type": extra.pop("split_type", "equally"),
        "shared_by": shared_by,
        **extra,
    }
    return await client.post(f"/api/v1/expenses/{group_id}/add", json=payload, headers=headers)


async def dashboard(client, headers):
    res = await client.get("/api/v1/expenses/dashboard", headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


@pytest.fixture
def ids(people):
    return {name: p["id"] for name, p in people.items()}


class TestAddExpense:

    async def test_add_and_fetch(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )
        assert res.status_code == 201, res.text
        body = res.json()
        assert body["expense_type"] == "EXPENSE"
        assert body["amount"] == "30.00"
        assert body["paid_by"]["id"] == ids["alice"]
        assert [s["user_id"] for s in body["splits"]] == sorted([ids["bob"], ids["carol"]])

        res = await client.get(f"/api/v1/expenses/{body['id']}", headers=people["bob"]["headers"])
        assert res.status_code == 200
        assert res.json()["splits"][0]["first_name"] in ("Bob", "Carol")

    async def test_split_total_must_match(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "10"), (ids["carol"], "15")),
        )

        assert res.status_code == 400
        assert "must equal" in res.json()["detail"]

    async def test_duplicate_participants_rejected(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["bob"], "15")),
        )

        assert res.status_code == 400

    async def test_non_positive_amount_rejected(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "-5"), (ids["carol"], "35")),
        )

        assert res.status_code == 422

    async def test_participants_must_be_members(self, client, people, trip, ids):
        outsider = await signup(client, "Omar", "Out", "omar@splitledger.io", "9000000005")

        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (outsider["id"], "15")),
        )

        assert res.status_code == 400

    async def test_outsider_cannot_add(self, client, people, trip, ids):
        await signup(client, "Omar", "Out", "omar@splitledger.io", "9000000005")
        headers = await login(client, "omar@splitledger.io")

        res = await add_expense(
            client, trip["id"], headers, "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )

        assert res.status_code == 403

    async def test_paid_on_behalf_of_another_member(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "20",
            shares((ids["alice"], "20")), payer_id=ids["bob"], split_type="unequally",
        )
        assert res.status_code == 201
        assert res.json()["paid_by"]["id"] == ids["bob"]

        board = await dashboard(client, people["alice"]["headers"])
        assert board["total_balance"] == "-20.00"


class TestGroupListing:

    async def test_lists_expenses_and_settlements(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        await add_expense(client, trip["id"], alice, "30", shares((ids["bob"], "15"), (ids["carol"], "15")))
        await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "15", "shared_by": shares((ids["alice"], "15"))},
            headers=people["bob"]["headers"],
        )

        res = await client.get(f"/api/v1/expenses/{trip['id']}/all", headers=people["carol"]["headers"])

        assert res.status_code == 200
        assert sorted(e["expense_type"] for e in res.json()) == ["EXPENSE", "SETTLEMENT"]


class TestEditAndDelete:

    async def test_edit_replaces_splits(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        res = await add_expense(client, trip["id"], alice, "30", shares((ids["bob"], "15"), (ids["carol"], "15")))
        expense_id = res.json()["id"]

        res = await client.patch(
            f"/api/v1/expenses/{expense_id}",
            json={"amount": "40", "split_type": "unequally", "shared_by": shares((ids["bob"], "40"))},
            headers=alice,
        )
        assert res.status_code == 200, res.text
        assert res.json()["amount"] == "40.00"
        assert [s["user_id"] for s in res.json()["splits"]] == [ids["bob"]]

        board = await dashboard(client, people["carol"]["headers"])
        assert board["total_balance"] == "0.00"

    async def test_edit_amount_alone_must_still_balance(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        res = await add_expense(client, trip["id"], alice, "30", shares((ids["bob"], "15"), (ids["carol"], "15")))

        res = await client.patch(f"/api/v1/expenses/{res.json()['id']}", json={"amount": "31"}, headers=alice)

        assert res.status_code == 400

    async def test_only_payer_edits(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )

        res = await client.patch(
            f"/api/v1/expenses/{res.json()['id']}",
            json={"description": "Mine"},
            headers=people["carol"]["headers"],
        )

        assert res.status_code == 403

    async def test_delete_removes_from_dashboard(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        res = await add_expense(client, trip["id"], alice, "30", shares((ids["bob"], "15"), (ids["carol"], "15")))
        expense_id = res.json()["id"]

        res = await client.delete(f"/api/v1/expenses/{expense_id}", headers=people["bob"]["headers"])
        assert res.status_code == 403

        res = await client.delete(f"/api/v1/expenses/{expense_id}", headers=alice)
        assert res.status_code == 200

        res = await client.get(f"/api/v1/expenses/{expense_id}", headers=alice)
        assert res.status_code == 404

        board = await dashboard(client, people["bob"]["headers"])
        assert board == {
            "total_balance": "0.00",
            "total_you_owe": "0.00",
            "total_due_to_you": "0.00",
            "per_counterparty": {},
        }

    async def test_settlement_cannot_be_deleted_as_expense(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"payer_id": ids["bob"], "amount": "8", "shared_by": shares((ids["carol"], "8"))},
            headers=alice,
        )
        assert res.status_code == 201, res.text
        settlement_id = res.json()["id"]

        res = await client.delete(f"/api/v1/settlements/{settlement_id}", headers=alice)
        assert res.status_code == 403

        res = await client.delete(f"/api/v1/expenses/{settlement_id}", headers=alice)
        assert res.status_code == 404

        board = await dashboard(client, people["bob"]["headers"])
        assert board["total_balance"] == "8.00"

    async def test_removed_member_cannot_delete(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["carol"]["headers"], "30",
            shares((ids["alice"], "15"), (ids["bob"], "15")),
        )
        expense_id = res.json()["id"]

        # drop carol from the roster
        res = await client.patch(
            f"/api/v1/groups/{trip['id']}",
            json={"members": [ids["bob"]]},
            headers=people["alice"]["headers"],
        )
        assert res.status_code == 200

        res = await client.delete(f"/api/v1/expenses/{expense_id}", headers=people["carol"]["headers"])

        assert res.status_code == 403


class TestDeletedGroup:

    async def test_records_are_gone_with_the_group(self, client, people, trip, ids):
        alice = people["alice"]["headers"]
        res = await add_expense(client, trip["id"], alice, "30", shares((ids["bob"], "15"), (ids["carol"], "15")))
        expense_id = res.json()["id"]
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "15", "shared_by": shares((ids["alice"], "15"))},
            headers=people["bob"]["headers"],
        )
        settlement_id = res.json()["id"]

        res = await client.delete(f"/api/v1/groups/{trip['id']}", headers=alice)
        assert res.status_code == 200

        res = await client.get(f"/api/v1/expenses/{expense_id}", headers=alice)
        assert res.status_code == 404

        res = await client.patch(f"/api/v1/expenses/{expense_id}", json={"description": "Late"}, headers=alice)
        assert res.status_code == 404

        res = await client.delete(f"/api/v1/expenses/{expense_id}", headers=alice)
        assert res.status_code == 404

        res = await client.delete(f"/api/v1/settlements/{settlement_id}", headers=people["bob"]["headers"])
        assert res.status_code == 404

        board = await dashboard(client, alice)
        assert board["total_balance"] == "0.00"
        assert board["per_counterparty"] == {}

        res = await client.get("/api/v1/system/metrics")
        assert res.json()["expenses"] == 0
        assert res.json()["settlements"] == 0


class TestDashboard:

    async def test_empty_dashboard(self, client, people):
        board = await dashboard(client, people["alice"]["headers"])

        assert board["total_balance"] == "0.00"
        assert board["per_counterparty"] == {}

    async def test_payer_and_participant_views(self, client, people, trip, ids):
        await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )

        alice = await dashboard(client, people["alice"]["headers"])
        assert alice["total_balance"] == "30.00"
        assert alice["total_due_to_you"] == "30.00"
        assert alice["per_counterparty"][str(ids["bob"])] == {
            "first_name": "Bob",
            "last_name": "Bose",
            "balance": "15.00",
        }

        bob = await dashboard(client, people["bob"]["headers"])
        assert bob["total_balance"] == "-15.00"
        assert bob["total_you_owe"] == "15.00"
        assert bob["per_counterparty"] == {
            str(ids["alice"]): {"first_name": "Alice", "last_name": "Arora", "balance": "-15.00"},
        }

    async def test_self_share_is_excluded(self, client, people, trip, ids):
        await add_expense(
            client, trip["id"], people["alice"]["headers"], "60",
            shares((ids["alice"], "20"), (ids["bob"], "20"), (ids["carol"], "20")),
        )

        board = await dashboard(client, people["alice"]["headers"])

        assert board["total_balance"] == "40.00"
        assert str(ids["alice"]) not in board["per_counterparty"]

    async def test_settle_up_zeroes_the_pair(self, client, people, trip, ids):
        await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "15", "shared_by": shares((ids["alice"], "15"))},
            headers=people["bob"]["headers"],
        )
        assert res.status_code == 201, res.text

        bob = await dashboard(client, people["bob"]["headers"])
        assert bob["total_balance"] == "0.00"
        assert bob["per_counterparty"][str(ids["alice"])]["balance"] == "0.00"

        alice = await dashboard(client, people["alice"]["headers"])
        assert alice["total_balance"] == "15.00"
        assert alice["per_counterparty"][str(ids["bob"])]["balance"] == "0.00"
        assert alice["per_counterparty"][str(ids["carol"])]["balance"] == "15.00"

    async def test_balances_sum_to_zero(self, client, people, trip, ids):
        await add_expense(
            client, trip["id"], people["alice"]["headers"], "100",
            shares((ids["alice"], "33.34"), (ids["bob"], "33.33"), (ids["carol"], "33.33")),
        )
        await add_expense(
            client, trip["id"], people["carol"]["headers"], "45.50",
            shares((ids["alice"], "20.25"), (ids["bob"], "25.25")),
        )
        await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "10", "shared_by": shares((ids["carol"], "10"))},
            headers=people["bob"]["headers"],
        )

        totals = [
            Decimal((await dashboard(client, p["headers"]))["total_balance"])
            for p in people.values()
        ]

        assert sum(totals) == Decimal("0")


class TestSettlements:

    async def test_cannot_settle_with_self(self, client, people, trip, ids):
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "5", "shared_by": shares((ids["bob"], "5"))},
            headers=people["bob"]["headers"],
        )

        assert res.status_code == 400

    async def test_exactly_one_recipient(self, client, people, trip, ids):
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "10", "shared_by": shares((ids["alice"], "5"), (ids["carol"], "5"))},
            headers=people["bob"]["headers"],
        )

        assert res.status_code == 422

    async def test_history_and_undo(self, client, people, trip, ids):
        res = await client.post(
            f"/api/v1/settlements/{trip['id']}/settle-up",
            json={"amount": "12.50", "shared_by": shares((ids["alice"], "12.50"))},
            headers=people["carol"]["headers"],
        )
        settlement_id = res.json()["id"]

        res = await client.get(f"/api/v1/settlements/{trip['id']}/history", headers=people["bob"]["headers"])
        assert [s["id"] for s in res.json()] == [settlement_id]

        res = await client.delete(f"/api/v1/settlements/{settlement_id}", headers=people["alice"]["headers"])
        assert res.status_code == 403

        res = await client.delete(f"/api/v1/settlements/{settlement_id}", headers=people["carol"]["headers"])
        assert res.status_code == 200

        res = await client.get(f"/api/v1/settlements/{trip['id']}/history", headers=people["bob"]["headers"])
        assert res.json() == []

    async def test_undo_rejects_plain_expense(self, client, people, trip, ids):
        res = await add_expense(
            client, trip["id"], people["alice"]["headers"], "30",
            shares((ids["bob"], "15"), (ids["carol"], "15")),
        )

        res = await client.delete(f"/api/v1/settlements/{res.json()['id']}", headers=people["alice"]["headers"])

        assert res.status_code == 404
