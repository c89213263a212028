from bson import ObjectId

from campusvote.database.connection import societies, users


class TestHouses:
    def test_admin_creates_house(self, client, make_user, headers):
        admin = make_user(role="admin")
        resp = client.post("/api/houses/", json={"name": "Kaveri", "color": "#1d4ed8"}, headers=headers(admin))
        assert resp.status_code == 201
        assert resp.json()["house"]["created_by"] == admin

    def test_duplicate_name(self, client, make_user, headers):
        admin = make_user(role="admin")
        client.post("/api/houses/", json={"name": "Kaveri"}, headers=headers(admin))
        resp = client.post("/api/houses/", json={"name": "Kaveri"}, headers=headers(admin))
        assert resp.status_code == 400

    def test_non_admin_cannot_create(self, client, make_user, headers):
        resp = client.post("/api/houses/", json={"name": "Kaveri"}, headers=headers(make_user(role="house")))
        assert resp.status_code == 403

    def test_members_lifecycle(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        member = make_user()
        house = client.post("/api/houses/", json={"name": "Godavari"}, headers=headers(admin)).json()["house"]

        added = client.post(f"/api/houses/{house['id']}/members", json={"members": [member]}, headers=headers(admin))
        assert added.json()["house"]["members"] == [member]
        assert users(db).find_one({"_id": ObjectId(member)})["house_id"] == ObjectId(house["id"])

        removed = client.delete(f"/api/houses/{house['id']}/members/{member}", headers=headers(admin))
        assert removed.json()["house"]["members"] == []
        assert users(db).find_one({"_id": ObjectId(member)})["house_id"] is None

    def test_add_unknown_member(self, client, make_user, headers):
        admin = make_user(role="admin")
        house = client.post("/api/houses/", json={"name": "Narmada"}, headers=headers(admin)).json()["house"]
        resp = client.post(
            f"/api/houses/{house['id']}/members", json={"members": [str(ObjectId())]}, headers=headers(admin)
        )
        assert resp.status_code == 404

    def test_delete_clears_user_house(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        house = client.post("/api/houses/", json={"name": "Tapti"}, headers=headers(admin)).json()["house"]
        member = make_user(house_id=house["id"])

        resp = client.delete(f"/api/houses/{house['id']}", headers=headers(admin))

        assert resp.status_code == 204
        assert users(db).find_one({"_id": ObjectId(member)})["house_id"] is None
        assert client.get(f"/api/houses/{house['id']}", headers=headers(admin)).status_code == 404

    def test_update(self, client, make_user, headers):
        admin = make_user(role="admin")
        house = client.post("/api/houses/", json={"name": "Krishna"}, headers=headers(admin)).json()["house"]
        resp = client.patch(f"/api/houses/{house['id']}", json={"description": "North campus"}, headers=headers(admin))
        assert resp.json()["house"]["description"] == "North campus"


class TestSocieties:
    def test_creator_becomes_lead(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        resp = client.post("/api/societies/", json={"name": "Robotics", "category": "technical"}, headers=headers(admin))

        assert resp.status_code == 201
        society = resp.json()["society"]
        assert society["leads"] == [admin]
        assert society["members"][0]["user"] == admin
        assert society["members"][0]["role"] == "lead"
        assert ObjectId(society["id"]) in users(db).find_one({"_id": ObjectId(admin)})["society_ids"]

    def test_unknown_category(self, client, make_user, headers):
        resp = client.post(
            "/api/societies/", json={"name": "Chess", "category": "board-games"}, headers=headers(make_user(role="admin"))
        )
        assert resp.status_code == 422

    def test_member_roles_keep_leads_in_sync(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        alice, bob = make_user(), make_user()
        society = client.post(
            "/api/societies/", json={"name": "Drama", "category": "cultural"}, headers=headers(admin)
        ).json()["society"]
        url = f"/api/societies/{society['id']}/members"

        client.post(url, json={"members": [{"user_id": alice, "role": "lead"}, {"user_id": bob}]}, headers=headers(admin))
        resp = client.post(url, json={"members": [{"user_id": alice, "role": "coordinator"}]}, headers=headers(admin))

        body = resp.json()["society"]
        assert alice not in body["leads"]
        assert {m["user"]: m["role"] for m in body["members"]}[alice] == "coordinator"
        assert ObjectId(society["id"]) in users(db).find_one({"_id": ObjectId(bob)})["society_ids"]

    def test_lead_may_manage_members(self, client, make_user, headers):
        admin = make_user(role="admin")
        lead, outsider, newcomer = make_user(), make_user(), make_user()
        society = client.post(
            "/api/societies/", json={"name": "Music", "category": "cultural", "leads": [lead]}, headers=headers(admin)
        ).json()["society"]
        url = f"/api/societies/{society['id']}/members"

        assert client.post(url, json={"members": [{"user_id": newcomer}]}, headers=headers(lead)).status_code == 200
        assert client.post(url, json={"members": [{"user_id": newcomer}]}, headers=headers(outsider)).status_code == 403

    def test_remove_member(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        member = make_user()
        society = client.post(
            "/api/societies/", json={"name": "Quiz", "category": "academic"}, headers=headers(admin)
        ).json()["society"]
        client.post(f"/api/societies/{society['id']}/members", json={"members": [{"user_id": member}]}, headers=headers(admin))

        resp = client.delete(f"/api/societies/{society['id']}/members/{member}", headers=headers(admin))

        assert member not in [m["user"] for m in resp.json()["society"]["members"]]
        assert users(db).find_one({"_id": ObjectId(member)})["society_ids"] == []

    def test_delete(self, client, db, make_user, headers):
        admin = make_user(role="admin")
        society = client.post(
            "/api/societies/", json={"name": "Film", "category": "social"}, headers=headers(admin)
        ).json()["society"]

        assert client.delete(f"/api/societies/{society['id']}", headers=headers(admin)).status_code == 204
        assert societies(db).count_documents({}) == 0
        assert users(db).find_one({"_id": ObjectId(admin)})["society_ids"] == []
