import re

from mealweek.models import Dish
from mealweek.settings import settings


def create(client, headers, **body):
    return client.post("/api/dishes", json=body, headers=headers)


def test_requires_identity(client):
    assert client.get("/api/dishes").status_code == 401
    assert client.post("/api/dishes", json={"name": "Tacos", "date": "2025-06-10"}).status_code == 401
    assert client.put("/api/dishes", json={"id": "x", "order": 1}).status_code == 401


def test_unknown_identity_is_404(client):
    resp = client.get("/api/dishes", headers={settings.identity_header: "ghost@example.com"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


def test_identity_is_case_insensitive(client, user):
    resp = client.get("/api/dishes", headers={settings.identity_header: "  COOK@Example.com "})
    assert resp.status_code == 200
    assert resp.json() == []


def test_create_resolves_stock_photo(client, auth_headers, user):
    resp = create(client, auth_headers, name="Tacos", date="2025-06-10")
    assert resp.status_code == 200

    dish = resp.json()
    assert dish["name"] == "Tacos"
    assert dish["date"] == "2025-06-10"
    assert dish["link"] is None
    assert dish["order"] == 0
    assert dish["userId"] == user.id
    assert re.match(r"^https://loremflickr\.com/500/500/Tacos,food\?random=\d+$", dish["image"])


def test_create_keeps_client_image_and_youtube_thumbnail(client, auth_headers):
    supplied = create(client, auth_headers, name="Soup", date="2025-06-10", image="https://img.example.com/soup.png").json()
    assert supplied["image"] == "https://img.example.com/soup.png"

    video = create(client, auth_headers, name="Ramen", date="2025-06-10", link="https://youtu.be/dQw4w9WgXcQ").json()
    assert video["image"] == "https://img.youtube.com/vi/dQw4w9WgXcQ/mqdefault.jpg"
    assert video["link"] == "https://youtu.be/dQw4w9WgXcQ"


def test_create_missing_fields(client, auth_headers):
    resp = create(client, auth_headers, date="2025-06-10")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required field: name"

    resp = create(client, auth_headers, name="   ", date="2025-06-10")
    assert resp.status_code == 400
    assert "name" in resp.json()["detail"]

    resp = create(client, auth_headers, name="Tacos")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required field: date"


def test_create_strips_blank_link(client, auth_headers):
    dish = create(client, auth_headers, name=" Tacos ", date="2025-06-10", link="  ").json()
    assert dish["name"] == "Tacos"
    assert dish["link"] is None


def test_list_sorted_by_day_then_order(client, auth_headers):
    ids = {}
    for name, day in [("C", "2025-06-11"), ("A", "2025-06-10"), ("B", "2025-06-10")]:
        ids[name] = create(client, auth_headers, name=name, date=day).json()["id"]

    client.put("/api/dishes", json={"id": ids["A"], "order": 1}, headers=auth_headers)
    client.put("/api/dishes", json={"id": ids["B"], "order": 0}, headers=auth_headers)

    names = [d["name"] for d in client.get("/api/dishes", headers=auth_headers).json()]
    assert names == ["B", "A", "C"]


def test_list_only_own_dishes(client, auth_headers, other_user):
    create(client, auth_headers, name="Mine", date="2025-06-10")
    create(client, {settings.identity_header: other_user.email}, name="Theirs", date="2025-06-10")

    names = [d["name"] for d in client.get("/api/dishes", headers=auth_headers).json()]
    assert names == ["Mine"]


def test_update_order_only_leaves_other_fields(client, auth_headers):
    dish = create(client, auth_headers, name="Tacos", date="2025-06-10", link="https://example.com/t").json()

    resp = client.put("/api/dishes", json={"id": dish["id"], "order": 3}, headers=auth_headers)
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["order"] == 3
    for field in ("name", "link", "date", "image"):
        assert updated[field] == dish[field]


def test_update_moves_day_and_renames(client, auth_headers):
    dish = create(client, auth_headers, name="Tacos", date="2025-06-10").json()

    resp = client.put(
        "/api/dishes",
        json={"id": dish["id"], "name": "Fish tacos", "date": "2025-06-12", "order": 2},
        headers=auth_headers,
    )
    updated = resp.json()
    assert updated["name"] == "Fish tacos"
    assert updated["date"] == "2025-06-12"
    assert updated["order"] == 2
    # image is not re-resolved on edit
    assert updated["image"] == dish["image"]


def test_update_explicit_nulls(client, auth_headers):
    dish = create(client, auth_headers, name="Tacos", date="2025-06-10", link="https://example.com/t").json()
    client.put("/api/dishes", json={"id": dish["id"], "order": 4}, headers=auth_headers)

    resp = client.put("/api/dishes", json={"id": dish["id"], "link": None, "order": None}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["link"] is None
    assert resp.json()["order"] == 0

    assert client.put("/api/dishes", json={"id": dish["id"], "name": None}, headers=auth_headers).status_code == 400
    assert client.put("/api/dishes", json={"id": dish["id"], "name": ""}, headers=auth_headers).status_code == 400
    assert client.put("/api/dishes", json={"id": dish["id"], "date": None}, headers=auth_headers).status_code == 400


def test_update_requires_id(client, auth_headers):
    resp = client.put("/api/dishes", json={"order": 1}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required field: id"


def test_update_other_users_dish_is_404(client, auth_headers, other_user, db_session):
    theirs = create(client, {settings.identity_header: other_user.email}, name="Theirs", date="2025-06-10").json()

    resp = client.put("/api/dishes", json={"id": theirs["id"], "name": "Stolen"}, headers=auth_headers)
    assert resp.status_code == 404

    stored = db_session.query(Dish).filter(Dish.id == theirs["id"]).one()
    assert stored.name == "Theirs"


def test_update_unknown_dish_is_404(client, auth_headers):
    resp = client.put("/api/dishes", json={"id": "nope", "order": 1}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Dish not found"


def test_delete_dish(client, auth_headers, other_user):
    dish = create(client, auth_headers, name="Tacos", date="2025-06-10").json()

    theirs_headers = {settings.identity_header: other_user.email}
    assert client.delete(f"/api/dishes/{dish['id']}", headers=theirs_headers).status_code == 404

    resp = client.delete(f"/api/dishes/{dish['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"deleted": dish["id"]}
    assert client.get("/api/dishes", headers=auth_headers).json() == []
    assert client.delete(f"/api/dishes/{dish['id']}", headers=auth_headers).status_code == 404


def test_create_with_unresolvable_link_still_gets_an_image(client, auth_headers):
    link = "https://" + "a" * 64 + ".example.com/recipe"
    resp = create(client, auth_headers, name="Tacos", date="2025-06-10", link=link)
    assert resp.status_code == 200
    assert resp.json()["link"] == link
    assert re.match(r"^https://loremflickr\.com/500/500/Tacos,food\?random=\d+$", resp.json()["image"])
