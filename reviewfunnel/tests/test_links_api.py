from __future__ import annotations

from reviewfunnel.services.utils import SLUG_ALPHABET


def test_link_lifecycle(admin_client):
    c = admin_client

    res = c.post("/api/links", json={"businessName": "Acme", "gmbReviewLink": "https://example.com/r"})
    assert res.status_code == 201
    created = res.json()
    assert len(created["slug"]) == 10
    assert set(created["slug"]) <= set(SLUG_ALPHABET)
    assert created["id"] and created["createdAt"]
    assert created["logoUrl"] == "" and created["backgroundImageUrl"] == ""

    listed = c.get("/api/links").json()
    assert [l["id"] for l in listed] == [created["id"]]

    upd = c.patch("/api/links", params={"id": created["id"]}, json={"businessName": "Acme Corp"})
    assert upd.status_code == 200
    assert upd.json()["businessName"] == "Acme Corp"

    after = c.get("/api/links").json()[0]
    assert after["businessName"] == "Acme Corp"
    assert after["gmbReviewLink"] == "https://example.com/r"
    for k in ("id", "slug", "createdAt"):
        assert after[k] == created[k]

    dele = c.delete("/api/links", params={"id": created["id"]})
    assert dele.status_code == 200
    assert c.get("/api/links").json() == []

    again = c.delete("/api/links", params={"id": created["id"]})
    assert again.status_code == 404


def test_client_cannot_choose_server_fields(admin_client):
    res = admin_client.post("/api/links", json={
        "businessName": "Acme", "gmbReviewLink": "https://example.com/r",
        "id": "mine", "slug": "my-slug", "createdAt": "1999",
    })
    assert res.status_code == 201
    body = res.json()
    assert body["id"] != "mine" and body["slug"] != "my-slug" and body["createdAt"] != "1999"


def test_slug_and_created_at_cannot_be_patched(admin_client):
    link = admin_client.post("/api/links", json={"businessName": "A", "gmbReviewLink": "https://a"}).json()
    res = admin_client.patch("/api/links", params={"id": link["id"]}, json={"slug": "x", "createdAt": "y"})
    assert res.status_code == 400
    assert admin_client.get("/api/links").json()[0]["slug"] == link["slug"]


def test_create_requires_business_name_and_link(admin_client):
    assert admin_client.post("/api/links", json={"businessName": "Acme"}).status_code == 400
    assert admin_client.post("/api/links", json={"gmbReviewLink": "https://x"}).status_code == 400
    assert admin_client.post("/api/links", json={"businessName": "  ", "gmbReviewLink": "https://x"}).status_code == 400


def test_patch_and_delete_bad_input(admin_client):
    assert admin_client.patch("/api/links", json={"businessName": "x"}).status_code == 400
    assert admin_client.delete("/api/links").status_code == 400
    assert admin_client.patch("/api/links", params={"id": "nope"}, json={"businessName": "x"}).status_code == 404
    assert admin_client.delete("/api/links", params={"id": "nope"}).status_code == 404


def test_listing_is_public_but_mutations_need_session(client):
    assert client.get("/api/links").status_code == 200
    assert client.post("/api/links", json={"businessName": "A", "gmbReviewLink": "https://a"}).status_code == 401
    assert client.patch("/api/links", params={"id": "x"}, json={"businessName": "B"}).status_code == 401
    assert client.delete("/api/links", params={"id": "x"}).status_code == 401
    # auth is checked before input validation
    assert client.delete("/api/links").status_code == 401


def test_forged_cookie_is_rejected(client):
    res = client.post(
        "/api/links",
        json={"businessName": "A", "gmbReviewLink": "https://a"},
        headers={"Cookie": "admin_session=forged.token.value"},
    )
    assert res.status_code == 401


def test_create_without_body_is_400(admin_client):
    res = admin_client.post("/api/links")
    assert res.status_code == 400
    assert admin_client.get("/api/links").json() == []
