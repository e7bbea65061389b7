from app.config import settings

API = settings.API_PREFIX.rstrip("/")


def _create(client, tenant, name, description=None):
    response = client.post(
        f"{API}/workspaces", json={"name": name, "description": description}, headers=tenant.headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_slugs_are_unique_per_company(client, make_tenant):
    acme = make_tenant("Acme")
    globex = make_tenant("Globex")

    first = _create(client, acme, "Product Team")
    second = _create(client, acme, "Product Team")
    third = _create(client, acme, "product team!")
    other = _create(client, globex, "Product Team")

    assert first["slug"] == "product-team"
    assert second["slug"] == "product-team-1"
    assert third["slug"] == "product-team-2"
    assert other["slug"] == "product-team"


def test_rename_keeps_own_slug(client, make_tenant):
    tenant = make_tenant("Acme")
    workspace = _create(client, tenant, "Research")

    response = client.put(
        f"{API}/workspaces/{workspace['id']}", json={"name": "Research", "description": "R&D"}, headers=tenant.headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["slug"] == "research"
    assert data["description"] == "R&D"

    renamed = client.put(f"{API}/workspaces/{workspace['id']}", json={"name": "Labs"}, headers=tenant.headers)
    assert renamed.json()["data"]["slug"] == "labs"


def test_list_workspaces_is_company_scoped(client, make_tenant, create_note):
    acme = make_tenant("Acme")
    make_tenant("Globex")
    create_note(acme)
    create_note(acme)

    body = client.get(f"{API}/workspaces", headers=acme.headers).json()
    assert body["pagination"]["total"] == 1
    assert body["data"][0]["id"] == acme.workspace_id
    assert body["data"][0]["noteCount"] == 2


def test_other_company_cannot_access_workspace(client, make_tenant):
    acme = make_tenant("Acme")
    globex = make_tenant("Globex")

    for method, suffix in (("get", ""), ("delete", ""), ("get", "/stats")):
        response = getattr(client, method)(f"{API}/workspaces/{acme.workspace_id}{suffix}", headers=globex.headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied to this workspace"

    assert client.get(f"{API}/workspaces/4040", headers=acme.headers).status_code == 404


def test_workspace_stats(client, make_tenant, create_note):
    tenant = make_tenant("Acme")
    published = create_note(tenant, type="PUBLIC", status="PUBLISHED")
    create_note(tenant)
    client.post(f"{API}/notes/{published['id']}/vote", json={"type": "upvote"}, headers=tenant.headers)

    stats = client.get(f"{API}/workspaces/{tenant.workspace_id}/stats", headers=tenant.headers).json()["data"]
    assert stats == {"totalNotes": 2, "publishedNotes": 1, "draftNotes": 1, "totalVotes": 1}


def test_delete_workspace_cascades_notes(client, make_tenant, create_note):
    tenant = make_tenant("Acme")
    note = create_note(tenant, type="PUBLIC", status="PUBLISHED")
    assert len(client.get(f"{API}/notes/public").json()["data"]) == 1

    response = client.delete(f"{API}/workspaces/{tenant.workspace_id}", headers=tenant.headers)
    assert response.status_code == 200
    assert client.get(f"{API}/notes/{note['id']}", headers=tenant.headers).status_code == 404
    assert client.get(f"{API}/notes/public").json()["data"] == []


def test_empty_workspace_name_is_rejected(client, make_tenant):
    tenant = make_tenant("Acme")
    response = client.post(f"{API}/workspaces", json={"name": ""}, headers=tenant.headers)
    assert response.status_code == 400


def test_delete_workspace_refreshes_tag_counts(client, make_tenant, create_note):
    tenant = make_tenant("Acme")
    create_note(tenant, tags=["rust"])
    before = client.get(f"{API}/tags").json()["data"]
    assert before[0]["noteCount"] == 1

    client.delete(f"{API}/workspaces/{tenant.workspace_id}", headers=tenant.headers)
    after = client.get(f"{API}/tags").json()["data"]
    assert after[0]["slug"] == "rust"
    assert after[0]["noteCount"] == 0
