"""HTTP layer tests: routers translate between requests and operations."""

from conftest import PASSWORD, audit_count, auth_headers


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_register_then_login_then_me(client):
    response = await client.post(
        "/auth/register",
        json={
            "tenant_name": "Stark Industries",
            "subdomain": "stark",
            "admin_email": "tony@stark.com",
            "admin_password": "password1",
            "admin_full_name": "Tony Stark",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["tenant"]["subscription_plan"] == "free"
    assert body["admin"]["role"] == "tenant_admin"

    response = await client.post(
        "/auth/login", json={"email": "tony@stark.com", "password": "password1", "tenant_subdomain": "stark"}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "tony@stark.com"
    assert response.json()["tenant"]["subdomain"] == "stark"


async def test_register_duplicate_subdomain_is_409(client, tenant):
    response = await client.post(
        "/auth/register",
        json={
            "tenant_name": "Acme again",
            "subdomain": "acme",
            "admin_email": "x@acme.com",
            "admin_password": "password1",
            "admin_full_name": "X",
        },
    )
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "conflict"


async def test_bad_login_is_401(client, tenant, member):
    response = await client.post(
        "/auth/login", json={"email": "member@acme.com", "password": "nope-nope", "tenant_subdomain": "acme"}
    )
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["kind"] == "unauthenticated"


async def test_missing_token_is_401(client):
    response = await client.get("/api/projects")
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Not authenticated"


async def test_project_quota_over_http(client, db, tenant, admin):
    headers = auth_headers(admin)
    for i in range(3):
        response = await client.post("/api/projects", json={"name": f"P{i}"}, headers=headers)
        assert response.status_code == 201

    response = await client.post(
        "/api/projects", json={"name": "P3"}, headers={**headers, "X-Forwarded-For": "203.0.113.9"}
    )
    assert response.status_code == 403
    error = response.json()["error"]
    assert error["kind"] == "forbidden"
    assert error["message"] == "Project limit reached (3 max for free plan)"
    assert error["details"]["reason"] == "quota_exceeded"
    assert error["path"] == "/api/projects"
    assert await audit_count(db, action="CREATE_PROJECT") == 3


async def test_audit_row_records_client_ip(client, db, tenant, admin):
    response = await client.post(
        "/api/projects",
        json={"name": "Traced"},
        headers={**auth_headers(admin), "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
    )
    assert response.status_code == 201
    assert response.headers["X-Request-ID"]
    assert await audit_count(db, action="CREATE_PROJECT", ip_address="203.0.113.9") == 1


async def test_cross_tenant_project_read_is_403(client, tenant, admin, other_admin):
    created = await client.post("/api/projects", json={"name": "Acme only"}, headers=auth_headers(admin))
    project_id = created.json()["id"]

    response = await client.get(f"/api/projects/{project_id}", headers=auth_headers(other_admin))
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "cross-tenant access"


async def test_task_flow(client, tenant, admin, member):
    headers = auth_headers(member)
    project = (await client.post("/api/projects", json={"name": "Board"}, headers=headers)).json()

    response = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Write docs", "priority": "high", "assigned_to": member.id, "due_date": "2026-12-01"},
        headers=headers,
    )
    assert response.status_code == 201
    task = response.json()
    assert task["status"] == "todo"
    assert task["due_date"] == "2026-12-01"

    response = await client.patch(f"/api/tasks/{task['id']}/status", json={"status": "in_progress"}, headers=headers)
    assert response.json()["status"] == "in_progress"

    response = await client.put(f"/api/tasks/{task['id']}", json={"assigned_to": None}, headers=headers)
    assert response.json()["assigned_to"] is None

    response = await client.get(f"/api/projects/{project['id']}/tasks?status=in_progress", headers=headers)
    assert [t["id"] for t in response.json()] == [task["id"]]

    response = await client.delete(f"/api/tasks/{task['id']}", headers=headers)
    assert response.json() == {"id": task["id"]}


async def test_unknown_status_value_is_422(client, tenant, admin):
    headers = auth_headers(admin)
    project = (await client.post("/api/projects", json={"name": "Board"}, headers=headers)).json()
    task = (
        await client.post(f"/api/projects/{project['id']}/tasks", json={"title": "T"}, headers=headers)
    ).json()

    response = await client.patch(f"/api/tasks/{task['id']}/status", json={"status": "blocked"}, headers=headers)
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["kind"] == "validation"
    assert error["details"]["validation_errors"][0]["field"] == "status"


async def test_member_cannot_delete_project_over_http(client, tenant, admin, member):
    project = (await client.post("/api/projects", json={"name": "Keep"}, headers=auth_headers(admin))).json()
    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers(member))
    assert response.status_code == 403

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json() == {"id": project["id"]}


async def test_last_admin_delete_over_http(client, tenant, admin, super_admin):
    response = await client.delete(f"/api/users/{admin.id}", headers=auth_headers(super_admin))
    assert response.status_code == 403
    assert response.json()["error"]["details"]["reason"] == "last_admin"


async def test_tenant_user_management(client, tenant, admin):
    headers = auth_headers(admin)
    response = await client.post(
        f"/api/tenants/{tenant.id}/users",
        json={"email": "newbie@acme.com", "full_name": "Newbie", "password": "password1"},
        headers=headers,
    )
    assert response.status_code == 201
    user_id = response.json()["id"]
    assert "credential_hash" not in response.json()

    response = await client.put(f"/api/users/{user_id}", json={"is_active": False}, headers=headers)
    assert response.json()["is_active"] is False

    response = await client.get("/api/users", headers=headers)
    assert {u["email"] for u in response.json()} == {"admin@acme.com", "newbie@acme.com"}

    response = await client.get(f"/api/tenants/{tenant.id}/users?role=tenant_admin", headers=headers)
    assert [u["id"] for u in response.json()] == [admin.id]


async def test_deactivated_user_token_stops_working(client, tenant, admin, member):
    await client.put(f"/api/users/{member.id}", json={"is_active": False}, headers=auth_headers(admin))
    response = await client.get("/api/projects", headers=auth_headers(member))
    assert response.status_code == 403


async def test_super_admin_tenant_endpoints(client, tenant, super_admin, admin):
    headers = auth_headers(super_admin)
    response = await client.post(
        "/api/tenants", json={"name": "Wayne", "subdomain": "wayne", "subscription_plan": "pro"}, headers=headers
    )
    assert response.status_code == 201
    assert response.json()["max_projects"] == 15

    response = await client.get("/api/tenants?subscription_plan=pro", headers=headers)
    assert [t["subdomain"] for t in response.json()] == ["wayne"]

    response = await client.put(f"/api/tenants/{tenant.id}", json={"status": "suspended"}, headers=headers)
    assert response.json()["status"] == "suspended"

    response = await client.get("/api/tenants", headers=auth_headers(admin))
    assert response.status_code == 403


async def test_audit_log_endpoint(client, tenant, admin, member):
    await client.post("/api/projects", json={"name": "Logged"}, headers=auth_headers(admin))

    response = await client.get("/api/audit-logs?action=CREATE_PROJECT", headers=auth_headers(admin))
    assert response.status_code == 200
    entries = response.json()
    assert len(entries) == 1
    assert entries[0]["entity_type"] == "project"

    response = await client.get("/api/audit-logs", headers=auth_headers(member))
    assert response.status_code == 403


async def test_super_admin_login_over_http(client, super_admin):
    response = await client.post("/auth/login", json={"email": "root@tracker.com", "password": PASSWORD})
    assert response.status_code == 200
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})
    assert response.json()["tenant"] is None
