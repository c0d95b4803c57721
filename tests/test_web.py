from __future__ import annotations

import io
import json

from comax.core import database


def test_health(client) -> None:
    assert client.get("/health").get_json() == {"status": "ok"}


def test_grid_requires_login(client) -> None:
    response = client.get("/api/resources")
    assert response.status_code == 401
    assert response.get_json()["code"] == "unauthenticated"


def test_login_requires_credentials(client) -> None:
    assert client.post("/api/auth/login", json={"username": "dana"}).status_code == 400


def test_login_upserts_user(client) -> None:
    client.post("/api/auth/login", json={"username": "dana", "password": "x"})
    client.post("/api/auth/login", json={"username": "dana", "password": "y"})

    assert [user["username"] for user in database.get_all_users()] == ["dana"]
    me = client.get("/api/auth/me").get_json()
    assert me["session"]["username"] == "dana"


def test_grid_window_filters_sort_and_scroll(seed, logged_in) -> None:
    seed(*[("APP1", "he-IL", f"key_{i:03d}", f"ערך {i}") for i in range(60)])
    seed(("APP2", "he-IL", "other", ""))

    window = logged_in.get("/api/resources").get_json()
    assert window["total_count"] == 61
    assert window["displayed_count"] == 50
    assert window["has_more"] is True

    more = logged_in.post("/api/resources/more").get_json()
    assert more["scheduled"] is True
    assert more["displayed_count"] == 61

    filtered = logged_in.get("/api/resources?resource_types=APP2").get_json()
    assert [row["resource_key"] for row in filtered["rows"]] == ["other"]

    logged_in.get("/api/resources?resource_types=ALL")
    sorted_window = logged_in.post("/api/resources/sort", json={"column": "resource_key"}).get_json()
    sorted_window = logged_in.post("/api/resources/sort", json={"column": "resource_key"}).get_json()
    assert sorted_window["sort"]["direction"] == "desc"
    assert sorted_window["rows"][0]["resource_key"] == "other"


def test_save_cell_insert_then_update(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))

    created = logged_in.put("/api/resources/cell",
                            json={"resource_key": "greet", "culture_code": "en-US", "value": "Hi"})
    assert created.status_code == 200
    assert created.get_json()["result"]["action"] == "CREATE"

    updated = logged_in.put("/api/resources/cell",
                            json={"resource_key": "greet", "culture_code": "en-US", "value": "Hello"})
    assert updated.get_json()["result"]["action"] == "UPDATE"
    assert database.find_resource("APP1", "en-US", "greet")["resource_value"] == "Hello"

    entries = logged_in.get("/api/audit").get_json()["entries"]
    assert [entry["action_type"] for entry in entries] == ["UPDATE", "CREATE"]
    assert entries[0]["username"] == "dana"


def test_save_cell_unknown_row_and_missing_fields(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))

    missing = logged_in.put("/api/resources/cell", json={"resource_key": "greet"})
    assert missing.status_code == 400

    unknown = logged_in.put("/api/resources/cell",
                            json={"resource_key": "nope", "culture_code": "en-US", "value": "x"})
    assert unknown.status_code == 404
    assert unknown.get_json()["error"] == "Row nope was not found"

    unknown_he = logged_in.put("/api/resources/cell?lang=he",
                               json={"resource_key": "nope", "culture_code": "en-US", "value": "x"})
    assert unknown_he.get_json()["error"] == "השורה nope לא נמצאה"


def test_save_cell_scope_missing(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    logged_in.put("/api/settings", json={"config": {"require_organization": True}})

    response = logged_in.put("/api/resources/cell",
                             json={"resource_key": "greet", "culture_code": "ro-RO", "value": "Salut"})

    assert response.status_code == 400
    assert response.get_json()["code"] == "scope_missing"

    organization = logged_in.post("/api/organizations",
                                  json={"organization_number": "1", "organization_name": "Comax"}).get_json()
    logged_in.post("/api/auth/organization", json={"organization_id": organization["organization"]["id"]})
    response = logged_in.put("/api/resources/cell",
                             json={"resource_key": "greet", "culture_code": "ro-RO", "value": "Salut"})
    assert response.status_code == 200


def test_import_json_upload_and_repeat(logged_in) -> None:
    payload = json.dumps([
        {"resourceType": "APP1", "cultureCode": "en-US", "resourceKey": "greet", "resourceValue": "Hello"},
    ]).encode("utf-8")

    def upload():
        return logged_in.post(
            "/api/resources/import",
            data={"file": (io.BytesIO(payload), "batch.json")},
            content_type="multipart/form-data",
        ).get_json()

    first = upload()
    assert first["result"]["added_count"] == 1
    assert first["view"]["total_count"] == 1

    second = upload()
    assert (second["result"]["added_count"], second["result"]["updated_count"]) == (0, 1)


def test_import_validation_error_writes_nothing(logged_in) -> None:
    response = logged_in.post("/api/resources/import", json=[
        {"resource_type": "APP1", "culture_code": "en-US", "resource_key": "ok"},
        {"resource_type": "APP1", "culture_code": "fr-FR", "resource_key": "bad"},
    ])

    assert response.status_code == 400
    assert response.get_json()["details"]["row"] == 2
    assert database.get_resources_page(0, 10) == []


def test_export_csv_and_json(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP1", "en-US", "greet", "Hello"))

    csv_response = logged_in.get("/api/resources/export?format=csv")
    assert csv_response.status_code == 200
    assert "attachment" in csv_response.headers["Content-Disposition"]
    assert '"APP1","greet","שלום","Hello"' in csv_response.get_data(as_text=True)

    json_response = logged_in.get("/api/resources/export?format=json&culture=he-IL")
    assert json.loads(json_response.get_data(as_text=True)) == [{"key": "Hello", "value": "שלום"}]

    assert logged_in.get("/api/resources/export?format=json").status_code == 400
    assert logged_in.get("/api/resources/export?format=pdf").status_code == 400


def test_localization_api_is_public(seed, client) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP1", "en-US", "greet", "Hello"),
         ("APP1", "he-IL", "bye", "להתראות"))

    pairs = client.get("/api/localization/APP1/he-IL").get_json()

    assert pairs == [{"key": "bye", "value": "להתראות"}, {"key": "Hello", "value": "שלום"}]


def test_application_field_seeds_source_resource(logged_in) -> None:
    app_id = logged_in.post("/api/applications", json={
        "application_code": "APP9", "application_name": "Nine",
    }).get_json()["application"]["id"]

    response = logged_in.post(f"/api/applications/{app_id}/fields",
                              json={"field_key": "customer_name", "field_name": "שם לקוח"})

    assert response.status_code == 201
    assert database.find_resource("APP9", "he-IL", "customer_name")["resource_value"] == "שם לקוח"


def test_sync_fields_creates_only_missing(logged_in) -> None:
    application = database.create_application("APP8", "Eight")
    database.create_application_field(application["id"], "f1", "שדה 1")
    database.create_application_field(application["id"], "f2", "שדה 2")
    database.insert_resource("APP8", "he-IL", "f1", "קיים")

    response = logged_in.post(f"/api/applications/{application['id']}/sync-fields").get_json()

    assert response["created"] == 1
    assert database.find_resource("APP8", "he-IL", "f1")["resource_value"] == "קיים"


def test_duplicate_application_code_conflict(logged_in) -> None:
    body = {"application_code": "DUP", "application_name": "Dup"}
    assert logged_in.post("/api/applications", json=body).status_code == 201
    assert logged_in.post("/api/applications", json=body).status_code == 409


def test_settings_round_trip_and_validation(logged_in) -> None:
    saved = logged_in.put("/api/settings", json={"config": {"grid_page_size": 20}})
    assert saved.status_code == 200
    assert logged_in.get("/api/settings").get_json()["config"]["grid_page_size"] == 20

    rejected = logged_in.put("/api/settings", json={"config": {"grid_page_size": -5}})
    assert rejected.status_code == 400


def test_error_messages_follow_request_language(client) -> None:
    response = client.get("/api/resources?lang=he")
    assert response.get_json()["error"] == "יש להתחבר כדי להמשיך"


def test_register_language_and_reject_duplicate(logged_in) -> None:
    created = logged_in.post("/api/languages", json={"code": "fr_fr"})
    assert created.status_code == 201
    language = created.get_json()["language"]
    assert language["code"] == "fr-FR"
    assert language["name"] == "French"

    assert logged_in.post("/api/languages", json={"code": "fr-FR"}).status_code == 409
    assert logged_in.post("/api/languages", json={"code": "he-IL"}).status_code == 409


def test_reload_clears_type_scope(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP2", "he-IL", "bye", "ביי"))

    narrowed = logged_in.post("/api/resources/reload", json={"resource_types": ["APP1"]}).get_json()
    assert narrowed["total_count"] == 1
    assert logged_in.post("/api/resources/reload", json={}).get_json()["total_count"] == 1

    widened = logged_in.post("/api/resources/reload", json={"resource_types": "ALL"}).get_json()
    assert widened["total_count"] == 2

    logged_in.post("/api/resources/reload", json={"resource_types": "APP2"})
    assert logged_in.post("/api/resources/reload", json={"resource_types": None}).get_json()["total_count"] == 2


def test_field_routes_stay_inside_their_application(logged_in) -> None:
    first = database.create_application("APPA", "A")
    second = database.create_application("APPB", "B")
    field = database.create_application_field(second["id"], "f1", "Original")

    wrong = f"/api/applications/{first['id']}/fields/{field['id']}"
    assert logged_in.put(wrong, json={"field_name": "Changed"}).status_code == 404
    assert logged_in.delete(wrong).status_code == 404
    assert [f["field_name"] for f in database.get_application_fields(second["id"])] == ["Original"]

    right = f"/api/applications/{second['id']}/fields/{field['id']}"
    assert logged_in.put(right, json={"field_name": "Changed"}).get_json()["field"]["field_name"] == "Changed"
    assert logged_in.delete(right).status_code == 200
    assert database.get_application_fields(second["id"]) == []


def test_application_code_is_coerced_to_text(logged_in) -> None:
    response = logged_in.post("/api/applications", json={"application_code": 123, "application_name": "Numbers"})

    assert response.status_code == 201
    assert response.get_json()["application"]["application_code"] == "123"


def test_organization_crud_and_duplicate_number(logged_in) -> None:
    body = {"organization_number": "100", "organization_name": "Comax"}
    created = logged_in.post("/api/organizations", json=body)
    assert created.status_code == 201
    organization_id = created.get_json()["organization"]["id"]

    assert logged_in.post("/api/organizations", json=body).status_code == 409
    assert logged_in.post("/api/organizations", json={"organization_number": "101"}).status_code == 400

    renamed = logged_in.put(f"/api/organizations/{organization_id}", json={"organization_name": "Comax Ltd"})
    assert renamed.get_json()["organization"]["organization_name"] == "Comax Ltd"
    assert logged_in.get(f"/api/organizations/{organization_id}").status_code == 200

    assert logged_in.delete(f"/api/organizations/{organization_id}").status_code == 200
    assert logged_in.get(f"/api/organizations/{organization_id}").status_code == 404
    assert logged_in.get("/api/organizations").get_json()["organizations"] == []


def test_user_crud_memberships_and_duplicate_username(logged_in) -> None:
    north = database.create_organization("1", "North")
    south = database.create_organization("2", "South")

    created = logged_in.post("/api/users", json={
        "username": "noa", "role": "viewer", "organization_ids": [north["id"]],
    })
    assert created.status_code == 201
    user = created.get_json()["user"]
    assert user["organization_ids"] == [north["id"]]

    assert logged_in.post("/api/users", json={"username": "noa"}).status_code == 409
    assert logged_in.post("/api/users", json={"username": "eli", "role": "owner"}).status_code == 400

    memberships = logged_in.put(f"/api/users/{user['id']}/organizations",
                                json={"organization_ids": [north["id"], south["id"]]}).get_json()
    assert [o["organization_name"] for o in memberships["organizations"]] == ["North", "South"]

    updated = logged_in.put(f"/api/users/{user['id']}", json={"role": "admin"}).get_json()["user"]
    assert updated["role"] == "admin"

    assert logged_in.delete(f"/api/users/{user['id']}").status_code == 200
    assert [u["username"] for u in logged_in.get("/api/users").get_json()["users"]] == ["dana"]


def test_audit_limit_is_capped_by_config(seed, logged_in) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    logged_in.put("/api/settings", json={"config": {"audit_log_limit": 2}})
    for value in ("a", "b", "c"):
        logged_in.put("/api/resources/cell", json={"resource_key": "greet", "culture_code": "en-US", "value": value})

    assert len(logged_in.get("/api/audit?limit=100000").get_json()["entries"]) == 2
    assert len(logged_in.get("/api/audit?limit=1").get_json()["entries"]) == 1
