import pytest

from conftest import civil

MEDICATION = {
    "name": "Metformina",
    "dosage": "500mg",
    "frequency": "twice_daily",
    "start_time": "08:00",
    "start_date": "2025-07-01",
}


@pytest.fixture
def medication(client):
    response = client.post("/api/medications/", json=MEDICATION)
    assert response.status_code == 201
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "DoseTrack API"
    assert client.get("/api/health").json()["status"] == "healthy"
    assert client.get("/api/info").json()["adherence"]["dose_tolerance_minutes"] == 15


def test_list_and_update_medication(client, medication):
    listed = client.get("/api/medications/", params={"active_only": True}).json()
    assert [m["id"] for m in listed] == [medication["id"]]

    response = client.put(f"/api/medications/{medication['id']}", json={"frequency": "daily"})
    assert response.status_code == 200
    assert response.json()["schedule"] == ["08:00"]

    doses = client.get("/api/doses/", params={"medication_id": medication["id"]}).json()
    assert [d["scheduled_date_time"] for d in doses] == ["2025-07-10T08:00:00"]

    assert client.delete(f"/api/medications/{medication['id']}").status_code == 200
    assert client.get("/api/doses/").json() == []


def test_create_medication(medication):
    assert medication["schedule"] == ["08:00", "20:00"]
    assert medication["is_active"] is True


@pytest.mark.parametrize("changes", [
    {"frequency": "hourly"},
    {"start_time": "25:00"},
    {"end_date": "2025-06-01"},
])
def test_create_medication_validation(client, changes):
    response = client.post("/api/medications/", json={**MEDICATION, **changes})
    assert response.status_code == 422


def test_medication_schedule_and_not_found(client, medication):
    response = client.get(f"/api/medications/{medication['id']}/schedule")
    assert response.json()["times"] == ["08:00", "20:00"]

    assert client.get("/api/medications/999").status_code == 404
    assert client.post("/api/medications/999/deactivate").status_code == 404


def test_todays_doses(client, medication):
    doses = client.get("/api/doses/today").json()

    assert [d["status"] for d in doses] == ["overdue", "today"]
    assert doses[0]["overdue_minutes"] == 240
    assert doses[0]["medication_name"] == "Metformina"
    assert doses[1]["overdue_minutes"] == 0


def test_confirm_dose_once(client, medication):
    dose_id = client.get("/api/doses/today").json()[0]["id"]

    response = client.post(
        f"/api/doses/{dose_id}/confirm",
        json={"actual_date_time": "2025-07-10T08:10:00"},
        headers={"X-Correlation-ID": "corr_1_abc"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "taken"
    assert body["explicit_status"] == "taken"
    assert body["delay_minutes"] == 10

    again = client.post(f"/api/doses/{dose_id}/confirm", json={})
    assert again.status_code == 409

    assert client.post("/api/doses/999/confirm", json={}).status_code == 404


def test_confirm_without_time_uses_clock(client, medication):
    dose_id = client.get("/api/doses/today").json()[1]["id"]
    body = client.post(f"/api/doses/{dose_id}/confirm", json={}).json()

    # reloj fijo a las 12:00, toma de las 20:00
    assert body["delay_minutes"] == -480


def test_mark_dose_missed(client, medication):
    dose_id = client.get("/api/doses/today").json()[1]["id"]
    assert client.post(f"/api/doses/{dose_id}/miss").json()["status"] == "missed"


def test_deactivated_medication_hides_pending_doses(client, medication):
    client.post(f"/api/medications/{medication['id']}/deactivate")
    assert client.get("/api/doses/today").json() == []

    client.post(f"/api/medications/{medication['id']}/reactivate")
    assert len(client.get("/api/doses/today").json()) == 2


def test_adherence_report(client, medication):
    dose_id = client.get("/api/doses/today").json()[0]["id"]
    client.post(f"/api/doses/{dose_id}/confirm", json={"actual_date_time": "2025-07-10T08:10:00"})

    report = client.get("/api/reports/adherence", params={"period": "7d"}).json()

    assert report["period"] == {"period": "7d", "start_date": "2025-07-03", "end_date": "2025-07-10"}
    stats = report["stats"]
    assert (stats["total"], stats["taken"], stats["missed"], stats["rate"]) == (2, 1, 0, 50)
    assert stats["delayed"] == 1
    assert stats["average_delay"] == 10


def test_custom_period_report(client, medication):
    params = {"period": "custom", "start_date": "2025-07-10", "end_date": "2025-07-10"}
    report = client.get("/api/reports/adherence", params=params).json()
    assert report["stats"]["total"] == 2

    params = {"period": "custom", "start_date": "2025-07-01", "end_date": "2025-07-05"}
    assert client.get("/api/reports/adherence", params=params).json()["stats"]["total"] == 0


@pytest.mark.parametrize("params", [
    {"period": "1y"},
    {"period": "custom", "start_date": "2025-07-10"},
    {"period": "custom", "start_date": "2025-07-10", "end_date": "2025-07-01"},
])
def test_invalid_report_period(client, params):
    assert client.get("/api/reports/adherence", params=params).status_code == 400


def test_weekly_trend_report(client, medication):
    dose_id = client.get("/api/doses/today").json()[0]["id"]
    client.post(f"/api/doses/{dose_id}/confirm", json={})

    trend = client.get("/api/reports/weekly-trend").json()["trend"]

    # jueves = 4
    assert trend["weekly_data"] == [0, 0, 0, 0, 50, 0, 0]
    assert trend["overall_percentage"] == 50
    assert trend["trend"] == 17


def test_adherence_by_medication(client, medication):
    other = client.post("/api/medications/", json={**MEDICATION, "name": "Losartán", "frequency": "daily"}).json()

    report = client.get("/api/reports/medications").json()
    names = {m["medication_id"]: m["medication_name"] for m in report["medications"]}
    assert names == {medication["id"]: "Metformina", other["id"]: "Losartán"}

    filtered = client.get("/api/reports/medications", params={"medication_id": other["id"]}).json()
    assert [m["stats"]["total"] for m in filtered["medications"]] == [1]


def test_test_rescheduling_flow(client):
    created = client.post("/api/tests/", json={
        "name": "Hemograma",
        "type": "laboratorio",
        "test_date": "2025-06-01T09:00:00",
    })
    assert created.status_code == 201
    test = created.json()
    assert test["status"] == "missed"
    assert test["explicit_status"] == "scheduled"

    completed = client.post(f"/api/tests/{test['id']}/status", json={"status": "completed"}).json()
    assert completed["status"] == "completed"

    moved = client.put(f"/api/tests/{test['id']}", json={"test_date": "2025-08-01T09:00:00"}).json()
    assert moved["explicit_status"] == "scheduled"
    assert moved["status"] == "scheduled"

    client.post(f"/api/tests/{test['id']}/status", json={"status": "completed"})
    kept = client.put(f"/api/tests/{test['id']}", json={"test_date": "2025-06-15T09:00:00"}).json()
    assert kept["status"] == "completed"

    assert [t["id"] for t in client.get("/api/tests/").json()] == [test["id"]]
    assert client.delete(f"/api/tests/{test['id']}").status_code == 200
    assert client.put(f"/api/tests/{test['id']}", json={"name": "X"}).status_code == 404


def test_todays_doses_are_generated_on_a_new_day(client, clock, medication):
    clock.instant = civil(2025, 7, 11, 12, 0)

    doses = client.get("/api/doses/today").json()
    assert [d["scheduled_date_time"] for d in doses] == ["2025-07-11T08:00:00", "2025-07-11T20:00:00"]
    assert [d["status"] for d in doses] == ["overdue", "today"]

    # una segunda lectura no duplica
    assert len(client.get("/api/doses/today").json()) == 2

    params = {"period": "custom", "start_date": "2025-07-11", "end_date": "2025-07-11"}
    assert client.get("/api/reports/adherence", params=params).json()["stats"]["total"] == 2


@pytest.mark.parametrize("changes", [
    {"name": None},
    {"frequency": None},
    {"start_time": None},
    {"dosage": "   "},
    {"start_date": "2025-07-10", "end_date": "2025-07-01"},
])
def test_update_medication_validation(client, medication, changes):
    response = client.put(f"/api/medications/{medication['id']}", json=changes)
    assert response.status_code == 422


def test_update_end_date_against_stored_start_date(client, medication):
    url = f"/api/medications/{medication['id']}"

    assert client.put(url, json={"end_date": "2025-06-01"}).status_code == 400

    response = client.put(url, json={"end_date": "2025-07-31"})
    assert response.status_code == 200
    assert response.json()["end_date"] == "2025-07-31"

    # end_date sí se puede borrar
    assert client.put(url, json={"end_date": None}).json()["end_date"] is None
