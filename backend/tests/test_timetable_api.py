def day_payload(periods, **overrides):
    payload = {
        "classId": "5-A",
        "academicYear": "2024",
        "day": "Monday",
        "periods": periods,
    }
    payload.update(overrides)
    return payload


def period(subject, teacher_id, start, end):
    return {"subject": subject, "teacherId": teacher_id, "startTime": start, "endTime": end}


def test_save_and_fetch_day(client, admin_headers, staff_factory):
    first, first_headers = staff_factory("T1")
    second, _ = staff_factory("T2", subject="Art")

    saved = client.post(
        "/api/timetable/",
        json=day_payload(
            [period("Math", first["id"], "08:00", "08:45"), period("Art", second["id"], "08:45", "09:30")],
            firstPeriodTeacherId=first["id"],
        ),
        headers=admin_headers,
    )
    assert saved.status_code == 200
    body = saved.json()
    assert body["classNumber"] == 5
    assert body["firstPeriodTeacherName"] == "T1"
    assert [item["periodNumber"] for item in body["days"][0]["periods"]] == [1, 2]

    fetched = client.get("/api/timetable/class/5?section=A&academicYear=2024", headers=first_headers)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]

    period_id = body["days"][0]["periods"][0]["id"]
    one = client.get(f"/api/timetable/period/{period_id}", headers=first_headers)
    assert one.status_code == 200
    assert one.json()["teacherName"] == "T1"

    marker = client.get("/api/timetable/class/5-A/attendance-marker?academicYear=2024", headers=first_headers)
    assert marker.json() == {"canMarkAttendance": True, "firstPeriodTeacherId": first["id"]}


def test_missing_timetable_is_not_found(client, admin_headers):
    response = client.get("/api/timetable/class/9-E?academicYear=2024", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_save_day_rejects_adjacent_periods_for_one_teacher(client, admin_headers, staff_factory):
    teacher, _ = staff_factory("T1")
    response = client.post(
        "/api/timetable/",
        json=day_payload([period("Math", teacher["id"], "08:00", "08:45"), period("Math", teacher["id"], "08:45", "09:30")]),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "consecutive_period_conflict"


def test_update_and_delete_period(client, admin_headers, staff_factory):
    first, _ = staff_factory("T1")
    second, _ = staff_factory("T2")
    saved = client.post(
        "/api/timetable/",
        json=day_payload([period("Math", first["id"], "08:00", "08:45"), period("Art", second["id"], "08:45", "09:30")]),
        headers=admin_headers,
    ).json()
    art_id = saved["days"][0]["periods"][1]["id"]

    conflict = client.put(
        f"/api/timetable/{art_id}",
        json=period("Math", first["id"], "08:45", "09:30"),
        headers=admin_headers,
    )
    assert conflict.status_code == 409

    moved = client.put(
        f"/api/timetable/{art_id}",
        json=period("Art", second["id"], "10:15", "11:00"),
        headers=admin_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["periodNumber"] == 4

    deleted = client.delete(f"/api/timetable/{art_id}", headers=admin_headers)
    assert deleted.json() == {"success": True}
    assert client.get(f"/api/timetable/period/{art_id}", headers=admin_headers).status_code == 404
    stored = client.get("/api/staff-assignments/class/5-A?academicYear=2024", headers=admin_headers).json()
    assert [(item["subject"], item["startTime"]) for item in stored] == [("Math", "08:00")]


def assign(client, headers, teacher_id, class_id, start, end, subject="Math"):
    response = client.post(
        "/api/staff-assignments/",
        json={
            "classId": class_id,
            "subject": subject,
            "teacherId": teacher_id,
            "academicYear": "2024",
            "day": "Monday",
            "startTime": start,
            "endTime": end,
        },
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()


def test_save_day_counts_classes_the_teacher_has_elsewhere(client, admin_headers, staff_factory):
    teacher, _ = staff_factory("T1")
    for start, end in [("08:00", "08:45"), ("09:30", "10:15"), ("11:00", "11:45"), ("12:30", "13:15")]:
        assign(client, admin_headers, teacher["id"], "6-B", start, end)

    response = client.post(
        "/api/timetable/",
        json=day_payload([period("Physics", teacher["id"], "08:00", "08:45")]),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "daily_limit_exceeded"
    assert client.get("/api/timetable/class/5-A?academicYear=2024", headers=admin_headers).status_code == 404
    mine = client.get(
        f"/api/staff-assignments/teacher/{teacher['id']}",
        params={"academicYear": "2024"},
        headers=admin_headers,
    )
    assert len(mine.json()) == 4


def test_save_day_rejects_a_teacher_booked_in_another_class(client, admin_headers, staff_factory):
    teacher, _ = staff_factory("T1")
    assign(client, admin_headers, teacher["id"], "6-B", "08:00", "08:45")

    response = client.post(
        "/api/timetable/",
        json=day_payload([period("Physics", teacher["id"], "08:00", "08:45")]),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "teacher_double_booked"


def test_update_period_rejects_a_teacher_booked_in_another_class(client, admin_headers, staff_factory):
    busy, _ = staff_factory("T1")
    current, _ = staff_factory("T2")
    assign(client, admin_headers, busy["id"], "6-B", "08:00", "08:45")
    assign(client, admin_headers, current["id"], "5-A", "08:00", "08:45", subject="Art")
    timetable = client.get("/api/timetable/class/5-A?academicYear=2024", headers=admin_headers).json()
    period_id = timetable["days"][0]["periods"][0]["id"]

    response = client.put(
        f"/api/timetable/{period_id}",
        json=period("Art", busy["id"], "08:00", "08:45"),
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "teacher_double_booked"

    stored = client.get("/api/staff-assignments/class/5-A?academicYear=2024", headers=admin_headers).json()
    assert [item["teacherId"] for item in stored] == [current["id"]]
    unchanged = client.get(f"/api/timetable/period/{period_id}", headers=admin_headers).json()
    assert unchanged["teacherId"] == current["id"]


def test_assignments_feed_timetable_views(client, admin_headers, staff_factory):
    teacher, teacher_headers = staff_factory("T1")
    other, other_headers = staff_factory("T2")
    client.post(
        "/api/staff-assignments/",
        json={
            "classId": "5-A",
            "subject": "Math",
            "teacherId": teacher["id"],
            "academicYear": "2024",
            "day": "Monday",
            "startTime": "08:00",
            "endTime": "08:45",
        },
        headers=admin_headers,
    )

    timetable = client.get("/api/timetable/class/5-A?academicYear=2024", headers=admin_headers).json()
    assert timetable["teacherDailyClasses"] == [{"teacherId": teacher["id"], "day": "Monday", "classCount": 1}]

    own = client.get(f"/api/timetable/teacher/{teacher['id']}?academicYear=2024", headers=teacher_headers)
    assert own.status_code == 200
    assert len(own.json()) == 1
    assert client.get(f"/api/timetable/teacher/{teacher['id']}", headers=other_headers).status_code == 403

    view = client.get("/api/timetable/view?academicYear=2024", headers=other_headers).json()
    assert view["classes"][0]["schedule"]["Monday"]["08:00-08:45"]["teacherId"] == teacher["id"]

    rebuilt = client.post("/api/timetable/class/5-A/rebuild?academicYear=2024", headers=admin_headers)
    assert rebuilt.status_code == 200
    assert rebuilt.json()["days"][0]["periods"][0]["subject"] == "Math"


def test_slots_and_write_permissions(client, staff_factory):
    teacher, staff_headers = staff_factory("T1")

    slots = client.get("/api/timetable/slots", headers=staff_headers).json()
    assert slots["days"][-1] == "Saturday"
    assert slots["slots"][2] == {"periodNumber": 3, "startTime": "09:30", "endTime": "10:15"}

    forbidden = client.post(
        "/api/timetable/",
        json=day_payload([period("Math", teacher["id"], "08:00", "08:45")]),
        headers=staff_headers,
    )
    assert forbidden.status_code == 403
    assert client.get("/api/timetable/slots").status_code == 401
