from datetime import timedelta

import pytest
from sqlalchemy import select

from app.models.scheduled_email import PENDING, ScheduledEmail
from app.utils.time_utils import utcnow


def _notifications(client, uid, notification_type=None):
    items = client.get(f"/api/notifications/{uid}").json()["notifications"]
    if notification_type:
        items = [n for n in items if n["type"] == notification_type]
    return items


@pytest.fixture
def quiz_letter(make_letter, user_id):
    return make_letter(
        user_id,
        introductory="Hello love",
        securityType="quiz",
        securityConfig={"question": "Where did we meet?", "correctAnswer": "Paris"},
    )


def test_security_answer_is_hashed_on_create(quiz_letter):
    config = quiz_letter["letter"]["securityConfig"]
    assert "correctAnswer" not in config
    assert len(config["correctAnswerHash"]) == 64
    assert config["question"] == "Where did we meet?"


def test_correct_answer_marks_read_exactly_once(client, quiz_letter, user_id):
    letter_id = quiz_letter["letter"]["id"]
    url = f"/api/letters/{user_id}/{letter_id}/validate-security"

    first = client.post(url, json={"answer": "  PARIS "})
    assert first.status_code == 200
    assert first.json()["isCorrect"] is True

    second = client.post(url, json={"answer": "paris"})
    assert second.json()["isCorrect"] is True

    letter = client.get(f"/api/letters/token/{quiz_letter['token']}").json()
    assert letter["status"] == "read"
    assert letter["readAt"]

    read_notifications = _notifications(client, user_id, "letter_read")
    assert len(read_notifications) == 1
    assert read_notifications[0]["letterId"] == letter_id
    assert read_notifications[0]["read"] is False
    assert "Hello love" in read_notifications[0]["message"]


def test_wrong_answer_leaves_letter_unread(client, quiz_letter, user_id):
    letter_id = quiz_letter["letter"]["id"]
    response = client.post(f"/api/letters/{user_id}/{letter_id}/validate-security", json={"answer": "London"})

    assert response.status_code == 200
    assert response.json()["isCorrect"] is False
    assert client.get(f"/api/letters/token/{quiz_letter['token']}").json()["status"] == "unread"
    assert _notifications(client, user_id) == []


def test_date_security_answer(client, make_letter, user_id):
    created = make_letter(user_id, securityType="date", securityConfig={"correctDate": "2020-02-14"})
    letter_id = created["letter"]["id"]
    url = f"/api/letters/{user_id}/{letter_id}/validate-security"

    assert client.post(url, json={"answer": "2020-02-15"}).json()["isCorrect"] is False
    assert client.post(url, json={"answer": " 2020-02-14 "}).json()["isCorrect"] is True


def test_security_validation_errors(client, make_letter, user_id):
    plain = make_letter(user_id)
    letter_id = plain["letter"]["id"]
    url = f"/api/letters/{user_id}/{letter_id}/validate-security"

    assert client.post(url, json={}).status_code == 400
    no_security = client.post(url, json={"answer": "x"})
    assert no_security.status_code == 400
    assert no_security.json()["detail"] == "Letter does not have security configured"
    assert client.post(f"/api/letters/{user_id}/missing/validate-security", json={"answer": "x"}).status_code == 404


@pytest.mark.parametrize("security_type", ["", "null", "undefined"])
def test_empty_security_type_is_ignored(make_letter, user_id, security_type):
    created = make_letter(user_id, securityType=security_type, securityConfig={"correctAnswer": "x"})
    assert "securityType" not in created["letter"]
    assert "securityConfig" not in created["letter"]


def test_content_is_composed_from_sections(make_letter, user_id):
    created = make_letter(user_id, content=None, introductory=" Dear Sam ", mainBody="I miss you.", closing="Love")
    letter = created["letter"]
    assert letter["content"] == "Dear Sam\n\nI miss you.\n\nLove"
    assert letter["introductory"] == "Dear Sam"


def test_letter_content_is_required(client, user_id):
    response = client.post(f"/api/letters/{user_id}", json={"content": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Letter content is required"


def test_list_update_and_delete_letters(client, make_letter, user_id):
    first = make_letter(user_id, content="first")["letter"]
    make_letter(user_id, content="second")

    letters = client.get(f"/api/letters/{user_id}").json()
    assert {letter["content"] for letter in letters} == {"first", "second"}

    updated = client.put(f"/api/letters/{user_id}/{first['id']}", json={"content": "first, revised"})
    assert updated.status_code == 200
    assert updated.json()["letter"]["content"] == "first, revised"

    assert client.delete(f"/api/letters/{user_id}/{first['id']}").status_code == 200
    assert len(client.get(f"/api/letters/{user_id}").json()) == 1


def test_update_rejects_past_schedule(client, make_letter, user_id):
    letter_id = make_letter(user_id)["letter"]["id"]
    response = client.put(
        f"/api/letters/{user_id}/{letter_id}",
        json={"scheduledDateTime": "2000-01-01T00:00:00Z"},
    )
    assert response.status_code == 400


def test_update_retimes_pending_scheduled_email(client, make_letter, user_id, mailer, db):
    letter_id = make_letter(user_id)["letter"]["id"]
    link = f"https://dearly.example/letter/{letter_id}"
    first_time = utcnow() + timedelta(days=1)

    scheduled = client.post("/api/letter-email/send", json={
        "recipientEmail": "sam@example.com",
        "shareableLink": link,
        "scheduledDateTime": first_time.isoformat() + "Z",
    })
    email_id = scheduled.json()["scheduledEmailId"]

    new_time = utcnow() + timedelta(days=3)
    response = client.put(f"/api/letters/{user_id}/{letter_id}", json={
        "shareableLink": link,
        "emailSent": True,
        "emailSentTo": "Sam@Example.com",
        "emailScheduled": True,
        "scheduledDateTime": new_time.isoformat() + "Z",
    })
    assert response.status_code == 200

    with db.connect() as conn:
        row = conn.execute(
            select(ScheduledEmail.SCHEDULED_DATE_TIME, ScheduledEmail.STATUS)
            .where(ScheduledEmail.EMAIL_ID == email_id)
        ).one()
    assert abs((row.SCHEDULED_DATE_TIME - new_time).total_seconds()) < 1
    assert row.STATUS == PENDING
    assert mailer.sent == []


def test_reaction_is_only_recorded_once(client, make_letter, user_id):
    letter_id = make_letter(user_id)["letter"]["id"]
    url = f"/api/letters/{user_id}/{letter_id}"

    client.put(url, json={"reaction": "❤️"})
    second = client.put(url, json={"reaction": "😢"}).json()["letter"]
    assert second["reaction"] == "❤️"


def test_mark_read_endpoint(client, make_letter, user_id):
    letter_id = make_letter(user_id)["letter"]["id"]
    response = client.put(f"/api/letters/{user_id}/{letter_id}/mark-read")
    assert response.status_code == 200
    assert response.json()["letter"]["status"] == "read"


def test_letter_responses(client, make_letter, user_id):
    letter_id = make_letter(user_id, introductory="Hi")["letter"]["id"]
    base = f"/api/letters/{user_id}/{letter_id}/responses"

    created = client.post(base, json={"content": "Thank you!", "receiverName": "Sam"})
    assert created.status_code == 200
    response_id = created.json()["response"]["id"]

    assert client.post(base, json={"content": " "}).status_code == 400

    updated = client.put(f"{base}/{response_id}", json={"content": "Thank you so much!"})
    assert updated.json()["response"]["content"] == "Thank you so much!"

    listed = client.get(base).json()
    assert [r["id"] for r in listed] == [response_id]

    everything = client.get(f"/api/letters/responses/all/{user_id}").json()
    assert everything[0]["letterId"] == letter_id

    assert client.delete(f"{base}/{response_id}").status_code == 200
    assert client.get(base).json() == []
