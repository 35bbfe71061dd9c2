import base64

import database as db
from questions import DISG_QUESTIONS


def _form_answers(ranks):
    form = {"email": "anna.berg@example.com"}
    for row in DISG_QUESTIONS:
        for position, adjective in enumerate(row.adjectives):
            form[f"r{row.id}_{position}"] = str(ranks[adjective.trait])
    return form


def _submit(client, answers, email="anna.berg@example.com"):
    return client.post("/api/test/submit", json={"email": email, "answers": answers})


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_questionnaire_lists_all_rows(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Zeile 10" in body
    assert "überzeugend" in body
    assert 'name="r10_3"' in body


def test_questionnaire_submission_redirects_to_result(client):
    response = client.post("/", data=_form_answers({"D": 1, "I": 2, "S": 3, "G": 4}))
    assert response.status_code == 302
    assert "/result/" in response.headers["Location"]

    page = client.get(response.headers["Location"])
    body = page.get_data(as_text=True)
    assert page.status_code == 200
    assert "Hallo Anna Berg" in body
    assert 'class="result-code" data-trait="G"' in body
    assert "Gewissenhaft" in body


def test_questionnaire_rejects_duplicate_ranks(client):
    form = _form_answers({"D": 4, "I": 3, "S": 2, "G": 1})
    form["r2_0"] = "1"
    response = client.post("/", data=form)
    assert response.status_code == 400
    body = response.get_data(as_text=True)
    assert "Zeile 2: Jede Punktzahl (1-4) muss genau einmal vergeben werden" in body
    _, total = db.list_results()
    assert total == 0


def test_unknown_result_page_redirects(client):
    response = client.get("/result/does-not-exist")
    assert response.status_code == 302


def test_questions_endpoint_hides_traits(client):
    rows = client.get("/api/questions").get_json()
    assert len(rows) == 10
    assert rows[0] == {"id": 1, "adjectives": ["optimistisch", "selbstsicher", "genau", "harmonisch"]}


def test_submit_scores_and_stores(client, answers_for):
    response = _submit(client, answers_for())
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["scores"] == {"D": 40, "I": 30, "S": 20, "G": 10}
    assert data["dominant"] == "D"
    assert data["secondary"] == "I"

    stored = db.get_result_by_slug(data["resultId"])
    assert stored["email"] == "anna.berg@example.com"

    fetched = client.get(f"/api/results/{data['resultId']}").get_json()
    assert fetched["scores"] == data["scores"]
    assert fetched["email"] == "anna.berg@example.com"


def test_submit_rejects_wrong_count_before_malformed_items(client, answers_for):
    answers = answers_for()[:39]
    answers[0] = {"word": 123, "score": 4}
    response = _submit(client, answers)
    assert response.status_code == 400
    assert response.get_json()["kind"] == "WrongAnswerCount"


def test_broken_catalog_total_is_logged_server_error(client, answers_for, monkeypatch, caplog):
    monkeypatch.setattr("scoring.POINTS_TOTAL", 90)
    response = _submit(client, answers_for())
    assert response.status_code == 500
    assert response.get_json() == {"error": "Interner Fehler bei der Auswertung"}
    assert "Catalog integrity violated" in caplog.text
    _, total = db.list_results()
    assert total == 0


def test_submit_rejects_invalid_email(client, answers_for):
    response = _submit(client, answers_for(), email="not-an-email")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Ungültige E-Mail-Adresse"


def test_submit_reports_scoring_errors(client, answers_for):
    response = _submit(client, answers_for()[:39])
    assert response.status_code == 400
    assert response.get_json() == {
        "error": "Es müssen genau 40 Antworten vorhanden sein (erhalten: 39)",
        "kind": "WrongAnswerCount",
        "expected": 40,
        "actual": 39,
    }

    answers = answers_for()
    answers[0]["word"] = "xyz"
    data = _submit(client, answers).get_json()
    assert data["kind"] == "UnknownAdjective"
    assert data["word"] == "xyz"

    data = _submit(client, "nonsense").get_json()
    assert data["kind"] == "MalformedAnswers"
    _, total = db.list_results()
    assert total == 0


def test_unknown_result_returns_404(client):
    response = client.get("/api/results/unknown")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Ergebnis nicht gefunden"


def test_pdf_preview(client, answers_for):
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.get(f"/api/preview/pdf/{slug}")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    assert "power4-people-Kurzanalyse-Anna_Berg.pdf" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")
    assert len(response.data) > 1024


def test_send_results_emails_pdf(client, answers_for, outbox):
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post("/api/email/send-results", json={"resultId": slug, "email": "anna@example.com"})
    assert response.status_code == 200

    (message,) = outbox
    assert message["subject"] == "Ihre power4-people Kurzanalyse (PDF)"
    assert message["personalizations"][0]["to"] == [{"email": "anna@example.com"}]
    attachment = message["attachments"][0]
    assert attachment["filename"] == "power4-people-Kurzanalyse-Anna_Berg.pdf"
    assert base64.b64decode(attachment["content"]).startswith(b"%PDF")
    assert "Hallo Anna Berg" in message["content"][0]["value"]


def test_send_results_passes_profile_to_pdf(client, answers_for, outbox, monkeypatch):
    captured = {}

    def fake_generate_result_pdf(**kwargs):
        captured.update(kwargs)
        from io import BytesIO

        return BytesIO(b"stub")

    monkeypatch.setattr("app.generate_result_pdf", fake_generate_result_pdf)

    slug = _submit(client, answers_for({"D": 2, "I": 4, "S": 3, "G": 1})).get_json()["resultId"]
    response = client.post("/api/email/send-results", json={"resultId": slug, "email": "anna@example.com"})
    assert response.status_code == 200
    assert captured["dominant"] == "I"
    assert captured["secondary"] == "S"
    assert captured["name"] == "Anna Berg"
    assert captured["result_url"].endswith(f"/result/{slug}")


def test_contact_pdf_preview(client):
    response = client.get("/api/preview/contact-pdf")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    assert "Kontaktanfrage-Max_Mustermann.pdf" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")


def test_send_results_validation(client, outbox):
    assert client.post("/api/email/send-results", json={"email": "a@b.de"}).status_code == 400
    assert client.post("/api/email/send-results", json={"resultId": "x", "email": "nope"}).status_code == 400
    assert client.post("/api/email/send-results", json={"resultId": "x", "email": "a@b.de"}).status_code == 404
    assert outbox == []


def test_send_results_without_mail_configuration(client, app, answers_for, monkeypatch):
    monkeypatch.setitem(app.config, "SENDGRID_API_KEY", "")
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post("/api/email/send-results", json={"resultId": slug, "email": "anna@example.com"})
    assert response.status_code == 502
    assert response.get_json()["error"] == "E-Mail-Versand ist nicht konfiguriert"


def test_send_contact_notifies_admin_and_marks_result(client, answers_for, outbox):
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post(
        "/api/email/send-contact",
        json={
            "name": "Anna Berg",
            "email": "anna@example.com",
            "message": "Bitte rufen Sie mich an.",
            "sendCopy": True,
            "resultId": slug,
        },
    )
    assert response.status_code == 200

    notification, copy = outbox
    assert notification["subject"] == "Neue Kontaktanfrage von Anna Berg"
    assert notification["personalizations"][0]["to"] == [{"email": "chef@example.com"}]
    assert notification["reply_to"] == {"email": "anna@example.com"}
    assert "Nicht angegeben" in notification["content"][0]["value"]

    assert copy["personalizations"][0]["to"] == [{"email": "anna@example.com"}]
    assert copy["attachments"][0]["filename"] == "Kontaktanfrage-Anna_Berg.pdf"

    assert db.get_result_by_slug(slug)["contacted_at"] is not None


def test_send_contact_requires_fields(client, outbox):
    response = client.post("/api/email/send-contact", json={"name": "Anna", "email": "anna@example.com"})
    assert response.status_code == 400
    assert outbox == []


def test_send_results_reports_delivery_failure(client, answers_for, failing_sends, caplog):
    failing_sends.add(1)
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post("/api/email/send-results", json={"resultId": slug, "email": "anna@example.com"})
    assert response.status_code == 502
    assert response.get_json()["error"].startswith("E-Mail konnte nicht gesendet werden")
    assert "SendGrid unreachable" in caplog.text


def test_send_contact_survives_failed_copy(client, answers_for, outbox, failing_sends, caplog):
    failing_sends.add(2)
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post(
        "/api/email/send-contact",
        json={
            "name": "Anna Berg",
            "email": "anna@example.com",
            "message": "Bitte rufen Sie mich an.",
            "sendCopy": True,
            "resultId": slug,
        },
    )
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    (notification,) = outbox
    assert notification["subject"] == "Neue Kontaktanfrage von Anna Berg"
    assert "Failed to send confirmation email to anna@example.com" in caplog.text
    assert db.get_result_by_slug(slug)["contacted_at"] is not None


def test_send_contact_fails_when_admin_notification_fails(client, answers_for, outbox, failing_sends):
    failing_sends.add(1)
    slug = _submit(client, answers_for()).get_json()["resultId"]
    response = client.post(
        "/api/email/send-contact",
        json={"name": "Anna Berg", "email": "anna@example.com", "message": "Hallo", "resultId": slug},
    )
    assert response.status_code == 502
    assert outbox == []
    assert db.get_result_by_slug(slug)["contacted_at"] is None
