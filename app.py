from __future__ import annotations

import hmac
import logging
import math
import random
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from flask import Flask, g, jsonify, redirect, render_template, request, send_file, url_for

import config
import database as db
import mailer
from content import TRAIT_PROFILES, display_name_from_email, get_trait_profile
from questions import DISG_QUESTIONS, TRAIT_CODES
from reports import generate_contact_pdf, generate_result_pdf
from scoring import (
    AnswerItem,
    CatalogIntegrityError,
    ScoreVector,
    ScoringError,
    parse_answers,
    profile_codes,
    score_answers,
)

app = Flask(__name__)
app.config.from_object(config)
app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

db.init_db()

RANK_OPTIONS: List[Dict[str, object]] = [
    {"value": 4, "label": "4 - trifft am meisten zu"},
    {"value": 3, "label": "3"},
    {"value": 2, "label": "2"},
    {"value": 1, "label": "1 - trifft am wenigsten zu"},
]


def field_name(row_id: int, position: int) -> str:
    return f"r{row_id}_{position}"


def is_valid_email(value: object) -> bool:
    return isinstance(value, str) and "@" in value.strip()


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def request_json() -> Dict[str, object]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def result_url(slug: str) -> str:
    return url_for("result_page", slug=slug, _external=True)


def describe_result(result: Dict[str, object]) -> Dict[str, object]:
    scores = ScoreVector.from_mapping(result["scores"])  # type: ignore[arg-type]
    dominant, secondary = profile_codes(scores)
    return {
        "scores": scores.as_dict(),
        "dominant": dominant,
        "secondary": secondary,
        "dominant_profile": get_trait_profile(dominant),
        "secondary_profile": get_trait_profile(secondary),
    }


def build_result_pdf(result: Dict[str, object]):
    description = describe_result(result)
    created = datetime.fromisoformat(str(result["created_at"])).date()
    return generate_result_pdf(
        name=display_name_from_email(result.get("email")),  # type: ignore[arg-type]
        scores=description["scores"],  # type: ignore[arg-type]
        dominant=description["dominant"],  # type: ignore[arg-type]
        secondary=description["secondary"],  # type: ignore[arg-type]
        result_url=result_url(result["slug"]),  # type: ignore[arg-type]
        created=created,
    )


def store_submission(email: str, answers: List[AnswerItem]) -> Dict[str, object]:
    scores = score_answers(answers)
    user = db.get_or_create_user(email)
    result = db.create_result(user["id"], scores, answers)
    dominant, _ = profile_codes(scores)
    app.logger.info("Stored result %s (dominant %s)", result["id"], dominant)
    return result


def failed_login_delay() -> None:
    delay = app.config["ADMIN_LOGIN_DELAY"]
    if delay > 0:
        time.sleep(delay + random.uniform(0, delay / 2))


# ── Error handling & admin guard ───────────────────────────────────

@app.errorhandler(ScoringError)
def handle_scoring_error(error: ScoringError):
    return jsonify(error.as_dict()), 400


@app.errorhandler(CatalogIntegrityError)
def handle_catalog_error(error: CatalogIntegrityError):
    app.logger.exception("Catalog integrity violated: %s", error)
    return error_response("Interner Fehler bei der Auswertung", 500)


@app.before_request
def require_admin_session():
    if not request.path.startswith("/api/admin"):
        return None

    token = request.cookies.get(app.config["ADMIN_COOKIE_NAME"])
    if not token:
        return error_response("Unauthorized", 401)

    session = db.get_admin_session(token)
    if session is None:
        return error_response("Session expired", 401)
    g.admin_email = session["user_email"]
    return None


# ── Page routes ────────────────────────────────────────────────────

@app.route("/", methods=["GET", "POST"])
def questionnaire():
    if request.method == "POST":
        email = request.form.get("email", "").strip()
        answers: List[AnswerItem] = []
        for row in DISG_QUESTIONS:
            for position, adjective in enumerate(row.adjectives):
                raw_value = request.form.get(field_name(row.id, position), "")
                score = int(raw_value) if raw_value.isdecimal() else raw_value
                answers.append(AnswerItem(word=adjective.word, score=score))

        error = None
        if not is_valid_email(email):
            error = "Ungültige E-Mail-Adresse"
        else:
            try:
                result = store_submission(email, answers)
            except ScoringError as exc:
                error = exc.message
            else:
                return redirect(url_for("result_page", slug=result["slug"]))

        return render_template(
            "quiz.html",
            questions=DISG_QUESTIONS,
            options=RANK_OPTIONS,
            field_name=field_name,
            error=error,
            submitted=request.form.to_dict(),
        ), 400

    return render_template(
        "quiz.html",
        questions=DISG_QUESTIONS,
        options=RANK_OPTIONS,
        field_name=field_name,
        error=None,
        submitted={},
    )


@app.get("/result/<slug>")
def result_page(slug):
    result = db.get_result_by_slug(slug)
    if result is None:
        return redirect(url_for("questionnaire"))
    description = describe_result(result)
    return render_template(
        "result.html",
        result=result,
        name=display_name_from_email(result.get("email")),
        profiles=TRAIT_PROFILES,
        trait_codes=TRAIT_CODES,
        **description,
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


# ── Questionnaire API ──────────────────────────────────────────────

@app.get("/api/questions")
def api_questions():
    return jsonify([
        {"id": row.id, "adjectives": list(row.words)} for row in DISG_QUESTIONS
    ])


@app.post("/api/test/submit")
def api_submit():
    data = request_json()
    email = data.get("email")
    if not is_valid_email(email):
        return error_response("Ungültige E-Mail-Adresse", 400)

    answers = parse_answers(data.get("answers"))
    result = store_submission(str(email), answers)
    description = describe_result(result)
    return jsonify({
        "success": True,
        "resultId": result["slug"],
        "scores": description["scores"],
        "dominant": description["dominant"],
        "secondary": description["secondary"],
    })


@app.get("/api/results/<slug>")
def api_result(slug):
    result = db.get_result_by_slug(slug)
    if result is None:
        return error_response("Ergebnis nicht gefunden", 404)
    description = describe_result(result)
    return jsonify({
        "id": result["slug"],
        "email": result["email"],
        "scores": description["scores"],
        "dominant": description["dominant"],
        "secondary": description["secondary"],
        "createdAt": result["created_at"],
    })


@app.get("/api/preview/pdf/<slug>")
def api_preview_pdf(slug):
    result = db.get_result_by_slug(slug)
    if result is None:
        return error_response("Ergebnis nicht gefunden", 404)
    pdf_buffer = build_result_pdf(result)
    name = display_name_from_email(result.get("email"))
    return send_file(
        pdf_buffer,
        mimetype="application/pdf",
        as_attachment=False,
        download_name=mailer.results_filename(name),
    )


SAMPLE_CONTACT = {
    "name": "Max Mustermann",
    "email": "max@mustermann.de",
    "phone": "+49 123 456789",
    "availability": "Wochentags 14-16 Uhr",
    "message": (
        "Ich interessiere mich sehr für die detaillierte Analyse meines DISG-Profils.\n\n"
        "Können Sie mir bitte weitere Informationen zu den Coaching-Paketen geben?\n\n"
        "Herzliche Grüße,\nMax"
    ),
}


@app.get("/api/preview/contact-pdf")
def api_preview_contact_pdf():
    contact = dict(SAMPLE_CONTACT, timestamp=datetime.now().strftime("%d.%m.%Y, %H:%M:%S"))
    return send_file(
        generate_contact_pdf(contact),
        mimetype="application/pdf",
        as_attachment=False,
        download_name=mailer.contact_filename(contact["name"]),
    )


# ── Email API ──────────────────────────────────────────────────────

@app.post("/api/email/send-results")
def api_send_results():
    data = request_json()
    slug = data.get("resultId")
    email = data.get("email")
    if not slug or not email:
        return error_response("resultId and email are required", 400)
    if not is_valid_email(email):
        return error_response("Invalid email address", 400)

    result = db.get_result_by_slug(str(slug))
    if result is None:
        return error_response("Result not found", 404)

    name = display_name_from_email(result.get("email"))
    pdf_buffer = build_result_pdf(result)
    try:
        mailer.send_results(str(email), name, pdf_buffer.getvalue())
    except mailer.MailerError as exc:
        app.logger.error("Error sending results email for %s: %s", slug, exc)
        return error_response(str(exc), 502)

    return jsonify({"success": True, "message": "Email sent successfully with PDF"})


@app.post("/api/email/send-contact")
def api_send_contact():
    data = request_json()
    name = str(data.get("name") or "").strip()
    email = str(data.get("email") or "").strip()
    message = str(data.get("message") or "").strip()
    if not name or not email or not message:
        return error_response("Name, email, and message are required", 400)
    if not is_valid_email(email):
        return error_response("Invalid email address", 400)

    slug = data.get("resultId")
    contact = {
        "name": name,
        "email": email,
        "phone": str(data.get("phone") or "Nicht angegeben"),
        "availability": str(data.get("availability") or "Nicht angegeben"),
        "message": message,
        "timestamp": datetime.now().strftime("%d.%m.%Y, %H:%M:%S"),
        "result_url": result_url(str(slug)) if slug else None,
    }

    try:
        mailer.send_contact_notification(contact)
    except mailer.MailerError as exc:
        app.logger.error("Error sending contact form email: %s", exc)
        return error_response(str(exc), 502)

    if data.get("sendCopy"):
        try:
            mailer.send_contact_copy(contact, generate_contact_pdf(contact).getvalue())
        except mailer.MailerError as exc:
            app.logger.warning("Failed to send confirmation email to %s: %s", email, exc)

    if slug:
        db.mark_contacted(str(slug))

    return jsonify({"success": True, "message": "Your message has been sent successfully"})


# ── Auth API ───────────────────────────────────────────────────────

@app.post("/api/auth/send-code")
def api_send_code():
    email = request_json().get("email")
    if not is_valid_email(email):
        return error_response("Bitte geben Sie eine gültige E-Mail-Adresse ein", 400)

    code = str(100000 + secrets.randbelow(900000))
    minutes = app.config["VERIFICATION_CODE_MINUTES"]
    db.purge_expired()
    db.create_verification(str(email), code, datetime.now(timezone.utc) + timedelta(minutes=minutes))
    try:
        mailer.send_verification_code(str(email), code, minutes)
    except mailer.MailerError as exc:
        app.logger.error("Error in send-code: %s", exc)
        return error_response("Fehler beim Senden des Bestätigungscodes", 502)
    return jsonify({"success": True})


@app.post("/api/auth/verify-code")
def api_verify_code():
    data = request_json()
    email = data.get("email")
    code = str(data.get("code") or "").strip()
    if not is_valid_email(email) or not code:
        return error_response("E-Mail und Code sind erforderlich", 400)
    if not db.consume_verification(str(email), code):
        return error_response("Ungültiger oder abgelaufener Code", 401)
    return jsonify({"success": True})


@app.post("/api/auth/verify-cheat")
def api_verify_cheat():
    code = str(request_json().get("code") or "")
    expected = app.config["TEST_CHEATCODE"]
    if expected and hmac.compare_digest(code.encode(), expected.encode()):
        return jsonify({"success": True, "message": "Cheatcode validiert"})
    failed_login_delay()
    return error_response("Ungültiger Cheatcode", 401)


@app.post("/api/auth/admin-login")
def api_admin_login():
    data = request_json()
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "").strip()
    if not email or not password:
        return error_response("E-Mail und Passwort sind erforderlich", 400)

    allowed = set(app.config["ALLOWED_EMAILS"])
    if app.config["EMAIL_ADMIN_RECIPIENT"]:
        allowed.add(app.config["EMAIL_ADMIN_RECIPIENT"].lower())
    admin_password = app.config["ADMIN_PASSWORD"]

    password_ok = bool(admin_password) and hmac.compare_digest(password.encode(), admin_password.encode())
    if email not in allowed or not password_ok:
        app.logger.warning("Failed admin login for %s", email)
        failed_login_delay()
        return error_response("Ungültige Anmeldedaten", 401)

    token = secrets.token_hex(32)
    hours = app.config["ADMIN_SESSION_HOURS"]
    db.purge_expired()
    db.create_admin_session(token, email, datetime.now(timezone.utc) + timedelta(hours=hours))
    app.logger.info("Admin login for %s", email)

    response = jsonify({"success": True})
    response.set_cookie(
        app.config["ADMIN_COOKIE_NAME"],
        token,
        max_age=hours * 60 * 60,
        httponly=True,
        secure=app.config["ADMIN_COOKIE_SECURE"],
        samesite="Strict",
    )
    return response


@app.post("/api/auth/logout")
def api_logout():
    cookie_name = app.config["ADMIN_COOKIE_NAME"]
    token = request.cookies.get(cookie_name)
    if token:
        db.delete_admin_session(token)
    response = jsonify({"success": True})
    response.delete_cookie(cookie_name)
    return response


# ── Admin API ──────────────────────────────────────────────────────

def _positive_int_arg(name: str, default: int) -> int:
    value = request.args.get(name, type=int)
    if value is None or value < 1:
        return default
    return value


@app.get("/api/admin/results")
def api_admin_results():
    page = _positive_int_arg("page", 1)
    per_page = min(
        _positive_int_arg("per_page", app.config["RESULTS_PER_PAGE"]),
        app.config["MAX_RESULTS_PER_PAGE"],
    )
    items, total = db.list_results(page=page, per_page=per_page)
    return jsonify({
        "items": items,
        "page": page,
        "per_page": per_page,
        "total": total,
        "pages": math.ceil(total / per_page) if total else 0,
    })


@app.delete("/api/admin/results/<int:result_id>")
def api_admin_delete_result(result_id):
    if not db.delete_result(result_id):
        return error_response("Ergebnis nicht gefunden", 404)
    app.logger.info("Admin %s deleted result %s", g.get("admin_email"), result_id)
    return jsonify({"success": True})


@app.get("/api/admin/stats")
def api_admin_stats():
    return jsonify(db.get_stats())


if __name__ == "__main__":
    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.run(debug=True, port=5001)
