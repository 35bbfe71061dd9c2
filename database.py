"""SQLite storage for users, results, verification codes and admin sessions."""
import json
import os
import sqlite3
import uuid
from datetime import datetime, timezone

from config import DATABASE_PATH
from questions import TRAIT_CODES
from scoring import ScoreVector, dominant_trait


def _now():
    return datetime.now(timezone.utc)


def _iso(moment):
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def get_connection():
    """Get a database connection with row_factory."""
    directory = os.path.dirname(DATABASE_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_db():
    """Initialize database tables."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS results (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            d_score INTEGER NOT NULL,
            i_score INTEGER NOT NULL,
            s_score INTEGER NOT NULL,
            g_score INTEGER NOT NULL,
            raw_data TEXT,
            slug TEXT NOT NULL UNIQUE,
            contacted_at TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS verifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL,
            code TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS admin_sessions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            token TEXT NOT NULL UNIQUE,
            user_email TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_results_created
            ON results(created_at);
        CREATE INDEX IF NOT EXISTS idx_results_user
            ON results(user_id);
        CREATE INDEX IF NOT EXISTS idx_verifications_email
            ON verifications(email);
    """)
    conn.commit()
    conn.close()


def _result_dict(row):
    result = dict(row)
    result["scores"] = {
        "D": result.pop("d_score"),
        "I": result.pop("i_score"),
        "S": result.pop("s_score"),
        "G": result.pop("g_score"),
    }
    raw_data = result.get("raw_data")
    result["raw_data"] = json.loads(raw_data) if raw_data else None
    return result


# ── Users & results ────────────────────────────────────────────────

def get_or_create_user(email):
    """Return the user row for an email address, creating it when missing."""
    email = email.strip().lower()
    conn = get_connection()
    row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
    if row is None:
        conn.execute(
            "INSERT INTO users (email, created_at) VALUES (?, ?)",
            (email, _iso(_now())),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
    conn.close()
    return dict(row)


def create_result(user_id, scores, answers):
    """Store a scored submission and return it, including its public slug."""
    slug = str(uuid.uuid4())
    conn = get_connection()
    cursor = conn.execute(
        """INSERT INTO results
           (user_id, d_score, i_score, s_score, g_score, raw_data, slug, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            user_id,
            scores.D,
            scores.I,
            scores.S,
            scores.G,
            json.dumps([{"word": a.word, "score": a.score} for a in answers], ensure_ascii=False),
            slug,
            _iso(_now()),
        ),
    )
    conn.commit()
    result_id = cursor.lastrowid
    conn.close()
    return get_result(result_id)


_RESULT_SELECT = """
    SELECT results.*, users.email AS email
    FROM results
    LEFT JOIN users ON users.id = results.user_id
"""


def get_result(result_id):
    """Get a result by its numeric ID."""
    conn = get_connection()
    row = conn.execute(_RESULT_SELECT + " WHERE results.id = ?", (result_id,)).fetchone()
    conn.close()
    if row:
        return _result_dict(row)
    return None


def get_result_by_slug(slug):
    """Get a result by its public slug."""
    conn = get_connection()
    row = conn.execute(_RESULT_SELECT + " WHERE results.slug = ?", (slug,)).fetchone()
    conn.close()
    if row:
        return _result_dict(row)
    return None


def list_results(page=1, per_page=20):
    """Return one page of results (newest first) and the total count."""
    offset = (page - 1) * per_page
    conn = get_connection()
    total = conn.execute("SELECT COUNT(*) FROM results").fetchone()[0]
    rows = conn.execute(
        _RESULT_SELECT + " ORDER BY results.created_at DESC, results.id DESC LIMIT ? OFFSET ?",
        (per_page, offset),
    ).fetchall()
    conn.close()
    items = []
    for row in rows:
        item = _result_dict(row)
        item.pop("raw_data")
        items.append(item)
    return items, total


def delete_result(result_id):
    """Delete a result. Returns False when no such result exists."""
    conn = get_connection()
    cursor = conn.execute("DELETE FROM results WHERE id = ?", (result_id,))
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


def mark_contacted(slug):
    """Record that the owner of a result sent a contact request."""
    conn = get_connection()
    cursor = conn.execute(
        "UPDATE results SET contacted_at = ? WHERE slug = ? AND contacted_at IS NULL",
        (_iso(_now()), slug),
    )
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


# ── Statistics ─────────────────────────────────────────────────────

def get_stats(days=7):
    """Compute aggregate statistics across all results."""
    conn = get_connection()

    totals = conn.execute("""
        SELECT
            COUNT(*) AS total_tests,
            COUNT(contacted_at) AS contacted,
            AVG(d_score) AS avg_d,
            AVG(i_score) AS avg_i,
            AVG(s_score) AS avg_s,
            AVG(g_score) AS avg_g
        FROM results
    """).fetchone()

    daily = conn.execute(
        """SELECT substr(created_at, 1, 10) AS date, COUNT(*) AS count
           FROM results
           GROUP BY substr(created_at, 1, 10)
           ORDER BY date DESC
           LIMIT ?""",
        (days,),
    ).fetchall()

    score_rows = conn.execute(
        "SELECT d_score, i_score, s_score, g_score FROM results"
    ).fetchall()

    conn.close()

    total = totals["total_tests"]
    contacted = totals["contacted"]
    distribution = {trait: 0 for trait in TRAIT_CODES}
    for row in score_rows:
        scores = ScoreVector(D=row["d_score"], I=row["i_score"], S=row["s_score"], G=row["g_score"])
        distribution[dominant_trait(scores)] += 1

    return {
        "totalTests": total,
        "contacted": contacted,
        "conversionRate": round(contacted / total * 100) if total else 0,
        "dailyStats": [dict(r) for r in reversed(daily)],
        "averageScores": {
            "D": round(totals["avg_d"] or 0, 1),
            "I": round(totals["avg_i"] or 0, 1),
            "S": round(totals["avg_s"] or 0, 1),
            "G": round(totals["avg_g"] or 0, 1),
        },
        "dominantDistribution": distribution,
    }


# ── Verification codes ─────────────────────────────────────────────

def create_verification(email, code, expires_at):
    """Store a verification code for an email address."""
    conn = get_connection()
    conn.execute(
        """INSERT INTO verifications (email, code, expires_at, created_at)
           VALUES (?, ?, ?, ?)""",
        (email.strip().lower(), code, _iso(expires_at), _iso(_now())),
    )
    conn.commit()
    conn.close()


def consume_verification(email, code):
    """Check a code; a matching unexpired code is used up."""
    email = email.strip().lower()
    conn = get_connection()
    row = conn.execute(
        """SELECT id FROM verifications
           WHERE email = ? AND code = ? AND expires_at > ?
           ORDER BY id DESC LIMIT 1""",
        (email, code, _iso(_now())),
    ).fetchone()
    if row:
        conn.execute(
            "DELETE FROM verifications WHERE email = ? AND code = ?", (email, code)
        )
        conn.commit()
    conn.close()
    return row is not None


# ── Admin sessions ─────────────────────────────────────────────────

def create_admin_session(token, email, expires_at):
    """Create an admin session for a freshly issued token."""
    conn = get_connection()
    conn.execute(
        """INSERT INTO admin_sessions (token, user_email, expires_at, created_at)
           VALUES (?, ?, ?, ?)""",
        (token, email, _iso(expires_at), _iso(_now())),
    )
    conn.commit()
    conn.close()


def get_admin_session(token):
    """Get an unexpired admin session by token."""
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM admin_sessions WHERE token = ? AND expires_at > ? LIMIT 1",
        (token, _iso(_now())),
    ).fetchone()
    conn.close()
    if row:
        return dict(row)
    return None


def delete_admin_session(token):
    """Invalidate an admin session immediately."""
    conn = get_connection()
    conn.execute("DELETE FROM admin_sessions WHERE token = ?", (token,))
    conn.commit()
    conn.close()


def purge_expired():
    """Remove expired admin sessions and verification codes."""
    now = _iso(_now())
    conn = get_connection()
    sessions = conn.execute("DELETE FROM admin_sessions WHERE expires_at <= ?", (now,)).rowcount
    codes = conn.execute("DELETE FROM verifications WHERE expires_at <= ?", (now,)).rowcount
    conn.commit()
    conn.close()
    return {"admin_sessions": sessions, "verifications": codes}
