import json
import secrets
import uuid
from pathlib import Path
from typing import Callable

import aiosqlite


async def init_db(db_path: str):
    """Create tables if they don't exist. Called once on app startup."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.executescript("""
            CREATE TABLE IF NOT EXISTS merchants (
                id                  TEXT PRIMARY KEY,
                email               TEXT NOT NULL UNIQUE,
                name                TEXT,
                preferred_language  TEXT NOT NULL DEFAULT 'en',
                api_token           TEXT NOT NULL UNIQUE,
                created_at          TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS stores (
                id                  TEXT PRIMARY KEY,
                merchant_id         TEXT NOT NULL REFERENCES merchants(id) ON DELETE CASCADE,
                platform            TEXT NOT NULL DEFAULT 'zid',
                access_token        TEXT NOT NULL,
                auth_token          TEXT,
                refresh_token       TEXT,
                store_id            TEXT,
                store_name          TEXT NOT NULL,
                theme_id            TEXT,
                logo_url            TEXT,
                landing_page_data   TEXT,
                created_at          TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at          TEXT NOT NULL DEFAULT (datetime('now')),
                UNIQUE (merchant_id, platform)
            );

            CREATE TABLE IF NOT EXISTS oauth_states (
                state       TEXT PRIMARY KEY,
                merchant_id TEXT NOT NULL REFERENCES merchants(id) ON DELETE CASCADE,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS setup_sessions (
                id                      TEXT PRIMARY KEY,
                store_id                TEXT NOT NULL REFERENCES stores(id) ON DELETE CASCADE,
                status                  TEXT NOT NULL DEFAULT 'pending',
                current_step            TEXT NOT NULL DEFAULT 'business',
                completion_percentage   INTEGER NOT NULL DEFAULT 0,
                confirmed_actions       TEXT NOT NULL DEFAULT '[]',
                created_at              TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at              TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_setup_sessions_store
                ON setup_sessions(store_id, status);

            CREATE TABLE IF NOT EXISTS messages (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id  TEXT NOT NULL REFERENCES setup_sessions(id) ON DELETE CASCADE,
                role        TEXT NOT NULL,
                content     TEXT NOT NULL,
                metadata    TEXT,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_messages_session
                ON messages(session_id, created_at);

            CREATE TABLE IF NOT EXISTS categories (
                id          TEXT PRIMARY KEY,
                session_id  TEXT NOT NULL REFERENCES setup_sessions(id) ON DELETE CASCADE,
                platform_id TEXT,
                name_ar     TEXT NOT NULL,
                name_en     TEXT NOT NULL,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS products (
                id              TEXT PRIMARY KEY,
                session_id      TEXT NOT NULL REFERENCES setup_sessions(id) ON DELETE CASCADE,
                platform_id     TEXT,
                name_ar         TEXT NOT NULL,
                name_en         TEXT NOT NULL,
                description_ar  TEXT,
                description_en  TEXT,
                price           REAL NOT NULL DEFAULT 0,
                variants        TEXT NOT NULL DEFAULT '[]',
                created_at      TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS coupons (
                id              TEXT PRIMARY KEY,
                session_id      TEXT NOT NULL REFERENCES setup_sessions(id) ON DELETE CASCADE,
                code            TEXT NOT NULL,
                discount_type   TEXT NOT NULL,
                discount_value  REAL NOT NULL,
                expiry_date     TEXT,
                min_order_value REAL,
                description_ar  TEXT,
                description_en  TEXT,
                created_at      TEXT NOT NULL DEFAULT (datetime('now'))
            );
        """)
        await db.commit()


def _decode(row: aiosqlite.Row | None, *json_columns: str) -> dict | None:
    if row is None:
        return None
    record = dict(row)
    for column in json_columns:
        if record.get(column) is not None:
            record[column] = json.loads(record[column])
    return record


# --- Merchant CRUD ---

async def create_merchant(
    db_path: str,
    email: str,
    name: str | None = None,
    preferred_language: str = "en",
) -> dict:
    """Create a merchant profile. Returns the merchant id and API token."""
    merchant_id = str(uuid.uuid4())
    api_token = secrets.token_urlsafe(32)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT INTO merchants (id, email, name, preferred_language, api_token) VALUES (?, ?, ?, ?, ?)",
            (merchant_id, email, name, preferred_language, api_token),
        )
        await db.commit()
    return {"id": merchant_id, "api_token": api_token}


async def get_merchant_by_email(db_path: str, email: str) -> dict | None:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute("SELECT * FROM merchants WHERE email = ?", (email,))
        return _decode(await cursor.fetchone())


async def get_merchant_by_token(db_path: str, api_token: str) -> dict | None:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute("SELECT * FROM merchants WHERE api_token = ?", (api_token,))
        return _decode(await cursor.fetchone())


async def update_merchant(db_path: str, merchant_id: str, **fields):
    """Update profile columns (name, preferred_language)."""
    fields = {k: v for k, v in fields.items() if k in ("name", "preferred_language") and v is not None}
    if not fields:
        return
    assignments = ", ".join(f"{column} = ?" for column in fields)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            f"UPDATE merchants SET {assignments} WHERE id = ?",
            (*fields.values(), merchant_id),
        )
        await db.commit()


# --- OAuth state ---

async def create_oauth_state(db_path: str, merchant_id: str) -> str:
    state = secrets.token_urlsafe(24)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            "INSERT INTO oauth_states (state, merchant_id) VALUES (?, ?)",
            (state, merchant_id),
        )
        await db.commit()
    return state


async def consume_oauth_state(db_path: str, state: str) -> str | None:
    """Return the merchant id bound to ``state`` and forget the state."""
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute("SELECT merchant_id FROM oauth_states WHERE state = ?", (state,))
        row = await cursor.fetchone()
        if row is None:
            return None
        await db.execute("DELETE FROM oauth_states WHERE state = ?", (state,))
        await db.commit()
        return row[0]


# --- Store CRUD ---

async def upsert_store(
    db_path: str,
    merchant_id: str,
    access_token: str,
    store_name: str,
    auth_token: str | None = None,
    refresh_token: str | None = None,
    store_id: str | None = None,
    platform: str = "zid",
) -> str:
    """Create or refresh the merchant's connected store. Returns the store row id."""
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute(
            "SELECT id FROM stores WHERE merchant_id = ? AND platform = ?",
            (merchant_id, platform),
        )
        row = await cursor.fetchone()
        if row is None:
            store_row_id = str(uuid.uuid4())
            await db.execute(
                """INSERT INTO stores
                   (id, merchant_id, platform, access_token, auth_token, refresh_token, store_id, store_name)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (store_row_id, merchant_id, platform, access_token, auth_token, refresh_token, store_id, store_name),
            )
        else:
            store_row_id = row[0]
            await db.execute(
                """UPDATE stores SET access_token = ?, auth_token = ?, refresh_token = ?,
                   store_id = COALESCE(?, store_id), store_name = ?, updated_at = datetime('now')
                   WHERE id = ?""",
                (access_token, auth_token, refresh_token, store_id, store_name, store_row_id),
            )
        await db.commit()
    return store_row_id


async def get_store_for_merchant(db_path: str, merchant_id: str, platform: str = "zid") -> dict | None:
    """Fetch the merchant's most recent connected store. Returns None if not connected."""
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM stores WHERE merchant_id = ? AND platform = ? ORDER BY created_at DESC LIMIT 1",
            (merchant_id, platform),
        )
        return _decode(await cursor.fetchone(), "landing_page_data")


async def update_store(db_path: str, store_row_id: str, **fields):
    """Update store preferences (theme_id, logo_url, landing_page_data) or a repaired store_id."""
    allowed = ("theme_id", "logo_url", "landing_page_data", "store_id", "store_name")
    values = {
        k: json.dumps(v) if k == "landing_page_data" and v is not None else v
        for k, v in fields.items()
        if k in allowed
    }
    if not values:
        return
    assignments = ", ".join(f"{column} = ?" for column in values)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            f"UPDATE stores SET {assignments}, updated_at = datetime('now') WHERE id = ?",
            (*values.values(), store_row_id),
        )
        await db.commit()


# --- Setup session CRUD ---

async def get_or_create_setup_session(db_path: str, store_row_id: str) -> dict:
    """Return the store's in-progress session, creating one on first visit."""
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            """SELECT * FROM setup_sessions WHERE store_id = ? AND status = 'in_progress'
               ORDER BY created_at DESC LIMIT 1""",
            (store_row_id,),
        )
        row = await cursor.fetchone()
        if row is not None:
            return _decode(row, "confirmed_actions")

        session_id = str(uuid.uuid4())
        await db.execute(
            "INSERT INTO setup_sessions (id, store_id, status) VALUES (?, ?, 'in_progress')",
            (session_id, store_row_id),
        )
        await db.commit()
        cursor = await db.execute("SELECT * FROM setup_sessions WHERE id = ?", (session_id,))
        return _decode(await cursor.fetchone(), "confirmed_actions")


async def get_setup_session(db_path: str, session_id: str) -> dict | None:
    """Fetch a session by ID. Returns None if not found."""
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM setup_sessions WHERE id = ?",
            (session_id,),
        )
        return _decode(await cursor.fetchone(), "confirmed_actions")


async def advance_session_progress(
    db_path: str,
    session_id: str,
    reduce: Callable[[dict, int], tuple[str, int, list[str]]],
) -> dict | None:
    """Read-modify-write of a session's progress under one write lock.

    ``reduce`` receives the current row and the session's product count and
    returns ``(current_step, completion_percentage, confirmed_actions)``.
    """
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("BEGIN IMMEDIATE")
        cursor = await db.execute("SELECT * FROM setup_sessions WHERE id = ?", (session_id,))
        session = _decode(await cursor.fetchone(), "confirmed_actions")
        if session is None:
            await db.rollback()
            return None
        cursor = await db.execute("SELECT COUNT(*) FROM products WHERE session_id = ?", (session_id,))
        (product_count,) = await cursor.fetchone()

        current_step, completion_percentage, confirmed_actions = reduce(session, product_count)
        await db.execute(
            """UPDATE setup_sessions
               SET current_step = ?, completion_percentage = ?, confirmed_actions = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (current_step, completion_percentage, json.dumps(confirmed_actions), session_id),
        )
        await db.commit()
        session.update(
            current_step=current_step,
            completion_percentage=completion_percentage,
            confirmed_actions=confirmed_actions,
        )
        return session


# --- Message CRUD ---

async def save_message(
    db_path: str,
    session_id: str,
    role: str,
    content: str,
    metadata: dict | None = None,
) -> int | None:
    """Append a message to the conversation. Returns the message id."""
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute(
            "INSERT INTO messages (session_id, role, content, metadata) VALUES (?, ?, ?, ?)",
            (session_id, role, content, json.dumps(metadata, ensure_ascii=False) if metadata else None),
        )
        # Update the session's updated_at timestamp
        await db.execute(
            "UPDATE setup_sessions SET updated_at = datetime('now') WHERE id = ?",
            (session_id,),
        )
        await db.commit()
        return cursor.lastrowid


async def get_messages(db_path: str, session_id: str) -> list[dict]:
    """Load all messages for a session, oldest first."""
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY id ASC",
            (session_id,),
        )
        rows = await cursor.fetchall()
        return [_decode(row, "metadata") for row in rows]


# --- Mirrored catalog records ---

async def save_categories(db_path: str, session_id: str, categories: list[dict]) -> list[dict]:
    """Record categories pushed to the store. Each dict has name_ar, name_en, platform_id."""
    records = []
    async with aiosqlite.connect(db_path) as db:
        for category in categories:
            record = {
                "id": str(uuid.uuid4()),
                "session_id": session_id,
                "platform_id": category.get("platform_id"),
                "name_ar": category["name_ar"],
                "name_en": category["name_en"],
            }
            await db.execute(
                "INSERT INTO categories (id, session_id, platform_id, name_ar, name_en) VALUES (?, ?, ?, ?, ?)",
                tuple(record.values()),
            )
            records.append(record)
        await db.commit()
    return records


async def list_categories(db_path: str, session_id: str) -> list[dict]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM categories WHERE session_id = ? ORDER BY created_at ASC, rowid ASC",
            (session_id,),
        )
        return [dict(row) for row in await cursor.fetchall()]


async def save_product(
    db_path: str,
    session_id: str,
    name_ar: str,
    name_en: str,
    price: float = 0,
    description_ar: str | None = None,
    description_en: str | None = None,
    variants: list[dict] | None = None,
    platform_id: str | None = None,
) -> dict:
    """Record a product accepted by the merchant; platform_id is None until the store confirms it."""
    record = {
        "id": str(uuid.uuid4()),
        "session_id": session_id,
        "platform_id": platform_id,
        "name_ar": name_ar,
        "name_en": name_en,
        "description_ar": description_ar,
        "description_en": description_en,
        "price": price,
        "variants": variants or [],
    }
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """INSERT INTO products
               (id, session_id, platform_id, name_ar, name_en, description_ar, description_en, price, variants)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (*list(record.values())[:-1], json.dumps(record["variants"], ensure_ascii=False)),
        )
        await db.commit()
    return record


async def list_products(db_path: str, session_id: str) -> list[dict]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM products WHERE session_id = ? ORDER BY created_at ASC, rowid ASC",
            (session_id,),
        )
        return [_decode(row, "variants") for row in await cursor.fetchall()]


async def count_products(db_path: str, session_id: str) -> int:
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute("SELECT COUNT(*) FROM products WHERE session_id = ?", (session_id,))
        row = await cursor.fetchone()
        return row[0] if row else 0


async def save_coupon(db_path: str, session_id: str, coupon: dict) -> dict:
    record = {
        "id": str(uuid.uuid4()),
        "session_id": session_id,
        "code": coupon["code"],
        "discount_type": coupon["discount_type"],
        "discount_value": coupon["discount_value"],
        "expiry_date": coupon.get("expiry_date"),
        "min_order_value": coupon.get("min_order_value"),
        "description_ar": coupon.get("description_ar"),
        "description_en": coupon.get("description_en"),
    }
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            f"INSERT INTO coupons ({', '.join(record)}) VALUES ({', '.join('?' for _ in record)})",
            tuple(record.values()),
        )
        await db.commit()
    return record
