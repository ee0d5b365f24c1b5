"""
Contact records and directory sources.

A ContactRecord is an immutable snapshot of one contact's callable phone
ids. The grammar cache is keyed by the fingerprint of the whole set, so
any change to a name or a phone id forces a grammar rebuild.

Sources:
    - ContactStore: SQLite contacts + call log (the normal source)
    - JsonContactFile: a fixed contact list, used to replay test sessions
"""

import hashlib
import json
import sqlite3
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from voicedialer.logger import get_logger


ID_UNDEFINED = -1

# Phone kinds as used in semantic tags and PlaceCall.phone_kind
KIND_HOME = "H"
KIND_MOBILE = "M"
KIND_WORK = "W"
KIND_OTHER = "O"
PHONE_KINDS = (KIND_HOME, KIND_MOBILE, KIND_WORK, KIND_OTHER)


@dataclass(frozen=True)
class ContactRecord:
    """One contact, reduced to what the grammar needs."""

    contact_id: int
    name: str
    primary_id: int = ID_UNDEFINED
    home_id: int = ID_UNDEFINED
    mobile_id: int = ID_UNDEFINED
    work_id: int = ID_UNDEFINED
    other_id: int = ID_UNDEFINED
    fallback_id: int = ID_UNDEFINED

    def phone_ids(self) -> tuple:
        """The seven ids in grammar order."""
        return (self.contact_id, self.primary_id, self.home_id, self.mobile_id,
                self.work_id, self.other_id, self.fallback_id)

    @classmethod
    def from_dict(cls, data: dict) -> "ContactRecord":
        return cls(
            contact_id=int(data["contact_id"]),
            name=str(data["name"]),
            primary_id=int(data.get("primary_id", ID_UNDEFINED)),
            home_id=int(data.get("home_id", ID_UNDEFINED)),
            mobile_id=int(data.get("mobile_id", ID_UNDEFINED)),
            work_id=int(data.get("work_id", ID_UNDEFINED)),
            other_id=int(data.get("other_id", ID_UNDEFINED)),
            fallback_id=int(data.get("fallback_id", ID_UNDEFINED)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


PHONE_ID_COUNT = len(ContactRecord(0, "").phone_ids())


def fingerprint(contacts: Iterable[ContactRecord]) -> str:
    """Order-independent hash of a contact set, as a hex string."""
    lines = sorted(
        json.dumps([c.name, *c.phone_ids()], ensure_ascii=False)
        for c in set(contacts)
    )
    digest = hashlib.sha1("\n".join(lines).encode("utf-8"))
    return digest.hexdigest()[:16]


class ContactDirectory(Protocol):
    def get_contacts(self) -> List[ContactRecord]: ...


class CallLog(Protocol):
    def last_outgoing_number(self) -> Optional[str]: ...


# ---------------------------------------------------------------------------
# JSON contact file
# ---------------------------------------------------------------------------

class JsonContactFile:
    """Contacts read from a JSON list of ContactRecord dicts."""

    def __init__(self, path):
        self.path = Path(path)

    def get_contacts(self) -> List[ContactRecord]:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return [ContactRecord.from_dict(item) for item in data]

    def write(self, contacts: Iterable[ContactRecord]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([c.to_dict() for c in contacts], f, indent=2, ensure_ascii=False)

    def __eq__(self, other):
        return isinstance(other, JsonContactFile) and other.path == self.path

    def __hash__(self):
        return hash(self.path)


# ---------------------------------------------------------------------------
# SQLite contact store
# ---------------------------------------------------------------------------

class ContactStore:
    """SQLite-backed contacts, phones and outgoing call log."""

    def __init__(self, config):
        self.config = config
        self.logger = get_logger(__name__, config)

        db_path = config.get("contacts.db_path")
        if db_path:
            self.db_path = Path(db_path).expanduser()
        else:
            self.db_path = config.storage_path / "data" / "contacts.db"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_lock = threading.Lock()
        self._init_db()

    # ------------------------------------------------------------------
    # Database setup
    # ------------------------------------------------------------------

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS contacts (
                        contact_id  INTEGER PRIMARY KEY AUTOINCREMENT,
                        name        TEXT NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS phones (
                        phone_id    INTEGER PRIMARY KEY AUTOINCREMENT,
                        contact_id  INTEGER NOT NULL,
                        kind        TEXT NOT NULL,
                        number      TEXT NOT NULL,
                        is_primary  INTEGER NOT NULL DEFAULT 0,
                        FOREIGN KEY (contact_id) REFERENCES contacts(contact_id) ON DELETE CASCADE
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS calls (
                        call_id     INTEGER PRIMARY KEY AUTOINCREMENT,
                        number      TEXT NOT NULL,
                        outgoing    INTEGER NOT NULL DEFAULT 1,
                        placed_at   REAL NOT NULL
                    )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_phones_contact ON phones(contact_id)")
                conn.execute("PRAGMA foreign_keys = ON")
                conn.commit()
            finally:
                conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_contact(self, name: str) -> int:
        """Add a contact. Returns contact_id."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                cur = conn.execute("INSERT INTO contacts (name) VALUES (?)", (name,))
                conn.commit()
                return cur.lastrowid
            finally:
                conn.close()

    def add_phone(self, contact_id: int, kind: str, number: str,
                  primary: bool = False) -> int:
        """Add a phone number of the given kind (H/M/W/O or free text). Returns phone_id."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                cur = conn.execute(
                    "INSERT INTO phones (contact_id, kind, number, is_primary) VALUES (?, ?, ?, ?)",
                    (contact_id, kind, number, 1 if primary else 0),
                )
                conn.commit()
                return cur.lastrowid
            finally:
                conn.close()

    def record_call(self, number: str, outgoing: bool = True):
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute(
                    "INSERT INTO calls (number, outgoing, placed_at) VALUES (?, ?, ?)",
                    (number, 1 if outgoing else 0, time.time()),
                )
                conn.commit()
            finally:
                conn.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_contacts(self) -> List[ContactRecord]:
        """Snapshot all contacts that have at least one phone."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            try:
                rows = conn.execute(
                    "SELECT c.contact_id, c.name, p.phone_id, p.kind, p.is_primary "
                    "FROM contacts c JOIN phones p ON p.contact_id = c.contact_id "
                    "ORDER BY c.contact_id, p.phone_id"
                ).fetchall()
            finally:
                conn.close()

        grouped = {}
        for row in rows:
            grouped.setdefault((row["contact_id"], row["name"]), []).append(row)

        contacts = [self._to_record(cid, name, phones)
                    for (cid, name), phones in grouped.items()]
        self.logger.debug(f"Loaded {len(contacts)} contacts from {self.db_path}")
        return contacts

    @staticmethod
    def _to_record(contact_id: int, name: str, phones) -> ContactRecord:
        ids = {kind: ID_UNDEFINED for kind in PHONE_KINDS}
        primary = ID_UNDEFINED
        fallback = ID_UNDEFINED
        for phone in phones:
            kind = phone["kind"].upper()
            if phone["is_primary"] and primary == ID_UNDEFINED:
                primary = phone["phone_id"]
            if kind in ids:
                if ids[kind] == ID_UNDEFINED:
                    ids[kind] = phone["phone_id"]
            elif fallback == ID_UNDEFINED:
                fallback = phone["phone_id"]
        return ContactRecord(
            contact_id=contact_id,
            name=name,
            primary_id=primary,
            home_id=ids[KIND_HOME],
            mobile_id=ids[KIND_MOBILE],
            work_id=ids[KIND_WORK],
            other_id=ids[KIND_OTHER],
            fallback_id=fallback,
        )

    def phone_number(self, phone_id: int) -> Optional[str]:
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                row = conn.execute(
                    "SELECT number FROM phones WHERE phone_id = ?", (phone_id,)
                ).fetchone()
                return row[0] if row else None
            finally:
                conn.close()

    def last_outgoing_number(self) -> Optional[str]:
        """Most recently dialed number, for "redial"."""
        with self._db_lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                row = conn.execute(
                    "SELECT number FROM calls WHERE outgoing = 1 "
                    "ORDER BY placed_at DESC, call_id DESC LIMIT 1"
                ).fetchone()
                return row[0] if row else None
            finally:
                conn.close()
