"""
SQLite-backed library storage for TubeRelay.
Folders group favorite videos; a favorite belongs to at most one folder.
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from errors import BadRequest, Conflict, InternalError, NotFound

logger = logging.getLogger(__name__)

_FOLDER_COLUMNS = """
    f.id, f.name, f.created_at,
    (SELECT COUNT(*) FROM favorites fav WHERE fav.folder_id = f.id) AS favorite_count
"""


def folder_to_api(row: dict) -> dict:
    return {
        "id": row["id"],
        "name": row["name"],
        "createdAt": row["created_at"],
        "favoriteCount": row.get("favorite_count", 0),
    }


def favorite_to_api(row: dict) -> dict:
    return {
        "videoId": row["video_id"],
        "title": row["title"],
        "channel": row["channel"],
        "thumbnailUrl": row["thumbnail_url"],
        "folderId": row["folder_id"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise BadRequest("Folder name is required")
    return name


class LibraryStore:
    """SQLite database for folders and favorites."""

    def __init__(self, db_path: str = "db/library.db"):
        """Initialize database connection and create schema."""
        db_file = Path(db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._create_tables()

    def _create_tables(self) -> None:
        """Create all tables if they don't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS folders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE COLLATE NOCASE,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        # No ON DELETE action: deleting a folder that still has favorites
        # fails, so delete_folder must detach them first.
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS favorites (
                video_id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                channel TEXT NOT NULL,
                thumbnail_url TEXT,
                folder_id INTEGER REFERENCES folders(id),
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_favorites_folder ON favorites(folder_id)
        """)
        self.conn.commit()

    # --- Folders ---

    def _get_folder_unlocked(self, folder_id: int) -> Optional[dict]:
        """Get folder by id (caller must hold _lock)."""
        cursor = self.conn.execute(
            f"SELECT {_FOLDER_COLUMNS} FROM folders f WHERE f.id = ?", (folder_id,)
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def _require_folder_unlocked(self, folder_id: int) -> None:
        cursor = self.conn.execute("SELECT 1 FROM folders WHERE id = ?", (folder_id,))
        if cursor.fetchone() is None:
            raise NotFound(f"Folder {folder_id} not found", folderId=folder_id)

    def list_folders(self) -> list[dict]:
        """All folders ordered by name, with their favorite counts."""
        with self._lock:
            cursor = self.conn.execute(
                f"SELECT {_FOLDER_COLUMNS} FROM folders f ORDER BY f.name COLLATE NOCASE"
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_folder(self, folder_id: int) -> Optional[dict]:
        with self._lock:
            return self._get_folder_unlocked(folder_id)

    def create_folder(self, name: str) -> dict:
        """Create a folder. Names are unique regardless of case."""
        name = _clean_name(name)
        with self._lock:
            try:
                cursor = self.conn.execute("INSERT INTO folders (name) VALUES (?)", (name,))
                self.conn.commit()
            except sqlite3.IntegrityError:
                self.conn.rollback()
                raise Conflict(f"A folder named {name!r} already exists", name=name)
            logger.info("Created folder %d (%s)", cursor.lastrowid, name)
            return self._get_folder_unlocked(cursor.lastrowid)

    def rename_folder(self, folder_id: int, name: str) -> dict:
        """Rename a folder; case-only renames of the same folder are allowed."""
        name = _clean_name(name)
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "UPDATE folders SET name = ? WHERE id = ?", (name, folder_id)
                )
                self.conn.commit()
            except sqlite3.IntegrityError:
                self.conn.rollback()
                raise Conflict(f"A folder named {name!r} already exists", name=name)
            if cursor.rowcount == 0:
                raise NotFound(f"Folder {folder_id} not found", folderId=folder_id)
            return self._get_folder_unlocked(folder_id)

    def delete_folder(self, folder_id: int) -> int:
        """Detach the folder's favorites and delete it, as one transaction.

        Returns the number of favorites that became folderless.
        """
        with self._lock:
            self._require_folder_unlocked(folder_id)
            try:
                detached = self.conn.execute(
                    "UPDATE favorites SET folder_id = NULL, updated_at = datetime('now') "
                    "WHERE folder_id = ?",
                    (folder_id,),
                ).rowcount
                self.conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
                self.conn.commit()
            except sqlite3.Error as e:
                self.conn.rollback()
                logger.error("Folder delete rolled back for %d: %s", folder_id, e)
                raise InternalError(f"Failed to delete folder {folder_id}") from e
            logger.info("Deleted folder %d, detached %d favorites", folder_id, detached)
            return detached

    # --- Favorites ---

    def _get_favorite_unlocked(self, video_id: str) -> Optional[dict]:
        """Get favorite by video_id (caller must hold _lock)."""
        cursor = self.conn.execute("SELECT * FROM favorites WHERE video_id = ?", (video_id,))
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_favorite(self, video_id: str) -> Optional[dict]:
        with self._lock:
            return self._get_favorite_unlocked(video_id)

    def list_favorites(self, folder_id: Optional[int] = None,
                       unassigned: bool = False) -> list[dict]:
        """Favorites, newest first. Filter by folder or to folderless ones."""
        query = "SELECT * FROM favorites"
        params: tuple = ()
        if unassigned:
            query += " WHERE folder_id IS NULL"
        elif folder_id is not None:
            query += " WHERE folder_id = ?"
            params = (folder_id,)
        query += " ORDER BY created_at DESC, rowid DESC"
        with self._lock:
            cursor = self.conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def upsert_favorite(
        self,
        video_id: str,
        title: str,
        channel: str,
        thumbnail_url: Optional[str] = None,
        folder_id: Optional[int] = None,
    ) -> tuple[dict, bool]:
        """
        Add a favorite, or refresh metadata and folder of an existing one.
        Returns (favorite row, created).
        """
        video_id = (video_id or "").strip()
        if not video_id or not (title or "").strip() or not (channel or "").strip():
            raise BadRequest("videoId, title and channel are required")
        with self._lock:
            if folder_id is not None:
                self._require_folder_unlocked(folder_id)
            created = self._get_favorite_unlocked(video_id) is None
            self.conn.execute(
                """
                INSERT INTO favorites (video_id, title, channel, thumbnail_url, folder_id)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(video_id) DO UPDATE SET
                    title = excluded.title,
                    channel = excluded.channel,
                    thumbnail_url = excluded.thumbnail_url,
                    folder_id = excluded.folder_id,
                    updated_at = datetime('now')
                """,
                (video_id, title, channel, thumbnail_url, folder_id),
            )
            self.conn.commit()
            return self._get_favorite_unlocked(video_id), created

    def remove_favorite(self, video_id: str) -> dict:
        """Delete a favorite and return the removed row."""
        with self._lock:
            existing = self._get_favorite_unlocked(video_id)
            if existing is None:
                raise NotFound(f"Favorite {video_id} not found", videoId=video_id)
            self.conn.execute("DELETE FROM favorites WHERE video_id = ?", (video_id,))
            self.conn.commit()
            return existing

    def move_favorite(self, video_id: str, folder_id: Optional[int]) -> dict:
        """Assign a favorite to another folder, or to none with folder_id=None."""
        with self._lock:
            if self._get_favorite_unlocked(video_id) is None:
                raise NotFound(f"Favorite {video_id} not found", videoId=video_id)
            if folder_id is not None:
                self._require_folder_unlocked(folder_id)
            self.conn.execute(
                "UPDATE favorites SET folder_id = ?, updated_at = datetime('now') WHERE video_id = ?",
                (folder_id, video_id),
            )
            self.conn.commit()
            return self._get_favorite_unlocked(video_id)

    def ping(self) -> bool:
        """Cheap connectivity check for the health endpoint."""
        try:
            with self._lock:
                self.conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.error("Database ping failed: %s", e)
            return False

    def close(self) -> None:
        """Close database connection."""
        self.conn.close()
