"""
Database layer for Safe Jobs.

Holds the job and report records and a small SQLite-backed job store that
supplies raw job collections to the search and listing flows.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Generator, Optional

logger = logging.getLogger(__name__)


class SafetyTier(Enum):
    """Completeness-based risk tier assigned when a job is posted."""
    LOW_RISK = "Low Risk"
    MEDIUM_RISK = "Medium Risk"
    HIGH_RISK = "High Risk"


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude must be between -90 and 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude must be between -180 and 180, got {self.longitude}")

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Coordinate"]:
        """Build a coordinate from a {latitude, longitude} mapping, or None."""
        if not data:
            return None
        latitude = data.get("latitude")
        longitude = data.get("longitude")
        if latitude is None or longitude is None:
            return None
        return cls(float(latitude), float(longitude))

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass
class JobRecord:
    """Represents a posted job listing."""
    id: Optional[str]
    title: str
    company: str
    location: str
    pay: str = ""
    description: str = ""
    coordinates: Optional[Coordinate] = None
    safety_score: Optional[SafetyTier] = None
    verified: bool = False
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class JobReport:
    """A user report flagging a job listing."""
    id: str
    job_id: str
    reason: str
    timestamp: datetime


class JobStore:
    """SQLite store for job listings and reports."""

    def __init__(self, db_path: str = "jobs.db"):
        """
        Initialize database connection.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._init_database()

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize the database schema."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            # rowid keeps insertion order for reads
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    company TEXT NOT NULL,
                    location TEXT NOT NULL,
                    pay TEXT,
                    description TEXT,
                    latitude REAL,
                    longitude REAL,
                    safety_score TEXT,
                    verified BOOLEAN DEFAULT FALSE,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_title ON jobs(title)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS reports (
                    id TEXT PRIMARY KEY,
                    job_id TEXT NOT NULL,
                    reason TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    FOREIGN KEY (job_id) REFERENCES jobs(id)
                )
            """)

            conn.commit()

    def add_job(self, job: JobRecord) -> str:
        """
        Append a new job to the store.

        Args:
            job: The job to insert. A missing id is generated.

        Returns:
            The ID of the inserted job.
        """
        job_id = job.id or uuid.uuid4().hex
        coords = job.coordinates

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO jobs (
                    id, title, company, location, pay, description,
                    latitude, longitude, safety_score, verified, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                job_id, job.title, job.company, job.location, job.pay, job.description,
                coords.latitude if coords else None,
                coords.longitude if coords else None,
                job.safety_score.value if job.safety_score else None,
                job.verified, job.created_at.isoformat(),
            ))
            conn.commit()

        logger.debug(f"Stored job '{job.title}' as {job_id}")
        return job_id

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        """
        Get a job by its ID.

        Args:
            job_id: The ID of the job.

        Returns:
            The JobRecord, or None if not found.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM jobs WHERE id = ?", (job_id,))
            row = cursor.fetchone()
            return self._row_to_job(row) if row else None

    def get_all_jobs(self) -> list[JobRecord]:
        """Get all jobs in insertion order."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM jobs ORDER BY rowid")
            return [self._row_to_job(row) for row in cursor.fetchall()]

    def get_jobs_by_title_prefix(self, prefix: str) -> list[JobRecord]:
        """
        Get jobs whose title starts with the given prefix (case-sensitive).

        Args:
            prefix: Title prefix to match. Empty returns all jobs.

        Returns:
            Matching jobs in insertion order.
        """
        if not prefix:
            return self.get_all_jobs()

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM jobs
                WHERE title >= ? AND title <= ?
                ORDER BY rowid
            """, (prefix, prefix + "\uf8ff"))
            return [self._row_to_job(row) for row in cursor.fetchall()]

    def add_report(self, job_id: str, reason: str) -> str:
        """
        Record a report against a job.

        Args:
            job_id: The reported job's ID.
            reason: Free-text reason.

        Returns:
            The ID of the report.
        """
        report_id = uuid.uuid4().hex
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO reports (id, job_id, reason, timestamp)
                VALUES (?, ?, ?, ?)
            """, (report_id, job_id, reason, datetime.now().isoformat()))
            conn.commit()

        logger.info(f"Job {job_id} reported: {reason}")
        return report_id

    def get_reports(self, job_id: str) -> list[JobReport]:
        """Get all reports filed against a job, oldest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM reports WHERE job_id = ? ORDER BY rowid", (job_id,)
            )
            return [
                JobReport(
                    id=row["id"],
                    job_id=row["job_id"],
                    reason=row["reason"],
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                )
                for row in cursor.fetchall()
            ]

    def get_stats(self) -> dict:
        """
        Get database statistics.

        Returns:
            Dictionary with various statistics.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()

            stats = {}

            cursor.execute("SELECT COUNT(*) FROM jobs")
            stats["total_jobs"] = cursor.fetchone()[0]

            cursor.execute("SELECT COUNT(*) FROM jobs WHERE verified")
            stats["verified_jobs"] = cursor.fetchone()[0]

            # Jobs without coordinates never show up in proximity results
            cursor.execute("SELECT COUNT(*) FROM jobs WHERE latitude IS NOT NULL")
            stats["jobs_with_coordinates"] = cursor.fetchone()[0]

            cursor.execute("""
                SELECT safety_score, COUNT(*)
                FROM jobs
                WHERE safety_score IS NOT NULL
                GROUP BY safety_score
            """)
            stats["by_safety_tier"] = {row[0]: row[1] for row in cursor.fetchall()}

            cursor.execute("SELECT COUNT(*) FROM reports")
            stats["total_reports"] = cursor.fetchone()[0]

            return stats

    def _row_to_job(self, row: sqlite3.Row) -> JobRecord:
        """Convert a database row to a JobRecord."""
        coordinates = None
        if row["latitude"] is not None and row["longitude"] is not None:
            coordinates = Coordinate(row["latitude"], row["longitude"])

        return JobRecord(
            id=row["id"],
            title=row["title"],
            company=row["company"],
            location=row["location"],
            pay=row["pay"] or "",
            description=row["description"] or "",
            coordinates=coordinates,
            safety_score=SafetyTier(row["safety_score"]) if row["safety_score"] else None,
            verified=bool(row["verified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
