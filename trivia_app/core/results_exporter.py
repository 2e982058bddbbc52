"""Utilities for exporting participant results as CSV."""

from __future__ import annotations

import csv
from datetime import date
import io
from typing import Iterable

from trivia_app.core.models import Participant

CSV_HEADERS = ("Position", "Name", "Employee ID", "Department", "Score", "Correct", "Status", "Registered")


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"quiz-participants-{today.isoformat()}.csv"


def serialize_participants(participants: Iterable[Participant], total_questions: int) -> str:
    """Render participants, already ordered by rank, as a spreadsheet-friendly CSV."""

    buffer = io.StringIO()
    # Leading BOM so spreadsheet tools detect UTF-8.
    buffer.write("\ufeff")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for position, participant in enumerate(participants, start=1):
        writer.writerow(
            (
                position,
                participant.full_name,
                participant.employee_id,
                participant.department,
                participant.total_score,
                f"{participant.correct_count}/{total_questions}",
                "Completed" if participant.completed else "In progress",
                participant.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            )
        )
    return buffer.getvalue()
