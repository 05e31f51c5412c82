"""
E-Learning Services Package für die Course Platform

Dieses Paket enthält die Geschäftslogik der Kursplattform:
- Ordering Service (Positionen von Units und Lektionen)
- Exam Attempt Service (Lebenszyklus von Prüfungsversuchen)
- Scoring (Bewertung von Prüfungsantworten)
- Grading Service (manuelle Bewertung durch Admins)
- Exam Overview Service (Prüfungsübersicht für Studenten)
- Progress Service (Fortschrittsberechnung)
- Course Duplication Service (Kursduplikation)

Struktur:
├── ordering_service.py       # Einfügen, Verschieben, Umsortieren
├── attempt_service.py        # Versuche starten, speichern, abgeben
├── scoring.py                # Punkteberechnung
├── grading_service.py        # Manuelle Bewertung, Abschluss der Bewertung
├── exam_overview_service.py  # Prüfungsstatus, Filter und Kennzahlen
├── progress_service.py       # Kursfortschritt und Status
├── duplication_service.py    # Tiefe Kopie eines Kurses
└── validation.py             # Hilfsfunktionen für Request-Werte

Author: DSP Development Team
Version: 1.0.0
"""

# Ordering
from .ordering_service import OrderingService

# Exam Attempts
from .attempt_service import ExamAttemptService, exam_time_limit
from .scoring import score_exam, round_half_up, percentage
from .grading_service import ExamGradingService
from .exam_overview_service import ExamOverviewService, exam_status

# Progress
from .progress_service import ProgressService, CourseProgress, filter_and_sort

# Duplication
from .duplication_service import CourseDuplicationService, DuplicationResult

__all__ = [
    # Ordering
    "OrderingService",
    # Exam Attempts
    "ExamAttemptService",
    "exam_time_limit",
    "score_exam",
    "round_half_up",
    "percentage",
    "ExamGradingService",
    "ExamOverviewService",
    "exam_status",
    # Progress
    "ProgressService",
    "CourseProgress",
    "filter_and_sort",
    # Duplication
    "CourseDuplicationService",
    "DuplicationResult",
]
