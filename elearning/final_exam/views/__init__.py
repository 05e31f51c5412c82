"""
E-Learning Final Exam Views Package

Dieses Paket enthält alle Views für das Prüfungssystem.

Features:
- Admin-Views: Prüfungen einer Unit anlegen, bearbeiten, löschen
- Schüler-Views: Prüfungsübersicht, Versuche starten, Zwischenstand speichern, abgeben
- Bewertungs-Views: Free-Response-Fragen manuell bewerten

Author: DSP Development Team
Version: 1.0.0
"""

from .student_views import *
from .teacher_views import *
from .grading_views import *
